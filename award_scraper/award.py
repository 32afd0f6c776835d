"""One bookable fare offer on a specific flight"""

from typing import TYPE_CHECKING, Any, Dict, Optional, Sequence, Tuple

from .exceptions import IntegrityError
from .models import Cabin
from .site_config import BookingClass
from .validators import positive_integer, valid_airline_code, valid_currency

if TYPE_CHECKING:
    from .flight import Flight
    from .segment import Segment


class Award:
    """
    A fare/cabin offer attached to exactly one Flight.

    ``cabins`` holds one cabin per flight segment. When omitted it is taken from the
    flight's segment cabins, falling back to the fare's cabin.
    """

    def __init__(
        self,
        engine: str,
        fare: BookingClass,
        quantity: int = 1,
        cabins: Optional[Sequence] = None,
        flight: Optional["Flight"] = None,
        partner: Optional[bool] = None,
        exact: bool = False,
        waitlisted: bool = False,
        mileage_cost: Optional[int] = None,
        fees: Optional[str] = None,
    ):
        if not isinstance(engine, str) or not valid_airline_code(engine.upper()):
            raise IntegrityError(f"Invalid award engine: {engine!r}")
        if not isinstance(fare, BookingClass):
            raise IntegrityError(f"Invalid award fare: {fare!r}")
        if not positive_integer(quantity):
            raise IntegrityError(f"Invalid award quantity: {quantity!r}")
        if mileage_cost is not None and not positive_integer(mileage_cost):
            raise IntegrityError(f"Invalid award mileage_cost: {mileage_cost!r}")
        if fees is not None and not valid_currency(fees):
            raise IntegrityError(f"Invalid award fees: {fees!r}")

        self.engine = engine.upper()
        self.fare = fare
        self.quantity = quantity
        self.exact = bool(exact)
        self.waitlisted = bool(waitlisted)
        self.mileage_cost = mileage_cost
        self.fees = fees
        self._partner = None if partner is None else bool(partner)
        self._cabins = None if cabins is None else _coerce_cabins(cabins)
        self._flight = None

        if flight is not None:
            flight.add_award(self)

    def _check_flight(self, flight: "Flight") -> Tuple[Cabin, ...]:
        """Cabins this award would carry on ``flight``, raising if they cannot match"""
        if self._cabins is None:
            return tuple(x.cabin or self.fare.cabin for x in flight.segments)
        if len(self._cabins) != len(flight.segments):
            raise IntegrityError(
                f"Award has {len(self._cabins)} cabins for a flight with "
                f"{len(flight.segments)} segments: {flight.key}"
            )
        return self._cabins

    def _attach(self, flight: "Flight", cabins: Tuple[Cabin, ...]) -> None:
        self._cabins = cabins
        self._flight = flight

    def _detach(self) -> None:
        self._flight = None

    @property
    def flight(self) -> Optional["Flight"]:
        return self._flight

    @property
    def cabins(self) -> Optional[Tuple[Cabin, ...]]:
        return self._cabins

    @property
    def segments(self) -> Tuple["Segment", ...]:
        """The flight's segments with this award's cabins applied"""
        if self._flight is None:
            return ()
        return tuple(s.with_cabin(c) for s, c in zip(self._flight.segments, self._cabins))

    @property
    def partner(self) -> bool:
        if self._partner is not None:
            return self._partner
        if self._flight is None:
            return False
        return not self._flight.airline_matches(self.engine)

    @property
    def mixed_cabin(self) -> bool:
        return bool(self._cabins) and len(set(self._cabins)) > 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "engine": self.engine,
            "partner": self.partner,
            "cabins": [x.value for x in self._cabins] if self._cabins else None,
            "mixed_cabin": self.mixed_cabin,
            "fare": self.fare.code,
            "quantity": self.quantity,
            "exact": self.exact,
            "waitlisted": self.waitlisted,
            "mileage_cost": self.mileage_cost,
            "fees": self.fees,
        }

    def __repr__(self) -> str:
        key = self._flight.key if self._flight else None
        return (
            f"Award({self.engine} {self.fare.code} x{self.quantity} "
            f"miles={self.mileage_cost} flight={key})"
        )


def _coerce_cabins(values) -> Tuple[Cabin, ...]:
    if isinstance(values, (str, bytes)):
        raise IntegrityError(f"Invalid award cabins: {values!r}")
    try:
        return tuple(Cabin.coerce(x) for x in values)
    except (ValueError, TypeError):
        raise IntegrityError(f"Invalid award cabins: {values!r}")
