"""One physical flight leg"""

import datetime
from dataclasses import dataclass
from functools import cached_property
from typing import Any, Dict, Optional

from .airports import airport_timezone
from .date_utils import coerce_date, coerce_time
from .exceptions import IntegrityError, InvalidDurationError
from .models import Cabin
from .validators import valid_airline_code, valid_airport_code, valid_flight_designator

UTC = datetime.timezone.utc


def minutes_between(start: datetime.datetime, end: datetime.datetime) -> int:
    """Whole minutes between two aware datetimes, negative when ``end`` is earlier"""
    delta = end.astimezone(UTC) - start.astimezone(UTC)
    return int(delta.total_seconds() // 60)


@dataclass(frozen=True)
class Schedule:
    """The immutable part of a segment, shared between copies that differ only by cabin"""

    airline: str
    flight: str
    aircraft: Optional[str]
    from_city: str
    to_city: str
    date: datetime.date
    departure: datetime.time
    arrival: datetime.time
    stops: int = 0
    lag_days: int = 0

    def __post_init__(self):
        if not valid_flight_designator(self.flight):
            raise IntegrityError(f"Invalid segment flight designator: {self.flight!r}")
        if not valid_airline_code(self.airline):
            raise IntegrityError(f"Invalid segment airline: {self.airline!r}")
        if not valid_airport_code(self.from_city):
            raise IntegrityError(f"Invalid segment from_city: {self.from_city!r}")
        if not valid_airport_code(self.to_city):
            raise IntegrityError(f"Invalid segment to_city: {self.to_city!r}")
        for attr in ("stops", "lag_days"):
            value = getattr(self, attr)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise IntegrityError(f"Invalid segment {attr}: {value!r}")

        if self.duration < 0:
            raise InvalidDurationError(
                f"Invalid segment duration: {self.flight} departs {self.departure_at.isoformat()}, "
                f"arrives {self.arrival_at.isoformat()}"
            )

    @cached_property
    def departure_at(self) -> datetime.datetime:
        return datetime.datetime.combine(
            self.date, self.departure, tzinfo=airport_timezone(self.from_city)
        )

    @cached_property
    def arrival_at(self) -> datetime.datetime:
        arrival_date = self.date + datetime.timedelta(days=self.lag_days)
        return datetime.datetime.combine(
            arrival_date, self.arrival, tzinfo=airport_timezone(self.to_city)
        )

    @cached_property
    def duration(self) -> int:
        return minutes_between(self.departure_at, self.arrival_at)

    @cached_property
    def overnight(self) -> bool:
        # Arrival expressed in the departure timezone: past 1am on a later day
        tz = airport_timezone(self.from_city)
        local_arrival = (
            self.departure_at.astimezone(UTC) + datetime.timedelta(minutes=self.duration)
        ).astimezone(tz)
        return local_arrival.hour >= 1 and (local_arrival.date() - self.date).days > 0

    @cached_property
    def key(self) -> str:
        return f"{self.date.isoformat()}:{self.from_city}:{self.flight}"


class Segment:
    """
    A flight leg with an optional cabin assignment.

    The schedule is immutable and shared: ``with_cabin()`` returns a shallow copy that
    only overrides the cabin.
    """

    __slots__ = ("_schedule", "_cabin")

    def __init__(
        self,
        flight: str,
        from_city: str,
        to_city: str,
        date,
        departure,
        arrival,
        airline: Optional[str] = None,
        aircraft: Optional[str] = None,
        cabin=None,
        stops: int = 0,
        lag_days: int = 0,
    ):
        if airline is None and isinstance(flight, str):
            airline = flight[:2]
        try:
            date = coerce_date(date)
            departure = coerce_time(departure)
            arrival = coerce_time(arrival)
        except (ValueError, OverflowError) as e:
            raise IntegrityError(f"Invalid segment schedule for {flight}: {e}")
        self._schedule = Schedule(
            airline=airline,
            flight=flight,
            aircraft=aircraft or None,
            from_city=from_city,
            to_city=to_city,
            date=date,
            departure=departure,
            arrival=arrival,
            stops=stops,
            lag_days=lag_days,
        )
        self._cabin = _coerce_cabin(cabin)

    @classmethod
    def _from_schedule(cls, schedule: Schedule, cabin: Optional[Cabin]) -> "Segment":
        instance = cls.__new__(cls)
        instance._schedule = schedule
        instance._cabin = cabin
        return instance

    def with_cabin(self, cabin) -> "Segment":
        return Segment._from_schedule(self._schedule, _coerce_cabin(cabin))

    def connection_to(self, next_segment: "Segment") -> int:
        """Minutes between this segment's arrival and the next segment's departure"""
        return minutes_between(self.arrival_at, next_segment.departure_at)

    @property
    def schedule(self) -> Schedule:
        return self._schedule

    @property
    def cabin(self) -> Optional[Cabin]:
        return self._cabin

    @property
    def airline(self) -> str:
        return self._schedule.airline

    @property
    def flight(self) -> str:
        return self._schedule.flight

    @property
    def aircraft(self) -> Optional[str]:
        return self._schedule.aircraft

    @property
    def from_city(self) -> str:
        return self._schedule.from_city

    @property
    def to_city(self) -> str:
        return self._schedule.to_city

    @property
    def date(self) -> datetime.date:
        return self._schedule.date

    @property
    def departure(self) -> datetime.time:
        return self._schedule.departure

    @property
    def arrival(self) -> datetime.time:
        return self._schedule.arrival

    @property
    def stops(self) -> int:
        return self._schedule.stops

    @property
    def lag_days(self) -> int:
        return self._schedule.lag_days

    @property
    def departure_at(self) -> datetime.datetime:
        return self._schedule.departure_at

    @property
    def arrival_at(self) -> datetime.datetime:
        return self._schedule.arrival_at

    @property
    def duration(self) -> int:
        return self._schedule.duration

    @property
    def overnight(self) -> bool:
        return self._schedule.overnight

    @property
    def key(self) -> str:
        return self._schedule.key

    def to_dict(self) -> Dict[str, Any]:
        s = self._schedule
        ret = {
            "airline": s.airline,
            "flight": s.flight,
            "aircraft": s.aircraft,
            "from_city": s.from_city,
            "to_city": s.to_city,
            "date": s.date.isoformat(),
            "departure": s.departure.strftime("%H:%M"),
            "arrival": s.arrival.strftime("%H:%M"),
            "stops": s.stops,
            "lag_days": s.lag_days,
        }
        if self._cabin:
            ret["cabin"] = self._cabin.value
        return ret

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Segment":
        return cls(
            flight=data.get("flight"),
            airline=data.get("airline"),
            aircraft=data.get("aircraft"),
            from_city=data.get("from_city"),
            to_city=data.get("to_city"),
            date=data.get("date"),
            departure=data.get("departure"),
            arrival=data.get("arrival"),
            cabin=data.get("cabin"),
            stops=data.get("stops", 0),
            lag_days=data.get("lag_days", 0),
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Segment):
            return NotImplemented
        return self._schedule == other._schedule and self._cabin == other._cabin

    def __hash__(self) -> int:
        return hash((self._schedule, self._cabin))

    def __repr__(self) -> str:
        s = self._schedule
        cabin = self._cabin.value if self._cabin else None
        return (
            f"Segment({s.flight} {s.from_city}-{s.to_city} {s.date} "
            f"{s.departure:%H:%M}-{s.arrival:%H:%M}+{s.lag_days} cabin={cabin})"
        )


def _coerce_cabin(value) -> Optional[Cabin]:
    if value is None:
        return None
    try:
        return Cabin.coerce(value)
    except ValueError:
        raise IntegrityError(f"Invalid segment cabin: {value!r}")
