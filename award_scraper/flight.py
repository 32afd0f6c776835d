"""Itineraries made of one or more segments, and their deduplication"""

from functools import cached_property
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .award import Award
from .exceptions import FlightMismatchError, IntegrityError, InvalidDurationError
from .models import CABIN_ORDER, Cabin
from .segment import Segment, minutes_between


class Flight:
    """
    An ordered, non-empty sequence of segments plus the awards offered on it.

    Schedule-derived values are computed once and cached. Awards are attached
    through ``add_award()``, which also moves an award away from its previous flight.
    """

    def __init__(self, segments: Sequence[Segment], awards: Iterable[Award] = ()):
        segments = tuple(segments)
        if not segments:
            raise IntegrityError("Flight must have at least one segment")
        for segment in segments:
            if not isinstance(segment, Segment):
                raise IntegrityError(f"Invalid flight segment: {segment!r}")
        self._segments = segments
        self._awards: List[Award] = []
        for award in awards:
            self.add_award(award)

    @classmethod
    def dedupe(cls, flights: Iterable["Flight"]) -> List["Flight"]:
        """
        Merge flights that share a key into one canonical Flight per key.

        Candidates under one key must have identical segment schedules (cabins aside),
        otherwise FlightMismatchError. The canonical flight has no segment cabins and
        carries the union of the candidates' awards. Returned sorted by key.
        """
        groups: Dict[str, List[Flight]] = {}
        for flight in flights:
            group = groups.setdefault(flight.key, [])
            if not any(x is flight for x in group):
                group.append(flight)

        merged = []
        for key in sorted(groups):
            candidates = groups[key]
            first = candidates[0]
            canonical = cls([x.with_cabin(None) for x in first.segments])

            for other in candidates[1:]:
                if len(other.segments) != len(first.segments):
                    raise FlightMismatchError(
                        f"Two flights with the same key ({key}) had a segment length mismatch"
                    )
                for ours, theirs in zip(first.segments, other.segments):
                    if ours.schedule is theirs.schedule:
                        continue
                    if ours.schedule != theirs.schedule:
                        raise FlightMismatchError(
                            f"Two flights with the same key ({key}) had a segment mismatch: "
                            f"{ours!r}, {theirs!r}"
                        )

            seen = set()
            for candidate in candidates:
                for award in list(candidate.awards):
                    if id(award) not in seen:
                        seen.add(id(award))
                        canonical.add_award(award)
            merged.append(canonical)

        return merged

    def add_award(self, award: Award) -> None:
        if not isinstance(award, Award):
            raise IntegrityError(f"Invalid flight award: {award!r}")
        previous = award.flight
        if previous is self:
            return
        cabins = award._check_flight(self)
        if previous is not None:
            previous._remove_award(award)
        award._attach(self, cabins)
        self._awards.append(award)

    def _remove_award(self, award: Award) -> None:
        self._awards = [x for x in self._awards if x is not award]
        award._detach()

    @property
    def segments(self) -> Tuple[Segment, ...]:
        return self._segments

    @property
    def awards(self) -> Tuple[Award, ...]:
        return tuple(self._awards)

    @cached_property
    def key(self) -> str:
        first = self._segments[0]
        parts = [first.key]
        for segment in self._segments[1:]:
            days = (segment.date - first.date).days
            parts.append(f"{days}:{segment.from_city}:{segment.flight}")
        return ":".join(parts)

    @property
    def from_city(self) -> str:
        return self._segments[0].from_city

    @property
    def to_city(self) -> str:
        return self._segments[-1].to_city

    @property
    def date(self):
        return self._segments[0].date

    @property
    def departure(self):
        return self._segments[0].departure

    @property
    def arrival(self):
        return self._segments[-1].arrival

    @property
    def departure_at(self):
        return self._segments[0].departure_at

    @property
    def arrival_at(self):
        return self._segments[-1].arrival_at

    @cached_property
    def duration(self) -> int:
        """Total minutes from first departure to last arrival"""
        return minutes_between(self.departure_at, self.arrival_at)

    @cached_property
    def connections(self) -> Tuple[int, ...]:
        """Minutes on the ground between consecutive segments"""
        ret = []
        for current, following in zip(self._segments, self._segments[1:]):
            minutes = current.connection_to(following)
            if minutes < 0:
                raise InvalidDurationError(
                    f"Invalid connection in {self.key}: {current!r} arrives after {following!r} departs"
                )
            ret.append(minutes)
        return tuple(ret)

    @property
    def min_layover(self) -> Optional[int]:
        return min(self.connections) if self.connections else None

    @property
    def max_layover(self) -> Optional[int]:
        return max(self.connections) if self.connections else None

    @cached_property
    def stops(self) -> int:
        return len(self._segments) - 1 + sum(x.stops for x in self._segments)

    @cached_property
    def lag_days(self) -> int:
        first, last = self._segments[0], self._segments[-1]
        return (last.date - first.date).days + last.lag_days

    @cached_property
    def overnight(self) -> bool:
        return any(x.overnight for x in self._segments)

    @property
    def mixed_cabin(self) -> bool:
        cabins = {x.cabin for x in self._segments if x.cabin is not None}
        return len(cabins) > 1

    def airline_matches(self, airline: str) -> bool:
        return all(x.airline == airline for x in self._segments)

    def highest_cabin(self) -> Optional[Cabin]:
        """Best cabin across segments, None when any segment has no cabin"""
        cabins = [x.cabin for x in self._segments]
        if not all(cabins):
            return None
        return min(cabins, key=CABIN_ORDER.index)

    def to_dict(self, include_awards: bool = True) -> Dict[str, Any]:
        ret = {}
        if include_awards:
            ret["awards"] = [x.to_dict() for x in self._awards]
        ret["segments"] = [x.to_dict() for x in self._segments]
        return ret

    def __repr__(self) -> str:
        return f"Flight({self.key}, awards={len(self._awards)})"
