"""Static per-airline settings: booking classes, throttling and the search window"""

import datetime
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, Optional, Tuple, Union
from urllib.parse import urlparse

from .config import (
    DEFAULT_MAX_DAYS,
    DEFAULT_MIN_DAYS,
    DEFAULT_THROTTLE_PROFILE,
    DEFAULT_TRIP_MIN_DAYS,
    DEFAULT_WAIT_UNTIL,
    THROTTLE_PROFILES,
)
from .date_utils import DurationRange, duration_range
from .exceptions import ConfigError
from .models import Cabin
from .query import Query

WAIT_UNTIL_VALUES = ("load", "domcontentloaded", "networkidle", "commit")


@dataclass(frozen=True)
class BookingClass:
    """A fare code mapped to a cabin and a saver/market tier"""

    code: str
    cabin: Cabin
    saver: bool = True
    name: str = ""

    def __post_init__(self):
        if not self.code or not isinstance(self.code, str):
            raise ConfigError(f"Invalid booking class code: {self.code!r}")
        try:
            object.__setattr__(self, "cabin", Cabin.coerce(self.cabin))
        except ValueError:
            raise ConfigError(f"Invalid cabin for booking class {self.code}: {self.cabin!r}")
        object.__setattr__(self, "saver", bool(self.saver))

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "cabin": self.cabin.value, "saver": self.saver, "name": self.name}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BookingClass":
        return cls(
            code=data.get("code"),
            cabin=data.get("cabin"),
            saver=data.get("saver", True),
            name=data.get("name", ""),
        )


@dataclass(frozen=True)
class ThrottleProfile:
    """Request budget for one website"""

    delay_between_requests: Optional[DurationRange] = None
    requests_per_hour: int = 60
    rest_period: DurationRange = ("15:00", "30:00")

    def __post_init__(self):
        if not isinstance(self.requests_per_hour, int) or self.requests_per_hour <= 0:
            raise ConfigError(f"Invalid requests_per_hour: {self.requests_per_hour!r}")
        # Fail at registration rather than on the first throttled search
        try:
            if self.delay_between_requests is not None:
                duration_range(self.delay_between_requests)
            duration_range(self.rest_period)
        except ValueError as e:
            raise ConfigError(f"Invalid throttling profile: {e}")

    @classmethod
    def named(cls, name: str) -> "ThrottleProfile":
        try:
            return cls(**THROTTLE_PROFILES[name])
        except KeyError:
            raise ConfigError(f"Unknown throttling profile: {name!r}")

    @classmethod
    def coerce(cls, value) -> "ThrottleProfile":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            return cls.named(value)
        if isinstance(value, dict):
            return cls(**value)
        raise ConfigError(f"Invalid throttling profile: {value!r}")


def _valid_url(value) -> bool:
    if not isinstance(value, str):
        return False
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


@dataclass(frozen=True)
class SiteConfig:
    """
    Frozen settings for one supported airline website.

    Validated on construction, which happens once when the engine module is registered.
    """

    name: str
    home_url: str
    search_url: str
    fares: Tuple[BookingClass, ...]
    wait_until: str = DEFAULT_WAIT_UNTIL
    min_days: int = DEFAULT_MIN_DAYS
    max_days: int = DEFAULT_MAX_DAYS
    modifiable: FrozenSet[str] = frozenset()
    throttling: ThrottleProfile = field(
        default_factory=lambda: ThrottleProfile.named(DEFAULT_THROTTLE_PROFILE)
    )
    roundtrip_optimized: bool = True
    trip_min_days: int = DEFAULT_TRIP_MIN_DAYS
    one_way_supported: bool = True

    def __post_init__(self):
        if not self.name or not isinstance(self.name, str):
            raise ConfigError(f"Invalid config name: {self.name!r}")
        for attr in ("home_url", "search_url"):
            if not _valid_url(getattr(self, attr)):
                raise ConfigError(f"Invalid {attr} for {self.name}: {getattr(self, attr)!r}")
        if self.wait_until not in WAIT_UNTIL_VALUES:
            raise ConfigError(f"Invalid wait_until for {self.name}: {self.wait_until!r}")
        if not (isinstance(self.min_days, int) and isinstance(self.max_days, int)):
            raise ConfigError(f"Invalid search window for {self.name}")
        if self.min_days < 0 or self.max_days < self.min_days:
            raise ConfigError(
                f"Invalid search window for {self.name}: {self.min_days}..{self.max_days} days"
            )

        modifiable = frozenset(self.modifiable)
        unknown = modifiable - Query.MODIFIABLE
        if unknown:
            raise ConfigError(f"Unknown modifiable fields for {self.name}: {sorted(unknown)}")
        object.__setattr__(self, "modifiable", modifiable)

        object.__setattr__(self, "throttling", ThrottleProfile.coerce(self.throttling))

        fares = tuple(
            x if isinstance(x, BookingClass) else BookingClass.from_dict(x)
            for x in self.fares
        )
        if not fares:
            raise ConfigError(f"No booking classes defined for {self.name}")
        codes = [x.code for x in fares]
        if len(set(codes)) != len(codes):
            raise ConfigError(f"Duplicate booking class codes for {self.name}: {codes}")
        object.__setattr__(self, "fares", fares)

    def valid_date_range(
        self, today: Optional[datetime.date] = None
    ) -> Tuple[datetime.date, datetime.date]:
        """First and last departure dates the website accepts, relative to today"""
        today = today or datetime.date.today()
        return (
            today + datetime.timedelta(days=self.min_days),
            today + datetime.timedelta(days=self.max_days),
        )

    def find_fare(self, code: str) -> Optional[BookingClass]:
        return next((x for x in self.fares if x.code == code), None)

    def fares_for(self, cabin: Union[Cabin, str], saver: Optional[bool] = None) -> Iterable[BookingClass]:
        cabin = Cabin.coerce(cabin)
        return [
            x for x in self.fares
            if x.cabin == cabin and (saver is None or x.saver == saver)
        ]

    @property
    def cabins(self) -> FrozenSet[Cabin]:
        """Cabins this website sells award fares in"""
        return frozenset(x.cabin for x in self.fares)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "home_url": self.home_url,
            "search_url": self.search_url,
            "fares": [x.to_dict() for x in self.fares],
            "wait_until": self.wait_until,
            "min_days": self.min_days,
            "max_days": self.max_days,
            "modifiable": sorted(self.modifiable),
            "throttling": asdict(self.throttling),
            "roundtrip_optimized": self.roundtrip_optimized,
            "trip_min_days": self.trip_min_days,
            "one_way_supported": self.one_way_supported,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SiteConfig":
        data = dict(data)
        validation = data.pop("validation", None) or {}
        data.setdefault("min_days", validation.get("min_days", DEFAULT_MIN_DAYS))
        data.setdefault("max_days", validation.get("max_days", DEFAULT_MAX_DAYS))
        try:
            return cls(**data)
        except TypeError as e:
            raise ConfigError(f"Invalid config: {e}")
