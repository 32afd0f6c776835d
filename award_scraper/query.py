"""Immutable, validated award search request"""

import datetime
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Mapping, Optional, Union

from .date_utils import closest_year, coerce_date
from .exceptions import ValidationError
from .models import AssetType, Cabin
from .validators import positive_integer, valid_airport_code


@dataclass(frozen=True)
class AssetOptions:
    """
    Where and how one type of raw asset is persisted.

    ``path`` of None keeps the asset in memory only. ``gzip`` applies to HTML and
    JSON assets, ``full_page`` to screenshots.
    """

    path: Optional[str] = None
    gzip: bool = False
    enabled: bool = True
    full_page: bool = False

    @classmethod
    def coerce(cls, value) -> "AssetOptions":
        if value is None:
            return cls()
        if isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            known = {f.name for f in fields(cls)}
            return cls(**{k: v for k, v in value.items() if k in known})
        raise ValidationError(f"Invalid asset options: {value!r}")


@dataclass(frozen=True)
class Query:
    """
    One search request.

    Never mutated: the next search is a new Query, and the engine diffs consecutive
    queries to decide whether the website's incremental "modify" path can be used.
    """

    from_city: str
    to_city: str
    depart_date: datetime.date
    cabin: Cabin
    return_date: Optional[datetime.date] = None
    quantity: int = 1
    partners: bool = False
    html: AssetOptions = field(default_factory=AssetOptions, compare=False)
    json: AssetOptions = field(default_factory=AssetOptions, compare=False)
    screenshot: AssetOptions = field(default_factory=AssetOptions, compare=False)

    MODIFIABLE = frozenset(
        [
            "partners",
            "cabin",
            "quantity",
            "from_city",
            "to_city",
            "depart_date",
            "return_date",
            "one_way",
        ]
    )

    def __post_init__(self):
        try:
            cabin = Cabin.coerce(self.cabin)
        except ValueError:
            raise ValidationError(f"Invalid query cabin: {self.cabin!r}")
        if not positive_integer(self.quantity):
            raise ValidationError(f"Invalid query quantity: {self.quantity!r}")
        if not valid_airport_code(self.from_city):
            raise ValidationError(f"Invalid query from_city: {self.from_city!r}")
        if not valid_airport_code(self.to_city):
            raise ValidationError(f"Invalid query to_city: {self.to_city!r}")

        try:
            depart_date = coerce_date(self.depart_date)
        except (ValueError, OverflowError):
            raise ValidationError(f"Invalid query depart_date: {self.depart_date!r}")
        return_date = None
        if self.return_date is not None:
            try:
                return_date = coerce_date(self.return_date)
            except (ValueError, OverflowError):
                raise ValidationError(f"Invalid query return_date: {self.return_date!r}")
            if return_date < depart_date:
                raise ValidationError(
                    f"Query return_date {return_date} is before depart_date {depart_date}"
                )

        object.__setattr__(self, "cabin", cabin)
        object.__setattr__(self, "depart_date", depart_date)
        object.__setattr__(self, "return_date", return_date)
        object.__setattr__(self, "partners", bool(self.partners))
        for asset_type in AssetType:
            options = AssetOptions.coerce(getattr(self, asset_type.value))
            object.__setattr__(self, asset_type.value, options)

    @property
    def one_way(self) -> bool:
        return self.return_date is None

    def asset_options(self, asset_type: Union[AssetType, str]) -> AssetOptions:
        return getattr(self, AssetType(asset_type).value)

    def closest_departure(self, month: int, day: int) -> datetime.date:
        """Resolve a year-less date rendered by a website, relative to the departure"""
        return closest_year(month, day, self.depart_date)

    def closest_return(self, month: int, day: int) -> datetime.date:
        return closest_year(month, day, self.return_date or self.depart_date)

    def diff(self, previous: Optional["Query"]) -> Optional[Dict[str, Any]]:
        """
        Fields (with their new values) that changed since ``previous``.

        Returns None when there is no previous query or nothing changed.
        """
        if previous is None:
            return None
        changed = {
            key: getattr(self, key)
            for key in sorted(self.MODIFIABLE)
            if getattr(self, key) != getattr(previous, key)
        }
        return changed or None

    def with_assets(self, **options) -> "Query":
        """Copy of this query with different asset options (html=, json=, screenshot=)"""
        return replace(self, **{k: AssetOptions.coerce(v) for k, v in options.items()})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "partners": self.partners,
            "cabin": self.cabin.value,
            "quantity": self.quantity,
            "from_city": self.from_city,
            "to_city": self.to_city,
            "depart_date": self.depart_date.isoformat(),
            "return_date": self.return_date.isoformat() if self.return_date else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Query":
        if "cabin" not in data:
            raise ValidationError("Invalid query: missing cabin")
        for key in ("from_city", "to_city", "depart_date"):
            if key not in data:
                raise ValidationError(f"Invalid query: missing {key}")
        return cls(
            from_city=data["from_city"],
            to_city=data["to_city"],
            depart_date=data["depart_date"],
            cabin=data["cabin"],
            return_date=data.get("return_date"),
            quantity=data.get("quantity", 1),
            partners=data.get("partners", False),
            html=data.get("html"),
            json=data.get("json"),
            screenshot=data.get("screenshot"),
        )

    @classmethod
    def coerce(cls, value: Union["Query", Mapping[str, Any]]) -> "Query":
        if isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            return cls.from_dict(value)
        raise ValidationError(f"Invalid query: {value!r}")

    def __str__(self) -> str:
        dates = self.depart_date.isoformat()
        if self.return_date:
            dates += f" - {self.return_date.isoformat()}"
        return f"{self.from_city}-{self.to_city} {dates} {self.cabin.value} x{self.quantity}"
