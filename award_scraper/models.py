"""Enums shared across the award scraper"""

from enum import Enum


class Cabin(str, Enum):
    """Service class of a segment or fare"""

    FIRST = "first"
    BUSINESS = "business"
    PREMIUM = "premium"
    ECONOMY = "economy"

    @property
    def code(self) -> str:
        return CABIN_CODES[self]

    @property
    def rank(self) -> int:
        """0 for first class, increasing towards economy"""
        return CABIN_ORDER.index(self)

    @classmethod
    def coerce(cls, value) -> "Cabin":
        if isinstance(value, cls):
            return value
        return cls(value)


CABIN_ORDER = (Cabin.FIRST, Cabin.BUSINESS, Cabin.PREMIUM, Cabin.ECONOMY)

CABIN_CODES = {
    Cabin.FIRST: "F",
    Cabin.BUSINESS: "J",
    Cabin.PREMIUM: "W",
    Cabin.ECONOMY: "Y",
}


class ErrorKind(Enum):
    """Error categories for different handling strategies"""

    VALIDATION = "validation"  # Bad input, never retried
    SEARCHER = "searcher"  # Site automation failure, recorded on Results
    CREDENTIALS = "credentials"  # Stop using this engine/account
    PARSER = "parser"  # Malformed captured content, recorded on Results
    INTEGRITY = "integrity"  # Parser bug, fatal for that parse pass
    UNCLASSIFIED = "unclassified"  # Everything else propagates


class AssetType(str, Enum):
    """Raw artifacts a search can capture"""

    HTML = "html"
    JSON = "json"
    SCREENSHOT = "screenshot"


ASSET_TYPES = (AssetType.HTML, AssetType.JSON, AssetType.SCREENSHOT)


class PollResult(Enum):
    """Outcome of a bounded poll"""

    SUCCESS = "success"
    TIMEOUT = "timeout"
