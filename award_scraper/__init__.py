"""Airline award availability search
Browser-driven engines, throttled searches and parsed award results
"""

__version__ = "0.3.0"

from .award import Award
from .engine import Engine
from .exceptions import (
    AwardScraperError,
    CredentialsError,
    IntegrityError,
    ParserError,
    SearcherError,
    ValidationError,
)
from .flight import Flight
from .models import AssetType, Cabin, ErrorKind
from .parser import Parser
from .query import Query
from .rate_limiter import Throttle
from .registry import EngineModule, EngineRegistry, default_registry
from .results import Results
from .searcher import Searcher
from .segment import Segment
from .site_config import BookingClass, SiteConfig, ThrottleProfile

__all__ = [
    "__version__",
    "Award",
    "Engine",
    "AwardScraperError",
    "CredentialsError",
    "IntegrityError",
    "ParserError",
    "SearcherError",
    "ValidationError",
    "Flight",
    "AssetType",
    "Cabin",
    "ErrorKind",
    "Parser",
    "Query",
    "Throttle",
    "EngineModule",
    "EngineRegistry",
    "default_registry",
    "Results",
    "Searcher",
    "Segment",
    "BookingClass",
    "SiteConfig",
    "ThrottleProfile",
]
