"""Base class for site-specific result parsers"""

from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence, Union

from .exceptions import ParserError
from .models import Cabin
from .site_config import BookingClass, SiteConfig

if TYPE_CHECKING:
    from .award import Award
    from .flight import Flight
    from .query import Query
    from .results import Results
    from .segment import Segment


class Parser:
    """
    Turns the raw assets of a Results object into Flight and/or Award objects.

    Subclasses implement ``parse()``. Raise ParserError for malformed content;
    anything else is treated as a bug and propagates to the caller.
    """

    def __init__(self, engine_id: str, config: SiteConfig, results: Optional["Results"] = None):
        self.id = engine_id.upper()
        self.config = config
        self.results = results

    @property
    def query(self) -> "Query":
        return self.results.query

    def parse(self, results: "Results") -> List[Union["Flight", "Award"]]:
        raise NotImplementedError(f"{type(self).__name__} must implement parse()")

    def find_fare(self, cabin: Union[Cabin, str], saver: bool = True) -> BookingClass:
        """The booking class for a cabin and tier, ParserError when the website has none"""
        if cabin is None:
            raise ParserError("Cannot find a fare without a cabin")
        cabin = Cabin.coerce(cabin)
        fare = next((x for x in self.config.fares if x.cabin == cabin and x.saver == saver), None)
        if fare is None:
            tier = "saver" if saver else "market"
            raise ParserError(f"No {tier} fare defined for {cabin.value} on {self.config.name}")
        return fare

    def is_partner(self, segments: Sequence["Segment"], others: Iterable[str] = ()) -> bool:
        """True if any segment is operated by someone other than this airline (or ``others``)"""
        operators = {self.id, *(x.upper() for x in others)}
        return not all(x.airline in operators for x in segments)
