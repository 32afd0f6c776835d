"""Raw assets captured by one search, and the flights/awards parsed from them"""

import base64
import gzip
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple, Union

import aiofiles
import orjson
from loguru import logger
from selectolax.lexbor import LexborHTMLParser

from .award import Award
from .exceptions import (
    AwardScraperError,
    CredentialsError,
    IntegrityError,
    InvalidDurationError,
    OrphanedAwardError,
    OrphanedFlightError,
    ParserError,
    SearcherError,
)
from .flight import Flight
from .models import ASSET_TYPES, AssetType, ErrorKind
from .query import Query
from .retry import classify_error
from .segment import Segment

if TYPE_CHECKING:
    from .engine import Engine
    from .registry import EngineRegistry

# Rebuilds a recorded error from a saved Results document
_ERROR_CLASSES = {
    ErrorKind.SEARCHER: SearcherError,
    ErrorKind.CREDENTIALS: CredentialsError,
    ErrorKind.PARSER: ParserError,
}


@dataclass(frozen=True)
class Asset:
    """One captured artifact; ``contents`` is loaded lazily from ``path`` when absent"""

    name: str
    path: Optional[str] = None
    contents: Any = None

    def to_dict(self, asset_type: AssetType) -> Dict[str, Any]:
        ret: Dict[str, Any] = {"name": self.name}
        if self.path:
            ret["path"] = self.path
        if self.contents is not None:
            if asset_type is AssetType.SCREENSHOT:
                ret["contents"] = base64.b64encode(self.contents).decode("ascii")
            else:
                ret["contents"] = self.contents
        return ret


def append_path(path: str, suffix: str) -> str:
    """Insert ``suffix`` before the first extension: ``a/results.json.gz`` -> ``a/results-1.json.gz``"""
    directory, base = os.path.split(path)
    pos = base.find(".")
    if pos < 0:
        pos = len(base)
    return os.path.join(directory, base[:pos] + suffix + base[pos:])


class Results:
    """
    Everything one ``Engine.search()`` produced.

    Searchers add raw assets through ``save_html()``, ``save_json()`` and
    ``screenshot()``. ``flights`` and ``awards`` are parsed from those assets on first
    access, exactly once; a parse failure is cached and raised again on later access.
    """

    def __init__(
        self,
        engine_id: str,
        query: Query,
        registry: "EngineRegistry",
        engine: Optional["Engine"] = None,
    ):
        self.engine_id = engine_id.upper()
        self.query = query
        self._registry = registry
        self._engine = engine
        self._assets: Dict[AssetType, List[Asset]] = {t: [] for t in ASSET_TYPES}
        self._dom: Dict[str, LexborHTMLParser] = {}
        self._error: Optional[BaseException] = None
        self._fixed = False
        self._parsed = False
        self._parse_error: Optional[BaseException] = None
        self._flights: Optional[Tuple[Flight, ...]] = None
        self._awards: Optional[Tuple[Award, ...]] = None

    # Errors

    @property
    def ok(self) -> bool:
        return self._error is None

    @property
    def error(self) -> Optional[BaseException]:
        return self._error

    @property
    def error_kind(self) -> Optional[ErrorKind]:
        return classify_error(self._error) if self._error else None

    def record_error(self, error: BaseException) -> None:
        self._error = error

    # Assets

    @property
    def assets(self) -> Dict[AssetType, Tuple[Asset, ...]]:
        return {t: tuple(self._assets[t]) for t in ASSET_TYPES}

    def has_asset(self, asset_type: Union[AssetType, str]) -> bool:
        return bool(self._assets[AssetType(asset_type)])

    async def save_html(self, name: str = "default", contents: Optional[str] = None) -> Asset:
        """Save the page's HTML (or the given HTML) under ``name``"""
        self._check_fixed()
        if contents is None:
            contents = await self._page().content()
        return await self._save_asset(AssetType.HTML, name, contents)

    async def save_json(self, name: str = "default", contents: Any = None) -> Asset:
        self._check_fixed()
        if not contents:
            raise ValueError(f"Results cannot save empty JSON asset: {contents!r}")
        return await self._save_asset(AssetType.JSON, name, contents)

    async def screenshot(self, name: str = "default") -> Optional[Asset]:
        """Capture the current page, returns None when screenshots are disabled for the query"""
        self._check_fixed()
        return await self._save_asset(AssetType.SCREENSHOT, name, None)

    def contents(self, asset_type: Union[AssetType, str], name: str = "default") -> Any:
        """
        Contents of a named asset, loading it from disk on first use.

        Gzip files are decompressed, JSON is decoded and HTML is returned as text.
        Returns None when the asset does not exist or has nothing to load.
        """
        asset_type = AssetType(asset_type)
        assets = self._assets[asset_type]
        index = next((i for i, x in enumerate(assets) if x.name == name), None)
        if index is None:
            return None
        asset = assets[index]
        if asset.contents is not None:
            return asset.contents
        if not asset.path:
            return None

        data = Path(asset.path).read_bytes()
        if asset.path.endswith(".gz"):
            data = gzip.decompress(data)
        if asset_type is AssetType.JSON:
            contents = orjson.loads(data)
        elif asset_type is AssetType.HTML:
            contents = data.decode("utf-8")
        else:
            contents = data

        assets[index] = replace(asset, contents=contents)
        return contents

    def dom(self, name: str = "default") -> Optional[LexborHTMLParser]:
        """Parsed DOM of a named HTML asset, cached per name"""
        if name in self._dom:
            return self._dom[name]
        html = self.contents(AssetType.HTML, name)
        if not html:
            return None
        tree = LexborHTMLParser(html)
        self._dom[name] = tree
        return tree

    def trim_contents(self) -> "Results":
        """Drop in-memory asset contents, assets saved to a path reload from disk on demand"""
        for asset_type in ASSET_TYPES:
            self._assets[asset_type] = [replace(x, contents=None) for x in self._assets[asset_type]]
        self._dom.clear()
        return self

    async def _save_asset(self, asset_type: AssetType, name: str, contents: Any) -> Optional[Asset]:
        options = self.query.asset_options(asset_type)
        assets = self._assets[asset_type]

        if asset_type is AssetType.SCREENSHOT and not options.enabled:
            return None

        path = None
        if options.path:
            index = len(assets)
            path = append_path(options.path, f"-{index}") if index > 0 else options.path
            Path(path).parent.mkdir(parents=True, exist_ok=True)

            if asset_type is AssetType.SCREENSHOT:
                contents = await self._page().screenshot(path=path, full_page=options.full_page)
            else:
                data = orjson.dumps(contents) if asset_type is AssetType.JSON else contents.encode("utf-8")
                if options.gzip:
                    if not path.endswith(".gz"):
                        path += ".gz"
                    data = gzip.compress(data)
                async with aiofiles.open(path, "wb") as f:
                    await f.write(data)
            logger.debug(f"💾 [{self.engine_id}] Saved {asset_type.value} asset '{name}': {path}")

        elif asset_type is AssetType.SCREENSHOT:
            contents = await self._page().screenshot(full_page=options.full_page)

        asset = Asset(name=name, path=path, contents=contents)
        assets.append(asset)
        return asset

    def _check_fixed(self) -> None:
        if self._fixed:
            raise RuntimeError(
                "Results loaded from a saved document are fixed, and cannot have new assets added"
            )

    def _page(self):
        page = getattr(self._engine, "page", None)
        if page is None:
            raise RuntimeError(f"No browser page available to capture assets for {self.engine_id}")
        return page

    # Parsing

    @property
    def flights(self) -> Optional[Tuple[Flight, ...]]:
        """Deduplicated flights, None when the search or the parse recorded an error"""
        self._ensure_parsed()
        return self._flights

    @property
    def awards(self) -> Optional[Tuple[Award, ...]]:
        self._ensure_parsed()
        return self._awards

    def _ensure_parsed(self) -> None:
        if self._parse_error is not None:
            raise self._parse_error
        if self._parsed:
            return
        try:
            self._parse()
        except Exception as e:
            self._parse_error = e
            raise
        finally:
            self._parsed = True

    def _parse(self) -> None:
        if self._error is not None:
            return

        module = self._registry.get(self.engine_id)
        parser = module.parser(self.engine_id, module.config, self)
        try:
            items = parser.parse(self)
        except ParserError as e:
            logger.warning(f"⚠️ [{self.engine_id}] Parser error for {self.query}: {e}")
            self._error = e
            return

        if not isinstance(items, (list, tuple)):
            raise IntegrityError(f"Expected a list of Flight or Award objects from parse(), got: {items!r}")

        flights, awards = [], []
        for item in items:
            if isinstance(item, Flight):
                if not item.awards:
                    raise OrphanedFlightError(f"Orphaned Flight detected (has no associated awards): {item!r}")
                flights.append(item)
            elif isinstance(item, Award):
                if item.flight is None:
                    raise OrphanedAwardError(f"Orphaned Award detected (has no associated flight): {item!r}")
                awards.append(item)
            else:
                raise IntegrityError(f"Unexpected object from parse(): {item!r}")

        unique = Flight.dedupe(flights + [x.flight for x in awards])

        for flight in unique:
            for segment in flight.segments:
                if segment.duration < 0:
                    raise InvalidDurationError(f"Invalid segment duration: {segment!r}")
            flight.connections  # raises InvalidDurationError on a negative connection

        self._flights = tuple(unique)
        self._awards = tuple(a for f in unique for a in f.awards)
        logger.debug(
            f"[{self.engine_id}] Parsed {len(self._awards)} awards across {len(self._flights)} flights"
        )

    # Serialization

    def to_dict(self, include_flights: bool = False) -> Dict[str, Any]:
        ret: Dict[str, Any] = {"engine": self.engine_id, "query": self.query.to_dict()}
        if self._error is not None:
            ret["error"] = str(self._error)
            ret["error_kind"] = self.error_kind.value
        for asset_type in ASSET_TYPES:
            assets = self._assets[asset_type]
            if assets:
                ret[asset_type.value] = [x.to_dict(asset_type) for x in assets]
        if include_flights:
            flights = self.flights
            ret["flights"] = [x.to_dict(True) for x in flights] if flights is not None else None
        return ret

    def to_json(self, include_flights: bool = False) -> bytes:
        return orjson.dumps(self.to_dict(include_flights), option=orjson.OPT_INDENT_2)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], registry: "EngineRegistry") -> "Results":
        """
        Rebuild Results from ``to_dict()`` output, for re-parsing without a browser.

        Flights and awards are restored when present. The returned Results is fixed:
        no assets can be added to it.
        """
        if not data.get("query"):
            raise ValueError('The "query" key is required to load Results')
        engine_id = str(data.get("engine", "")).upper()
        module = registry.get(engine_id)

        instance = cls(engine_id, Query.from_dict(data["query"]), registry)
        if data.get("error"):
            try:
                kind = ErrorKind(data.get("error_kind"))
            except ValueError:
                kind = ErrorKind.SEARCHER
            instance._error = _ERROR_CLASSES.get(kind, AwardScraperError)(data["error"])

        for asset_type in ASSET_TYPES:
            instance._assets[asset_type] = _load_assets(asset_type, data.get(asset_type.value) or [])
        instance._fixed = True

        if data.get("flights") is not None:
            flights = []
            for entry in data["flights"]:
                segments = [Segment.from_dict(x) for x in entry["segments"]]
                awards = [_load_award(x, module.config) for x in entry.get("awards", [])]
                flights.append(Flight(segments, awards))
            instance._flights = tuple(flights)
            instance._awards = tuple(a for f in flights for a in f.awards)
            instance._parsed = True

        return instance

    def __repr__(self) -> str:
        status = "ok" if self.ok else f"error={self._error}"
        return f"Results({self.engine_id} {self.query} {status})"


def _load_assets(asset_type: AssetType, entries) -> List[Asset]:
    if not isinstance(entries, list):
        raise ValueError(f"Invalid Results {asset_type.value} assets: {entries!r}")
    assets = []
    for entry in entries:
        name, path, contents = entry.get("name"), entry.get("path"), entry.get("contents")
        if not name or not isinstance(name, str) or (path and not isinstance(path, str)):
            raise ValueError(f"Invalid Results {asset_type.value} asset: {entry!r}")
        if contents is not None and asset_type is not AssetType.JSON and not isinstance(contents, str):
            raise ValueError(f"Expected string contents for Results {asset_type.value} asset: {entry!r}")
        if contents is not None and asset_type is AssetType.SCREENSHOT:
            contents = base64.b64decode(contents)
        assets.append(Asset(name=name, path=path or None, contents=contents))
    return assets


def _load_award(data: Dict[str, Any], config) -> Award:
    fare = config.find_fare(data.get("fare"))
    if fare is None:
        raise IntegrityError(f"Unknown fare code for {config.name}: {data.get('fare')!r}")
    return Award(
        engine=data["engine"],
        fare=fare,
        quantity=data.get("quantity", 1),
        cabins=data.get("cabins"),
        partner=data.get("partner"),
        exact=data.get("exact", False),
        waitlisted=data.get("waitlisted", False),
        mileage_cost=data.get("mileage_cost"),
        fees=data.get("fees"),
    )
