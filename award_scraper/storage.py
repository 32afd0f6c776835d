"""Persistence of search results: documents, request/award rows and cookies"""

from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional

import aiofiles
import orjson
from loguru import logger

from .models import ASSET_TYPES, CABIN_ORDER
from .query import Query
from .results import Results

if TYPE_CHECKING:
    from .registry import EngineRegistry


def request_row(results: Results) -> Dict[str, Any]:
    """The request row of a search: its query plus the paths of every saved asset"""
    row = {"engine": results.engine_id}
    row.update(results.query.to_dict())
    row["assets"] = {
        t.value: [x.path for x in results.assets[t] if x.path]
        for t in ASSET_TYPES
    }
    return row


def query_from_request_row(row: Mapping[str, Any]) -> Query:
    return Query.from_dict(row)


def award_rows(results: Results) -> List[Dict[str, Any]]:
    """One row per parsed award, each with its segments in order"""
    awards = results.awards
    if not awards:
        return []

    rows = []
    for award in awards:
        flight = award.flight
        segments = award.segments
        connections = flight.connections + (None,)
        rows.append({
            "engine": award.engine,
            "partner": award.partner,
            "from_city": flight.from_city,
            "to_city": flight.to_city,
            "date": flight.date.isoformat(),
            "departure": flight.departure.strftime("%H:%M"),
            "arrival": flight.arrival.strftime("%H:%M"),
            "cabin": min(award.cabins, key=CABIN_ORDER.index).value,
            "mixed": award.mixed_cabin,
            "duration": flight.duration,
            "stops": flight.stops,
            "quantity": award.quantity,
            "mileage": award.mileage_cost,
            "fees": award.fees,
            "fares": award.fare.code,
            "segments": [
                {
                    "position": i,
                    "airline": s.airline,
                    "flight": s.flight,
                    "aircraft": s.aircraft,
                    "from_city": s.from_city,
                    "to_city": s.to_city,
                    "date": s.date.isoformat(),
                    "departure": s.departure.strftime("%H:%M"),
                    "arrival": s.arrival.strftime("%H:%M"),
                    "duration": s.duration,
                    "connection_time": connection,
                    "cabin": s.cabin.value,
                    "stops": s.stops,
                    "lag_days": s.lag_days,
                    "booking_code": award.fare.code,
                }
                for i, (s, connection) in enumerate(zip(segments, connections))
            ],
        })
    return rows


class ResultsStorage:
    """
    Async storage that never blocks the event loop.
    Uses aiofiles for async I/O and orjson for serialization.
    """

    def __init__(self, output_dir: Path):
        self.output_dir = output_dir
        self.output_dir.mkdir(parents=True, exist_ok=True)

    async def _write(self, path: Path, data: Any) -> int:
        payload = orjson.dumps(data, option=orjson.OPT_INDENT_2)
        async with aiofiles.open(path, "wb") as f:
            await f.write(payload)
        return len(payload)

    async def save_results(self, results: Results, stem: str) -> Path:
        """
        Save a Results document (query, error and asset references) for later re-parsing.

        Asset contents that were written to disk are not duplicated into the document.
        """
        path = self.output_dir / f"{stem}.results.json"
        document = results.to_dict()
        for asset_type in ASSET_TYPES:
            for entry in document.get(asset_type.value, []):
                if entry.get("path"):
                    entry.pop("contents", None)
        size = await self._write(path, document)
        logger.debug(f"💾 Saved results: {path.name} ({size / 1024:.1f}KB)")
        return path

    async def save_rows(self, results: Results, stem: str) -> Optional[Path]:
        """Save the request row and award rows, None when the search has no awards to store"""
        if not results.ok:
            return None
        awards = award_rows(results)
        if not results.ok:
            return None  # Parser error recorded while building the rows
        path = self.output_dir / f"{stem}.rows.json"
        await self._write(path, {"request": request_row(results), "awards": awards})
        logger.debug(f"💾 Saved {len(awards)} award rows: {path.name}")
        return path

    async def load_results(self, path: Path, registry: "EngineRegistry") -> Results:
        async with aiofiles.open(path, "rb") as f:
            data = orjson.loads(await f.read())
        return Results.from_dict(data, registry)


async def load_cookies(path: Path) -> List[Dict[str, Any]]:
    if not path.exists():
        return []
    async with aiofiles.open(path, "rb") as f:
        cookies = orjson.loads(await f.read())
    if not isinstance(cookies, list):
        raise ValueError(f"Cookie file must hold a list of cookies: {path}")
    logger.debug(f"🍪 Loaded {len(cookies)} cookies from {path}")
    return cookies


async def save_cookies(path: Path, cookies: List[Dict[str, Any]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    async with aiofiles.open(path, "wb") as f:
        await f.write(orjson.dumps(cookies, option=orjson.OPT_INDENT_2))
    logger.debug(f"🍪 Saved {len(cookies)} cookies to {path}")
