"""Command-line interface: search an airline website over a range of dates"""

import argparse
import asyncio
import datetime
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from loguru import logger

from .accounts import get_credentials, load_accounts
from .config import DEFAULT_CABIN, DEFAULT_CREDENTIALS_FILE, DEFAULT_LOG_FILE, DEFAULT_OUTPUT_DIR, DEFAULT_TIMEOUT
from .date_utils import coerce_date, get_date_range_info, parse_date_list
from .engine import Engine
from .exceptions import AwardScraperError, IntegrityError, ValidationError
from .logging_config import setup_logging
from .models import Cabin, ErrorKind
from .proxy import ProxyConfig
from .query import Query
from .registry import EngineRegistry, default_registry
from .site_config import SiteConfig
from .storage import ResultsStorage, load_cookies, save_cookies


def route_stem(engine_id: str, query: Query, timestamp: str) -> str:
    """File name stem shared by a query's assets and saved documents"""
    dates = query.depart_date.isoformat()
    if query.return_date:
        dates += f"-{query.return_date.isoformat()}"
    return f"{engine_id}-{query.from_city}-{query.to_city}-{dates}-{timestamp}"


def clamp_date_range(
    start: datetime.date,
    end: datetime.date,
    config: SiteConfig,
    today: Optional[datetime.date] = None,
) -> Tuple[datetime.date, datetime.date]:
    """
    Fit a search range into the website's valid window.

    Raises:
        ValueError: If the range lies completely outside the window
    """
    first, last = config.valid_date_range(today)
    if end < first or start > last:
        raise ValueError(
            f"{config.name} only supports searching within the range: {first} - {last}"
        )
    if start < first:
        logger.warning(
            f"{config.name} can only search from {config.min_days} day(s) from today, "
            f"adjusting start of search range to: {first}"
        )
        start = first
    if end > last:
        logger.warning(
            f"{config.name} can only search up to {config.max_days} day(s) from today, "
            f"adjusting end of search range to: {last}"
        )
        end = last
    return start, end


def generate_queries(
    engine_id: str,
    config: SiteConfig,
    from_city: str,
    to_city: str,
    start: datetime.date,
    end: datetime.date,
    cabin: str = DEFAULT_CABIN,
    quantity: int = 1,
    partners: bool = False,
    one_way: bool = False,
    output_dir: Optional[Path] = None,
    timestamp: str = "",
    today: Optional[datetime.date] = None,
) -> List[Query]:
    """
    Plan the searches covering every day of ``start``..``end`` in both directions.

    Websites that price round trips as cheaply as one-ways are searched with round
    trips ``trip_min_days`` apart, and the few days at each end of the range that no
    round trip covers are filled in with one-ways (or round trips that stay inside
    the valid window when the site has no one-way search).
    """
    days = (end - start).days + 1
    gap = 0 if (one_way or not config.roundtrip_optimized) else min(config.trip_min_days, days)
    valid_end = config.valid_date_range(today)[1]
    trip = datetime.timedelta(days=config.trip_min_days)
    depart_cities = (from_city, to_city)
    return_cities = (to_city, from_city)
    plans: List[Tuple[Tuple[str, str], datetime.date, Optional[datetime.date]]] = []

    # Inbound days at the start of the range
    for i in range(gap):
        date = start + datetime.timedelta(days=i)
        if config.one_way_supported:
            plans.append((return_cities, date, None))
        elif date + trip < valid_end:
            plans.append((return_cities, date, date + trip))
        else:
            plans.append((depart_cities, date - trip, date))

    # Middle of the range
    for i in range(days - gap):
        date = start + datetime.timedelta(days=i)
        if config.roundtrip_optimized:
            plans.append((depart_cities, date, None if one_way else date + datetime.timedelta(days=gap)))
        else:
            plans.append((depart_cities, date, None))
            if not one_way:
                plans.append((return_cities, date, None))

    # Outbound days at the end of the range
    for i in reversed(range(gap)):
        date = end - datetime.timedelta(days=i)
        if config.one_way_supported:
            plans.append((depart_cities, date, None))
        elif date + trip < valid_end:
            plans.append((depart_cities, date, date + trip))
        else:
            plans.append((return_cities, date - trip, date))

    queries = []
    for (origin, destination), depart_date, return_date in plans:
        query = Query(
            from_city=origin,
            to_city=destination,
            depart_date=depart_date,
            return_date=return_date,
            cabin=cabin,
            quantity=quantity,
            partners=partners,
        )
        if output_dir is not None:
            base = str(output_dir / route_stem(engine_id, query, timestamp))
            query = query.with_assets(
                json={"path": base + ".json", "gzip": True},
                html={"path": base + ".html", "gzip": True},
                screenshot={"path": base + ".jpg"},
            )
        queries.append(query)
    return queries


async def run_searches(
    engine: Engine,
    queries: Sequence[Query],
    storage: ResultsStorage,
    timestamp: str,
    parse: bool = True,
) -> Dict[str, Any]:
    """
    Run queries one after another on an initialized engine, saving each outcome.

    A credentials error stops the run. Searcher errors and parse integrity errors
    only fail the query they happened on.
    """
    stats = {"successful": 0, "failed": 0, "awards": 0, "flights": 0, "stopped": False}

    for index, query in enumerate(queries, start=1):
        logger.info(f"[{index}/{len(queries)}] {engine.id}: {query}")
        stem = route_stem(engine.id, query, timestamp)

        try:
            results = await engine.search(query)
        except ValidationError as e:
            logger.error(f"❌ Invalid query {query}: {e}")
            stats["failed"] += 1
            continue

        await storage.save_results(results, stem)

        if not results.ok:
            stats["failed"] += 1
            if results.error_kind is ErrorKind.CREDENTIALS:
                logger.error(f"🛑 Credentials problem on {engine.id}, stopping: {results.error}")
                stats["stopped"] = True
                break
            continue

        if parse:
            try:
                await storage.save_rows(results, stem)
            except IntegrityError as e:
                logger.error(f"❌ Parse integrity failure for {query}: {e}")
                stats["failed"] += 1
                continue
            if not results.ok:
                logger.warning(f"⚠️ Could not parse results for {query}: {results.error}")
                stats["failed"] += 1
                continue
            stats["awards"] += len(results.awards)
            stats["flights"] += len(results.flights)
            logger.success(
                f"✅ {query}: {len(results.awards)} awards on {len(results.flights)} flights"
            )
        else:
            logger.success(f"✅ {query}: saved")

        stats["successful"] += 1

    return stats


async def reparse(paths: Sequence[Path], registry: EngineRegistry, output_dir: Path) -> Dict[str, Any]:
    """Re-run the parser over saved Results documents, without a browser"""
    storage = ResultsStorage(output_dir)
    stats = {"successful": 0, "failed": 0, "awards": 0, "flights": 0}
    for path in paths:
        try:
            results = await storage.load_results(path, registry)
            flights = results.flights
        except (AwardScraperError, ValueError, OSError) as e:
            logger.error(f"❌ {path.name}: {e}")
            stats["failed"] += 1
            continue
        if not results.ok:
            logger.warning(f"⚠️ {path.name}: {results.error}")
            stats["failed"] += 1
            continue
        stats["successful"] += 1
        stats["awards"] += len(results.awards)
        stats["flights"] += len(flights)
        logger.success(f"✅ {path.name}: {len(results.awards)} awards on {len(flights)} flights")
    return stats


class DateAction(argparse.Action):
    """Accumulate --date values (single dates or START:END ranges) into one list"""

    def __call__(self, parser, namespace, values, option_string=None):
        if getattr(namespace, self.dest, None) is None:
            setattr(namespace, self.dest, [])
        if isinstance(values, list):
            getattr(namespace, self.dest).extend(values)
        else:
            getattr(namespace, self.dest).append(values)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Airline award availability search",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    search_group = parser.add_argument_group("Award Search")
    search_group.add_argument("-w", "--website", type=str, help="IATA 2-letter code of the airline website to search")
    search_group.add_argument("-f", "--from", dest="from_city", type=str, help="Departure airport code")
    search_group.add_argument("-t", "--to", dest="to_city", type=str, help="Arrival airport code")
    search_group.add_argument(
        "--date", "--dates",
        dest="dates",
        action=DateAction,
        nargs="+",
        help="Date(s) in format YYYY-MM-DD or date range YYYY-MM-DD:YYYY-MM-DD. "
             "The whole span from the earliest to the latest date is searched.",
    )
    search_group.add_argument(
        "-c", "--cabin",
        type=str,
        default=DEFAULT_CABIN,
        choices=[x.value for x in Cabin],
        help="Cabin class",
    )
    search_group.add_argument("-q", "--quantity", type=int, default=1, help="Number of passengers")
    search_group.add_argument("-p", "--partners", action="store_true", help="Include partner awards")
    search_group.add_argument("-o", "--oneway", action="store_true", help="Search one-way (outbound) inventory only")
    search_group.add_argument("-P", "--no-parser", action="store_true", help="Do not parse search results")
    search_group.add_argument(
        "--reparse", type=str, nargs="+", metavar="FILE",
        help="Re-parse saved *.results.json documents instead of searching",
    )

    session_group = parser.add_argument_group("Browser Session")
    session_group.add_argument("-a", "--account", type=int, default=0, help="Index of the account to use")
    session_group.add_argument(
        "--credentials", type=str, default=str(DEFAULT_CREDENTIALS_FILE),
        help="Credentials file (ENGINE:username:password per line)",
    )
    session_group.add_argument("--proxy", type=str, help="Proxy as host:port[:username:password]")
    session_group.add_argument("--cookies", type=str, help="Cookie file to seed the session with (updated after the run)")
    session_group.add_argument("--headless", action="store_true", help="Run the browser headless")
    session_group.add_argument("--no-throttle", action="store_true", help="Disable request throttling")
    session_group.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT, help="Navigation timeout in seconds")

    config_group = parser.add_argument_group("Configuration")
    config_group.add_argument("--output", type=str, default=str(DEFAULT_OUTPUT_DIR), help="Output directory")
    config_group.add_argument("--verbose", action="store_true", help="Debug logging")
    config_group.add_argument("--log-file", type=str, help="Log file path")
    return parser


def main() -> None:
    """Main CLI entry point"""
    args = build_parser().parse_args()

    log_file = Path(args.log_file) if args.log_file else DEFAULT_LOG_FILE
    setup_logging(verbose=args.verbose, log_file=log_file)
    output_dir = Path(args.output)
    registry = default_registry()

    if args.reparse:
        stats = asyncio.run(reparse([Path(x) for x in args.reparse], registry, output_dir))
        logger.info(f"Re-parsed {stats['successful']} documents ({stats['failed']} failed): "
                    f"{stats['awards']} awards, {stats['flights']} flights")
        sys.exit(1 if stats["failed"] and not stats["successful"] else 0)

    missing = [name for name, value in (("--website", args.website), ("--from", args.from_city),
                                        ("--to", args.to_city), ("--date", args.dates)) if not value]
    if missing:
        logger.error(f"Missing required arguments: {', '.join(missing)}")
        sys.exit(1)

    engine_id = args.website.upper()
    if engine_id not in registry:
        logger.error(f"Unsupported airline website: {args.website} (supported: {', '.join(registry.supported())})")
        sys.exit(1)
    config = registry.get(engine_id).config

    try:
        dates = parse_date_list(args.dates)
        start, end = clamp_date_range(coerce_date(dates[0]), coerce_date(dates[-1]), config)
    except ValueError as e:
        logger.error(f"Invalid date specification: {e}")
        sys.exit(1)
    total_dates, consecutive_days = get_date_range_info(dates)
    if total_dates > 1 and not consecutive_days:
        logger.warning(f"Dates are not contiguous, searching every day from {start} to {end}")

    timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    try:
        queries = generate_queries(
            engine_id, config, args.from_city.upper(), args.to_city.upper(), start, end,
            cabin=args.cabin, quantity=args.quantity, partners=args.partners,
            one_way=args.oneway, output_dir=output_dir, timestamp=timestamp,
        )
    except ValidationError as e:
        logger.error(f"Invalid search: {e}")
        sys.exit(1)

    proxy = None
    if args.proxy:
        try:
            proxy = ProxyConfig.parse(args.proxy)
        except ValueError as e:
            logger.error(str(e))
            sys.exit(1)

    logger.info("=" * 60)
    logger.info(f"{config.name} ({engine_id}): {args.from_city.upper()} ⇄ {args.to_city.upper()}, "
                f"{start} - {end}, {len(queries)} queries")
    logger.info("=" * 60)

    async def run() -> Dict[str, Any]:
        engine = registry.new(engine_id)
        credentials = None
        if engine.login_required:
            accounts = load_accounts(Path(args.credentials))
            credentials = get_credentials(accounts, engine_id, args.account)

        cookie_file = Path(args.cookies) if args.cookies else None
        cookies = await load_cookies(cookie_file) if cookie_file else None
        storage = ResultsStorage(output_dir)

        async with engine:
            await engine.initialize(
                credentials=credentials,
                headless=args.headless,
                proxy=proxy,
                throttle=not args.no_throttle,
                timeout=args.timeout,
                cookies=cookies,
            )
            stats = await run_searches(engine, queries, storage, timestamp, parse=not args.no_parser)
            if cookie_file:
                await save_cookies(cookie_file, await engine.get_cookies())
        return stats

    try:
        stats = asyncio.run(run())
    except AwardScraperError as e:
        logger.error(f"❌ {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        sys.exit(130)

    logger.info("=" * 60)
    if stats["stopped"]:
        logger.error("Search stopped early")
    else:
        logger.success("Search complete!")
    logger.info(f"   ✅ Successful: {stats['successful']}")
    logger.info(f"   ❌ Failed:     {stats['failed']}")
    logger.info(f"   ✈️  Awards:     {stats['awards']} on {stats['flights']} flights")
    logger.info("=" * 60)
    sys.exit(1 if stats["stopped"] else 0)


if __name__ == "__main__":
    main()
