import datetime
from pathlib import Path

import pytest

import award_scraper.cli as cli
from award_scraper.exceptions import InvalidCredentialsError, InvalidRouteError
from award_scraper.registry import EngineRegistry
from award_scraper.site_config import SiteConfig
from award_scraper.storage import ResultsStorage

from conftest import FUTURE, make_module, site_config

TODAY = datetime.date(2019, 9, 1)
START = datetime.date(2019, 9, 10)


def _config(**overrides):
    return SiteConfig.from_dict(site_config(**overrides))


def _plan(queries):
    return [
        (q.from_city, q.to_city, q.depart_date.day, q.return_date.day if q.return_date else None)
        for q in queries
    ]


def test_round_trip_optimized_queries_cover_every_day():
    queries = cli.generate_queries(
        "ZZ", _config(), "JFK", "LAX", START, START + datetime.timedelta(days=4), today=TODAY
    )
    assert _plan(queries) == [
        ("LAX", "JFK", 10, None),
        ("LAX", "JFK", 11, None),
        ("LAX", "JFK", 12, None),
        ("JFK", "LAX", 10, 13),
        ("JFK", "LAX", 11, 14),
        ("JFK", "LAX", 12, None),
        ("JFK", "LAX", 13, None),
        ("JFK", "LAX", 14, None),
    ]


def test_one_way_queries():
    queries = cli.generate_queries(
        "ZZ", _config(), "JFK", "LAX", START, START + datetime.timedelta(days=2), one_way=True, today=TODAY
    )
    assert _plan(queries) == [("JFK", "LAX", 10, None), ("JFK", "LAX", 11, None), ("JFK", "LAX", 12, None)]


def test_unoptimized_sites_search_both_directions_daily():
    queries = cli.generate_queries(
        "ZZ", _config(roundtrip_optimized=False), "JFK", "LAX", START, START + datetime.timedelta(days=1), today=TODAY
    )
    assert _plan(queries) == [
        ("JFK", "LAX", 10, None),
        ("LAX", "JFK", 10, None),
        ("JFK", "LAX", 11, None),
        ("LAX", "JFK", 11, None),
    ]


def test_sites_without_one_way_use_round_trips_at_the_edges():
    config = _config(one_way_supported=False, max_days=15)
    queries = cli.generate_queries("ZZ", config, "JFK", "LAX", START, START + datetime.timedelta(days=3), today=TODAY)
    assert all(q.return_date is not None for q in queries)
    # The window ends on the 16th, so the last outbound day flips to an inbound-anchored trip
    assert _plan(queries)[-1] == ("LAX", "JFK", 10, 13)
    assert _plan(queries)[0] == ("LAX", "JFK", 10, 13)


def test_query_asset_paths(tmp_path):
    [query] = cli.generate_queries(
        "ZZ", _config(), "JFK", "LAX", START, START, one_way=True,
        output_dir=tmp_path, timestamp="20190901_120000", today=TODAY,
    )
    base = tmp_path / "ZZ-JFK-LAX-2019-09-10-20190901_120000"
    assert query.json.path == f"{base}.json"
    assert query.json.gzip
    assert query.html.path == f"{base}.html"
    assert query.screenshot.path == f"{base}.jpg"
    assert cli.route_stem("ZZ", query, "20190901_120000") == base.name


def test_clamp_date_range():
    config = _config(min_days=2, max_days=30)
    assert cli.clamp_date_range(START, START, config, today=TODAY) == (START, START)
    assert cli.clamp_date_range(TODAY, START, config, today=TODAY) == (datetime.date(2019, 9, 3), START)
    assert cli.clamp_date_range(START, datetime.date(2019, 12, 1), config, today=TODAY) == (
        START,
        datetime.date(2019, 10, 1),
    )
    with pytest.raises(ValueError):
        cli.clamp_date_range(datetime.date(2020, 1, 1), datetime.date(2020, 1, 5), config, today=TODAY)


def test_date_action_accumulates_values():
    action = cli.DateAction(["--date"], dest="dates")

    class NS:
        pass

    ns = NS()
    action(None, ns, "2025-01-01")
    assert ns.dates == ["2025-01-01"]
    action(None, ns, ["2025-01-02", "2025-01-03:2025-01-04"])
    assert ns.dates == ["2025-01-01", "2025-01-02", "2025-01-03:2025-01-04"]


async def _run(fake_camoufox, module, tmp_path: Path, queries):
    engine = EngineRegistry([module]).new(module.id)
    await engine.initialize(credentials=("user", "pass"))
    try:
        return await cli.run_searches(engine, queries, ResultsStorage(tmp_path), "ts")
    finally:
        await engine.close()


def _queries(days=2):
    return [
        cli.Query("JFK", "LAX", FUTURE + datetime.timedelta(days=i), "economy")
        for i in range(days)
    ]


@pytest.mark.asyncio
async def test_run_searches_saves_every_query(fake_camoufox, tmp_path):
    stats = await _run(fake_camoufox, make_module(), tmp_path, _queries())
    assert stats == {"successful": 2, "failed": 0, "awards": 2, "flights": 2, "stopped": False}
    assert len(list(tmp_path.glob("*.results.json"))) == 2
    assert len(list(tmp_path.glob("*.rows.json"))) == 2


@pytest.mark.asyncio
async def test_run_searches_continues_after_searcher_errors(fake_camoufox, tmp_path):
    module = make_module()
    module.searcher.error = InvalidRouteError()
    stats = await _run(fake_camoufox, module, tmp_path, _queries())
    assert stats["failed"] == 2
    assert not stats["stopped"]
    assert len(module.searcher.calls) == 2
    assert len(list(tmp_path.glob("*.results.json"))) == 2
    assert list(tmp_path.glob("*.rows.json")) == []


@pytest.mark.asyncio
async def test_run_searches_stops_on_credential_errors(fake_camoufox, tmp_path):
    module = make_module(login=True)
    module.searcher.login_error = InvalidCredentialsError()
    stats = await _run(fake_camoufox, module, tmp_path, _queries(3))
    assert stats["stopped"]
    assert stats["failed"] == 1
    assert module.searcher.logins == 1


@pytest.mark.asyncio
async def test_reparse_saved_results(fake_camoufox, tmp_path):
    module = make_module()
    await _run(fake_camoufox, module, tmp_path, _queries())
    paths = sorted(tmp_path.glob("*.results.json"))
    stats = await cli.reparse(paths + [tmp_path / "missing.results.json"], EngineRegistry([module]), tmp_path)
    assert stats == {"successful": 2, "failed": 1, "awards": 2, "flights": 2}
