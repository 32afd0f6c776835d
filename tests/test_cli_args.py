import datetime
import sys

import orjson
import pytest

import award_scraper.cli as cli
from award_scraper.registry import EngineRegistry

from conftest import FUTURE, make_module


@pytest.fixture
def no_logging(monkeypatch):
    # Avoid touching real logs/paths during tests
    monkeypatch.setattr(cli, "setup_logging", lambda *a, **k: None)


@pytest.fixture
def fake_registry(monkeypatch):
    module = make_module()
    registry = EngineRegistry([module])
    monkeypatch.setattr(cli, "default_registry", lambda: registry)
    return module


def _run_main_with_args(monkeypatch, argv):
    monkeypatch.setattr(sys, "argv", ["award-scraper"] + argv)
    # main() is synchronous and internally runs asyncio.run(...)
    with pytest.raises(SystemExit) as info:
        cli.main()
    return info.value.code


def _dates(days):
    end = FUTURE + datetime.timedelta(days=days - 1)
    return f"{FUTURE.isoformat()}:{end.isoformat()}"


def test_one_way_range_runs_one_search_per_day(no_logging, fake_registry, fake_camoufox, monkeypatch, tmp_path):
    args = [
        "--website", "zz",
        "--from", "jfk",
        "--to", "lax",
        "--date", _dates(3),
        "--oneway",
        "--headless",
        "--no-throttle",
        "--output", str(tmp_path),
        "--log-file", str(tmp_path / "log.log"),
    ]
    assert _run_main_with_args(monkeypatch, args) == 0

    searches = [x[1] for x in fake_registry.searcher.calls]
    assert [(q.from_city, q.to_city, q.one_way) for q in searches] == [("JFK", "LAX", True)] * 3
    assert [q.depart_date for q in searches] == [FUTURE + datetime.timedelta(days=i) for i in range(3)]
    assert fake_camoufox.instances[0].options["headless"] is True
    assert len(list(tmp_path.glob("*.results.json"))) == 3
    assert len(list(tmp_path.glob("*.rows.json"))) == 3
    assert len(list(tmp_path.glob("*.json.gz"))) == 3
    assert len(list(tmp_path.glob("*.jpg"))) == 3


def test_round_trip_search_with_cookies(no_logging, fake_registry, fake_camoufox, monkeypatch, tmp_path):
    cookie_file = tmp_path / "cookies.json"
    cookie_file.write_bytes(orjson.dumps([{"name": "seen", "value": "1", "domain": ".example.com", "path": "/"}]))
    args = [
        "-w", "ZZ", "-f", "JFK", "-t", "LAX",
        "--date", _dates(4),
        "--cabin", "business",
        "--quantity", "2",
        "--no-parser",
        "--no-throttle",
        "--cookies", str(cookie_file),
        "--output", str(tmp_path / "out"),
    ]
    assert _run_main_with_args(monkeypatch, args) == 0

    searches = [x[1] for x in fake_registry.searcher.calls]
    assert len(searches) == 7
    assert {q.cabin.value for q in searches} == {"business"}
    assert {q.quantity for q in searches} == {2}
    assert sum(1 for q in searches if not q.one_way) == 1
    assert list((tmp_path / "out").glob("*.rows.json")) == []

    saved = orjson.loads(cookie_file.read_bytes())
    assert {x["name"] for x in saved} == {"seen", "session"}


def test_reparse_mode(no_logging, fake_registry, fake_camoufox, monkeypatch, tmp_path):
    args = ["-w", "ZZ", "-f", "JFK", "-t", "LAX", "--date", _dates(1), "--oneway", "--no-throttle",
            "--output", str(tmp_path)]
    assert _run_main_with_args(monkeypatch, args) == 0
    [document] = tmp_path.glob("*.results.json")

    fake_registry.searcher.calls.clear()
    assert _run_main_with_args(monkeypatch, ["--reparse", str(document), "--output", str(tmp_path)]) == 0
    assert fake_registry.searcher.calls == []


@pytest.mark.parametrize(
    "argv",
    [
        ["-w", "XX", "-f", "JFK", "-t", "LAX", "--date", "2030-01-01"],
        ["-w", "ZZ", "-f", "JFK", "--date", "2030-01-01"],
        ["-w", "ZZ", "-f", "JFK", "-t", "LAX", "--date", "2025-13-40"],
        ["-w", "ZZ", "-f", "JFK", "-t", "LAX", "--date", "2001-01-01:2001-01-05"],
        ["-w", "ZZ", "-f", "JFK", "-t", "LAX", "--date", _dates(1), "--proxy", "localhost"],
        ["-w", "ZZ", "-f", "JFKX", "-t", "LAX", "--date", _dates(1)],
    ],
)
def test_invalid_arguments_exit_with_error(no_logging, fake_registry, fake_camoufox, monkeypatch, tmp_path, argv):
    assert _run_main_with_args(monkeypatch, argv + ["--output", str(tmp_path)]) == 1
    assert fake_registry.searcher.calls == []
    assert fake_camoufox.instances == []
