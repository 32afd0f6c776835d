"""Shared fakes: a scripted browser and a minimal engine module"""

import datetime
from pathlib import Path

import orjson
import pytest

from award_scraper.award import Award
from award_scraper.exceptions import ParserError
from award_scraper.flight import Flight
from award_scraper.parser import Parser
from award_scraper.registry import EngineModule, EngineRegistry
from award_scraper.searcher import Searcher
from award_scraper.segment import Segment

FIXTURES = Path(__file__).parent / "fixtures"
FUTURE = datetime.date.today() + datetime.timedelta(days=30)


class FakeResponse:
    def __init__(self, status=200, url="https://www.example.com/"):
        self.status = status
        self.url = url

    @property
    def ok(self):
        return 200 <= self.status < 300


class FakePage:
    def __init__(self):
        self.url = "about:blank"
        self.visited = []
        self.screenshots = 0
        self.timeout = None
        self.closed = False
        self.status = 200
        self.html = "<html><body><div class='fare'>75,000</div></body></html>"

    async def goto(self, url, **options):
        self.visited.append(url)
        self.url = url
        return FakeResponse(self.status, url)

    async def content(self):
        return self.html

    async def screenshot(self, path=None, full_page=False):
        self.screenshots += 1
        data = b"\xff\xd8fake-jpeg"
        if path:
            Path(path).write_bytes(data)
        return data

    def set_default_timeout(self, timeout):
        self.timeout = timeout

    async def close(self):
        self.closed = True


class FakeContext:
    def __init__(self):
        self.page = FakePage()
        self.cookies_added = []
        self.handlers = {}

    async def new_page(self):
        return self.page

    async def add_cookies(self, cookies):
        self.cookies_added.extend(cookies)

    async def cookies(self):
        return list(self.cookies_added) + [{"name": "session", "value": "abc", "domain": ".example.com", "path": "/"}]

    def on(self, event, handler):
        self.handlers[event] = handler


class FakeBrowser:
    def __init__(self):
        self.context = FakeContext()
        self.viewport = None

    async def new_context(self, viewport=None):
        self.viewport = viewport
        return self.context


class FakeCamoufox:
    """Stands in for AsyncCamoufox, recording launch options"""

    instances = []

    def __init__(self, **options):
        self.options = options
        self.browser = FakeBrowser()
        self.exited = False
        FakeCamoufox.instances.append(self)

    async def __aenter__(self):
        return self.browser

    async def __aexit__(self, exc_type, exc, tb):
        self.exited = True
        return False


@pytest.fixture
def fake_camoufox(monkeypatch):
    FakeCamoufox.instances = []
    monkeypatch.setattr("award_scraper.engine.AsyncCamoufox", FakeCamoufox)
    return FakeCamoufox


def site_config(**overrides):
    config = {
        "name": "Zed Air",
        "home_url": "https://www.example.com/",
        "search_url": "https://www.example.com/search",
        "min_days": 0,
        "max_days": 330,
        "throttling": {"requests_per_hour": 3600, "rest_period": "01:00"},
        "fares": [
            {"code": "JS", "cabin": "business", "saver": True},
            {"code": "ZS", "cabin": "economy", "saver": True},
            {"code": "ZP", "cabin": "economy", "saver": False},
        ],
    }
    config.update(overrides)
    return config


def flight_json(date=FUTURE, flight="ZZ100", cabin="economy", mileage=25000, segments=None):
    """A results payload entry understood by the fake parser"""
    return {
        "cabin": cabin,
        "mileage": mileage,
        "segments": segments or [
            {
                "flight": flight,
                "from_city": "JFK",
                "to_city": "LAX",
                "date": date.isoformat(),
                "departure": "08:00",
                "arrival": "11:00",
                "cabin": cabin,
            }
        ],
    }


def make_module(engine_id="ZZ", login=False, modify=False, payload=None, **config):
    """
    Build an engine module with scripted Searcher and Parser classes.

    Searcher behaviour is controlled through class attributes: ``error`` is raised by
    ``search()``, ``logins_needed`` is how many ``login()`` calls it takes to be logged in (None: never).
    """

    class FakeSearcher(Searcher):
        calls = []
        error = None

        async def search(self, page, query, results):
            self.calls.append(("search", query))
            if self.error is not None:
                raise self.error
            await results.save_json("results", payload or {"flights": [flight_json(query.depart_date)]})

    class LoginSearcher(FakeSearcher):
        logins_needed = 1
        login_error = None
        logins = 0
        checks = 0

        async def is_logged_in(self, page):
            type(self).checks += 1
            return self.logins_needed is not None and self.logins >= self.logins_needed

        async def login(self, page, credentials):
            type(self).logins += 1
            self.calls.append(("login", tuple(credentials or ())))
            if self.login_error is not None:
                raise self.login_error

    class ModifySearcher(FakeSearcher):
        modified = True

        async def modify(self, page, diff, query, last_query, results):
            self.calls.append(("modify", diff))
            if self.modified:
                await results.save_json("results", {"flights": [flight_json(query.depart_date)]})
            return self.modified

    class FakeParser(Parser):
        def parse(self, results):
            data = results.contents("json", "results")
            if not data or "flights" not in data:
                raise ParserError("Missing flights in results")
            awards = []
            for entry in data["flights"]:
                segments = [Segment(**x) for x in entry["segments"]]
                awards.append(
                    Award(
                        engine=self.id,
                        fare=self.find_fare(entry["cabin"]),
                        quantity=self.query.quantity,
                        mileage_cost=entry["mileage"],
                        flight=Flight(segments),
                    )
                )
            return awards

    searcher = LoginSearcher if login else ModifySearcher if modify else FakeSearcher
    searcher.calls = []
    if modify:
        config.setdefault("modifiable", ["depart_date", "return_date"])
    return EngineModule(engine_id, site_config(**config), searcher, FakeParser)


@pytest.fixture
def module():
    return make_module()


@pytest.fixture
def registry(module):
    return EngineRegistry([module])


@pytest.fixture
def ac_payload():
    return orjson.loads((FIXTURES / "ac_ord_pek.json").read_bytes())
