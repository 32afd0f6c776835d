"""Search orchestration: one browser session driving one airline website"""

import random
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Sequence, Union

from camoufox.async_api import AsyncCamoufox
from loguru import logger
from playwright.async_api import Error as PlaywrightError

from .config import DEFAULT_TIMEOUT, LOGIN_RETRIES, VIEWPORT_HEIGHT_RANGE, VIEWPORT_WIDTH_RANGE
from .exceptions import LoginFailedError, SearcherError, ValidationError
from .models import AssetType
from .proxy import ProxyConfig
from .query import Query
from .rate_limiter import Throttle
from .results import Results

if TYPE_CHECKING:
    from .registry import EngineModule, EngineRegistry

_LOGIN_MESSAGES = {
    1: "Logging in...",
    2: "2nd login attempt...",
    3: "3rd login attempt...",
}


class Engine:
    """
    Runs searches against one airline website.

    One Engine owns one browser session and performs one search at a time. Run
    several Engines (one per airline or account) for concurrency.

    Usage::

        async with registry.new("AC") as engine:
            await engine.initialize(credentials=("user", "pass"), headless=True)
            results = await engine.search({"from_city": "ORD", ...})
    """

    def __init__(self, module: "EngineModule", registry: "EngineRegistry"):
        self.id = module.id
        self.module = module
        self.config = module.config
        self.registry = registry
        self.searcher = module.searcher(self)
        self.login_required = module.searcher.login_required()
        self.throttle = Throttle(self.config.throttling, name=self.id)
        self.timeout: float = DEFAULT_TIMEOUT
        self.credentials: Optional[Sequence[str]] = None

        self.browser = None
        self.context = None
        self.page = None
        self._camoufox = None
        self._closed = False

        self.last_query: Optional[Query] = None
        self.last_error: Optional[BaseException] = None

    async def __aenter__(self) -> "Engine":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        await self.close()
        return False

    async def initialize(
        self,
        credentials: Optional[Sequence[str]] = None,
        headless: bool = False,
        proxy: Optional[ProxyConfig] = None,
        throttle: bool = True,
        timeout: float = DEFAULT_TIMEOUT,
        cookies: Optional[List[Dict[str, Any]]] = None,
        width: Optional[int] = None,
        height: Optional[int] = None,
        humanize: bool = True,
    ) -> None:
        """
        Launch the browser session and load the website's home page.

        Args:
            credentials: Login credentials passed to the searcher's ``login()``
            headless: Run the browser without a window
            proxy: Route all browser traffic through this proxy
            throttle: Apply the website's request budget before each search
            timeout: Seconds allowed for any single navigation or page wait
            cookies: Cookies to seed the session with (Playwright cookie dicts)
            width, height: Viewport size, randomized when omitted
            humanize: Humanize cursor movement
        """
        if self._closed:
            raise RuntimeError(f"Engine {self.id} is closed")
        if self.page is not None:
            raise RuntimeError(f"Engine {self.id} is already initialized")

        self.credentials = credentials
        self.timeout = timeout
        self.throttle.enabled = throttle
        viewport = {
            "width": width or random.randint(*VIEWPORT_WIDTH_RANGE),
            "height": height or random.randint(*VIEWPORT_HEIGHT_RANGE),
        }

        launch_options: Dict[str, Any] = {"headless": headless, "humanize": humanize}
        if proxy:
            launch_options["proxy"] = proxy.to_playwright_dict()
            launch_options["geoip"] = True
            logger.info(f"🌐 [{self.id}] Using proxy: {proxy}")

        logger.info(f"🚀 [{self.id}] Launching browser (headless={headless}, viewport={viewport['width']}x{viewport['height']})")
        self._camoufox = AsyncCamoufox(**launch_options)
        self.browser = await self._camoufox.__aenter__()
        self.context = await self.browser.new_context(viewport=viewport)
        if cookies:
            await self.context.add_cookies(cookies)
            logger.debug(f"[{self.id}] Seeded {len(cookies)} cookies")

        self.page = await self.context.new_page()
        self.page.set_default_timeout(timeout * 1000)
        self.context.on("page", self._close_popup)

        await self.searcher.goto(self.config.home_url)
        logger.success(f"✅ [{self.id}] Browser session ready for {self.config.name}")

    async def _close_popup(self, page) -> None:
        if page is not self.page:
            logger.debug(f"[{self.id}] Closing new tab: {page.url}")
            await page.close()

    async def get_cookies(self) -> List[Dict[str, Any]]:
        if self.context is None:
            return []
        return await self.context.cookies()

    async def search(self, query: Union[Query, Mapping[str, Any]]) -> Results:
        """
        Run one search and return its Results.

        Raises ValidationError (before any browser activity) for a bad query. Searcher
        errors, including credential errors, are recorded on ``results.error``; any
        other exception propagates. A screenshot is always captured.
        """
        if self._closed:
            raise RuntimeError(f"Cannot search with a closed Engine ({self.id})")
        if self.page is None:
            raise RuntimeError(f"Engine {self.id} is not initialized, call initialize() first")

        query = Query.coerce(query)
        self.validate(query)

        results = Results(self.id, query, self.registry, engine=self)
        logger.info(f"🔍 [{self.id}] Searching {query}")
        try:
            await self._search(query, results)
            self.last_query = query
            self.last_error = None
        except SearcherError as e:
            self.last_query = None
            self.last_error = e
            results.record_error(e)
            logger.error(f"❌ [{self.id}] {e}")
        except BaseException:
            self.last_query = None
            raise
        finally:
            await self._ensure_screenshot(results)

        return results

    def validate(self, query: Query) -> None:
        """Reject queries this website cannot run, without touching the browser"""
        start, end = self.config.valid_date_range()
        dates = [("depart_date", query.depart_date)]
        if query.return_date:
            dates.append(("return_date", query.return_date))
        for name, value in dates:
            if not start <= value <= end:
                raise ValidationError(
                    f"Query {name} {value} is outside the valid search range for "
                    f"{self.config.name}: {start} to {end}"
                )
        if query.cabin not in self.config.cabins:
            raise ValidationError(f"{self.config.name} has no {query.cabin.value} awards")
        if query.one_way and not self.config.one_way_supported:
            raise ValidationError(f"{self.config.name} does not support one-way searches")

    async def _search(self, query: Query, results: Results) -> None:
        self.searcher.validate(query)
        await self.throttle.throttle()

        if await self._modify(query, results):
            return

        await self.searcher.goto(self.config.search_url)
        if not await self._login():
            raise LoginFailedError("LOGIN_FAILED: Login failure")

        await self.searcher.search(self.page, query, results)

    async def _modify(self, query: Query, results: Results) -> bool:
        modifiable = self.config.modifiable
        if not modifiable:
            return False

        diff = query.diff(self.last_query)
        if not diff or not set(diff) <= modifiable:
            return False

        logger.info(f"✏️ [{self.id}] Modifying previous search: {', '.join(sorted(diff))}")
        if await self.searcher.modify(self.page, diff, query, self.last_query, results):
            return True

        logger.info(f"[{self.id}] Modify not possible, running a full search")
        return False

    async def _login(self, retries: int = LOGIN_RETRIES) -> bool:
        if not self.login_required:
            return True

        attempts = 0
        while True:
            success = await self.searcher.is_logged_in(self.page)
            if success or attempts >= retries:
                if attempts > 0:
                    if success:
                        logger.success(f"✅ [{self.id}] Login succeeded")
                    else:
                        logger.error(f"❌ [{self.id}] Login failed after {attempts} attempts")
                return success

            attempts += 1
            if attempts == retries:
                logger.warning(f"⚠️ [{self.id}] {attempts}th and final login attempt...")
            else:
                logger.info(f"🔑 [{self.id}] {_LOGIN_MESSAGES.get(attempts, f'{attempts}th login attempt...')}")

            # Credential errors raised here propagate and end the loop
            await self.searcher.login(self.page, self.credentials)
            await self.searcher.goto(self.config.search_url)

    async def _ensure_screenshot(self, results: Results) -> None:
        if self.page is None or results.has_asset(AssetType.SCREENSHOT):
            return
        try:
            await results.screenshot("default")
        except PlaywrightError as e:
            logger.warning(f"⚠️ [{self.id}] Could not capture screenshot: {e}")

    async def close(self) -> None:
        """Release the browser session, safe to call more than once"""
        camoufox, self._camoufox = self._camoufox, None
        self._closed = True
        self.page = None
        self.context = None
        self.browser = None
        if camoufox is not None:
            await camoufox.__aexit__(None, None, None)
            logger.debug(f"[{self.id}] Browser closed")
