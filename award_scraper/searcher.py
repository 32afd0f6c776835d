"""Base class for site-specific search automation, with page helpers"""

import asyncio
import random
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Iterable, Optional, Sequence, Union

from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .config import MONITOR_APPEAR_TIMEOUT, MONITOR_SETTLE_TIMEOUT, DEFAULT_POLL_INTERVAL
from .exceptions import BlockedAccessError, SearcherError, SearcherTimeoutError
from .models import PollResult
from .retry import poll, retry_with_backoff

if TYPE_CHECKING:
    from .engine import Engine
    from .query import Query
    from .results import Results
    from .site_config import SiteConfig

_FILL_FORM_JS = """
(values) => {
  for (const [key, value] of Object.entries(values)) {
    const elements = document.getElementsByName(key);
    if (elements.length === 0) {
      throw new Error(`Missing form element: ${key}`);
    }
    for (const el of elements) {
      if (el.tagName === 'SELECT') {
        const opt = document.createElement('option');
        opt.value = value;
        opt.innerHTML = value;
        el.appendChild(opt);
      }
      if (el.type === 'checkbox') {
        el.checked = !!value;
      } else {
        el.value = value;
      }
    }
  }
}
"""

_SUBMIT_FORM_JS = """
(name) => {
  const form = document.forms[name];
  form.target = '_self';
  form.submit();
}
"""

_TEXT_CONTENT_JS = """
([selector, defaultValue]) => {
  const el = document.querySelector(selector);
  if (el && typeof el.textContent === 'string') {
    return el.textContent;
  }
  return defaultValue;
}
"""

_VISIBLE_JS = """
(selector) => {
  const el = document.querySelector(selector);
  if (!el) {
    return false;
  }
  const style = window.getComputedStyle(el);
  return !!style && style.display !== 'none' && style.visibility !== 'hidden' && style.opacity !== '0';
}
"""


class Searcher:
    """
    Drives one airline website's search UI on behalf of an Engine.

    Subclasses must implement ``search()``. Sites with accounts implement
    ``is_logged_in()`` and ``login()``; sites that can adjust a previous search in
    place implement ``modify()``. ``validate()`` rejects queries the site cannot run.
    """

    def __init__(self, engine: "Engine"):
        self.engine = engine

    # Contract

    @classmethod
    def login_required(cls) -> bool:
        return cls.login is not Searcher.login or cls.is_logged_in is not Searcher.is_logged_in

    @classmethod
    def supports_modify(cls) -> bool:
        return cls.modify is not Searcher.modify

    async def is_logged_in(self, page) -> bool:
        return True

    async def login(self, page, credentials: Optional[Sequence[str]]) -> None:
        pass

    def validate(self, query: "Query") -> None:
        pass

    async def search(self, page, query: "Query", results: "Results") -> None:
        raise NotImplementedError(f"{type(self).__name__} must implement search()")

    async def modify(self, page, diff: Dict[str, Any], query: "Query", last_query: "Query", results: "Results") -> bool:
        """Apply ``diff`` to the search already on screen, False to request a full search"""
        return False

    # Engine state

    @property
    def id(self) -> str:
        return self.engine.id

    @property
    def config(self) -> "SiteConfig":
        return self.engine.config

    @property
    def page(self):
        return self.engine.page

    @property
    def timeout(self) -> float:
        return self.engine.timeout

    # Helpers

    def check_response(self, response) -> None:
        """
        Raise for a non-OK HTTP response.

        No response (pre-fetched data) and 304 are fine. Any other failure spends the
        throttle's remaining budget; 403 raises BlockedAccessError.
        """
        if response is None:
            return
        if response.ok or response.status == 304:
            return

        self.engine.throttle.penalize()
        if response.status == 403:
            raise BlockedAccessError()
        raise SearcherError(f"Received non-OK HTTP Status Code: {response.status} ({response.url})")

    async def goto(self, url: str, **options):
        options.setdefault("wait_until", self.config.wait_until)
        options.setdefault("timeout", self.timeout * 1000)
        try:
            response = await self.page.goto(url, **options)
        except PlaywrightTimeoutError:
            raise SearcherTimeoutError(f"Timed out loading {url}")
        self.check_response(response)
        return response

    async def clear(self, selector: str) -> None:
        await self.page.eval_on_selector(selector, "el => { el.value = '' }")

    async def click_and_wait(self, selector: str, wait_until: Optional[str] = None):
        """Click and wait for the resulting navigation, returns its response"""
        page = self.page
        try:
            async with page.expect_navigation(
                wait_until=wait_until or self.config.wait_until, timeout=self.timeout * 1000
            ) as navigation:
                await page.click(selector)
        except PlaywrightTimeoutError:
            raise SearcherTimeoutError(f"Timed out waiting for navigation after clicking {selector}")
        return await navigation.value

    async def click_if_visible(self, selector: str, timeout: float = 0.25) -> bool:
        page = self.page
        try:
            await page.wait_for_selector(selector, state="visible", timeout=timeout * 1000)
            await page.click(selector)
            return True
        except PlaywrightError:
            return False

    async def enter_text(self, selector: str, value: str) -> None:
        """Type into a field like a user would, clearing what is there first"""
        page = self.page
        current = await page.eval_on_selector(selector, "el => el.value")
        if current == value:
            return
        if current:
            await self.clear(selector)
        await page.click(selector)
        await asyncio.sleep(1)
        await page.keyboard.type(value, delay=10)

    async def fill_form(self, values: Dict[str, Any]) -> None:
        """Set form elements by name (selects gain the option if it is missing)"""
        await self.page.evaluate(_FILL_FORM_JS, values)

    async def set_value(self, selector: str, value: Any) -> None:
        await self.page.eval_on_selector(selector, "(el, value) => { el.value = value }", value)

    async def select(self, selector: str, value: str, wait: float = 0.5) -> bool:
        page = self.page
        await page.select_option(selector, value)
        await asyncio.sleep(wait)
        return value == await page.eval_on_selector(selector, "el => el.value")

    async def text_content(self, selector: str, default: str = "") -> str:
        return await self.page.evaluate(_TEXT_CONTENT_JS, [selector, default])

    async def visible(self, selector: str) -> bool:
        return await self.page.evaluate(_VISIBLE_JS, selector)

    async def submit_form(
        self,
        name: str,
        capture: Union[None, str, Iterable[str]] = None,
        wait_until: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """
        Submit the named form and wait for navigation and/or captured responses.

        ``capture`` is a URL fragment (or several) whose responses should be waited for
        and returned. Pass ``wait_until="none"`` for forms that submit over AJAX.
        """
        page = self.page
        wait_until = wait_until or self.config.wait_until
        timeout = timeout or self.timeout
        urls = set() if capture is None else {capture} if isinstance(capture, str) else set(capture)
        responses: Dict[str, Any] = {}
        captured = asyncio.Event()
        if not urls:
            captured.set()

        def on_response(response):
            for url in list(urls):
                if url in response.url:
                    urls.discard(url)
                    responses[url] = response
            if not urls:
                captured.set()

        async def submit():
            if wait_until == "none":
                await page.evaluate(_SUBMIT_FORM_JS, name)
                navigation = None
            else:
                async with page.expect_navigation(wait_until=wait_until, timeout=timeout * 1000) as info:
                    await page.evaluate(_SUBMIT_FORM_JS, name)
                navigation = await info.value
            await captured.wait()
            return navigation

        if capture is not None:
            page.on("response", on_response)
        try:
            navigation = await asyncio.wait_for(submit(), timeout)
        except (asyncio.TimeoutError, PlaywrightTimeoutError):
            raise SearcherTimeoutError(f"submit_form() timed out after {timeout}s")
        except PlaywrightError as e:
            raise SearcherError(f"submit_form() failed: {e}")
        finally:
            if capture is not None:
                page.remove_listener("response", on_response)

        for response in [navigation, *responses.values()]:
            self.check_response(response)

        if capture is None:
            return navigation
        return responses.get(capture) if isinstance(capture, str) else responses

    async def monitor(
        self,
        selector: str,
        appear_timeout: float = MONITOR_APPEAR_TIMEOUT,
        settle_timeout: float = MONITOR_SETTLE_TIMEOUT,
    ) -> None:
        """Wait for a spinner (or similar element) to stop reappearing"""
        page = self.page
        while True:
            try:
                await page.wait_for_selector(selector, state="visible", timeout=appear_timeout * 1000)
            except PlaywrightTimeoutError:
                return
            try:
                await page.wait_for_selector(selector, state="hidden", timeout=settle_timeout * 1000)
            except PlaywrightTimeoutError:
                raise SearcherError("Stuck waiting for element to settle")

    async def poll(
        self,
        condition: Callable[[], Union[bool, Awaitable[bool]]],
        timeout: float,
        interval: float = DEFAULT_POLL_INTERVAL,
    ) -> PollResult:
        return await poll(condition, timeout, interval)

    async def retry(self, func: Callable[[], Awaitable[Any]], attempts: int = 4, delay: float = 1.0):
        """Run ``func`` until it succeeds, SearcherError after ``attempts`` failures"""
        try:
            return await retry_with_backoff(
                func,
                max_retries=attempts - 1,
                initial_backoff=delay,
                backoff_multiplier=1.0,
                retry_on=(PlaywrightError, SearcherError),
            )
        except (PlaywrightError, SearcherError) as e:
            logger.debug(f"[{self.id}] Giving up after {attempts} attempts: {e}")
            raise SearcherError("Too many attempts failed")

    async def wait_between(self, minimum: float, maximum: Optional[float] = None) -> None:
        """Pause for a fixed or random number of seconds"""
        await asyncio.sleep(random.uniform(minimum, maximum) if maximum else minimum)
