"""Per-website request budget with cool-down checkpoints"""

import asyncio
import math
import random
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from loguru import logger

from .date_utils import duration_range
from .site_config import ThrottleProfile


@dataclass
class Checkpoint:
    """A rolling rate-limit window: requests still allowed before ``until``"""

    until: float
    remaining: int


class Throttle:
    """
    Rate limiter called before every search attempt.

    Each window (a random rest period) allows ``requests_per_hour`` scaled to the window
    length. Once the budget is spent, the next call sleeps until the window ends.
    An optional random delay separates consecutive requests.
    """

    def __init__(
        self,
        profile: ThrottleProfile,
        enabled: bool = True,
        name: str = "",
        clock: Optional[Callable[[], float]] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.profile = profile
        self.enabled = enabled
        self.name = name
        self.checkpoint: Optional[Checkpoint] = None
        self.last_request: Optional[float] = None
        self._clock = clock or time.monotonic
        self._sleep = sleep or asyncio.sleep
        self._rng = rng or random.Random()
        self._lock = asyncio.Lock()

        logger.debug(
            f"{self._prefix}Throttle initialized: {profile.requests_per_hour} req/h, "
            f"rest={profile.rest_period}, delay={profile.delay_between_requests}, enabled={enabled}"
        )

    @property
    def _prefix(self) -> str:
        return f"[{self.name}] " if self.name else ""

    async def throttle(self) -> None:
        """Wait, if needed, until another request fits the budget"""
        if not self.enabled:
            return

        async with self._lock:
            delay = self.profile.delay_between_requests
            if delay is not None and self.last_request is not None:
                wait_time = self.last_request + duration_range(delay, self._rng) - self._clock()
                if wait_time > 0:
                    logger.debug(f"{self._prefix}Delaying next request by {wait_time:.1f}s")
                    await self._sleep(wait_time)

            now = self._clock()
            checkpoint = self.checkpoint
            if checkpoint and checkpoint.remaining <= 0 and now < checkpoint.until:
                wait_time = checkpoint.until - now
                logger.info(f"⏸️ {self._prefix}Request budget spent, cooling down for {wait_time:.0f}s")
                await self._sleep(wait_time)
                self.checkpoint = None

            now = self._clock()
            if self.checkpoint is None or now >= self.checkpoint.until:
                window = duration_range(self.profile.rest_period, self._rng)
                remaining = max(1, math.floor(self.profile.requests_per_hour * window / 3600))
                self.checkpoint = Checkpoint(until=now + window, remaining=remaining)
                logger.debug(
                    f"{self._prefix}New throttle window: {remaining} requests over {window:.0f}s"
                )

            self.checkpoint.remaining -= 1
            self.last_request = self._clock()

    def penalize(self) -> None:
        """Spend the rest of the active window's budget, forcing a cool-down on the next call"""
        if self.checkpoint is not None:
            self.checkpoint.remaining = 0
            logger.warning(f"⚠️ {self._prefix}Throttle penalized, next request will cool down")
