"""Retry, polling and error classification helpers"""

import asyncio
import inspect
import random
import time
from typing import Awaitable, Callable, Optional, Tuple, Type, Union

from loguru import logger

from .config import (
    BACKOFF_MULTIPLIER,
    DEFAULT_POLL_INTERVAL,
    INITIAL_BACKOFF,
    JITTER_RANGE,
    MAX_BACKOFF,
    MAX_RETRIES,
)
from .exceptions import AwardScraperError
from .models import ErrorKind, PollResult


async def retry_with_backoff(
    func: Callable,
    *args,
    max_retries: int = MAX_RETRIES,
    initial_backoff: float = INITIAL_BACKOFF,
    max_backoff: float = MAX_BACKOFF,
    backoff_multiplier: float = BACKOFF_MULTIPLIER,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    on_retry: Optional[Callable] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    **kwargs,
):
    """
    Execute an async function with exponential backoff retry logic.

    Args:
        func: Async function to execute
        max_retries: Maximum number of retry attempts
        initial_backoff: Initial backoff duration in seconds
        max_backoff: Maximum backoff duration
        backoff_multiplier: Multiplier for exponential backoff
        retry_on: Exception types worth retrying, anything else propagates at once
        on_retry: Optional async callback called on each retry: on_retry(attempt, error)
    """
    last_exception = None
    backoff = initial_backoff

    for attempt in range(max_retries + 1):
        try:
            result = await func(*args, **kwargs)
            if attempt > 0:
                logger.success(f"✓ Recovered after {attempt} retries")
            return result

        except retry_on as e:
            last_exception = e

            if attempt >= max_retries:
                logger.error(f"❌ Failed after {max_retries} retries: {e}")
                break

            jitter = random.uniform(*JITTER_RANGE)
            sleep_time = min(backoff * jitter, max_backoff)

            logger.warning(
                f"⚠️ Attempt {attempt + 1}/{max_retries + 1} failed "
                f"({classify_error(e).value}): {e}"
            )
            logger.debug(f"   Retrying in {sleep_time:.1f}s...")

            if on_retry:
                await on_retry(attempt, e)

            await sleep(sleep_time)
            backoff *= backoff_multiplier

    raise last_exception


async def poll(
    condition: Callable[[], Union[bool, Awaitable[bool]]],
    timeout: float,
    interval: float = DEFAULT_POLL_INTERVAL,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> PollResult:
    """
    Evaluate ``condition`` until it is truthy or ``timeout`` seconds have passed.

    The condition may be sync or async. It is always evaluated at least once, and
    once more after the deadline is reached. Never raises on timeout.
    """
    deadline = clock() + timeout
    while True:
        result = condition()
        if inspect.isawaitable(result):
            result = await result
        if result:
            return PollResult.SUCCESS
        remaining = deadline - clock()
        if remaining <= 0:
            return PollResult.TIMEOUT
        await sleep(min(interval, remaining))


def classify_error(error: BaseException) -> ErrorKind:
    """Classify an error for appropriate handling"""
    if isinstance(error, AwardScraperError):
        return error.kind
    return ErrorKind.UNCLASSIFIED
