import pytest

from award_scraper.rate_limiter import Throttle
from award_scraper.site_config import ThrottleProfile


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now
        self.sleeps = []

    def __call__(self):
        return self.now

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def _throttle(clock, enabled=True, **profile):
    return Throttle(ThrottleProfile(**profile), enabled=enabled, name="ZZ", clock=clock, sleep=clock.sleep)


@pytest.mark.asyncio
async def test_budget_is_scaled_to_the_window():
    clock = FakeClock()
    throttle = _throttle(clock, requests_per_hour=60, rest_period="10:00")

    for _ in range(10):
        await throttle.throttle()
    assert clock.sleeps == []
    assert throttle.checkpoint.remaining == 0

    await throttle.throttle()
    assert clock.sleeps == [600.0]
    assert throttle.checkpoint.until == 1600.0 + 600.0
    assert throttle.checkpoint.remaining == 9


@pytest.mark.asyncio
async def test_budget_is_at_least_one_request():
    clock = FakeClock()
    throttle = _throttle(clock, requests_per_hour=1, rest_period="01:00")
    await throttle.throttle()
    assert throttle.checkpoint.remaining == 0
    await throttle.throttle()
    assert clock.sleeps == [60.0]


@pytest.mark.asyncio
async def test_expired_window_starts_fresh_without_waiting():
    clock = FakeClock()
    throttle = _throttle(clock, requests_per_hour=60, rest_period="01:00")
    await throttle.throttle()
    clock.now += 61
    await throttle.throttle()
    assert clock.sleeps == []
    assert throttle.checkpoint.until == clock.now + 60


@pytest.mark.asyncio
async def test_delay_between_requests():
    clock = FakeClock()
    throttle = _throttle(clock, delay_between_requests="00:05", requests_per_hour=3600, rest_period="01:00")
    await throttle.throttle()
    clock.now += 2
    await throttle.throttle()
    assert clock.sleeps == [3.0]


@pytest.mark.asyncio
async def test_penalize_forces_cool_down():
    clock = FakeClock()
    throttle = _throttle(clock, requests_per_hour=60, rest_period="10:00")
    await throttle.throttle()
    clock.now += 100
    throttle.penalize()
    await throttle.throttle()
    assert clock.sleeps == [500.0]


@pytest.mark.asyncio
async def test_disabled_throttle_never_waits():
    clock = FakeClock()
    throttle = _throttle(clock, enabled=False, requests_per_hour=1, rest_period="10:00")
    for _ in range(5):
        await throttle.throttle()
    assert clock.sleeps == []
    assert throttle.checkpoint is None
