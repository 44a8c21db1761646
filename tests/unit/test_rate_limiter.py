"""Tests for the fetch rate limiter"""

import pytest

from docweave.services import RateLimiter


class FakeClock:
    """Manually advanced monotonic clock whose sleep advances time"""

    def __init__(self) -> None:
        self.now = 100.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


class TestRateLimiter:
    """Tests for minimum spacing between acquisitions"""

    @pytest.mark.asyncio
    async def test_first_acquire_is_immediate(self, clock: FakeClock) -> None:
        limiter = RateLimiter(2.0, clock=clock, sleep=clock.sleep)
        assert await limiter.acquire() == 0.0
        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_consecutive_acquires_are_spaced(self, clock: FakeClock) -> None:
        limiter = RateLimiter(2.0, clock=clock, sleep=clock.sleep)
        starts = []
        for _ in range(3):
            await limiter.acquire()
            starts.append(clock.now)

        assert [b - a for a, b in zip(starts, starts[1:])] == [2.0, 2.0]

    @pytest.mark.asyncio
    async def test_elapsed_time_counts_toward_interval(self, clock: FakeClock) -> None:
        limiter = RateLimiter(2.0, clock=clock, sleep=clock.sleep)
        await limiter.acquire()
        clock.now += 1.5

        assert await limiter.acquire() == pytest.approx(0.5)

    @pytest.mark.asyncio
    async def test_no_wait_after_interval_passed(self, clock: FakeClock) -> None:
        limiter = RateLimiter(2.0, clock=clock, sleep=clock.sleep)
        await limiter.acquire()
        clock.now += 5

        assert await limiter.acquire() == 0.0

    @pytest.mark.asyncio
    async def test_reset_forgets_last_acquisition(self, clock: FakeClock) -> None:
        limiter = RateLimiter(2.0, clock=clock, sleep=clock.sleep)
        await limiter.acquire()
        limiter.reset()

        assert await limiter.acquire() == 0.0

    def test_negative_interval_rejected(self) -> None:
        with pytest.raises(ValueError):
            RateLimiter(-1)
