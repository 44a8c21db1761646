"""Global minimum-spacing rate limiter for outbound fetches"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Enforce a minimum interval between consecutive acquisitions.

    Callers are serialized: each ``acquire`` waits out the remainder of the
    interval since the previous acquisition, then records its own start.
    """

    def __init__(
        self,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Args:
            min_interval: Minimum spacing in seconds
            clock: Monotonic time source
            sleep: Coroutine used to wait
        """
        if min_interval < 0:
            raise ValueError("min_interval must be non-negative")
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_acquired: float | None = None
        self._lock = asyncio.Lock()

    async def acquire(self) -> float:
        """
        Wait until the next fetch may start.

        Returns:
            Seconds spent waiting
        """
        async with self._lock:
            waited = 0.0
            if self._last_acquired is not None:
                elapsed = self._clock() - self._last_acquired
                if elapsed < self.min_interval:
                    waited = self.min_interval - elapsed
                    logger.debug(f"Rate limiting: waiting {waited:.2f}s")
                    await self._sleep(waited)
            self._last_acquired = self._clock()
            return waited

    def reset(self) -> None:
        self._last_acquired = None
