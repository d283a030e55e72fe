"""
TogetherLog Backend - Outbound Request Rate Limiter
====================================================

What:  Spaces outbound calls to the reverse-geocoding provider so that two
       calls from this process are never closer than `min_interval` seconds.
How:   One lock-guarded timestamp. acquire() takes the lock, sleeps off
       whatever is left of the interval since the previous acquire, records
       a fresh monotonic timestamp and releases the lock.
Who:   Owned by ReverseGeocoder; one instance per process in the app.

Concurrency:
    Reading the last timestamp, sleeping and writing the new timestamp all
    happen while holding the lock. A second caller arriving mid-sleep queues
    on the lock and, once inside, sees the first caller's new timestamp and
    waits out a full interval. The state is never read outside the lock.

    The limiter is scoped to one event loop (one uvicorn worker). Multiple
    worker processes each get their own limiter.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Minimum-interval limiter for a single upstream service.

    Args:
        min_interval: Seconds that must separate two successive acquires
        clock:        Monotonic clock (injectable for tests)
        sleep:        Coroutine used to wait (injectable for tests)
    """

    def __init__(
        self,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if min_interval < 0:
            raise ValueError("min_interval must be non-negative")
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        # None means "never": the first acquire does not wait
        self._last_request: Optional[float] = None

    @property
    def last_request(self) -> Optional[float]:
        return self._last_request

    async def acquire(self) -> float:
        """
        Wait for the next free slot and claim it.

        Returns:
            Seconds spent waiting (0.0 when no wait was needed).
        """
        async with self._lock:
            waited = 0.0
            if self._last_request is not None:
                remaining = self.min_interval - (self._clock() - self._last_request)
                if remaining > 0:
                    logger.debug("Rate limiter sleeping %.3fs", remaining)
                    await self._sleep(remaining)
                    waited = remaining
            self._last_request = self._clock()
            return waited
