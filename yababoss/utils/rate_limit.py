# yababoss/utils/rate_limit.py
from __future__ import annotations
import asyncio
import time
from typing import Awaitable, Callable, Optional


class TokenBucket:
    """
    Async token bucket used as a politeness throttle towards the supplier API.

    - rate_per_s: tokens refilled per second (5.0 ~ one request every 200ms)
    - capacity: burst size; 1 means requests are evenly spaced
    - rate_per_s <= 0 disables throttling (tests, local fixtures)

    The upstream never sends backpressure (no Retry-After), so this is the only
    thing keeping a long sync from hammering it.
    """

    def __init__(
        self,
        rate_per_s: float,
        capacity: int = 1,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.rate = rate_per_s
        self.capacity = capacity
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(capacity)
        self._updated = clock()
        self._lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        return self.rate > 0

    def _refill(self) -> None:
        now = self._clock()
        self._tokens = min(self.capacity, self._tokens + (now - self._updated) * self.rate)
        self._updated = now

    async def acquire(self) -> float:
        """Wait for one token. Returns the time spent waiting (seconds)."""
        if not self.enabled:
            return 0.0
        async with self._lock:
            self._refill()
            waited = 0.0
            if self._tokens < 1:
                waited = (1 - self._tokens) / self.rate
                await self._sleep(waited)
                self._refill()
            self._tokens = max(0.0, self._tokens - 1)
            return waited


async def throttle(limiter: Optional[TokenBucket]) -> float:
    """acquire() that tolerates a missing limiter."""
    if limiter is None:
        return 0.0
    return await limiter.acquire()
