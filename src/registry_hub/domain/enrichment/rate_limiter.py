"""Sliding-window request limiter shared by every crawler worker."""

import asyncio
import time
from collections import deque
from typing import Awaitable, Callable, Deque

from registry_hub.utils.logging import get_logger

logger = get_logger(__name__)


class SlidingWindowRateLimiter:
    """
    Allows at most ``max_requests`` acquisitions per ``window_seconds``.

    Request timestamps are kept in a deque; when the window is full the
    caller sleeps until the oldest timestamp leaves it. Acquisition is
    serialized with a lock so concurrent workers share one budget.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._sleep = sleep
        self._request_times: Deque[float] = deque()
        self._lock = asyncio.Lock()

    def _evict(self, now: float) -> None:
        while self._request_times and self._request_times[0] <= now - self.window_seconds:
            self._request_times.popleft()

    async def acquire(self) -> None:
        async with self._lock:
            while True:
                now = self._clock()
                self._evict(now)
                if len(self._request_times) < self.max_requests:
                    self._request_times.append(now)
                    return
                wait_seconds = self.window_seconds - (now - self._request_times[0])
                logger.debug(
                    "rate_limiter.waiting",
                    sleep_seconds=round(wait_seconds, 1),
                    max_requests=self.max_requests,
                )
                await self._sleep(max(wait_seconds, 0.0) + 0.1)
