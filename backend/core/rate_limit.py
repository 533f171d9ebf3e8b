# backend/core/rate_limit.py
"""Fixed-window request counter owned by the application.

One ``RateLimitStore`` is created at startup and kept on ``app.state``;
``start()``/``stop()`` run the expiry sweep for the lifetime of the app.
"""
import asyncio
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)


@dataclass
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_at: float


@dataclass
class _Window:
    count: int
    reset_at: float


class RateLimitStore:
    def __init__(
        self,
        max_requests: int = 100,
        window_seconds: float = 15 * 60,
        max_entries: int = 10000,
        sweep_interval: float = 60 * 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.max_entries = max_entries
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._windows: "OrderedDict[str, _Window]" = OrderedDict()
        self._task: Optional[asyncio.Task] = None

    def __len__(self) -> int:
        return len(self._windows)

    def hit(self, identifier: str) -> RateLimitResult:
        now = self._clock()
        window = self._windows.get(identifier)

        if window is None or now > window.reset_at:
            window = _Window(count=1, reset_at=now + self.window_seconds)
            self._windows[identifier] = window
            self._windows.move_to_end(identifier)
            self._evict_overflow()
            return RateLimitResult(True, self.max_requests - 1, window.reset_at)

        if window.count >= self.max_requests:
            return RateLimitResult(False, 0, window.reset_at)

        window.count += 1
        return RateLimitResult(True, self.max_requests - window.count, window.reset_at)

    def reset(self, identifier: str) -> None:
        self._windows.pop(identifier, None)

    # Drops expired windows, returns how many were removed
    def sweep(self) -> int:
        now = self._clock()
        expired = [key for key, window in self._windows.items() if now > window.reset_at]
        for key in expired:
            del self._windows[key]
        return len(expired)

    def _evict_overflow(self) -> None:
        while len(self._windows) > self.max_entries:
            self._windows.popitem(last=False)

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            removed = self.sweep()
            if removed:
                logger.debug("Rate limit sweep removed %d windows", removed)

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._sweep_forever())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
