"""
Process-wide soft rate governor for upstream completion calls.

Counts attempts inside a rolling window. When the count reaches
throttle_ratio * limit the next caller sleeps for the rest of the window.
Throttling only adds latency; nothing is ever rejected. The window ticks over
lazily on every read/write using the injected clock.
"""

from __future__ import annotations

import asyncio
import threading
import time
from collections.abc import Awaitable, Callable
from typing import Optional

import structlog

from learnforge.models import RateWindow
from learnforge.observability import metrics as obs_metrics

logger = structlog.get_logger()

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]


class RateGovernor:
    """Shared attempt counter with a fixed window; one instance per composition root."""

    # Sleep used when the window has already elapsed by the time we decide to throttle
    MIN_THROTTLE_SECONDS = 1.0

    def __init__(
        self,
        limit: int = 25,
        window_seconds: float = 60.0,
        throttle_ratio: float = 0.9,
        clock: Clock = time.monotonic,
        sleep: Optional[Sleep] = None,
    ) -> None:
        self._limit = limit
        self._window = window_seconds
        self._ratio = throttle_ratio
        self._clock = clock
        self._sleep = sleep or asyncio.sleep
        self._lock = threading.Lock()
        self._window_start = clock()
        self._count = 0

    def _tick(self, now: float) -> None:
        """Advance the window when its duration has elapsed. Caller holds the lock."""
        if now - self._window_start >= self._window:
            self._window_start = now
            self._count = 0

    def should_throttle(self) -> bool:
        with self._lock:
            now = self._clock()
            self._tick(now)
            elapsed = now - self._window_start
            return elapsed < self._window and self._count >= self._limit * self._ratio

    def record_attempt(self) -> None:
        with self._lock:
            self._tick(self._clock())
            self._count += 1

    def remaining_window(self) -> float:
        with self._lock:
            return self._window - (self._clock() - self._window_start)

    def reset(self) -> None:
        with self._lock:
            self._window_start = self._clock()
            self._count = 0

    def snapshot(self) -> RateWindow:
        with self._lock:
            self._tick(self._clock())
            return RateWindow(
                window_start=self._window_start,
                count=self._count,
                limit=self._limit,
                window_duration=self._window,
            )

    async def throttle(self) -> float:
        """Sleep out the current window if we are close to the limit. Returns seconds slept."""
        if not self.should_throttle():
            return 0.0
        remaining = self.remaining_window()
        wait_time = remaining if remaining > 0 else self.MIN_THROTTLE_SECONDS
        logger.warning(
            "rate_limit_throttle",
            wait_seconds=round(wait_time, 3),
            limit=self._limit,
            window_seconds=self._window,
        )
        obs_metrics.record_throttle(wait_time)
        await self._sleep(wait_time)
        return wait_time
