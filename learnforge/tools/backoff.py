"""
Exponential backoff with jitter, and the outer retry wrapper built on it.

The outer retry re-drives a whole generation (fallback sweep + recovery +
validation) from scratch. The wait before the next re-drive is keyed off the
number of attempts still remaining, so the longest pause comes first.
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from typing import Optional, TypeVar

import structlog
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, stop_after_attempt
from tenacity.wait import wait_base

logger = structlog.get_logger()
T = TypeVar("T")

BASE_RETRY_DELAY = 1.0
MAX_RETRY_DELAY = 15.0


def compute_backoff(
    attempt: int,
    base: float = BASE_RETRY_DELAY,
    max_delay: float = MAX_RETRY_DELAY,
    rng: Optional[random.Random] = None,
) -> float:
    """Seconds to wait before retry number `attempt` (1-based): base*2^(attempt-1) + jitter, capped."""
    uniform = rng.uniform if rng is not None else random.uniform
    exponential = base * (2 ** (attempt - 1))
    jitter = uniform(0, base)
    return min(exponential + jitter, max_delay)


class wait_remaining_backoff(wait_base):
    """tenacity wait strategy: compute_backoff(attempts_remaining)."""

    def __init__(
        self,
        max_attempts: int,
        base: float = BASE_RETRY_DELAY,
        max_delay: float = MAX_RETRY_DELAY,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.max_attempts = max_attempts
        self.base = base
        self.max_delay = max_delay
        self.rng = rng

    def __call__(self, retry_state: RetryCallState) -> float:
        remaining = max(1, self.max_attempts - retry_state.attempt_number)
        return compute_backoff(remaining, self.base, self.max_delay, self.rng)


def _log_before_sleep(label: str) -> Callable[[RetryCallState], None]:
    def _log(rs: RetryCallState) -> None:
        logger.warning(
            "outer_retry",
            op=label,
            attempt=rs.attempt_number,
            wait_seconds=round(rs.next_action.sleep, 3) if rs.next_action else None,
            error=str(rs.outcome.exception()) if rs.outcome else "unknown",
        )

    return _log


async def retryable(
    op: Callable[[], Awaitable[T]],
    max_attempts: int,
    *,
    base: float = BASE_RETRY_DELAY,
    max_delay: float = MAX_RETRY_DELAY,
    sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    rng: Optional[random.Random] = None,
    label: str = "",
) -> T:
    """
    Run `op` up to max_attempts times, sleeping compute_backoff(attempts_remaining)
    between tries. Re-raises the last exception once the attempts are spent.
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max(1, max_attempts)),
        wait=wait_remaining_backoff(max_attempts, base, max_delay, rng),
        retry=retry_if_exception_type(Exception),
        sleep=sleep or asyncio.sleep,
        before_sleep=_log_before_sleep(label or getattr(op, "__name__", "op")),
        reraise=True,
    )
    # op may be a plain lambda returning a coroutine
    async for attempt in retrying:
        with attempt:
            return await op()
    raise AssertionError("unreachable: tenacity reraises once attempts are spent")
