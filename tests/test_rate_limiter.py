"""Rate governor: window accounting, throttle threshold, lazy window reset."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from learnforge.tools.rate_limiter import RateGovernor
from tests.conftest import FakeClock


def _record(governor: RateGovernor, n: int) -> None:
    for _ in range(n):
        governor.record_attempt()


def test_throttles_at_ninety_percent_of_limit(governor: RateGovernor) -> None:
    """25 requests per 60 s: 23 attempts in-window is over the 22.5 threshold."""
    _record(governor, 22)
    assert governor.should_throttle() is False
    governor.record_attempt()
    assert governor.should_throttle() is True


def test_window_resets_count_after_duration(governor: RateGovernor, clock: FakeClock) -> None:
    _record(governor, 24)
    assert governor.snapshot().count == 24
    clock.advance(60.0)
    snap = governor.snapshot()
    assert snap.count == 0
    assert snap.window_start == clock.now
    assert governor.should_throttle() is False


def test_window_does_not_reset_early(governor: RateGovernor, clock: FakeClock) -> None:
    _record(governor, 5)
    clock.advance(59.9)
    assert governor.snapshot().count == 5


def test_record_after_expiry_starts_new_window(governor: RateGovernor, clock: FakeClock) -> None:
    _record(governor, 23)
    clock.advance(120.0)
    governor.record_attempt()
    assert governor.snapshot().count == 1


def test_reset_clears_counter(governor: RateGovernor) -> None:
    _record(governor, 23)
    governor.reset()
    assert governor.snapshot().count == 0


def test_snapshot_reports_limits(governor: RateGovernor) -> None:
    snap = governor.snapshot()
    assert snap.limit == 25
    assert snap.window_duration == 60.0


@pytest.mark.asyncio
async def test_throttle_noop_below_threshold(governor: RateGovernor, no_sleep: AsyncMock) -> None:
    _record(governor, 3)
    assert await governor.throttle() == 0.0
    no_sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_throttle_sleeps_remaining_window(governor: RateGovernor, clock: FakeClock, no_sleep: AsyncMock) -> None:
    _record(governor, 23)
    clock.advance(20.0)
    waited = await governor.throttle()
    assert waited == pytest.approx(40.0)
    no_sleep.assert_awaited_once_with(pytest.approx(40.0))


@pytest.mark.asyncio
async def test_throttle_never_rejects(clock: FakeClock, no_sleep: AsyncMock) -> None:
    """Far past the limit the governor still only delays."""
    governor = RateGovernor(limit=2, window_seconds=10.0, clock=clock, sleep=no_sleep)
    _record(governor, 50)
    await governor.throttle()
    no_sleep.assert_awaited_once()
