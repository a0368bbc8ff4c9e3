"""Tests for clock implementations."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from litestar_automation.engine.clock import ManualClock, SystemClock
from tests.conftest import START


@pytest.mark.unit
@pytest.mark.asyncio
class TestManualClock:
    """Tests for ManualClock."""

    async def test_time_only_moves_when_told(self) -> None:
        clock = ManualClock(START)

        assert clock.now() == START
        await clock.advance(timedelta(minutes=5))
        assert clock.now() == START + timedelta(minutes=5)

    async def test_default_start_is_utc(self) -> None:
        assert ManualClock().now().tzinfo is timezone.utc

    async def test_advance_fires_due_timers_in_order(self) -> None:
        """Timers fire by due time, then by creation order, with the clock at their due time."""
        clock = ManualClock(START)
        fired: list[tuple[str, datetime]] = []

        def record(name: str):
            async def callback() -> None:
                fired.append((name, clock.now()))

            return callback

        clock.call_at(START + timedelta(seconds=30), record("late"))
        clock.call_at(START + timedelta(seconds=10), record("first"))
        clock.call_at(START + timedelta(seconds=10), record("second"))
        clock.call_at(START + timedelta(minutes=5), record("future"))

        assert await clock.advance(60) == 3
        assert fired == [
            ("first", START + timedelta(seconds=10)),
            ("second", START + timedelta(seconds=10)),
            ("late", START + timedelta(seconds=30)),
        ]
        assert clock.now() == START + timedelta(seconds=60)
        assert clock.pending_timers == [START + timedelta(minutes=5)]

    async def test_cancelled_timers_do_not_fire(self) -> None:
        clock = ManualClock(START)
        fired: list[str] = []

        async def callback() -> None:
            fired.append("fired")

        timer = clock.call_at(START + timedelta(seconds=1), callback)
        timer.cancel()
        timer.cancel()

        assert await clock.advance(10) == 0
        assert fired == []
        assert clock.pending_timers == []

    async def test_timers_armed_by_callbacks_fire_in_window(self) -> None:
        """A callback can arm a follow-up timer that fires in the same advance."""
        clock = ManualClock(START)
        fired: list[datetime] = []

        async def tick() -> None:
            fired.append(clock.now())
            clock.call_at(clock.now() + timedelta(seconds=20), tick)

        clock.call_at(START + timedelta(seconds=20), tick)

        assert await clock.advance(65) == 3
        assert fired == [START + timedelta(seconds=s) for s in (20, 40, 60)]

    async def test_past_timers_fire_on_zero_advance(self) -> None:
        clock = ManualClock(START)
        fired: list[str] = []

        async def callback() -> None:
            fired.append("overdue")

        clock.call_at(START - timedelta(hours=1), callback)

        assert await clock.advance(0) == 1
        assert clock.now() == START

    async def test_sleep_moves_time_and_records(self) -> None:
        """Sleeping advances time without firing timers."""
        clock = ManualClock(START)
        fired: list[str] = []

        async def callback() -> None:
            fired.append("fired")

        clock.call_at(START + timedelta(seconds=1), callback)
        await clock.sleep(5)

        assert clock.slept == [5]
        assert clock.now() == START + timedelta(seconds=5)
        assert fired == []


@pytest.mark.unit
@pytest.mark.asyncio
class TestSystemClock:
    """Tests for SystemClock."""

    async def test_now_is_timezone_aware(self) -> None:
        assert SystemClock().now().tzinfo is timezone.utc

    async def test_call_at_runs_callback_on_loop(self) -> None:
        clock = SystemClock()
        done = asyncio.Event()

        async def callback() -> None:
            done.set()

        clock.call_at(clock.now() + timedelta(milliseconds=10), callback)

        await asyncio.wait_for(done.wait(), timeout=2)
        await clock.drain()

    async def test_cancelled_timer_never_runs(self) -> None:
        clock = SystemClock()
        fired: list[str] = []

        async def callback() -> None:
            fired.append("fired")

        timer = clock.call_at(clock.now(), callback)
        timer.cancel()
        await asyncio.sleep(0.05)

        assert fired == []

    async def test_failing_callback_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        """A raising callback is logged and does not affect other timers."""
        clock = SystemClock()
        done = asyncio.Event()

        async def broken() -> None:
            raise RuntimeError("boom")

        async def healthy() -> None:
            done.set()

        clock.call_at(clock.now(), broken)
        clock.call_at(clock.now() + timedelta(milliseconds=10), healthy)

        await asyncio.wait_for(done.wait(), timeout=2)
        await clock.drain()

        assert "Timer callback" in caplog.text
        assert "boom" in caplog.text

    async def test_drain_waits_for_running_callbacks(self) -> None:
        clock = SystemClock()
        finished: list[str] = []

        async def slow() -> None:
            await asyncio.sleep(0.02)
            finished.append("slow")

        clock.call_at(clock.now(), slow)
        await asyncio.sleep(0.01)
        await clock.drain()

        assert finished == ["slow"]
