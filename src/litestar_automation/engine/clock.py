"""Clock and timer implementations.

The engine and scheduler take an injectable clock so that production code runs
on the asyncio event loop while tests drive time by hand.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

__all__ = ["ManualClock", "SystemClock"]

logger = logging.getLogger(__name__)


class _LoopTimer:
    """Timer backed by ``loop.call_later``."""

    def __init__(self, when: datetime) -> None:
        self.when = when
        self.handle: asyncio.TimerHandle | None = None

    def cancel(self) -> None:
        if self.handle is not None:
            self.handle.cancel()


class SystemClock:
    """Wall-clock time and asyncio event loop timers.

    Timer callbacks run as independent tasks so a long-running scheduled
    execution never blocks other timers. Timers must be created while an event
    loop is running.

    Example:
        >>> clock = SystemClock()
        >>> clock.now().tzinfo is timezone.utc
        True
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[None]] = set()

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)

    def call_at(self, when: datetime, callback: Callable[[], Awaitable[None]]) -> _LoopTimer:
        """Schedule ``callback`` on the running loop.

        Args:
            when: Instant to fire at; past instants fire on the next loop iteration.
            callback: Coroutine function to run.

        Returns:
            The timer handle.
        """
        loop = asyncio.get_running_loop()
        delay = max((when - self.now()).total_seconds(), 0.0)
        timer = _LoopTimer(when)
        timer.handle = loop.call_later(delay, self._spawn, callback)
        return timer

    def _spawn(self, callback: Callable[[], Awaitable[None]]) -> None:
        task = asyncio.ensure_future(self._run(callback))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    @staticmethod
    async def _run(callback: Callable[[], Awaitable[None]]) -> None:
        try:
            await callback()
        except Exception:
            logger.exception("Timer callback %r failed", callback)

    async def drain(self) -> None:
        """Wait for timer callbacks that are already running."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)


@dataclass
class _ManualTimer:
    when: datetime
    sequence: int
    callback: Callable[[], Awaitable[None]] = field(repr=False)
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualClock:
    """Deterministic clock for tests and simulations.

    Time only moves when :meth:`advance` or :meth:`sleep` is called. ``advance``
    fires every timer that becomes due, in order, awaiting each callback;
    ``sleep`` moves time forward without firing timers and records the
    requested duration.

    Example:
        >>> clock = ManualClock(datetime(2024, 1, 1, tzinfo=timezone.utc))
        >>> fired = []
        >>> async def ping() -> None:
        ...     fired.append(clock.now())
        >>> _ = clock.call_at(clock.now() + timedelta(hours=1), ping)
        >>> await clock.advance(timedelta(hours=2))
        1
    """

    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
        self._timers: list[_ManualTimer] = []
        self._sequence = itertools.count()
        self.slept: list[float] = []

    def now(self) -> datetime:
        return self._now

    async def sleep(self, seconds: float) -> None:
        self.slept.append(seconds)
        self._now += timedelta(seconds=seconds)
        await asyncio.sleep(0)

    def call_at(self, when: datetime, callback: Callable[[], Awaitable[None]]) -> _ManualTimer:
        timer = _ManualTimer(when=when, sequence=next(self._sequence), callback=callback)
        self._timers.append(timer)
        return timer

    @property
    def pending_timers(self) -> list[datetime]:
        """Fire times of the timers that are still armed, earliest first."""
        return sorted(timer.when for timer in self._timers if not timer.cancelled)

    async def advance(self, delta: timedelta | float = 0) -> int:
        """Move time forward, firing every timer that becomes due.

        Timers armed by callbacks are fired too when they fall inside the
        window.

        Args:
            delta: Amount of time to advance, as a timedelta or seconds.

        Returns:
            Number of timers fired.
        """
        if not isinstance(delta, timedelta):
            delta = timedelta(seconds=delta)
        target = self._now + delta
        fired = 0
        while True:
            due = [timer for timer in self._timers if not timer.cancelled and timer.when <= target]
            if not due:
                break
            timer = min(due, key=lambda t: (t.when, t.sequence))
            self._timers.remove(timer)
            self._now = max(self._now, timer.when)
            await timer.callback()
            fired += 1
        self._now = max(self._now, target)
        self._timers = [timer for timer in self._timers if not timer.cancelled]
        logger.debug("Manual clock advanced to %s, fired %d timer(s)", self._now.isoformat(), fired)
        return fired
