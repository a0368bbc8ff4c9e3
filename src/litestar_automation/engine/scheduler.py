"""Time-based scheduling of workflow executions.

This module provides the scheduler: it keeps the schedules, arms one timer per
enabled schedule on the injected clock and starts an execution whenever a
timer fires.
"""

from __future__ import annotations

import calendar
import logging
from dataclasses import replace
from datetime import datetime, timedelta
from functools import partial
from typing import TYPE_CHECKING, Any

from litestar_automation.core.definition import generate_id
from litestar_automation.core.models import Schedule
from litestar_automation.core.types import ExecutionSource, ScheduleType
from litestar_automation.exceptions import ScheduleValidationError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from litestar_automation.core.protocols import Clock, TimerHandle
    from litestar_automation.engine.local import LocalExecutionEngine
    from litestar_automation.storage.repository import StateRepository

__all__ = ["WorkflowScheduler", "add_months", "compute_next_run", "validate_schedule"]

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = frozenset(
    {"name", "type", "enabled", "scheduled_at", "interval_minutes", "days_of_week", "day_of_month"}
)


def add_months(value: datetime, months: int, day: int | None = None) -> datetime:
    """Move a datetime by whole calendar months.

    The day of month is clamped to the length of the target month, so
    January 31st plus one month is the last day of February.

    Args:
        value: The starting instant.
        months: Number of months to add.
        day: Day of month to land on instead of ``value.day``.

    Returns:
        The shifted instant, keeping the time of day.
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return value.replace(year=year, month=month, day=min(day or value.day, last_day))


def _weekday(value: datetime) -> int:
    # 0 = Sunday
    return value.isoweekday() % 7


def compute_next_run(schedule: Schedule, now: datetime) -> datetime | None:
    """Compute the next fire time of a schedule.

    Recurring schedules are computed from ``now``: daily adds 24 hours,
    weekly 7 days (or moves to the next listed weekday), monthly one calendar
    month (or moves to the next ``day_of_month``), interval adds
    ``interval_minutes``.

    Args:
        schedule: The schedule.
        now: The reference instant, usually the firing time.

    Returns:
        The next fire time, or None for a ``once`` schedule that already ran.

    Example:
        >>> compute_next_run(daily_schedule, datetime(2024, 1, 1, 9, tzinfo=timezone.utc))
        datetime.datetime(2024, 1, 2, 9, 0, tzinfo=datetime.timezone.utc)
    """
    if schedule.type == ScheduleType.ONCE:
        if schedule.scheduled_at is None:
            return None
        if schedule.last_run is not None and schedule.scheduled_at <= schedule.last_run:
            return None
        return schedule.scheduled_at

    if schedule.type == ScheduleType.DAILY:
        return now + timedelta(days=1)

    if schedule.type == ScheduleType.WEEKLY:
        if schedule.days_of_week:
            for offset in range(1, 8):
                candidate = now + timedelta(days=offset)
                if _weekday(candidate) in schedule.days_of_week:
                    return candidate
        return now + timedelta(days=7)

    if schedule.type == ScheduleType.MONTHLY:
        if schedule.day_of_month:
            candidate = add_months(now, 0, schedule.day_of_month)
            if candidate > now:
                return candidate
            return add_months(now, 1, schedule.day_of_month)
        return add_months(now, 1)

    if schedule.interval_minutes is None:
        return None
    return now + timedelta(minutes=schedule.interval_minutes)


def validate_schedule(schedule: Schedule) -> list[str]:
    """Check the type-specific fields of a schedule.

    Returns:
        List of validation error messages. Empty list if valid.
    """
    errors: list[str] = []

    if schedule.type == ScheduleType.ONCE and schedule.scheduled_at is None:
        errors.append("A 'once' schedule requires scheduled_at")

    if schedule.type == ScheduleType.INTERVAL and (schedule.interval_minutes is None or schedule.interval_minutes <= 0):
        errors.append("An 'interval' schedule requires a positive interval_minutes")

    if schedule.days_of_week is not None and any(
        not isinstance(day, int) or not 0 <= day <= 6 for day in schedule.days_of_week
    ):
        errors.append("days_of_week entries must be integers from 0 (Sunday) to 6 (Saturday)")

    if schedule.day_of_month is not None and not 1 <= schedule.day_of_month <= 31:
        errors.append("day_of_month must be between 1 and 31")

    return errors


class WorkflowScheduler:
    """Scheduler spawning executions from time-based rules.

    Timers are armed only between :meth:`start` and :meth:`stop`. Every
    firing executes the workflow exactly as a manual caller would, tagged
    with the ``scheduled`` source; failures are logged and never stop the
    schedule from being re-armed.

    Attributes:
        engine: Engine that runs the executions.
        clock: Clock providing the time and the timers.
        persistence: Optional state repository schedules are saved to after firing.
        _schedules: Schedules by ID.
        _timers: Pending timer of each armed schedule.
    """

    def __init__(
        self,
        engine: LocalExecutionEngine,
        clock: Clock | None = None,
        persistence: StateRepository | None = None,
    ) -> None:
        self.engine = engine
        self.clock: Clock = clock or engine.clock
        self.persistence = persistence
        self._schedules: dict[str, Schedule] = {}
        self._timers: dict[str, TimerHandle] = {}
        self._started = False

    @property
    def is_running(self) -> bool:
        return self._started

    def add_schedule(
        self,
        workflow_id: str,
        type: ScheduleType,
        *,
        name: str = "",
        scheduled_at: datetime | None = None,
        interval_minutes: float | None = None,
        days_of_week: list[int] | None = None,
        day_of_month: int | None = None,
        enabled: bool = True,
    ) -> Schedule | None:
        """Create a schedule and arm it.

        Args:
            workflow_id: Workflow to execute.
            type: Recurrence of the schedule.
            name: Display name.
            scheduled_at: Fire time of a ``once`` schedule.
            interval_minutes: Period of an ``interval`` schedule.
            days_of_week: Weekdays (0 = Sunday) a ``weekly`` schedule fires on.
            day_of_month: Day a ``monthly`` schedule fires on.
            enabled: Whether the schedule starts armed.

        Returns:
            The created schedule with ``next_run`` computed, or None if the
            workflow does not exist.

        Raises:
            ScheduleValidationError: If the type-specific fields are inconsistent.
        """
        if self.engine.registry.get(workflow_id) is None:
            return None

        now = self.clock.now()
        schedule = Schedule(
            id=generate_id("sched"),
            workflow_id=workflow_id,
            type=ScheduleType(type),
            created_at=now,
            name=name,
            enabled=enabled,
            scheduled_at=scheduled_at,
            interval_minutes=interval_minutes,
            days_of_week=list(days_of_week) if days_of_week is not None else None,
            day_of_month=day_of_month,
        )
        errors = validate_schedule(schedule)
        if errors:
            raise ScheduleValidationError(errors)

        if schedule.enabled:
            schedule.next_run = compute_next_run(schedule, now)
        self._schedules[schedule.id] = schedule
        self._arm(schedule)
        logger.info(
            "Added %s schedule %s for workflow %s (next run %s)",
            schedule.type,
            schedule.id,
            workflow_id,
            schedule.next_run,
        )
        return schedule

    def update_schedule(self, schedule_id: str, **changes: Any) -> Schedule | None:
        """Change the parameters of a schedule and re-arm it.

        Args:
            schedule_id: The schedule to update.
            **changes: New values for the schedule's parameters.

        Returns:
            The updated schedule, or None if it does not exist.

        Raises:
            ScheduleValidationError: If the changes are invalid.
        """
        schedule = self._schedules.get(schedule_id)
        if schedule is None:
            return None

        unknown = sorted(set(changes) - _UPDATABLE_FIELDS)
        if unknown:
            raise ScheduleValidationError([f"Field '{field}' cannot be updated" for field in unknown])
        if "type" in changes:
            changes["type"] = ScheduleType(changes["type"])

        candidate = replace(schedule, **changes)
        errors = validate_schedule(candidate)
        if errors:
            raise ScheduleValidationError(errors)

        for field_name, value in changes.items():
            setattr(schedule, field_name, value)
        schedule.next_run = compute_next_run(schedule, self.clock.now()) if schedule.enabled else None
        self._arm(schedule)
        logger.info("Updated schedule %s (next run %s)", schedule.id, schedule.next_run)
        return schedule

    def enable(self, schedule_id: str) -> bool:
        """Enable a schedule and arm its timer."""
        schedule = self._schedules.get(schedule_id)
        if schedule is None:
            return False
        schedule.enabled = True
        schedule.next_run = compute_next_run(schedule, self.clock.now())
        self._arm(schedule)
        logger.info("Enabled schedule %s", schedule_id)
        return True

    def disable(self, schedule_id: str) -> bool:
        """Disable a schedule; its pending timer is cancelled immediately."""
        schedule = self._schedules.get(schedule_id)
        if schedule is None:
            return False
        schedule.enabled = False
        schedule.next_run = None
        self._disarm(schedule_id)
        logger.info("Disabled schedule %s", schedule_id)
        return True

    def remove_schedule(self, schedule_id: str) -> bool:
        """Delete a schedule and cancel its pending timer."""
        schedule = self._schedules.pop(schedule_id, None)
        if schedule is None:
            return False
        self._disarm(schedule_id)
        logger.info("Removed schedule %s", schedule_id)
        return True

    def get_schedule(self, schedule_id: str) -> Schedule | None:
        return self._schedules.get(schedule_id)

    def get_schedules(self, workflow_id: str | None = None) -> list[Schedule]:
        """List schedules, oldest first, optionally for one workflow only."""
        schedules = sorted(self._schedules.values(), key=lambda schedule: schedule.created_at)
        if workflow_id is None:
            return schedules
        return [schedule for schedule in schedules if schedule.workflow_id == workflow_id]

    def start(self) -> None:
        """Arm the timers of every enabled schedule.

        Schedules whose ``next_run`` already passed fire on the next tick.
        """
        self._started = True
        for schedule in self._schedules.values():
            self._arm(schedule)
        logger.info("Scheduler started with %d armed schedule(s)", len(self._timers))

    def stop(self) -> None:
        """Cancel every pending timer."""
        for schedule_id in list(self._timers):
            self._disarm(schedule_id)
        self._started = False
        logger.info("Scheduler stopped")

    def load(self, schedules: Iterable[Schedule]) -> None:
        """Replace the schedules with previously persisted ones."""
        for schedule_id in list(self._timers):
            self._disarm(schedule_id)
        self._schedules = {schedule.id: schedule for schedule in schedules}
        for schedule in self._schedules.values():
            if schedule.enabled and schedule.next_run is None:
                schedule.next_run = compute_next_run(schedule, self.clock.now())
            self._arm(schedule)

    def snapshot(self) -> list[Schedule]:
        """Return every schedule for persistence."""
        return self.get_schedules()

    async def persist(self) -> None:
        if self.persistence:
            await self.persistence.save_schedules(self.snapshot())

    def _arm(self, schedule: Schedule) -> None:
        self._disarm(schedule.id)
        if not self._started or not schedule.enabled or schedule.next_run is None:
            return
        self._timers[schedule.id] = self.clock.call_at(schedule.next_run, partial(self._on_timer, schedule.id))

    def _disarm(self, schedule_id: str) -> None:
        timer = self._timers.pop(schedule_id, None)
        if timer is not None:
            timer.cancel()

    async def _on_timer(self, schedule_id: str) -> None:
        try:
            await self._fire(schedule_id)
        except Exception:
            logger.exception("Unexpected error while firing schedule %s", schedule_id)

    async def _fire(self, schedule_id: str) -> None:
        self._timers.pop(schedule_id, None)
        schedule = self._schedules.get(schedule_id)
        if schedule is None or not schedule.enabled:
            return

        logger.info("Schedule %s firing for workflow %s", schedule.id, schedule.workflow_id)
        try:
            execution = await self.engine.execute_workflow(
                schedule.workflow_id,
                source=ExecutionSource.SCHEDULED,
                source_id=schedule.id,
            )
        except Exception:
            logger.exception("Scheduled execution of workflow %s by %s failed", schedule.workflow_id, schedule.id)
        else:
            if execution is None:
                logger.warning("Schedule %s refers to unknown workflow %s", schedule.id, schedule.workflow_id)

        schedule.last_run = self.clock.now()
        schedule.run_count += 1

        # An update during the execution has already re-armed the timer.
        if schedule.id not in self._timers:
            if schedule.type == ScheduleType.ONCE:
                schedule.enabled = False
                schedule.next_run = None
            elif schedule.enabled:
                schedule.next_run = compute_next_run(schedule, schedule.last_run)
            if schedule.id in self._schedules:
                self._arm(schedule)
        await self.persist()
