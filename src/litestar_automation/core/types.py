"""Core type definitions for litestar-automation.

This module defines the enums and type aliases used throughout the automation
system. Enum values are the lowercase member names, which is also how they are
persisted and returned over the API.
"""

from __future__ import annotations

import sys
from enum import Enum, auto
from typing import Any, TypeAlias

# StrEnum backport for Python < 3.11
if sys.version_info >= (3, 11):
    from enum import StrEnum
else:

    class StrEnum(str, Enum):
        """String enumeration compatibility for Python < 3.11."""

        @staticmethod
        def _generate_next_value_(name: str, start: int, count: int, last_values: list[Any]) -> str:
            return name.lower()

        def __str__(self) -> str:
            return str(self.value)


__all__ = [
    "TERMINAL_STATUSES",
    "ExecutionSource",
    "ExecutionStatus",
    "ScheduleType",
    "StepStatus",
    "TriggerType",
    "Variables",
    "VariableType",
]


class ExecutionStatus(StrEnum):
    """Overall status of a workflow execution.

    Attributes:
        PENDING: Execution has been created but no step has started.
        RUNNING: Execution is actively stepping through its tools.
        PAUSED: Execution is waiting for an explicit resume.
        COMPLETED: Every step succeeded.
        FAILED: A step failed and the execution stopped.
        CANCELLED: Execution was cancelled by a caller.
    """

    PENDING = auto()
    RUNNING = auto()
    PAUSED = auto()
    COMPLETED = auto()
    FAILED = auto()
    CANCELLED = auto()


TERMINAL_STATUSES = frozenset({ExecutionStatus.COMPLETED, ExecutionStatus.FAILED, ExecutionStatus.CANCELLED})
"""Statuses no execution ever leaves."""


class StepStatus(StrEnum):
    """Execution status of a single workflow step.

    Attributes:
        PENDING: Step has not started.
        RUNNING: Tool invocation is in flight.
        COMPLETED: Tool invocation succeeded.
        FAILED: Tool invocation failed.
        SKIPPED: Step was not run.
    """

    PENDING = auto()
    RUNNING = auto()
    COMPLETED = auto()
    FAILED = auto()
    SKIPPED = auto()


class ExecutionSource(StrEnum):
    """What started an execution."""

    MANUAL = auto()
    SCHEDULED = auto()
    TRIGGERED = auto()


class ScheduleType(StrEnum):
    """Recurrence of a schedule.

    Attributes:
        ONCE: Fires a single time at ``scheduled_at``.
        DAILY: Fires every 24 hours.
        WEEKLY: Fires every 7 days, or on the listed weekdays.
        MONTHLY: Fires every calendar month.
        INTERVAL: Fires every ``interval_minutes`` minutes.
    """

    ONCE = auto()
    DAILY = auto()
    WEEKLY = auto()
    MONTHLY = auto()
    INTERVAL = auto()


class TriggerType(StrEnum):
    """Class of external event a trigger listens to."""

    TOOL_USAGE = auto()
    TIME_BASED = auto()
    DATA_CHANGE = auto()
    EXTERNAL_EVENT = auto()


class VariableType(StrEnum):
    """Declared type of a workflow template variable."""

    STRING = auto()
    NUMBER = auto()
    BOOLEAN = auto()
    DATE = auto()
    FILE = auto()


# Type aliases
Variables: TypeAlias = dict[str, Any]
"""Type alias for the variables passed to every tool invocation of an execution."""
