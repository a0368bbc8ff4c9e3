"""Concrete data models for litestar-automation.

This module provides the dataclasses for runtime records: executions and their
per-step results, schedules, triggers, tool results and aggregated metrics.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

from litestar_automation.core.types import (
    TERMINAL_STATUSES,
    ExecutionSource,
    ExecutionStatus,
    ScheduleType,
    StepStatus,
    TriggerType,
)

if TYPE_CHECKING:
    from litestar_automation.core.definition import Step


__all__ = ["Execution", "Schedule", "StepResult", "ToolResult", "Trigger", "WorkflowMetrics"]


@dataclass
class ToolResult:
    """Result of one tool invocation.

    Attributes:
        success: Whether the tool succeeded.
        data: Opaque output produced by the tool.
        error: Failure message when ``success`` is False.
        duration_ms: Time the tool reports it spent, in milliseconds.
    """

    success: bool
    data: Any = None
    error: str | None = None
    duration_ms: float = 0.0


@dataclass
class StepResult:
    """Record of a single step within an execution.

    Attributes:
        step_index: Position of the step in the execution's snapshot.
        tool_id: Tool invoked by the step.
        status: Current status of the step.
        started_at: When the tool invocation began.
        completed_at: When the tool invocation finished.
        duration: ``completed_at - started_at`` in seconds.
        error: Failure message, present only when ``status`` is failed.
        data: Output returned by the tool.
    """

    step_index: int
    tool_id: str
    status: StepStatus = StepStatus.PENDING
    started_at: datetime | None = None
    completed_at: datetime | None = None
    duration: float | None = None
    error: str | None = None
    data: Any = None


@dataclass
class Execution:
    """One concrete run of a workflow definition.

    Attributes:
        id: Unique identifier of the execution.
        workflow_id: Weak back-reference to the definition.
        steps: Snapshot of the definition's steps taken at start.
        step_results: One result per step, in step order; never resized.
        status: Current state machine status.
        current_step_index: Index of the step being run, or the last step run
            while paused; equals ``len(steps)`` once completed.
        started_at: When the execution was created.
        completed_at: Set exactly once, on the terminal transition.
        paused_at: When the execution last paused; cleared on resume.
        error: Failure description, present only when ``status`` is failed.
        total_duration: Seconds between start and the terminal transition.
        auto_advance_enabled: Execution-level override; False pauses after every step.
        variables: Variables handed to every tool invocation.
        source: What started the execution.
        source_id: Schedule or trigger that started it, if any.
    """

    id: str
    workflow_id: str
    steps: tuple[Step, ...]
    step_results: list[StepResult]
    started_at: datetime
    status: ExecutionStatus = ExecutionStatus.PENDING
    current_step_index: int = 0
    completed_at: datetime | None = None
    paused_at: datetime | None = None
    error: str | None = None
    total_duration: float | None = None
    auto_advance_enabled: bool = True
    variables: dict[str, Any] = field(default_factory=dict)
    source: ExecutionSource = ExecutionSource.MANUAL
    source_id: str | None = None

    @property
    def is_terminal(self) -> bool:
        """Whether the execution reached a state it can never leave."""
        return self.status in TERMINAL_STATUSES

    @property
    def completed_steps(self) -> int:
        """Number of steps that completed successfully."""
        return sum(1 for result in self.step_results if result.status == StepStatus.COMPLETED)


@dataclass
class Schedule:
    """Time-based rule that repeatedly spawns executions.

    Attributes:
        id: Unique identifier of the schedule.
        workflow_id: Workflow to execute.
        type: Recurrence of the schedule.
        created_at: When the schedule was created.
        name: Display name.
        enabled: Whether the schedule is armed.
        scheduled_at: Fire time of a ``once`` schedule.
        interval_minutes: Period of an ``interval`` schedule.
        days_of_week: Weekdays (0 = Sunday) a ``weekly`` schedule fires on.
        day_of_month: Day a ``monthly`` schedule fires on.
        next_run: Next fire time, kept consistent with ``type`` while enabled.
        last_run: When the schedule last fired.
        run_count: Number of firings; never decreases.
    """

    id: str
    workflow_id: str
    type: ScheduleType
    created_at: datetime
    name: str = ""
    enabled: bool = True
    scheduled_at: datetime | None = None
    interval_minutes: float | None = None
    days_of_week: list[int] | None = None
    day_of_month: int | None = None
    next_run: datetime | None = None
    last_run: datetime | None = None
    run_count: int = 0


@dataclass
class Trigger:
    """Event-based rule that spawns executions.

    Attributes:
        id: Unique identifier of the trigger.
        workflow_id: Workflow to execute.
        type: Class of event the trigger listens to.
        created_at: When the trigger was created.
        conditions: Predicate payload matched against event payloads.
        enabled: Whether the trigger is evaluated.
        last_triggered: When the trigger last fired.
        trigger_count: Number of firings.
    """

    id: str
    workflow_id: str
    type: TriggerType
    created_at: datetime
    conditions: dict[str, Any] = field(default_factory=dict)
    enabled: bool = True
    last_triggered: datetime | None = None
    trigger_count: int = 0


@dataclass
class WorkflowMetrics:
    """Summary statistics over a workflow's execution history.

    Attributes:
        total_executions: Number of executions of the workflow.
        successful_executions: Executions that completed.
        failed_executions: Executions that failed.
        average_duration: Mean ``total_duration`` in seconds; 0 when none recorded.
        error_rate: ``failed_executions / total_executions``; 0 without executions.
        last_executed: Latest ``started_at``.
        most_used_step: Tool completed most often across executions.
    """

    total_executions: int = 0
    successful_executions: int = 0
    failed_executions: int = 0
    average_duration: float = 0.0
    error_rate: float = 0.0
    last_executed: datetime | None = None
    most_used_step: str | None = None

    @property
    def success_rate(self) -> float:
        """Share of executions that completed."""
        if self.total_executions == 0:
            return 0.0
        return self.successful_executions / self.total_executions
