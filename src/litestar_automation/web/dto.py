"""Data Transfer Objects for the automation web API.

This module defines DTOs for serializing and deserializing automation data
in REST API requests and responses, together with the conversions from the
domain records.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from litestar_automation.core.definition import Step, WorkflowDefinition, WorkflowVariable
from litestar_automation.core.models import Execution, Schedule, StepResult, Trigger, WorkflowMetrics
from litestar_automation.core.templates import WorkflowTemplate
from litestar_automation.core.types import ScheduleType, TriggerType, VariableType

__all__ = [
    "CreateScheduleDTO",
    "CreateTriggerDTO",
    "CreateWorkflowDTO",
    "EvaluateTriggersDTO",
    "ExecuteWorkflowDTO",
    "ExecutionDTO",
    "FromTemplateDTO",
    "MetricsDTO",
    "ScheduleDTO",
    "StepDTO",
    "StepResultDTO",
    "TemplateDTO",
    "TriggerDTO",
    "UpdateScheduleDTO",
    "UpdateWorkflowDTO",
    "VariableDTO",
    "WorkflowDTO",
]


@dataclass
class StepDTO:
    """DTO for one workflow step.

    Attributes:
        tool_id: Tool invoked by the step.
        order: Zero-based position within the workflow.
        auto_advance: Whether the engine proceeds to the next step on success.
        wait_time: Delay in seconds before auto-advancing.
        description: Free-form annotation.
    """

    tool_id: str
    order: int
    auto_advance: bool = True
    wait_time: float | None = None
    description: str = ""

    def to_step(self) -> Step:
        return Step(
            tool_id=self.tool_id,
            order=self.order,
            auto_advance=self.auto_advance,
            wait_time=self.wait_time,
            description=self.description,
        )

    @classmethod
    def from_step(cls, step: Step) -> StepDTO:
        return cls(
            tool_id=step.tool_id,
            order=step.order,
            auto_advance=step.auto_advance,
            wait_time=step.wait_time,
            description=step.description,
        )


@dataclass
class VariableDTO:
    """DTO for a workflow variable."""

    name: str
    type: VariableType = VariableType.STRING
    required: bool = False
    default: Any = None
    description: str = ""

    def to_variable(self) -> WorkflowVariable:
        return WorkflowVariable(
            name=self.name,
            type=self.type,
            required=self.required,
            default=self.default,
            description=self.description,
        )

    @classmethod
    def from_variable(cls, variable: WorkflowVariable) -> VariableDTO:
        return cls(
            name=variable.name,
            type=variable.type,
            required=variable.required,
            default=variable.default,
            description=variable.description,
        )


@dataclass
class CreateWorkflowDTO:
    """DTO for creating a workflow.

    Attributes:
        name: Workflow name, unique ignoring case.
        steps: Steps of the workflow.
        description: Human-readable description.
        variables: Variables the steps expect.
        tags: Free-form labels.
    """

    name: str
    steps: list[StepDTO]
    description: str = ""
    variables: list[VariableDTO] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)


@dataclass
class UpdateWorkflowDTO:
    """DTO for a partial workflow update; omitted fields keep their value."""

    name: str | None = None
    description: str | None = None
    steps: list[StepDTO] | None = None
    variables: list[VariableDTO] | None = None
    tags: list[str] | None = None

    def to_changes(self) -> dict[str, Any]:
        """Return the fields that were supplied, converted to domain values."""
        changes: dict[str, Any] = {}
        if self.name is not None:
            changes["name"] = self.name
        if self.description is not None:
            changes["description"] = self.description
        if self.steps is not None:
            changes["steps"] = [step.to_step() for step in self.steps]
        if self.variables is not None:
            changes["variables"] = [variable.to_variable() for variable in self.variables]
        if self.tags is not None:
            changes["tags"] = list(self.tags)
        return changes


@dataclass
class WorkflowDTO:
    """DTO for a stored workflow definition."""

    id: str
    name: str
    description: str
    steps: list[StepDTO]
    variables: list[VariableDTO]
    tags: list[str]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_definition(cls, definition: WorkflowDefinition) -> WorkflowDTO:
        return cls(
            id=definition.id,
            name=definition.name,
            description=definition.description,
            steps=[StepDTO.from_step(step) for step in definition.ordered_steps()],
            variables=[VariableDTO.from_variable(variable) for variable in definition.variables],
            tags=list(definition.tags),
            created_at=definition.created_at,
            updated_at=definition.updated_at,
        )


@dataclass
class FromTemplateDTO:
    """DTO for creating a workflow from a built-in template."""

    template_id: str
    name: str | None = None


@dataclass
class TemplateDTO:
    """DTO for a built-in workflow template."""

    id: str
    name: str
    description: str
    category: str
    steps: list[StepDTO]
    variables: list[VariableDTO]
    tags: list[str]

    @classmethod
    def from_template(cls, template: WorkflowTemplate) -> TemplateDTO:
        return cls(
            id=template.id,
            name=template.name,
            description=template.description,
            category=template.category,
            steps=[StepDTO.from_step(step) for step in template.steps],
            variables=[VariableDTO.from_variable(variable) for variable in template.variables],
            tags=list(template.tags),
        )


@dataclass
class ExecuteWorkflowDTO:
    """DTO for running a workflow.

    Attributes:
        auto_advance: Execution-level auto-advance; the service default when omitted.
        variables: Values for the workflow's variables.
    """

    auto_advance: bool | None = None
    variables: dict[str, Any] | None = None


@dataclass
class StepResultDTO:
    """DTO for the result of one step of an execution."""

    step_index: int
    tool_id: str
    status: str
    started_at: datetime | None = None
    completed_at: datetime | None = None
    duration: float | None = None
    error: str | None = None
    data: Any = None

    @classmethod
    def from_result(cls, result: StepResult) -> StepResultDTO:
        return cls(
            step_index=result.step_index,
            tool_id=result.tool_id,
            status=str(result.status),
            started_at=result.started_at,
            completed_at=result.completed_at,
            duration=result.duration,
            error=result.error,
            data=result.data,
        )


@dataclass
class ExecutionDTO:
    """DTO for an execution and its step results."""

    id: str
    workflow_id: str
    status: str
    current_step_index: int
    step_results: list[StepResultDTO]
    started_at: datetime
    auto_advance_enabled: bool
    source: str
    variables: dict[str, Any] = field(default_factory=dict)
    source_id: str | None = None
    completed_at: datetime | None = None
    paused_at: datetime | None = None
    error: str | None = None
    total_duration: float | None = None

    @classmethod
    def from_execution(cls, execution: Execution) -> ExecutionDTO:
        return cls(
            id=execution.id,
            workflow_id=execution.workflow_id,
            status=str(execution.status),
            current_step_index=execution.current_step_index,
            step_results=[StepResultDTO.from_result(result) for result in execution.step_results],
            started_at=execution.started_at,
            auto_advance_enabled=execution.auto_advance_enabled,
            source=str(execution.source),
            variables=dict(execution.variables),
            source_id=execution.source_id,
            completed_at=execution.completed_at,
            paused_at=execution.paused_at,
            error=execution.error,
            total_duration=execution.total_duration,
        )


@dataclass
class MetricsDTO:
    """DTO for the metrics of a workflow."""

    total_executions: int
    successful_executions: int
    failed_executions: int
    average_duration: float
    error_rate: float
    success_rate: float
    last_executed: datetime | None = None
    most_used_step: str | None = None

    @classmethod
    def from_metrics(cls, metrics: WorkflowMetrics) -> MetricsDTO:
        return cls(
            total_executions=metrics.total_executions,
            successful_executions=metrics.successful_executions,
            failed_executions=metrics.failed_executions,
            average_duration=metrics.average_duration,
            error_rate=metrics.error_rate,
            success_rate=metrics.success_rate,
            last_executed=metrics.last_executed,
            most_used_step=metrics.most_used_step,
        )


@dataclass
class CreateScheduleDTO:
    """DTO for creating a schedule.

    Attributes:
        workflow_id: Workflow to execute.
        type: Recurrence of the schedule.
        name: Display name.
        scheduled_at: Fire time of a ``once`` schedule.
        interval_minutes: Period of an ``interval`` schedule.
        days_of_week: Weekdays (0 = Sunday) of a ``weekly`` schedule.
        day_of_month: Day of a ``monthly`` schedule.
        enabled: Whether the schedule starts armed.
    """

    workflow_id: str
    type: ScheduleType
    name: str = ""
    scheduled_at: datetime | None = None
    interval_minutes: float | None = None
    days_of_week: list[int] | None = None
    day_of_month: int | None = None
    enabled: bool = True


@dataclass
class UpdateScheduleDTO:
    """DTO for a partial schedule update; omitted fields keep their value."""

    name: str | None = None
    type: ScheduleType | None = None
    scheduled_at: datetime | None = None
    interval_minutes: float | None = None
    days_of_week: list[int] | None = None
    day_of_month: int | None = None

    def to_changes(self) -> dict[str, Any]:
        return {key: value for key, value in vars(self).items() if value is not None}


@dataclass
class ScheduleDTO:
    """DTO for a stored schedule."""

    id: str
    workflow_id: str
    name: str
    type: str
    enabled: bool
    created_at: datetime
    run_count: int
    scheduled_at: datetime | None = None
    interval_minutes: float | None = None
    days_of_week: list[int] | None = None
    day_of_month: int | None = None
    next_run: datetime | None = None
    last_run: datetime | None = None

    @classmethod
    def from_schedule(cls, schedule: Schedule) -> ScheduleDTO:
        return cls(
            id=schedule.id,
            workflow_id=schedule.workflow_id,
            name=schedule.name,
            type=str(schedule.type),
            enabled=schedule.enabled,
            created_at=schedule.created_at,
            run_count=schedule.run_count,
            scheduled_at=schedule.scheduled_at,
            interval_minutes=schedule.interval_minutes,
            days_of_week=schedule.days_of_week,
            day_of_month=schedule.day_of_month,
            next_run=schedule.next_run,
            last_run=schedule.last_run,
        )


@dataclass
class CreateTriggerDTO:
    """DTO for creating a trigger."""

    workflow_id: str
    type: TriggerType
    conditions: dict[str, Any] = field(default_factory=dict)
    enabled: bool = True


@dataclass
class TriggerDTO:
    """DTO for a stored trigger."""

    id: str
    workflow_id: str
    type: str
    conditions: dict[str, Any]
    enabled: bool
    created_at: datetime
    trigger_count: int
    last_triggered: datetime | None = None

    @classmethod
    def from_trigger(cls, trigger: Trigger) -> TriggerDTO:
        return cls(
            id=trigger.id,
            workflow_id=trigger.workflow_id,
            type=str(trigger.type),
            conditions=dict(trigger.conditions),
            enabled=trigger.enabled,
            created_at=trigger.created_at,
            trigger_count=trigger.trigger_count,
            last_triggered=trigger.last_triggered,
        )


@dataclass
class EvaluateTriggersDTO:
    """DTO for delivering an event to the triggers.

    Attributes:
        event_type: Class of the event.
        payload: Event attributes matched against trigger conditions.
    """

    event_type: TriggerType
    payload: dict[str, Any] = field(default_factory=dict)
