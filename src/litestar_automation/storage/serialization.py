"""Conversion between domain records and JSON-compatible dictionaries.

Timestamps are written as ISO-8601 instants in UTC; enums as their string
values.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from litestar_automation.core.definition import Step, WorkflowDefinition, WorkflowVariable
from litestar_automation.core.models import Execution, Schedule, StepResult, Trigger
from litestar_automation.core.types import (
    ExecutionSource,
    ExecutionStatus,
    ScheduleType,
    StepStatus,
    TriggerType,
    VariableType,
)

__all__ = [
    "execution_from_dict",
    "execution_to_dict",
    "parse_datetime",
    "schedule_from_dict",
    "schedule_to_dict",
    "step_from_dict",
    "step_to_dict",
    "trigger_from_dict",
    "trigger_to_dict",
    "workflow_from_dict",
    "workflow_to_dict",
]


def format_datetime(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def parse_datetime(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp, treating naive values as UTC."""
    if value is None:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _require_datetime(value: str) -> datetime:
    parsed = parse_datetime(value)
    if parsed is None:
        msg = "Timestamp is required"
        raise ValueError(msg)
    return parsed


def step_to_dict(step: Step) -> dict[str, Any]:
    return {
        "tool_id": step.tool_id,
        "order": step.order,
        "auto_advance": step.auto_advance,
        "wait_time": step.wait_time,
        "description": step.description,
    }


def step_from_dict(data: dict[str, Any]) -> Step:
    return Step(
        tool_id=data["tool_id"],
        order=data["order"],
        auto_advance=data.get("auto_advance", True),
        wait_time=data.get("wait_time"),
        description=data.get("description", ""),
    )


def variable_to_dict(variable: WorkflowVariable) -> dict[str, Any]:
    return {
        "name": variable.name,
        "type": str(variable.type),
        "required": variable.required,
        "default": variable.default,
        "description": variable.description,
    }


def variable_from_dict(data: dict[str, Any]) -> WorkflowVariable:
    return WorkflowVariable(
        name=data["name"],
        type=VariableType(data.get("type", VariableType.STRING)),
        required=data.get("required", False),
        default=data.get("default"),
        description=data.get("description", ""),
    )


def workflow_to_dict(definition: WorkflowDefinition) -> dict[str, Any]:
    """Convert a workflow definition to a JSON-compatible dictionary."""
    return {
        "id": definition.id,
        "name": definition.name,
        "description": definition.description,
        "steps": [step_to_dict(step) for step in definition.steps],
        "variables": [variable_to_dict(variable) for variable in definition.variables],
        "tags": list(definition.tags),
        "created_at": format_datetime(definition.created_at),
        "updated_at": format_datetime(definition.updated_at),
    }


def workflow_from_dict(data: dict[str, Any]) -> WorkflowDefinition:
    """Rebuild a workflow definition from :func:`workflow_to_dict` output."""
    return WorkflowDefinition(
        id=data["id"],
        name=data["name"],
        description=data.get("description", ""),
        steps=[step_from_dict(step) for step in data.get("steps", [])],
        variables=[variable_from_dict(variable) for variable in data.get("variables", [])],
        tags=list(data.get("tags", [])),
        created_at=_require_datetime(data["created_at"]),
        updated_at=_require_datetime(data.get("updated_at") or data["created_at"]),
    )


def step_result_to_dict(result: StepResult) -> dict[str, Any]:
    return {
        "step_index": result.step_index,
        "tool_id": result.tool_id,
        "status": str(result.status),
        "started_at": format_datetime(result.started_at),
        "completed_at": format_datetime(result.completed_at),
        "duration": result.duration,
        "error": result.error,
        "data": result.data,
    }


def step_result_from_dict(data: dict[str, Any]) -> StepResult:
    return StepResult(
        step_index=data["step_index"],
        tool_id=data["tool_id"],
        status=StepStatus(data.get("status", StepStatus.PENDING)),
        started_at=parse_datetime(data.get("started_at")),
        completed_at=parse_datetime(data.get("completed_at")),
        duration=data.get("duration"),
        error=data.get("error"),
        data=data.get("data"),
    )


def execution_to_dict(execution: Execution) -> dict[str, Any]:
    """Convert an execution, including its step snapshot, to a dictionary."""
    return {
        "id": execution.id,
        "workflow_id": execution.workflow_id,
        "status": str(execution.status),
        "current_step_index": execution.current_step_index,
        "steps": [step_to_dict(step) for step in execution.steps],
        "step_results": [step_result_to_dict(result) for result in execution.step_results],
        "started_at": format_datetime(execution.started_at),
        "completed_at": format_datetime(execution.completed_at),
        "paused_at": format_datetime(execution.paused_at),
        "error": execution.error,
        "total_duration": execution.total_duration,
        "auto_advance_enabled": execution.auto_advance_enabled,
        "variables": dict(execution.variables),
        "source": str(execution.source),
        "source_id": execution.source_id,
    }


def execution_from_dict(data: dict[str, Any]) -> Execution:
    """Rebuild an execution from :func:`execution_to_dict` output."""
    return Execution(
        id=data["id"],
        workflow_id=data["workflow_id"],
        steps=tuple(step_from_dict(step) for step in data.get("steps", [])),
        step_results=[step_result_from_dict(result) for result in data.get("step_results", [])],
        started_at=_require_datetime(data["started_at"]),
        status=ExecutionStatus(data["status"]),
        current_step_index=data.get("current_step_index", 0),
        completed_at=parse_datetime(data.get("completed_at")),
        paused_at=parse_datetime(data.get("paused_at")),
        error=data.get("error"),
        total_duration=data.get("total_duration"),
        auto_advance_enabled=data.get("auto_advance_enabled", True),
        variables=dict(data.get("variables") or {}),
        source=ExecutionSource(data.get("source", ExecutionSource.MANUAL)),
        source_id=data.get("source_id"),
    )


def schedule_to_dict(schedule: Schedule) -> dict[str, Any]:
    return {
        "id": schedule.id,
        "workflow_id": schedule.workflow_id,
        "name": schedule.name,
        "type": str(schedule.type),
        "enabled": schedule.enabled,
        "scheduled_at": format_datetime(schedule.scheduled_at),
        "interval_minutes": schedule.interval_minutes,
        "days_of_week": list(schedule.days_of_week) if schedule.days_of_week is not None else None,
        "day_of_month": schedule.day_of_month,
        "created_at": format_datetime(schedule.created_at),
        "next_run": format_datetime(schedule.next_run),
        "last_run": format_datetime(schedule.last_run),
        "run_count": schedule.run_count,
    }


def schedule_from_dict(data: dict[str, Any]) -> Schedule:
    days_of_week = data.get("days_of_week")
    return Schedule(
        id=data["id"],
        workflow_id=data["workflow_id"],
        type=ScheduleType(data["type"]),
        created_at=_require_datetime(data["created_at"]),
        name=data.get("name", ""),
        enabled=data.get("enabled", True),
        scheduled_at=parse_datetime(data.get("scheduled_at")),
        interval_minutes=data.get("interval_minutes"),
        days_of_week=list(days_of_week) if days_of_week is not None else None,
        day_of_month=data.get("day_of_month"),
        next_run=parse_datetime(data.get("next_run")),
        last_run=parse_datetime(data.get("last_run")),
        run_count=data.get("run_count", 0),
    )


def trigger_to_dict(trigger: Trigger) -> dict[str, Any]:
    return {
        "id": trigger.id,
        "workflow_id": trigger.workflow_id,
        "type": str(trigger.type),
        "conditions": dict(trigger.conditions),
        "enabled": trigger.enabled,
        "created_at": format_datetime(trigger.created_at),
        "last_triggered": format_datetime(trigger.last_triggered),
        "trigger_count": trigger.trigger_count,
    }


def trigger_from_dict(data: dict[str, Any]) -> Trigger:
    return Trigger(
        id=data["id"],
        workflow_id=data["workflow_id"],
        type=TriggerType(data["type"]),
        created_at=_require_datetime(data["created_at"]),
        conditions=dict(data.get("conditions") or {}),
        enabled=data.get("enabled", True),
        last_triggered=parse_datetime(data.get("last_triggered")),
        trigger_count=data.get("trigger_count", 0),
    )
