"""Core domain module for litestar-automation.

This module exports the fundamental building blocks: types, definitions,
runtime records, templates and collaborator protocols.
"""

from __future__ import annotations

from litestar_automation.core.conditions import matches
from litestar_automation.core.definition import (
    Step,
    ValidationResult,
    WorkflowDefinition,
    WorkflowVariable,
    validate_definition,
)
from litestar_automation.core.models import (
    Execution,
    Schedule,
    StepResult,
    ToolResult,
    Trigger,
    WorkflowMetrics,
)
from litestar_automation.core.protocols import (
    Clock,
    EventBus,
    StateStore,
    TimerHandle,
    ToolCatalog,
    ToolExecutor,
    UsageTracker,
)
from litestar_automation.core.templates import BUILTIN_TEMPLATES, WorkflowTemplate, get_template
from litestar_automation.core.types import (
    TERMINAL_STATUSES,
    ExecutionSource,
    ExecutionStatus,
    ScheduleType,
    StepStatus,
    TriggerType,
    Variables,
    VariableType,
)

__all__ = [
    "BUILTIN_TEMPLATES",
    "TERMINAL_STATUSES",
    "Clock",
    "EventBus",
    "Execution",
    "ExecutionSource",
    "ExecutionStatus",
    "Schedule",
    "ScheduleType",
    "StateStore",
    "Step",
    "StepResult",
    "StepStatus",
    "TimerHandle",
    "ToolCatalog",
    "ToolExecutor",
    "ToolResult",
    "Trigger",
    "TriggerType",
    "UsageTracker",
    "ValidationResult",
    "VariableType",
    "Variables",
    "WorkflowDefinition",
    "WorkflowMetrics",
    "WorkflowTemplate",
    "WorkflowVariable",
    "get_template",
    "matches",
    "validate_definition",
]
