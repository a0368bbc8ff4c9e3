"""Litestar Automation - Workflow automation library for Litestar.

This package provides linear tool workflows for Litestar applications: an
ordered list of tool invocations that can be run on demand, on a schedule or
in response to events.

Key Features:
    - Validated, versionless workflow definitions and built-in templates
    - Pausable, resumable and cancellable executions with per-step results
    - Once, daily, weekly, monthly and interval schedules
    - Event triggers with simple attribute matching
    - Per-workflow metrics
    - Pluggable tool execution, persistence and clock

Example:
    >>> from litestar_automation import AutomationService, FunctionToolExecutor, Step
    >>>
    >>> tools = FunctionToolExecutor()
    >>>
    >>> @tools.tool("text-cleaner")
    ... def clean(variables):
    ...     return variables.get("text", "").strip()
    >>>
    >>> service = AutomationService(tools)
    >>> result = await service.create_workflow("cleanup", [Step(tool_id="text-cleaner", order=0)])
    >>> execution = await service.execute_workflow(result.workflow.id)
"""

from __future__ import annotations

from litestar_automation.__metadata__ import __project__, __version__
from litestar_automation.config import AutomationConfig
from litestar_automation.core.definition import Step, ValidationResult, WorkflowDefinition, WorkflowVariable
from litestar_automation.core.models import Execution, Schedule, StepResult, ToolResult, Trigger, WorkflowMetrics
from litestar_automation.core.types import (
    ExecutionSource,
    ExecutionStatus,
    ScheduleType,
    StepStatus,
    TriggerType,
    VariableType,
)
from litestar_automation.engine.clock import ManualClock, SystemClock
from litestar_automation.engine.tools import FunctionToolExecutor, InMemoryUsageTracker
from litestar_automation.exceptions import (
    AutomationError,
    ExecutionNotFoundError,
    InvalidTransitionError,
    ScheduleNotFoundError,
    ScheduleValidationError,
    StateMigrationError,
    StepExecutionError,
    ToolInvocationError,
    ToolNotFoundError,
    TriggerNotFoundError,
    WorkflowNotFoundError,
    WorkflowValidationError,
)
from litestar_automation.plugin import AutomationPlugin, AutomationPluginConfig
from litestar_automation.service import AutomationService

__all__ = (
    "AutomationConfig",
    "AutomationError",
    "AutomationPlugin",
    "AutomationPluginConfig",
    "AutomationService",
    "Execution",
    "ExecutionNotFoundError",
    "ExecutionSource",
    "ExecutionStatus",
    "FunctionToolExecutor",
    "InMemoryUsageTracker",
    "InvalidTransitionError",
    "ManualClock",
    "Schedule",
    "ScheduleNotFoundError",
    "ScheduleType",
    "ScheduleValidationError",
    "StateMigrationError",
    "Step",
    "StepExecutionError",
    "StepResult",
    "StepStatus",
    "SystemClock",
    "ToolInvocationError",
    "ToolNotFoundError",
    "ToolResult",
    "Trigger",
    "TriggerNotFoundError",
    "TriggerType",
    "ValidationResult",
    "VariableType",
    "WorkflowDefinition",
    "WorkflowMetrics",
    "WorkflowNotFoundError",
    "WorkflowValidationError",
    "WorkflowVariable",
    "__project__",
    "__version__",
)
