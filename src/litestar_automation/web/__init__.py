"""Web layer for litestar-automation.

This module provides the REST API controllers, DTOs and exception handlers
for managing automation over HTTP. The API is registered automatically when
using AutomationPlugin with enable_api=True (the default).

Example:
    Basic usage with AutomationPlugin (API enabled by default)::

        from litestar import Litestar
        from litestar_automation import AutomationPlugin, AutomationPluginConfig

        app = Litestar(
            plugins=[
                AutomationPlugin(
                    config=AutomationPluginConfig(
                        enable_api=True,  # Default
                        api_path_prefix="/automation",
                    )
                ),
            ],
        )

    With authentication guards::

        config = AutomationPluginConfig(
            api_path_prefix="/api/v1/automation",
            api_guards=[require_auth_guard],
        )
"""

from __future__ import annotations

from litestar_automation.web.controllers import (
    ExecutionController,
    ScheduleController,
    TemplateController,
    TriggerController,
    WorkflowController,
)
from litestar_automation.web.dto import (
    CreateScheduleDTO,
    CreateTriggerDTO,
    CreateWorkflowDTO,
    EvaluateTriggersDTO,
    ExecuteWorkflowDTO,
    ExecutionDTO,
    FromTemplateDTO,
    MetricsDTO,
    ScheduleDTO,
    StepDTO,
    StepResultDTO,
    TemplateDTO,
    TriggerDTO,
    UpdateScheduleDTO,
    UpdateWorkflowDTO,
    VariableDTO,
    WorkflowDTO,
)
from litestar_automation.web.exceptions import automation_exception_handlers

__all__ = [
    "CreateScheduleDTO",
    "CreateTriggerDTO",
    "CreateWorkflowDTO",
    "EvaluateTriggersDTO",
    "ExecuteWorkflowDTO",
    "ExecutionController",
    "ExecutionDTO",
    "FromTemplateDTO",
    "MetricsDTO",
    "ScheduleController",
    "ScheduleDTO",
    "StepDTO",
    "StepResultDTO",
    "TemplateController",
    "TemplateDTO",
    "TriggerController",
    "TriggerDTO",
    "UpdateScheduleDTO",
    "UpdateWorkflowDTO",
    "VariableDTO",
    "WorkflowController",
    "WorkflowDTO",
    "automation_exception_handlers",
]
