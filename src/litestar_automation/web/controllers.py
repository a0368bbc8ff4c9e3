"""REST API controllers for workflow automation.

This module provides the controller classes for managing automation:
- WorkflowController: Create, edit, run and inspect workflow definitions
- TemplateController: List the built-in workflow templates
- ExecutionController: Monitor and control executions
- ScheduleController: Manage time-based schedules
- TriggerController: Manage event triggers and deliver events
"""

from __future__ import annotations

from typing import ClassVar

from litestar import Controller, delete, get, patch, post
from litestar.exceptions import NotFoundException
from litestar.params import Parameter
from litestar.status_codes import HTTP_200_OK

from litestar_automation.core.types import ExecutionStatus
from litestar_automation.exceptions import (
    ExecutionNotFoundError,
    InvalidTransitionError,
    ScheduleNotFoundError,
    TriggerNotFoundError,
    WorkflowNotFoundError,
    WorkflowValidationError,
)
from litestar_automation.service import AutomationService  # noqa: TC001 - needed for DI
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
    TemplateDTO,
    TriggerDTO,
    UpdateScheduleDTO,
    UpdateWorkflowDTO,
    WorkflowDTO,
)

__all__ = [
    "ExecutionController",
    "ScheduleController",
    "TemplateController",
    "TriggerController",
    "WorkflowController",
]


class WorkflowController(Controller):
    """API controller for workflow definitions.

    Provides endpoints for creating, updating and deleting workflows, running
    them and reading their execution history and metrics.

    Tags: Workflows
    """

    path = "/workflows"
    tags: ClassVar[list[str]] = ["Workflows"]

    @get("/")
    async def list_workflows(self, automation: AutomationService) -> list[WorkflowDTO]:
        """List all workflow definitions, oldest first."""
        return [WorkflowDTO.from_definition(definition) for definition in automation.list_workflows()]

    @post("/")
    async def create_workflow(self, data: CreateWorkflowDTO, automation: AutomationService) -> WorkflowDTO:
        """Create a workflow.

        Args:
            data: The workflow to create.
            automation: Injected automation service.

        Returns:
            The stored workflow.

        Raises:
            WorkflowValidationError: If the definition is invalid; every problem is listed.
        """
        result = await automation.create_workflow(
            data.name,
            [step.to_step() for step in data.steps],
            data.description,
            variables=[variable.to_variable() for variable in data.variables],
            tags=data.tags,
        )
        if not result.success or result.workflow is None:
            raise WorkflowValidationError(result.errors)
        return WorkflowDTO.from_definition(result.workflow)

    @post("/from-template")
    async def create_from_template(self, data: FromTemplateDTO, automation: AutomationService) -> WorkflowDTO:
        """Create a workflow from a built-in template.

        Raises:
            NotFoundException: If the template does not exist.
            WorkflowValidationError: If the resulting workflow is invalid.
        """
        if data.template_id not in {template.id for template in automation.list_templates()}:
            raise NotFoundException(detail=f"Template '{data.template_id}' not found")

        result = await automation.create_workflow_from_template(data.template_id, data.name)
        if not result.success or result.workflow is None:
            raise WorkflowValidationError(result.errors)
        return WorkflowDTO.from_definition(result.workflow)

    @get("/{workflow_id:str}")
    async def get_workflow(self, workflow_id: str, automation: AutomationService) -> WorkflowDTO:
        """Get a workflow definition by ID.

        Raises:
            WorkflowNotFoundError: If the workflow does not exist.
        """
        definition = automation.get_workflow(workflow_id)
        if definition is None:
            raise WorkflowNotFoundError(workflow_id)
        return WorkflowDTO.from_definition(definition)

    @patch("/{workflow_id:str}")
    async def update_workflow(
        self,
        workflow_id: str,
        data: UpdateWorkflowDTO,
        automation: AutomationService,
    ) -> WorkflowDTO:
        """Apply a partial update to a workflow.

        Args:
            workflow_id: The workflow to update.
            data: The fields to change.
            automation: Injected automation service.

        Returns:
            The updated workflow.

        Raises:
            WorkflowNotFoundError: If the workflow does not exist.
            WorkflowValidationError: If the updated definition is invalid.
        """
        if automation.get_workflow(workflow_id) is None:
            raise WorkflowNotFoundError(workflow_id)

        result = await automation.update_workflow(workflow_id, **data.to_changes())
        if not result.success or result.workflow is None:
            raise WorkflowValidationError(result.errors)
        return WorkflowDTO.from_definition(result.workflow)

    @delete("/{workflow_id:str}")
    async def delete_workflow(self, workflow_id: str, automation: AutomationService) -> None:
        """Delete a workflow.

        Raises:
            WorkflowNotFoundError: If the workflow does not exist.
        """
        if not await automation.delete_workflow(workflow_id):
            raise WorkflowNotFoundError(workflow_id)

    @post("/{workflow_id:str}/execute")
    async def execute_workflow(
        self,
        workflow_id: str,
        automation: AutomationService,
        data: ExecuteWorkflowDTO | None = None,
    ) -> ExecutionDTO:
        """Run a workflow.

        The response is sent once the execution completes, fails or pauses.

        Args:
            workflow_id: The workflow to run.
            automation: Injected automation service.
            data: Optional execution options.

        Returns:
            The execution.

        Raises:
            WorkflowNotFoundError: If the workflow does not exist.
            WorkflowValidationError: If a required variable is missing.
        """
        options = data or ExecuteWorkflowDTO()
        workflow = automation.get_workflow(workflow_id)
        if workflow is None:
            raise WorkflowNotFoundError(workflow_id)
        _, missing = workflow.resolve_variables(options.variables)
        if missing:
            raise WorkflowValidationError([f"Variable '{name}' is required" for name in missing])

        execution = await automation.execute_workflow(workflow_id, options.auto_advance, options.variables)
        if execution is None:
            raise WorkflowNotFoundError(workflow_id)
        return ExecutionDTO.from_execution(execution)

    @get("/{workflow_id:str}/executions")
    async def list_workflow_executions(self, workflow_id: str, automation: AutomationService) -> list[ExecutionDTO]:
        """List the executions of a workflow, newest first.

        Raises:
            WorkflowNotFoundError: If the workflow does not exist.
        """
        if automation.get_workflow(workflow_id) is None:
            raise WorkflowNotFoundError(workflow_id)
        executions = automation.get_workflow_executions(workflow_id)
        return [ExecutionDTO.from_execution(execution) for execution in executions]

    @get("/{workflow_id:str}/metrics")
    async def get_workflow_metrics(self, workflow_id: str, automation: AutomationService) -> MetricsDTO:
        """Get aggregate statistics over a workflow's executions.

        Raises:
            WorkflowNotFoundError: If the workflow does not exist.
        """
        if automation.get_workflow(workflow_id) is None:
            raise WorkflowNotFoundError(workflow_id)
        return MetricsDTO.from_metrics(automation.get_workflow_metrics(workflow_id))


class TemplateController(Controller):
    """API controller for built-in workflow templates.

    Tags: Workflow Templates
    """

    path = "/templates"
    tags: ClassVar[list[str]] = ["Workflow Templates"]

    @get("/")
    async def list_templates(self, automation: AutomationService) -> list[TemplateDTO]:
        """List the built-in workflow templates."""
        return [TemplateDTO.from_template(template) for template in automation.list_templates()]


class ExecutionController(Controller):
    """API controller for workflow executions.

    Provides endpoints for monitoring executions and for pausing, resuming
    and cancelling them.

    Tags: Workflow Executions
    """

    path = "/executions"
    tags: ClassVar[list[str]] = ["Workflow Executions"]

    @get("/")
    async def list_executions(
        self,
        automation: AutomationService,
        workflow_id: str | None = Parameter(
            default=None,
            description="Filter by workflow ID",
        ),
        status: ExecutionStatus | None = Parameter(
            default=None,
            description="Filter by execution status",
        ),
    ) -> list[ExecutionDTO]:
        """List executions, newest first.

        Args:
            automation: Injected automation service.
            workflow_id: Optional workflow filter.
            status: Optional status filter.

        Returns:
            List of execution DTOs.
        """
        if workflow_id is not None:
            executions = automation.get_workflow_executions(workflow_id)
        else:
            executions = automation.get_executions()
        if status is not None:
            executions = [execution for execution in executions if execution.status == status]
        return [ExecutionDTO.from_execution(execution) for execution in executions]

    @get("/{execution_id:str}")
    async def get_execution(self, execution_id: str, automation: AutomationService) -> ExecutionDTO:
        """Get an execution with its step results.

        Raises:
            ExecutionNotFoundError: If the execution does not exist.
        """
        execution = automation.get_execution(execution_id)
        if execution is None:
            raise ExecutionNotFoundError(execution_id)
        return ExecutionDTO.from_execution(execution)

    @post("/{execution_id:str}/pause", status_code=HTTP_200_OK)
    async def pause_execution(self, execution_id: str, automation: AutomationService) -> ExecutionDTO:
        """Pause a running execution.

        Raises:
            ExecutionNotFoundError: If the execution does not exist.
            InvalidTransitionError: If the execution is not running.
        """
        return await self._control(execution_id, automation, ExecutionStatus.PAUSED)

    @post("/{execution_id:str}/resume", status_code=HTTP_200_OK)
    async def resume_execution(self, execution_id: str, automation: AutomationService) -> ExecutionDTO:
        """Resume a paused execution.

        The response is sent once the execution completes, fails or pauses again.

        Raises:
            ExecutionNotFoundError: If the execution does not exist.
            InvalidTransitionError: If the execution is not paused.
        """
        return await self._control(execution_id, automation, ExecutionStatus.RUNNING)

    @post("/{execution_id:str}/cancel", status_code=HTTP_200_OK)
    async def cancel_execution(self, execution_id: str, automation: AutomationService) -> ExecutionDTO:
        """Cancel a running or paused execution.

        Raises:
            ExecutionNotFoundError: If the execution does not exist.
            InvalidTransitionError: If the execution already finished.
        """
        return await self._control(execution_id, automation, ExecutionStatus.CANCELLED)

    @staticmethod
    async def _control(execution_id: str, automation: AutomationService, target: ExecutionStatus) -> ExecutionDTO:
        execution = automation.get_execution(execution_id)
        if execution is None:
            raise ExecutionNotFoundError(execution_id)

        current = execution.status
        if target == ExecutionStatus.PAUSED:
            accepted = await automation.pause_execution(execution_id)
        elif target == ExecutionStatus.RUNNING:
            accepted = await automation.resume_execution(execution_id)
        else:
            accepted = await automation.cancel_execution(execution_id)

        if not accepted:
            raise InvalidTransitionError(execution_id, str(current), str(target))
        return ExecutionDTO.from_execution(execution)


class ScheduleController(Controller):
    """API controller for schedules.

    Tags: Workflow Schedules
    """

    path = "/schedules"
    tags: ClassVar[list[str]] = ["Workflow Schedules"]

    @get("/")
    async def list_schedules(
        self,
        automation: AutomationService,
        workflow_id: str | None = Parameter(
            default=None,
            description="Filter by workflow ID",
        ),
    ) -> list[ScheduleDTO]:
        """List schedules, oldest first."""
        return [ScheduleDTO.from_schedule(schedule) for schedule in automation.get_schedules(workflow_id)]

    @post("/")
    async def create_schedule(self, data: CreateScheduleDTO, automation: AutomationService) -> ScheduleDTO:
        """Create a schedule.

        Raises:
            WorkflowNotFoundError: If the workflow does not exist.
            ScheduleValidationError: If the type-specific fields are inconsistent.
        """
        schedule = await automation.schedule_workflow(
            data.workflow_id,
            data.type,
            name=data.name,
            scheduled_at=data.scheduled_at,
            interval_minutes=data.interval_minutes,
            days_of_week=data.days_of_week,
            day_of_month=data.day_of_month,
            enabled=data.enabled,
        )
        if schedule is None:
            raise WorkflowNotFoundError(data.workflow_id)
        return ScheduleDTO.from_schedule(schedule)

    @patch("/{schedule_id:str}")
    async def update_schedule(
        self,
        schedule_id: str,
        data: UpdateScheduleDTO,
        automation: AutomationService,
    ) -> ScheduleDTO:
        """Change the parameters of a schedule; ``next_run`` is recomputed.

        Raises:
            ScheduleNotFoundError: If the schedule does not exist.
            ScheduleValidationError: If the changes are invalid.
        """
        schedule = await automation.update_schedule(schedule_id, **data.to_changes())
        if schedule is None:
            raise ScheduleNotFoundError(schedule_id)
        return ScheduleDTO.from_schedule(schedule)

    @delete("/{schedule_id:str}")
    async def delete_schedule(self, schedule_id: str, automation: AutomationService) -> None:
        """Delete a schedule and cancel its pending run.

        Raises:
            ScheduleNotFoundError: If the schedule does not exist.
        """
        if not await automation.delete_schedule(schedule_id):
            raise ScheduleNotFoundError(schedule_id)

    @post("/{schedule_id:str}/enable", status_code=HTTP_200_OK)
    async def enable_schedule(self, schedule_id: str, automation: AutomationService) -> ScheduleDTO:
        """Enable a schedule.

        Raises:
            ScheduleNotFoundError: If the schedule does not exist.
        """
        if not await automation.enable_schedule(schedule_id):
            raise ScheduleNotFoundError(schedule_id)
        return ScheduleDTO.from_schedule(automation.get_schedule(schedule_id))  # type: ignore[arg-type]

    @post("/{schedule_id:str}/disable", status_code=HTTP_200_OK)
    async def disable_schedule(self, schedule_id: str, automation: AutomationService) -> ScheduleDTO:
        """Disable a schedule; no further execution is created until it is enabled.

        Raises:
            ScheduleNotFoundError: If the schedule does not exist.
        """
        if not await automation.disable_schedule(schedule_id):
            raise ScheduleNotFoundError(schedule_id)
        return ScheduleDTO.from_schedule(automation.get_schedule(schedule_id))  # type: ignore[arg-type]


class TriggerController(Controller):
    """API controller for event triggers.

    Tags: Workflow Triggers
    """

    path = "/triggers"
    tags: ClassVar[list[str]] = ["Workflow Triggers"]

    @get("/")
    async def list_triggers(
        self,
        automation: AutomationService,
        workflow_id: str | None = Parameter(
            default=None,
            description="Filter by workflow ID",
        ),
    ) -> list[TriggerDTO]:
        """List triggers, oldest first."""
        return [TriggerDTO.from_trigger(trigger) for trigger in automation.get_triggers(workflow_id)]

    @post("/")
    async def create_trigger(self, data: CreateTriggerDTO, automation: AutomationService) -> TriggerDTO:
        """Create a trigger.

        Raises:
            WorkflowNotFoundError: If the workflow does not exist.
        """
        trigger = await automation.create_trigger(data.workflow_id, data.type, data.conditions, data.enabled)
        if trigger is None:
            raise WorkflowNotFoundError(data.workflow_id)
        return TriggerDTO.from_trigger(trigger)

    @delete("/{trigger_id:str}")
    async def delete_trigger(self, trigger_id: str, automation: AutomationService) -> None:
        """Delete a trigger.

        Raises:
            TriggerNotFoundError: If the trigger does not exist.
        """
        if not await automation.delete_trigger(trigger_id):
            raise TriggerNotFoundError(trigger_id)

    @post("/{trigger_id:str}/enable", status_code=HTTP_200_OK)
    async def enable_trigger(self, trigger_id: str, automation: AutomationService) -> TriggerDTO:
        """Enable a trigger.

        Raises:
            TriggerNotFoundError: If the trigger does not exist.
        """
        if not await automation.enable_trigger(trigger_id):
            raise TriggerNotFoundError(trigger_id)
        return TriggerDTO.from_trigger(automation.get_trigger(trigger_id))  # type: ignore[arg-type]

    @post("/{trigger_id:str}/disable", status_code=HTTP_200_OK)
    async def disable_trigger(self, trigger_id: str, automation: AutomationService) -> TriggerDTO:
        """Disable a trigger.

        Raises:
            TriggerNotFoundError: If the trigger does not exist.
        """
        if not await automation.disable_trigger(trigger_id):
            raise TriggerNotFoundError(trigger_id)
        return TriggerDTO.from_trigger(automation.get_trigger(trigger_id))  # type: ignore[arg-type]

    @post("/evaluate", status_code=HTTP_200_OK)
    async def evaluate_triggers(self, data: EvaluateTriggersDTO, automation: AutomationService) -> list[ExecutionDTO]:
        """Deliver an event to the triggers.

        Every enabled trigger of the event's type whose conditions match the
        payload starts an execution.

        Args:
            data: The event.
            automation: Injected automation service.

        Returns:
            The executions started.
        """
        executions = await automation.evaluate_triggers(data.event_type, data.payload)
        return [ExecutionDTO.from_execution(execution) for execution in executions]
