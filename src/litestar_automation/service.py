"""Automation service wiring the engine components together.

The service is an explicit object: construct one per application (or per
test) and pass it to whoever needs it. The Litestar plugin does this through
dependency injection.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from litestar_automation.config import AutomationConfig
from litestar_automation.core.definition import ValidationResult
from litestar_automation.core.protocols import ToolCatalog
from litestar_automation.core.templates import BUILTIN_TEMPLATES, get_template
from litestar_automation.engine.clock import SystemClock
from litestar_automation.engine.local import LocalExecutionEngine
from litestar_automation.engine.metrics import MetricsAggregator
from litestar_automation.engine.registry import WorkflowRegistry
from litestar_automation.engine.scheduler import WorkflowScheduler
from litestar_automation.engine.triggers import TriggerRegistry
from litestar_automation.storage.base import InMemoryStateStore
from litestar_automation.storage.repository import StateRepository

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from litestar_automation.core.definition import Step, WorkflowDefinition, WorkflowVariable
    from litestar_automation.core.models import Execution, Schedule, Trigger, WorkflowMetrics
    from litestar_automation.core.protocols import Clock, EventBus, StateStore, ToolExecutor, UsageTracker
    from litestar_automation.core.templates import WorkflowTemplate
    from litestar_automation.core.types import ScheduleType, TriggerType

__all__ = ["AutomationService"]

logger = logging.getLogger(__name__)


class AutomationService:
    """Facade over the definition store, engine, scheduler, triggers and metrics.

    Mutating calls persist the collection they change. Call :meth:`initialize`
    before use to load persisted state and start the scheduler, and
    :meth:`shutdown` to cancel pending timers.

    Attributes:
        config: Service configuration.
        clock: Clock shared by every component.
        repository: State repository over the configured store.
        registry: Workflow definition store.
        engine: Execution engine.
        scheduler: Schedule manager.
        triggers: Trigger registry.
        metrics: Metrics aggregator.

    Example:
        >>> executor = FunctionToolExecutor()
        >>> service = AutomationService(executor)
        >>> await service.initialize()
        >>> result = await service.create_workflow("Cleanup", [Step(tool_id="text-cleaner", order=0)])
    """

    def __init__(
        self,
        tool_executor: ToolExecutor,
        config: AutomationConfig | None = None,
        *,
        usage_tracker: UsageTracker | None = None,
        state_store: StateStore | None = None,
        clock: Clock | None = None,
        event_bus: EventBus | None = None,
        tool_catalog: ToolCatalog | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            tool_executor: Executor running the tools of workflow steps.
            config: Optional configuration.
            usage_tracker: Optional recorder of successful tool runs.
            state_store: Optional store; state is kept in memory by default.
            clock: Optional clock; defaults to the system clock.
            event_bus: Optional event bus for execution events.
            tool_catalog: Optional catalog validating step tool IDs. Defaults
                to the tool executor when it can resolve tool IDs itself.
        """
        self.config = config or AutomationConfig()
        self.clock: Clock = clock or SystemClock()
        self.repository = StateRepository(
            state_store or InMemoryStateStore(),
            key_prefix=self.config.storage_key_prefix,
        )

        if tool_catalog is None and isinstance(tool_executor, ToolCatalog):
            tool_catalog = tool_executor

        self.registry = WorkflowRegistry(catalog=tool_catalog, now=self.clock.now)
        self.engine = LocalExecutionEngine(
            registry=self.registry,
            tool_executor=tool_executor,
            usage_tracker=usage_tracker,
            clock=self.clock,
            persistence=self.repository,
            event_bus=event_bus,
            history_limit=self.config.execution_history_limit,
        )
        self.scheduler = WorkflowScheduler(self.engine, clock=self.clock, persistence=self.repository)
        self.triggers = TriggerRegistry(self.engine, persistence=self.repository)
        self.metrics = MetricsAggregator(self.engine)

    async def initialize(self) -> None:
        """Load persisted state and start the scheduler.

        Raises:
            StateMigrationError: If persisted state cannot be migrated.
        """
        state = await self.repository.load()
        self.registry.load(state.workflows)
        self.engine.load(state.executions)
        self.scheduler.load(state.schedules)
        self.triggers.load(state.triggers)
        logger.info(
            "Loaded %d workflow(s), %d execution(s), %d schedule(s), %d trigger(s)",
            len(state.workflows),
            len(state.executions),
            len(state.schedules),
            len(state.triggers),
        )
        if self.config.start_scheduler:
            self.scheduler.start()

    async def shutdown(self) -> None:
        """Stop the scheduler and wait for timer callbacks already running."""
        self.scheduler.stop()
        if isinstance(self.clock, SystemClock):
            await self.clock.drain()

    # Workflows

    async def create_workflow(
        self,
        name: str,
        steps: Iterable[Step],
        description: str = "",
        *,
        variables: Iterable[WorkflowVariable] | None = None,
        tags: Iterable[str] | None = None,
    ) -> ValidationResult:
        result = self.registry.create(name, steps, description, variables=variables, tags=tags)
        if result.success:
            await self.repository.save_workflows(self.registry.snapshot())
        return result

    async def update_workflow(self, workflow_id: str, **changes: Any) -> ValidationResult:
        result = self.registry.update(workflow_id, **changes)
        if result.success:
            await self.repository.save_workflows(self.registry.snapshot())
        return result

    async def delete_workflow(self, workflow_id: str) -> bool:
        """Delete a workflow.

        Executions, schedules and triggers referencing it are kept; schedules
        and triggers log a failure when they next fire.
        """
        deleted = self.registry.delete(workflow_id)
        if deleted:
            await self.repository.save_workflows(self.registry.snapshot())
        return deleted

    def get_workflow(self, workflow_id: str) -> WorkflowDefinition | None:
        return self.registry.get(workflow_id)

    def list_workflows(self) -> list[WorkflowDefinition]:
        return self.registry.list_workflows()

    def list_templates(self) -> list[WorkflowTemplate]:
        return list(BUILTIN_TEMPLATES)

    async def create_workflow_from_template(self, template_id: str, name: str | None = None) -> ValidationResult:
        """Create a workflow from a built-in template.

        Args:
            template_id: Identifier of the template.
            name: Optional workflow name; defaults to the template's name.

        Returns:
            The ValidationResult; an unknown template is reported as an error.
        """
        template = get_template(template_id)
        if template is None:
            return ValidationResult.failed([f"Template '{template_id}' not found"])
        result = self.registry.create_from_template(template, name)
        if result.success:
            await self.repository.save_workflows(self.registry.snapshot())
        return result

    # Executions

    async def execute_workflow(
        self,
        workflow_id: str,
        auto_advance: bool | None = None,
        variables: dict[str, Any] | None = None,
    ) -> Execution | None:
        """Run a workflow.

        Args:
            workflow_id: The workflow to run.
            auto_advance: Execution-level auto-advance; the configured default when None.
            variables: Values for the workflow's variables.

        Returns:
            The execution, in whatever state the run left it, or None if the
            workflow does not exist. A missing required variable fails the
            execution before its first step.
        """
        if auto_advance is None:
            auto_advance = self.config.default_auto_advance
        return await self.engine.execute_workflow(workflow_id, auto_advance, variables)

    async def pause_execution(self, execution_id: str) -> bool:
        return await self.engine.pause_execution(execution_id)

    async def resume_execution(self, execution_id: str) -> bool:
        return await self.engine.resume_execution(execution_id)

    async def cancel_execution(self, execution_id: str) -> bool:
        return await self.engine.cancel_execution(execution_id)

    def get_execution(self, execution_id: str) -> Execution | None:
        return self.engine.get_execution(execution_id)

    def get_executions(self) -> list[Execution]:
        return self.engine.get_executions()

    def get_workflow_executions(self, workflow_id: str) -> list[Execution]:
        return self.engine.get_workflow_executions(workflow_id)

    def get_workflow_metrics(self, workflow_id: str) -> WorkflowMetrics:
        return self.metrics.get_workflow_metrics(workflow_id)

    # Schedules

    async def schedule_workflow(
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
        """Create a schedule for a workflow.

        Returns:
            The schedule, or None if the workflow does not exist.

        Raises:
            ScheduleValidationError: If the type-specific fields are inconsistent.
        """
        schedule = self.scheduler.add_schedule(
            workflow_id,
            type,
            name=name,
            scheduled_at=scheduled_at,
            interval_minutes=interval_minutes,
            days_of_week=days_of_week,
            day_of_month=day_of_month,
            enabled=enabled,
        )
        if schedule is not None:
            await self.scheduler.persist()
        return schedule

    async def update_schedule(self, schedule_id: str, **changes: Any) -> Schedule | None:
        schedule = self.scheduler.update_schedule(schedule_id, **changes)
        if schedule is not None:
            await self.scheduler.persist()
        return schedule

    async def enable_schedule(self, schedule_id: str) -> bool:
        enabled = self.scheduler.enable(schedule_id)
        if enabled:
            await self.scheduler.persist()
        return enabled

    async def disable_schedule(self, schedule_id: str) -> bool:
        disabled = self.scheduler.disable(schedule_id)
        if disabled:
            await self.scheduler.persist()
        return disabled

    async def delete_schedule(self, schedule_id: str) -> bool:
        removed = self.scheduler.remove_schedule(schedule_id)
        if removed:
            await self.scheduler.persist()
        return removed

    def get_schedule(self, schedule_id: str) -> Schedule | None:
        return self.scheduler.get_schedule(schedule_id)

    def get_schedules(self, workflow_id: str | None = None) -> list[Schedule]:
        return self.scheduler.get_schedules(workflow_id)

    # Triggers

    async def create_trigger(
        self,
        workflow_id: str,
        type: TriggerType,
        conditions: dict[str, Any] | None = None,
        enabled: bool = True,
    ) -> Trigger | None:
        """Create a trigger for a workflow.

        Returns:
            The trigger, or None if the workflow does not exist.
        """
        trigger = self.triggers.create_trigger(workflow_id, type, conditions, enabled)
        if trigger is not None:
            await self.triggers.persist()
        return trigger

    async def enable_trigger(self, trigger_id: str) -> bool:
        enabled = self.triggers.enable(trigger_id)
        if enabled:
            await self.triggers.persist()
        return enabled

    async def disable_trigger(self, trigger_id: str) -> bool:
        disabled = self.triggers.disable(trigger_id)
        if disabled:
            await self.triggers.persist()
        return disabled

    async def delete_trigger(self, trigger_id: str) -> bool:
        removed = self.triggers.remove_trigger(trigger_id)
        if removed:
            await self.triggers.persist()
        return removed

    def get_trigger(self, trigger_id: str) -> Trigger | None:
        return self.triggers.get_trigger(trigger_id)

    def get_triggers(self, workflow_id: str | None = None) -> list[Trigger]:
        return self.triggers.get_triggers(workflow_id)

    async def evaluate_triggers(
        self,
        event_type: TriggerType | str,
        payload: dict[str, Any] | None = None,
    ) -> list[Execution]:
        """Fire the triggers matching an event.

        Args:
            event_type: Class of the event.
            payload: Event attributes matched against trigger conditions.

        Returns:
            The executions started.
        """
        return await self.triggers.evaluate(event_type, payload)
