"""Local in-memory async execution engine.

This module provides the in-process execution engine: it snapshots a workflow
definition into an Execution, drives the step loop against a pluggable tool
executor and owns the execution state machine.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from litestar_automation.core.definition import generate_id
from litestar_automation.core.models import Execution, StepResult, ToolResult
from litestar_automation.core.types import ExecutionSource, ExecutionStatus, StepStatus
from litestar_automation.engine.clock import SystemClock
from litestar_automation.exceptions import InvalidTransitionError, StepExecutionError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from litestar_automation.core.protocols import Clock, EventBus, ToolExecutor, UsageTracker
    from litestar_automation.engine.registry import WorkflowRegistry
    from litestar_automation.storage.repository import StateRepository

__all__ = ["LocalExecutionEngine"]

logger = logging.getLogger(__name__)

_TRANSITIONS: dict[ExecutionStatus, frozenset[ExecutionStatus]] = {
    ExecutionStatus.PENDING: frozenset({ExecutionStatus.RUNNING}),
    ExecutionStatus.RUNNING: frozenset(
        {
            ExecutionStatus.PAUSED,
            ExecutionStatus.COMPLETED,
            ExecutionStatus.FAILED,
            ExecutionStatus.CANCELLED,
        }
    ),
    ExecutionStatus.PAUSED: frozenset({ExecutionStatus.RUNNING, ExecutionStatus.CANCELLED}),
    ExecutionStatus.COMPLETED: frozenset(),
    ExecutionStatus.FAILED: frozenset(),
    ExecutionStatus.CANCELLED: frozenset(),
}


class LocalExecutionEngine:
    """In-memory async execution engine for workflows.

    Executions run in the caller's task: ``execute_workflow`` and
    ``resume_execution`` return once the execution completes, fails, is
    cancelled or pauses. Other executions progress while a step awaits its
    tool or its wait time.

    Attributes:
        registry: The workflow registry for looking up definitions.
        tool_executor: Runs the tool of each step.
        usage_tracker: Optional fire-and-forget tool usage recorder.
        clock: Time source for timestamps and wait times.
        persistence: Optional state repository the execution history is saved to.
        event_bus: Optional event bus for emitting execution events.
        history_limit: Maximum number of executions kept; the oldest finished
            executions are pruned beyond it.
        _executions: In-memory storage of executions by ID.
        _active: IDs of executions whose step loop is currently running.
    """

    def __init__(
        self,
        registry: WorkflowRegistry,
        tool_executor: ToolExecutor,
        usage_tracker: UsageTracker | None = None,
        clock: Clock | None = None,
        persistence: StateRepository | None = None,
        event_bus: EventBus | None = None,
        history_limit: int | None = None,
    ) -> None:
        """Initialize the local execution engine.

        Args:
            registry: The workflow registry.
            tool_executor: Executor invoked for every step.
            usage_tracker: Optional usage recorder notified of successful steps.
            clock: Optional clock; defaults to the system clock.
            persistence: Optional state repository.
            event_bus: Optional event bus implementing emit method.
            history_limit: Optional cap on the number of stored executions.
        """
        self.registry = registry
        self.tool_executor = tool_executor
        self.usage_tracker = usage_tracker
        self.clock: Clock = clock or SystemClock()
        self.persistence = persistence
        self.event_bus = event_bus
        self.history_limit = history_limit
        self._executions: dict[str, Execution] = {}
        self._active: set[str] = set()

    async def execute_workflow(
        self,
        workflow_id: str,
        auto_advance: bool = True,
        variables: dict[str, Any] | None = None,
        *,
        source: ExecutionSource = ExecutionSource.MANUAL,
        source_id: str | None = None,
    ) -> Execution | None:
        """Start a new execution of a workflow and run it.

        Step failures and missing required variables are recorded on the
        returned execution, never raised.

        Args:
            workflow_id: The workflow to run.
            auto_advance: Execution-level auto-advance; False pauses after every step.
            variables: Values for the workflow's variables.
            source: What is starting the execution.
            source_id: Schedule or trigger starting the execution, if any.

        Returns:
            The execution, in whatever state the run left it, or None if the
            workflow does not exist.

        Example:
            >>> execution = await engine.execute_workflow("wf_1", variables={"text": " hi "})
            >>> execution.status
            <ExecutionStatus.COMPLETED: 'completed'>
        """
        definition = self.registry.get(workflow_id)
        if definition is None:
            logger.warning("Cannot execute unknown workflow %s", workflow_id)
            return None

        resolved, missing = definition.resolve_variables(variables)
        steps = definition.ordered_steps()
        execution = Execution(
            id=generate_id("exec"),
            workflow_id=workflow_id,
            steps=steps,
            step_results=[StepResult(step_index=index, tool_id=step.tool_id) for index, step in enumerate(steps)],
            started_at=self.clock.now(),
            auto_advance_enabled=auto_advance,
            variables=resolved,
            source=source,
            source_id=source_id,
        )
        self._executions[execution.id] = execution

        self._transition(execution, ExecutionStatus.RUNNING)
        logger.info(
            "Started execution %s of workflow %s (%s, %d step(s))",
            execution.id,
            workflow_id,
            source,
            len(steps),
        )
        await self._persist()
        await self._emit("execution.started", execution, source=str(source))

        if missing:
            execution.error = "; ".join(f"Variable '{name}' is required" for name in missing)
            self._transition(execution, ExecutionStatus.FAILED)
            logger.info("Execution %s failed: %s", execution.id, execution.error)
            await self._finish(execution, "execution.failed")
            return execution

        await self._run(execution)
        return execution

    async def pause_execution(self, execution_id: str) -> bool:
        """Request a pause of a running execution.

        A step whose tool is in flight still finishes and is recorded; no
        further step starts until the execution is resumed.

        Args:
            execution_id: The execution to pause.

        Returns:
            True if the execution was running and is now paused.
        """
        execution = self._executions.get(execution_id)
        if execution is None or execution.status != ExecutionStatus.RUNNING:
            return False

        self._transition(execution, ExecutionStatus.PAUSED)
        logger.info("Paused execution %s at step %d", execution.id, execution.current_step_index + 1)
        await self._persist()
        await self._emit("execution.paused", execution)
        return True

    async def resume_execution(self, execution_id: str) -> bool:
        """Resume a paused execution.

        The step loop continues with the first step that has not completed;
        completed steps are never run again.

        Args:
            execution_id: The execution to resume.

        Returns:
            True if the execution was paused and has been resumed.
        """
        execution = self._executions.get(execution_id)
        if execution is None or execution.status != ExecutionStatus.PAUSED:
            return False

        self._transition(execution, ExecutionStatus.RUNNING)
        logger.info("Resumed execution %s", execution.id)
        await self._persist()
        await self._emit("execution.resumed", execution)

        # The loop that was paused while its tool was in flight picks the execution up again.
        if execution.id not in self._active:
            await self._run(execution)
        return True

    async def cancel_execution(self, execution_id: str) -> bool:
        """Cancel a running or paused execution.

        Args:
            execution_id: The execution to cancel.

        Returns:
            True if the execution was cancelled; False for unknown or finished executions.
        """
        execution = self._executions.get(execution_id)
        if execution is None or execution.is_terminal:
            return False

        self._transition(execution, ExecutionStatus.CANCELLED)
        logger.info("Cancelled execution %s", execution.id)
        await self._finish(execution, "execution.cancelled")
        return True

    def get_execution(self, execution_id: str) -> Execution | None:
        """Retrieve an execution by ID."""
        return self._executions.get(execution_id)

    def get_executions(self) -> list[Execution]:
        """Return every stored execution, newest first."""
        return sorted(self._executions.values(), key=lambda execution: execution.started_at, reverse=True)

    def get_workflow_executions(self, workflow_id: str) -> list[Execution]:
        """Return the executions of one workflow, newest first."""
        return [execution for execution in self.get_executions() if execution.workflow_id == workflow_id]

    def get_running_executions(self) -> list[Execution]:
        """Return executions that are running or paused."""
        return [execution for execution in self.get_executions() if not execution.is_terminal]

    def load(self, executions: Iterable[Execution]) -> None:
        """Replace the history with previously persisted executions.

        Executions persisted while running lost their step loop; they come
        back paused so they can be resumed. A step that was still in flight
        when the process stopped is reset to pending.

        Args:
            executions: The executions to load.
        """
        self._executions = {}
        for execution in executions:
            if not execution.is_terminal:
                for result in execution.step_results:
                    if result.status == StepStatus.RUNNING:
                        result.status = StepStatus.PENDING
                        result.started_at = None
            if execution.status == ExecutionStatus.RUNNING:
                self._transition(execution, ExecutionStatus.PAUSED)
                logger.warning("Execution %s was interrupted and has been paused", execution.id)
            self._executions[execution.id] = execution

    def snapshot(self) -> list[Execution]:
        """Return every stored execution for persistence."""
        return self.get_executions()

    async def _run(self, execution: Execution) -> None:
        """Drive the step loop until the execution leaves the running state."""
        self._active.add(execution.id)
        try:
            await self._run_steps(execution)
        finally:
            self._active.discard(execution.id)

    async def _run_steps(self, execution: Execution) -> None:
        index = self._next_step_index(execution)

        while index < len(execution.steps):
            if execution.status != ExecutionStatus.RUNNING:
                return

            execution.current_step_index = index
            step = execution.steps[index]
            result = execution.step_results[index]

            if result.status == StepStatus.FAILED:
                # The step failed while a pause was pending.
                await self._fail(execution, index, result.error or "unknown error")
                return

            result.status = StepStatus.RUNNING
            result.started_at = self.clock.now()
            outcome = await self._invoke_tool(step.tool_id, execution.variables)
            result.completed_at = self.clock.now()
            result.duration = (result.completed_at - result.started_at).total_seconds()

            if not outcome.success:
                result.status = StepStatus.FAILED
                result.error = outcome.error or "Tool reported a failure"
                if execution.status == ExecutionStatus.RUNNING:
                    await self._fail(execution, index, result.error)
                else:
                    await self._persist()
                return

            result.status = StepStatus.COMPLETED
            result.data = outcome.data
            self._record_usage(step.tool_id)

            if execution.status != ExecutionStatus.RUNNING:
                # Paused or cancelled while the tool was in flight.
                await self._persist()
                return

            if not (step.auto_advance and execution.auto_advance_enabled):
                self._transition(execution, ExecutionStatus.PAUSED)
                logger.info("Execution %s paused after step %d", execution.id, index + 1)
                await self._persist()
                await self._emit("execution.paused", execution)
                return

            if step.wait_time and index + 1 < len(execution.steps):
                await self.clock.sleep(step.wait_time)
            index += 1

        if execution.status != ExecutionStatus.RUNNING:
            return

        execution.current_step_index = len(execution.steps)
        self._transition(execution, ExecutionStatus.COMPLETED)
        logger.info("Execution %s completed in %.3fs", execution.id, execution.total_duration or 0.0)
        await self._finish(execution, "execution.completed")

    async def _invoke_tool(self, tool_id: str, variables: dict[str, Any]) -> ToolResult:
        try:
            return await self.tool_executor.invoke(tool_id, dict(variables))
        except Exception as exc:
            return ToolResult(success=False, error=str(exc) or exc.__class__.__name__)

    def _record_usage(self, tool_id: str) -> None:
        if self.usage_tracker is None:
            return
        try:
            self.usage_tracker.record_usage(tool_id)
        except Exception:
            logger.warning("Failed to record usage of tool %s", tool_id, exc_info=True)

    async def _fail(self, execution: Execution, index: int, cause: str) -> None:
        execution.error = str(StepExecutionError(index, cause))
        self._transition(execution, ExecutionStatus.FAILED)
        logger.info("Execution %s failed: %s", execution.id, execution.error)
        await self._finish(execution, "execution.failed")

    async def _finish(self, execution: Execution, event_type: str) -> None:
        self._prune_history()
        await self._persist()
        await self._emit(event_type, execution)

    def _next_step_index(self, execution: Execution) -> int:
        for index in range(execution.current_step_index, len(execution.step_results)):
            if execution.step_results[index].status != StepStatus.COMPLETED:
                return index
        return len(execution.step_results)

    def _transition(self, execution: Execution, status: ExecutionStatus) -> None:
        """Move an execution along an edge of the state machine.

        Raises:
            InvalidTransitionError: If the edge does not exist.
        """
        if status not in _TRANSITIONS[execution.status]:
            raise InvalidTransitionError(execution.id, str(execution.status), str(status))

        now = self.clock.now()
        execution.status = status
        if status == ExecutionStatus.PAUSED:
            execution.paused_at = now
        elif status == ExecutionStatus.RUNNING:
            execution.paused_at = None
        if execution.is_terminal:
            execution.completed_at = now
            execution.total_duration = (now - execution.started_at).total_seconds()

    def _prune_history(self) -> None:
        if self.history_limit is None or len(self._executions) <= self.history_limit:
            return
        finished = sorted(
            (execution for execution in self._executions.values() if execution.is_terminal),
            key=lambda execution: execution.started_at,
        )
        for execution in finished[: len(self._executions) - self.history_limit]:
            del self._executions[execution.id]
            logger.debug("Pruned execution %s from history", execution.id)

    async def _persist(self) -> None:
        if self.persistence is None:
            return
        try:
            await self.persistence.save_executions(self.snapshot())
        except Exception:
            logger.warning("Failed to persist execution history", exc_info=True)

    async def _emit(self, event_type: str, execution: Execution, **extra: Any) -> None:
        if self.event_bus is None:
            return
        try:
            await self.event_bus.emit(
                event_type,
                execution_id=execution.id,
                workflow_id=execution.workflow_id,
                status=str(execution.status),
                **extra,
            )
        except Exception:
            logger.warning("Failed to emit %s for execution %s", event_type, execution.id, exc_info=True)
