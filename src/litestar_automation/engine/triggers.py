"""Event-based triggers.

This module provides the trigger registry: triggers hold a condition payload,
and evaluating an event against them starts an execution for every enabled
trigger of the event's type whose conditions match.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from litestar_automation.core.conditions import matches
from litestar_automation.core.definition import generate_id
from litestar_automation.core.models import Trigger
from litestar_automation.core.types import ExecutionSource, TriggerType

if TYPE_CHECKING:
    from collections.abc import Iterable

    from litestar_automation.core.models import Execution
    from litestar_automation.engine.local import LocalExecutionEngine
    from litestar_automation.storage.repository import StateRepository

__all__ = ["TriggerRegistry"]

logger = logging.getLogger(__name__)


class TriggerRegistry:
    """Registry of event triggers.

    Attributes:
        engine: Engine that runs the executions.
        persistence: Optional state repository triggers are saved to after firing.
        _triggers: Triggers by ID.
    """

    def __init__(self, engine: LocalExecutionEngine, persistence: StateRepository | None = None) -> None:
        self.engine = engine
        self.persistence = persistence
        self._triggers: dict[str, Trigger] = {}

    def create_trigger(
        self,
        workflow_id: str,
        type: TriggerType,
        conditions: dict[str, Any] | None = None,
        enabled: bool = True,
    ) -> Trigger | None:
        """Create a trigger.

        Args:
            workflow_id: Workflow to execute when the trigger fires.
            type: Class of event the trigger listens to.
            conditions: Predicate matched against event payloads; empty matches every event.
            enabled: Whether the trigger is evaluated.

        Returns:
            The created trigger, or None if the workflow does not exist.

        Example:
            >>> trigger = triggers.create_trigger(
            ...     "wf_1", TriggerType.TOOL_USAGE, {"tool_id": "text-cleaner"}
            ... )
            >>> trigger.trigger_count
            0
        """
        if self.engine.registry.get(workflow_id) is None:
            return None

        trigger = Trigger(
            id=generate_id("trig"),
            workflow_id=workflow_id,
            type=TriggerType(type),
            created_at=self.engine.clock.now(),
            conditions=dict(conditions or {}),
            enabled=enabled,
        )
        self._triggers[trigger.id] = trigger
        logger.info("Created %s trigger %s for workflow %s", trigger.type, trigger.id, workflow_id)
        return trigger

    def enable(self, trigger_id: str) -> bool:
        trigger = self._triggers.get(trigger_id)
        if trigger is None:
            return False
        trigger.enabled = True
        return True

    def disable(self, trigger_id: str) -> bool:
        trigger = self._triggers.get(trigger_id)
        if trigger is None:
            return False
        trigger.enabled = False
        return True

    def remove_trigger(self, trigger_id: str) -> bool:
        removed = self._triggers.pop(trigger_id, None)
        if removed is not None:
            logger.info("Removed trigger %s", trigger_id)
        return removed is not None

    def get_trigger(self, trigger_id: str) -> Trigger | None:
        return self._triggers.get(trigger_id)

    def get_triggers(self, workflow_id: str | None = None) -> list[Trigger]:
        """List triggers, oldest first, optionally for one workflow only."""
        triggers = sorted(self._triggers.values(), key=lambda trigger: trigger.created_at)
        if workflow_id is None:
            return triggers
        return [trigger for trigger in triggers if trigger.workflow_id == workflow_id]

    async def evaluate(self, event_type: TriggerType | str, payload: dict[str, Any] | None = None) -> list[Execution]:
        """Fire every enabled trigger of ``event_type`` whose conditions match.

        The event payload is handed to the workflow as its variables. A
        trigger whose execution cannot start is logged and skipped; the
        remaining triggers are still evaluated.

        Args:
            event_type: Class of the event.
            payload: Event attributes matched against trigger conditions.

        Returns:
            The executions started, in trigger creation order.
        """
        event_type = TriggerType(event_type)
        payload = payload or {}
        executions: list[Execution] = []

        for trigger in self.get_triggers():
            if not trigger.enabled or trigger.type != event_type:
                continue
            try:
                if not matches(trigger.conditions, payload):
                    continue
            except ValueError as exc:
                logger.warning("Trigger %s has invalid conditions: %s", trigger.id, exc)
                continue

            try:
                execution = await self.engine.execute_workflow(
                    trigger.workflow_id,
                    variables=payload,
                    source=ExecutionSource.TRIGGERED,
                    source_id=trigger.id,
                )
            except Exception:
                logger.exception("Trigger %s could not start workflow %s", trigger.id, trigger.workflow_id)
                continue
            if execution is None:
                logger.warning("Trigger %s refers to unknown workflow %s", trigger.id, trigger.workflow_id)
                continue

            trigger.trigger_count += 1
            trigger.last_triggered = self.engine.clock.now()
            executions.append(execution)

        if executions:
            logger.info("Event %s fired %d trigger(s)", event_type, len(executions))
            await self.persist()
        return executions

    def load(self, triggers: Iterable[Trigger]) -> None:
        """Replace the triggers with previously persisted ones."""
        self._triggers = {trigger.id: trigger for trigger in triggers}

    def snapshot(self) -> list[Trigger]:
        """Return every trigger for persistence."""
        return self.get_triggers()

    async def persist(self) -> None:
        if self.persistence:
            await self.persistence.save_triggers(self.snapshot())
