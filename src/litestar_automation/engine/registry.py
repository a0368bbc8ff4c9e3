"""Workflow registry for managing workflow definitions.

This module provides the definition store: creating, updating, deleting and
looking up workflow definitions. Create and update validate the whole
definition and report every problem as a list instead of raising, so callers
can present them all at once.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from litestar_automation.core.definition import (
    Step,
    ValidationResult,
    WorkflowDefinition,
    WorkflowVariable,
    generate_id,
    validate_definition,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from litestar_automation.core.protocols import ToolCatalog
    from litestar_automation.core.templates import WorkflowTemplate

__all__ = ["WorkflowRegistry"]

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = frozenset({"name", "description", "steps", "variables", "tags"})


class WorkflowRegistry:
    """Registry for storing and retrieving workflow definitions.

    Attributes:
        catalog: Optional tool catalog; when set, every step must reference a
            tool the catalog knows.
        _definitions: Map of workflow IDs to definitions.
    """

    def __init__(
        self,
        catalog: ToolCatalog | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize an empty workflow registry.

        Args:
            catalog: Optional tool catalog used to resolve step tool IDs.
            now: Optional time source for audit timestamps.
        """
        self.catalog = catalog
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._definitions: dict[str, WorkflowDefinition] = {}

    def create(
        self,
        name: str,
        steps: Iterable[Step],
        description: str = "",
        *,
        variables: Iterable[WorkflowVariable] | None = None,
        tags: Iterable[str] | None = None,
    ) -> ValidationResult:
        """Validate and store a new workflow definition.

        Args:
            name: Workflow name; must be non-empty and unique (case-insensitive).
            steps: Steps of the workflow.
            description: Human-readable description.
            variables: Variables the steps expect.
            tags: Free-form labels.

        Returns:
            A ValidationResult carrying the stored workflow, or every error found.

        Example:
            >>> registry = WorkflowRegistry()
            >>> result = registry.create("Cleanup", [Step(tool_id="text-cleaner", order=0)])
            >>> result.success
            True
        """
        steps = list(steps)
        errors = self._validate(name, steps)
        if errors:
            return ValidationResult.failed(errors)

        now = self._now()
        definition = WorkflowDefinition(
            id=generate_id("wf"),
            name=name.strip(),
            steps=steps,
            description=description,
            variables=list(variables or []),
            tags=list(tags or []),
            created_at=now,
            updated_at=now,
        )
        self._definitions[definition.id] = definition
        logger.info("Created workflow %s (%s) with %d step(s)", definition.id, definition.name, len(steps))
        return ValidationResult(success=True, workflow=definition)

    def create_from_template(self, template: WorkflowTemplate, name: str | None = None) -> ValidationResult:
        """Create a workflow from a template.

        Args:
            template: The template to copy steps and variables from.
            name: Optional workflow name; defaults to the template's name.

        Returns:
            The ValidationResult of the underlying :meth:`create`.
        """
        return self.create(
            name or template.name,
            template.steps,
            template.description,
            variables=template.variables,
            tags=template.tags,
        )

    def update(self, workflow_id: str, **changes: Any) -> ValidationResult:
        """Validate and apply changes to a stored workflow.

        The stored definition is replaced by a new object; executions that
        already snapshotted its steps are unaffected.

        Args:
            workflow_id: The workflow to update.
            **changes: New values for ``name``, ``description``, ``steps``,
                ``variables`` or ``tags``.

        Returns:
            A ValidationResult carrying the updated workflow, or every error found.
        """
        current = self._definitions.get(workflow_id)
        if current is None:
            return ValidationResult.failed([f"Workflow with ID '{workflow_id}' not found"])

        unknown = sorted(set(changes) - _UPDATABLE_FIELDS)
        if unknown:
            return ValidationResult.failed([f"Field '{field}' cannot be updated" for field in unknown])

        if "steps" in changes:
            changes["steps"] = list(changes["steps"])
        if "variables" in changes:
            changes["variables"] = list(changes["variables"] or [])
        if "tags" in changes:
            changes["tags"] = list(changes["tags"] or [])

        candidate = current.copy_with(**changes)
        errors = self._validate(candidate.name, candidate.steps, exclude_id=workflow_id)
        if errors:
            return ValidationResult.failed(errors)

        updated = candidate.copy_with(name=candidate.name.strip(), updated_at=self._now())
        self._definitions[workflow_id] = updated
        logger.info("Updated workflow %s (%s)", workflow_id, ", ".join(sorted(changes)) or "no changes")
        return ValidationResult(success=True, workflow=updated)

    def delete(self, workflow_id: str) -> bool:
        """Remove a workflow.

        Args:
            workflow_id: The workflow to delete.

        Returns:
            True if a workflow was removed.
        """
        removed = self._definitions.pop(workflow_id, None)
        if removed is not None:
            logger.info("Deleted workflow %s (%s)", workflow_id, removed.name)
        return removed is not None

    def get(self, workflow_id: str) -> WorkflowDefinition | None:
        """Retrieve a workflow definition by ID."""
        return self._definitions.get(workflow_id)

    def has_workflow(self, workflow_id: str) -> bool:
        """Check if a workflow exists in the registry."""
        return workflow_id in self._definitions

    def list_workflows(self) -> list[WorkflowDefinition]:
        """List all workflow definitions, oldest first."""
        return sorted(self._definitions.values(), key=lambda definition: definition.created_at)

    def find_by_name(self, name: str) -> WorkflowDefinition | None:
        """Find a workflow by name, ignoring case."""
        wanted = name.strip().lower()
        for definition in self._definitions.values():
            if definition.name.lower() == wanted:
                return definition
        return None

    def load(self, definitions: Iterable[WorkflowDefinition]) -> None:
        """Replace the registry contents with previously persisted definitions."""
        self._definitions = {definition.id: definition for definition in definitions}

    def snapshot(self) -> list[WorkflowDefinition]:
        """Return every stored definition for persistence."""
        return self.list_workflows()

    def _validate(self, name: str, steps: list[Step], exclude_id: str | None = None) -> list[str]:
        tool_exists = self.catalog.has_tool if self.catalog is not None else None
        errors = validate_definition(name, steps, tool_exists)

        if name and name.strip():
            existing = self.find_by_name(name)
            if existing is not None and existing.id != exclude_id:
                errors.append(f"Workflow with name '{name.strip()}' already exists")

        return errors
