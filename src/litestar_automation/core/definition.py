"""Workflow definition and step structures.

This module provides the static description of a workflow: an ordered list of
steps, each referencing a tool and its advance policy, the variables the steps
expect, and the validation rules a definition has to satisfy before it can be
stored.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from litestar_automation.core.types import VariableType

__all__ = [
    "Step",
    "ValidationResult",
    "WorkflowDefinition",
    "WorkflowVariable",
    "generate_id",
    "validate_definition",
]


def generate_id(prefix: str) -> str:
    """Generate a unique, prefixed identifier such as ``exec_3f2a...``.

    Args:
        prefix: Short record kind prefix.

    Returns:
        The generated identifier.
    """
    return f"{prefix}_{uuid4().hex}"


@dataclass(frozen=True)
class Step:
    """One entry of a workflow, invoking a single tool.

    Steps are frozen so that an execution can hold on to them as a snapshot
    while the owning definition keeps being edited.

    Attributes:
        tool_id: Opaque identifier of the tool to invoke.
        order: Zero-based position within the workflow.
        auto_advance: Whether the engine proceeds to the next step on success.
            When False the execution pauses after this step.
        wait_time: Optional delay in seconds inserted before auto-advancing.
        description: Free-form annotation with no semantic effect.

    Example:
        >>> step = Step(tool_id="text-cleaner", order=0, wait_time=2)
        >>> step.auto_advance
        True
    """

    tool_id: str
    order: int
    auto_advance: bool = True
    wait_time: float | None = None
    description: str = ""


@dataclass(frozen=True)
class WorkflowVariable:
    """Variable expected by the steps of a workflow.

    Attributes:
        name: Variable name as passed to tools.
        type: Declared value type.
        required: Whether a value must be supplied when no default exists.
        default: Value used when the caller supplies none.
        description: Human-readable description.
    """

    name: str
    type: VariableType = VariableType.STRING
    required: bool = False
    default: Any = None
    description: str = ""


@dataclass
class WorkflowDefinition:
    """Declarative workflow structure.

    Attributes:
        id: Unique identifier of the workflow.
        name: Human-readable name, unique across the store.
        steps: Steps of the workflow; ``order`` values form a dense 0-based sequence.
        description: Human-readable description of the workflow's purpose.
        variables: Variables the steps expect.
        tags: Free-form labels.
        created_at: Timestamp when the workflow was created.
        updated_at: Timestamp of the last successful update.

    Example:
        >>> definition = WorkflowDefinition(
        ...     id="wf_1",
        ...     name="Daily cleanup",
        ...     steps=[
        ...         Step(tool_id="markdown-formatter", order=1, auto_advance=False),
        ...         Step(tool_id="text-cleaner", order=0),
        ...     ],
        ... )
        >>> definition.tool_ids
        ['text-cleaner', 'markdown-formatter']
    """

    id: str
    name: str
    steps: list[Step]
    description: str = ""
    variables: list[WorkflowVariable] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def ordered_steps(self) -> tuple[Step, ...]:
        """Return the steps sorted by ``order``.

        Returns:
            An immutable snapshot of the steps in execution order.
        """
        return tuple(sorted(self.steps, key=lambda step: step.order))

    @property
    def tool_ids(self) -> list[str]:
        """Tool identifiers in execution order."""
        return [step.tool_id for step in self.ordered_steps()]

    def copy_with(self, **changes: Any) -> WorkflowDefinition:
        """Return a copy of this definition with the given fields replaced."""
        return replace(self, **changes)

    def validate(self, tool_exists: Callable[[str], bool] | None = None) -> list[str]:
        """Validate the workflow definition.

        Args:
            tool_exists: Optional predicate telling whether a tool id resolves.

        Returns:
            List of validation error messages. Empty list if valid.
        """
        return validate_definition(self.name, self.steps, tool_exists)

    def resolve_variables(self, values: dict[str, Any] | None = None) -> tuple[dict[str, Any], list[str]]:
        """Merge caller values with the declared variable defaults.

        Args:
            values: Values supplied by the caller.

        Returns:
            The merged variables and the names of required variables that are
            still missing.

        Example:
            >>> definition = WorkflowDefinition(
            ...     id="wf_1",
            ...     name="Resize",
            ...     steps=[Step(tool_id="image-resizer", order=0)],
            ...     variables=[WorkflowVariable(name="quality", default=85)],
            ... )
            >>> definition.resolve_variables({})
            ({'quality': 85}, [])
        """
        resolved = dict(values or {})
        missing: list[str] = []
        for variable in self.variables:
            if variable.name in resolved:
                continue
            if variable.default is not None:
                resolved[variable.name] = variable.default
            elif variable.required:
                missing.append(variable.name)
        return resolved, missing


@dataclass
class ValidationResult:
    """Outcome of a create or update call on the definition store.

    Attributes:
        success: True when the change was applied.
        errors: Every problem found; empty on success.
        workflow: The stored workflow on success.
    """

    success: bool
    errors: list[str] = field(default_factory=list)
    workflow: WorkflowDefinition | None = None

    @classmethod
    def failed(cls, errors: list[str]) -> ValidationResult:
        return cls(success=False, errors=errors)


def validate_definition(
    name: str | None,
    steps: list[Step] | tuple[Step, ...],
    tool_exists: Callable[[str], bool] | None = None,
) -> list[str]:
    """Collect every problem with a workflow's name and steps.

    All checks run so callers can present multiple problems at once.

    Args:
        name: Workflow name.
        steps: Candidate steps.
        tool_exists: Optional predicate telling whether a tool id resolves.

    Returns:
        List of validation error messages. Empty list if valid.
    """
    errors: list[str] = []

    if not name or not name.strip():
        errors.append("Workflow name is required")

    seen_tools: set[str] = set()
    orders: list[int] = []
    for position, step in enumerate(steps):
        if not step.tool_id:
            errors.append(f"Step {position + 1}: a tool ID is required")
        elif step.tool_id in seen_tools:
            errors.append(f"Workflow steps cannot contain duplicate tools ('{step.tool_id}')")
        elif tool_exists is not None and not tool_exists(step.tool_id):
            errors.append(f"Step {position + 1}: tool '{step.tool_id}' not found")
        seen_tools.add(step.tool_id)

        if isinstance(step.order, bool) or not isinstance(step.order, int) or step.order < 0:
            errors.append(f"Step {position + 1}: order must be a non-negative integer")
        else:
            orders.append(step.order)

        if step.wait_time is not None and step.wait_time < 0:
            errors.append(f"Step {position + 1}: wait time must be non-negative")

    if len(orders) == len(steps):
        if len(set(orders)) != len(orders):
            errors.append("Workflow step orders must be unique")
        elif sorted(orders) != list(range(len(orders))):
            errors.append("Workflow step orders must form a contiguous sequence starting at 0")

    return errors
