"""Predefined workflow templates.

Templates are ready-made step sequences with declared variables. A template is
turned into a stored workflow through the definition store's
``create_from_template``.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from litestar_automation.core.definition import Step, WorkflowVariable
from litestar_automation.core.types import VariableType

__all__ = ["BUILTIN_TEMPLATES", "WorkflowTemplate", "get_template"]


@dataclass(frozen=True)
class WorkflowTemplate:
    """Reusable workflow blueprint.

    Attributes:
        id: Template identifier.
        name: Display name, used as the default workflow name.
        description: What the workflow is for.
        category: Grouping such as ``productivity`` or ``design``.
        steps: Steps copied into workflows created from the template.
        variables: Variables the steps expect.
        tags: Free-form labels.
    """

    id: str
    name: str
    description: str
    category: str
    steps: tuple[Step, ...]
    variables: tuple[WorkflowVariable, ...] = ()
    tags: tuple[str, ...] = field(default_factory=tuple)


BUILTIN_TEMPLATES: tuple[WorkflowTemplate, ...] = (
    WorkflowTemplate(
        id="daily-productivity",
        name="Daily Productivity Workflow",
        description="A workflow to start your productive day with essential tools",
        category="productivity",
        steps=(
            Step(tool_id="text-cleaner", order=0, description="Clean up notes from yesterday", wait_time=2),
            Step(tool_id="markdown-formatter", order=1, description="Format daily agenda", wait_time=3),
            Step(tool_id="email-validator", order=2, description="Validate contact lists", auto_advance=False),
        ),
        variables=(
            WorkflowVariable(
                name="startTime",
                type=VariableType.DATE,
                required=True,
                description="When to start the workflow",
            ),
            WorkflowVariable(
                name="includeEmail",
                type=VariableType.BOOLEAN,
                default=True,
                description="Include email validation step",
            ),
        ),
        tags=("productivity", "daily", "automation"),
    ),
    WorkflowTemplate(
        id="design-workflow",
        name="Design Asset Preparation",
        description="Prepare and optimize design assets for web and print",
        category="design",
        steps=(
            Step(tool_id="color-picker", order=0, description="Select color palette", auto_advance=False),
            Step(tool_id="image-resizer", order=1, description="Resize images for different formats", wait_time=1),
        ),
        variables=(
            WorkflowVariable(
                name="targetFormats",
                type=VariableType.STRING,
                required=True,
                default="web,print",
                description="Target output formats",
            ),
            WorkflowVariable(
                name="quality",
                type=VariableType.NUMBER,
                default=85,
                description="Image quality percentage",
            ),
        ),
        tags=("design", "images", "optimization"),
    ),
)


def get_template(template_id: str) -> WorkflowTemplate | None:
    """Look up a built-in template by id.

    Args:
        template_id: The template identifier.

    Returns:
        The template, or None if no built-in template has that id.
    """
    for template in BUILTIN_TEMPLATES:
        if template.id == template_id:
            return template
    return None
