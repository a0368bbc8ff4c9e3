"""Minimal example of litestar-automation integration.

This example demonstrates the basic usage of the AutomationPlugin with a few
text tools implemented as plain functions and a workflow chaining them.

Run with:
    cd examples/minimal
    litestar run

Or:
    uvicorn app:app --reload
"""

from __future__ import annotations

import re
from typing import Any

from litestar import Controller, Litestar, get, post
from litestar.exceptions import NotFoundException

from litestar_automation import (
    AutomationPlugin,
    AutomationPluginConfig,
    AutomationService,
    FunctionToolExecutor,
    Step,
    WorkflowVariable,
)

# =============================================================================
# Tools
# =============================================================================

tools = FunctionToolExecutor()


@tools.tool("text-cleaner")
def clean_text(variables: dict[str, Any]) -> str:
    """Collapse runs of whitespace and trim the text."""
    return re.sub(r"\s+", " ", variables.get("text", "")).strip()


@tools.tool("word-counter")
def count_words(variables: dict[str, Any]) -> dict[str, int]:
    """Count the words of the text."""
    return {"words": len(variables.get("text", "").split())}


@tools.tool("markdown-formatter")
def format_markdown(variables: dict[str, Any]) -> str:
    """Render the text as a markdown section."""
    title = variables.get("title", "Notes")
    return f"## {title}\n\n{variables.get('text', '').strip()}\n"


# =============================================================================
# API Controller
# =============================================================================


class NotesController(Controller):
    """Small API running the notes workflow."""

    path = "/notes"
    tags = ["Notes"]

    @post("/setup")
    async def setup(self, automation: AutomationService) -> dict[str, Any]:
        """Create the notes workflow if it does not exist yet."""
        existing = automation.registry.find_by_name("Notes cleanup")
        if existing is not None:
            return {"workflow_id": existing.id, "created": False}

        result = await automation.create_workflow(
            "Notes cleanup",
            [
                Step(tool_id="text-cleaner", order=0, description="Normalize whitespace"),
                Step(tool_id="word-counter", order=1),
                Step(tool_id="markdown-formatter", order=2, description="Render as markdown"),
            ],
            "Clean, count and format a block of notes",
            variables=[WorkflowVariable(name="text", required=True), WorkflowVariable(name="title", default="Notes")],
        )
        return {"workflow_id": result.workflow.id if result.workflow else None, "errors": result.errors}

    @post("/run/{workflow_id:str}")
    async def run(self, workflow_id: str, data: dict[str, Any], automation: AutomationService) -> dict[str, Any]:
        """Run the workflow on the posted text."""
        execution = await automation.execute_workflow(workflow_id, variables=data)
        if execution is None:
            raise NotFoundException(detail=f"Workflow '{workflow_id}' not found")
        return {
            "execution_id": execution.id,
            "status": str(execution.status),
            "results": [result.data for result in execution.step_results],
            "error": execution.error,
        }


# =============================================================================
# Application
# =============================================================================

# Configure the plugin
plugin_config = AutomationPluginConfig(tool_executor=tools)

# Create the Litestar application
app = Litestar(
    route_handlers=[NotesController],
    plugins=[AutomationPlugin(config=plugin_config)],
    debug=True,
)


# =============================================================================
# Health Check (for testing)
# =============================================================================


@get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


# Add health check to app
app.register(health_check)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
