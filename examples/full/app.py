"""Full example demonstrating litestar-automation with the REST API and persistence.

This example shows:
- Tools implemented as sync and async functions
- SQLite persistence through the SQLAlchemy state store
- Built-in REST API endpoints (auto-enabled)
- Schedules and event triggers driving executions

Run with:
    cd examples/full
    uv run litestar run --port 8001

Or:
    uv run uvicorn app:app --reload --port 8001

API Endpoints (auto-enabled):
    Workflows:
        GET    /automation/workflows                        - List workflows
        POST   /automation/workflows                        - Create a workflow
        POST   /automation/workflows/from-template          - Create from a template
        GET    /automation/workflows/{id}                   - Get a workflow
        PATCH  /automation/workflows/{id}                   - Update a workflow
        DELETE /automation/workflows/{id}                   - Delete a workflow
        POST   /automation/workflows/{id}/execute           - Run a workflow
        GET    /automation/workflows/{id}/executions        - Execution history
        GET    /automation/workflows/{id}/metrics           - Execution statistics

    Executions:
        GET    /automation/executions                       - List executions
        GET    /automation/executions/{id}                  - Get an execution
        POST   /automation/executions/{id}/pause            - Pause
        POST   /automation/executions/{id}/resume           - Resume
        POST   /automation/executions/{id}/cancel           - Cancel

    Schedules and triggers:
        GET|POST /automation/schedules                      - List or create schedules
        GET|POST /automation/triggers                       - List or create triggers
        POST     /automation/triggers/evaluate              - Deliver an event

Example API Usage:
    # Create the design workflow from its template
    curl -X POST http://localhost:8001/automation/workflows/from-template \\
        -H "Content-Type: application/json" \\
        -d '{"template_id": "design-workflow"}'

    # Run it; it pauses after picking the palette
    curl -X POST http://localhost:8001/automation/workflows/{workflow_id}/execute \\
        -H "Content-Type: application/json" \\
        -d '{"variables": {"quality": 90}}'

    # Resume the paused execution
    curl -X POST http://localhost:8001/automation/executions/{execution_id}/resume
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from advanced_alchemy.extensions.litestar import SQLAlchemyAsyncConfig, SQLAlchemyPlugin
from litestar import Litestar, get
from litestar.openapi import OpenAPIConfig

from litestar_automation import AutomationConfig, AutomationPlugin, AutomationPluginConfig, FunctionToolExecutor
from litestar_automation.db import SQLAlchemyStateStore, StateBlobModel

logging.basicConfig(level=logging.INFO)

# =============================================================================
# Tools
# =============================================================================

tools = FunctionToolExecutor()


@tools.tool("text-cleaner")
def clean_text(variables: dict[str, Any]) -> str:
    return " ".join(str(variables.get("text", "")).split())


@tools.tool("markdown-formatter")
def format_markdown(variables: dict[str, Any]) -> str:
    return f"# Agenda\n\n{variables.get('text', '')}"


@tools.tool("email-validator")
def validate_emails(variables: dict[str, Any]) -> dict[str, list[str]]:
    addresses = [address.strip() for address in str(variables.get("emails", "")).split(",") if address.strip()]
    return {
        "valid": [address for address in addresses if "@" in address],
        "invalid": [address for address in addresses if "@" not in address],
    }


@tools.tool("color-picker")
def pick_palette(variables: dict[str, Any]) -> list[str]:
    return ["#1d3557", "#457b9d", "#a8dadc", "#f1faee", "#e63946"]


@tools.tool("image-resizer")
async def resize_images(variables: dict[str, Any]) -> dict[str, Any]:
    # Stands in for a call to an image service.
    await asyncio.sleep(0.1)
    formats = str(variables.get("targetFormats", "web")).split(",")
    return {"formats": formats, "quality": variables.get("quality", 85)}


# =============================================================================
# Application Setup
# =============================================================================


@get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": "litestar-automation-example"}


@get("/")
async def index() -> dict[str, Any]:
    """API documentation index."""
    return {
        "name": "Litestar Automation Example",
        "description": "Full example with built-in REST API and persistence",
        "endpoints": {
            "openapi": "/schema",
            "health": "/health",
            "automation": {
                "workflows": "/automation/workflows",
                "templates": "/automation/templates",
                "executions": "/automation/executions",
                "schedules": "/automation/schedules",
                "triggers": "/automation/triggers",
            },
        },
    }


# Database configuration - SQLite for simplicity
# In production, use PostgreSQL or another production database
sqlalchemy_config = SQLAlchemyAsyncConfig(
    connection_string="sqlite+aiosqlite:///./automation.db",
    metadata=StateBlobModel.metadata,
    create_all=True,  # Auto-create tables on startup
)

automation_config = AutomationPluginConfig(
    tool_executor=tools,
    state_store=SQLAlchemyStateStore(sqlalchemy_config.create_session_maker()),
    config=AutomationConfig(execution_history_limit=1000),
)

# The SQLAlchemy plugin comes first so the tables exist before state is loaded
app = Litestar(
    route_handlers=[health_check, index],
    plugins=[
        SQLAlchemyPlugin(config=sqlalchemy_config),
        AutomationPlugin(config=automation_config),
    ],
    openapi_config=OpenAPIConfig(
        title="Litestar Automation - Full Example",
        version="1.0.0",
        description="Full example demonstrating litestar-automation with persistence and the built-in REST API.",
    ),
    debug=True,
)


if __name__ == "__main__":
    import uvicorn

    print("\n" + "=" * 80)
    print("Litestar Automation - Full Example")
    print("=" * 80)
    print("\nStarting server on http://localhost:8001")
    print("\nKey endpoints:")
    print("  - http://localhost:8001/          - API index")
    print("  - http://localhost:8001/schema    - OpenAPI documentation")
    print("  - http://localhost:8001/health    - Health check")
    print("=" * 80 + "\n")

    uvicorn.run(app, host="0.0.0.0", port=8001)
