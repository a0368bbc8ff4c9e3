"""Tests for the AutomationPlugin integration with Litestar.

These tests verify that the plugin correctly integrates with Litestar
applications and provides dependency injection for the automation service.
"""

from __future__ import annotations

from typing import Any

import pytest
from litestar import Litestar, get, post
from litestar.connection import ASGIConnection
from litestar.exceptions import NotAuthorizedException
from litestar.handlers.base import BaseRouteHandler
from litestar.status_codes import HTTP_200_OK, HTTP_201_CREATED, HTTP_401_UNAUTHORIZED, HTTP_404_NOT_FOUND
from litestar.testing import AsyncTestClient

from litestar_automation import (
    AutomationConfig,
    AutomationPlugin,
    AutomationPluginConfig,
    AutomationService,
    FunctionToolExecutor,
    ManualClock,
    Step,
    WorkflowNotFoundError,
)
from litestar_automation.storage import InMemoryStateStore
from tests.conftest import START


def make_executor() -> FunctionToolExecutor:
    return FunctionToolExecutor({"text-cleaner": lambda variables: variables.get("text", "").strip()})


@post("/run/{workflow_id:str}")
async def run_workflow(workflow_id: str, automation: AutomationService) -> dict[str, Any]:
    """Route handler using the injected service."""
    execution = await automation.execute_workflow(workflow_id, variables={"text": " injected "})
    return {"execution_id": execution.id, "status": str(execution.status), "data": execution.step_results[0].data}


@get("/workflow-count")
async def workflow_count(automation: AutomationService) -> dict[str, int]:
    return {"count": len(automation.list_workflows())}


@pytest.mark.unit
class TestPluginConfiguration:
    """Tests for plugin construction and app initialization."""

    def test_service_before_init(self) -> None:
        plugin = AutomationPlugin()

        with pytest.raises(RuntimeError, match="has not been initialized"):
            _ = plugin.service

    def test_default_service_is_created(self) -> None:
        plugin = AutomationPlugin()
        Litestar(plugins=[plugin])

        assert isinstance(plugin.service, AutomationService)
        assert isinstance(plugin.service.engine.tool_executor, FunctionToolExecutor)

    def test_provided_service_is_used(self) -> None:
        service = AutomationService(make_executor(), clock=ManualClock(START))
        plugin = AutomationPlugin(config=AutomationPluginConfig(service=service))
        Litestar(plugins=[plugin])

        assert plugin.service is service

    def test_options_reach_the_service(self) -> None:
        store = InMemoryStateStore()
        clock = ManualClock(START)
        plugin = AutomationPlugin(
            config=AutomationPluginConfig(
                tool_executor=make_executor(),
                config=AutomationConfig(storage_key_prefix="studio", execution_history_limit=10),
                state_store=store,
                clock=clock,
            )
        )
        Litestar(plugins=[plugin])

        assert plugin.service.clock is clock
        assert plugin.service.repository.store is store
        assert plugin.service.repository.key_prefix == "studio"
        assert plugin.service.engine.history_limit == 10

    def test_exception_handlers_registered(self) -> None:
        app = Litestar(plugins=[AutomationPlugin()])

        assert WorkflowNotFoundError in app.exception_handlers

    def test_app_handlers_take_precedence(self) -> None:
        """Handlers configured on the application are not replaced."""

        def custom_handler(_request: Any, _exc: Exception) -> Any:
            return None

        app = Litestar(
            plugins=[AutomationPlugin()],
            exception_handlers={WorkflowNotFoundError: custom_handler},
        )

        assert app.exception_handlers[WorkflowNotFoundError] is custom_handler

    def test_api_disabled(self) -> None:
        app = Litestar(plugins=[AutomationPlugin(config=AutomationPluginConfig(enable_api=False))])

        paths = {route.path for route in app.routes}
        assert not any(path.startswith("/automation") for path in paths)
        assert WorkflowNotFoundError not in app.exception_handlers

    def test_custom_path_prefix(self) -> None:
        app = Litestar(plugins=[AutomationPlugin(config=AutomationPluginConfig(api_path_prefix="/api/flows"))])

        paths = {route.path for route in app.routes}
        assert "/api/flows/workflows" in paths
        assert "/api/flows/executions/{execution_id:str}/pause" in paths


@pytest.mark.integration
@pytest.mark.asyncio
class TestPluginInApp:
    """Tests running an application with the plugin."""

    async def test_dependency_injection(self) -> None:
        plugin = AutomationPlugin(
            config=AutomationPluginConfig(tool_executor=make_executor(), clock=ManualClock(START)),
        )
        app = Litestar(route_handlers=[run_workflow], plugins=[plugin])

        async with AsyncTestClient(app=app) as client:
            result = await plugin.service.create_workflow("Cleanup", [Step(tool_id="text-cleaner", order=0)])
            assert result.workflow is not None

            response = await client.post(f"/run/{result.workflow.id}")

            assert response.status_code == HTTP_201_CREATED
            assert response.json()["status"] == "completed"
            assert response.json()["data"] == "injected"

    async def test_custom_dependency_key(self) -> None:
        @get("/count")
        async def count(flows: AutomationService) -> dict[str, int]:
            return {"count": len(flows.list_workflows())}

        plugin = AutomationPlugin(
            config=AutomationPluginConfig(dependency_key="flows", enable_api=False, clock=ManualClock(START)),
        )
        app = Litestar(route_handlers=[count], plugins=[plugin])

        async with AsyncTestClient(app=app) as client:
            response = await client.get("/count")

            assert response.status_code == HTTP_200_OK
            assert response.json() == {"count": 0}

    async def test_startup_loads_persisted_state(self) -> None:
        """Workflows saved by an earlier app instance are visible after startup."""
        store = InMemoryStateStore()
        earlier = AutomationService(make_executor(), clock=ManualClock(START), state_store=store)
        await earlier.initialize()
        await earlier.create_workflow("Persisted", [Step(tool_id="text-cleaner", order=0)])
        await earlier.shutdown()

        plugin = AutomationPlugin(
            config=AutomationPluginConfig(tool_executor=make_executor(), state_store=store, clock=ManualClock(START)),
        )
        app = Litestar(route_handlers=[workflow_count], plugins=[plugin])

        async with AsyncTestClient(app=app) as client:
            response = await client.get("/workflow-count")

            assert response.json() == {"count": 1}

    async def test_api_guards(self) -> None:
        def require_token(connection: ASGIConnection[Any, Any, Any, Any], _: BaseRouteHandler) -> None:
            if connection.headers.get("x-token") != "secret":
                raise NotAuthorizedException()

        plugin = AutomationPlugin(
            config=AutomationPluginConfig(api_guards=[require_token], clock=ManualClock(START)),
        )
        app = Litestar(plugins=[plugin])

        async with AsyncTestClient(app=app) as client:
            response = await client.get("/automation/workflows")
            assert response.status_code == HTTP_401_UNAUTHORIZED

            response = await client.get("/automation/workflows", headers={"x-token": "secret"})
            assert response.status_code == HTTP_200_OK

            response = await client.get("/automation/workflows/wf_missing", headers={"x-token": "secret"})
            assert response.status_code == HTTP_404_NOT_FOUND
