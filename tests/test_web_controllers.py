"""Tests for the automation REST API controllers.

The tests mount the controllers through the AutomationPlugin and drive them
with Litestar's AsyncTestClient.

Coverage targets:
- Workflow CRUD, templates, execution and metrics endpoints
- Execution control and the 409 responses for refused transitions
- Schedules and triggers, including event delivery
- Error mapping (400 with the full error list, 404)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest
from litestar import Litestar
from litestar.status_codes import (
    HTTP_200_OK,
    HTTP_201_CREATED,
    HTTP_204_NO_CONTENT,
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
)
from litestar.testing import AsyncTestClient

from litestar_automation import AutomationPlugin, AutomationPluginConfig
from litestar_automation.engine.clock import ManualClock
from litestar_automation.engine.tools import FunctionToolExecutor
from litestar_automation.exceptions import ToolInvocationError
from tests.conftest import START

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


def _fail(variables: dict[str, Any]) -> None:
    raise ToolInvocationError("unit-converter", "Unsupported unit")


@pytest.fixture
def tool_executor() -> FunctionToolExecutor:
    """Create an executor with a few text tools and one failing tool."""
    return FunctionToolExecutor(
        {
            "text-cleaner": lambda variables: variables.get("text", "").strip(),
            "markdown-formatter": lambda variables: f"# {variables.get('text', '').strip()}",
            "email-validator": lambda variables: True,
            "color-picker": lambda variables: "#336699",
            "image-resizer": lambda variables: {"width": 800},
            "unit-converter": _fail,
        }
    )


@pytest.fixture
async def client(tool_executor: FunctionToolExecutor) -> AsyncIterator[AsyncTestClient[Litestar]]:
    """Create a test client for an app with the automation API mounted."""
    plugin = AutomationPlugin(
        config=AutomationPluginConfig(tool_executor=tool_executor, clock=ManualClock(START)),
    )
    app = Litestar(plugins=[plugin])
    async with AsyncTestClient(app=app) as client:
        yield client


async def create_workflow(client: AsyncTestClient[Litestar], **overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "name": "Notes cleanup",
        "description": "Clean and format notes",
        "steps": [
            {"tool_id": "text-cleaner", "order": 0},
            {"tool_id": "markdown-formatter", "order": 1},
        ],
    }
    payload.update(overrides)
    response = await client.post("/automation/workflows", json=payload)
    assert response.status_code == HTTP_201_CREATED, response.text
    return response.json()


# =============================================================================
# Workflow Endpoints
# =============================================================================


@pytest.mark.unit
@pytest.mark.asyncio
class TestWorkflowController:
    """Tests for WorkflowController."""

    async def test_create_and_get(self, client: AsyncTestClient[Litestar]) -> None:
        created = await create_workflow(client, tags=["notes"])

        assert created["id"].startswith("wf_")
        assert [step["tool_id"] for step in created["steps"]] == ["text-cleaner", "markdown-formatter"]
        assert created["tags"] == ["notes"]

        response = await client.get(f"/automation/workflows/{created['id']}")
        assert response.status_code == HTTP_200_OK
        assert response.json() == created

    async def test_list(self, client: AsyncTestClient[Litestar]) -> None:
        first = await create_workflow(client)
        second = await create_workflow(client, name="Second")

        response = await client.get("/automation/workflows")

        assert response.status_code == HTTP_200_OK
        assert [item["id"] for item in response.json()] == [first["id"], second["id"]]

    async def test_create_reports_every_error(self, client: AsyncTestClient[Litestar]) -> None:
        """Invalid definitions come back as 400 with the full error list."""
        response = await client.post(
            "/automation/workflows",
            json={
                "name": "Broken",
                "steps": [
                    {"tool_id": "text-cleaner", "order": 0},
                    {"tool_id": "text-cleaner", "order": 1},
                    {"tool_id": "pdf-merger", "order": 3},
                ],
            },
        )

        assert response.status_code == HTTP_400_BAD_REQUEST
        errors = response.json()["errors"]
        assert "Workflow steps cannot contain duplicate tools ('text-cleaner')" in errors
        assert "Step 3: tool 'pdf-merger' not found" in errors
        assert "Workflow step orders must form a contiguous sequence starting at 0" in errors

    async def test_duplicate_name(self, client: AsyncTestClient[Litestar]) -> None:
        await create_workflow(client)

        response = await client.post(
            "/automation/workflows",
            json={"name": "notes CLEANUP", "steps": [{"tool_id": "text-cleaner", "order": 0}]},
        )

        assert response.status_code == HTTP_400_BAD_REQUEST
        assert response.json()["errors"] == ["Workflow with name 'notes CLEANUP' already exists"]

    async def test_update(self, client: AsyncTestClient[Litestar]) -> None:
        created = await create_workflow(client)

        response = await client.patch(
            f"/automation/workflows/{created['id']}",
            json={"description": "Only clean", "steps": [{"tool_id": "text-cleaner", "order": 0}]},
        )

        assert response.status_code == HTTP_200_OK
        updated = response.json()
        assert updated["name"] == "Notes cleanup"
        assert updated["description"] == "Only clean"
        assert len(updated["steps"]) == 1

    async def test_update_validation_error(self, client: AsyncTestClient[Litestar]) -> None:
        created = await create_workflow(client)

        response = await client.patch(f"/automation/workflows/{created['id']}", json={"name": "  "})

        assert response.status_code == HTTP_400_BAD_REQUEST
        assert response.json()["errors"] == ["Workflow name is required"]

    async def test_delete(self, client: AsyncTestClient[Litestar]) -> None:
        created = await create_workflow(client)

        response = await client.delete(f"/automation/workflows/{created['id']}")
        assert response.status_code == HTTP_204_NO_CONTENT

        response = await client.get(f"/automation/workflows/{created['id']}")
        assert response.status_code == HTTP_404_NOT_FOUND

    @pytest.mark.parametrize(
        ("method", "path"),
        [
            ("get", "/automation/workflows/wf_missing"),
            ("patch", "/automation/workflows/wf_missing"),
            ("delete", "/automation/workflows/wf_missing"),
            ("post", "/automation/workflows/wf_missing/execute"),
            ("get", "/automation/workflows/wf_missing/executions"),
            ("get", "/automation/workflows/wf_missing/metrics"),
        ],
    )
    async def test_unknown_workflow(self, client: AsyncTestClient[Litestar], method: str, path: str) -> None:
        kwargs: dict[str, Any] = {"json": {}} if method in {"post", "patch"} else {}

        response = await getattr(client, method)(path, **kwargs)

        assert response.status_code == HTTP_404_NOT_FOUND
        assert response.json()["detail"] == "Workflow 'wf_missing' not found"


@pytest.mark.unit
@pytest.mark.asyncio
class TestTemplates:
    """Tests for template endpoints."""

    async def test_list_templates(self, client: AsyncTestClient[Litestar]) -> None:
        response = await client.get("/automation/templates")

        assert response.status_code == HTTP_200_OK
        templates = {template["id"]: template for template in response.json()}
        assert set(templates) == {"daily-productivity", "design-workflow"}
        assert templates["design-workflow"]["category"] == "design"

    async def test_create_from_template(self, client: AsyncTestClient[Litestar]) -> None:
        response = await client.post(
            "/automation/workflows/from-template",
            json={"template_id": "design-workflow", "name": "Brand refresh"},
        )

        assert response.status_code == HTTP_201_CREATED
        workflow = response.json()
        assert workflow["name"] == "Brand refresh"
        assert [variable["name"] for variable in workflow["variables"]] == ["targetFormats", "quality"]

    async def test_unknown_template(self, client: AsyncTestClient[Litestar]) -> None:
        response = await client.post("/automation/workflows/from-template", json={"template_id": "nope"})

        assert response.status_code == HTTP_404_NOT_FOUND


# =============================================================================
# Execution Endpoints
# =============================================================================


@pytest.mark.unit
@pytest.mark.asyncio
class TestExecutionController:
    """Tests for execution and execution control endpoints."""

    async def test_execute_completes(self, client: AsyncTestClient[Litestar]) -> None:
        workflow = await create_workflow(client)

        response = await client.post(
            f"/automation/workflows/{workflow['id']}/execute",
            json={"variables": {"text": "  weekly notes  "}},
        )

        assert response.status_code == HTTP_201_CREATED
        execution = response.json()
        assert execution["status"] == "completed"
        assert execution["source"] == "manual"
        assert [result["status"] for result in execution["step_results"]] == ["completed", "completed"]
        assert execution["step_results"][0]["data"] == "weekly notes"
        assert execution["step_results"][1]["data"] == "# weekly notes"

    async def test_execute_failing_step(self, client: AsyncTestClient[Litestar]) -> None:
        """A failing tool fails the execution; later steps stay pending."""
        workflow = await create_workflow(
            client,
            steps=[
                {"tool_id": "unit-converter", "order": 0},
                {"tool_id": "text-cleaner", "order": 1},
            ],
        )

        response = await client.post(f"/automation/workflows/{workflow['id']}/execute", json={})

        execution = response.json()
        assert execution["status"] == "failed"
        assert execution["error"] == "Step 1 failed: Unsupported unit"
        assert [result["status"] for result in execution["step_results"]] == ["failed", "pending"]

    async def test_missing_required_variable(self, client: AsyncTestClient[Litestar]) -> None:
        response = await client.post(
            "/automation/workflows/from-template",
            json={"template_id": "daily-productivity"},
        )
        workflow = response.json()

        response = await client.post(f"/automation/workflows/{workflow['id']}/execute", json={})

        assert response.status_code == HTTP_400_BAD_REQUEST
        assert response.json()["errors"] == ["Variable 'startTime' is required"]

    async def test_pause_and_resume(self, client: AsyncTestClient[Litestar]) -> None:
        """Executions without auto-advance pause between steps until resumed."""
        workflow = await create_workflow(
            client,
            steps=[
                {"tool_id": "text-cleaner", "order": 0},
                {"tool_id": "markdown-formatter", "order": 1},
                {"tool_id": "email-validator", "order": 2},
            ],
        )

        response = await client.post(
            f"/automation/workflows/{workflow['id']}/execute",
            json={"auto_advance": False},
        )
        paused = response.json()
        assert paused["status"] == "paused"
        assert paused["current_step_index"] == 0
        assert paused["auto_advance_enabled"] is False

        response = await client.post(f"/automation/executions/{paused['id']}/resume")
        assert response.status_code == HTTP_200_OK
        assert response.json()["status"] == "paused"
        assert response.json()["current_step_index"] == 1

        response = await client.post(f"/automation/executions/{paused['id']}/resume")
        assert response.json()["status"] == "paused"
        assert response.json()["current_step_index"] == 2
        assert [result["status"] for result in response.json()["step_results"]] == ["completed"] * 3

        response = await client.post(f"/automation/executions/{paused['id']}/resume")
        assert response.json()["status"] == "completed"
        assert response.json()["current_step_index"] == 3

        response = await client.get(f"/automation/executions/{paused['id']}")
        assert response.json()["status"] == "completed"

    async def test_cancel_paused_execution(self, client: AsyncTestClient[Litestar]) -> None:
        workflow = await create_workflow(client)
        response = await client.post(
            f"/automation/workflows/{workflow['id']}/execute",
            json={"auto_advance": False},
        )
        execution_id = response.json()["id"]

        response = await client.post(f"/automation/executions/{execution_id}/cancel")

        assert response.status_code == HTTP_200_OK
        assert response.json()["status"] == "cancelled"

    async def test_refused_transitions(self, client: AsyncTestClient[Litestar]) -> None:
        """Control requests that the state machine refuses return 409."""
        workflow = await create_workflow(client)
        response = await client.post(f"/automation/workflows/{workflow['id']}/execute", json={})
        execution_id = response.json()["id"]

        for action in ("pause", "resume", "cancel"):
            response = await client.post(f"/automation/executions/{execution_id}/{action}")
            assert response.status_code == HTTP_409_CONFLICT
            assert response.json()["status"] == "completed"

    async def test_unknown_execution(self, client: AsyncTestClient[Litestar]) -> None:
        response = await client.get("/automation/executions/exec_missing")
        assert response.status_code == HTTP_404_NOT_FOUND

        response = await client.post("/automation/executions/exec_missing/pause")
        assert response.status_code == HTTP_404_NOT_FOUND

    async def test_list_and_filter(self, client: AsyncTestClient[Litestar]) -> None:
        workflow = await create_workflow(client)
        other = await create_workflow(client, name="Other", steps=[{"tool_id": "unit-converter", "order": 0}])
        await client.post(f"/automation/workflows/{workflow['id']}/execute", json={})
        await client.post(f"/automation/workflows/{other['id']}/execute", json={})

        response = await client.get("/automation/executions")
        assert len(response.json()) == 2

        response = await client.get("/automation/executions", params={"status": "failed"})
        assert [execution["workflow_id"] for execution in response.json()] == [other["id"]]

        response = await client.get("/automation/executions", params={"workflow_id": workflow["id"]})
        assert [execution["status"] for execution in response.json()] == ["completed"]

        response = await client.get(f"/automation/workflows/{workflow['id']}/executions")
        assert len(response.json()) == 1

    async def test_metrics(self, client: AsyncTestClient[Litestar]) -> None:
        workflow = await create_workflow(client)
        for _ in range(2):
            await client.post(f"/automation/workflows/{workflow['id']}/execute", json={})

        response = await client.get(f"/automation/workflows/{workflow['id']}/metrics")

        assert response.status_code == HTTP_200_OK
        metrics = response.json()
        assert metrics["total_executions"] == 2
        assert metrics["successful_executions"] == 2
        assert metrics["error_rate"] == 0.0
        assert metrics["success_rate"] == 1.0


# =============================================================================
# Schedule and Trigger Endpoints
# =============================================================================


@pytest.mark.unit
@pytest.mark.asyncio
class TestScheduleController:
    """Tests for ScheduleController."""

    async def test_schedule_lifecycle(self, client: AsyncTestClient[Litestar]) -> None:
        workflow = await create_workflow(client)

        response = await client.post(
            "/automation/schedules",
            json={"workflow_id": workflow["id"], "type": "interval", "interval_minutes": 15, "name": "Quarterly"},
        )
        assert response.status_code == HTTP_201_CREATED
        schedule = response.json()
        assert schedule["id"].startswith("sched_")
        assert schedule["next_run"] is not None
        assert schedule["run_count"] == 0

        response = await client.patch(f"/automation/schedules/{schedule['id']}", json={"interval_minutes": 30})
        assert response.status_code == HTTP_200_OK
        assert response.json()["interval_minutes"] == 30

        response = await client.post(f"/automation/schedules/{schedule['id']}/disable")
        assert response.status_code == HTTP_200_OK
        assert response.json()["enabled"] is False
        assert response.json()["next_run"] is None

        response = await client.post(f"/automation/schedules/{schedule['id']}/enable")
        assert response.json()["enabled"] is True

        response = await client.get("/automation/schedules", params={"workflow_id": workflow["id"]})
        assert [item["id"] for item in response.json()] == [schedule["id"]]

        response = await client.delete(f"/automation/schedules/{schedule['id']}")
        assert response.status_code == HTTP_204_NO_CONTENT
        response = await client.delete(f"/automation/schedules/{schedule['id']}")
        assert response.status_code == HTTP_404_NOT_FOUND

    async def test_invalid_schedule(self, client: AsyncTestClient[Litestar]) -> None:
        workflow = await create_workflow(client)

        response = await client.post("/automation/schedules", json={"workflow_id": workflow["id"], "type": "once"})

        assert response.status_code == HTTP_400_BAD_REQUEST
        assert response.json()["errors"] == ["A 'once' schedule requires scheduled_at"]

    async def test_schedule_for_unknown_workflow(self, client: AsyncTestClient[Litestar]) -> None:
        response = await client.post("/automation/schedules", json={"workflow_id": "wf_missing", "type": "daily"})

        assert response.status_code == HTTP_404_NOT_FOUND

    async def test_update_unknown_schedule(self, client: AsyncTestClient[Litestar]) -> None:
        response = await client.patch("/automation/schedules/sched_missing", json={"name": "x"})

        assert response.status_code == HTTP_404_NOT_FOUND
        assert response.json()["detail"] == "Schedule 'sched_missing' not found"


@pytest.mark.unit
@pytest.mark.asyncio
class TestTriggerController:
    """Tests for TriggerController."""

    async def test_trigger_lifecycle(self, client: AsyncTestClient[Litestar]) -> None:
        workflow = await create_workflow(client)

        response = await client.post(
            "/automation/triggers",
            json={"workflow_id": workflow["id"], "type": "tool_usage", "conditions": {"tool_id": "color-picker"}},
        )
        assert response.status_code == HTTP_201_CREATED
        trigger = response.json()
        assert trigger["trigger_count"] == 0

        response = await client.post(
            "/automation/triggers/evaluate",
            json={"event_type": "tool_usage", "payload": {"tool_id": "color-picker", "text": " palette "}},
        )
        assert response.status_code == HTTP_200_OK
        (execution,) = response.json()
        assert execution["source"] == "triggered"
        assert execution["source_id"] == trigger["id"]
        assert execution["step_results"][0]["data"] == "palette"

        response = await client.post(
            "/automation/triggers/evaluate",
            json={"event_type": "tool_usage", "payload": {"tool_id": "image-resizer"}},
        )
        assert response.json() == []

        response = await client.post(f"/automation/triggers/{trigger['id']}/disable")
        assert response.json()["enabled"] is False
        response = await client.post(f"/automation/triggers/{trigger['id']}/enable")
        assert response.json()["trigger_count"] == 1

        response = await client.get("/automation/triggers")
        assert [item["id"] for item in response.json()] == [trigger["id"]]

        response = await client.delete(f"/automation/triggers/{trigger['id']}")
        assert response.status_code == HTTP_204_NO_CONTENT
        response = await client.post(f"/automation/triggers/{trigger['id']}/enable")
        assert response.status_code == HTTP_404_NOT_FOUND

    async def test_trigger_for_unknown_workflow(self, client: AsyncTestClient[Litestar]) -> None:
        response = await client.post("/automation/triggers", json={"workflow_id": "wf_missing", "type": "data_change"})

        assert response.status_code == HTTP_404_NOT_FOUND
