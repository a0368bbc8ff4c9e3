"""Tests for state persistence through versioned blobs."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

import pytest

from litestar_automation.core.definition import Step, WorkflowVariable
from litestar_automation.core.models import Schedule, Trigger
from litestar_automation.core.types import ExecutionStatus, ScheduleType, StepStatus, TriggerType, VariableType
from litestar_automation.exceptions import StateMigrationError
from litestar_automation.storage import SCHEMA_VERSION, InMemoryStateStore, StateRepository, VersionedBlob
from litestar_automation.storage.serialization import format_datetime, parse_datetime
from tests.conftest import START

if TYPE_CHECKING:
    from collections.abc import Callable

    from litestar_automation.core.definition import WorkflowDefinition
    from litestar_automation.engine.local import LocalExecutionEngine
    from litestar_automation.engine.registry import WorkflowRegistry


class RefusingStore(InMemoryStateStore):
    """Store whose writes always fail."""

    async def save(self, key: str, blob: VersionedBlob) -> bool:
        return False


@pytest.mark.unit
@pytest.mark.asyncio
class TestInMemoryStateStore:
    """Tests for InMemoryStateStore."""

    async def test_missing_key(self, state_store: InMemoryStateStore) -> None:
        assert await state_store.load("automation:workflows") is None

    async def test_blobs_are_copied(self, state_store: InMemoryStateStore) -> None:
        """Neither the saved nor the loaded blob shares state with the store."""
        blob = VersionedBlob(schema_version=1, payload={"items": [{"id": "wf_1"}]})
        assert await state_store.save("k", blob) is True

        blob.payload["items"].append({"id": "wf_2"})
        loaded = await state_store.load("k")
        assert loaded is not None
        loaded.payload["items"].clear()

        reloaded = await state_store.load("k")
        assert reloaded == VersionedBlob(schema_version=1, payload={"items": [{"id": "wf_1"}]})
        assert state_store.keys == ["k"]


@pytest.mark.unit
@pytest.mark.asyncio
class TestStateRepository:
    """Tests for StateRepository."""

    async def test_empty_store_loads_empty_state(self, state_store: InMemoryStateStore) -> None:
        """Missing blobs are treated as empty collections."""
        state = await StateRepository(state_store).load()

        assert state.workflows == []
        assert state.executions == []
        assert state.schedules == []
        assert state.triggers == []

    async def test_save_stamps_schema_version(self, state_store: InMemoryStateStore) -> None:
        repository = StateRepository(state_store, key_prefix="studio")

        assert await repository.save_triggers([]) is True

        blob = await state_store.load("studio:triggers")
        assert blob == VersionedBlob(schema_version=SCHEMA_VERSION, payload={"items": []})

    async def test_workflows_survive_a_round_trip(
        self,
        state_store: InMemoryStateStore,
        workflow_registry: WorkflowRegistry,
    ) -> None:
        """Definitions come back with steps, variables and timestamps intact."""
        created = workflow_registry.create(
            "Design",
            [
                Step(tool_id="color-picker", order=0, auto_advance=False, description="Palette"),
                Step(tool_id="image-resizer", order=1, wait_time=1.5),
            ],
            "Prepare assets",
            variables=[WorkflowVariable(name="quality", type=VariableType.NUMBER, default=85)],
            tags=["design"],
        ).workflow
        repository = StateRepository(state_store)

        await repository.save_workflows(workflow_registry.snapshot())
        state = await repository.load()

        assert state.workflows == [created]

    async def test_executions_survive_a_round_trip(
        self,
        state_store: InMemoryStateStore,
        engine: LocalExecutionEngine,
        make_workflow: Callable[..., WorkflowDefinition],
    ) -> None:
        """Executions keep their step snapshot and per-step results."""
        workflow = make_workflow(Step(tool_id="a", order=0, auto_advance=False), "b")
        execution = await engine.execute_workflow(workflow.id, variables={"text": "hello"})
        repository = StateRepository(state_store)

        await repository.save_executions(engine.snapshot())
        (loaded,) = (await repository.load()).executions

        assert loaded == execution
        assert loaded.status == ExecutionStatus.PAUSED
        assert [result.status for result in loaded.step_results] == [StepStatus.COMPLETED, StepStatus.PENDING]

    async def test_schedules_and_triggers_survive_a_round_trip(self, state_store: InMemoryStateStore) -> None:
        schedule = Schedule(
            id="sched_1",
            workflow_id="wf_1",
            type=ScheduleType.WEEKLY,
            created_at=START,
            name="Weekly",
            days_of_week=[1, 3],
            next_run=START + timedelta(days=2),
            last_run=START,
            run_count=4,
        )
        trigger = Trigger(
            id="trig_1",
            workflow_id="wf_1",
            type=TriggerType.TOOL_USAGE,
            created_at=START,
            conditions={"tool_id": ["text-cleaner"], "count": {"$gte": 3}},
            trigger_count=2,
            last_triggered=START,
        )
        repository = StateRepository(state_store)

        await repository.save_schedules([schedule])
        await repository.save_triggers([trigger])
        state = await repository.load()

        assert state.schedules == [schedule]
        assert state.triggers == [trigger]

    async def test_refused_save_returns_false(self, caplog: pytest.LogCaptureFixture) -> None:
        repository = StateRepository(RefusingStore())

        assert await repository.save_workflows([]) is False
        assert "refused to save automation:workflows" in caplog.text


@pytest.mark.unit
@pytest.mark.asyncio
class TestMigrations:
    """Tests for schema migration hooks."""

    async def test_older_blob_is_migrated(self, state_store: InMemoryStateStore) -> None:
        """Hooks run in sequence from the stored version up to the current one."""

        def rename_labels(payload: dict[str, Any]) -> dict[str, Any]:
            return {"items": [{**item, "tags": item.pop("labels", [])} for item in payload["workflows"]]}

        def add_description(payload: dict[str, Any]) -> dict[str, Any]:
            return {"items": [{"description": "migrated", **item} for item in payload["items"]]}

        await state_store.save(
            "automation:workflows",
            VersionedBlob(
                schema_version=1,
                payload={
                    "workflows": [
                        {
                            "id": "wf_legacy",
                            "name": "Legacy",
                            "steps": [{"tool_id": "text-cleaner", "order": 0}],
                            "labels": ["old"],
                            "created_at": "2023-06-01T08:00:00Z",
                        }
                    ]
                },
            ),
        )
        repository = StateRepository(state_store, migrations={1: rename_labels, 2: add_description}, schema_version=3)

        (workflow,) = (await repository.load()).workflows

        assert workflow.id == "wf_legacy"
        assert workflow.tags == ["old"]
        assert workflow.description == "migrated"
        assert workflow.created_at == datetime(2023, 6, 1, 8, tzinfo=timezone.utc)
        assert workflow.updated_at == workflow.created_at
        assert workflow.steps[0].auto_advance is True

    async def test_missing_hook_raises(self, state_store: InMemoryStateStore) -> None:
        await state_store.save("automation:schedules", VersionedBlob(schema_version=1, payload={"items": []}))
        repository = StateRepository(state_store, schema_version=2)

        with pytest.raises(StateMigrationError) as exc_info:
            await repository.load()

        assert exc_info.value.key == "automation:schedules"
        assert exc_info.value.found_version == 1
        assert exc_info.value.expected_version == 2

    async def test_newer_blob_raises(self, state_store: InMemoryStateStore) -> None:
        """State written by newer code is never silently downgraded."""
        await state_store.save(
            "automation:executions",
            VersionedBlob(schema_version=SCHEMA_VERSION + 1, payload={"items": []}),
        )

        with pytest.raises(StateMigrationError):
            await StateRepository(state_store).load()


@pytest.mark.unit
class TestTimestamps:
    """Tests for timestamp serialization."""

    def test_format_is_utc_iso(self) -> None:
        value = datetime(2024, 1, 1, 10, tzinfo=timezone(timedelta(hours=1)))

        assert format_datetime(value) == "2024-01-01T09:00:00+00:00"
        assert format_datetime(None) is None

    def test_naive_values_are_utc(self) -> None:
        assert format_datetime(datetime(2024, 1, 1, 9)) == "2024-01-01T09:00:00+00:00"
        assert parse_datetime("2024-01-01T09:00:00") == START

    def test_zulu_suffix(self) -> None:
        assert parse_datetime("2024-01-01T09:00:00Z") == START
        assert parse_datetime(None) is None
