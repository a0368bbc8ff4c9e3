"""Shared test fixtures for litestar-automation test suite."""

from __future__ import annotations

import itertools
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import pytest

from litestar_automation.core.definition import Step
from litestar_automation.core.models import ToolResult
from litestar_automation.exceptions import ToolInvocationError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    from litestar_automation.core.definition import WorkflowDefinition
    from litestar_automation.engine.clock import ManualClock
    from litestar_automation.engine.local import LocalExecutionEngine
    from litestar_automation.engine.registry import WorkflowRegistry
    from litestar_automation.engine.scheduler import WorkflowScheduler
    from litestar_automation.engine.tools import InMemoryUsageTracker
    from litestar_automation.engine.triggers import TriggerRegistry
    from litestar_automation.service import AutomationService
    from litestar_automation.storage.base import InMemoryStateStore

START = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)
"""Monday, January 1st 2024, 09:00 UTC."""


class FakeToolExecutor:
    """Tool executor recording every invocation.

    Tools listed in ``failing`` raise with the configured message. A hook
    registered for a tool runs while the invocation is in flight, which lets
    tests pause or cancel an execution mid-step.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.failing: dict[str, str] = {}
        self.hooks: dict[str, Callable[[], Awaitable[None]]] = {}

    async def invoke(self, tool_id: str, variables: dict[str, Any]) -> ToolResult:
        self.calls.append((tool_id, dict(variables)))
        hook = self.hooks.get(tool_id)
        if hook is not None:
            await hook()
        if tool_id in self.failing:
            raise ToolInvocationError(tool_id, self.failing[tool_id])
        return ToolResult(success=True, data={"tool": tool_id}, duration_ms=1.0)

    @property
    def invoked(self) -> list[str]:
        """Tool IDs in invocation order."""
        return [tool_id for tool_id, _ in self.calls]


class MockEventBus:
    """Mock event bus for testing."""

    def __init__(self) -> None:
        """Initialize mock event bus."""
        self.events: list[tuple[str, dict[str, Any]]] = []

    async def emit(self, event_type: str, **kwargs: Any) -> None:
        """Emit an event."""
        self.events.append((event_type, kwargs))

    @property
    def event_types(self) -> list[str]:
        return [event_type for event_type, _ in self.events]


def make_steps(*steps: Step | str) -> list[Step]:
    """Build a step list; plain strings become auto-advancing steps at their position."""
    return [step if isinstance(step, Step) else Step(tool_id=step, order=index) for index, step in enumerate(steps)]


@pytest.fixture
def clock() -> ManualClock:
    """Create a manual clock starting at ``START``.

    Returns:
        ManualClock instance
    """
    from litestar_automation.engine.clock import ManualClock

    return ManualClock(START)


@pytest.fixture
def tools() -> FakeToolExecutor:
    """Create a recording tool executor.

    Returns:
        FakeToolExecutor instance
    """
    return FakeToolExecutor()


@pytest.fixture
def mock_event_bus() -> MockEventBus:
    """Create mock event bus.

    Returns:
        MockEventBus instance
    """
    return MockEventBus()


@pytest.fixture
def usage_tracker(clock: ManualClock) -> InMemoryUsageTracker:
    """Create an in-memory usage tracker."""
    from litestar_automation.engine.tools import InMemoryUsageTracker

    return InMemoryUsageTracker(now=clock.now)


@pytest.fixture
def workflow_registry(clock: ManualClock) -> WorkflowRegistry:
    """Create a workflow registry for testing.

    Returns:
        WorkflowRegistry instance
    """
    from litestar_automation.engine.registry import WorkflowRegistry

    return WorkflowRegistry(now=clock.now)


@pytest.fixture
def engine(
    workflow_registry: WorkflowRegistry,
    tools: FakeToolExecutor,
    usage_tracker: InMemoryUsageTracker,
    clock: ManualClock,
    mock_event_bus: MockEventBus,
) -> LocalExecutionEngine:
    """Create a local execution engine wired to the test collaborators.

    Args:
        workflow_registry: Workflow registry fixture
        tools: Recording tool executor fixture
        usage_tracker: Usage tracker fixture
        clock: Manual clock fixture
        mock_event_bus: Mock event bus fixture

    Returns:
        LocalExecutionEngine instance
    """
    from litestar_automation.engine.local import LocalExecutionEngine

    return LocalExecutionEngine(
        registry=workflow_registry,
        tool_executor=tools,
        usage_tracker=usage_tracker,
        clock=clock,
        event_bus=mock_event_bus,
    )


@pytest.fixture
def scheduler(engine: LocalExecutionEngine, clock: ManualClock) -> WorkflowScheduler:
    """Create a started scheduler on the manual clock.

    Returns:
        WorkflowScheduler instance
    """
    from litestar_automation.engine.scheduler import WorkflowScheduler

    scheduler = WorkflowScheduler(engine, clock=clock)
    scheduler.start()
    return scheduler


@pytest.fixture
def trigger_registry(engine: LocalExecutionEngine) -> TriggerRegistry:
    """Create a trigger registry.

    Returns:
        TriggerRegistry instance
    """
    from litestar_automation.engine.triggers import TriggerRegistry

    return TriggerRegistry(engine)


@pytest.fixture
def make_workflow(workflow_registry: WorkflowRegistry) -> Callable[..., WorkflowDefinition]:
    """Factory storing a workflow in the registry fixture.

    Returns:
        Callable taking steps (or tool IDs) and an optional name.
    """
    counter = itertools.count(1)

    def factory(*steps: Step | str, name: str | None = None) -> WorkflowDefinition:
        result = workflow_registry.create(name or f"workflow-{next(counter)}", make_steps(*steps))
        assert result.success, result.errors
        assert result.workflow is not None
        return result.workflow

    return factory


@pytest.fixture
def state_store() -> InMemoryStateStore:
    """Create an in-memory state store."""
    from litestar_automation.storage.base import InMemoryStateStore

    return InMemoryStateStore()


@pytest.fixture
async def service(
    tools: FakeToolExecutor,
    clock: ManualClock,
    state_store: InMemoryStateStore,
    mock_event_bus: MockEventBus,
) -> AsyncIterator[AutomationService]:
    """Create an initialized automation service on the manual clock.

    Yields:
        AutomationService instance
    """
    from litestar_automation.service import AutomationService

    service = AutomationService(tools, clock=clock, state_store=state_store, event_bus=mock_event_bus)
    await service.initialize()
    yield service
    await service.shutdown()


# Pytest configuration
def pytest_configure(config: Any) -> None:
    """Configure pytest with custom markers.

    Args:
        config: Pytest config object
    """
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests")
