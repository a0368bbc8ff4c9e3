"""Core protocols for litestar-automation.

This module defines the Protocol-based contracts of the collaborators the
automation core consumes: tool execution, usage tracking, clocks and timers,
event emission and key-value persistence. Using Protocol allows any object
with the right shape to be plugged in.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from datetime import datetime

    from litestar_automation.core.models import ToolResult
    from litestar_automation.storage.base import VersionedBlob


__all__ = ["Clock", "EventBus", "StateStore", "TimerHandle", "ToolCatalog", "ToolExecutor", "UsageTracker"]


@runtime_checkable
class ToolExecutor(Protocol):
    """Contract for running a tool on behalf of a workflow step.

    Example:
        >>> class EchoExecutor:
        ...     async def invoke(self, tool_id: str, variables: dict[str, Any]) -> ToolResult:
        ...         return ToolResult(success=True, data={"tool": tool_id, **variables})
    """

    async def invoke(self, tool_id: str, variables: dict[str, Any]) -> ToolResult:
        """Invoke a tool.

        Args:
            tool_id: Identifier of the tool to run.
            variables: Variables of the execution.

        Returns:
            The result of the invocation. Implementations may also signal a
            failure by raising; the message is recorded on the step result.
        """
        ...


@runtime_checkable
class ToolCatalog(Protocol):
    """Contract for resolving tool identifiers during definition validation."""

    def has_tool(self, tool_id: str) -> bool:
        """Return True if ``tool_id`` refers to a known tool."""
        ...


@runtime_checkable
class UsageTracker(Protocol):
    """Fire-and-forget usage recording for successfully run tools."""

    def record_usage(self, tool_id: str) -> None:
        """Record one use of a tool."""
        ...


class EventBus(Protocol):
    """Contract for emitting lifecycle events."""

    async def emit(self, event_type: str, **kwargs: Any) -> None:
        """Emit an event.

        Args:
            event_type: Dotted event name, e.g. ``execution.completed``.
            **kwargs: Event attributes.
        """
        ...


class TimerHandle(Protocol):
    """Handle of a pending timer."""

    when: datetime

    def cancel(self) -> None:
        """Cancel the timer. Cancelling twice is harmless."""
        ...


class Clock(Protocol):
    """Time source and timer factory.

    The engine and scheduler never read the wall clock directly so that tests
    can substitute a deterministic clock.
    """

    def now(self) -> datetime:
        """Return the current time as a timezone-aware UTC datetime."""
        ...

    async def sleep(self, seconds: float) -> None:
        """Suspend the caller for ``seconds``."""
        ...

    def call_at(self, when: datetime, callback: Callable[[], Awaitable[None]]) -> TimerHandle:
        """Run ``callback`` once at ``when`` (immediately if already due).

        Args:
            when: Instant to fire at.
            callback: Coroutine function to run.

        Returns:
            A handle that can cancel the timer.
        """
        ...


class StateStore(Protocol):
    """Key-value contract for versioned state blobs."""

    async def load(self, key: str) -> VersionedBlob | None:
        """Return the blob stored under ``key`` or None if there is none."""
        ...

    async def save(self, key: str, blob: VersionedBlob) -> bool:
        """Store ``blob`` under ``key``, replacing any previous blob.

        Returns:
            True if the write succeeded.
        """
        ...
