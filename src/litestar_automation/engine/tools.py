"""In-process implementations of the tool collaborators.

``FunctionToolExecutor`` maps tool identifiers to plain Python callables and
doubles as the tool catalog used to validate definitions.
``InMemoryUsageTracker`` counts successful tool runs.
"""

from __future__ import annotations

import inspect
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from litestar_automation.core.models import ToolResult
from litestar_automation.exceptions import ToolNotFoundError

__all__ = ["FunctionToolExecutor", "InMemoryUsageTracker", "ToolFunction", "ToolUsage"]

ToolFunction = Callable[[dict[str, Any]], Any | Awaitable[Any]]
"""A tool implementation: receives the execution variables, returns output data."""


class FunctionToolExecutor:
    """Tool executor dispatching to registered callables.

    Callables may be sync or async. A callable signals failure by raising; it
    may also return a :class:`ToolResult` to report the outcome itself.

    Example:
        >>> executor = FunctionToolExecutor()
        >>> @executor.tool("text-cleaner")
        ... def clean(variables: dict[str, Any]) -> str:
        ...     return variables.get("text", "").strip()
        >>> executor.has_tool("text-cleaner")
        True
    """

    def __init__(self, tools: dict[str, ToolFunction] | None = None) -> None:
        self._tools: dict[str, ToolFunction] = dict(tools or {})

    def register(self, tool_id: str, func: ToolFunction) -> None:
        """Register or replace the implementation of a tool."""
        self._tools[tool_id] = func

    def tool(self, tool_id: str) -> Callable[[ToolFunction], ToolFunction]:
        """Decorator form of :meth:`register`."""

        def decorator(func: ToolFunction) -> ToolFunction:
            self.register(tool_id, func)
            return func

        return decorator

    def has_tool(self, tool_id: str) -> bool:
        return tool_id in self._tools

    async def invoke(self, tool_id: str, variables: dict[str, Any]) -> ToolResult:
        """Run a registered tool.

        Args:
            tool_id: Identifier of the tool to run.
            variables: Variables of the execution.

        Returns:
            A successful ToolResult carrying the callable's return value.

        Raises:
            ToolNotFoundError: If no callable is registered for ``tool_id``.
        """
        func = self._tools.get(tool_id)
        if func is None:
            raise ToolNotFoundError(tool_id)

        started = time.perf_counter()
        output = func(dict(variables))
        if inspect.isawaitable(output):
            output = await output
        duration_ms = (time.perf_counter() - started) * 1000

        if isinstance(output, ToolResult):
            return output
        return ToolResult(success=True, data=output, duration_ms=duration_ms)


@dataclass
class ToolUsage:
    """Usage counters of one tool."""

    usage_count: int = 0
    last_used: datetime | None = None


class InMemoryUsageTracker:
    """Usage tracker keeping counters in memory."""

    def __init__(self, now: Callable[[], datetime] | None = None) -> None:
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._usage: dict[str, ToolUsage] = {}

    def record_usage(self, tool_id: str) -> None:
        usage = self._usage.setdefault(tool_id, ToolUsage())
        usage.usage_count += 1
        usage.last_used = self._now()

    def get_usage(self, tool_id: str) -> ToolUsage:
        """Return the counters of a tool; unused tools report zero."""
        return self._usage.get(tool_id, ToolUsage())

    def most_used(self, limit: int = 5) -> list[tuple[str, int]]:
        """Return ``(tool_id, usage_count)`` pairs, most used first."""
        ranked = sorted(self._usage.items(), key=lambda item: item[1].usage_count, reverse=True)
        return [(tool_id, usage.usage_count) for tool_id, usage in ranked[:limit]]
