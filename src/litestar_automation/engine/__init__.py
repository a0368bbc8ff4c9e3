"""Workflow automation engine implementations.

This module provides the definition store, the execution engine, the
scheduler, the trigger registry, the metrics aggregator and the in-process
clock and tool collaborators they run on.
"""

from __future__ import annotations

from litestar_automation.engine.clock import ManualClock, SystemClock
from litestar_automation.engine.local import LocalExecutionEngine
from litestar_automation.engine.metrics import MetricsAggregator, compute_metrics
from litestar_automation.engine.registry import WorkflowRegistry
from litestar_automation.engine.scheduler import WorkflowScheduler, compute_next_run
from litestar_automation.engine.tools import FunctionToolExecutor, InMemoryUsageTracker
from litestar_automation.engine.triggers import TriggerRegistry

__all__ = [
    "FunctionToolExecutor",
    "InMemoryUsageTracker",
    "LocalExecutionEngine",
    "ManualClock",
    "MetricsAggregator",
    "SystemClock",
    "TriggerRegistry",
    "WorkflowRegistry",
    "WorkflowScheduler",
    "compute_metrics",
    "compute_next_run",
]
