"""Aggregate statistics over execution history."""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

from litestar_automation.core.models import WorkflowMetrics
from litestar_automation.core.types import ExecutionStatus, StepStatus

if TYPE_CHECKING:
    from collections.abc import Iterable

    from litestar_automation.core.models import Execution
    from litestar_automation.engine.local import LocalExecutionEngine

__all__ = ["MetricsAggregator", "compute_metrics"]


def compute_metrics(executions: Iterable[Execution]) -> WorkflowMetrics:
    """Summarize a set of executions.

    Args:
        executions: The executions to summarize.

    Returns:
        The metrics; a workflow without executions reports all zeros.

    Example:
        >>> compute_metrics([]).error_rate
        0.0
    """
    executions = list(executions)
    total = len(executions)
    if total == 0:
        return WorkflowMetrics()

    successful = sum(1 for execution in executions if execution.status == ExecutionStatus.COMPLETED)
    failed = sum(1 for execution in executions if execution.status == ExecutionStatus.FAILED)
    durations = [execution.total_duration for execution in executions if execution.total_duration is not None]

    tool_counts: Counter[str] = Counter(
        result.tool_id
        for execution in executions
        for result in execution.step_results
        if result.status == StepStatus.COMPLETED
    )
    most_used = tool_counts.most_common(1)

    return WorkflowMetrics(
        total_executions=total,
        successful_executions=successful,
        failed_executions=failed,
        average_duration=sum(durations) / len(durations) if durations else 0.0,
        error_rate=failed / total,
        last_executed=max(execution.started_at for execution in executions),
        most_used_step=most_used[0][0] if most_used else None,
    )


class MetricsAggregator:
    """Read-only view computing metrics from the engine's execution history."""

    def __init__(self, engine: LocalExecutionEngine) -> None:
        self.engine = engine

    def get_workflow_metrics(self, workflow_id: str) -> WorkflowMetrics:
        """Compute the metrics of one workflow.

        Args:
            workflow_id: The workflow to summarize.

        Returns:
            Metrics over every stored execution of the workflow.
        """
        return compute_metrics(self.engine.get_workflow_executions(workflow_id))
