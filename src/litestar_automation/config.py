"""Configuration for the automation service."""

from __future__ import annotations

from dataclasses import dataclass

__all__ = ["AutomationConfig"]


@dataclass
class AutomationConfig:
    """Configuration for the AutomationService.

    Attributes:
        storage_key_prefix: Prefix of the keys the state is persisted under.
        default_auto_advance: Execution-level auto-advance used when a caller
            does not choose one.
        execution_history_limit: Maximum number of executions kept; the oldest
            finished executions are pruned beyond it. None keeps everything.
        start_scheduler: Whether ``initialize`` arms the schedules.

    Example:
        >>> config = AutomationConfig(storage_key_prefix="studio", execution_history_limit=500)
    """

    storage_key_prefix: str = "automation"
    default_auto_advance: bool = True
    execution_history_limit: int | None = None
    start_scheduler: bool = True
