"""Repository persisting automation state as versioned blobs.

Each collection (workflows, executions, schedules, triggers) is stored as one
blob under ``<prefix>:<collection>`` and rewritten whole on every save. Blobs
carry the schema version that wrote them; older blobs are upgraded through
registered migration hooks when loaded.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from litestar_automation.exceptions import StateMigrationError
from litestar_automation.storage.base import VersionedBlob
from litestar_automation.storage.serialization import (
    execution_from_dict,
    execution_to_dict,
    schedule_from_dict,
    schedule_to_dict,
    trigger_from_dict,
    trigger_to_dict,
    workflow_from_dict,
    workflow_to_dict,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from litestar_automation.core.definition import WorkflowDefinition
    from litestar_automation.core.models import Execution, Schedule, Trigger
    from litestar_automation.core.protocols import StateStore

__all__ = ["SCHEMA_VERSION", "Migration", "PersistedState", "StateRepository"]

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
"""Schema version stamped on every blob written by this code."""

Migration = Callable[[dict[str, Any]], dict[str, Any]]
"""Upgrades a payload from one schema version to the next."""

WORKFLOWS = "workflows"
EXECUTIONS = "executions"
SCHEDULES = "schedules"
TRIGGERS = "triggers"


@dataclass
class PersistedState:
    """Everything loaded from the store at startup."""

    workflows: list[WorkflowDefinition] = field(default_factory=list)
    executions: list[Execution] = field(default_factory=list)
    schedules: list[Schedule] = field(default_factory=list)
    triggers: list[Trigger] = field(default_factory=list)


class StateRepository:
    """Typed access to the persisted automation collections.

    Attributes:
        store: Key-value store holding the blobs.
        key_prefix: Prefix of every storage key.
        migrations: Hooks keyed by the schema version they upgrade from; each
            returns the payload in the layout of the next version.
        schema_version: Version stamped on saved blobs and targeted by migrations.

    Example:
        >>> repository = StateRepository(InMemoryStateStore(), key_prefix="tests")
        >>> repository.key("workflows")
        'tests:workflows'
    """

    def __init__(
        self,
        store: StateStore,
        key_prefix: str = "automation",
        migrations: dict[int, Migration] | None = None,
        schema_version: int = SCHEMA_VERSION,
    ) -> None:
        self.store = store
        self.key_prefix = key_prefix
        self.migrations = dict(migrations or {})
        self.schema_version = schema_version

    def key(self, collection: str) -> str:
        return f"{self.key_prefix}:{collection}"

    async def load(self) -> PersistedState:
        """Load every collection.

        Returns:
            The persisted state; collections without a blob are empty.

        Raises:
            StateMigrationError: If a blob cannot be brought up to the current version.
        """
        return PersistedState(
            workflows=[workflow_from_dict(item) for item in await self._load_items(WORKFLOWS)],
            executions=[execution_from_dict(item) for item in await self._load_items(EXECUTIONS)],
            schedules=[schedule_from_dict(item) for item in await self._load_items(SCHEDULES)],
            triggers=[trigger_from_dict(item) for item in await self._load_items(TRIGGERS)],
        )

    async def save_workflows(self, workflows: Iterable[WorkflowDefinition]) -> bool:
        return await self._save_items(WORKFLOWS, [workflow_to_dict(workflow) for workflow in workflows])

    async def save_executions(self, executions: Iterable[Execution]) -> bool:
        return await self._save_items(EXECUTIONS, [execution_to_dict(execution) for execution in executions])

    async def save_schedules(self, schedules: Iterable[Schedule]) -> bool:
        return await self._save_items(SCHEDULES, [schedule_to_dict(schedule) for schedule in schedules])

    async def save_triggers(self, triggers: Iterable[Trigger]) -> bool:
        return await self._save_items(TRIGGERS, [trigger_to_dict(trigger) for trigger in triggers])

    async def _load_items(self, collection: str) -> list[dict[str, Any]]:
        key = self.key(collection)
        blob = await self.store.load(key)
        if blob is None:
            return []
        payload = self._migrate(key, blob)
        return list(payload.get("items", []))

    async def _save_items(self, collection: str, items: list[dict[str, Any]]) -> bool:
        key = self.key(collection)
        saved = await self.store.save(key, VersionedBlob(schema_version=self.schema_version, payload={"items": items}))
        if not saved:
            logger.warning("State store refused to save %s (%d item(s))", key, len(items))
        return saved

    def _migrate(self, key: str, blob: VersionedBlob) -> dict[str, Any]:
        """Upgrade a blob to the repository schema version.

        Raises:
            StateMigrationError: If the blob is newer than this code or a hook is missing.
        """
        version = blob.schema_version
        payload = blob.payload
        if version > self.schema_version:
            raise StateMigrationError(key, blob.schema_version, self.schema_version)

        while version < self.schema_version:
            migration = self.migrations.get(version)
            if migration is None:
                raise StateMigrationError(key, blob.schema_version, self.schema_version)
            payload = migration(payload)
            logger.info("Migrated %s from schema version %d to %d", key, version, version + 1)
            version += 1

        return payload
