"""State persistence for litestar-automation.

The automation state is stored as versioned JSON blobs in any object
implementing the :class:`~litestar_automation.core.protocols.StateStore`
protocol. ``InMemoryStateStore`` is provided here; a SQLAlchemy-backed store
lives in :mod:`litestar_automation.db`.
"""

from __future__ import annotations

from litestar_automation.storage.base import InMemoryStateStore, VersionedBlob
from litestar_automation.storage.repository import SCHEMA_VERSION, Migration, PersistedState, StateRepository

__all__ = [
    "SCHEMA_VERSION",
    "InMemoryStateStore",
    "Migration",
    "PersistedState",
    "StateRepository",
    "VersionedBlob",
]
