"""Database persistence layer for litestar-automation.

This module provides the SQLAlchemy model, repository and state store for
persisting automation state in a relational database.

Requires the [db] extra:
    pip install litestar-automation[db]
"""

from __future__ import annotations

from litestar_automation.db.models import StateBlobModel
from litestar_automation.db.repositories import StateBlobRepository
from litestar_automation.db.store import SQLAlchemyStateStore

__all__ = [
    "SQLAlchemyStateStore",
    "StateBlobModel",
    "StateBlobRepository",
]
