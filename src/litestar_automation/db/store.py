"""State store backed by a relational database.

This module provides a :class:`~litestar_automation.core.protocols.StateStore`
implementation that keeps every blob as a row of ``automation_state_blobs``.
"""

from __future__ import annotations

import copy
import logging
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError

from litestar_automation.db.repositories import StateBlobRepository
from litestar_automation.storage.base import VersionedBlob

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

__all__ = ["SQLAlchemyStateStore"]

logger = logging.getLogger(__name__)


class SQLAlchemyStateStore:
    """State store persisting blobs through SQLAlchemy.

    Each call opens its own session from the factory and commits before
    returning, so the store can be shared by the engine, scheduler and
    trigger registry.

    Attributes:
        session_maker: Factory for async sessions.

    Example:
        >>> engine = create_async_engine("sqlite+aiosqlite:///automation.db")
        >>> store = SQLAlchemyStateStore(async_sessionmaker(engine, expire_on_commit=False))
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self.session_maker = session_maker

    async def load(self, key: str) -> VersionedBlob | None:
        async with self.session_maker() as session:
            model = await StateBlobRepository(session=session).get_by_key(key)
            if model is None:
                return None
            return VersionedBlob(schema_version=model.schema_version, payload=copy.deepcopy(model.payload))

    async def save(self, key: str, blob: VersionedBlob) -> bool:
        """Store a blob, replacing any previous one.

        Returns:
            False if the database rejected the write.
        """
        async with self.session_maker() as session:
            try:
                await StateBlobRepository(session=session).put(key, blob.schema_version, copy.deepcopy(blob.payload))
                await session.commit()
            except SQLAlchemyError:
                await session.rollback()
                logger.exception("Failed to save state blob %s", key)
                return False
        return True
