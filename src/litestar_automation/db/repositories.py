"""Repository implementations for state blob persistence.

This module provides the async repository for the state blob table using
advanced-alchemy's repository pattern.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from advanced_alchemy.repository import SQLAlchemyAsyncRepository
from sqlalchemy import select

from litestar_automation.db.models import StateBlobModel

if TYPE_CHECKING:
    from collections.abc import Sequence

__all__ = ["StateBlobRepository"]


class StateBlobRepository(SQLAlchemyAsyncRepository[StateBlobModel]):
    """Repository for state blob CRUD operations."""

    model_type = StateBlobModel

    async def get_by_key(self, key: str) -> StateBlobModel | None:
        """Get the blob stored under a key.

        Args:
            key: The storage key.

        Returns:
            The blob model or None if not found.
        """
        stmt = select(StateBlobModel).where(StateBlobModel.key == key)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def put(self, key: str, schema_version: int, payload: dict[str, Any]) -> StateBlobModel:
        """Insert or replace the blob stored under a key.

        Args:
            key: The storage key.
            schema_version: Version of the payload layout.
            payload: The JSON document.

        Returns:
            The stored blob model.
        """
        existing = await self.get_by_key(key)
        if existing is None:
            return await self.add(StateBlobModel(key=key, schema_version=schema_version, payload=payload))

        existing.schema_version = schema_version
        existing.payload = payload
        return await self.update(existing)

    async def list_keys(self, prefix: str = "") -> Sequence[str]:
        """List stored keys, optionally restricted to a prefix.

        Args:
            prefix: Key prefix to filter on.

        Returns:
            Matching keys in alphabetical order.
        """
        stmt = select(StateBlobModel.key).order_by(StateBlobModel.key)
        if prefix:
            stmt = stmt.where(StateBlobModel.key.startswith(prefix))
        result = await self.session.execute(stmt)
        return result.scalars().all()
