"""SQLAlchemy models for automation state persistence.

This module defines the database model backing the SQLAlchemy state store:
- StateBlobModel: One versioned JSON document per storage key
"""

from __future__ import annotations

from typing import Any

from advanced_alchemy.base import UUIDAuditBase
from sqlalchemy import JSON, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

__all__ = ["StateBlobModel"]


# Cross-database JSON type: uses JSONB for PostgreSQL, JSON for others (SQLite, MySQL, etc.)
JSONType = JSON().with_variant(JSONB, "postgresql")


class StateBlobModel(UUIDAuditBase):
    """Persisted state blob.

    Attributes:
        key: Storage key, e.g. ``automation:workflows``.
        schema_version: Version of the layout of ``payload``.
        payload: The serialized collection.
    """

    __tablename__ = "automation_state_blobs"

    key: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    schema_version: Mapped[int] = mapped_column(default=1)
    payload: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict)
