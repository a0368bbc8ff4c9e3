"""Versioned blob contract and the in-memory state store."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any

__all__ = ["InMemoryStateStore", "VersionedBlob"]


@dataclass
class VersionedBlob:
    """A JSON-compatible payload stamped with the schema version that wrote it.

    Attributes:
        schema_version: Version of the layout of ``payload``.
        payload: JSON-compatible document.
    """

    schema_version: int
    payload: dict[str, Any] = field(default_factory=dict)


class InMemoryStateStore:
    """State store keeping blobs in a dictionary.

    Blobs are deep-copied on the way in and out so callers never share
    mutable state with the store.
    """

    def __init__(self) -> None:
        self._blobs: dict[str, VersionedBlob] = {}

    async def load(self, key: str) -> VersionedBlob | None:
        blob = self._blobs.get(key)
        return copy.deepcopy(blob) if blob is not None else None

    async def save(self, key: str, blob: VersionedBlob) -> bool:
        self._blobs[key] = copy.deepcopy(blob)
        return True

    @property
    def keys(self) -> list[str]:
        """Keys that currently hold a blob."""
        return sorted(self._blobs)
