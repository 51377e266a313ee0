"""Ports for resolving content references to bytes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


@dataclass(frozen=True, slots=True, kw_only=True)
class ContentBlob:
    content_ref: str
    mime_type: str
    data: bytes = field(repr=False)


@runtime_checkable
class ContentResolver(Protocol):
    """Raises ``ContentUnavailable`` when a reference cannot be fetched."""

    async def resolve(self, content_ref: str) -> ContentBlob: ...
