"""Ledger items and the per-run snapshot built from them."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from .enums import Confidence, ItemKind

if TYPE_CHECKING:
    from collections.abc import Iterable

SENTINEL_ITEM_ID = 0


@dataclass(frozen=True, slots=True, kw_only=True)
class Item:
    """A lost-or-found report as stored on the ledger."""

    id: int
    reporter: str
    is_lost: bool
    title: str
    description: str
    content_ref: str | None = None

    def __post_init__(self) -> None:
        if self.id <= SENTINEL_ITEM_ID:
            raise ValueError(f"Item ids start at 1, got {self.id}")
        if self.content_ref is not None and not self.content_ref.strip():
            object.__setattr__(self, "content_ref", None)

    @property
    def kind(self) -> ItemKind:
        return ItemKind.LOST if self.is_lost else ItemKind.FOUND


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True, kw_only=True)
class Snapshot:
    """Unmatched items partitioned by kind, as observed during one run."""

    item_count: int
    unmatched_lost: tuple[Item, ...] = ()
    unmatched_found: tuple[Item, ...] = ()
    taken_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def from_items(cls, items: Iterable[Item], *, item_count: int) -> Snapshot:
        ordered = sorted(items, key=lambda item: item.id)
        return cls(
            item_count=item_count,
            unmatched_lost=tuple(item for item in ordered if item.is_lost),
            unmatched_found=tuple(item for item in ordered if not item.is_lost),
        )

    @property
    def is_matchable(self) -> bool:
        return bool(self.unmatched_lost) and bool(self.unmatched_found)

    @property
    def unmatched_ids(self) -> frozenset[int]:
        return frozenset(item.id for item in (*self.unmatched_lost, *self.unmatched_found))

    def lost_by_id(self, item_id: int) -> Item | None:
        return next((item for item in self.unmatched_lost if item.id == item_id), None)

    def found_by_id(self, item_id: int) -> Item | None:
        return next((item for item in self.unmatched_found if item.id == item_id), None)


@dataclass(frozen=True, slots=True, kw_only=True)
class MatchVerdict:
    """Raw oracle answer before the acceptance policy is applied."""

    lost_id: int
    found_id: int
    confidence: Confidence | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class CandidatePair:
    """A match promoted by the acceptance policy and awaiting commit."""

    lost_id: int
    found_id: int
    confidence: Confidence

    def __str__(self) -> str:
        return f"lost {self.lost_id} <-> found {self.found_id} ({self.confidence})"
