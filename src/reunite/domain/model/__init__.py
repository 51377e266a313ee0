"""Domain model for the matching engine."""

from __future__ import annotations

from .enums import Confidence, ItemKind, MatchStrategy, OutcomeKind, TriggerOrigin
from .items import SENTINEL_ITEM_ID, CandidatePair, Item, MatchVerdict, Snapshot
from .runs import RunOutcome, RunRecord

__all__ = [
    "SENTINEL_ITEM_ID",
    "CandidatePair",
    "Confidence",
    "Item",
    "ItemKind",
    "MatchStrategy",
    "MatchVerdict",
    "OutcomeKind",
    "RunOutcome",
    "RunRecord",
    "Snapshot",
    "TriggerOrigin",
]
