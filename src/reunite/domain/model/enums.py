"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class ItemKind(StrEnum):
    LOST = "lost"
    FOUND = "found"


class Confidence(StrEnum):
    """Oracle confidence tiers, declared from weakest to strongest."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def highest(cls) -> Confidence:
        return list(cls)[-1]


class TriggerOrigin(StrEnum):
    STARTUP = "startup"
    SUBSCRIPTION = "subscription"
    TIMER = "timer"
    MANUAL = "manual"
    RECOVERY = "recovery"


class OutcomeKind(StrEnum):
    NO_ITEMS = "no-items"
    NO_MATCH = "no-match"
    MATCH_COMMITTED = "match-committed"
    ERROR = "error"


class MatchStrategy(StrEnum):
    PER_ITEM = "per-item"
    BATCH = "batch"
