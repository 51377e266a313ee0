"""Run outcomes and the run record kept by the run guard."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

from .enums import OutcomeKind, TriggerOrigin


@dataclass(frozen=True, slots=True, kw_only=True)
class RunOutcome:
    kind: OutcomeKind
    tx_ref: str | None = None
    error_kind: str | None = None
    detail: str | None = None

    def __post_init__(self) -> None:
        if self.kind is OutcomeKind.MATCH_COMMITTED and not self.tx_ref:
            raise ValueError("A committed match outcome needs a transaction reference")
        if self.kind is OutcomeKind.ERROR and not self.error_kind:
            raise ValueError("An error outcome needs an error kind")

    @classmethod
    def no_items(cls) -> RunOutcome:
        return cls(kind=OutcomeKind.NO_ITEMS)

    @classmethod
    def no_match(cls, detail: str | None = None) -> RunOutcome:
        return cls(kind=OutcomeKind.NO_MATCH, detail=detail)

    @classmethod
    def committed(cls, tx_ref: str) -> RunOutcome:
        return cls(kind=OutcomeKind.MATCH_COMMITTED, tx_ref=tx_ref)

    @classmethod
    def error(cls, error_kind: str, detail: str | None = None) -> RunOutcome:
        return cls(kind=OutcomeKind.ERROR, error_kind=error_kind, detail=detail)

    @property
    def is_error(self) -> bool:
        return self.kind is OutcomeKind.ERROR

    def __str__(self) -> str:
        if self.kind is OutcomeKind.MATCH_COMMITTED:
            return f"{self.kind}:{self.tx_ref}"
        if self.kind is OutcomeKind.ERROR:
            return f"{self.kind}:{self.error_kind}"
        return str(self.kind)


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True, kw_only=True)
class RunRecord:
    """Bookkeeping for the running or most recently finished run."""

    run_id: int
    origin: TriggerOrigin
    started_at: datetime = field(default_factory=_utcnow)
    finished_at: datetime | None = None
    outcome: RunOutcome | None = None

    @property
    def is_finished(self) -> bool:
        return self.outcome is not None

    def finish(self, outcome: RunOutcome) -> None:
        self.outcome = outcome
        self.finished_at = _utcnow()
