"""Error taxonomy for reconciliation runs."""

from __future__ import annotations

from typing import ClassVar


class ReconciliationError(RuntimeError):
    """Base class for faults raised while reconciling the ledger."""

    error_kind: ClassVar[str] = "reconciliation"


class ConnectionFault(ReconciliationError):
    """Transport-level ledger failure; fatal to the current connector generation."""

    error_kind: ClassVar[str] = "connection"


class OracleFault(ReconciliationError):
    """Oracle timeout, transport failure or a response outside the match schema."""

    error_kind: ClassVar[str] = "oracle"


class ContentUnavailable(ReconciliationError):
    """A content reference could not be resolved to bytes."""

    error_kind: ClassVar[str] = "content"

    def __init__(self, content_ref: str, reason: str) -> None:
        super().__init__(f"Content {content_ref} unavailable: {reason}")
        self.content_ref = content_ref


class CommitRejected(ReconciliationError):
    """The ledger refused the match because one side is already linked."""

    error_kind: ClassVar[str] = "commit-rejected"


class CommitUnconfirmed(ReconciliationError):
    """A submitted match transaction was not confirmed."""

    error_kind: ClassVar[str] = "commit-unconfirmed"

    def __init__(self, tx_ref: str, reason: str) -> None:
        super().__init__(f"Transaction {tx_ref} not confirmed: {reason}")
        self.tx_ref = tx_ref
