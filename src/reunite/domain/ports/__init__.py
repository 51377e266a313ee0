"""Domain port definitions for adapters."""

from __future__ import annotations

from .content import ContentBlob, ContentResolver
from .ledger import (
    ItemReported,
    ItemReportedHandler,
    LedgerConnection,
    LedgerConnector,
    MatchFound,
    MatchFoundHandler,
)
from .oracle import Attachment, MatchOracle, OracleRequest

__all__ = [
    "Attachment",
    "ContentBlob",
    "ContentResolver",
    "ItemReported",
    "ItemReportedHandler",
    "LedgerConnection",
    "LedgerConnector",
    "MatchFound",
    "MatchFoundHandler",
    "MatchOracle",
    "OracleRequest",
]
