"""web3.py adapter for the item ledger contract."""

from __future__ import annotations

from .abi import ITEM_REPORTED_TOPIC, LEDGER_ABI, MATCH_FOUND_TOPIC
from .connection import Web3LedgerConnection, redact_url
from .connector import TRANSPORT_ERRORS, Web3LedgerConnector, guard_transport
from .translator import parse_item, parse_item_reported, parse_match_found

__all__ = [
    "ITEM_REPORTED_TOPIC",
    "LEDGER_ABI",
    "MATCH_FOUND_TOPIC",
    "TRANSPORT_ERRORS",
    "Web3LedgerConnection",
    "Web3LedgerConnector",
    "guard_transport",
    "parse_item",
    "parse_item_reported",
    "parse_match_found",
    "redact_url",
]
