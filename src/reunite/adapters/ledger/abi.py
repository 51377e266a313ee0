"""ABI of the lost-and-found ledger contract."""

from __future__ import annotations

from typing import Any, Final

from web3 import Web3

ITEM_REPORTED_SIGNATURE: Final = "ItemReported(uint256,address,bool,string,string)"
MATCH_FOUND_SIGNATURE: Final = "MatchFound(uint256,uint256)"

ITEM_REPORTED_TOPIC: Final[bytes] = bytes(Web3.keccak(text=ITEM_REPORTED_SIGNATURE))
MATCH_FOUND_TOPIC: Final[bytes] = bytes(Web3.keccak(text=MATCH_FOUND_SIGNATURE))


def _uint(name: str = "", *, indexed: bool | None = None) -> dict[str, Any]:
    entry: dict[str, Any] = {"name": name, "type": "uint256"}
    if indexed is not None:
        entry["indexed"] = indexed
    return entry


LEDGER_ABI: Final[list[dict[str, Any]]] = [
    {
        "type": "function",
        "name": "getItemCount",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [_uint()],
    },
    {
        "type": "function",
        "name": "getItem",
        "stateMutability": "view",
        "inputs": [_uint("_itemId")],
        "outputs": [
            _uint("id"),
            {"name": "reporter", "type": "address"},
            {"name": "isLost", "type": "bool"},
            {"name": "title", "type": "string"},
            {"name": "description", "type": "string"},
            {"name": "ipfsCid", "type": "string"},
        ],
    },
    {
        "type": "function",
        "name": "matchedItem",
        "stateMutability": "view",
        "inputs": [_uint()],
        "outputs": [_uint()],
    },
    {
        "type": "function",
        "name": "recordMatch",
        "stateMutability": "nonpayable",
        "inputs": [_uint("lostId"), _uint("foundId")],
        "outputs": [],
    },
    {
        "type": "event",
        "name": "ItemReported",
        "anonymous": False,
        "inputs": [
            _uint("itemId", indexed=True),
            {"name": "reporter", "type": "address", "indexed": True},
            {"name": "isLost", "type": "bool", "indexed": False},
            {"name": "title", "type": "string", "indexed": False},
            {"name": "ipfsCid", "type": "string", "indexed": False},
        ],
    },
    {
        "type": "event",
        "name": "MatchFound",
        "anonymous": False,
        "inputs": [_uint("itemId1", indexed=True), _uint("itemId2", indexed=True)],
    },
]
