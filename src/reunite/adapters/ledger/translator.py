"""Translate raw contract results and event logs into domain values."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from reunite.domain.model import Item
from reunite.domain.ports.ledger import ItemReported, MatchFound

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence


def parse_item(raw: Sequence[Any]) -> Item:
    """Build an ``Item`` from the ``getItem`` return tuple."""

    if len(raw) != 6:
        raise ValueError(f"getItem returned {len(raw)} fields, expected 6")
    item_id, reporter, is_lost, title, description, content_ref = raw
    return Item(
        id=int(item_id),
        reporter=str(reporter),
        is_lost=bool(is_lost),
        title=str(title),
        description=str(description),
        content_ref=str(content_ref) if content_ref else None,
    )


def parse_item_reported(args: Mapping[str, Any]) -> ItemReported:
    content_ref = args.get("ipfsCid")
    return ItemReported(
        item_id=int(args["itemId"]),
        reporter=str(args["reporter"]),
        is_lost=bool(args["isLost"]),
        title=str(args["title"]),
        content_ref=str(content_ref) if content_ref else None,
    )


def parse_match_found(args: Mapping[str, Any]) -> MatchFound:
    return MatchFound(first_id=int(args["itemId1"]), second_id=int(args["itemId2"]))
