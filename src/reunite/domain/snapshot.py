"""Snapshot collection from the ledger."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from reunite.domain.model import SENTINEL_ITEM_ID, Item, Snapshot

if TYPE_CHECKING:
    from reunite.domain.ports.ledger import LedgerConnector

log = getLogger(__name__)


async def collect(connector: LedgerConnector) -> Snapshot | None:
    """Read every item once and keep those without a match link.

    Returns ``None`` when the ledger holds nothing beyond the sentinel slot.
    Items are fetched one after another to bound the load on the ledger node;
    connector errors propagate unchanged.
    """

    item_count = await connector.item_count()
    log.info("Ledger reports %s items", max(item_count - 1, 0))
    if item_count <= SENTINEL_ITEM_ID + 1:
        return None

    unmatched: list[Item] = []
    matched = 0
    for item_id in range(SENTINEL_ITEM_ID + 1, item_count):
        item = await connector.get_item(item_id)
        if await connector.match_status(item_id) != 0:
            matched += 1
            continue
        unmatched.append(item)

    snapshot = Snapshot.from_items(unmatched, item_count=item_count)
    log.info(
        "Snapshot: %s unmatched lost, %s unmatched found, %s already matched",
        len(snapshot.unmatched_lost),
        len(snapshot.unmatched_found),
        matched,
    )
    return snapshot
