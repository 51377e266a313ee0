from __future__ import annotations

import asyncio

import pytest

from reunite.domain.errors import ConnectionFault
from reunite.domain.snapshot import collect
from tests.helpers.ledger import FakeLedger


def test_collect_returns_none_when_only_sentinel_slot_exists(ledger: FakeLedger) -> None:
    assert asyncio.run(collect(ledger)) is None
    assert ledger.calls == [("item_count",)]


def test_collect_returns_none_for_single_item(ledger: FakeLedger) -> None:
    ledger.add_item("Red Wallet", is_lost=True)

    snapshot = asyncio.run(collect(ledger))

    assert snapshot is not None
    assert snapshot.item_count == 2
    assert not snapshot.is_matchable


def test_collect_partitions_unmatched_items_by_kind(ledger: FakeLedger) -> None:
    lost = ledger.add_item("Red Wallet", is_lost=True)
    found = ledger.add_item("Red Wallet", is_lost=False)
    matched_lost = ledger.add_item("Blue Umbrella", is_lost=True)
    matched_found = ledger.add_item("Blue Umbrella", is_lost=False)
    ledger.link(matched_lost.id, matched_found.id)

    snapshot = asyncio.run(collect(ledger))

    assert snapshot is not None
    assert snapshot.unmatched_lost == (lost,)
    assert snapshot.unmatched_found == (found,)
    assert snapshot.unmatched_ids == frozenset({lost.id, found.id})
    assert snapshot.is_matchable
    assert snapshot.lost_by_id(lost.id) == lost
    assert snapshot.found_by_id(found.id) == found
    assert snapshot.lost_by_id(matched_lost.id) is None
    assert snapshot.found_by_id(lost.id) is None


def test_collect_reads_count_once_and_items_in_order(ledger: FakeLedger) -> None:
    for index in range(3):
        ledger.add_item(f"Item {index}", is_lost=index % 2 == 0)

    asyncio.run(collect(ledger))

    assert ledger.calls == [
        ("item_count",),
        ("get_item", 1),
        ("match_status", 1),
        ("get_item", 2),
        ("match_status", 2),
        ("get_item", 3),
        ("match_status", 3),
    ]


def test_collect_propagates_connection_faults(ledger: FakeLedger) -> None:
    ledger.add_item("Red Wallet", is_lost=True)
    ledger.add_item("Red Wallet", is_lost=False)
    ledger.reads_before_fault = 2

    with pytest.raises(ConnectionFault):
        asyncio.run(collect(ledger))
