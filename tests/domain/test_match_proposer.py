from __future__ import annotations

import asyncio

import pytest

from reunite.domain.errors import OracleFault
from reunite.domain.model import Confidence, MatchStrategy, Snapshot
from reunite.domain.proposer import MatchProposer, accept
from reunite.domain.prompts import BATCH_SYSTEM_INSTRUCTION, SINGLE_ITEM_SYSTEM_INSTRUCTION
from tests.helpers.ledger import FakeLedger
from tests.helpers.oracle import FakeContentResolver, ScriptedOracle, verdict


def _snapshot(ledger: FakeLedger) -> Snapshot:
    return Snapshot.from_items(ledger.items.values(), item_count=len(ledger.items) + 1)


@pytest.fixture
def wallets(ledger: FakeLedger) -> Snapshot:
    ledger.add_item("Red Wallet", is_lost=True, content_ref="cid-lost")
    ledger.add_item("Red Wallet", is_lost=False, content_ref="cid-found")
    return _snapshot(ledger)


def test_empty_side_never_invokes_oracle(ledger: FakeLedger, oracle: ScriptedOracle) -> None:
    ledger.add_item("Red Wallet", is_lost=True)
    ledger.add_item("Black Phone", is_lost=True)
    oracle.answers = [verdict(1, 2)]

    pair = asyncio.run(MatchProposer(oracle).propose(_snapshot(ledger)))

    assert pair is None
    assert oracle.requests == []


def test_high_confidence_verdict_is_promoted(wallets: Snapshot, oracle: ScriptedOracle) -> None:
    oracle.answers = [verdict(1, 2, "high")]

    pair = asyncio.run(MatchProposer(oracle).propose(wallets))

    assert pair is not None
    assert (pair.lost_id, pair.found_id) == (1, 2)
    assert pair.confidence is Confidence.HIGH
    request = oracle.requests[0]
    assert request.system_instruction == SINGLE_ITEM_SYSTEM_INSTRUCTION
    assert "Red Wallet" in request.prompt


@pytest.mark.parametrize("confidence", ["medium", "low", None])
def test_lower_or_missing_confidence_is_not_promoted(
    wallets: Snapshot, oracle: ScriptedOracle, confidence: str | None
) -> None:
    oracle.answers = [verdict(1, 2, confidence)]

    assert asyncio.run(MatchProposer(oracle).propose(wallets)) is None


def test_oracle_fault_is_treated_as_no_match(wallets: Snapshot, oracle: ScriptedOracle) -> None:
    oracle.answers = [OracleFault("Oracle answer does not match the schema")]

    assert asyncio.run(MatchProposer(oracle).propose(wallets)) is None


def test_oracle_timeout_is_treated_as_no_match(wallets: Snapshot, oracle: ScriptedOracle) -> None:
    oracle.answers = [verdict(1, 2)]
    oracle.delay_seconds = 1.0

    proposer = MatchProposer(oracle, timeout_seconds=0.01)

    assert asyncio.run(proposer.propose(wallets)) is None


def test_ids_outside_the_request_are_rejected(
    wallets: Snapshot, oracle: ScriptedOracle
) -> None:
    oracle.answers = [verdict(1, 99)]

    assert asyncio.run(MatchProposer(oracle).propose(wallets)) is None


def test_per_item_strategy_stops_at_first_accepted_pair(
    ledger: FakeLedger, oracle: ScriptedOracle
) -> None:
    ledger.add_item("Black Phone", is_lost=True)
    ledger.add_item("Red Wallet", is_lost=True)
    ledger.add_item("Green Scarf", is_lost=True)
    ledger.add_item("Red Wallet", is_lost=False)
    oracle.answers = [None, verdict(2, 4), verdict(3, 4)]

    pair = asyncio.run(MatchProposer(oracle).propose(_snapshot(ledger)))

    assert pair is not None
    assert (pair.lost_id, pair.found_id) == (2, 4)
    assert len(oracle.requests) == 2


def test_per_item_request_only_accepts_the_asked_lost_item(
    ledger: FakeLedger, oracle: ScriptedOracle
) -> None:
    ledger.add_item("Black Phone", is_lost=True)
    ledger.add_item("Red Wallet", is_lost=True)
    ledger.add_item("Red Wallet", is_lost=False)
    # the first request is about lost item 1; an answer naming item 2 is out of scope
    oracle.answers = [verdict(2, 3), None]

    assert asyncio.run(MatchProposer(oracle).propose(_snapshot(ledger))) is None
    assert len(oracle.requests) == 2


def test_batch_strategy_sends_a_single_request(
    ledger: FakeLedger, oracle: ScriptedOracle, content: FakeContentResolver
) -> None:
    ledger.add_item("Black Phone", is_lost=True, content_ref="cid-phone")
    ledger.add_item("Red Wallet", is_lost=True, content_ref="cid-wallet")
    ledger.add_item("Red Wallet", is_lost=False, content_ref="cid-wallet-found")
    content.blobs = {"cid-phone": b"phone", "cid-wallet": b"wallet", "cid-wallet-found": b"w"}
    oracle.answers = [verdict(2, 3)]

    proposer = MatchProposer(oracle, content, strategy=MatchStrategy.BATCH)
    pair = asyncio.run(proposer.propose(_snapshot(ledger)))

    assert pair is not None
    assert (pair.lost_id, pair.found_id) == (2, 3)
    (request,) = oracle.requests
    assert request.system_instruction == BATCH_SYSTEM_INSTRUCTION
    assert [attachment.data for attachment in request.attachments] == [b"phone", b"wallet", b"w"]


def test_unavailable_content_falls_back_to_text_only(
    wallets: Snapshot, oracle: ScriptedOracle, content: FakeContentResolver
) -> None:
    content.blobs = {"cid-found": b"found-image"}
    oracle.answers = [verdict(1, 2)]

    pair = asyncio.run(MatchProposer(oracle, content).propose(wallets))

    assert pair is not None
    (request,) = oracle.requests
    assert [attachment.data for attachment in request.attachments] == [b"found-image"]
    assert "FOUND item ID 2" in request.attachments[0].label


def test_content_is_resolved_once_per_proposal(
    ledger: FakeLedger, oracle: ScriptedOracle, content: FakeContentResolver
) -> None:
    ledger.add_item("Black Phone", is_lost=True)
    ledger.add_item("Red Wallet", is_lost=True)
    ledger.add_item("Red Wallet", is_lost=False, content_ref="cid-found")
    content.blobs = {"cid-found": b"found-image"}
    oracle.answers = [None]

    asyncio.run(MatchProposer(oracle, content).propose(_snapshot(ledger)))

    assert len(oracle.requests) == 2
    assert content.resolved == ["cid-found"]


def test_accept_ignores_missing_verdict(wallets: Snapshot) -> None:
    assert (
        accept(None, lost_items=wallets.unmatched_lost, found_items=wallets.unmatched_found)
        is None
    )
