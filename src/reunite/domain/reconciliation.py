"""One reconciliation run: collect, propose, commit."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from reunite.domain.model import RunOutcome
from reunite.domain.snapshot import collect

if TYPE_CHECKING:
    from reunite.domain.commit import CommitPipeline
    from reunite.domain.ports.ledger import LedgerConnector
    from reunite.domain.proposer import MatchProposer

log = getLogger(__name__)

ALREADY_MATCHED = "already-matched"


async def reconcile(
    *,
    connector: LedgerConnector,
    proposer: MatchProposer,
    committer: CommitPipeline,
) -> RunOutcome:
    """Run a single reconciliation cycle against ``connector``.

    Oracle and commit faults are absorbed into the outcome; ``ConnectionFault``
    propagates so the caller can hand recovery to the supervisor.
    """

    snapshot = await collect(connector)
    if snapshot is None:
        log.info("Not enough items to run matching")
        return RunOutcome.no_items()

    pair = await proposer.propose(snapshot)
    if pair is None:
        return RunOutcome.no_match()

    tx_ref = await committer.commit(connector, pair)
    if tx_ref is None:
        return RunOutcome.no_match(ALREADY_MATCHED)
    return RunOutcome.committed(tx_ref)
