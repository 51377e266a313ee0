"""Submitting confirmed pairs to the ledger and tracking confirmation."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from reunite.domain.errors import CommitRejected, CommitUnconfirmed, ConnectionFault

if TYPE_CHECKING:
    from reunite.domain.model import CandidatePair
    from reunite.domain.ports.ledger import LedgerConnector

log = getLogger(__name__)


@dataclass(slots=True)
class CommitPipeline:
    """Writes match links and watches their confirmation in the background.

    The ledger contract reverts ``recordMatch`` when either side is already
    linked; that revert is the idempotence guard and is treated as a benign
    no-op. Unconfirmed submissions are only logged: the next run sees both
    items unmatched again and re-evaluates them.
    """

    pending: set[asyncio.Task[None]] = field(default_factory=set)

    async def commit(self, connector: LedgerConnector, pair: CandidatePair) -> str | None:
        log.info("Submitting match transaction for %s", pair)
        try:
            tx_ref = await connector.record_match(pair.lost_id, pair.found_id)
        except CommitRejected as exc:
            log.info(
                "Ledger rejected lost %s <-> found %s as already matched: %s",
                pair.lost_id,
                pair.found_id,
                exc,
            )
            return None

        log.info("Submitted match transaction %s", tx_ref)
        task = asyncio.create_task(
            self._await_confirmation(connector, tx_ref), name=f"confirm-{tx_ref}"
        )
        self.pending.add(task)
        task.add_done_callback(self.pending.discard)
        return tx_ref

    async def drain(self) -> None:
        """Wait for every confirmation currently being tracked."""

        if self.pending:
            await asyncio.gather(*self.pending, return_exceptions=True)

    async def cancel_pending(self) -> None:
        for task in list(self.pending):
            task.cancel()
        await self.drain()

    @staticmethod
    async def _await_confirmation(connector: LedgerConnector, tx_ref: str) -> None:
        try:
            confirmed = await connector.wait_for_confirmation(tx_ref)
        except CommitUnconfirmed as exc:
            log.error("Match transaction failed to confirm: %s", exc)  # noqa: TRY400
            return
        except ConnectionFault as exc:
            log.error("Lost the ledger connection while confirming %s: %s", tx_ref, exc)  # noqa: TRY400
            return
        log.info("Match transaction %s confirmed", confirmed)
