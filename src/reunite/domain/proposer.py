"""Match proposal: oracle requests and the confidence acceptance policy."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from reunite.domain.errors import ContentUnavailable, OracleFault
from reunite.domain.model import CandidatePair, Confidence, MatchStrategy
from reunite.domain.ports.oracle import Attachment, OracleRequest
from reunite.domain.prompts import (
    BATCH_SYSTEM_INSTRUCTION,
    SINGLE_ITEM_SYSTEM_INSTRUCTION,
    attachment_label,
    batch_prompt,
    single_item_prompt,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from reunite.domain.model import Item, MatchVerdict, Snapshot
    from reunite.domain.ports.content import ContentBlob, ContentResolver
    from reunite.domain.ports.oracle import MatchOracle

log = getLogger(__name__)

DEFAULT_ORACLE_TIMEOUT_SECONDS = 120.0


def accept(
    verdict: MatchVerdict | None,
    *,
    lost_items: Sequence[Item],
    found_items: Sequence[Item],
) -> CandidatePair | None:
    """Promote ``verdict`` only at the highest confidence tier and for requested ids."""

    if verdict is None:
        return None
    if verdict.confidence is not Confidence.highest():
        log.info(
            "Oracle proposed lost %s <-> found %s at confidence %s; not accepted",
            verdict.lost_id,
            verdict.found_id,
            verdict.confidence or "unspecified",
        )
        return None
    if verdict.lost_id not in {item.id for item in lost_items}:
        log.warning("Oracle answered with lost id %s outside the request", verdict.lost_id)
        return None
    if verdict.found_id not in {item.id for item in found_items}:
        log.warning("Oracle answered with found id %s outside the request", verdict.found_id)
        return None
    return CandidatePair(
        lost_id=verdict.lost_id,
        found_id=verdict.found_id,
        confidence=verdict.confidence,
    )


@dataclass(slots=True)
class _ContentMemo:
    """Resolves each content reference at most once per proposal."""

    resolver: ContentResolver | None
    blobs: dict[str, ContentBlob | None] = field(default_factory=dict)

    async def attachment_for(self, item: Item) -> Attachment | None:
        if self.resolver is None or item.content_ref is None:
            return None
        if item.content_ref not in self.blobs:
            self.blobs[item.content_ref] = await self._resolve(self.resolver, item, item.content_ref)
        blob = self.blobs[item.content_ref]
        if blob is None:
            return None
        return Attachment(label=attachment_label(item), mime_type=blob.mime_type, data=blob.data)

    async def attachments_for(self, items: Iterable[Item]) -> tuple[Attachment, ...]:
        attachments: list[Attachment] = []
        for item in items:
            attachment = await self.attachment_for(item)
            if attachment is not None:
                attachments.append(attachment)
        return tuple(attachments)

    @staticmethod
    async def _resolve(
        resolver: ContentResolver, item: Item, content_ref: str
    ) -> ContentBlob | None:
        try:
            return await resolver.resolve(content_ref)
        except ContentUnavailable as exc:
            log.warning("Item %s goes to the oracle text-only: %s", item.id, exc)
            return None


@dataclass(slots=True)
class MatchProposer:
    """Turns a snapshot into at most one candidate pair."""

    oracle: MatchOracle
    content: ContentResolver | None = None
    strategy: MatchStrategy = MatchStrategy.PER_ITEM
    timeout_seconds: float = DEFAULT_ORACLE_TIMEOUT_SECONDS

    async def propose(self, snapshot: Snapshot) -> CandidatePair | None:
        if not snapshot.is_matchable:
            log.info("No unmatched items of both kinds to compare")
            return None

        memo = _ContentMemo(self.content)
        if self.strategy is MatchStrategy.BATCH:
            return await self._propose_batch(snapshot, memo)
        return await self._propose_per_item(snapshot, memo)

    async def _propose_per_item(
        self, snapshot: Snapshot, memo: _ContentMemo
    ) -> CandidatePair | None:
        found_items = snapshot.unmatched_found
        found_attachments = await memo.attachments_for(found_items)
        for lost_item in snapshot.unmatched_lost:
            log.info('Searching for a match for lost item %s ("%s")', lost_item.id, lost_item.title)
            lost_attachment = await memo.attachment_for(lost_item)
            attachments = (
                (lost_attachment, *found_attachments) if lost_attachment else found_attachments
            )
            request = OracleRequest(
                system_instruction=SINGLE_ITEM_SYSTEM_INSTRUCTION,
                prompt=single_item_prompt(lost_item, found_items),
                attachments=attachments,
            )
            verdict = await self._ask(request)
            pair = accept(verdict, lost_items=(lost_item,), found_items=found_items)
            if pair is not None:
                log.info("Oracle confirmed %s", pair)
                return pair
            log.info("No match accepted for lost item %s", lost_item.id)
        return None

    async def _propose_batch(self, snapshot: Snapshot, memo: _ContentMemo) -> CandidatePair | None:
        lost_items = snapshot.unmatched_lost
        found_items = snapshot.unmatched_found
        request = OracleRequest(
            system_instruction=BATCH_SYSTEM_INSTRUCTION,
            prompt=batch_prompt(lost_items, found_items),
            attachments=await memo.attachments_for((*lost_items, *found_items)),
        )
        pair = accept(await self._ask(request), lost_items=lost_items, found_items=found_items)
        if pair is not None:
            log.info("Oracle confirmed %s", pair)
        return pair

    async def _ask(self, request: OracleRequest) -> MatchVerdict | None:
        try:
            async with asyncio.timeout(self.timeout_seconds):
                return await self.oracle.compare(request)
        except TimeoutError:
            log.warning(
                "Oracle call exceeded %.0fs; treating as no match until the next run",
                self.timeout_seconds,
            )
        except OracleFault as exc:
            log.warning("Oracle call failed, treating as no match: %s", exc)
        return None
