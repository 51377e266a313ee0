"""Scripted oracle and content store fakes."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from reunite.domain.errors import ContentUnavailable
from reunite.domain.model import Confidence, MatchVerdict
from reunite.domain.ports.content import ContentBlob

if TYPE_CHECKING:
    from reunite.domain.ports.oracle import OracleRequest

type Answer = MatchVerdict | None | Exception


def verdict(lost_id: int, found_id: int, confidence: str | None = "high") -> MatchVerdict:
    return MatchVerdict(
        lost_id=lost_id,
        found_id=found_id,
        confidence=Confidence(confidence) if confidence else None,
    )


@dataclass
class ScriptedOracle:
    """Answers requests in order; the last answer repeats once the script runs out."""

    answers: list[Answer] = field(default_factory=list)
    requests: list[OracleRequest] = field(default_factory=list)
    delay_seconds: float = 0.0

    async def compare(self, request: OracleRequest) -> MatchVerdict | None:
        self.requests.append(request)
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if not self.answers:
            return None
        answer = self.answers.pop(0) if len(self.answers) > 1 else self.answers[0]
        if isinstance(answer, Exception):
            raise answer
        return answer


@dataclass
class FakeContentResolver:
    blobs: dict[str, bytes] = field(default_factory=dict)
    resolved: list[str] = field(default_factory=list)

    async def resolve(self, content_ref: str) -> ContentBlob:
        self.resolved.append(content_ref)
        if content_ref not in self.blobs:
            raise ContentUnavailable(content_ref, "gateway returned HTTP 404")
        return ContentBlob(
            content_ref=content_ref, mime_type="image/png", data=self.blobs[content_ref]
        )
