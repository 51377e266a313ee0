"""Ports for the semantic-matching inference oracle."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from reunite.domain.model import MatchVerdict


@dataclass(frozen=True, slots=True, kw_only=True)
class Attachment:
    """Inline content sent with a request, labelled with the item it belongs to."""

    label: str
    mime_type: str
    data: bytes = field(repr=False)


@dataclass(frozen=True, slots=True, kw_only=True)
class OracleRequest:
    system_instruction: str
    prompt: str
    attachments: tuple[Attachment, ...] = ()


@runtime_checkable
class MatchOracle(Protocol):
    """Returns the oracle's verdict, ``None`` for an explicit no-match.

    Implementations raise ``OracleFault`` for transport errors and responses
    outside the match schema.
    """

    async def compare(self, request: OracleRequest) -> MatchVerdict | None: ...
