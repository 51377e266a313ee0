"""Ports for reading and writing the item ledger."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from reunite.config.ledger import LedgerCredential
    from reunite.domain.model import Item


@dataclass(frozen=True, slots=True, kw_only=True)
class ItemReported:
    """Notification emitted when a reporter adds an item to the ledger."""

    item_id: int
    reporter: str
    is_lost: bool
    title: str
    content_ref: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class MatchFound:
    """Notification emitted when a match link is recorded."""

    first_id: int
    second_id: int


ItemReportedHandler = Callable[[ItemReported], Awaitable[None] | None]
MatchFoundHandler = Callable[[MatchFound], Awaitable[None] | None]


@runtime_checkable
class LedgerConnector(Protocol):
    """Contract operations bound to one signing credential."""

    async def item_count(self) -> int: ...

    async def get_item(self, item_id: int) -> Item: ...

    async def match_status(self, item_id: int) -> int: ...

    async def record_match(self, lost_id: int, found_id: int) -> str: ...

    async def wait_for_confirmation(self, tx_ref: str) -> str: ...


@runtime_checkable
class LedgerConnection(Protocol):
    """Transport owned by one connector generation."""

    @property
    def address(self) -> str | None: ...

    async def connect(self) -> None: ...

    async def close(self) -> None: ...

    def bind(self, credential: LedgerCredential, contract_address: str) -> LedgerConnector: ...

    async def listen(
        self,
        *,
        contract_address: str,
        on_item_reported: ItemReportedHandler,
        on_match_found: MatchFoundHandler,
    ) -> None: ...
