"""Contract operations bound to the matching engine's signing account."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any

import aiohttp
from web3 import Web3
from web3.exceptions import ContractLogicError, ProviderConnectionError, TimeExhausted
from websockets.exceptions import ConnectionClosed

from reunite.domain.errors import CommitRejected, CommitUnconfirmed, ConnectionFault

from .translator import parse_item

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from eth_account.signers.local import LocalAccount
    from web3 import AsyncWeb3
    from web3.contract import AsyncContract

    from reunite.domain.model import Item

log = getLogger(__name__)

TRANSPORT_ERRORS: tuple[type[BaseException], ...] = (
    OSError,
    TimeoutError,
    aiohttp.ClientConnectionError,
    ConnectionClosed,
    ProviderConnectionError,
)


async def guard_transport[T](operation: str, awaitable: Awaitable[T]) -> T:
    """Await ``awaitable``, translating transport failures into ``ConnectionFault``."""

    try:
        return await awaitable
    except TRANSPORT_ERRORS as exc:
        raise ConnectionFault(f"Ledger {operation} failed: {exc!r}") from exc


class Web3LedgerConnector:
    """``LedgerConnector`` over an ``AsyncWeb3`` contract binding."""

    def __init__(
        self,
        *,
        w3: AsyncWeb3,
        contract: AsyncContract,
        account: LocalAccount,
        confirmation_timeout_seconds: float,
    ) -> None:
        self._w3 = w3
        self._contract = contract
        self._account = account
        self._confirmation_timeout = confirmation_timeout_seconds

    @property
    def address(self) -> str:
        return self._account.address

    async def item_count(self) -> int:
        count = await guard_transport(
            "item count read", self._contract.functions.getItemCount().call()
        )
        return int(count)

    async def get_item(self, item_id: int) -> Item:
        raw = await guard_transport(
            f"read of item {item_id}", self._contract.functions.getItem(item_id).call()
        )
        return parse_item(raw)

    async def match_status(self, item_id: int) -> int:
        matched = await guard_transport(
            f"match status read of item {item_id}",
            self._contract.functions.matchedItem(item_id).call(),
        )
        return int(matched)

    async def record_match(self, lost_id: int, found_id: int) -> str:
        function = self._contract.functions.recordMatch(lost_id, found_id)
        sender = self._account.address
        try:
            nonce = await guard_transport(
                "nonce lookup", self._w3.eth.get_transaction_count(sender, "pending")
            )
            # gas estimation runs the call, so a contract revert surfaces here
            transaction: dict[str, Any] = await guard_transport(
                "match transaction build",
                function.build_transaction({"from": sender, "nonce": nonce}),
            )
        except ContractLogicError as exc:
            raise CommitRejected(f"recordMatch({lost_id}, {found_id}) reverted: {exc}") from exc

        signed = self._account.sign_transaction(transaction)
        tx_hash = await guard_transport(
            "match transaction submission",
            self._w3.eth.send_raw_transaction(signed.raw_transaction),
        )
        return Web3.to_hex(tx_hash)

    async def wait_for_confirmation(self, tx_ref: str) -> str:
        try:
            receipt = await guard_transport(
                f"confirmation of {tx_ref}",
                self._w3.eth.wait_for_transaction_receipt(
                    tx_ref, timeout=self._confirmation_timeout
                ),
            )
        except TimeExhausted as exc:
            raise CommitUnconfirmed(
                tx_ref, f"no receipt after {self._confirmation_timeout:.0f}s"
            ) from exc
        if receipt["status"] != 1:
            raise CommitUnconfirmed(tx_ref, "transaction reverted")
        return Web3.to_hex(receipt["transactionHash"])
