"""Ledger transport lifetime: provider, account and event listening."""

from __future__ import annotations

import asyncio
import contextlib
import inspect
from logging import getLogger
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

from eth_account import Account
from web3 import AsyncHTTPProvider, AsyncWeb3, WebSocketProvider
from web3.exceptions import LogTopicError, MismatchedABI

from reunite.config.ledger import LedgerTransport
from reunite.domain.errors import ConnectionFault

from .abi import ITEM_REPORTED_TOPIC, LEDGER_ABI, MATCH_FOUND_TOPIC
from .connector import TRANSPORT_ERRORS, Web3LedgerConnector, guard_transport
from .translator import parse_item_reported, parse_match_found

if TYPE_CHECKING:
    from collections.abc import Awaitable, Mapping

    from web3.contract import AsyncContract

    from reunite.config.ledger import LedgerConfig, LedgerCredential
    from reunite.domain.ports.ledger import ItemReportedHandler, MatchFoundHandler

log = getLogger(__name__)

EVENT_TOPICS: list[list[str]] = [
    [AsyncWeb3.to_hex(ITEM_REPORTED_TOPIC), AsyncWeb3.to_hex(MATCH_FOUND_TOPIC)]
]


def redact_url(url: str) -> str:
    """Keep scheme and host only; RPC URLs often embed API keys."""

    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.hostname or ''}"


def _topic_bytes(value: object) -> bytes:
    if isinstance(value, bytes | bytearray):
        return bytes(value)
    return AsyncWeb3.to_bytes(hexstr=str(value))


class Web3LedgerConnection:
    """``LedgerConnection`` owning one ``AsyncWeb3`` provider.

    The endpoint scheme selects the mode: ``ws``/``wss`` keeps a websocket open
    and subscribes to contract logs, ``http``/``https`` polls ``eth_getLogs``.
    """

    def __init__(self, *, config: LedgerConfig) -> None:
        self._config = config
        self._w3: AsyncWeb3 | None = None
        self._address: str | None = None

    @property
    def transport(self) -> LedgerTransport:
        return self._config.transport

    @property
    def address(self) -> str | None:
        return self._address

    async def connect(self) -> None:
        if self._w3 is not None:
            return
        if self.transport is LedgerTransport.STREAMING:
            provider = WebSocketProvider(self._config.rpc_url)
            w3 = AsyncWeb3(provider)
            await guard_transport("websocket connect", provider.connect())
        else:
            w3 = AsyncWeb3(AsyncHTTPProvider(self._config.rpc_url))
            await guard_transport("endpoint check", w3.eth.chain_id)

        self._w3 = w3
        self._address = Account.from_key(self._config.credential.private_key).address
        log.info(
            "Provider initialized using %s (%s)",
            self.transport,
            redact_url(self._config.rpc_url),
        )
        log.info("Engine wallet address: %s", self._address)

    async def close(self) -> None:
        w3, self._w3 = self._w3, None
        if w3 is None:
            return
        try:
            await w3.provider.disconnect()
        except TRANSPORT_ERRORS as exc:
            log.warning("Ignoring error while closing the ledger provider: %r", exc)

    def bind(self, credential: LedgerCredential, contract_address: str) -> Web3LedgerConnector:
        w3 = self._require()
        return Web3LedgerConnector(
            w3=w3,
            contract=w3.eth.contract(address=contract_address, abi=LEDGER_ABI),
            account=Account.from_key(credential.private_key),
            confirmation_timeout_seconds=self._config.confirmation_timeout_seconds,
        )

    async def listen(
        self,
        *,
        contract_address: str,
        on_item_reported: ItemReportedHandler,
        on_match_found: MatchFoundHandler,
    ) -> None:
        w3 = self._require()
        contract = w3.eth.contract(address=contract_address, abi=LEDGER_ABI)
        dispatcher = _LogDispatcher(
            contract=contract,
            on_item_reported=on_item_reported,
            on_match_found=on_match_found,
        )
        try:
            if self.transport is LedgerTransport.STREAMING:
                await self._listen_streaming(w3, contract, dispatcher)
            else:
                await self._listen_polling(w3, contract, dispatcher)
        except TRANSPORT_ERRORS as exc:
            raise ConnectionFault(f"Ledger event listener lost its connection: {exc!r}") from exc

    async def _listen_streaming(
        self, w3: AsyncWeb3, contract: AsyncContract, dispatcher: _LogDispatcher
    ) -> None:
        subscription_id = await w3.eth.subscribe(
            "logs",
            {"address": contract.address, "topics": EVENT_TOPICS},
        )
        log.info("Subscribed to ledger events (subscription %s)", subscription_id)
        try:
            async for message in w3.socket.process_subscriptions():
                if message.get("subscription") not in {None, subscription_id}:
                    continue
                await dispatcher.dispatch(message["result"])
        finally:
            # a restarted listener shares the socket, so drop this subscription
            with contextlib.suppress(*TRANSPORT_ERRORS):
                await w3.eth.unsubscribe(subscription_id)
        raise ConnectionFault("Ledger event subscription ended")

    async def _listen_polling(
        self, w3: AsyncWeb3, contract: AsyncContract, dispatcher: _LogDispatcher
    ) -> None:
        last_block = await w3.eth.block_number
        log.info("Polling ledger events every %ss from block %s", self._poll_interval, last_block)
        while True:
            await asyncio.sleep(self._poll_interval)
            latest = await w3.eth.block_number
            if latest <= last_block:
                continue
            entries = await w3.eth.get_logs(
                {
                    "address": contract.address,
                    "fromBlock": last_block + 1,
                    "toBlock": latest,
                    "topics": EVENT_TOPICS,
                }
            )
            for entry in entries:
                await dispatcher.dispatch(entry)
            last_block = latest

    @property
    def _poll_interval(self) -> float:
        return self._config.poll_interval_seconds

    def _require(self) -> AsyncWeb3:
        if self._w3 is None:
            raise ConnectionFault("Ledger connection is not open")
        return self._w3


class _LogDispatcher:
    def __init__(
        self,
        *,
        contract: AsyncContract,
        on_item_reported: ItemReportedHandler,
        on_match_found: MatchFoundHandler,
    ) -> None:
        self._contract = contract
        self._on_item_reported = on_item_reported
        self._on_match_found = on_match_found

    async def dispatch(self, entry: Mapping[str, Any]) -> None:
        topics = entry.get("topics") or []
        if not topics:
            return
        topic = _topic_bytes(topics[0])
        try:
            if topic == ITEM_REPORTED_TOPIC:
                event = self._contract.events.ItemReported().process_log(entry)
                await _call_handler(self._on_item_reported(parse_item_reported(event["args"])))
            elif topic == MATCH_FOUND_TOPIC:
                event = self._contract.events.MatchFound().process_log(entry)
                await _call_handler(self._on_match_found(parse_match_found(event["args"])))
        except (LogTopicError, MismatchedABI) as exc:
            log.warning("Skipping undecodable ledger log: %s", exc)


async def _call_handler(result: Awaitable[None] | None) -> None:
    if inspect.isawaitable(result):
        await result
