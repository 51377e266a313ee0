"""Ledger connection lifetime and recovery after transport faults."""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from reunite.domain.errors import ConnectionFault
from reunite.domain.model import TriggerOrigin

if TYPE_CHECKING:
    from collections.abc import Callable

    from reunite.config.ledger import LedgerCredential
    from reunite.domain.ports.ledger import (
        ItemReportedHandler,
        LedgerConnection,
        LedgerConnector,
        MatchFoundHandler,
    )

log = getLogger(__name__)

type ConnectionFactory = Callable[[], LedgerConnection]
type TriggerCallback = Callable[[TriggerOrigin], object]


class SupervisorState(StrEnum):
    UNINITIALIZED = "uninitialized"
    CONNECTED = "connected"
    FAULTED = "faulted"
    REINITIALIZING = "reinitializing"
    STOPPED = "stopped"


@dataclass(slots=True)
class LedgerGeneration:
    """One connector lifetime: transport, default binding and event listener."""

    number: int
    connection: LedgerConnection
    connector: LedgerConnector
    contract_address: str
    listener: asyncio.Task[None] | None = None

    async def close(self) -> None:
        listener, self.listener = self.listener, None
        if listener is not None and listener is not asyncio.current_task():
            listener.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await listener
        await self.connection.close()


class FaultRecoverySupervisor:
    """Owns the single live ``LedgerGeneration`` and replaces it after faults.

    Fault reports are debounced: while a recovery is in progress further
    reports are ignored. Runs that arrive with no live generation fail with
    ``ConnectionFault`` instead of waiting for the rebuild.
    """

    def __init__(
        self,
        *,
        connection_factory: ConnectionFactory,
        credential: LedgerCredential,
        contract_address: str,
        on_item_reported: ItemReportedHandler,
        on_match_found: MatchFoundHandler,
        on_connected: TriggerCallback,
        cooldown_seconds: float,
    ) -> None:
        self._connection_factory = connection_factory
        self._credential = credential
        self._contract_address = contract_address
        self._on_item_reported = on_item_reported
        self._on_match_found = on_match_found
        self._on_connected = on_connected
        self._cooldown_seconds = cooldown_seconds

        self._state = SupervisorState.UNINITIALIZED
        self._current: LedgerGeneration | None = None
        self._generations = 0
        self._resetting = False
        self._recovery: asyncio.Task[None] | None = None

    @property
    def state(self) -> SupervisorState:
        return self._state

    @property
    def current(self) -> LedgerGeneration | None:
        return self._current

    @property
    def is_resetting(self) -> bool:
        return self._resetting

    async def start(self) -> None:
        if self._state is not SupervisorState.UNINITIALIZED:
            raise RuntimeError(f"Supervisor cannot start from state {self._state}")
        try:
            self._current = await self._build_generation()
        except ConnectionFault as exc:
            log.error("Initial ledger connection failed: %s", exc)  # noqa: TRY400
            self.report_fault(exc)
            return
        self._state = SupervisorState.CONNECTED
        self._on_connected(TriggerOrigin.STARTUP)

    def report_fault(
        self, exc: BaseException, *, generation: LedgerGeneration | None = None
    ) -> asyncio.Task[None] | None:
        """Schedule recovery from ``exc`` unless one is already running.

        ``generation`` names the generation the fault was observed on. Faults
        from a generation that is no longer current are logged and dropped; a
        run that outlived its connection must not tear down the replacement.
        """

        if generation is not None and generation is not self._current:
            log.info(
                "Ignoring fault from retired ledger generation %s: %r", generation.number, exc
            )
            return None
        if self._resetting or self._state is SupervisorState.STOPPED:
            log.debug("Ignoring fault report while %s: %r", self._state, exc)
            return None
        self._resetting = True
        self._state = SupervisorState.FAULTED
        log.critical(
            "Ledger connection fault detected (%r). Resetting connection in %.0fs...",
            exc,
            self._cooldown_seconds,
        )
        generation, self._current = self._current, None
        self._recovery = asyncio.create_task(self._recover(generation), name="ledger-recovery")
        self._recovery.add_done_callback(self._recovery_finished)
        return self._recovery

    def follow_contract(self, contract_address: str) -> None:
        """Point the live listener, and every later generation, at ``contract_address``.

        The transport is kept; only the event listener is restarted.
        """

        if contract_address == self._contract_address:
            return
        log.warning(
            "Contract address changed from %s to %s; moving the event listener",
            self._contract_address,
            contract_address,
        )
        self._contract_address = contract_address
        generation = self._current
        if generation is None:
            return
        if generation.listener is not None:
            generation.listener.cancel()
        generation.contract_address = contract_address
        self._start_listener(generation)

    async def wait_recovered(self) -> None:
        if self._recovery is not None:
            await asyncio.shield(self._recovery)

    async def stop(self) -> None:
        self._state = SupervisorState.STOPPED
        recovery, self._recovery = self._recovery, None
        if recovery is not None and not recovery.done():
            recovery.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await recovery
        generation, self._current = self._current, None
        if generation is not None:
            await generation.close()
        self._resetting = False
        log.info("Ledger supervisor stopped")

    async def _recover(self, generation: LedgerGeneration | None) -> None:
        if generation is not None:
            await self._dispose(generation)
        while True:
            await asyncio.sleep(self._cooldown_seconds)
            self._state = SupervisorState.REINITIALIZING
            log.info("Re-initializing ledger connection")
            try:
                fresh = await self._build_generation()
            except ConnectionFault as exc:
                self._state = SupervisorState.FAULTED
                log.error(  # noqa: TRY400
                    "Re-initialization failed (%s); retrying in %.0fs", exc, self._cooldown_seconds
                )
                continue
            break

        self._current = fresh
        self._state = SupervisorState.CONNECTED
        self._resetting = False
        log.info("Ledger connection restored (generation %s)", fresh.number)
        self._on_connected(TriggerOrigin.RECOVERY)

    def _recovery_finished(self, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._resetting = False
            self._state = SupervisorState.FAULTED
            log.error("Ledger recovery aborted", exc_info=exc)

    async def _build_generation(self) -> LedgerGeneration:
        connection = self._connection_factory()
        try:
            await connection.connect()
            connector = connection.bind(self._credential, self._contract_address)
        except BaseException:
            await connection.close()
            raise
        self._generations += 1
        generation = LedgerGeneration(
            number=self._generations,
            connection=connection,
            connector=connector,
            contract_address=self._contract_address,
        )
        self._start_listener(generation)
        log.info("Ledger generation %s connected", generation.number)
        return generation

    def _start_listener(self, generation: LedgerGeneration) -> None:
        generation.listener = asyncio.create_task(
            self._listen(generation), name=f"ledger-listener-{generation.number}"
        )

    async def _listen(self, generation: LedgerGeneration) -> None:
        try:
            await generation.connection.listen(
                contract_address=generation.contract_address,
                on_item_reported=self._on_item_reported,
                on_match_found=self._on_match_found,
            )
        except ConnectionFault as exc:
            self.report_fault(exc, generation=generation)
        except Exception as exc:
            log.exception("Ledger listener of generation %s crashed", generation.number)
            self.report_fault(exc, generation=generation)

    @staticmethod
    async def _dispose(generation: LedgerGeneration) -> None:
        try:
            await generation.close()
        except ConnectionFault as exc:
            log.warning("Error while disposing generation %s: %s", generation.number, exc)
        log.info("Disposed ledger generation %s", generation.number)
