"""Application orchestration: triggers, runs and the ledger supervisor."""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from reunite.adapters.content import GatewayContentResolver
from reunite.adapters.ledger import Web3LedgerConnection
from reunite.adapters.oracle import GenerativeLanguageOracle
from reunite.config.env import require_env_vars
from reunite.config.errors import ConfigurationError
from reunite.config.ledger import LedgerCredential, parse_contract_address
from reunite.domain.commit import CommitPipeline
from reunite.domain.errors import ConnectionFault
from reunite.domain.model import RunOutcome, TriggerOrigin
from reunite.domain.proposer import MatchProposer
from reunite.domain.reconciliation import reconcile
from reunite.domain.run_guard import Rejected, RunGuard
from reunite.supervisor import FaultRecoverySupervisor, SupervisorState

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from pathlib import Path

    from reunite.config.agent import AgentConfig
    from reunite.config.engine import EngineConfig
    from reunite.domain.model import RunRecord
    from reunite.domain.ports.ledger import (
        ItemReported,
        LedgerConnection,
        LedgerConnector,
        MatchFound,
    )
    from reunite.supervisor import LedgerGeneration

log = getLogger(__name__)

UNEXPECTED = "unexpected"
CONFIGURATION = "configuration"


@dataclass(frozen=True, slots=True)
class CredentialSnapshot:
    credential: LedgerCredential
    contract_address: str


@dataclass(frozen=True, slots=True)
class CredentialSource:
    """Signing credential and contract address used by each run.

    With ``reload`` set, every snapshot re-reads ``env_file`` (overriding the
    process environment) so a rotated key is picked up without a restart.
    """

    credential: LedgerCredential
    contract_address: str
    env_file: Path | None = None
    reload: bool = False

    def snapshot(self) -> CredentialSnapshot:
        if not self.reload:
            return CredentialSnapshot(self.credential, self.contract_address)
        if self.env_file is not None:
            load_dotenv(self.env_file, override=True)
        values = require_env_vars(("MATCHING_ENGINE_PRIVATE_KEY", "CONTRACT_ADDRESS"))
        snapshot = CredentialSnapshot(
            credential=LedgerCredential.parse(values["MATCHING_ENGINE_PRIVATE_KEY"]),
            contract_address=parse_contract_address(values["CONTRACT_ADDRESS"]),
        )
        log.info("Reloaded credentials; operating on contract %s", snapshot.contract_address)
        return snapshot


@dataclass(frozen=True, slots=True)
class AgentStatus:
    current_run: RunRecord | None
    running: bool
    supervisor_state: SupervisorState
    generation: int | None
    engine_address: str | None


async def execute_run(
    record: RunRecord,
    *,
    bind: Callable[[], Awaitable[LedgerConnector]],
    proposer: MatchProposer,
    committer: CommitPipeline,
    on_connection_fault: Callable[[ConnectionFault], object] | None = None,
) -> RunOutcome:
    """Run one reconciliation and map every failure onto a ``RunOutcome``."""

    log.info("--- Starting match engine run %s (%s) ---", record.run_id, record.origin)
    try:
        connector = await bind()
        outcome = await reconcile(connector=connector, proposer=proposer, committer=committer)
    except ConnectionFault as exc:
        log.error("Run %s lost the ledger connection: %s", record.run_id, exc)  # noqa: TRY400
        if on_connection_fault is not None:
            on_connection_fault(exc)
        outcome = RunOutcome.error(ConnectionFault.error_kind, str(exc))
    except ConfigurationError as exc:
        log.error("Run %s has no usable credentials: %s", record.run_id, exc)  # noqa: TRY400
        outcome = RunOutcome.error(CONFIGURATION, str(exc))
    except Exception as exc:
        log.exception("CRITICAL: unexpected error during match engine run %s", record.run_id)
        outcome = RunOutcome.error(UNEXPECTED, repr(exc))
    log.info("--- Match engine run %s finished: %s ---", record.run_id, outcome)
    return outcome


class MatchingAgent:
    """Long-running agent: admits triggers and runs reconciliations one at a time."""

    def __init__(
        self,
        *,
        connection_factory: Callable[[], LedgerConnection],
        credentials: CredentialSource,
        proposer: MatchProposer,
        engine: EngineConfig,
        committer: CommitPipeline | None = None,
        guard: RunGuard | None = None,
    ) -> None:
        self.credentials = credentials
        self.proposer = proposer
        self.engine = engine
        self.committer = committer or CommitPipeline()
        self.guard = guard or RunGuard()
        self.supervisor = FaultRecoverySupervisor(
            connection_factory=connection_factory,
            credential=credentials.credential,
            contract_address=credentials.contract_address,
            on_item_reported=self.on_item_reported,
            on_match_found=self.on_match_found,
            on_connected=self.trigger,
            cooldown_seconds=engine.recovery_cooldown_seconds,
        )
        self._runs: set[asyncio.Task[RunRecord | Rejected]] = set()
        self._timer: asyncio.Task[None] | None = None

    async def start(self) -> None:
        log.info("Starting matching agent (strategy %s)", self.proposer.strategy)
        await self.supervisor.start()
        log.info(
            "Starting periodic match engine (runs every %.0f seconds)",
            self.engine.interval_seconds,
        )
        self._timer = asyncio.create_task(self._tick(), name="match-timer")

    async def stop(self) -> None:
        timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await timer
        for task in list(self._runs):
            task.cancel()
        if self._runs:
            await asyncio.gather(*self._runs, return_exceptions=True)
        await self.committer.cancel_pending()
        await self.supervisor.stop()
        log.info("Matching agent stopped")

    def trigger(self, origin: TriggerOrigin) -> asyncio.Task[RunRecord | Rejected] | None:
        """Schedule a run without waiting for it; dropped if one is in flight."""

        if self.guard.is_running:
            current = self.guard.current
            log.info(
                "Ignoring %s trigger: run %s is still in progress",
                origin,
                current.run_id if current else "?",
            )
            return None
        task = asyncio.create_task(self.guard.guarded(origin, self._run), name=f"run-{origin}")
        self._runs.add(task)
        task.add_done_callback(self._runs.discard)
        return task

    async def wait_for_runs(self) -> None:
        """Wait until every scheduled run, including ones scheduled meanwhile, is done."""

        while self._runs:
            await asyncio.gather(*self._runs, return_exceptions=True)

    async def run_now(self, origin: TriggerOrigin = TriggerOrigin.MANUAL) -> RunRecord | Rejected:
        return await self.guard.guarded(origin, self._run)

    def status(self) -> AgentStatus:
        generation = self.supervisor.current
        return AgentStatus(
            current_run=self.guard.current,
            running=self.guard.is_running,
            supervisor_state=self.supervisor.state,
            generation=generation.number if generation else None,
            engine_address=generation.connection.address if generation else None,
        )

    def on_item_reported(self, event: ItemReported) -> None:
        log.info(
            'New item reported: id %s (%s) "%s"',
            event.item_id,
            "lost" if event.is_lost else "found",
            event.title,
        )
        self.trigger(TriggerOrigin.SUBSCRIPTION)

    def on_match_found(self, event: MatchFound) -> None:
        log.info("Match recorded on the ledger: %s <-> %s", event.first_id, event.second_id)

    async def _run(self, record: RunRecord) -> RunOutcome:
        bound: LedgerGeneration | None = None

        async def bind() -> LedgerConnector:
            nonlocal bound
            generation = self.supervisor.current
            if generation is None:
                raise ConnectionFault(f"No live ledger connection ({self.supervisor.state})")
            bound = generation
            if not self.credentials.reload:
                return generation.connector
            snapshot = self.credentials.snapshot()
            self.supervisor.follow_contract(snapshot.contract_address)
            return generation.connection.bind(snapshot.credential, snapshot.contract_address)

        def on_connection_fault(exc: ConnectionFault) -> None:
            self.supervisor.report_fault(exc, generation=bound)

        return await execute_run(
            record,
            bind=bind,
            proposer=self.proposer,
            committer=self.committer,
            on_connection_fault=on_connection_fault,
        )

    async def _tick(self) -> None:
        while True:
            await asyncio.sleep(self.engine.interval_seconds)
            self.trigger(TriggerOrigin.TIMER)


def build_proposer(config: AgentConfig) -> MatchProposer:
    return MatchProposer(
        oracle=GenerativeLanguageOracle(config=config.oracle),
        content=GatewayContentResolver(config=config.content),
        strategy=config.engine.strategy,
        timeout_seconds=config.oracle.timeout_seconds,
    )


def build_credentials(config: AgentConfig) -> CredentialSource:
    return CredentialSource(
        credential=config.ledger.credential,
        contract_address=config.ledger.contract_address,
        env_file=config.engine.env_file,
        reload=config.engine.reload_credentials,
    )


def build_agent(config: AgentConfig) -> MatchingAgent:
    """Compose the agent from the production adapters."""

    return MatchingAgent(
        connection_factory=lambda: Web3LedgerConnection(config=config.ledger),
        credentials=build_credentials(config),
        proposer=build_proposer(config),
        engine=config.engine,
    )


async def run_once(config: AgentConfig) -> RunRecord:
    """Run a single reconciliation against a fresh connection and wait for confirmation."""

    connection = Web3LedgerConnection(config=config.ledger)
    credentials = build_credentials(config)
    committer = CommitPipeline()
    guard = RunGuard()

    async def bind() -> LedgerConnector:
        await connection.connect()
        snapshot = credentials.snapshot()
        return connection.bind(snapshot.credential, snapshot.contract_address)

    async def job(record: RunRecord) -> RunOutcome:
        return await execute_run(
            record, bind=bind, proposer=build_proposer(config), committer=committer
        )

    try:
        result = await guard.guarded(TriggerOrigin.MANUAL, job)
        await committer.drain()
    finally:
        await connection.close()
    if isinstance(result, Rejected):
        raise RuntimeError("A fresh run guard cannot reject a run")
    return result
