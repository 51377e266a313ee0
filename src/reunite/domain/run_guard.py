"""Single-flight admission for reconciliation runs."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from itertools import count
from logging import getLogger
from typing import TYPE_CHECKING, Literal

from reunite.domain.model import RunOutcome, RunRecord

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from reunite.domain.model import TriggerOrigin

log = getLogger(__name__)

ALREADY_RUNNING = "already-running"


@dataclass(frozen=True, slots=True)
class Admitted:
    record: RunRecord


@dataclass(frozen=True, slots=True)
class Rejected:
    origin: TriggerOrigin
    reason: Literal["already-running"] = ALREADY_RUNNING
    current: RunRecord | None = None


type Admission = Admitted | Rejected


class RunGuard:
    """Admits at most one run at a time; overlapping triggers are dropped.

    A trigger that arrives while a run is in flight carries no extra
    information: the in-flight run already reads the freshest ledger state, so
    the trigger is rejected instead of queued.
    """

    def __init__(self) -> None:
        self._active: RunRecord | None = None
        self._current: RunRecord | None = None
        self._run_ids = count(1)
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def is_running(self) -> bool:
        return self._active is not None

    @property
    def current(self) -> RunRecord | None:
        return self._current

    def try_start(self, origin: TriggerOrigin) -> Admission:
        if self._active is not None:
            log.info(
                "Rejected %s trigger: run %s (%s) still in flight",
                origin,
                self._active.run_id,
                self._active.origin,
            )
            return Rejected(origin=origin, current=self._active)
        record = RunRecord(run_id=next(self._run_ids), origin=origin)
        self._active = record
        self._current = record
        self._idle.clear()
        return Admitted(record=record)

    def finish(self, admitted: Admitted, outcome: RunOutcome) -> RunRecord:
        record = admitted.record
        if self._active is not record:
            raise RuntimeError(f"Run {record.run_id} is not the active run")
        record.finish(outcome)
        self._active = None
        self._idle.set()
        return record

    async def wait_idle(self) -> None:
        await self._idle.wait()

    async def guarded(
        self,
        origin: TriggerOrigin,
        job: Callable[[RunRecord], Awaitable[RunOutcome]],
    ) -> RunRecord | Rejected:
        """Run ``job`` if admitted and record its outcome, releasing on any exit."""

        admission = self.try_start(origin)
        if isinstance(admission, Rejected):
            return admission
        outcome = RunOutcome.error("cancelled")
        try:
            outcome = await job(admission.record)
        finally:
            self.finish(admission, outcome)
        return admission.record
