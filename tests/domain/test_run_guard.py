from __future__ import annotations

import asyncio

import pytest

from reunite.domain.model import OutcomeKind, RunOutcome, RunRecord, TriggerOrigin
from reunite.domain.run_guard import ALREADY_RUNNING, Admitted, Rejected, RunGuard


def test_second_trigger_is_rejected_while_run_in_flight() -> None:
    guard = RunGuard()

    first = guard.try_start(TriggerOrigin.STARTUP)
    second = guard.try_start(TriggerOrigin.TIMER)

    assert isinstance(first, Admitted)
    assert isinstance(second, Rejected)
    assert second.reason == ALREADY_RUNNING
    assert second.current is first.record
    assert guard.is_running


def test_finish_releases_the_guard_and_records_outcome() -> None:
    guard = RunGuard()
    admitted = guard.try_start(TriggerOrigin.MANUAL)
    assert isinstance(admitted, Admitted)

    record = guard.finish(admitted, RunOutcome.no_items())

    assert not guard.is_running
    assert record.outcome == RunOutcome.no_items()
    assert record.finished_at is not None
    assert guard.current is record
    assert isinstance(guard.try_start(TriggerOrigin.TIMER), Admitted)


def test_run_ids_increase_monotonically() -> None:
    guard = RunGuard()
    ids = []
    for origin in (TriggerOrigin.STARTUP, TriggerOrigin.TIMER, TriggerOrigin.MANUAL):
        admitted = guard.try_start(origin)
        assert isinstance(admitted, Admitted)
        ids.append(admitted.record.run_id)
        guard.finish(admitted, RunOutcome.no_match())

    assert ids == [1, 2, 3]


def test_finish_rejects_stale_admission() -> None:
    guard = RunGuard()
    admitted = guard.try_start(TriggerOrigin.MANUAL)
    assert isinstance(admitted, Admitted)
    guard.finish(admitted, RunOutcome.no_match())

    with pytest.raises(RuntimeError):
        guard.finish(admitted, RunOutcome.no_match())


def test_concurrent_triggers_never_overlap() -> None:
    guard = RunGuard()
    active = 0
    peak = 0

    async def job(_record: RunRecord) -> RunOutcome:
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.01)
        active -= 1
        return RunOutcome.no_match()

    async def scenario() -> list[RunRecord | Rejected]:
        origins = [TriggerOrigin.SUBSCRIPTION] * 5 + [TriggerOrigin.TIMER] * 5
        return await asyncio.gather(*(guard.guarded(origin, job) for origin in origins))

    results = asyncio.run(scenario())

    assert peak == 1
    assert sum(isinstance(result, RunRecord) for result in results) == 1
    assert sum(isinstance(result, Rejected) for result in results) == 9


def test_guarded_releases_after_job_failure() -> None:
    guard = RunGuard()

    async def job(_record: RunRecord) -> RunOutcome:
        raise ValueError("boom")

    with pytest.raises(ValueError, match="boom"):
        asyncio.run(guard.guarded(TriggerOrigin.MANUAL, job))

    assert not guard.is_running
    current = guard.current
    assert current is not None
    assert current.outcome is not None
    assert current.outcome.kind is OutcomeKind.ERROR


def test_wait_idle_returns_once_run_finishes() -> None:
    guard = RunGuard()

    async def scenario() -> bool:
        admitted = guard.try_start(TriggerOrigin.TIMER)
        assert isinstance(admitted, Admitted)
        waiter = asyncio.create_task(guard.wait_idle())
        await asyncio.sleep(0)
        assert not waiter.done()
        guard.finish(admitted, RunOutcome.no_items())
        await asyncio.wait_for(waiter, timeout=1)
        return not guard.is_running

    assert asyncio.run(scenario())
