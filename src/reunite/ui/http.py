"""HTTP trigger surface for the matching agent."""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime  # noqa: TC003
from logging import getLogger
from typing import TYPE_CHECKING

from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from reunite import __version__
from reunite.config.server import ServerConfig
from reunite.domain.model import OutcomeKind
from reunite.domain.run_guard import Rejected

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from reunite.app import MatchingAgent
    from reunite.domain.model import RunRecord

log = getLogger(__name__)


class ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class RunView(ApiModel):
    run_id: int = Field(alias="runId")
    origin: str
    started_at: datetime = Field(alias="startedAt")
    finished_at: datetime | None = Field(default=None, alias="finishedAt")
    outcome: str | None = None

    @classmethod
    def from_record(cls, record: RunRecord) -> RunView:
        return cls(
            run_id=record.run_id,
            origin=str(record.origin),
            started_at=record.started_at,
            finished_at=record.finished_at,
            outcome=str(record.outcome) if record.outcome else None,
        )


class RunResponse(ApiModel):
    message: str
    outcome: str | None = None
    tx_ref: str | None = Field(default=None, alias="txRef")
    error: str | None = None
    reason: str | None = None
    run: RunView | None = None


class StatusResponse(ApiModel):
    running: bool
    supervisor_state: str = Field(alias="supervisorState")
    generation: int | None = None
    engine_address: str | None = Field(default=None, alias="engineAddress")
    current_run: RunView | None = Field(default=None, alias="currentRun")


def describe_run(record: RunRecord) -> tuple[int, RunResponse]:
    """Map a finished run onto its HTTP status and response body."""

    outcome = record.outcome
    view = RunView.from_record(record)
    if outcome is None or outcome.is_error:
        return status.HTTP_500_INTERNAL_SERVER_ERROR, RunResponse(
            message="Matching engine run failed.",
            outcome=str(outcome) if outcome else None,
            error=outcome.detail if outcome else None,
            run=view,
        )
    if outcome.kind is OutcomeKind.MATCH_COMMITTED:
        message = (
            f"Matching engine run completed. Match transaction submitted: {outcome.tx_ref}"
        )
    else:
        message = "Matching engine run completed. No new match found."
    return status.HTTP_200_OK, RunResponse(
        message=message, outcome=str(outcome), tx_ref=outcome.tx_ref, run=view
    )


def _json(status_code: int, body: ApiModel) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json", by_alias=True))


def create_app(agent: MatchingAgent, server_config: ServerConfig | None = None) -> FastAPI:
    """Build the FastAPI application; the lifespan starts and stops ``agent``."""

    config = server_config or ServerConfig()

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        log.info("Matching agent API starting up")
        await agent.start()
        try:
            yield
        finally:
            log.info("Matching agent API shutting down")
            await agent.stop()

    app = FastAPI(title="reunite", version=__version__, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.post("/api/run-engine", response_model=RunResponse)
    async def run_engine() -> JSONResponse:
        log.info("Manual match engine run triggered via API")
        result = await agent.run_now()
        if isinstance(result, Rejected):
            body = RunResponse(
                message="A matching engine run is already in progress.",
                reason=result.reason,
                run=RunView.from_record(result.current) if result.current else None,
            )
            return _json(status.HTTP_409_CONFLICT, body)
        status_code, body = describe_run(result)
        return _json(status_code, body)

    @app.get("/api/status", response_model=StatusResponse)
    async def agent_status() -> StatusResponse:
        snapshot = agent.status()
        return StatusResponse(
            running=snapshot.running,
            supervisor_state=str(snapshot.supervisor_state),
            generation=snapshot.generation,
            engine_address=snapshot.engine_address,
            current_run=RunView.from_record(snapshot.current_run)
            if snapshot.current_run
            else None,
        )

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    return app
