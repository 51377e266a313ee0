"""Aggregate configuration for the matching agent process."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .content import ContentStoreConfig, get_content_store_config
from .engine import EngineConfig, get_engine_config
from .ledger import LedgerConfig, get_ledger_config
from .oracle import OracleConfig, get_oracle_config
from .server import ServerConfig, get_server_config

if TYPE_CHECKING:
    from pathlib import Path


@dataclass(frozen=True, slots=True)
class AgentConfig:
    ledger: LedgerConfig
    oracle: OracleConfig
    content: ContentStoreConfig
    engine: EngineConfig
    server: ServerConfig


def get_agent_config(*, env_file: Path | None = None) -> AgentConfig:
    """Load every section, failing fast on the first invalid one."""

    return AgentConfig(
        ledger=get_ledger_config(),
        oracle=get_oracle_config(),
        content=get_content_store_config(),
        engine=get_engine_config(env_file=env_file),
        server=get_server_config(),
    )
