from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from tests.helpers.ledger import TEST_CONTRACT, TEST_PRIVATE_KEY, FakeLedger
from tests.helpers.oracle import FakeContentResolver, ScriptedOracle

if TYPE_CHECKING:
    from pathlib import Path

CONFIG_ENV_VARS = (
    "LEDGER_RPC_URL",
    "CONTRACT_ADDRESS",
    "MATCHING_ENGINE_PRIVATE_KEY",
    "LEDGER_POLL_INTERVAL_SECONDS",
    "LEDGER_CONFIRMATION_TIMEOUT_SECONDS",
    "ORACLE_API_KEY",
    "ORACLE_MODEL",
    "ORACLE_TIMEOUT_SECONDS",
    "ORACLE_BASE_URL",
    "CONTENT_GATEWAY_URL",
    "MATCH_INTERVAL_SECONDS",
    "RECOVERY_COOLDOWN_SECONDS",
    "MATCH_STRATEGY",
    "RELOAD_CREDENTIALS",
    "HOST",
    "PORT",
    "CORS_ORIGINS",
)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> pytest.MonkeyPatch:
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("REUNITE_DATA_DIR", str(tmp_path))
    return monkeypatch


@pytest.fixture
def agent_env(clean_env: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    clean_env.setenv("LEDGER_RPC_URL", "wss://rpc.example.org/ws/secret-token")
    clean_env.setenv("CONTRACT_ADDRESS", TEST_CONTRACT.lower())
    clean_env.setenv("MATCHING_ENGINE_PRIVATE_KEY", TEST_PRIVATE_KEY)
    clean_env.setenv("ORACLE_API_KEY", "oracle-key")
    return clean_env


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def oracle() -> ScriptedOracle:
    return ScriptedOracle()


@pytest.fixture
def content() -> FakeContentResolver:
    return FakeContentResolver()
