"""Application configuration helpers."""

from __future__ import annotations

from .agent import AgentConfig, get_agent_config
from .content import ContentStoreConfig, get_content_store_config
from .engine import EngineConfig, MatchStrategy, get_engine_config
from .env import require_env_var, require_env_vars
from .errors import ConfigurationError, InvalidCredentialError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .ledger import (
    LedgerConfig,
    LedgerCredential,
    LedgerTransport,
    get_ledger_config,
    transport_for_url,
)
from .logging import configure_logging
from .oracle import OracleConfig, get_oracle_config
from .server import ServerConfig, get_server_config
from .storage import StorageConfig, get_storage_config

__all__ = [
    "AgentConfig",
    "CacheConfig",
    "ConfigurationError",
    "ContentStoreConfig",
    "EngineConfig",
    "InvalidCredentialError",
    "LedgerConfig",
    "LedgerCredential",
    "LedgerTransport",
    "MatchStrategy",
    "MissingConfigurationError",
    "OracleConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "ServerConfig",
    "StorageConfig",
    "configure_logging",
    "get_agent_config",
    "get_content_store_config",
    "get_engine_config",
    "get_ledger_config",
    "get_oracle_config",
    "get_server_config",
    "get_storage_config",
    "require_env_var",
    "require_env_vars",
    "transport_for_url",
]
