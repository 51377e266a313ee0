"""Reconciliation loop defaults."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from reunite.domain.model import MatchStrategy

from .env import env_bool, env_float, optional_env_var
from .errors import ConfigurationError

DEFAULT_MATCH_INTERVAL_SECONDS = 300.0
DEFAULT_RECOVERY_COOLDOWN_SECONDS = 10.0
DEFAULT_ENV_FILE = "credential.env"


@dataclass(frozen=True, slots=True)
class EngineConfig:
    interval_seconds: float = DEFAULT_MATCH_INTERVAL_SECONDS
    recovery_cooldown_seconds: float = DEFAULT_RECOVERY_COOLDOWN_SECONDS
    strategy: MatchStrategy = MatchStrategy.PER_ITEM
    reload_credentials: bool = False
    env_file: Path | None = None


def get_engine_config(*, env_file: Path | None = None) -> EngineConfig:
    raw_strategy = optional_env_var("MATCH_STRATEGY", MatchStrategy.PER_ITEM)
    try:
        strategy = MatchStrategy(raw_strategy.lower())
    except ValueError as exc:
        choices = ", ".join(item.value for item in MatchStrategy)
        raise ConfigurationError(
            f"MATCH_STRATEGY must be one of {choices}, got {raw_strategy!r}"
        ) from exc
    return EngineConfig(
        interval_seconds=env_float(
            "MATCH_INTERVAL_SECONDS", DEFAULT_MATCH_INTERVAL_SECONDS, minimum=1.0
        ),
        recovery_cooldown_seconds=env_float(
            "RECOVERY_COOLDOWN_SECONDS", DEFAULT_RECOVERY_COOLDOWN_SECONDS
        ),
        strategy=strategy,
        reload_credentials=env_bool("RELOAD_CREDENTIALS", default=False),
        env_file=env_file,
    )
