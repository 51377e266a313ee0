"""Inference oracle configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_float, optional_env_var, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

GENERATIVE_LANGUAGE_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/"
DEFAULT_ORACLE_MODEL = "gemini-1.5-flash-latest"
DEFAULT_ORACLE_TIMEOUT_SECONDS = 120.0


@dataclass(frozen=True, slots=True)
class OracleConfig:
    api_key: str
    resilience: ResilienceConfig
    model: str = DEFAULT_ORACLE_MODEL
    timeout_seconds: float = DEFAULT_ORACLE_TIMEOUT_SECONDS


def get_oracle_config(*, resilience: ResilienceConfig | None = None) -> OracleConfig:
    values = require_env_vars(("ORACLE_API_KEY",))
    timeout_seconds = env_float(
        "ORACLE_TIMEOUT_SECONDS", DEFAULT_ORACLE_TIMEOUT_SECONDS, minimum=1.0
    )
    return OracleConfig(
        api_key=values["ORACLE_API_KEY"],
        model=optional_env_var("ORACLE_MODEL", DEFAULT_ORACLE_MODEL),
        timeout_seconds=timeout_seconds,
        resilience=resilience
        or ResilienceConfig(
            name="oracle",
            base_url=optional_env_var("ORACLE_BASE_URL", GENERATIVE_LANGUAGE_BASE_URL),
            timeout_seconds=timeout_seconds,
            retry=RetryPolicy(total=2),
            ratelimit=RateLimit(max_calls=1),
        ),
    )
