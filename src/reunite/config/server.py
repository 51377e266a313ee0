"""Trigger endpoint server configuration."""

from __future__ import annotations

from dataclasses import dataclass, field

from .env import env_int, optional_env_var

DEFAULT_HOST = "0.0.0.0"  # noqa: S104
DEFAULT_PORT = 3000


@dataclass(frozen=True, slots=True)
class ServerConfig:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    cors_origins: tuple[str, ...] = field(default_factory=lambda: ("*",))


def get_server_config() -> ServerConfig:
    origins = optional_env_var("CORS_ORIGINS", "*")
    return ServerConfig(
        host=optional_env_var("HOST", DEFAULT_HOST),
        port=env_int("PORT", DEFAULT_PORT, minimum=1),
        cors_origins=tuple(origin.strip() for origin in origins.split(",") if origin.strip()),
    )
