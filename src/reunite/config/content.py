"""Content store (image gateway) configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_var
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .storage import StorageConfig, get_storage_config

DEFAULT_GATEWAY_URL = "https://gateway.pinata.cloud/ipfs/"
DEFAULT_MIME_TYPE = "image/jpeg"
CONTENT_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True, slots=True)
class ContentStoreConfig:
    gateway_url: str
    resilience: ResilienceConfig
    default_mime_type: str = DEFAULT_MIME_TYPE


def get_content_store_config(*, storage: StorageConfig | None = None) -> ContentStoreConfig:
    gateway_url = optional_env_var("CONTENT_GATEWAY_URL", DEFAULT_GATEWAY_URL)
    if not gateway_url.endswith("/"):
        gateway_url = f"{gateway_url}/"
    storage_config = storage or get_storage_config()

    # content addresses are immutable, so cached blobs never go stale
    resilience = ResilienceConfig(
        name="content",
        base_url=gateway_url,
        timeout_seconds=CONTENT_TIMEOUT_SECONDS,
        retry=RetryPolicy.reads_only(),
        ratelimit=RateLimit(max_calls=5),
        cache=CacheConfig(
            backend="sqlite",
            sqlite_path=str(storage_config.http_cache_path()),
        ),
    )
    return ContentStoreConfig(gateway_url=gateway_url, resilience=resilience)
