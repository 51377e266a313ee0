"""Outbound HTTP client used by the oracle and content-store adapters."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any

import httpx
from aiolimiter import AsyncLimiter
from hishel import AsyncSqliteStorage
from hishel.httpx import AsyncCacheClient
from httpx_retries import Retry, RetryTransport

if TYPE_CHECKING:
    from types import TracebackType

    from httpx._types import HeaderTypes, URLTypes

    from reunite.config.http_resilience import CacheConfig, ResilienceConfig, RetryPolicy

log = getLogger(__name__)


def build_retry(policy: RetryPolicy) -> Retry:
    return Retry(
        total=policy.total,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        respect_retry_after_header=policy.respect_retry_after_header,
        allowed_methods=tuple(policy.allowed_methods),
        status_forcelist=tuple(policy.status_forcelist),
        retry_on_exceptions=policy.retry_on_exceptions,
        backoff_jitter=policy.backoff_jitter,
    )


def build_cache_storage(config: CacheConfig | None) -> AsyncSqliteStorage | None:
    """Return hishel storage for ``config``, or ``None`` when caching is off."""

    if config is None or not config.enabled:
        return None
    if config.backend == "memory":
        database_path = ":memory:"
    elif config.backend == "sqlite" and config.sqlite_path:
        database_path = config.sqlite_path
    else:
        raise ValueError(f"Cache backend {config.backend!r} needs a sqlite_path")
    return AsyncSqliteStorage(
        database_path=database_path,
        default_ttl=config.default_ttl_seconds,
        refresh_ttl_on_access=config.refresh_ttl_on_access,
    )


class ResilientClient:
    """``httpx.AsyncClient`` with retries, an optional rate limit and an optional cache.

    Meant to be opened per operation with ``async with``; every request waits
    for the rate limiter before it is sent (retries included in that slot).
    """

    def __init__(self, config: ResilienceConfig) -> None:
        self.config = config
        self._limiter = (
            AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)
            if config.ratelimit
            else None
        )

        options: dict[str, Any] = {
            "timeout": config.timeout_seconds,
            "transport": RetryTransport(retry=build_retry(config.retry)),
            "follow_redirects": True,
        }
        if config.base_url is not None:
            options["base_url"] = config.base_url
        if config.default_headers:
            options["headers"] = dict(config.default_headers)
        if config.response_hooks:
            options["event_hooks"] = {"response": list(config.response_hooks)}

        storage = build_cache_storage(config.cache)
        if storage is not None:
            log.debug("HTTP client %s caches responses in %s", config.name, config.cache)
            self._client: httpx.AsyncClient = AsyncCacheClient(**options, storage=storage)
        else:
            self._client = httpx.AsyncClient(**options)

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(self, url: URLTypes, *, headers: HeaderTypes | None = None) -> httpx.Response:
        return await self._send("GET", url, headers=headers)

    async def post(
        self, url: URLTypes, *, json: object, headers: HeaderTypes | None = None
    ) -> httpx.Response:
        return await self._send("POST", url, json=json, headers=headers)

    async def _send(self, method: str, url: URLTypes, **kwargs: Any) -> httpx.Response:
        if self._limiter is None:
            return await self._client.request(method, url, **kwargs)
        async with self._limiter:
            return await self._client.request(method, url, **kwargs)
