"""Gateway client resolving content references to raw bytes."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING
from urllib.parse import quote

import httpx

from reunite.adapters.http_resilience import ResilientClient
from reunite.domain.errors import ContentUnavailable
from reunite.domain.ports.content import ContentBlob

if TYPE_CHECKING:
    from collections.abc import Callable

    from reunite.config.content import ContentStoreConfig
    from reunite.config.http_resilience import ResilienceConfig

log = getLogger(__name__)


class GatewayContentResolver:
    """``ContentResolver`` fetching ``{gateway}{content_ref}`` over HTTP."""

    def __init__(
        self,
        *,
        config: ContentStoreConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._client_factory = client_factory or ResilientClient

    async def resolve(self, content_ref: str) -> ContentBlob:
        reference = content_ref.strip()
        if not reference:
            raise ContentUnavailable(content_ref, "empty reference")
        try:
            async with self._client_factory(self._config.resilience) as client:
                response = await client.get(quote(reference, safe="/"))
        except httpx.HTTPError as exc:
            raise ContentUnavailable(reference, repr(exc)) from exc

        if response.is_error:
            raise ContentUnavailable(reference, f"gateway returned HTTP {response.status_code}")
        if not response.content:
            raise ContentUnavailable(reference, "gateway returned an empty body")

        log.debug("Resolved content %s (%s bytes)", reference, len(response.content))
        return ContentBlob(
            content_ref=reference,
            mime_type=_mime_type(response, self._config.default_mime_type),
            data=response.content,
        )


def _mime_type(response: httpx.Response, default: str) -> str:
    header = response.headers.get("content-type", "")
    mime_type = header.split(";", 1)[0].strip().lower()
    if not mime_type or mime_type == "application/octet-stream":
        return default
    return mime_type
