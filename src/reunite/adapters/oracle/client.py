"""HTTP client for the generative-language match oracle."""

from __future__ import annotations

import base64
from logging import getLogger
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import ValidationError

from reunite.adapters.http_resilience import ResilientClient
from reunite.domain.errors import OracleFault
from reunite.domain.model import MatchVerdict

from .schema import MATCH_RESPONSE_SCHEMA, GenerateContentResponse, MatchResponse

if TYPE_CHECKING:
    from collections.abc import Callable

    from reunite.config.http_resilience import ResilienceConfig
    from reunite.config.oracle import OracleConfig
    from reunite.domain.ports.oracle import OracleRequest

log = getLogger(__name__)


def build_payload(request: OracleRequest) -> dict[str, Any]:
    """Translate an oracle request into a ``generateContent`` body."""

    parts: list[dict[str, Any]] = [{"text": request.prompt}]
    for attachment in request.attachments:
        parts.append({"text": f"\n\n--- {attachment.label} ---"})
        parts.append(
            {
                "inlineData": {
                    "mimeType": attachment.mime_type,
                    "data": base64.b64encode(attachment.data).decode("ascii"),
                }
            }
        )
    return {
        "contents": [{"role": "user", "parts": parts}],
        "systemInstruction": {"parts": [{"text": request.system_instruction}]},
        "generationConfig": {
            "responseMimeType": "application/json",
            "responseSchema": MATCH_RESPONSE_SCHEMA,
        },
    }


def parse_verdict(payload: object) -> MatchVerdict | None:
    """Validate a ``generateContent`` response against the match schema."""

    try:
        response = GenerateContentResponse.model_validate(payload)
    except ValidationError as exc:
        raise OracleFault(f"Unexpected oracle response envelope: {exc}") from exc

    text = response.first_text()
    if text is None:
        raise OracleFault("Oracle response carried no text candidate")

    try:
        answer = MatchResponse.model_validate_json(text)
    except ValidationError as exc:
        raise OracleFault(f"Oracle answer does not match the schema: {text!r}") from exc

    if answer.match is None:
        return None
    return MatchVerdict(
        lost_id=answer.match.lost_id,
        found_id=answer.match.found_id,
        confidence=answer.match.confidence,
    )


class GenerativeLanguageOracle:
    """``MatchOracle`` backed by the ``models/{model}:generateContent`` endpoint."""

    def __init__(
        self,
        *,
        config: OracleConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient

    async def compare(self, request: OracleRequest) -> MatchVerdict | None:
        payload = build_payload(request)
        log.debug(
            "Asking oracle model %s (%s attachments)", self._config.model, len(request.attachments)
        )
        try:
            async with self._client_factory(self._resilience) as client:
                response = await client.post(
                    f"models/{self._config.model}:generateContent",
                    json=payload,
                    headers={"x-goog-api-key": self._config.api_key},
                )
        except httpx.HTTPError as exc:
            raise OracleFault(f"Oracle request failed: {exc!r}") from exc

        if response.is_error:
            raise OracleFault(f"Oracle returned HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError as exc:
            raise OracleFault("Oracle response is not JSON") from exc
        return parse_verdict(body)
