from __future__ import annotations

import asyncio
import base64
import json
from collections.abc import Callable  # noqa: TC003

import httpx
import pytest

from reunite.adapters.http_resilience import ResilientClient
from reunite.adapters.oracle import (
    MATCH_RESPONSE_SCHEMA,
    GenerativeLanguageOracle,
    build_payload,
    parse_verdict,
)
from reunite.config.http_resilience import ResilienceConfig  # noqa: TC001
from reunite.config.oracle import OracleConfig, get_oracle_config
from reunite.domain.errors import OracleFault
from reunite.domain.model import Confidence
from reunite.domain.ports.oracle import Attachment, OracleRequest


def _make_client_factory(
    handler: Callable[[httpx.Request], httpx.Response],
) -> Callable[[ResilienceConfig], ResilientClient]:
    async def async_handler(request: httpx.Request) -> httpx.Response:
        return handler(request)

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        client = ResilientClient(resilience)
        client._client = httpx.AsyncClient(  # noqa: SLF001  # type: ignore[reportPrivateUsage]
            base_url=resilience.base_url or "",
            transport=httpx.MockTransport(async_handler),
        )
        return client

    return factory


def _envelope(answer: object) -> dict[str, object]:
    return {
        "candidates": [
            {
                "content": {"role": "model", "parts": [{"text": json.dumps(answer)}]},
                "finishReason": "STOP",
            }
        ]
    }


@pytest.fixture
def config(clean_env: pytest.MonkeyPatch) -> OracleConfig:
    clean_env.setenv("ORACLE_API_KEY", "oracle-key")
    clean_env.setenv("ORACLE_MODEL", "gemini-test")
    return get_oracle_config()


@pytest.fixture
def request_with_image() -> OracleRequest:
    return OracleRequest(
        system_instruction="Find a match.",
        prompt="--- LOST ITEM ---",
        attachments=(
            Attachment(label="Image of LOST item ID 1", mime_type="image/png", data=b"png"),
        ),
    )


def test_build_payload_inlines_attachments(request_with_image: OracleRequest) -> None:
    payload = build_payload(request_with_image)

    parts = payload["contents"][0]["parts"]
    assert parts[0] == {"text": "--- LOST ITEM ---"}
    assert "Image of LOST item ID 1" in parts[1]["text"]
    assert parts[2]["inlineData"] == {
        "mimeType": "image/png",
        "data": base64.b64encode(b"png").decode("ascii"),
    }
    assert payload["systemInstruction"] == {"parts": [{"text": "Find a match."}]}
    assert payload["generationConfig"]["responseSchema"] is MATCH_RESPONSE_SCHEMA
    assert payload["generationConfig"]["responseMimeType"] == "application/json"


def test_parse_verdict_reads_match() -> None:
    verdict = parse_verdict(
        _envelope({"match": {"lostId": 1, "foundId": 2, "confidence": "HIGH"}})
    )

    assert verdict is not None
    assert (verdict.lost_id, verdict.found_id) == (1, 2)
    assert verdict.confidence is Confidence.HIGH


def test_parse_verdict_reads_explicit_no_match() -> None:
    assert parse_verdict(_envelope({"match": None})) is None


@pytest.mark.parametrize(
    "payload",
    [
        {"candidates": []},
        {"candidates": [{"content": {"parts": [{"text": "not json"}]}}]},
        _envelope({"match": {"lostId": "one", "foundId": 2}}),
        _envelope({"verdict": "yes"}),
        _envelope({"match": {"lostId": 1, "foundId": 2, "confidence": "certain"}}),
        ["unexpected"],
    ],
)
def test_parse_verdict_rejects_malformed_answers(payload: object) -> None:
    with pytest.raises(OracleFault):
        parse_verdict(payload)


def test_compare_posts_generate_content(
    config: OracleConfig, request_with_image: OracleRequest
) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200, json=_envelope({"match": {"lostId": 1, "foundId": 2, "confidence": "high"}})
        )

    oracle = GenerativeLanguageOracle(config=config, client_factory=_make_client_factory(handler))
    verdict = asyncio.run(oracle.compare(request_with_image))

    assert verdict is not None
    assert verdict.found_id == 2
    (request,) = seen
    assert request.method == "POST"
    assert request.url.path.endswith("/models/gemini-test:generateContent")
    assert request.headers["x-goog-api-key"] == "oracle-key"
    assert json.loads(request.content)["contents"][0]["role"] == "user"


@pytest.mark.parametrize("status_code", [400, 403, 500])
def test_compare_maps_error_status_to_oracle_fault(
    config: OracleConfig, request_with_image: OracleRequest, status_code: int
) -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json={"error": {"message": "nope"}})

    oracle = GenerativeLanguageOracle(config=config, client_factory=_make_client_factory(handler))

    with pytest.raises(OracleFault, match=str(status_code)):
        asyncio.run(oracle.compare(request_with_image))


def test_compare_maps_transport_error_to_oracle_fault(
    config: OracleConfig, request_with_image: OracleRequest
) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    oracle = GenerativeLanguageOracle(config=config, client_factory=_make_client_factory(handler))

    with pytest.raises(OracleFault):
        asyncio.run(oracle.compare(request_with_image))


def test_compare_rejects_non_json_body(
    config: OracleConfig, request_with_image: OracleRequest
) -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>gateway</html>")

    oracle = GenerativeLanguageOracle(config=config, client_factory=_make_client_factory(handler))

    with pytest.raises(OracleFault, match="not JSON"):
        asyncio.run(oracle.compare(request_with_image))
