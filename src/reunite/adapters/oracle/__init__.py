"""Public interface for the match oracle adapter."""

from __future__ import annotations

from .client import GenerativeLanguageOracle, build_payload, parse_verdict
from .schema import MATCH_RESPONSE_SCHEMA, MatchResponse

__all__ = [
    "MATCH_RESPONSE_SCHEMA",
    "GenerativeLanguageOracle",
    "MatchResponse",
    "build_payload",
    "parse_verdict",
]
