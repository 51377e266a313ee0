"""Wire schemas for the generative-language match oracle."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from reunite.domain.model import Confidence

MATCH_RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "match": {
            "type": "OBJECT",
            "nullable": True,
            "properties": {
                "lostId": {"type": "INTEGER"},
                "foundId": {"type": "INTEGER"},
                "confidence": {
                    "type": "STRING",
                    "enum": [tier.value for tier in reversed(Confidence)],
                },
            },
            "required": ["lostId", "foundId", "confidence"],
        }
    },
    "required": ["match"],
}


class OracleBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class MatchPayload(OracleBaseModel):
    lost_id: int = Field(alias="lostId")
    found_id: int = Field(alias="foundId")
    confidence: Confidence | None = None

    @field_validator("confidence", mode="before")
    @classmethod
    def _normalise_confidence(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower() or None
        return value


class MatchResponse(OracleBaseModel):
    """``{"match": null}`` or ``{"match": {"lostId", "foundId", "confidence"}}``."""

    match: MatchPayload | None


class ContentPart(OracleBaseModel):
    text: str | None = None


class CandidateContent(OracleBaseModel):
    parts: list[ContentPart] = Field(default_factory=list)
    role: str | None = None


class Candidate(OracleBaseModel):
    content: CandidateContent | None = None
    finish_reason: str | None = Field(default=None, alias="finishReason")


class GenerateContentResponse(OracleBaseModel):
    candidates: list[Candidate] = Field(default_factory=list)

    def first_text(self) -> str | None:
        for candidate in self.candidates[:1]:
            if candidate.content is None:
                return None
            for part in candidate.content.parts:
                if part.text:
                    return part.text
        return None
