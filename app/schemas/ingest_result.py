"""
app/schemas/ingest_result.py

Response schema for the metrics ingest endpoint.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class IngestResult(BaseModel):
    """
    Accepted and rejected line counts for one metrics ingest request.

    Accepts both the endpoint's camelCase keys and snake_case names.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    lines_ok: int = Field(0, ge=0, validation_alias=AliasChoices("linesOk", "lines_ok"))
    lines_invalid: int = Field(0, ge=0, validation_alias=AliasChoices("linesInvalid", "lines_invalid"))
    invalid_lines: list[Any] = Field(
        default_factory=list,
        validation_alias=AliasChoices("invalidLines", "invalid_lines"),
    )

    @classmethod
    def accepted(cls, count: int) -> "IngestResult":
        return cls(lines_ok=count, lines_invalid=0, invalid_lines=[])
