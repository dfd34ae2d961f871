"""Output contract for materialized metric points."""

from pydantic import BaseModel, ConfigDict, Field


class MetricPoint(BaseModel):
    """One fully labelled gauge value ready for line rendering."""

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
    )

    labels: dict[str, str]
    value: int = Field(strict=True, ge=0)
