"""
metrics/processed.py

Contract processed family.

Kinds are the normalized processing statuses and their ``_unique``
variants.  A completed contract whose latest integration ended with
errors is reported only by the integration family, so it is excluded
here entirely.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable

from app.domain.contract_records import ContractUpload
from metrics.base import BaseMetricFamily
from metrics.dimensions import DimensionTuple, fan_out
from metrics.status import (
    COMPLETED_WITH_ERRORS,
    normalize_country,
    normalize_processing_status,
    processing_status_label,
    processing_status_pretty,
    to_contract_status_code,
)

PROCESSED_STATUSES: tuple[str, ...] = (
    "inprogress",
    "completed",
    "partial_complete",
    "failed",
    "permanentlyfailed",
)

PROCESSED_KINDS: tuple[str, ...] = PROCESSED_STATUSES + tuple(
    f"{status}_unique" for status in PROCESSED_STATUSES
)


def is_completed_with_integration_errors(record: ContractUpload) -> bool:
    return (
        normalize_processing_status(record.upload.status) == "completed"
        and record.integration_status == COMPLETED_WITH_ERRORS
    )


class ProcessedFamily(BaseMetricFamily):
    """Counts processed contracts by processing status."""

    name = "contractprocessed"
    kinds = PROCESSED_KINDS

    def classify(self, record: ContractUpload, window: str) -> tuple[DimensionTuple, ...]:
        status = normalize_processing_status(record.upload.status)
        country = normalize_country(record.entity.country_code)
        contract_status = to_contract_status_code(record.entity.contract_status)
        return fan_out(status, country, contract_status, window) + fan_out(
            f"{status}_unique", country, contract_status, window
        )

    def exclude(self, record: ContractUpload) -> bool:
        return is_completed_with_integration_errors(record)

    def describe_kind(self, kind: str) -> str:
        status, unique, _ = kind.partition("_unique")
        if normalize_processing_status(status) != status:
            return kind
        pretty = processing_status_pretty(status)
        return f"{pretty} (unique)" if unique else pretty


def processing_breakdown(records: Iterable[ContractUpload]) -> dict[str, int]:
    """Contracts per dashboard processing label, for run logs."""
    return dict(
        Counter(processing_status_label(normalize_processing_status(r.upload.status)) for r in records)
    )
