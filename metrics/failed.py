"""
metrics/failed.py

Contract failed family.

Failures are grouped by a normalized :class:`FailureSignature`.  Raw
upstream error messages are free text, so only a small set of known
patterns survive classification; everything else collapses to
``(other, other)``.

Rules
-----
failure_type:
    ``failed`` when the upstream result is exactly ``"Failed"``,
    ``permanently_failed`` when it contains ``permanent`` (any case),
    otherwise ``unknown``.
error_code / error_message:
    Derived from the first upstream error only.
entity_type:
    The large entity type, ``Unknown`` when absent.

Signatures outside the enumerated vocabulary still count toward the
``total_failed`` series, one ``{country: total, window}`` point per window
holding the number of distinct failed contracts.
"""

from __future__ import annotations

from app.domain.contract_records import ContractFailure, RawContractRecord, SalesforceResponse
from metrics.base import BaseMetricFamily
from metrics.dimensions import TOTAL, DimensionTuple, FailureSignature, enumerate_space, fan_out
from metrics.status import (
    ALL,
    UNKNOWN,
    map_contract_status_code,
    normalize_country,
    to_contract_status_code,
)

ENTITY_TYPES: tuple[str, ...] = ("ContractCustomer", "Contract")

ACCOUNT_MISSING_MARKER = "Account_Identification__c in entity Account"

ERROR_PATTERNS: tuple[tuple[str, str], ...] = (
    ("INVALID_FIELD", "Account_doesnot_exists"),
    ("CANNOT_EXECUTE_FLOW_TRIGGER", "Flow_trigger_error"),
    ("other", "other"),
)

FAILURE_TYPES: tuple[str, ...] = ("failed", "permanently_failed")

FAILURE_KINDS: tuple[FailureSignature, ...] = tuple(
    FailureSignature(entity_type, error_code, error_message, failure_type)
    for entity_type in ENTITY_TYPES
    for error_code, error_message in ERROR_PATTERNS
    for failure_type in FAILURE_TYPES
)


def classify_failure_type(response: SalesforceResponse | None) -> str:
    result = response.result if response is not None else None
    if result == "Failed":
        return "failed"
    if result and "permanent" in result.lower():
        return "permanently_failed"
    return UNKNOWN


def classify_error(response: SalesforceResponse | None) -> tuple[str, str]:
    """Map the first upstream error to a ``(error_code, error_message)`` pattern."""
    if response is None or not response.errors:
        return ("other", "other")

    first = response.errors[0]
    code = first.status_code or ""
    message = first.message or ""
    if code == "INVALID_FIELD" and ACCOUNT_MISSING_MARKER in message:
        return ("INVALID_FIELD", "Account_doesnot_exists")
    if code == "CANNOT_EXECUTE_FLOW_TRIGGER":
        return ("CANNOT_EXECUTE_FLOW_TRIGGER", "Flow_trigger_error")
    return ("other", "other")


def classify_failure(record: RawContractRecord) -> FailureSignature:
    error_code, error_message = classify_error(record.salesforce_response)
    return FailureSignature(
        entity_type=record.large_entity_type or "Unknown",
        error_code=error_code,
        error_message=error_message,
        failure_type=classify_failure_type(record.salesforce_response),
    )


TOTAL_FAILED_KIND = "total_failed"


def total_failed_tuple(window: str) -> DimensionTuple:
    """The single per-window tuple counting every distinct failed contract."""
    return DimensionTuple(TOTAL_FAILED_KIND, TOTAL, ALL, window)


class FailedFamily(BaseMetricFamily):
    """Counts failed contracts by failure signature."""

    name = "contractfailed"
    kinds = FAILURE_KINDS

    def classify(self, record: ContractFailure, window: str) -> tuple[DimensionTuple, ...]:
        if record.entity is None:
            country, contract_status = UNKNOWN, UNKNOWN
        else:
            country = normalize_country(record.entity.country_code)
            contract_status = to_contract_status_code(record.entity.contract_status)
        signature = classify_failure(record.failure)
        return fan_out(signature, country, contract_status, window) + (total_failed_tuple(window),)

    def space(self, window: str) -> tuple[DimensionTuple, ...]:
        return enumerate_space(self.kinds, window) + (total_failed_tuple(window),)

    def render_labels(self, dim: DimensionTuple) -> dict[str, str]:
        signature = dim.metric_kind
        if signature == TOTAL_FAILED_KIND:
            return {"country": dim.country, "window": dim.window}
        if not isinstance(signature, FailureSignature):
            raise TypeError(f"Failed-family tuple has non-signature kind {signature!r}.")
        return {
            **signature.labels(),
            "contractstatus": map_contract_status_code(dim.contract_status),
            "country": dim.country,
            "window": dim.window,
        }
