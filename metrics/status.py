"""
metrics/status.py

Closed-vocabulary status mapping for contract reporting.

Every function here is pure: output depends only on input, nothing is
logged and nothing raises.  Unrecognised input always maps to a fixed
sentinel (``"other"`` or ``"unknown"``) so that downstream aggregation
never has to guard against arbitrary upstream strings.
"""

from __future__ import annotations

import re
from typing import Any, Final

UNKNOWN: Final[str] = "unknown"
ALL: Final[str] = "all"

_WHITESPACE = re.compile(r"\s+")

_PROCESSING_SYNONYMS: dict[str, str] = {
    "inprogress": "inprogress",
    "in_progress": "inprogress",
    "processing": "inprogress",
    "pending": "inprogress",
    "completed": "completed",
    "complete": "completed",
    "done": "completed",
    "success": "completed",
    "failed": "failed",
    "error": "failed",
    "permanentlyfailed": "failed",
    "permfailed": "failed",
}

_PROCESSING_LABELS: dict[str, str] = {
    "inprogress": "contract_awaiting_process",
    "completed": "contract_processed",
    "failed": "contract_processing_failed",
}

_PROCESSING_PRETTY: dict[str, str] = {
    "inprogress": "Contract awaiting process",
    "completed": "Contract Processed",
    "failed": "Contract Processing Failed",
}

CONTRACT_STATUS_NAMES: Final[dict[str, str]] = {
    "d": "draft",
    "p": "pending",
    "v": "reviewed",
    "a": "approved",
    "r": "rejected",
    "s": "submitted",
    "c": "active",
    "e": "expired",
    ALL: ALL,
}
"""Single-letter entity status code → readable name."""

_CONTRACT_STATUS_CODES: dict[str, str] = {name: code for code, name in CONTRACT_STATUS_NAMES.items()}

KNOWN_COUNTRIES: Final[frozenset[str]] = frozenset({"au", "nz"})

INTEGRATION_STATUSES: Final[dict[str, str]] = {
    "Completed": "completed",
    "Completed With Errors": "completed_with_errors",
    "Loading": "loading",
    "Unknown": UNKNOWN,
}
"""Upstream integration status → metric-safe label."""

COMPLETED_WITH_ERRORS: Final[str] = "Completed With Errors"


def _clean(raw: Any) -> str:
    if raw is None:
        return ""
    return str(raw).strip().lower()


def normalize_processing_status(raw: Any) -> str:
    """
    Map a raw processing status to ``inprogress``, ``completed``, ``failed`` or ``other``.

    Matching ignores case and all whitespace, so ``"In Progress"`` and
    ``"inprogress"`` are equivalent.
    """

    key = _WHITESPACE.sub("", _clean(raw))
    return _PROCESSING_SYNONYMS.get(key, "other")


def processing_status_label(status_norm: str) -> str:
    """Dashboard label for an already-normalized processing status."""
    return _PROCESSING_LABELS.get(status_norm, "other")


def processing_status_pretty(raw: Any) -> str:
    """Human-readable processing status; unknown values are echoed back."""
    pretty = _PROCESSING_PRETTY.get(normalize_processing_status(raw))
    if pretty is not None:
        return pretty
    return "Unknown" if raw is None else str(raw)


def map_contract_status_code(code: Any) -> str:
    """
    Map a single-letter contract status code to its readable name.

    ``"all"`` maps to itself; anything outside the fixed table maps to
    ``"unknown"``.
    """

    return CONTRACT_STATUS_NAMES.get(_clean(code), UNKNOWN)


def to_contract_status_code(raw: Any) -> str:
    """
    Canonicalize a contract status given either as a code or a readable name.

    Entity documents carry the single-letter code while integration
    documents carry the readable name; both collapse to the code here.
    """

    value = _clean(raw)
    if value in CONTRACT_STATUS_NAMES:
        return value
    return _CONTRACT_STATUS_CODES.get(value, UNKNOWN)


def normalize_country(raw: Any) -> str:
    """Lower-case country code restricted to the reported countries."""
    value = _clean(raw)
    return value if value in KNOWN_COUNTRIES else UNKNOWN


def normalize_integration_status(raw: Any) -> str:
    """Map an upstream integration status to its metric label."""
    if raw is None:
        return UNKNOWN
    return INTEGRATION_STATUSES.get(str(raw).strip(), UNKNOWN)
