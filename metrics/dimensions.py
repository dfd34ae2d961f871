"""
metrics/dimensions.py

Dimension keys and the dense metric combination space.

Every report family publishes the full cross product of its metric
kinds with the contract-status buckets and countries for one window.
Dashboards therefore always see the same series, whether or not data
existed for the period.

Enumeration order
-----------------
kinds → contract status buckets → countries.  The order is fixed so
that identical input always produces an identical, diffable point list.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Final, Union

from metrics.status import ALL

WINDOW_LABELS: Final[tuple[str, ...]] = ("today", "week", "month", "overall")

CONTRACT_STATUS_BUCKETS: Final[tuple[str, ...]] = (
    "c",  # active
    "d",  # draft
    "e",  # expired
    "p",  # pending
    "v",  # reviewed
    "a",  # approved
    "r",  # rejected
    "s",  # submitted
    ALL,
)

TOTAL: Final[str] = "total"

COUNTRIES: Final[tuple[str, ...]] = ("au", "nz", TOTAL)


@dataclass(frozen=True)
class FailureSignature:
    """
    Normalized failure classification used as the failed-family metric kind.
    """

    entity_type: str
    error_code: str
    error_message: str
    failure_type: str

    def labels(self) -> dict[str, str]:
        return {
            "entity_type": self.entity_type,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "failure_type": self.failure_type,
        }


MetricKind = Union[str, FailureSignature]


@dataclass(frozen=True)
class DimensionTuple:
    """
    Canonical aggregation key for one metric series.

    ``contract_status`` holds the lower-case status code (or ``"all"`` /
    ``"unknown"``); readable names are applied only when labels are
    rendered.
    """

    metric_kind: MetricKind
    country: str
    contract_status: str
    window: str


def fan_out(
    metric_kind: MetricKind,
    country: str,
    contract_status: str,
    window: str,
) -> tuple[DimensionTuple, ...]:
    """
    Return the four rollup tuples one record contributes to.

    ``(country, status)``, ``(total, status)``, ``(country, all)`` and
    ``(total, all)``.  Duplicates collapse when the record is already a
    rollup value, so a record never counts twice in one series.
    """

    candidates = (
        DimensionTuple(metric_kind, country, contract_status, window),
        DimensionTuple(metric_kind, TOTAL, contract_status, window),
        DimensionTuple(metric_kind, country, ALL, window),
        DimensionTuple(metric_kind, TOTAL, ALL, window),
    )
    return tuple(dict.fromkeys(candidates))


def enumerate_space(kinds: Iterable[MetricKind], window: str) -> tuple[DimensionTuple, ...]:
    """
    Enumerate ``kinds × CONTRACT_STATUS_BUCKETS × COUNTRIES`` for *window*.

    Raises
    ------
    ValueError
        If *window* is not one of :data:`WINDOW_LABELS`.
    """

    if window not in WINDOW_LABELS:
        raise ValueError(f"Unknown window label '{window}'. Allowed: {list(WINDOW_LABELS)}.")

    return tuple(
        DimensionTuple(kind, country, bucket, window)
        for kind in kinds
        for bucket in CONTRACT_STATUS_BUCKETS
        for country in COUNTRIES
    )
