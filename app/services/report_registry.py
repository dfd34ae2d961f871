"""
app/services/report_registry.py

Explicit ``(mode, window) → report queries`` registry.

Modes
-----
today  Run the queries of the requested window.
all    Always run the ``overall`` queries, whatever window was asked for.

Every window carries the same four modules in a fixed order: received,
processed, failed and integration status.
"""

from __future__ import annotations

from app.services.report_queries import (
    ReportQuery,
    load_failures,
    load_integrations,
    load_latest_uploads,
    load_processed_uploads,
)
from metrics.dimensions import WINDOW_LABELS
from metrics.failed import FailedFamily
from metrics.integration import IntegrationFamily
from metrics.processed import ProcessedFamily
from metrics.received import ReceivedFamily

REPORT_MODES: tuple[str, ...] = ("today", "all")

_RECEIVED = ReceivedFamily()
_PROCESSED = ProcessedFamily()
_FAILED = FailedFamily()
_INTEGRATION = IntegrationFamily()


class UnknownReportError(LookupError):
    """
    Raised when no report queries are registered for a ``(mode, window)`` pair.
    """


def _queries_for_window(window: str) -> tuple[ReportQuery, ...]:
    return (
        ReportQuery(
            name=f"contractreceived_{window}",
            metric_base=f"custom.dashboard.contractreceived.{window}.by_status",
            family=_RECEIVED,
            window=window,
            loader=load_latest_uploads,
        ),
        ReportQuery(
            name=f"contractprocessed_{window}",
            metric_base=f"custom.dashboard.contractprocessed.{window}.by_status",
            family=_PROCESSED,
            window=window,
            loader=load_processed_uploads,
        ),
        ReportQuery(
            name=f"contractfailed_{window}",
            metric_base=f"custom.dashboard.contractfailed.{window}",
            family=_FAILED,
            window=window,
            loader=load_failures,
        ),
        ReportQuery(
            name=f"integrationstatus_{window}",
            metric_base=f"custom.dashboard.integrationstatus.{window}",
            family=_INTEGRATION,
            window=window,
            loader=load_integrations,
        ),
    )


_QUERIES_BY_WINDOW: dict[str, tuple[ReportQuery, ...]] = {
    window: _queries_for_window(window) for window in WINDOW_LABELS
}

_REGISTRY: dict[tuple[str, str], tuple[ReportQuery, ...]] = {
    **{("today", window): queries for window, queries in _QUERIES_BY_WINDOW.items()},
    **{("all", window): _QUERIES_BY_WINDOW["overall"] for window in WINDOW_LABELS},
}


def effective_window(mode: str, window: str) -> str:
    """Window label actually reported for *mode* and the requested *window*."""
    return "overall" if mode == "all" else window


def get_report_queries(mode: str, window: str) -> tuple[ReportQuery, ...]:
    """
    Return the registered queries for ``(mode, window)``.

    Raises
    ------
    UnknownReportError
        If the pair is not registered.
    """

    key = (mode.strip().lower(), window.strip().lower())
    try:
        return _REGISTRY[key]
    except KeyError:
        raise UnknownReportError(
            f"No report registered for mode='{mode}' window='{window}'. "
            f"Modes: {list(REPORT_MODES)}; windows: {list(WINDOW_LABELS)}."
        ) from None
