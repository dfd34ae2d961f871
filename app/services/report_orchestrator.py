"""
app/services/report_orchestrator.py

Report run orchestrator.

Wires report registry → window resolution → report queries → metrics
sink into one sequential run.  No aggregation logic lives here:

    report_registry   – which modules run for (mode, window)
    windows           – half-open time range in the reporting timezone
    ReportQuery       – fetch, join, dedupe, aggregate, materialize
    metrics sink      – line protocol delivery

Failure contract
----------------
- Unknown (mode, window)   → raises UnknownReportError before any I/O
- Module failure           → any error while loading records or building
                             points is logged; the module publishes its
                             zero-filled point set and the run continues
- Sink failure             → logged and recorded on the module; the run
                             continues with the next module
"""

from __future__ import annotations

import logging
import time
from collections import Counter
from collections.abc import Callable, Sequence
from dataclasses import asdict
from datetime import datetime
from typing import Any, Protocol

from app.config import ReportSettings
from app.connectors.metrics_ingest_connector import render_lines
from app.domain.contract_records import ModuleReport, ReportRunSummary, ReportWindow
from app.logging_utils import log_event
from app.schemas.ingest_result import IngestResult
from app.services.report_queries import ContractSource, ReportQuery, ReportQueryError
from app.services.report_registry import effective_window, get_report_queries
from app.services.windows import resolve_window
from metrics.schema import MetricPoint

logger = logging.getLogger(__name__)

_POSITIONAL_LABELS = ("contractstatus", "country", "window")


class MetricsSink(Protocol):
    def send(self, lines: Sequence[str]) -> IngestResult: ...


def summarize_points(
    points: Sequence[MetricPoint],
    describe_kind: Callable[[str], str] | None = None,
) -> list[str]:
    """
    One ``kind | contractstatus | country: value`` line per non-zero series.

    ``kind`` joins every label other than contract status, country and
    window, so it reads naturally for every family; *describe_kind* may
    turn it into a readable name.  Points carrying only positional labels
    are rollups and read as ``total``.
    """

    totals: Counter[tuple[str, str, str]] = Counter()
    for point in points:
        if point.value <= 0:
            continue
        labels = point.labels
        kind = "/".join(v for k, v in labels.items() if k not in _POSITIONAL_LABELS) or "total"
        if describe_kind is not None:
            kind = describe_kind(kind)
        key = (kind, labels.get("contractstatus", "all"), labels.get("country", "unknown"))
        totals[key] += point.value
    return [f"{kind} | {cs} | {country}: {count}" for (kind, cs, country), count in totals.items()]


def summary_to_dict(summary: ReportRunSummary) -> dict[str, Any]:
    return {
        "mode": summary.mode,
        "window": asdict(summary.window),
        "total_lines_sent": summary.total_lines_sent,
        "failed_modules": summary.failed_modules,
        "modules": [asdict(module) for module in summary.modules],
    }


class ReportOrchestrator:
    """
    Runs every registered report module for one ``(mode, window)`` request.

    The orchestrator holds no business data between runs.  *source* and
    *sink* are injected so tests can drive a whole run in memory.
    """

    def __init__(
        self,
        *,
        source: ContractSource,
        sink: MetricsSink,
        settings: ReportSettings,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._source = source
        self._sink = sink
        self._settings = settings
        self._clock = clock

    def run(self, mode: str, window_label: str, now: datetime | None = None) -> ReportRunSummary:
        """
        Execute all modules for *mode* / *window_label* and return the summary.

        Raises
        ------
        UnknownReportError
            If no modules are registered for the pair.
        """

        queries = get_report_queries(mode, window_label)
        label = effective_window(mode, window_label)
        window = resolve_window(label, now, tz_name=self._settings.timezone)

        log_event(
            logger,
            logging.INFO,
            "report_run_started",
            mode=mode,
            window=label,
            modules=[q.name for q in queries],
            environment=self._settings.environment,
        )

        modules = [self._run_module(query, window) for query in queries]
        summary = ReportRunSummary(mode=mode, window=window, modules=modules)

        log_event(
            logger,
            logging.INFO,
            "report_run_completed",
            mode=mode,
            window=label,
            total_lines_sent=summary.total_lines_sent,
            failed_modules=summary.failed_modules,
        )
        return summary

    def _run_module(self, query: ReportQuery, window: ReportWindow) -> ModuleReport:
        started = time.monotonic()
        error: str | None = None

        try:
            points = query.run(self._source, window)
            lines = self._render(query, points)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Report module %s failed, publishing zero-filled metrics: %s", query.name, exc)
            error = str(exc) if isinstance(exc, ReportQueryError) else f"{query.name}: {exc}"
            points, lines = self._zero_fill(query)

        result = IngestResult.accepted(0)
        try:
            result = self._sink.send(lines)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Report module %s could not deliver %d lines: %s", query.name, len(lines), exc)
            error = f"{error}; sink: {exc}" if error else f"sink: {exc}"

        if result.lines_invalid:
            logger.error(
                "Report module %s: %d metric lines rejected: %s",
                query.name,
                result.lines_invalid,
                result.invalid_lines,
            )

        report = ModuleReport(
            name=query.name,
            metrics_count=len(points),
            lines_ok=result.lines_ok,
            lines_invalid=result.lines_invalid,
            error=error,
            summary=summarize_points(points, describe_kind=query.family.describe_kind),
        )
        log_event(
            logger,
            logging.INFO,
            "report_module_completed",
            module=query.name,
            metrics_count=report.metrics_count,
            lines_ok=report.lines_ok,
            lines_invalid=report.lines_invalid,
            error=report.error,
            elapsed_ms=round((time.monotonic() - started) * 1000.0, 1),
        )
        return report

    def _render(self, query: ReportQuery, points: Sequence[MetricPoint]) -> list[str]:
        return render_lines(
            query.metric_base,
            points,
            env=self._settings.environment,
            timestamp_ms=int(self._clock() * 1000),
        )

    def _zero_fill(self, query: ReportQuery) -> tuple[list[MetricPoint], list[str]]:
        """Zero-filled points and lines for *query*; nothing at all if even that fails."""
        try:
            points = query.zero_fill()
            return points, self._render(query, points)
        except Exception as exc:  # noqa: BLE001
            logger.error("Report module %s could not build zero-filled metrics: %s", query.name, exc)
            return [], []
