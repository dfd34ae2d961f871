"""
tests/test_report_orchestrator.py

End-to-end report runs against an in-memory source and recording sink.

Coverage
--------
- Every module sends its full dense point set, in registry order
- Lines carry metric base, env dimension and the run timestamp
- Query failures publish zeros and are reported, the run continues
- A family that raises while classifying does not stop later modules
- Sink failures are recorded per module
- Rejected lines are surfaced in the module report
- Human-readable summaries list only non-zero series
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from app.config import ReportSettings
from app.services import report_orchestrator
from app.services.report_orchestrator import ReportOrchestrator, summarize_points, summary_to_dict
from app.services.report_queries import ReportQuery
from app.services.report_registry import UnknownReportError
from metrics.base import BaseMetricFamily
from metrics.dimensions import DimensionTuple
from metrics.received import ReceivedFamily
from metrics.schema import MetricPoint
from tests.fakes import FakeContractSource, RecordingSink, make_entity, make_failure, make_upload

NOW = datetime(2026, 10, 14, 0, 0, tzinfo=timezone.utc)
SETTINGS = ReportSettings(environment="uat")
EXPECTED_SIZES = {
    "contractreceived_today": 108,
    "contractprocessed_today": 270,
    "contractfailed_today": 325,
    "integrationstatus_today": 108,
}


def _orchestrator(source: FakeContractSource, sink: RecordingSink) -> ReportOrchestrator:
    return ReportOrchestrator(source=source, sink=sink, settings=SETTINGS, clock=lambda: 1_700_000_000.0)


def _single_contract_source(**kwargs) -> FakeContractSource:
    return FakeContractSource(
        uploads=[make_upload("CMP-Contract-B1", status="completed")],
        entities=[make_entity("C1", batch_id="B1", country="au", contract_status="a")],
        **kwargs,
    )


class TestReportRun:
    def test_every_module_sends_dense_points(self) -> None:
        sink = RecordingSink()
        summary = _orchestrator(FakeContractSource(), sink).run("today", "today", now=NOW)

        assert [m.name for m in summary.modules] == list(EXPECTED_SIZES)
        assert [len(batch) for batch in sink.batches] == list(EXPECTED_SIZES.values())
        assert {m.name: m.metrics_count for m in summary.modules} == EXPECTED_SIZES
        assert summary.failed_modules == []
        assert summary.total_lines_sent == sum(EXPECTED_SIZES.values())
        assert all(line.split(" ")[1] == "gauge,0" for batch in sink.batches for line in batch)

    def test_line_format(self) -> None:
        sink = RecordingSink()
        _orchestrator(_single_contract_source(), sink).run("today", "today", now=NOW)

        received = sink.batches[0]
        assert all(line.startswith("custom.dashboard.contractreceived.today.by_status,") for line in received)
        assert all(",env=uat " in line for line in received)
        assert all(line.endswith(" 1700000000000") for line in received)
        assert (
            "custom.dashboard.contractreceived.today.by_status,"
            "status=successfully_received,contractstatus=approved,country=au,window=today,env=uat "
            "gauge,1 1700000000000"
        ) in received

    def test_all_mode_reports_overall(self) -> None:
        sink = RecordingSink()
        summary = _orchestrator(FakeContractSource(), sink).run("all", "today", now=NOW)
        assert summary.window.label == "overall"
        assert summary.window.start_sec == 0
        assert all(",window=overall," in line for batch in sink.batches for line in batch)

    def test_unknown_report_raises_before_io(self) -> None:
        source = FakeContractSource()
        with pytest.raises(UnknownReportError):
            _orchestrator(source, RecordingSink()).run("today", "decade", now=NOW)
        assert source.calls == []

    def test_query_failure_publishes_zeros_and_continues(self) -> None:
        sink = RecordingSink()
        source = _single_contract_source(fail_on=frozenset({"fetch_failures"}))
        summary = _orchestrator(source, sink).run("today", "today", now=NOW)

        assert summary.failed_modules == ["contractfailed_today"]
        failed = summary.modules[2]
        assert failed.error is not None and "fetch_failures unavailable" in failed.error
        assert failed.metrics_count == EXPECTED_SIZES["contractfailed_today"]
        assert all(line.split(" ")[1] == "gauge,0" for line in sink.batches[2])
        assert len(sink.batches) == 4

    def test_sink_failure_is_recorded(self) -> None:
        summary = _orchestrator(FakeContractSource(), RecordingSink(fail=True)).run("today", "week", now=NOW)
        assert len(summary.failed_modules) == 4
        assert all(m.error == "sink: ingest endpoint down" for m in summary.modules)
        assert summary.total_lines_sent == 0

    def test_rejected_lines_are_reported(self) -> None:
        summary = _orchestrator(FakeContractSource(), RecordingSink(invalid=2)).run("today", "today", now=NOW)
        assert all(m.lines_invalid == 2 for m in summary.modules)
        assert summary.failed_modules == []

    def test_summary_dict_is_serializable_shape(self) -> None:
        summary = _orchestrator(_single_contract_source(), RecordingSink()).run("today", "today", now=NOW)
        data = summary_to_dict(summary)
        assert data["mode"] == "today"
        assert data["window"]["label"] == "today"
        assert "successfully_received | approved | au: 1" in data["modules"][0]["summary"]


class TestSummarizePoints:
    def test_only_non_zero_points(self) -> None:
        points = [
            MetricPoint(labels={"status": "completed", "contractstatus": "all", "country": "total", "window": "today"}, value=3),
            MetricPoint(labels={"status": "failed", "contractstatus": "all", "country": "total", "window": "today"}, value=0),
        ]
        assert summarize_points(points) == ["completed | all | total: 3"]

    def test_multi_label_kind_is_joined(self) -> None:
        point = MetricPoint(
            labels={
                "entity_type": "Contract",
                "error_code": "other",
                "error_message": "other",
                "failure_type": "failed",
                "contractstatus": "approved",
                "country": "au",
                "window": "week",
            },
            value=1,
        )
        assert summarize_points([point]) == ["Contract/other/other/failed | approved | au: 1"]


# ---------------------------------------------------------------------------
# Module isolation
# ---------------------------------------------------------------------------


class RaisingFamily(BaseMetricFamily):
    name = "raising"
    kinds = ("x",)

    def classify(self, record: object, window: str) -> tuple[DimensionTuple, ...]:
        raise ValueError("bad record")


class UnrenderableFamily(RaisingFamily):
    def render_labels(self, dim: DimensionTuple) -> dict[str, str]:
        raise KeyError("no labels")


def _query(name: str, family: BaseMetricFamily, records: list[object]) -> ReportQuery:
    return ReportQuery(
        name=name,
        metric_base=f"custom.dashboard.{name}.today",
        family=family,
        window="today",
        loader=lambda source, window: records,
    )


class TestModuleIsolation:
    def test_classify_error_does_not_abort_later_modules(self, monkeypatch: pytest.MonkeyPatch) -> None:
        queries = (
            _query("broken", RaisingFamily(), [object()]),
            _query("healthy", ReceivedFamily(), []),
        )
        monkeypatch.setattr(report_orchestrator, "get_report_queries", lambda mode, window: queries)
        sink = RecordingSink()

        summary = _orchestrator(FakeContractSource(), sink).run("today", "today", now=NOW)

        assert [m.name for m in summary.modules] == ["broken", "healthy"]
        broken, healthy = summary.modules
        assert broken.error is not None and "bad record" in broken.error
        assert broken.metrics_count == 27
        assert all(line.split(" ")[1] == "gauge,0" for line in sink.batches[0])
        assert healthy.error is None

    def test_failed_zero_fill_sends_nothing_for_that_module(self, monkeypatch: pytest.MonkeyPatch) -> None:
        queries = (
            _query("unrenderable", UnrenderableFamily(), [object()]),
            _query("healthy", ReceivedFamily(), []),
        )
        monkeypatch.setattr(report_orchestrator, "get_report_queries", lambda mode, window: queries)
        sink = RecordingSink()

        summary = _orchestrator(FakeContractSource(), sink).run("today", "today", now=NOW)

        assert summary.failed_modules == ["unrenderable"]
        assert summary.modules[0].metrics_count == 0
        assert sink.batches[0] == []
        assert summary.modules[1].error is None


class TestSummaryDescriptions:
    def test_processed_kinds_read_as_dashboard_names(self) -> None:
        summary = _orchestrator(_single_contract_source(), RecordingSink()).run("today", "today", now=NOW)
        processed = summary.modules[1].summary
        assert "Contract Processed | approved | au: 1" in processed
        assert "Contract Processed (unique) | all | total: 1" in processed

    def test_failed_total_reads_as_total(self) -> None:
        source = FakeContractSource(failures=[make_failure("C1", entity_type="Account")])
        summary = _orchestrator(source, RecordingSink()).run("today", "today", now=NOW)
        assert summary.modules[2].summary == ["total | all | total: 1"]
