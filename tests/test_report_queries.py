"""
tests/test_report_queries.py

Unit tests for record loaders and ReportQuery against an in-memory source.

Coverage
--------
- Upload batch ids are joined to entities after prefix stripping
- Repeated uploads of one contract reduce to the latest
- Latest integration status is attached for the processed family
- Failures and integration statuses are joined by contract id
- Completed-with-errors details are logged, capped and truncated
- Loader and point-building errors surface as ReportQueryError
- zero_fill matches an empty run
"""

from __future__ import annotations

import logging

import pytest

from app.domain.contract_records import ReportWindow
from app.services.report_queries import (
    ReportQuery,
    ReportQueryError,
    load_failures,
    load_integrations,
    load_latest_uploads,
    load_processed_uploads,
    log_integration_errors,
)
from app.services.report_registry import get_report_queries
from metrics.joins import to_entity_batch_id
from tests.fakes import FakeContractSource, make_entity, make_failure, make_integration_status, make_upload

WINDOW = ReportWindow(label="today", start_sec=0, end_sec=10_000)


class TestBatchIdPrefix:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("CMP-Contract-B1", "B1"), ("B1", "B1"), ("", ""), (None, "")],
    )
    def test_to_entity_batch_id(self, raw: str | None, expected: str) -> None:
        assert to_entity_batch_id(raw) == expected


class TestLoadUploads:
    def test_joins_by_stripped_batch_id_and_keeps_latest(self) -> None:
        source = FakeContractSource(
            uploads=[
                make_upload("CMP-Contract-B1", status="inprogress", timestamp=100),
                make_upload("CMP-Contract-B2", status="completed", timestamp=200),
                make_upload("CMP-Contract-B3", status="failed", timestamp=300),
            ],
            entities=[
                make_entity("C1", batch_id="B1"),
                make_entity("C1", batch_id="B2"),
            ],
        )
        records = load_latest_uploads(source, WINDOW)
        assert len(records) == 1
        assert records[0].contract_id == "C1"
        assert records[0].upload.status == "completed"

    def test_empty_window_skips_entity_lookup(self) -> None:
        source = FakeContractSource()
        assert load_latest_uploads(source, WINDOW) == []
        assert source.calls == ["fetch_uploads"]

    def test_processed_attaches_latest_integration_status(self) -> None:
        source = FakeContractSource(
            uploads=[make_upload("CMP-Contract-B1")],
            entities=[make_entity("C1", batch_id="B1")],
            integration_statuses=[
                make_integration_status("C1", integration_status="Completed", timestamp=100),
                make_integration_status("C1", integration_status="Completed With Errors", timestamp=200),
            ],
        )
        records = load_processed_uploads(source, WINDOW)
        assert [r.integration_status for r in records] == ["Completed With Errors"]

    def test_processed_without_status_leaves_none(self) -> None:
        source = FakeContractSource(
            uploads=[make_upload("CMP-Contract-B1")],
            entities=[make_entity("C1", batch_id="B1")],
        )
        assert load_processed_uploads(source, WINDOW)[0].integration_status is None


class TestLoadFailures:
    def test_latest_failure_per_contract_with_entity(self) -> None:
        source = FakeContractSource(
            failures=[
                make_failure("C1", result="Failed", timestamp=100),
                make_failure("C1", result="Permanently Failed", timestamp=200),
                make_failure("C2", timestamp=150),
                make_failure(None, timestamp=300),
            ],
            entities=[make_entity("C1", country="nz")],
        )
        records = {r.contract_id: r for r in load_failures(source, WINDOW)}
        assert set(records) == {"C1", "C2"}
        assert records["C1"].failure.salesforce_response.result == "Permanently Failed"
        assert records["C1"].entity is not None and records["C1"].entity.country_code == "nz"
        assert records["C2"].entity is None


class TestLoadIntegrations:
    def test_latest_status_per_contract(self) -> None:
        source = FakeContractSource(
            integration_statuses=[
                make_integration_status("C1", integration_status="Loading", timestamp=100),
                make_integration_status("C1", integration_status="Completed", timestamp=200),
                make_integration_status("C2", integration_status="Failed", timestamp=150),
            ],
            entities=[make_entity("C2", country="nz")],
        )
        records = {r.contract_id: r for r in load_integrations(source, WINDOW)}
        assert records["C1"].status.integration_status == "Completed"
        assert records["C1"].entity is None
        assert records["C2"].entity is not None

    def test_completed_with_errors_details_are_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        comment = "Account lookup failed for contract customer during load: missing parent"
        statuses = [
            make_integration_status(f"C{i:02d}", integration_status="Completed With Errors", comment=comment)
            for i in range(12)
        ]
        statuses += [
            make_integration_status("D1", integration_status="Completed With Errors"),
            make_integration_status("D2", integration_status="Completed", comment="ok"),
        ]
        source = FakeContractSource(integration_statuses=statuses)

        with caplog.at_level(logging.WARNING, logger="app.services.report_queries"):
            load_integrations(source, WINDOW)

        details = [r.getMessage() for r in caplog.records if "completed with errors" in r.getMessage()]
        assert len(details) == 10
        assert details[0] == (
            f"Integration completed with errors contract=C00 contract_status=approved "
            f"error={comment[:54]} at=1970-01-01T00:18:20+00:00"
        )
        assert not any("D1" in line or "D2" in line for line in details)
        assert "... and 2 more integration error(s)" in caplog.messages

    def test_error_detail_count_ignores_other_statuses(self) -> None:
        statuses = [
            make_integration_status("C1", integration_status="Completed With Errors", comment="bad field"),
            make_integration_status("C2", integration_status="Loading", comment="still going"),
        ]
        assert log_integration_errors(statuses) == 1
        assert log_integration_errors(statuses, limit=0) == 1


class TestReportQuery:
    def test_loader_error_is_wrapped(self) -> None:
        query = get_report_queries("today", "today")[0]
        source = FakeContractSource(uploads=[make_upload()], fail_on=frozenset({"fetch_entities_by_batch_ids"}))
        with pytest.raises(ReportQueryError, match="contractreceived_today"):
            query.run(source, WINDOW)

    def test_run_returns_dense_points(self) -> None:
        for query in get_report_queries("today", "today"):
            points = query.run(FakeContractSource(), WINDOW)
            assert points == query.zero_fill()
            assert points and all(p.value == 0 for p in points)

    def test_point_building_error_is_wrapped(self) -> None:
        query = get_report_queries("today", "today")[0]
        broken = ReportQuery(
            name=query.name,
            metric_base=query.metric_base,
            family=query.family,
            window=query.window,
            loader=lambda source, window: [object()],
        )
        with pytest.raises(ReportQueryError, match="contractreceived_today"):
            broken.run(FakeContractSource(), WINDOW)
