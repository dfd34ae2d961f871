"""
tests/test_materializer.py

Dense materialization against the combination space.

Coverage
--------
- Completeness: one point per space tuple, in space order, for any aggregate
- Empty input yields an all-zero point set of the full size
- A single received contract lights up exactly the expected series
- An active ("c") contract maps to the active series in every window
- Aggregate entries outside the space are not emitted
- MetricPoint output contract
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from metrics.dimensions import WINDOW_LABELS, DimensionTuple, enumerate_space
from metrics.materializer import materialize, render_status_labels
from metrics.processed import ProcessedFamily
from metrics.received import RECEIVED_KINDS, ReceivedFamily
from metrics.schema import MetricPoint
from tests.fakes import joined_upload


class TestMaterialize:
    @pytest.mark.parametrize("window", WINDOW_LABELS)
    def test_one_point_per_space_tuple_in_order(self, window: str) -> None:
        space = enumerate_space(RECEIVED_KINDS, window)
        aggregate = {space[3]: 7, DimensionTuple("bogus", "xx", "q", window): 2}
        points = materialize(aggregate, space)
        assert len(points) == len(space)
        assert [p.labels for p in points] == [render_status_labels(d) for d in space]
        assert points[3].value == 7
        assert sum(p.value for p in points) == 7

    def test_labels_use_readable_contract_status(self) -> None:
        labels = render_status_labels(DimensionTuple("completed", "au", "v", "week"))
        assert labels == {"status": "completed", "contractstatus": "reviewed", "country": "au", "window": "week"}

    def test_entries_outside_space_are_dropped(self) -> None:
        space = enumerate_space(("x",), "today")
        points = materialize({DimensionTuple("x", "unknown", "unknown", "today"): 4}, space)
        assert all(p.value == 0 for p in points)


class TestScenarios:
    def test_zero_data_today(self) -> None:
        points = ReceivedFamily().points([], "today")
        assert len(points) == 108
        assert all(p.value == 0 for p in points)
        assert {p.labels["window"] for p in points} == {"today"}

    def test_single_received_contract(self) -> None:
        points = ReceivedFamily().points([joined_upload("C1", country="au", contract_status="a")], "today")
        non_zero = {
            (p.labels["status"], p.labels["country"], p.labels["contractstatus"]): p.value
            for p in points
            if p.value
        }
        assert non_zero[("successfully_received_unique", "total", "all")] == 1
        assert non_zero[("successfully_received", "au", "approved")] == 1
        assert len(non_zero) == 8

    @pytest.mark.parametrize("window", WINDOW_LABELS)
    def test_single_active_contract_in_every_window(self, window: str) -> None:
        points = ReceivedFamily().points([joined_upload("C1", country="au", contract_status="c")], window)
        non_zero = {
            (p.labels["status"], p.labels["country"], p.labels["contractstatus"]): p.value
            for p in points
            if p.value
        }
        assert non_zero[("successfully_received", "au", "active")] == 1
        assert non_zero[("successfully_received_unique", "total", "all")] == 1
        assert len(non_zero) == 8
        assert {p.labels["window"] for p in points} == {window}

    def test_zero_points_matches_empty_run(self) -> None:
        family = ProcessedFamily()
        assert family.zero_points("month") == family.points([], "month")


class TestMetricPoint:
    def test_is_frozen(self) -> None:
        point = MetricPoint(labels={"a": "b"}, value=1)
        with pytest.raises(ValidationError):
            point.value = 2  # type: ignore[misc]

    def test_rejects_negative_and_extra_fields(self) -> None:
        with pytest.raises(ValidationError):
            MetricPoint(labels={}, value=-1)
        with pytest.raises(ValidationError):
            MetricPoint(labels={}, value=1, unit="count")  # type: ignore[call-arg]
