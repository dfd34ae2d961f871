"""
metrics/base.py

Abstract base class for all metric family implementations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, ClassVar

from metrics.aggregator import aggregate
from metrics.dimensions import DimensionTuple, MetricKind, enumerate_space
from metrics.materializer import materialize, render_status_labels
from metrics.schema import MetricPoint


class BaseMetricFamily(ABC):
    """
    Contract for metric family implementations.

    A family owns a closed vocabulary of metric kinds, a classifier that
    maps one joined record to the dimension tuples it counts toward, an
    optional exclusion rule and the label rendering for its points.

    No I/O and no logging are permitted inside :meth:`classify`.
    """

    name: ClassVar[str]
    kinds: ClassVar[tuple[MetricKind, ...]]

    @abstractmethod
    def classify(self, record: Any, window: str) -> Iterable[DimensionTuple]:
        """
        Return the dimension tuples *record* contributes to in *window*.
        """

    def exclude(self, record: Any) -> bool:
        """Return ``True`` to drop *record* before counting."""
        return False

    def render_labels(self, dim: DimensionTuple) -> dict[str, str]:
        return render_status_labels(dim)

    def describe_kind(self, kind: str) -> str:
        """Readable name for a rendered kind in run summaries."""
        return kind

    def space(self, window: str) -> tuple[DimensionTuple, ...]:
        return enumerate_space(self.kinds, window)

    def aggregate(self, records: Iterable[Any], window: str) -> dict[DimensionTuple, int]:
        return aggregate(
            records,
            lambda record: self.classify(record, window),
            exclude=self.exclude,
        )

    def materialize(
        self,
        counts: Mapping[DimensionTuple, int],
        window: str,
    ) -> list[MetricPoint]:
        return materialize(counts, self.space(window), render_labels=self.render_labels)

    def points(self, records: Sequence[Any], window: str) -> list[MetricPoint]:
        """
        Aggregate *records* and materialize the dense point list for *window*.
        """
        return self.materialize(self.aggregate(records, window), window)

    def zero_points(self, window: str) -> list[MetricPoint]:
        """
        Dense all-zero point list; identical to :meth:`points` with no records.
        """
        return self.materialize({}, window)
