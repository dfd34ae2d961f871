"""
metrics/materializer.py

Dense materialization of a sparse aggregate against a combination space.

The materializer only looks values up.  Every ``total`` and ``all``
rollup must already exist as a first-class tuple in the aggregate; no
sums are derived here.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence

from metrics.dimensions import DimensionTuple
from metrics.schema import MetricPoint
from metrics.status import map_contract_status_code

logger = logging.getLogger(__name__)

LabelRenderer = Callable[[DimensionTuple], dict[str, str]]


def render_status_labels(dim: DimensionTuple) -> dict[str, str]:
    """Default labels: ``status``, readable ``contractstatus``, ``country``, ``window``."""
    return {
        "status": str(dim.metric_kind),
        "contractstatus": map_contract_status_code(dim.contract_status),
        "country": dim.country,
        "window": dim.window,
    }


def materialize(
    aggregate: Mapping[DimensionTuple, int],
    space: Sequence[DimensionTuple],
    render_labels: LabelRenderer = render_status_labels,
) -> list[MetricPoint]:
    """
    Emit exactly one :class:`MetricPoint` per tuple in *space*, in order.

    Missing tuples default to ``0``.  Aggregate entries that fall outside
    the space (unknown countries or contract statuses) are not emitted.
    """

    points = [
        MetricPoint(labels=render_labels(dim), value=int(aggregate.get(dim, 0)))
        for dim in space
    ]

    if logger.isEnabledFor(logging.DEBUG):
        in_space = set(space)
        outside = sum(1 for dim in aggregate if dim not in in_space)
        logger.debug(
            "materialize points=%d aggregate_entries=%d outside_space=%d",
            len(points),
            len(aggregate),
            outside,
        )

    return points
