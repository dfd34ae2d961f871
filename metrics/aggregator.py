"""
metrics/aggregator.py

Sparse fan-out counting over deduplicated records.

The aggregator knows nothing about contracts.  A family supplies a
classifier that maps one record to the dimension tuples it contributes
to, and optionally an exclusion predicate.  Each surviving record adds
exactly one to every distinct tuple its classifier yields, which is how
a single contract becomes visible from the per-country, per-status and
grand-total rollups at once.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterable
from typing import TypeVar

from metrics.dimensions import DimensionTuple

T = TypeVar("T")


def aggregate(
    records: Iterable[T],
    classify: Callable[[T], Iterable[DimensionTuple]],
    exclude: Callable[[T], bool] | None = None,
) -> dict[DimensionTuple, int]:
    """
    Fold *records* into a sparse ``DimensionTuple → count`` map.

    Parameters
    ----------
    records:
        Deduplicated records (one per contract).
    classify:
        Returns the tuples a record contributes to.  Repeated tuples in
        one classification are counted once.
    exclude:
        Optional predicate; records for which it returns ``True`` are
        skipped entirely.

    Returns
    -------
    dict[DimensionTuple, int]
        Only tuples with at least one contribution are present.
    """

    counts: Counter[DimensionTuple] = Counter()
    for record in records:
        if exclude is not None and exclude(record):
            continue
        counts.update(set(classify(record)))
    return dict(counts)
