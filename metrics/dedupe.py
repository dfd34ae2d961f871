"""
metrics/dedupe.py

Latest-record-per-key deduplication.

Upstream stores keep every processing attempt, so one contract can
appear many times inside a window.  Reports count contracts, not
attempts, which means each contract must be reduced to the single most
recent record before aggregation.

Replacement rule
----------------
A stored record is replaced only when a later record carries a
*strictly greater* timestamp.  On equal timestamps the record seen first
is kept, so the winner does not depend on arrival order except on exact
ties.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable
from typing import TypeVar

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)


def dedupe_latest_by_key(
    records: Iterable[T],
    key_of: Callable[[T], K | None],
    time_of: Callable[[T], int],
) -> dict[K, T]:
    """
    Reduce *records* to the most recently timestamped record per key.

    Parameters
    ----------
    records:
        Any iterable of records.  Records are never mutated.
    key_of:
        Returns the correlation key for a record.  Records whose key is
        ``None`` or an empty string are dropped rather than grouped.
    time_of:
        Returns the record timestamp as epoch seconds.

    Returns
    -------
    dict
        One entry per distinct key, in first-seen key order.
    """

    latest: dict[K, T] = {}
    latest_ts: dict[K, int] = {}

    for record in records:
        key = key_of(record)
        if key is None or key == "":
            continue
        timestamp = time_of(record)
        if key not in latest:
            latest[key] = record
            latest_ts[key] = timestamp
        elif timestamp > latest_ts[key]:
            latest[key] = record
            latest_ts[key] = timestamp

    return latest
