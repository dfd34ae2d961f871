"""
app/services/windows.py

Report window resolution in the reporting timezone.

Windows are half-open ``[start, end)`` ranges in epoch seconds.  Every
window ends at *now*; only the start differs:

  today    start of the local day
  week     start of the local ISO week (Monday 00:00)
  month    first day of the local month, 00:00
  overall  the Unix epoch
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from app.domain.contract_records import ReportWindow
from metrics.dimensions import WINDOW_LABELS

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "Australia/Melbourne"


def _local_start(label: str, now_local: datetime) -> datetime | None:
    midnight = now_local.replace(hour=0, minute=0, second=0, microsecond=0)
    if label == "today":
        return midnight
    if label == "week":
        return midnight - timedelta(days=now_local.weekday())
    if label == "month":
        return midnight.replace(day=1)
    return None


def resolve_window(
    label: str,
    now: datetime | None = None,
    *,
    tz_name: str = DEFAULT_TIMEZONE,
) -> ReportWindow:
    """
    Resolve a window label to a :class:`ReportWindow` ending at *now*.

    Parameters
    ----------
    label:
        One of ``today``, ``week``, ``month``, ``overall``.
    now:
        Timezone-aware reference time; defaults to the current UTC time.
        Naive datetimes are treated as UTC.
    tz_name:
        IANA timezone that defines day, week and month boundaries.

    Raises
    ------
    ValueError
        If *label* is not a known window.
    """

    if label not in WINDOW_LABELS:
        raise ValueError(f"Unknown window label '{label}'. Allowed: {list(WINDOW_LABELS)}.")

    current = now or datetime.now(tz=timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)

    end_sec = int(current.timestamp())
    start_local = _local_start(label, current.astimezone(ZoneInfo(tz_name)))
    start_sec = 0 if start_local is None else int(start_local.timestamp())

    window = ReportWindow(label=label, start_sec=start_sec, end_sec=end_sec)
    logger.info(
        "Resolved window=%s utc=[%s .. %s) secs=[%d..%d)",
        label,
        datetime.fromtimestamp(start_sec, tz=timezone.utc).isoformat(),
        datetime.fromtimestamp(end_sec, tz=timezone.utc).isoformat(),
        window.start_sec,
        window.end_sec,
    )
    return window
