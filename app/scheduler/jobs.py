"""
app/scheduler/jobs.py

APScheduler-based scheduler for periodic dashboard reports.

One cron job per report window.  Every job runs the ``today`` mode for
its window, so the ``overall`` job reports all-time totals.

Schedule (crontab, UTC; overridable via SCHEDULER_<WINDOW>_CRON)
------------------------------------------------------------------
  report_today    every 15 minutes
  report_week     hourly at :05
  report_month    every 6 hours at :10
  report_overall  02:30 every day

Lifecycle
----------
Call ``build_scheduler()`` once to get a configured ``BackgroundScheduler``.
``scripts/run_scheduler.py`` starts it and blocks until interrupted.
"""

from __future__ import annotations

import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from app.config import get_scheduler_settings
from app.connectors.metrics_ingest_connector import MetricsIngestConnector
from app.runtime import build_metrics_connector, run_report
from metrics.dimensions import WINDOW_LABELS

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Job: window report
# ---------------------------------------------------------------------------


def run_window_report(window: str, connector: MetricsIngestConnector | None = None) -> None:
    """
    Run every report module for *window*.

    Failures are logged and swallowed so one bad run never unschedules
    the job; the next trigger retries from scratch.
    """
    logger.info("Scheduler: report_%s starting", window)
    try:
        summary = run_report("today", window, connector=connector)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Scheduler: report_%s failed: %s", window, exc)
        return

    logger.info(
        "Scheduler: report_%s complete lines_sent=%d failed_modules=%s",
        window,
        summary.total_lines_sent,
        summary.failed_modules,
    )


# ---------------------------------------------------------------------------
# Scheduler factory
# ---------------------------------------------------------------------------


def build_scheduler(connector: MetricsIngestConnector | None = None) -> BackgroundScheduler:
    """
    Build and register one cron job per report window.

    Returns a configured but *not yet started* ``BackgroundScheduler``.
    All jobs share one metrics connector so its secret cache survives
    between runs.
    """
    settings = get_scheduler_settings()
    shared_connector = connector or build_metrics_connector()
    scheduler = BackgroundScheduler(timezone="UTC")

    for window in WINDOW_LABELS:
        scheduler.add_job(
            run_window_report,
            trigger=CronTrigger.from_crontab(settings.cron_for(window), timezone="UTC"),
            args=[window, shared_connector],
            id=f"report_{window}",
            name=f"Dashboard report ({window})",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=600,
        )

    return scheduler
