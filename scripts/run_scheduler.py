"""
Start the report scheduler and block until interrupted.
"""

from __future__ import annotations

import logging
import signal
import threading

from app.logging_utils import configure_logging
from app.runtime import validate_env
from app.scheduler.jobs import build_scheduler

logger = logging.getLogger(__name__)


def main() -> int:
    configure_logging()
    validate_env()

    scheduler = build_scheduler()
    stop = threading.Event()

    def _handle_signal(signum: int, _frame: object) -> None:
        logger.info("Received signal %s, shutting down scheduler", signum)
        stop.set()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    scheduler.start()
    logger.info("Scheduler started with %d jobs", len(scheduler.get_jobs()))
    try:
        stop.wait()
    finally:
        scheduler.shutdown(wait=True)
        logger.info("Scheduler shut down")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
