"""
Run one dashboard report from CLI and print the run summary as JSON.
"""

from __future__ import annotations

import argparse
import json
import sys

from app.logging_utils import configure_logging
from app.runtime import run_report, validate_env
from app.services.report_orchestrator import summary_to_dict
from app.services.report_registry import REPORT_MODES, UnknownReportError
from metrics.dimensions import WINDOW_LABELS


def main() -> int:
    parser = argparse.ArgumentParser(description="Publish contract dashboard metrics for one window.")
    parser.add_argument("mode", nargs="?", default="today", choices=REPORT_MODES, help="Report mode.")
    parser.add_argument("window", nargs="?", default="today", choices=WINDOW_LABELS, help="Report window.")
    parser.add_argument(
        "--dry-run",
        dest="dry_run",
        action="store_true",
        default=None,
        help="Render metric lines without sending them (overrides DEBUG_DT_DRYRUN).",
    )
    parser.add_argument("--log-level", dest="log_level", default=None, help="Overrides LOG_LEVEL.")
    args = parser.parse_args()

    configure_logging(args.log_level)

    try:
        validate_env(dry_run=args.dry_run)
        summary = run_report(args.mode, args.window, dry_run=args.dry_run)
    except (RuntimeError, UnknownReportError) as exc:
        print(str(exc), file=sys.stderr)
        return 1

    print(json.dumps(summary_to_dict(summary), indent=2))
    return 2 if summary.failed_modules else 0


if __name__ == "__main__":
    raise SystemExit(main())
