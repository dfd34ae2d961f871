"""
app/runtime.py

Process wiring shared by the CLI and the scheduler.

Builds the contract repository, secret cache, metrics connector and
report orchestrator from settings, and performs the startup checks an
operator needs before the first run.
"""

from __future__ import annotations

import dataclasses
import logging
import os
from datetime import datetime

from app.config import (
    get_metrics_ingest_settings,
    get_report_settings,
    read_env_secret,
)
from app.connectors.metrics_ingest_connector import MetricsIngestConnector
from app.domain.contract_records import ReportRunSummary
from app.services.report_orchestrator import ReportOrchestrator
from app.services.secret_cache import SecretCache
from db.config import load_env_files
from db.repositories.contract_repository import ContractRepository
from db.session import session_scope

logger = logging.getLogger(__name__)


def validate_env(*, dry_run: bool | None = None) -> None:
    """
    Validate required environment variables before the first run.

    Raises RuntimeError listing every missing variable so the operator
    can fix all problems in one restart cycle.
    """

    loaded = load_env_files()
    if loaded:
        logger.debug("Loaded %d variable(s) from .env files: %s", len(loaded), ", ".join(loaded))
    settings = get_metrics_ingest_settings()
    effective_dry_run = settings.dry_run if dry_run is None else dry_run

    errors: list[str] = []

    if not any(
        os.getenv(name, "").strip()
        for name in ("DATABASE_URL", "CLOUD_DATABASE_URL", "LOCAL_DATABASE_URL")
    ):
        errors.append(
            "No database URL configured. Set DATABASE_URL, CLOUD_DATABASE_URL or LOCAL_DATABASE_URL."
        )

    if not effective_dry_run:
        if not settings.metrics_url:
            errors.append("DYNATRACE_METRICS_URL is not set and DEBUG_DT_DRYRUN is false.")
        if not read_env_secret(settings.token_secret_name):
            errors.append(
                f"{settings.token_secret_name} is not set and DEBUG_DT_DRYRUN is false."
            )

    if errors:
        raise RuntimeError(
            "Startup validation failed, missing or invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


def build_metrics_connector(*, dry_run: bool | None = None) -> MetricsIngestConnector:
    settings = get_metrics_ingest_settings()
    if dry_run is not None:
        settings = dataclasses.replace(settings, dry_run=dry_run)
    secrets = SecretCache(read_env_secret, ttl_seconds=settings.token_ttl_seconds)
    return MetricsIngestConnector(settings=settings, secrets=secrets)


def run_report(
    mode: str,
    window: str,
    *,
    dry_run: bool | None = None,
    now: datetime | None = None,
    connector: MetricsIngestConnector | None = None,
) -> ReportRunSummary:
    """
    Run one report against the configured store and metrics endpoint.
    """

    report_settings = get_report_settings()
    sink = connector or build_metrics_connector(dry_run=dry_run)

    with session_scope() as session:
        repository = ContractRepository(session, chunk_size=report_settings.lookup_chunk_size)
        orchestrator = ReportOrchestrator(source=repository, sink=sink, settings=report_settings)
        return orchestrator.run(mode, window, now=now)
