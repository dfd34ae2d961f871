"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


@dataclass(frozen=True)
class ReportSettings:
    """
    Runtime settings shared by every report run.

    ``environment`` is lower-cased because it is emitted verbatim as the
    ``env`` dimension on every metric line.
    """

    environment: str = "unknown"
    service_name: str = "contract-dashboard-reporter"
    timezone: str = "Australia/Melbourne"
    lookup_chunk_size: int = 50


@dataclass(frozen=True)
class MetricsIngestSettings:
    """
    Metrics ingest endpoint settings.

    ``token_secret_name`` names the environment variable that holds the
    ingest token; the token itself is only read through the secret cache.
    """

    metrics_url: str | None = None
    token_secret_name: str = "DYNATRACE_API_TOKEN"
    dry_run: bool = False
    log_lines: bool = False
    timeout_seconds: float = 15.0
    token_ttl_seconds: float = 300.0


@dataclass(frozen=True)
class SchedulerSettings:
    """
    Crontab expressions (UTC) for each window's report job.
    """

    today_cron: str = "*/15 * * * *"
    week_cron: str = "5 * * * *"
    month_cron: str = "10 */6 * * *"
    overall_cron: str = "30 2 * * *"

    def cron_for(self, window: str) -> str:
        return getattr(self, f"{window}_cron")


@lru_cache(maxsize=1)
def get_report_settings() -> ReportSettings:
    """
    Return cached report settings from environment variables.
    """

    return ReportSettings(
        environment=_get_str_env("ENVIRONMENT", "unknown").lower(),
        service_name=_get_str_env("SERVICE_NAME", "contract-dashboard-reporter"),
        timezone=_get_str_env("REPORT_TIMEZONE", "Australia/Melbourne"),
        lookup_chunk_size=max(1, _get_int_env("REPORT_LOOKUP_CHUNK_SIZE", 50)),
    )


@lru_cache(maxsize=1)
def get_metrics_ingest_settings() -> MetricsIngestSettings:
    """
    Return metrics ingest settings from environment variables.
    """

    return MetricsIngestSettings(
        metrics_url=_get_optional_str_env("DYNATRACE_METRICS_URL"),
        token_secret_name=_get_str_env("DYNATRACE_TOKEN_SECRET", "DYNATRACE_API_TOKEN"),
        dry_run=_get_bool_env("DEBUG_DT_DRYRUN", False),
        log_lines=_get_bool_env("DEBUG_DT_LINES", False),
        timeout_seconds=max(1.0, _get_float_env("METRICS_HTTP_TIMEOUT_SECONDS", 15.0)),
        token_ttl_seconds=max(0.0, _get_float_env("METRICS_TOKEN_TTL_SECONDS", 300.0)),
    )


@lru_cache(maxsize=1)
def get_scheduler_settings() -> SchedulerSettings:
    """
    Return scheduler crontab settings from environment variables.
    """

    defaults = SchedulerSettings()
    return SchedulerSettings(
        today_cron=_get_str_env("SCHEDULER_TODAY_CRON", defaults.today_cron),
        week_cron=_get_str_env("SCHEDULER_WEEK_CRON", defaults.week_cron),
        month_cron=_get_str_env("SCHEDULER_MONTH_CRON", defaults.month_cron),
        overall_cron=_get_str_env("SCHEDULER_OVERALL_CRON", defaults.overall_cron),
    )


def read_env_secret(name: str) -> str | None:
    """
    Secret loader backed by the process environment.
    """

    return _get_optional_str_env(name)
