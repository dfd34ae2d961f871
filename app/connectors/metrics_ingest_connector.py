"""
app/connectors/metrics_ingest_connector.py

Metrics ingest sink speaking the Dynatrace line protocol.

Line format::

    <metric_base>,<k>=<v>,...,env=<env> gauge,<value> <timestamp_ms>

Each batch is posted once.  Lines the endpoint rejects are reported in
the :class:`IngestResult`, never resent.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence

import requests

from app.config import MetricsIngestSettings
from app.connectors.base import BaseConnector, ConnectorRequestError
from app.schemas.ingest_result import IngestResult
from app.services.secret_cache import SecretCache, SecretNotFoundError
from metrics.schema import MetricPoint

logger = logging.getLogger(__name__)

_NEEDS_QUOTING = re.compile(r'[\s,="\\]')

# The endpoint answers 400 with a structured body when every line is invalid.
_STRUCTURED_REJECTION_STATUS = frozenset({400})


class MetricsSinkError(ConnectorRequestError):
    """
    Raised when metrics cannot be delivered to the ingest endpoint.
    """


def format_dimension_value(value: str) -> str:
    """Quote dimension values containing separators or whitespace."""
    if not _NEEDS_QUOTING.search(value):
        return value
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def render_line(
    metric_base: str,
    labels: Mapping[str, str],
    value: int,
    *,
    env: str,
    timestamp_ms: int,
) -> str:
    """
    Render one gauge line; ``env`` is appended unless *labels* already carry it.
    """

    dimensions = [f"{key}={format_dimension_value(str(val))}" for key, val in labels.items() if val is not None]
    if "env" not in labels:
        dimensions.append(f"env={format_dimension_value(env)}")
    return f"{metric_base},{','.join(dimensions)} gauge,{value} {timestamp_ms}"


def render_lines(
    metric_base: str,
    points: Sequence[MetricPoint],
    *,
    env: str,
    timestamp_ms: int,
) -> list[str]:
    return [
        render_line(metric_base, point.labels, point.value, env=env, timestamp_ms=timestamp_ms)
        for point in points
    ]


class MetricsIngestConnector(BaseConnector):
    """
    Posts rendered metric lines to the ingest endpoint.

    The API token is read through *secrets* on every send, so rotation is
    picked up once the cache entry expires.
    """

    def __init__(
        self,
        *,
        settings: MetricsIngestSettings,
        secrets: SecretCache,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(
            target="metrics_ingest",
            timeout_seconds=settings.timeout_seconds,
            session=session,
        )
        self._settings = settings
        self._secrets = secrets

    @property
    def dry_run(self) -> bool:
        return self._settings.dry_run

    def send(self, lines: Sequence[str]) -> IngestResult:
        """
        Send *lines* in one request and return the endpoint's verdict.

        Raises
        ------
        MetricsSinkError
            When the endpoint URL or token is missing, or the request fails.
        """

        if not lines:
            return IngestResult.accepted(0)

        if self._settings.log_lines:
            for index, line in enumerate(lines, start=1):
                logger.info("metric_line %d/%d %s", index, len(lines), line)

        if self._settings.dry_run:
            logger.info("Dry run: %d metric lines not sent", len(lines))
            return IngestResult.accepted(len(lines))

        url = self._settings.metrics_url
        if not url:
            raise MetricsSinkError("Metrics ingest URL is not configured (DYNATRACE_METRICS_URL).")

        try:
            token = self._secrets.get(self._settings.token_secret_name)
        except SecretNotFoundError as exc:
            raise MetricsSinkError(f"Metrics ingest token is not configured: {exc}") from exc

        headers = {
            "Authorization": f"Api-Token {token}",
            "Content-Type": "text/plain; charset=utf-8",
        }
        try:
            response = self._request(
                method="POST",
                url=url,
                data="\n".join(lines).encode("utf-8"),
                headers=headers,
                accept_status=_STRUCTURED_REJECTION_STATUS,
            )
            body = self._json_body(response) if response.content else {}
        except ConnectorRequestError as exc:
            raise MetricsSinkError(str(exc)) from exc

        result = self._parse_result(body, sent=len(lines))
        if result.lines_invalid:
            logger.warning(
                "Metrics ingest rejected lines invalid=%d ok=%d details=%s",
                result.lines_invalid,
                result.lines_ok,
                result.invalid_lines,
            )
        return result

    @staticmethod
    def _parse_result(body: object, *, sent: int) -> IngestResult:
        if not isinstance(body, dict) or not body:
            return IngestResult.accepted(sent)

        payload = dict(body)
        error = payload.get("error")
        if isinstance(error, dict) and "invalidLines" not in payload:
            payload["invalidLines"] = error.get("invalidLines") or []
        return IngestResult.model_validate(payload)
