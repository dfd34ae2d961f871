"""
app/connectors/base.py

Base connector abstraction and shared HTTP mechanics.

Outbound calls are attempted exactly once.  Failures surface as
:class:`ConnectorRequestError` and the caller decides what to report.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import requests

logger = logging.getLogger(__name__)


class ConnectorRequestError(RuntimeError):
    """
    Raised when a connector request fails.
    """


class BaseConnector:
    """
    Shared ``requests.Session`` handling for outbound connectors.
    """

    target: str

    def __init__(
        self,
        *,
        target: str,
        timeout_seconds: float,
        session: requests.Session | None = None,
    ) -> None:
        self.target = target
        self._session = session or requests.Session()
        self._timeout_seconds = timeout_seconds

    def _request(
        self,
        *,
        method: str,
        url: str,
        data: str | bytes | None = None,
        headers: dict[str, str] | None = None,
        accept_status: frozenset[int] = frozenset(),
    ) -> requests.Response:
        """
        Execute one HTTP request.

        Responses with a status in *accept_status* are returned even when
        they are not 2xx, so callers can read structured rejection bodies.
        """

        started = time.monotonic()
        try:
            response = self._session.request(
                method=method,
                url=url,
                data=data,
                headers=headers,
                timeout=self._timeout_seconds,
            )
        except (requests.Timeout, requests.ConnectionError) as exc:
            logger.error("Connector request failed target=%s url=%s error=%s", self.target, url, exc)
            raise ConnectorRequestError(f"{self.target}: request failed: {exc}") from exc

        elapsed_ms = (time.monotonic() - started) * 1000.0
        logger.debug(
            "Connector request target=%s status=%s elapsed_ms=%.1f",
            self.target,
            response.status_code,
            elapsed_ms,
        )

        if response.status_code in accept_status:
            return response
        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            logger.error(
                "Connector request rejected target=%s status=%s url=%s body=%s",
                self.target,
                response.status_code,
                url,
                response.text[:500],
            )
            raise ConnectorRequestError(
                f"{self.target}: HTTP {response.status_code} {response.reason}"
            ) from exc
        return response

    def _json_body(self, response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise ConnectorRequestError(f"{self.target}: response was not valid JSON.") from exc
