"""
app/services/secret_cache.py

Time-bounded cache in front of a secret loader.

The cache is an explicit object handed to whoever needs a secret; there
is no module-level instance.  The clock is injectable so expiry can be
tested without sleeping.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

SecretLoader = Callable[[str], "str | None"]

DEFAULT_TTL_SECONDS = 300.0


class SecretNotFoundError(LookupError):
    """Raised when the loader has no value for a requested secret."""


@dataclass(frozen=True)
class _CachedSecret:
    value: str
    loaded_at: float


class SecretCache:
    """
    Caches loader results per key for ``ttl_seconds``.

    Empty or missing values are never cached; they raise
    :class:`SecretNotFoundError` on every lookup.
    """

    def __init__(
        self,
        loader: SecretLoader,
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be >= 0")
        self._loader = loader
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, _CachedSecret] = {}

    def get(self, key: str) -> str:
        now = self._clock()
        cached = self._entries.get(key)
        if cached is not None and now - cached.loaded_at < self._ttl_seconds:
            return cached.value

        value = self._loader(key)
        if value is None or not value.strip():
            self._entries.pop(key, None)
            raise SecretNotFoundError(f"Secret '{key}' is not configured.")

        logger.debug("Secret loaded key=%s", key)
        self._entries[key] = _CachedSecret(value=value.strip(), loaded_at=now)
        return value.strip()

    def invalidate(self, key: str | None = None) -> None:
        """Drop one cached key, or every key when *key* is ``None``."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)
