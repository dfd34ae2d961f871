"""
db/config.py

Environment-driven configuration helpers shared by the app and Alembic.
"""

from __future__ import annotations

import os
from collections.abc import Sequence
from pathlib import Path

ENV_FILENAMES: tuple[str, ...] = (".env", ".env.local")

_CLOUD_LIKE_ENVIRONMENTS = frozenset({"prod", "production", "staging", "cloud", "uat"})
_POSTGRES_SCHEMES = ("postgres://", "postgresql://")


def parse_env_line(raw_line: str) -> tuple[str, str] | None:
    """``(key, value)`` for a ``KEY=VALUE`` line; ``None`` for comments and noise."""
    line = raw_line.strip()
    if not line or line.startswith("#") or "=" not in line:
        return None
    key, value = (part.strip() for part in line.split("=", 1))
    if not key:
        return None
    return key, value.strip('"').strip("'")


def load_env_files(project_root: Path | None = None) -> list[str]:
    """
    Load ``KEY=VALUE`` pairs from ``.env`` then ``.env.local`` under
    *project_root*, without overwriting variables already in the process
    environment.

    Returns the names that were set.
    """

    root = project_root or Path(__file__).resolve().parents[1]
    loaded: list[str] = []
    for env_path in (root / name for name in ENV_FILENAMES):
        if not env_path.is_file():
            continue
        pairs = filter(None, map(parse_env_line, env_path.read_text(encoding="utf-8").splitlines()))
        for key, value in pairs:
            if key in os.environ:
                continue
            os.environ[key] = value
            loaded.append(key)
    return loaded


def normalize_postgres_url(url: str) -> str:
    """Rewrite bare postgres URLs to the psycopg driver form."""
    for scheme in _POSTGRES_SCHEMES:
        if url.startswith(scheme):
            return "postgresql+psycopg://" + url[len(scheme):]
    return url


def _url_candidates(preferred: Sequence[str]) -> list[str]:
    names = [*preferred, "DATABASE_URL"]
    environment = os.getenv("ENVIRONMENT", "local").strip().lower()
    if environment in _CLOUD_LIKE_ENVIRONMENTS:
        names.append("CLOUD_DATABASE_URL")
    names.append("LOCAL_DATABASE_URL")
    return names


def resolve_database_url(preferred: Sequence[str] = ()) -> str:
    """
    Resolve the contract document store URL.

    Variables named in *preferred* are checked first, then DATABASE_URL,
    then CLOUD_DATABASE_URL when ENVIRONMENT is cloud-like, then
    LOCAL_DATABASE_URL.

    Raises
    ------
    RuntimeError
        If none of them is set.
    """

    load_env_files()

    candidates = _url_candidates(preferred)
    for name in candidates:
        url = (os.getenv(name) or "").strip()
        if url:
            return normalize_postgres_url(url)

    raise RuntimeError(f"No contract store URL configured. Checked: {', '.join(candidates)}.")
