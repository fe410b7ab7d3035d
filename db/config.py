"""
db/config.py

Connection settings for the feedback store.

Values come from the process environment, with `.env` / `.env.local` at the
project root as a fallback source. Only PostgreSQL is supported; every URL
is rewritten to the psycopg (v3) driver.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ENV_FILES = (".env", ".env.local")
CLOUD_ENVIRONMENTS = frozenset({"prod", "production", "staging", "cloud"})
APPLICATION_NAME = "pr-tracker"

_DRIVER_PREFIXES = ("postgres://", "postgresql://")
_PSYCOPG_PREFIX = "postgresql+psycopg://"


def _parse_env_line(raw_line: str) -> tuple[str, str] | None:
    line = raw_line.strip()
    if not line or line.startswith("#") or "=" not in line:
        return None
    key, value = line.split("=", 1)
    key = key.strip()
    if not key:
        return None
    return key, value.strip().strip('"').strip("'")


def load_env_files(root: Path = PROJECT_ROOT) -> None:
    """
    Copy KEY=VALUE pairs from the project env files into ``os.environ``.

    Variables already set in the process win over file values.
    """

    for filename in ENV_FILES:
        env_path = root / filename
        if not env_path.is_file():
            continue
        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            parsed = _parse_env_line(raw_line)
            if parsed is not None:
                os.environ.setdefault(*parsed)


def normalize_postgres_url(url: str) -> str:
    for prefix in _DRIVER_PREFIXES:
        if url.startswith(prefix):
            return _PSYCOPG_PREFIX + url[len(prefix) :]
    return url


def resolve_database_url() -> str:
    """
    Pick the database URL.

    DATABASE_URL wins; CLOUD_DATABASE_URL is used when ENVIRONMENT is a
    cloud-like name; LOCAL_DATABASE_URL is the last resort.
    """

    load_env_files()

    environment = os.getenv("ENVIRONMENT", "local").strip().lower()
    candidates = [os.getenv("DATABASE_URL")]
    if environment in CLOUD_ENVIRONMENTS:
        candidates.append(os.getenv("CLOUD_DATABASE_URL"))
    candidates.append(os.getenv("LOCAL_DATABASE_URL"))

    for candidate in candidates:
        if candidate and candidate.strip():
            return normalize_postgres_url(candidate.strip())

    raise RuntimeError(
        "No database URL configured. Set DATABASE_URL, or configure "
        "LOCAL_DATABASE_URL / CLOUD_DATABASE_URL."
    )


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, ""))
    except ValueError:
        return default


@dataclass(frozen=True)
class DatabaseSettings:
    url: str
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10
    pool_recycle_seconds: int = 1800
    connect_args: dict[str, Any] = field(
        default_factory=lambda: {"application_name": APPLICATION_NAME}
    )

    def engine_options(self) -> dict[str, Any]:
        return {
            "echo": self.echo,
            "pool_pre_ping": True,
            "pool_size": self.pool_size,
            "max_overflow": self.max_overflow,
            "pool_recycle": self.pool_recycle_seconds,
            "connect_args": dict(self.connect_args),
        }


def get_database_settings() -> DatabaseSettings:
    """
    Build settings for the feedback store engine.

    Raises RuntimeError when no URL is configured or the URL is not
    PostgreSQL.
    """

    url = resolve_database_url()
    if not url.startswith("postgresql"):
        raise RuntimeError("Only PostgreSQL URLs are supported.")

    return DatabaseSettings(
        url=url,
        echo=os.getenv("SQL_ECHO", "").strip().lower() in {"1", "true", "yes", "on"},
        pool_size=_env_int("DB_POOL_SIZE", 5),
        max_overflow=_env_int("DB_MAX_OVERFLOW", 10),
        pool_recycle_seconds=_env_int("DB_POOL_RECYCLE", 1800),
    )
