"""
db/config.py

Database settings for the watchlist service, read from the environment.

Only PostgreSQL is supported; any ``postgres://`` / ``postgresql://`` URL is
rewritten to the psycopg driver form SQLAlchemy expects.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ENV_FILES: tuple[str, ...] = (".env", ".env.local")
PSYCOPG_SCHEME = "postgresql+psycopg://"


def _parse_env_line(raw_line: str) -> tuple[str, str] | None:
    line = raw_line.strip()
    if not line or line.startswith("#") or "=" not in line:
        return None
    key, value = line.split("=", 1)
    key = key.strip()
    if not key:
        return None
    return key, value.strip().strip('"').strip("'")


def load_env_files(root: Path | None = None) -> None:
    """
    Load KEY=VALUE pairs from `.env` then `.env.local` under the project
    root; the process environment always wins.
    """

    for filename in ENV_FILES:
        env_path = (root or PROJECT_ROOT) / filename
        if not env_path.is_file():
            continue
        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            parsed = _parse_env_line(raw_line)
            if parsed is not None:
                os.environ.setdefault(*parsed)


def normalize_database_url(url: str) -> str:
    url = url.strip()
    for scheme in ("postgres://", "postgresql://"):
        if url.startswith(scheme):
            return PSYCOPG_SCHEME + url[len(scheme):]
    return url


@dataclass(frozen=True)
class DatabaseSettings:
    """
    Connection URL and pool sizing for the shared engine.
    """

    url: str
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10
    pool_recycle_seconds: int = 1800

    @property
    def is_postgres(self) -> bool:
        return self.url.startswith("postgresql")


def _env_int(name: str, default: int) -> int:
    raw_value = os.getenv(name, "").strip()
    return int(raw_value) if raw_value.isdigit() else default


@lru_cache(maxsize=1)
def get_database_settings() -> DatabaseSettings:
    """
    Build settings from DATABASE_URL, SQL_ECHO and DB_POOL_*.

    Raises RuntimeError when DATABASE_URL is not set.
    """

    load_env_files()
    url = os.getenv("DATABASE_URL", "").strip()
    if not url:
        raise RuntimeError("DATABASE_URL is not set; point it at the watchlist PostgreSQL database.")

    return DatabaseSettings(
        url=normalize_database_url(url),
        echo=os.getenv("SQL_ECHO", "").strip().lower() in {"1", "true", "yes", "on"},
        pool_size=_env_int("DB_POOL_SIZE", 5),
        max_overflow=_env_int("DB_MAX_OVERFLOW", 10),
        pool_recycle_seconds=_env_int("DB_POOL_RECYCLE", 1800),
    )
