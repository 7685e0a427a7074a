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
    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


@dataclass(frozen=True)
class AppSettings:
    """
    Top-level application settings.
    """

    public_base_url: str = "http://localhost:3000"


@dataclass(frozen=True)
class WatchlistImportSettings:
    """
    Runtime settings for the watchlist CSV import pipeline.
    """

    sample_rows: int = 5
    max_missing_title_ratio: float = 0.5
    max_upload_bytes: int = 5 * 1024 * 1024
    log_row_errors: bool = True


@dataclass(frozen=True)
class WriteRetrySettings:
    """
    Bounded retry for write conflicts (unique violations, serialization failures).
    """

    max_attempts: int = 3
    backoff_initial_seconds: float = 0.05
    backoff_multiplier: float = 2.0


@dataclass(frozen=True)
class ExternalHTTPSettings:
    """
    Shared HTTP behavior settings for external connectors.
    """

    timeout_seconds: float = 15.0
    max_retries: int = 3
    backoff_initial_seconds: float = 0.5
    backoff_multiplier: float = 2.0
    rate_limit_per_second: float = 5.0


@dataclass(frozen=True)
class TMDBSettings:
    """
    TMDB catalog connector settings.
    """

    enabled: bool = True
    api_key: str | None = None
    base_url: str = "https://api.themoviedb.org/3"
    language: str = "en-US"


@lru_cache(maxsize=1)
def get_app_settings() -> AppSettings:
    return AppSettings(
        public_base_url=_get_str_env("APP_PUBLIC_URL", "http://localhost:3000").rstrip("/"),
    )


@lru_cache(maxsize=1)
def get_watchlist_import_settings() -> WatchlistImportSettings:
    """
    Return cached import settings from environment variables.
    """

    ratio = _get_float_env("WATCHLIST_IMPORT_MAX_MISSING_TITLE_RATIO", 0.5)
    return WatchlistImportSettings(
        sample_rows=max(1, _get_int_env("WATCHLIST_IMPORT_SAMPLE_ROWS", 5)),
        max_missing_title_ratio=max(0.0, min(1.0, ratio)),
        max_upload_bytes=max(1, _get_int_env("WATCHLIST_IMPORT_MAX_UPLOAD_BYTES", 5 * 1024 * 1024)),
        log_row_errors=_get_bool_env("WATCHLIST_IMPORT_LOG_ROW_ERRORS", True),
    )


@lru_cache(maxsize=1)
def get_write_retry_settings() -> WriteRetrySettings:
    """
    Return cached write-conflict retry settings.
    """

    return WriteRetrySettings(
        max_attempts=max(2, _get_int_env("WRITE_RETRY_MAX_ATTEMPTS", 3)),
        backoff_initial_seconds=max(0.0, _get_float_env("WRITE_RETRY_BACKOFF_INITIAL_SECONDS", 0.05)),
        backoff_multiplier=max(1.0, _get_float_env("WRITE_RETRY_BACKOFF_MULTIPLIER", 2.0)),
    )


@lru_cache(maxsize=1)
def get_external_http_settings() -> ExternalHTTPSettings:
    """
    Return shared connector HTTP settings from environment variables.
    """

    return ExternalHTTPSettings(
        timeout_seconds=max(1.0, _get_float_env("EXTERNAL_HTTP_TIMEOUT_SECONDS", 15.0)),
        max_retries=max(0, _get_int_env("EXTERNAL_HTTP_MAX_RETRIES", 3)),
        backoff_initial_seconds=max(0.1, _get_float_env("EXTERNAL_HTTP_BACKOFF_INITIAL_SECONDS", 0.5)),
        backoff_multiplier=max(1.0, _get_float_env("EXTERNAL_HTTP_BACKOFF_MULTIPLIER", 2.0)),
        rate_limit_per_second=max(0.1, _get_float_env("EXTERNAL_HTTP_RATE_LIMIT_PER_SECOND", 5.0)),
    )


@lru_cache(maxsize=1)
def get_tmdb_settings() -> TMDBSettings:
    """
    Return TMDB connector settings from environment variables.
    """

    return TMDBSettings(
        enabled=_get_bool_env("TMDB_ENABLED", True),
        api_key=_get_optional_str_env("TMDB_API_KEY"),
        base_url=_get_str_env("TMDB_BASE_URL", "https://api.themoviedb.org/3").rstrip("/"),
        language=_get_str_env("TMDB_LANGUAGE", "en-US"),
    )
