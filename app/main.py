from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI


def _validate_env() -> None:
    """
    Validate required environment variables at startup.

    Raises RuntimeError listing every missing or invalid variable so the
    operator can fix all problems in one restart cycle.

    Rules:
    - A PostgreSQL database URL must be configured.
    - TMDB_API_KEY is required whenever TMDB_ENABLED is not false.
    - Numeric import/retry settings must parse when present.
    """

    from db.config import load_env_files, normalize_database_url

    load_env_files()

    errors: list[str] = []

    # --- Database URL ---------------------------------------------------
    database_url = os.getenv("DATABASE_URL", "").strip()
    if not database_url:
        errors.append("DATABASE_URL is not set.")
    elif not normalize_database_url(database_url).startswith("postgresql"):
        errors.append("DATABASE_URL must point at a PostgreSQL database.")

    # --- TMDB -----------------------------------------------------------
    tmdb_enabled_raw = os.getenv("TMDB_ENABLED", "true").strip().lower()
    tmdb_enabled = tmdb_enabled_raw in {"1", "true", "yes", "on"}
    if tmdb_enabled and not os.getenv("TMDB_API_KEY", "").strip():
        errors.append(
            "TMDB_API_KEY is not set but TMDB_ENABLED is true. "
            "Set TMDB_API_KEY or disable catalog lookups with TMDB_ENABLED=false."
        )

    # --- Numeric settings -----------------------------------------------
    for name in (
        "WATCHLIST_IMPORT_SAMPLE_ROWS",
        "WATCHLIST_IMPORT_MAX_UPLOAD_BYTES",
        "WRITE_RETRY_MAX_ATTEMPTS",
    ):
        raw_value = os.getenv(name)
        if raw_value is not None and not raw_value.strip().isdigit():
            errors.append(f"{name}='{raw_value}' is not a non-negative integer.")

    if errors:
        raise RuntimeError(
            "Startup validation failed, missing or invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _check_db() -> None:
    """Open a session and run SELECT 1. Raises RuntimeError if the DB is unreachable."""
    from sqlalchemy import text
    from sqlalchemy.exc import SQLAlchemyError

    from db.session import SessionLocal

    try:
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
        finally:
            db.close()
    except SQLAlchemyError as exc:
        raise RuntimeError("Database unavailable.") from exc


def _check_schema() -> None:
    """
    Every table registered on Base.metadata must exist in the database;
    startup aborts otherwise. Does NOT auto-migrate.
    """
    from sqlalchemy import inspect as sa_inspect

    import db.models  # noqa: F401  registers ORM models on Base.metadata
    from db.base import Base
    from db.session import get_engine

    inspector = sa_inspect(get_engine())
    actual: set[str] = set(inspector.get_table_names())
    expected: set[str] = set(Base.metadata.tables.keys())
    missing = expected - actual

    if missing:
        logging.getLogger(__name__).critical(
            "Schema mismatch: %d table(s) defined in ORM metadata are absent from "
            "the database: %s. Run 'alembic upgrade head' and restart.",
            len(missing),
            ", ".join(sorted(missing)),
        )
        raise RuntimeError(
            f"Schema mismatch: {len(missing)} table(s) missing from the database "
            f"({', '.join(sorted(missing))}). Run migrations and restart."
        )


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Validate DB connectivity and schema before serving traffic."""
    _check_db()
    logging.getLogger(__name__).info("Database connectivity confirmed")
    _check_schema()
    logging.getLogger(__name__).info("Database schema validated")
    yield


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    _configure_logging()

    application = FastAPI(
        title="Watchlist API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import watchlist_import_router, watchlist_router

    application.include_router(watchlist_import_router)
    application.include_router(watchlist_router)

    @application.get("/health")
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()
