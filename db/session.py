"""
db/session.py

Engine and session wiring. The engine is built lazily from
DatabaseSettings so importing this module never opens a connection.
"""

from __future__ import annotations

from collections.abc import Generator
from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from db.config import DatabaseSettings, get_database_settings


def create_db_engine(settings: DatabaseSettings) -> Engine:
    if not settings.is_postgres:
        # Row locks and unique-violation codes rely on PostgreSQL semantics.
        raise RuntimeError("Only PostgreSQL URLs are supported.")

    return create_engine(
        settings.url,
        echo=settings.echo,
        pool_pre_ping=True,
        pool_recycle=settings.pool_recycle_seconds,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
    )


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine(get_database_settings())


def build_session_factory(engine: Engine) -> sessionmaker:
    """
    Sessions keep loaded entries usable after commit; watchlist services
    return ORM objects to routers once their transaction has ended.
    """

    return sessionmaker(bind=engine, class_=Session, autoflush=False, expire_on_commit=False)


@lru_cache(maxsize=1)
def get_session_factory() -> sessionmaker:
    return build_session_factory(get_engine())


def SessionLocal() -> Session:
    return get_session_factory()()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding one session per request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
