"""
tests/conftest.py

Shared fixtures: in-memory SQLite database and a deterministic fake catalog.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.domain.catalog import CatalogItem, CatalogLookupError
from app.services.write_retry import WriteRetryPolicy
from db.base import Base
from db.models import WatchlistEntry  # noqa: F401  registers the table
from db.session import build_session_factory

INCEPTION = CatalogItem(
    external_id=27205,
    media_type="movie",
    title="Inception",
    poster_path="/inception-poster.jpg",
    backdrop_path="/inception-backdrop.jpg",
    release_date=date(2010, 7, 15),
    imdb_id="tt1375666",
    overview="A thief who steals corporate secrets through dreams.",
    genres=("Action", "Science Fiction"),
    runtime_minutes=148,
    people=("Christopher Nolan",),
    vote_average=8.36,
)

BREAKING_BAD = CatalogItem(
    external_id=1396,
    media_type="tv",
    title="Breaking Bad",
    poster_path="/bb-poster.jpg",
    backdrop_path="/bb-backdrop.jpg",
    release_date=date(2008, 1, 20),
    imdb_id="tt0903747",
    overview="A chemistry instructor turns to crime.",
    genres=("Drama", "Crime"),
    runtime_minutes=47,
    people=("Vince Gilligan",),
)


class FakeCatalog:
    """
    In-memory CatalogLookup that records every call.
    """

    def __init__(self, items: list[CatalogItem] | None = None) -> None:
        self.items = list(items if items is not None else [INCEPTION, BREAKING_BAD])
        self.calls: list[tuple[str, object]] = []
        self.fail_details = False

    def get_details(self, external_id: int, media_type: str) -> CatalogItem | None:
        self.calls.append(("details", (external_id, media_type)))
        if self.fail_details:
            raise CatalogLookupError("catalog unavailable")
        return next(
            (item for item in self.items if item.external_id == external_id and item.media_type == media_type),
            None,
        )

    def find_by_imdb_id(self, imdb_id: str) -> CatalogItem | None:
        self.calls.append(("imdb", imdb_id))
        return next((item for item in self.items if item.imdb_id == imdb_id), None)

    def search_title(
        self,
        title: str,
        *,
        media_type: str | None = None,
        year: int | None = None,
    ) -> CatalogItem | None:
        self.calls.append(("search", (title, media_type, year)))
        for item in self.items:
            if item.title.casefold() != title.casefold():
                continue
            if media_type is not None and item.media_type != media_type:
                continue
            if year is not None and (item.release_date is None or item.release_date.year != year):
                continue
            return item
        return None


@pytest.fixture()
def engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker:
    return build_session_factory(engine)


@pytest.fixture()
def db_session(session_factory: sessionmaker) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture()
def retry_policy() -> WriteRetryPolicy:
    return WriteRetryPolicy(max_attempts=3, backoff_initial_seconds=0.0, backoff_multiplier=2.0)
