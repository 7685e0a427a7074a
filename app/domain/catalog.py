"""
app/domain/catalog.py

Catalog lookup contract used to resolve and enrich imported rows.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Protocol


class CatalogLookupError(RuntimeError):
    """
    Raised when the catalog cannot be reached or returns an unusable payload.
    """


@dataclass(frozen=True)
class CatalogItem:
    """
    Display metadata for one catalog movie or TV show.
    """

    external_id: int
    media_type: str
    title: str
    poster_path: str | None = None
    backdrop_path: str | None = None
    release_date: date | None = None
    imdb_id: str | None = None
    overview: str | None = None
    genres: tuple[str, ...] = ()
    runtime_minutes: int | None = None
    people: tuple[str, ...] = ()  # directors (movie) or creators (tv)
    vote_average: float | None = None  # 0-10 audience score


class CatalogLookup(Protocol):
    """
    Resolves catalog items. Implementations return None when nothing matches
    and raise CatalogLookupError on transport failures.
    """

    def get_details(self, external_id: int, media_type: str) -> CatalogItem | None:
        ...

    def find_by_imdb_id(self, imdb_id: str) -> CatalogItem | None:
        ...

    def search_title(
        self,
        title: str,
        *,
        media_type: str | None = None,
        year: int | None = None,
    ) -> CatalogItem | None:
        ...
