"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.watchlist_entry import (
    MEDIA_TYPES,
    WATCHLIST_DEDUPE_CONSTRAINT,
    MediaType,
    WatchlistEntry,
)

__all__ = [
    "MEDIA_TYPES",
    "MediaType",
    "WATCHLIST_DEDUPE_CONSTRAINT",
    "WatchlistEntry",
]
