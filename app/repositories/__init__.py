"""
app/repositories package marker.
"""

from app.repositories.watchlist_repository import (
    DuplicateEntryError,
    WatchlistPersistenceError,
    WatchlistRepository,
    WriteConflictError,
)

__all__ = [
    "DuplicateEntryError",
    "WatchlistPersistenceError",
    "WatchlistRepository",
    "WriteConflictError",
]
