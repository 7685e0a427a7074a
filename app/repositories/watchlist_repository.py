"""
app/repositories/watchlist_repository.py

Persistence layer for watchlist entries.

Every write commits on its own. Database failures are translated into the
exceptions below so callers never handle driver-specific errors.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from datetime import date

from sqlalchemy import Executable, Result, delete, func, select
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from db.models.watchlist_entry import WATCHLIST_DEDUPE_CONSTRAINT, WatchlistEntry

logger = logging.getLogger(__name__)

_UNIQUE_VIOLATION_SQLSTATE = "23505"
_TRANSIENT_SQLSTATES = {"40001", "40P01"}  # serialization_failure, deadlock_detected


class WatchlistPersistenceError(RuntimeError):
    """
    Raised when a watchlist read or write fails for a non-retryable reason.
    """


class WriteConflictError(WatchlistPersistenceError):
    """
    Raised for transient write conflicts that are safe to retry.
    """


class DuplicateEntryError(WriteConflictError):
    """
    Raised when a write hits the (owner, external id, media type) unique key.
    """


def _sqlstate(exc: DBAPIError) -> str | None:
    original = exc.orig
    return getattr(original, "sqlstate", None) or getattr(original, "pgcode", None)


def _is_unique_violation(exc: IntegrityError) -> bool:
    if _sqlstate(exc) == _UNIQUE_VIOLATION_SQLSTATE:
        return True
    message = str(exc.orig).lower()
    return WATCHLIST_DEDUPE_CONSTRAINT in message or "unique constraint" in message


class WatchlistRepository:
    """
    Repository for owner-scoped watchlist reads and writes.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    @property
    def session(self) -> Session:
        return self._session

    def get(self, owner_id: str, entry_id: uuid.UUID) -> WatchlistEntry | None:
        stmt = select(WatchlistEntry).where(
            WatchlistEntry.owner_id == owner_id,
            WatchlistEntry.id == entry_id,
        )
        return self._execute(stmt).scalars().first()

    def find(self, owner_id: str, external_id: int, media_type: str) -> WatchlistEntry | None:
        stmt = select(WatchlistEntry).where(
            WatchlistEntry.owner_id == owner_id,
            WatchlistEntry.external_id == external_id,
            WatchlistEntry.media_type == media_type,
        )
        return self._execute(stmt).scalars().first()

    def list_for_owner(self, owner_id: str, *, for_update: bool = False) -> list[WatchlistEntry]:
        """
        Load every entry of one owner; optionally lock the rows for a read-modify-write.
        """

        stmt = select(WatchlistEntry).where(WatchlistEntry.owner_id == owner_id)
        if for_update:
            stmt = stmt.with_for_update()
        return list(self._execute(stmt).scalars().all())

    def max_order(self, owner_id: str) -> int:
        stmt = select(func.coalesce(func.max(WatchlistEntry.order), 0)).where(
            WatchlistEntry.owner_id == owner_id
        )
        return int(self._execute(stmt).scalar_one())

    def insert(
        self,
        owner_id: str,
        *,
        external_id: int,
        media_type: str,
        title: str,
        order: int,
        poster_path: str | None = None,
        backdrop_path: str | None = None,
        release_date: date | None = None,
        first_air_date: date | None = None,
        note: str | None = None,
    ) -> WatchlistEntry:
        entry = WatchlistEntry(
            owner_id=owner_id,
            external_id=external_id,
            media_type=media_type,
            title=title,
            order=order,
            poster_path=poster_path,
            backdrop_path=backdrop_path,
            release_date=release_date,
            first_air_date=first_air_date,
            note=note,
        )
        self._session.add(entry)
        self.commit()
        return entry

    def save(self, entry: WatchlistEntry) -> WatchlistEntry:
        """
        Persist in-place modifications of an already loaded entry.
        """

        self._session.add(entry)
        self.commit()
        return entry

    def delete(self, owner_id: str, external_id: int, media_type: str) -> bool:
        stmt = delete(WatchlistEntry).where(
            WatchlistEntry.owner_id == owner_id,
            WatchlistEntry.external_id == external_id,
            WatchlistEntry.media_type == media_type,
        )
        result = self._execute(stmt)
        self.commit()
        return bool(result.rowcount)

    def apply_orders(
        self,
        entries: Mapping[uuid.UUID, WatchlistEntry],
        assignments: Mapping[uuid.UUID, int],
    ) -> None:
        """
        Write new order values onto loaded entries and commit them together.
        """

        for entry_id, order in assignments.items():
            entries[entry_id].order = order
        self.commit()

    def _execute(self, stmt: Executable) -> Result:
        """
        Run one statement, translating driver failures like `commit` does.
        """

        try:
            return self._session.execute(stmt)
        except DBAPIError as exc:
            self._session.rollback()
            if _sqlstate(exc) in _TRANSIENT_SQLSTATES:
                raise WriteConflictError("Concurrent watchlist access conflict.") from exc
            logger.error("Watchlist query failed error=%s", exc)
            raise WatchlistPersistenceError("Watchlist query failed.") from exc
        except SQLAlchemyError as exc:
            self._session.rollback()
            logger.error("Watchlist query failed error=%s", exc)
            raise WatchlistPersistenceError("Watchlist query failed.") from exc

    def rollback(self) -> None:
        self._session.rollback()

    def commit(self) -> None:
        try:
            self._session.commit()
        except IntegrityError as exc:
            self._session.rollback()
            if _is_unique_violation(exc):
                raise DuplicateEntryError("Watchlist entry already exists.") from exc
            logger.error("Watchlist write rejected by constraint error=%s", exc.orig)
            raise WatchlistPersistenceError("Watchlist write violated a constraint.") from exc
        except DBAPIError as exc:
            self._session.rollback()
            if _sqlstate(exc) in _TRANSIENT_SQLSTATES:
                raise WriteConflictError("Concurrent watchlist write conflict.") from exc
            logger.error("Watchlist write failed error=%s", exc)
            raise WatchlistPersistenceError("Watchlist write failed.") from exc
        except SQLAlchemyError as exc:
            self._session.rollback()
            logger.error("Watchlist write failed error=%s", exc)
            raise WatchlistPersistenceError("Watchlist write failed.") from exc
