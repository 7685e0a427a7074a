"""
app/services/watchlist_service.py

Single-item watchlist operations and order mutations.

Order changes run as one read-modify-write per owner: the owner's order lock
is held, the owner's rows are loaded with SELECT ... FOR UPDATE, new values
are computed by the reorder engine and committed together.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable, Sequence
from datetime import date

from app.repositories.watchlist_repository import WatchlistRepository
from app.services import reorder_engine
from app.services.owner_locks import OwnerLockRegistry, owner_locks
from app.services.reorder_engine import ReorderResult
from app.services.write_retry import WriteRetryPolicy, run_with_write_retry
from db.models.watchlist_entry import MEDIA_TYPES, WatchlistEntry

logger = logging.getLogger(__name__)

ORDER_LOCK_SCOPE = "watchlist-order"

_UNSET = object()


class WatchlistEntryNotFoundError(LookupError):
    """
    Raised when an entry id does not belong to the requesting owner.
    """


class WatchlistService:
    """
    Owner-scoped list, add, remove and update operations.
    """

    def __init__(
        self,
        repository: WatchlistRepository,
        *,
        retry_policy: WriteRetryPolicy | None = None,
        locks: OwnerLockRegistry | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._repository = repository
        self._retry_policy = retry_policy or WriteRetryPolicy.from_settings()
        self._locks = locks or owner_locks
        self._sleep = sleep

    def list_entries(self, owner_id: str) -> list[WatchlistEntry]:
        return reorder_engine.full_sequence(self._repository.list_for_owner(owner_id))

    def add_entry(
        self,
        owner_id: str,
        *,
        external_id: int,
        media_type: str,
        title: str,
        poster_path: str | None = None,
        backdrop_path: str | None = None,
        release_date: date | None = None,
        first_air_date: date | None = None,
        note: str | None = None,
    ) -> tuple[WatchlistEntry, bool]:
        """
        Insert one entry; returns ``(entry, created)``.

        An existing entry for the same key is returned unchanged. New entries
        join the end of the ordered set when the owner has one, else stay unordered.
        """

        if media_type not in MEDIA_TYPES:
            raise ValueError(f"Unsupported media type: {media_type}")

        def write() -> tuple[WatchlistEntry, bool]:
            existing = self._repository.find(owner_id, external_id, media_type)
            if existing is not None:
                return existing, False
            max_order = self._repository.max_order(owner_id)
            entry = self._repository.insert(
                owner_id,
                external_id=external_id,
                media_type=media_type,
                title=title,
                order=max_order + 1 if max_order > 0 else 0,
                poster_path=poster_path,
                backdrop_path=backdrop_path,
                release_date=release_date,
                first_air_date=first_air_date,
                note=note,
            )
            return entry, True

        with self._locks.hold(ORDER_LOCK_SCOPE, owner_id):
            return run_with_write_retry(
                write,
                policy=self._retry_policy,
                description="add watchlist entry",
                sleep=self._sleep,
            )

    def remove_entry(self, owner_id: str, external_id: int, media_type: str) -> bool:
        """
        Delete one entry and close the gap it leaves in the ordered set.
        """

        with self._locks.hold(ORDER_LOCK_SCOPE, owner_id):
            entries = self._repository.list_for_owner(owner_id, for_update=True)
            target = next(
                (
                    entry
                    for entry in entries
                    if entry.external_id == external_id and entry.media_type == media_type
                ),
                None,
            )
            if target is None:
                self._repository.rollback()
                return False

            result = reorder_engine.compact_orders(entries, excluding=target.id)
            for entry in result.sequence:
                entry.order = result.order_of(entry)
            self._repository.session.delete(target)
            self._repository.commit()

        logger.info(
            "Watchlist entry removed owner_id=%s external_id=%s media_type=%s renumbered=%s",
            owner_id,
            external_id,
            media_type,
            len(result.assignments),
        )
        return True

    def update_entry(
        self,
        owner_id: str,
        entry_id: uuid.UUID,
        *,
        order: int | None = None,
        note: str | None | object = _UNSET,
    ) -> WatchlistEntry:
        """
        Apply a note and/or order change. Order values are normalized by the
        reorder engine and never stored verbatim.
        """

        with self._locks.hold(ORDER_LOCK_SCOPE, owner_id):
            entries = self._repository.list_for_owner(owner_id, for_update=order is not None)
            by_id = {entry.id: entry for entry in entries}
            target = by_id.get(entry_id)
            if target is None:
                self._repository.rollback()
                raise WatchlistEntryNotFoundError(f"Watchlist entry {entry_id} not found.")

            if note is not _UNSET:
                target.note = note

            assignments: dict = {}
            if order is not None:
                assignments = reorder_engine.set_entry_order(entries, entry_id, order).assignments

            self._repository.apply_orders(by_id, assignments)

        if order is not None:
            logger.info(
                "Watchlist order set owner_id=%s entry_id=%s requested=%s stored=%s changed=%s",
                owner_id,
                entry_id,
                order,
                target.order,
                len(assignments),
            )
        return target

    def move_entry(
        self,
        owner_id: str,
        entry_id: uuid.UUID,
        *,
        from_index: int,
        to_index: int,
        view_sequence: Sequence[uuid.UUID] | None = None,
        sort_mode: str = reorder_engine.SORT_MODE_ORDER,
    ) -> ReorderResult[WatchlistEntry]:
        """
        Apply a drag-and-drop move; a no-op when the view is not in list order.
        """

        with self._locks.hold(ORDER_LOCK_SCOPE, owner_id):
            entries = self._repository.list_for_owner(owner_id, for_update=True)
            by_id = {entry.id: entry for entry in entries}
            if entry_id not in by_id:
                self._repository.rollback()
                raise WatchlistEntryNotFoundError(f"Watchlist entry {entry_id} not found.")

            result = reorder_engine.move_entry(
                entries,
                entry_id,
                from_index,
                to_index,
                view_sequence=view_sequence,
                sort_mode=sort_mode,
            )
            if not result.assignments:
                self._repository.rollback()
                return result

            self._repository.apply_orders(by_id, result.assignments)

        logger.info(
            "Watchlist reorder applied owner_id=%s entry_id=%s from_index=%s to_index=%s changed=%s",
            owner_id,
            entry_id,
            from_index,
            to_index,
            len(result.assignments),
        )
        return result
