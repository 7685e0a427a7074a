"""
tests/test_watchlist_service.py

Pytest tests for single-item watchlist operations and order mutations.
"""

from __future__ import annotations

import uuid

import pytest

from app.repositories.watchlist_repository import WatchlistRepository
from app.services.owner_locks import OwnerLockRegistry
from app.services.watchlist_service import WatchlistEntryNotFoundError, WatchlistService

OWNER = "owner-1"


@pytest.fixture()
def repository(db_session) -> WatchlistRepository:
    return WatchlistRepository(db_session)


@pytest.fixture()
def service(repository, retry_policy) -> WatchlistService:
    return WatchlistService(
        repository,
        retry_policy=retry_policy,
        locks=OwnerLockRegistry(),
        sleep=lambda _: None,
    )


def _seed(repository: WatchlistRepository, count: int) -> list:
    return [
        repository.insert(
            OWNER,
            external_id=100 + index,
            media_type="movie",
            title=f"Movie {index}",
            order=index + 1,
        )
        for index in range(count)
    ]


def _orders(service: WatchlistService) -> list[tuple[int, int]]:
    return [(entry.external_id, entry.order) for entry in service.list_entries(OWNER)]


def test_first_added_entry_is_unordered(service) -> None:
    entry, created = service.add_entry(OWNER, external_id=949, media_type="movie", title="Heat")

    assert created is True
    assert entry.order == 0


def test_added_entry_joins_end_of_ordered_set(service, repository) -> None:
    _seed(repository, 2)

    entry, created = service.add_entry(OWNER, external_id=949, media_type="movie", title="Heat")

    assert created is True
    assert entry.order == 3


def test_adding_existing_entry_returns_it_unchanged(service, repository) -> None:
    existing = _seed(repository, 1)[0]

    entry, created = service.add_entry(OWNER, external_id=100, media_type="movie", title="Renamed")

    assert created is False
    assert entry.id == existing.id
    assert entry.title == "Movie 0"


def test_add_rejects_unknown_media_type(service) -> None:
    with pytest.raises(ValueError):
        service.add_entry(OWNER, external_id=1, media_type="podcast", title="Nope")


def test_remove_closes_gap_in_ordered_set(service, repository) -> None:
    _seed(repository, 3)

    assert service.remove_entry(OWNER, 101, "movie") is True
    assert _orders(service) == [(100, 1), (102, 2)]


def test_remove_missing_entry_returns_false(service, repository) -> None:
    _seed(repository, 1)

    assert service.remove_entry(OWNER, 999, "movie") is False
    assert _orders(service) == [(100, 1)]


def test_update_note_leaves_order_untouched(service, repository) -> None:
    entries = _seed(repository, 2)

    updated = service.update_entry(OWNER, entries[1].id, note="with popcorn")

    assert updated.note == "with popcorn"
    assert _orders(service) == [(100, 1), (101, 2)]


def test_update_order_is_normalized(service, repository) -> None:
    entries = _seed(repository, 3)

    updated = service.update_entry(OWNER, entries[2].id, order=1)

    assert updated.order == 1
    assert _orders(service) == [(102, 1), (100, 2), (101, 3)]


def test_update_order_beyond_end_is_clamped(service, repository) -> None:
    entries = _seed(repository, 3)

    service.update_entry(OWNER, entries[0].id, order=40)

    assert _orders(service) == [(101, 1), (102, 2), (100, 3)]


def test_update_unknown_entry_raises(service, repository) -> None:
    _seed(repository, 1)

    with pytest.raises(WatchlistEntryNotFoundError):
        service.update_entry(OWNER, uuid.uuid4(), note="x")


def test_update_is_scoped_to_owner(service, repository) -> None:
    entry = _seed(repository, 1)[0]

    with pytest.raises(WatchlistEntryNotFoundError):
        service.update_entry("someone-else", entry.id, note="x")


def test_move_persists_contiguous_orders(service, repository) -> None:
    entries = _seed(repository, 4)

    result = service.move_entry(OWNER, entries[3].id, from_index=3, to_index=1)

    assert result.applied is True
    assert [entry.external_id for entry in result.sequence] == [100, 103, 101, 102]
    assert _orders(service) == [(100, 1), (103, 2), (101, 3), (102, 4)]


def test_move_outside_list_order_sort_is_a_no_op(service, repository) -> None:
    entries = _seed(repository, 3)

    result = service.move_entry(OWNER, entries[2].id, from_index=2, to_index=0, sort_mode="title")

    assert result.applied is False
    assert _orders(service) == [(100, 1), (101, 2), (102, 3)]


def test_move_unknown_entry_raises(service, repository) -> None:
    _seed(repository, 2)

    with pytest.raises(WatchlistEntryNotFoundError):
        service.move_entry(OWNER, uuid.uuid4(), from_index=0, to_index=1)
