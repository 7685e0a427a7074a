"""
tests/test_reorder_engine.py

Pytest unit tests for the pure watchlist reorder engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import pytest

from app.services.reorder_engine import (
    compact_orders,
    full_sequence,
    move_entry,
    set_entry_order,
)

BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


@dataclass
class FakeEntry:
    id: int
    order: int
    created_at: datetime | None = None


def _entries(orders: list[int]) -> list[FakeEntry]:
    """
    Entry ids start at 1; higher ids are created later (newer).
    """

    return [
        FakeEntry(id=index, order=order, created_at=BASE_TIME + timedelta(minutes=index))
        for index, order in enumerate(orders, start=1)
    ]


def _apply(entries: list[FakeEntry], assignments: dict) -> dict[int, int]:
    return {entry.id: assignments.get(entry.id, entry.order) for entry in entries}


def _ids(sequence) -> list[int]:
    return [entry.id for entry in sequence]


# ---------------------------------------------------------------------------
# full_sequence
# ---------------------------------------------------------------------------


def test_full_sequence_puts_ordered_first_then_unordered_newest_first() -> None:
    entries = _entries([2, 0, 1, 0])

    assert _ids(full_sequence(entries)) == [3, 1, 4, 2]


def test_full_sequence_breaks_order_ties_by_newest() -> None:
    entries = _entries([1, 1, 2])

    assert _ids(full_sequence(entries)) == [2, 1, 3]


def test_full_sequence_accepts_naive_and_missing_timestamps() -> None:
    entries = [
        FakeEntry(id=1, order=0, created_at=None),
        FakeEntry(id=2, order=0, created_at=datetime(2026, 1, 2)),
        FakeEntry(id=3, order=0, created_at=datetime(2026, 1, 1, tzinfo=timezone.utc)),
    ]

    assert _ids(full_sequence(entries)) == [2, 3, 1]


# ---------------------------------------------------------------------------
# move_entry
# ---------------------------------------------------------------------------


def test_move_in_filtered_view_lands_before_next_visible_neighbour() -> None:
    entries = _entries(list(range(1, 51)))

    result = move_entry(
        entries,
        20,
        from_index=2,
        to_index=0,
        view_sequence=[3, 10, 20, 30, 40],
    )

    sequence = _ids(result.sequence)
    assert result.applied is True
    assert sequence.index(20) == sequence.index(3) - 1
    assert sequence[:4] == [1, 2, 20, 3]

    final_orders = _apply(entries, result.assignments)
    assert sorted(final_orders.values()) == list(range(1, 51))
    assert final_orders[20] == 3
    assert final_orders[3] == 4
    assert final_orders[19] == 20
    assert final_orders[21] == 21
    # Entries after the old position keep their values.
    assert all(entry_id <= 20 for entry_id in result.assignments)


def test_move_to_end_of_filtered_view_lands_after_previous_neighbour() -> None:
    entries = _entries(list(range(1, 11)))

    result = move_entry(entries, 2, from_index=0, to_index=5, view_sequence=[2, 5, 7])

    sequence = _ids(result.sequence)
    assert sequence.index(2) == sequence.index(7) + 1
    assert sorted(_apply(entries, result.assignments).values()) == list(range(1, 11))


def test_move_unordered_entry_to_top_orders_it() -> None:
    entries = _entries([1, 2, 0, 0])

    result = move_entry(entries, 3, from_index=3, to_index=0)

    assert _ids(result.sequence) == [3, 1, 2, 4]
    assert result.assignments == {3: 1, 1: 2, 2: 3}
    assert result.order_of(entries[3]) == 0


def test_move_among_unordered_entries_orders_everything_above() -> None:
    entries = _entries([1, 0, 0, 0])

    # Display order: 1, 4, 3, 2 (unordered newest first).
    result = move_entry(entries, 2, from_index=3, to_index=2)

    assert _ids(result.sequence) == [1, 4, 2, 3]
    assert _apply(entries, result.assignments) == {1: 1, 4: 2, 2: 3, 3: 0}


def test_move_clamps_out_of_range_target_index() -> None:
    entries = _entries([1, 2, 3])

    result = move_entry(entries, 1, from_index=0, to_index=99)

    assert _ids(result.sequence) == [2, 3, 1]
    assert _apply(entries, result.assignments) == {1: 3, 2: 1, 3: 2}


def test_move_to_same_position_changes_nothing() -> None:
    entries = _entries([1, 2, 3])

    result = move_entry(entries, 2, from_index=1, to_index=1)

    assert result.assignments == {}
    assert _ids(result.sequence) == [1, 2, 3]


def test_move_ignores_unknown_ids_in_view() -> None:
    entries = _entries([1, 2, 3])

    result = move_entry(entries, 3, from_index=1, to_index=0, view_sequence=[999, 2, 3])

    assert _ids(result.sequence) == [1, 3, 2]


def test_move_is_ignored_outside_list_order_sort() -> None:
    entries = _entries([1, 2, 3])

    result = move_entry(entries, 3, from_index=2, to_index=0, sort_mode="title")

    assert result.applied is False
    assert result.assignments == {}
    assert _ids(result.sequence) == [1, 2, 3]


def test_move_unknown_entry_raises_key_error() -> None:
    with pytest.raises(KeyError):
        move_entry(_entries([1, 2]), 42, from_index=0, to_index=1)


# ---------------------------------------------------------------------------
# set_entry_order
# ---------------------------------------------------------------------------


def test_set_order_moves_entry_inside_ordered_set() -> None:
    entries = _entries([1, 2, 3, 4])

    result = set_entry_order(entries, 4, 2)

    assert _ids(result.sequence) == [1, 4, 2, 3]
    assert _apply(entries, result.assignments) == {1: 1, 2: 3, 3: 4, 4: 2}


def test_set_order_clamps_to_end_of_ordered_set() -> None:
    entries = _entries([1, 2, 0])

    result = set_entry_order(entries, 1, 50)

    assert _apply(entries, result.assignments) == {1: 2, 2: 1, 3: 0}


def test_set_order_on_unordered_entry_inserts_it() -> None:
    entries = _entries([1, 2, 0])

    result = set_entry_order(entries, 3, 1)

    assert _apply(entries, result.assignments) == {1: 2, 2: 3, 3: 1}


def test_set_order_zero_removes_entry_from_ordered_set() -> None:
    entries = _entries([1, 2, 3, 0])

    result = set_entry_order(entries, 2, 0)

    assert _apply(entries, result.assignments) == {1: 1, 2: 0, 3: 2, 4: 0}
    # Entry 4 is newer than entry 2, so it stays ahead among unordered entries.
    assert _ids(result.sequence) == [1, 3, 4, 2]


def test_set_order_rejects_negative_values() -> None:
    with pytest.raises(ValueError):
        set_entry_order(_entries([1]), 1, -1)


# ---------------------------------------------------------------------------
# compact_orders
# ---------------------------------------------------------------------------


def test_compact_closes_gap_left_by_removed_entry() -> None:
    entries = _entries([1, 2, 3, 0])

    result = compact_orders(entries, excluding=2)

    assert _ids(result.sequence) == [1, 3, 4]
    assert result.assignments == {3: 2}


def test_compact_renumbers_sparse_orders() -> None:
    entries = _entries([10, 0, 4])

    result = compact_orders(entries)

    assert _apply(entries, result.assignments) == {1: 2, 2: 0, 3: 1}
