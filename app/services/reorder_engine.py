"""
app/services/reorder_engine.py

Pure ordering logic for an owner's watchlist.

An entry with ``order > 0`` is ordered; ``order == 0`` means unordered.
Ordered entries come first (by order, then newest first), unordered entries
follow (newest first). Every operation returns the new full sequence and only
the order values that changed, and leaves the ordered set numbered 1..k.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Generic, Protocol, TypeVar

SORT_MODE_ORDER = "order"


class Orderable(Protocol):
    id: Hashable
    order: int
    created_at: datetime | None


E = TypeVar("E", bound=Orderable)


@dataclass(frozen=True)
class ReorderResult(Generic[E]):
    """
    ``applied`` is False when the request was ignored (non list-order sort).
    """

    sequence: tuple[E, ...]
    assignments: dict[Hashable, int] = field(default_factory=dict)
    applied: bool = True

    def order_of(self, entry: E) -> int:
        return self.assignments.get(entry.id, entry.order)


def _created_key(entry: Orderable) -> float:
    created_at = entry.created_at
    if created_at is None:
        return 0.0
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return created_at.timestamp()


def full_sequence(entries: Iterable[E]) -> list[E]:
    """
    Canonical display sequence of an owner's whole watchlist.
    """

    indexed = list(enumerate(entries))
    ordered = [pair for pair in indexed if pair[1].order > 0]
    unordered = [pair for pair in indexed if pair[1].order <= 0]
    ordered.sort(key=lambda pair: (pair[1].order, -_created_key(pair[1]), pair[0]))
    unordered.sort(key=lambda pair: (-_created_key(pair[1]), pair[0]))
    return [entry for _, entry in ordered + unordered]


def _renumber(sequence: Sequence[E], ordered_count: int) -> dict[Hashable, int]:
    targets = {
        entry.id: (position + 1 if position < ordered_count else 0)
        for position, entry in enumerate(sequence)
    }
    return {entry.id: targets[entry.id] for entry in sequence if entry.order != targets[entry.id]}


def _find(sequence: Sequence[E], entry_id: Hashable) -> E:
    for entry in sequence:
        if entry.id == entry_id:
            return entry
    raise KeyError(entry_id)


def move_entry(
    entries: Iterable[E],
    entry_id: Hashable,
    from_index: int,
    to_index: int,
    view_sequence: Sequence[Hashable] | None = None,
    sort_mode: str = SORT_MODE_ORDER,
) -> ReorderResult[E]:
    """
    Apply a drag-and-drop move made in a (possibly filtered) view.

    ``view_sequence`` lists the visible entry ids in display order; when
    omitted the view is the full sequence. The moved entry is placed right
    before its new next visible neighbour, or right after its previous one
    when dropped at the end. ``from_index`` is informational: the entry's
    current position is taken from the view itself.

    Raises KeyError when ``entry_id`` is not one of ``entries``.
    """

    current = full_sequence(entries)
    if sort_mode != SORT_MODE_ORDER:
        return ReorderResult(sequence=tuple(current), applied=False)

    moved = _find(current, entry_id)
    known_ids = {entry.id for entry in current}
    if view_sequence is None:
        view = [entry.id for entry in current]
    else:
        view = [item for item in dict.fromkeys(view_sequence) if item in known_ids]
    if entry_id not in view:
        view.insert(max(0, min(from_index, len(view))), entry_id)

    remaining_view = [item for item in view if item != entry_id]
    target_index = max(0, min(to_index, len(remaining_view)))

    remaining = [entry for entry in current if entry.id != entry_id]
    remaining_positions = {entry.id: position for position, entry in enumerate(remaining)}
    if target_index < len(remaining_view):
        insert_at = remaining_positions[remaining_view[target_index]]
    elif remaining_view:
        insert_at = remaining_positions[remaining_view[-1]] + 1
    else:
        insert_at = current.index(moved)

    sequence = remaining[:insert_at] + [moved] + remaining[insert_at:]

    last_ordered = max(
        position for position, entry in enumerate(sequence) if entry.order > 0 or entry.id == entry_id
    )
    return ReorderResult(
        sequence=tuple(sequence),
        assignments=_renumber(sequence, last_ordered + 1),
    )


def set_entry_order(entries: Iterable[E], entry_id: Hashable, order: int) -> ReorderResult[E]:
    """
    Treat an explicit order value as a move inside the ordered set.

    ``0`` takes the entry out of the ordered set; a positive value moves it to
    that 1-based position, clamped to the end of the ordered set.
    """

    if order < 0:
        raise ValueError("order must be >= 0")

    current = full_sequence(entries)
    target = _find(current, entry_id)
    ordered = [entry for entry in current if entry.order > 0 and entry.id != entry_id]
    unordered = [entry for entry in current if entry.order <= 0 and entry.id != entry_id]

    if order == 0:
        unordered = sorted([*unordered, target], key=lambda entry: -_created_key(entry))
    else:
        position = max(0, min(order - 1, len(ordered)))
        ordered.insert(position, target)

    sequence = ordered + unordered
    return ReorderResult(
        sequence=tuple(sequence),
        assignments=_renumber(sequence, len(ordered)),
    )


def compact_orders(entries: Iterable[E], *, excluding: Hashable | None = None) -> ReorderResult[E]:
    """
    Renumber the ordered set to 1..k, optionally leaving one entry out (removal).
    """

    sequence = [entry for entry in full_sequence(entries) if entry.id != excluding]
    ordered_count = sum(1 for entry in sequence if entry.order > 0)
    return ReorderResult(sequence=tuple(sequence), assignments=_renumber(sequence, ordered_count))

