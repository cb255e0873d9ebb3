"""Dense ordering of sibling records.

Every group of siblings (classes of a cohort semester, modules of a class,
questions of a module) stores its sequence as per-row integers. After any
operation in this module the group's ``order`` values are exactly
``0..n-1``, provided they were before.

All functions are pure: they compute ``OrderUpdate`` lists and leave the
writes to a record store.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Sequence
from dataclasses import dataclass, replace

from learnterms.errors import ValidationError


@dataclass(frozen=True)
class OrderedItem:
    id: str
    parent_key: Hashable
    order: int


@dataclass(frozen=True)
class OrderUpdate:
    id: str
    order: int


def reorder(items: Sequence[OrderedItem], moved_id: str, new_order: int) -> list[OrderUpdate]:
    """Move ``moved_id`` to ``new_order`` and shift the siblings in between.

    Returns one update per item whose order changed. An unknown ``moved_id``
    yields no updates, so stale client state never raises. An out-of-range
    ``new_order`` raises ``ValidationError``.

    Updates are listed so that, once the moved item has been parked outside
    the range, each write targets a free slot: shifted siblings first, the
    moved item last.
    """
    moved = next((item for item in items if item.id == moved_id), None)
    if moved is None:
        return []

    n = len(items)
    if isinstance(new_order, bool) or not isinstance(new_order, int) or not 0 <= new_order < n:
        msg = f"new_order must be an integer in [0, {n - 1}], got {new_order!r}"
        raise ValidationError(msg, field="new_order")

    old_order = moved.order
    if old_order == new_order:
        return []

    shifted: list[OrderUpdate] = []
    if old_order < new_order:
        # moving later: siblings in (old, new] slide one slot earlier
        for item in sorted(items, key=lambda i: i.order):
            if item.id != moved_id and old_order < item.order <= new_order:
                shifted.append(OrderUpdate(item.id, item.order - 1))
    else:
        # moving earlier: siblings in [new, old) slide one slot later
        for item in sorted(items, key=lambda i: i.order, reverse=True):
            if item.id != moved_id and new_order <= item.order < old_order:
                shifted.append(OrderUpdate(item.id, item.order + 1))

    shifted.append(OrderUpdate(moved_id, new_order))
    return shifted


def compact(items: Iterable[OrderedItem]) -> list[OrderUpdate]:
    """Renumber a group with gaps to ``0..n-1``, keeping relative order."""
    updates = []
    for position, item in enumerate(sorted(items, key=lambda i: i.order)):
        if item.order != position:
            updates.append(OrderUpdate(item.id, position))
    return updates


def next_order(items: Iterable[OrderedItem]) -> int:
    """Order value for an item appended to the end of the group."""
    return max((item.order for item in items), default=-1) + 1


def apply_updates(items: Iterable[OrderedItem], updates: Iterable[OrderUpdate]) -> list[OrderedItem]:
    """Return the group with ``updates`` applied, sorted by order."""
    new_orders = {update.id: update.order for update in updates}
    result = [replace(item, order=new_orders[item.id]) if item.id in new_orders else item for item in items]
    return sorted(result, key=lambda i: i.order)


def is_dense(items: Iterable[OrderedItem]) -> bool:
    orders = sorted(item.order for item in items)
    return orders == list(range(len(orders)))
