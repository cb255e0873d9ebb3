"""Dense reordering: shifts, invariants and write ordering."""

from __future__ import annotations

import pytest

from learnterms.errors import ValidationError
from learnterms.ordering.reindex import (
    OrderedItem,
    OrderUpdate,
    apply_updates,
    compact,
    is_dense,
    next_order,
    reorder,
)


def group(*ids: str, parent: str = "cohort-1") -> list[OrderedItem]:
    return [OrderedItem(item_id, parent, position) for position, item_id in enumerate(ids)]


def final_sequence(items: list[OrderedItem], updates: list[OrderUpdate]) -> list[str]:
    return [item.id for item in apply_updates(items, updates)]


class TestReorder:
    """Moving one item and shifting the ones in between."""

    def test_move_later(self):
        """A(0) moved to 2: B and C slide left, D untouched."""
        items = group("A", "B", "C", "D")
        updates = reorder(items, "A", 2)
        assert updates == [OrderUpdate("B", 0), OrderUpdate("C", 1), OrderUpdate("A", 2)]
        assert final_sequence(items, updates) == ["B", "C", "A", "D"]

    def test_move_earlier(self):
        """D(3) moved to 1: B and C slide right, A untouched."""
        items = group("A", "B", "C", "D")
        updates = reorder(items, "D", 1)
        assert updates == [OrderUpdate("C", 3), OrderUpdate("B", 2), OrderUpdate("D", 1)]
        assert final_sequence(items, updates) == ["A", "D", "B", "C"]

    def test_move_to_end(self):
        items = group("A", "B", "C")
        assert final_sequence(items, reorder(items, "A", 2)) == ["B", "C", "A"]

    def test_adjacent_swap(self):
        items = group("A", "B", "C")
        assert reorder(items, "B", 2) == [OrderUpdate("C", 1), OrderUpdate("B", 2)]

    def test_same_position_is_noop(self):
        items = group("A", "B", "C")
        assert reorder(items, "B", 1) == []

    def test_unknown_id_is_noop(self):
        items = group("A", "B", "C")
        assert reorder(items, "Z", 0) == []

    def test_unknown_id_ignores_bad_position(self):
        """Stale input is a no-op even when the position would be rejected."""
        assert reorder(group("A"), "Z", 99) == []

    def test_input_order_does_not_matter(self):
        items = list(reversed(group("A", "B", "C", "D")))
        assert final_sequence(items, reorder(items, "A", 3)) == ["B", "C", "D", "A"]

    @pytest.mark.parametrize("n", range(1, 7))
    def test_group_stays_dense(self, n):
        """Every move of every item to every valid position keeps 0..n-1."""
        ids = [f"item-{i}" for i in range(n)]
        items = group(*ids)
        for moved in ids:
            for target in range(n):
                result = apply_updates(items, reorder(items, moved, target))
                assert is_dense(result)
                assert sorted(i.id for i in result) == sorted(ids)
                assert next(i.order for i in result if i.id == moved) == target


class TestReorderValidation:
    """Out-of-range positions are rejected before anything is computed."""

    @pytest.mark.parametrize("bad", [-1, 4, 100])
    def test_out_of_range(self, bad):
        with pytest.raises(ValidationError) as exc_info:
            reorder(group("A", "B", "C", "D"), "A", bad)
        assert exc_info.value.field == "new_order"

    @pytest.mark.parametrize("bad", [1.5, "2", True, None])
    def test_non_integer(self, bad):
        with pytest.raises(ValidationError):
            reorder(group("A", "B", "C"), "A", bad)


class TestWriteOrder:
    """Applying updates one by one never puts two items on one slot."""

    @staticmethod
    def apply_one_by_one(items: list[OrderedItem], moved_id: str, updates: list[OrderUpdate]) -> None:
        orders = {item.id: item.order for item in items}
        if len(updates) > 1:
            orders[moved_id] = -1
        for update in updates:
            orders[update.id] = update.order
            assert len(set(orders.values())) == len(orders), f"collision after {update}"

    @pytest.mark.parametrize(("moved", "target"), [("A", 4), ("E", 0), ("B", 3), ("D", 1), ("C", 2)])
    def test_no_transient_duplicates(self, moved, target):
        items = group("A", "B", "C", "D", "E")
        updates = reorder(items, moved, target)
        self.apply_one_by_one(items, moved, updates)

    def test_moved_item_written_last(self):
        updates = reorder(group("A", "B", "C", "D"), "B", 3)
        assert updates[-1] == OrderUpdate("B", 3)


class TestCompact:
    def test_closes_gaps(self):
        items = [OrderedItem("a", "m", 0), OrderedItem("c", "m", 2), OrderedItem("f", "m", 5)]
        assert compact(items) == [OrderUpdate("c", 1), OrderUpdate("f", 2)]
        assert is_dense(apply_updates(items, compact(items)))

    def test_dense_group_unchanged(self):
        assert compact(group("A", "B", "C")) == []

    def test_empty_group(self):
        assert compact([]) == []


class TestNextOrder:
    def test_empty_group_starts_at_zero(self):
        assert next_order([]) == 0

    def test_appends_after_highest(self):
        assert next_order(group("A", "B", "C")) == 3

    def test_uses_max_not_count(self):
        assert next_order([OrderedItem("a", "m", 0), OrderedItem("b", "m", 7)]) == 8


class TestIsDense:
    def test_dense(self):
        assert is_dense(group("A", "B"))

    def test_gap(self):
        assert not is_dense([OrderedItem("a", "m", 0), OrderedItem("b", "m", 2)])

    def test_duplicate(self):
        assert not is_dense([OrderedItem("a", "m", 0), OrderedItem("b", "m", 0)])
