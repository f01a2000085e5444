"""Unit tests for quillnotes.backend.services.reorder."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from quillnotes.backend.services.reorder import (
    ReorderController,
    ReorderState,
    canonical_order,
    move_item,
)


def item(name: str, order_index: int | None = None) -> SimpleNamespace:
    return SimpleNamespace(id=name, order_index=order_index)


def ids(items) -> list[str]:
    return [i.id for i in items]


class FakeDragEvent:
    def __init__(self) -> None:
        self.drop_effect = "none"
        self.default_prevented = False

    def prevent_default(self) -> None:
        self.default_prevented = True


class TestMoveItem:
    def test_move_forward(self):
        assert move_item(["A", "B", "C"], 0, 2) == ["B", "C", "A"]

    def test_move_backward(self):
        assert move_item(["A", "B", "C"], 2, 0) == ["C", "A", "B"]

    def test_same_index_unchanged(self):
        items = ["A", "B", "C"]
        result = move_item(items, 1, 1)
        assert result == items
        assert result is not items

    def test_input_not_mutated(self):
        items = ["A", "B", "C"]
        move_item(items, 0, 2)
        assert items == ["A", "B", "C"]

    @pytest.mark.parametrize("from_index,to_index", [(-1, 0), (0, 3), (5, 1)])
    def test_out_of_range(self, from_index, to_index):
        with pytest.raises(IndexError):
            move_item(["A", "B", "C"], from_index, to_index)


class TestCanonicalOrder:
    def test_unordered_first_then_by_index(self):
        fetched = [item("a", 1), item("b"), item("c", 0), item("d")]
        assert ids(canonical_order(fetched)) == ["b", "d", "c", "a"]

    def test_all_unordered_keeps_fetch_order(self):
        fetched = [item("x"), item("y"), item("z")]
        assert ids(canonical_order(fetched)) == ["x", "y", "z"]


class TestReorderController:
    @pytest.fixture
    def controller(self):
        c = ReorderController()
        c.sync([item("A"), item("B"), item("C")])
        return c

    def test_sync_while_synced_replaces_view(self, controller):
        controller.sync([item("X"), item("Y")])
        assert ids(controller.view) == ["X", "Y"]
        assert controller.state == ReorderState.SYNCED

    def test_reorder_moves_and_marks_local(self, controller):
        view = controller.reorder(0, 2)
        assert ids(view) == ["B", "C", "A"]
        assert controller.state == ReorderState.LOCALLY_REORDERED

    def test_reorder_same_index_keeps_state(self, controller):
        controller.reorder(1, 1)
        assert ids(controller.view) == ["A", "B", "C"]
        assert controller.state == ReorderState.SYNCED

    def test_fetch_keeps_local_order_and_appends_new(self, controller):
        controller.reorder(0, 2)
        controller.sync([item("A"), item("B"), item("C"), item("D")])

        assert ids(controller.view) == ["B", "C", "A", "D"]
        assert ids(controller.canonical) == ["A", "B", "C", "D"]
        assert controller.state == ReorderState.LOCALLY_REORDERED

    def test_fetch_drops_deleted_from_local_order(self, controller):
        controller.reorder(0, 2)
        controller.sync([item("A"), item("C")])

        assert ids(controller.view) == ["C", "A"]

    def test_fetch_swaps_in_updated_items(self, controller):
        controller.reorder(0, 2)
        renamed = SimpleNamespace(id="B", order_index=None, title="Renamed")
        controller.sync([item("A"), renamed, item("C")])

        assert ids(controller.view) == ["B", "C", "A"]
        assert controller.view[0] is renamed

    def test_new_items_follow_canonical_order(self, controller):
        controller.reorder(0, 2)
        controller.sync([item("A"), item("B"), item("C"), item("E", 1), item("D", 0)])

        assert ids(controller.view) == ["B", "C", "A", "D", "E"]

    def test_fetch_clears_drag_source_that_no_longer_exists(self, controller):
        controller.reorder(0, 2)
        controller.drag_start(2)

        controller.sync([item("A")])

        assert ids(controller.view) == ["A"]
        assert controller.dragged_index is None

    def test_reset_restores_canonical(self, controller):
        controller.reorder(0, 2)
        controller.sync([item("A"), item("D")])

        controller.reset()

        assert ids(controller.view) == ["A", "D"]
        assert controller.state == ReorderState.SYNCED

    def test_drag_and_drop(self, controller):
        event = FakeDragEvent()
        controller.drag_start(0)
        controller.drag_over(event)
        controller.drop(2, event)
        controller.drag_end()

        assert event.default_prevented
        assert event.drop_effect == "move"
        assert ids(controller.view) == ["B", "C", "A"]
        assert controller.dragged_index is None

    def test_drop_on_itself_is_noop(self, controller):
        controller.drag_start(1)
        controller.drop(1)

        assert ids(controller.view) == ["A", "B", "C"]
        assert controller.state == ReorderState.SYNCED
        assert controller.dragged_index is None

    def test_drop_on_itself_keeps_local_state(self, controller):
        controller.reorder(0, 2)
        controller.drag_start(1)
        controller.drop(1)

        assert ids(controller.view) == ["B", "C", "A"]
        assert controller.state == ReorderState.LOCALLY_REORDERED

    def test_cancelled_drag_clears_drag_state(self, controller):
        controller.drag_start(2)
        assert controller.is_dragging

        controller.drag_end()

        assert not controller.is_dragging
        assert ids(controller.view) == ["A", "B", "C"]

    def test_drop_without_drag_is_noop(self, controller):
        controller.drop(2)
        assert ids(controller.view) == ["A", "B", "C"]

    def test_drag_start_out_of_range(self, controller):
        with pytest.raises(IndexError):
            controller.drag_start(3)


class TestReorderPersistence:
    @pytest.mark.asyncio
    async def test_hook_receives_new_order(self):
        hook = AsyncMock()
        controller = ReorderController(on_reorder=hook)
        controller.sync([item("A"), item("B"), item("C")])

        controller.reorder(2, 0)
        await controller.wait_pending()

        hook.assert_awaited_once()
        assert ids(hook.call_args.args[0]) == ["C", "A", "B"]

    @pytest.mark.asyncio
    async def test_hook_failure_keeps_local_order(self):
        hook = AsyncMock(side_effect=RuntimeError("store down"))
        controller = ReorderController(on_reorder=hook)
        controller.sync([item("A"), item("B")])

        with patch("quillnotes.backend.services.reorder.logger") as mock_logger:
            controller.reorder(0, 1)
            await controller.wait_pending()

        assert ids(controller.view) == ["B", "A"]
        assert controller.state == ReorderState.LOCALLY_REORDERED
        mock_logger.warning.assert_called_once()

    @pytest.mark.asyncio
    async def test_reorder_does_not_wait_for_hook(self):
        started = asyncio.Event()
        release = asyncio.Event()

        async def slow_hook(ordered):
            started.set()
            await release.wait()

        controller = ReorderController(on_reorder=slow_hook)
        controller.sync([item("A"), item("B")])

        view = controller.reorder(0, 1)
        assert ids(view) == ["B", "A"]

        await started.wait()
        release.set()
        await controller.wait_pending()

    def test_no_event_loop_skips_hook(self):
        hook = MagicMock()
        controller = ReorderController(on_reorder=hook)
        controller.sync([item("A"), item("B")])

        controller.reorder(0, 1)

        assert ids(controller.view) == ["B", "A"]
        hook.assert_not_called()
