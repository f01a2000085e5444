"""
Reorder Controller.

Client-side ordering of a note list. Two orders are kept:

- canonical: the fetched notes ordered by their persisted order_index
  (never-ordered notes first, in fetch order)
- view: the session order shown to the user

On a fresh load or reset the canonical order wins. Once the user has
moved an item the view keeps its own order: later fetches drop notes
that are gone, swap in the fetched copy of each remaining note, and
append new notes in canonical order, until reset() is called.

Persistence of a new order is a best-effort hook: it runs in the
background and a failure is logged, never rolled back.
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from enum import StrEnum
from typing import Any, Protocol, TypeVar

from quillnotes.backend.core.logging import get_logger, log_with_source

logger = get_logger(__name__)

T = TypeVar("T")

ReorderHook = Callable[[list[Any]], Awaitable[Any]]


class ReorderState(StrEnum):
    """Whether the view mirrors the last fetch."""

    SYNCED = "synced"
    LOCALLY_REORDERED = "locally_reordered"


class DragEvent(Protocol):
    """The parts of a drag-over/drop event the controller touches."""

    drop_effect: str

    def prevent_default(self) -> None:
        ...


def move_item(items: Sequence[T], from_index: int, to_index: int) -> list[T]:
    """
    Return a copy of items with the element at from_index moved to to_index.

    All other elements keep their relative order.

    Raises:
        IndexError: If either index is out of range
    """
    result = list(items)
    size = len(result)
    if not (0 <= from_index < size) or not (0 <= to_index < size):
        raise IndexError(f"Move {from_index} -> {to_index} out of range for {size} items")
    if from_index == to_index:
        return result
    item = result.pop(from_index)
    result.insert(to_index, item)
    return result


def item_key(item: Any) -> Any:
    """Identity used to match a fetched note with its entry in the view."""
    return getattr(item, "id", item)


def canonical_order(items: Sequence[T]) -> list[T]:
    """Order by persisted order_index; items without one come first, in input order."""
    indexed = list(enumerate(items))
    indexed.sort(
        key=lambda pair: (
            getattr(pair[1], "order_index", None) is not None,
            getattr(pair[1], "order_index", None) or 0,
            pair[0],
        )
    )
    return [item for _, item in indexed]


class ReorderController:
    """
    Holds the working list for a drag-and-drop note list.

    Usage:
        controller = ReorderController(on_reorder=persist_order)
        controller.sync(fetched_notes)

        controller.drag_start(0)
        controller.drag_over(event)
        controller.drop(2, event)
        controller.drag_end()
    """

    def __init__(self, on_reorder: ReorderHook | None = None) -> None:
        self._on_reorder = on_reorder
        self.canonical: list[Any] = []
        self.view: list[Any] = []
        self.state = ReorderState.SYNCED
        self.dragged_index: int | None = None
        self._pending: set[asyncio.Task] = set()

    @property
    def is_dragging(self) -> bool:
        return self.dragged_index is not None

    def sync(self, fetched: Sequence[Any]) -> list[Any]:
        """
        Merge a fetch result.

        The canonical order is always refreshed. While SYNCED the view is
        replaced; while LOCALLY_REORDERED it is reconciled with the fetch.
        """
        self.canonical = canonical_order(fetched)
        if self.state == ReorderState.SYNCED:
            self.view = list(self.canonical)
        else:
            self.view = self._reconcile_view()
            logger.debug(
                "Reconciled local order with fetched notes",
                extra={"fetched": len(self.canonical), "view": len(self.view)},
            )
        if self.dragged_index is not None and self.dragged_index >= len(self.view):
            self.dragged_index = None
        return self.view

    def _reconcile_view(self) -> list[Any]:
        fresh = {item_key(item): item for item in self.canonical}
        kept = [fresh[item_key(item)] for item in self.view if item_key(item) in fresh]
        seen = {item_key(item) for item in kept}
        return kept + [item for item in self.canonical if item_key(item) not in seen]

    def reset(self) -> list[Any]:
        """Drop the local order and show the canonical order again."""
        self.state = ReorderState.SYNCED
        self.dragged_index = None
        self.view = list(self.canonical)
        return self.view

    def reorder(self, from_index: int, to_index: int) -> list[Any]:
        """
        Move one item in the view and persist the new order in the background.

        A move onto the same index changes nothing.
        """
        if from_index == to_index:
            return self.view
        self.view = move_item(self.view, from_index, to_index)
        self.state = ReorderState.LOCALLY_REORDERED
        self._persist(list(self.view))
        return self.view

    def drag_start(self, index: int) -> None:
        if not 0 <= index < len(self.view):
            raise IndexError(f"Drag source {index} out of range for {len(self.view)} items")
        self.dragged_index = index

    def drag_over(self, event: DragEvent) -> None:
        """Allow a drop on the hovered item."""
        event.prevent_default()
        event.drop_effect = "move"

    def drop(self, to_index: int, event: DragEvent | None = None) -> list[Any]:
        """Complete a drag on to_index. Dropping an item on itself is a no-op."""
        if event is not None:
            event.prevent_default()
        source = self.dragged_index
        self.dragged_index = None
        if source is None or source == to_index:
            return self.view
        return self.reorder(source, to_index)

    def drag_end(self) -> None:
        """End of any drag gesture, dropped or cancelled."""
        self.dragged_index = None

    def _persist(self, ordered: list[Any]) -> None:
        if self._on_reorder is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            log_with_source(logger, "internal", "warning", "No event loop; order not persisted")
            return
        task = loop.create_task(self._run_hook(ordered))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _run_hook(self, ordered: list[Any]) -> None:
        try:
            await self._on_reorder(ordered)
        except Exception as e:
            log_with_source(
                logger, "internal", "warning", "Persisting note order failed",
                error_type=type(e).__name__, error=str(e), items=len(ordered),
            )

    async def wait_pending(self) -> None:
        """Wait for in-flight persistence hooks (used on shutdown and in tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending))
