"""
Note Workspace.

The in-memory working set of one owner's notes, as a client session
holds it. The list is replaced wholesale from a fresh fetch after every
successful mutation, never patched in place.

Each mutation takes a per-note version token. A result that arrives after
a newer mutation of the same note (or a delete) is discarded instead of
being applied, so a slow update cannot bring back a deleted note.

This is the model a UI or other client session drives; the HTTP app
does not use it, its routes stay stateless over NoteService.
"""

from typing import Any

from quillnotes.backend.core.concurrency import MutationVersions
from quillnotes.backend.core.logging import get_logger
from quillnotes.backend.schemas.note import NoteCreate, NoteResponse, NoteUpdate
from quillnotes.backend.services.note import NoteService
from quillnotes.backend.services.reorder import ReorderController

logger = get_logger(__name__)

LIST_KEY = "__list__"


class NoteWorkspace:
    """One owner's note list plus its local ordering."""

    def __init__(
        self,
        service: NoteService,
        owner_id: str,
        controller: ReorderController | None = None,
    ) -> None:
        self.service = service
        self.owner_id = owner_id
        self.controller = controller or ReorderController(on_reorder=self._persist_order)
        self.versions = MutationVersions()

    @property
    def notes(self) -> list[NoteResponse]:
        """Notes in display order."""
        return self.controller.view

    async def _persist_order(self, ordered: list[Any]) -> None:
        await self.service.reorder_notes(self.owner_id, [note.id for note in ordered])

    async def refresh(self) -> list[NoteResponse]:
        """Fetch the owner's notes and replace the working list."""
        token = self.versions.begin(LIST_KEY)
        fetched = await self.service.list_notes(self.owner_id)
        if not self.versions.is_current(LIST_KEY, token):
            logger.debug("Discarding superseded fetch", extra={"owner_id": self.owner_id})
            return self.notes
        return self.controller.sync(fetched)

    async def create(self, data: NoteCreate) -> NoteResponse:
        note = await self.service.create_note(self.owner_id, data)
        await self.refresh()
        return note

    async def update(self, note_id: str, data: NoteUpdate) -> NoteResponse | None:
        """
        Update a note.

        Returns:
            The updated note, or None when a newer mutation of the same note
            started while this one was in flight
        """
        token = self.versions.begin(note_id)
        note = await self.service.update_note(note_id, self.owner_id, data)
        if not self.versions.is_current(note_id, token):
            logger.info(
                "Discarding stale update result",
                extra={"note_id": note_id, "token": token, "current": self.versions.current(note_id)},
            )
            return None
        await self.refresh()
        return note

    async def delete(self, note_id: str) -> None:
        """Delete a note; pending updates of it are invalidated first."""
        self.versions.invalidate(note_id)
        await self.service.delete_note(note_id, self.owner_id)
        await self.refresh()

    def reorder(self, from_index: int, to_index: int) -> list[NoteResponse]:
        return self.controller.reorder(from_index, to_index)

    def reset_order(self) -> list[NoteResponse]:
        return self.controller.reset()
