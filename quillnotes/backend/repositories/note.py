"""
Note Repository.

Data access layer for notes. Every query except the public lookup is
scoped to an owner. Content passes through untouched: rows hold
ciphertext for encrypted notes.
"""

from collections.abc import Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from quillnotes.backend.core.exceptions import NotFoundError
from quillnotes.backend.models.note import Note
from quillnotes.backend.repositories.base import BaseRepository


class NoteRepository(BaseRepository[Note]):
    """Repository for the Note model."""

    model = Note

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    async def list_for_owner(self, owner_id: str) -> list[Note]:
        """
        Get all notes of an owner, most recently updated first.

        Args:
            owner_id: Owner whose notes are listed

        Returns:
            Notes ordered by updated_at descending
        """
        result = await self.session.execute(
            select(Note)
            .where(Note.owner_id == owner_id)
            .order_by(Note.updated_at.desc(), Note.id)
        )
        return list(result.scalars().all())

    async def get_owned_or_none(self, note_id: str, owner_id: str) -> Note | None:
        """Get a note only if it belongs to owner_id."""
        result = await self.session.execute(
            select(Note)
            .where(Note.id == note_id)
            .where(Note.owner_id == owner_id)
        )
        return result.scalar_one_or_none()

    async def get_owned(self, note_id: str, owner_id: str) -> Note:
        """
        Get a note belonging to owner_id.

        Raises:
            NotFoundError: If the note does not exist or has another owner
        """
        note = await self.get_owned_or_none(note_id, owner_id)
        if note is None:
            raise NotFoundError("Note not found")
        return note

    async def get_public(self, public_id: str) -> Note | None:
        """Get a note by public id, only while it is marked public."""
        result = await self.session.execute(
            select(Note)
            .where(Note.public_id == public_id)
            .where(Note.is_public == True)  # noqa: E712
        )
        return result.scalar_one_or_none()

    async def delete_owned(self, note_id: str, owner_id: str) -> None:
        """
        Hard-delete a note belonging to owner_id.

        Raises:
            NotFoundError: If the note does not exist or has another owner
        """
        note = await self.get_owned(note_id, owner_id)
        await self.remove(note)

    async def set_order(self, owner_id: str, note_ids: Sequence[str]) -> int:
        """
        Persist display positions: note_ids[i] gets order_index i.

        Ids that do not belong to owner_id are skipped; updated_at is not bumped.

        Returns:
            Number of notes whose position was written
        """
        if not note_ids:
            return 0

        owned = await self.session.execute(
            select(Note.id)
            .where(Note.owner_id == owner_id)
            .where(Note.id.in_(list(note_ids)))
        )
        owned_ids = set(owned.scalars().all())

        written = 0
        for position, note_id in enumerate(note_ids):
            if note_id not in owned_ids:
                continue
            await self.session.execute(
                update(Note)
                .where(Note.id == note_id)
                .where(Note.owner_id == owner_id)
                .values(order_index=position, updated_at=Note.updated_at)
            )
            written += 1
        await self.session.flush()
        return written
