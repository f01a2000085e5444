"""
Note Service.

Business logic layer for notes and the encryption boundary: this is the
only code that calls the note cipher. Rows hold ciphertext for encrypted
notes; everything returned from here carries plaintext content.
"""

from collections.abc import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from quillnotes.backend.core.crypto import NoteCipher, get_note_cipher
from quillnotes.backend.core.utils import utc_now
from quillnotes.backend.models.note import Note
from quillnotes.backend.repositories.note import NoteRepository
from quillnotes.backend.schemas.note import (
    NoteCreate,
    NoteResponse,
    NoteSort,
    NoteUpdate,
    NoteVisibility,
)
from quillnotes.backend.services.base import BaseService


class NoteService(BaseService):
    """
    Service for note business logic.

    Every operation except get_public_note is scoped to an owner id.
    The owner id is also the key context passed to the cipher.
    """

    def __init__(
        self,
        session: AsyncSession,
        cipher: NoteCipher | None = None,
        public_path: str | None = None,
    ) -> None:
        super().__init__(session)
        self.repo = NoteRepository(session)
        self._cipher = cipher
        self._public_path = public_path

    @property
    def cipher(self) -> NoteCipher:
        if self._cipher is None:
            self._cipher = get_note_cipher()
        return self._cipher

    @property
    def public_path(self) -> str:
        if self._public_path is None:
            from quillnotes.backend.core.config import get_app_config
            self._public_path = get_app_config().application.public_path
        return self._public_path

    def _seal(self, content: str, encrypt: bool, owner_id: str) -> str:
        """Return the stored representation of content."""
        if encrypt:
            return self.cipher.encrypt(content, context=owner_id)
        return content

    def _to_response(self, note: Note) -> NoteResponse:
        """Build a plaintext response; undecryptable content is returned as stored."""
        content = note.content
        if note.is_encrypted:
            result = self.cipher.try_decrypt(note.content, context=note.owner_id)
            if not result.ok:
                self._logger.warning(
                    "Returning stored content for undecryptable note",
                    extra={"note_id": note.id, "error": result.error.message},
                )
            content = result.value_or(note.content)

        share_path = None
        if note.is_public:
            share_path = f"{self.public_path.rstrip('/')}/{note.public_id}"

        response = NoteResponse.model_validate(note)
        return response.model_copy(update={"content": content, "share_path": share_path})

    async def list_notes(
        self,
        owner_id: str,
        query: str | None = None,
        visibility: NoteVisibility = NoteVisibility.ALL,
        sort: NoteSort = NoteSort.UPDATED,
    ) -> list[NoteResponse]:
        """
        List an owner's notes, most recently updated first.

        Args:
            owner_id: Owner whose notes are listed
            query: Case-insensitive substring matched against title or content
            visibility: Restrict to public or private notes
            sort: Order by update time (default) or creation time, newest first

        Returns:
            Notes with plaintext content
        """
        notes = await self._execute_db_operation(
            "list_notes",
            self.repo.list_for_owner(owner_id),
        )
        responses = [self._to_response(note) for note in notes]

        if visibility == NoteVisibility.PUBLIC:
            responses = [n for n in responses if n.is_public]
        elif visibility == NoteVisibility.PRIVATE:
            responses = [n for n in responses if not n.is_public]

        if query and query.strip():
            needle = query.strip().casefold()
            responses = [
                n for n in responses
                if needle in n.title.casefold() or needle in n.content.casefold()
            ]

        if sort == NoteSort.CREATED:
            responses.sort(key=lambda n: n.created_at, reverse=True)

        return responses

    async def get_note(self, note_id: str, owner_id: str) -> NoteResponse:
        """
        Get one of the owner's notes.

        Raises:
            NotFoundError: If the note does not exist or has another owner
        """
        note = await self._execute_db_operation(
            "get_note",
            self.repo.get_owned(note_id, owner_id),
        )
        return self._to_response(note)

    async def create_note(self, owner_id: str, data: NoteCreate) -> NoteResponse:
        """
        Create a note, encrypting its content when requested.

        Args:
            owner_id: Owner of the new note
            data: Note creation data (plaintext content)

        Returns:
            Created note with plaintext content
        """
        self._validate_required({"title": data.title}, ["title"])
        self._log_operation("Creating note", owner_id=owner_id, encrypted=data.encrypt)

        note = await self._execute_db_operation(
            "create_note",
            self.repo.create(
                owner_id=owner_id,
                title=data.title,
                content=self._seal(data.content, data.encrypt, owner_id),
                is_public=data.is_public,
                is_encrypted=data.encrypt,
                label=data.label,
            ),
        )

        self._log_debug("Note created", note_id=note.id)
        return self._to_response(note)

    async def update_note(
        self,
        note_id: str,
        owner_id: str,
        data: NoteUpdate,
    ) -> NoteResponse:
        """
        Update a note.

        An omitted `encrypt` keeps the note's current setting and the
        content is stored accordingly. An omitted `is_public` or `label`
        is left unchanged.

        Raises:
            NotFoundError: If the note does not exist or has another owner
        """
        note = await self._execute_db_operation(
            "load_note",
            self.repo.get_owned(note_id, owner_id),
        )

        encrypt = data.encrypt if data.encrypt is not None else note.is_encrypted
        changes = {
            "title": data.title,
            "content": self._seal(data.content, encrypt, owner_id),
            "is_encrypted": encrypt,
            "updated_at": utc_now(),
        }
        if data.is_public is not None:
            changes["is_public"] = data.is_public
        if data.label is not None:
            changes["label"] = data.label or None

        self._log_operation("Updating note", note_id=note_id, fields=sorted(changes))

        note = await self._execute_db_operation(
            "update_note",
            self.repo.apply_changes(note, **changes),
        )
        return self._to_response(note)

    async def delete_note(self, note_id: str, owner_id: str) -> None:
        """
        Hard-delete a note.

        Raises:
            NotFoundError: If the note does not exist or has another owner
        """
        self._log_operation("Deleting note", note_id=note_id)
        await self._execute_db_operation(
            "delete_note",
            self.repo.delete_owned(note_id, owner_id),
        )

    async def get_public_note(self, public_id: str) -> NoteResponse | None:
        """
        Get a note through its public id, without an owner.

        Returns:
            The note with plaintext content, or None when it does not exist
            or is not public
        """
        note = await self._execute_db_operation(
            "get_public_note",
            self.repo.get_public(public_id),
        )
        if note is None:
            return None
        return self._to_response(note)

    async def reorder_notes(self, owner_id: str, note_ids: Sequence[str]) -> int:
        """
        Persist a display order for the owner's notes.

        Returns:
            Number of notes whose position was written
        """
        written = await self._execute_db_operation(
            "reorder_notes",
            self.repo.set_order(owner_id, note_ids),
        )
        self._log_debug("Note order saved", requested=len(note_ids), written=written)
        return written
