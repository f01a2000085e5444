"""
Integration Tests for the Note Repository.

Runs the owner-scoped queries against the test database.
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from quillnotes.backend.core.exceptions import NotFoundError
from quillnotes.backend.repositories.note import NoteRepository


@pytest.fixture
def repo(db_session: AsyncSession) -> NoteRepository:
    return NoteRepository(db_session)


class TestNoteRepository:
    @pytest.mark.asyncio
    async def test_create_defaults(self, repo: NoteRepository):
        note = await repo.create(owner_id="user-1", title="T")

        assert note.id
        assert note.public_id
        assert note.public_id != note.id
        assert note.content == ""
        assert note.is_public is False
        assert note.is_encrypted is False
        assert note.order_index is None
        assert note.created_at is not None
        assert note.updated_at is not None

    @pytest.mark.asyncio
    async def test_list_scoped_to_owner(self, repo: NoteRepository):
        await repo.create(owner_id="user-1", title="Mine")
        await repo.create(owner_id="user-2", title="Theirs")

        notes = await repo.list_for_owner("user-1")

        assert [n.title for n in notes] == ["Mine"]

    @pytest.mark.asyncio
    async def test_get_owned_other_owner(self, repo: NoteRepository):
        note = await repo.create(owner_id="user-1", title="T")

        assert await repo.get_owned_or_none(note.id, "user-2") is None
        with pytest.raises(NotFoundError):
            await repo.get_owned(note.id, "user-2")

    @pytest.mark.asyncio
    async def test_get_public_requires_flag(self, repo: NoteRepository):
        note = await repo.create(owner_id="user-1", title="T")

        assert await repo.get_public(note.public_id) is None

        await repo.apply_changes(note, is_public=True)
        assert (await repo.get_public(note.public_id)).id == note.id

    @pytest.mark.asyncio
    async def test_delete_owned(self, repo: NoteRepository):
        note = await repo.create(owner_id="user-1", title="T")

        with pytest.raises(NotFoundError):
            await repo.delete_owned(note.id, "user-2")

        await repo.delete_owned(note.id, "user-1")
        assert await repo.get_owned_or_none(note.id, "user-1") is None

    @pytest.mark.asyncio
    async def test_set_order_skips_foreign_ids(self, repo: NoteRepository, db_session: AsyncSession):
        a = await repo.create(owner_id="user-1", title="A")
        b = await repo.create(owner_id="user-1", title="B")
        foreign = await repo.create(owner_id="user-2", title="X")
        updated_before = b.updated_at

        written = await repo.set_order("user-1", [b.id, foreign.id, a.id, "missing"])

        assert written == 2
        for note in (a, b, foreign):
            await db_session.refresh(note)
        assert b.order_index == 0
        assert a.order_index == 2
        assert foreign.order_index is None
        assert b.updated_at == updated_before

    @pytest.mark.asyncio
    async def test_set_order_empty(self, repo: NoteRepository):
        assert await repo.set_order("user-1", []) == 0
