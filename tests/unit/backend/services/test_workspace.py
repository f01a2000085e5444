"""Unit tests for quillnotes.backend.services.workspace."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from quillnotes.backend.schemas.note import NoteCreate, NoteUpdate
from quillnotes.backend.services.note import NoteService
from quillnotes.backend.services.workspace import NoteWorkspace


@pytest.fixture
def service():
    return AsyncMock(spec=NoteService)


@pytest.fixture
def workspace(service):
    return NoteWorkspace(service, "user-1")


class TestRefresh:
    @pytest.mark.asyncio
    async def test_refresh_replaces_list(self, workspace, service, note_factory):
        first = [note_factory(id="a")]
        second = [note_factory(id="b"), note_factory(id="c")]

        service.list_notes.return_value = first
        await workspace.refresh()
        service.list_notes.return_value = second
        await workspace.refresh()

        assert [n.id for n in workspace.notes] == ["b", "c"]
        service.list_notes.assert_awaited_with("user-1")

    @pytest.mark.asyncio
    async def test_superseded_fetch_discarded(self, workspace, service, note_factory):
        slow_gate = asyncio.Event()
        responses = iter([
            ("slow", [note_factory(id="stale")]),
            ("fast", [note_factory(id="fresh")]),
        ])

        async def list_notes(owner_id):
            kind, notes = next(responses)
            if kind == "slow":
                await slow_gate.wait()
            return notes

        service.list_notes.side_effect = list_notes

        slow = asyncio.create_task(workspace.refresh())
        await asyncio.sleep(0)
        await workspace.refresh()
        slow_gate.set()
        await slow

        assert [n.id for n in workspace.notes] == ["fresh"]


class TestMutations:
    @pytest.mark.asyncio
    async def test_create_refreshes(self, workspace, service, note_factory):
        created = note_factory(id="new")
        service.create_note.return_value = created
        service.list_notes.return_value = [created]

        result = await workspace.create(NoteCreate(title="T"))

        assert result is created
        assert [n.id for n in workspace.notes] == ["new"]

    @pytest.mark.asyncio
    async def test_update_applies_current_result(self, workspace, service, note_factory):
        updated = note_factory(id="a", title="New")
        service.update_note.return_value = updated
        service.list_notes.return_value = [updated]

        result = await workspace.update("a", NoteUpdate(title="New", content="c"))

        assert result is updated
        assert workspace.notes[0].title == "New"

    @pytest.mark.asyncio
    async def test_slow_update_after_delete_is_discarded(self, workspace, service, note_factory):
        """A late update result must not bring a deleted note back."""
        gate = asyncio.Event()

        async def slow_update(note_id, owner_id, data):
            await gate.wait()
            return note_factory(id=note_id, title="resurrected")

        service.update_note.side_effect = slow_update
        service.list_notes.return_value = []

        pending = asyncio.create_task(workspace.update("a", NoteUpdate(title="x", content="y")))
        await asyncio.sleep(0)
        await workspace.delete("a")
        gate.set()
        result = await pending

        assert result is None
        assert workspace.notes == []
        assert service.list_notes.await_count == 1

    @pytest.mark.asyncio
    async def test_newer_update_supersedes_older(self, workspace, service, note_factory):
        gates = {"first": asyncio.Event(), "second": asyncio.Event()}

        async def update(note_id, owner_id, data):
            await gates[data.content].wait()
            return note_factory(id=note_id, content=data.content)

        service.update_note.side_effect = update
        service.list_notes.return_value = [note_factory(id="a", content="second")]

        first = asyncio.create_task(workspace.update("a", NoteUpdate(title="t", content="first")))
        await asyncio.sleep(0)
        second = asyncio.create_task(workspace.update("a", NoteUpdate(title="t", content="second")))
        await asyncio.sleep(0)

        gates["second"].set()
        second_result = await second
        gates["first"].set()
        first_result = await first

        assert second_result.content == "second"
        assert first_result is None

    @pytest.mark.asyncio
    async def test_failed_update_leaves_list_untouched(self, workspace, service, note_factory):
        service.list_notes.return_value = [note_factory(id="a", content="original")]
        await workspace.refresh()
        service.update_note.side_effect = RuntimeError("store down")

        with pytest.raises(RuntimeError):
            await workspace.update("a", NoteUpdate(title="t", content="changed"))

        assert workspace.notes[0].content == "original"


class TestOrdering:
    @pytest.mark.asyncio
    async def test_reorder_persists_ids(self, workspace, service, note_factory):
        service.list_notes.return_value = [note_factory(id="a"), note_factory(id="b")]
        await workspace.refresh()

        workspace.reorder(0, 1)
        await workspace.controller.wait_pending()

        service.reorder_notes.assert_awaited_once_with("user-1", ["b", "a"])

    @pytest.mark.asyncio
    async def test_local_order_survives_refresh_until_reset(self, workspace, service, note_factory):
        service.list_notes.return_value = [note_factory(id="a"), note_factory(id="b")]
        await workspace.refresh()
        workspace.reorder(0, 1)
        await workspace.controller.wait_pending()

        await workspace.refresh()
        assert [n.id for n in workspace.notes] == ["b", "a"]

        workspace.reset_order()
        assert [n.id for n in workspace.notes] == ["a", "b"]


class TestMutationsWhileLocallyReordered:
    """Mutations refresh the list without losing the user's order."""

    @pytest.fixture
    async def reordered(self, workspace, service, note_factory):
        service.list_notes.return_value = [
            note_factory(id="a"), note_factory(id="b"), note_factory(id="c"),
        ]
        await workspace.refresh()
        workspace.reorder(0, 2)
        await workspace.controller.wait_pending()
        assert [n.id for n in workspace.notes] == ["b", "c", "a"]
        return workspace

    @pytest.mark.asyncio
    async def test_delete_removes_note(self, reordered, service, note_factory):
        service.list_notes.return_value = [note_factory(id="a"), note_factory(id="c")]

        await reordered.delete("b")

        assert [n.id for n in reordered.notes] == ["c", "a"]

    @pytest.mark.asyncio
    async def test_update_shows_fetched_values(self, reordered, service, note_factory):
        updated = note_factory(id="c", title="New")
        service.update_note.return_value = updated
        service.list_notes.return_value = [note_factory(id="a"), note_factory(id="b"), updated]

        await reordered.update("c", NoteUpdate(title="New", content="Content"))

        assert [n.id for n in reordered.notes] == ["b", "c", "a"]
        assert reordered.notes[1].title == "New"

    @pytest.mark.asyncio
    async def test_create_appends_new_note(self, reordered, service, note_factory):
        created = note_factory(id="d")
        service.create_note.return_value = created
        service.list_notes.return_value = [
            note_factory(id="a"), note_factory(id="b"), note_factory(id="c"), created,
        ]

        await reordered.create(NoteCreate(title="T"))

        assert [n.id for n in reordered.notes] == ["b", "c", "a", "d"]
