"""
Unit Test Fixtures.

Fixtures for unit tests - all external dependencies are mocked.
Unit tests should be fast and isolated, never touching real databases.
"""

from datetime import datetime
from typing import Any

import pytest

from quillnotes.backend.schemas.note import NoteResponse


# =============================================================================
# Note Fixtures
# =============================================================================


def make_note_response(**overrides: Any) -> NoteResponse:
    """Build a NoteResponse with sensible defaults."""
    values: dict[str, Any] = {
        "id": "note-1",
        "owner_id": "user-1",
        "title": "Title",
        "content": "Content",
        "is_public": False,
        "public_id": "public-1",
        "is_encrypted": False,
        "label": None,
        "order_index": None,
        "created_at": datetime(2026, 1, 1, 12, 0, 0),
        "updated_at": datetime(2026, 1, 1, 12, 0, 0),
    }
    values.update(overrides)
    return NoteResponse(**values)


@pytest.fixture
def note_factory():
    """
    Provide the NoteResponse builder.

    Usage:
        def test_workspace(note_factory):
            note = note_factory(id="n2", title="Second")
    """
    return make_note_response
