"""
Note Schemas.

Pydantic schemas for note API request/response validation. Every
`content` field in these schemas is plaintext.
"""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class NoteVisibility(StrEnum):
    """Visibility filter for note listings."""

    ALL = "all"
    PUBLIC = "public"
    PRIVATE = "private"


class NoteSort(StrEnum):
    """Sort key for note listings (always newest first)."""

    UPDATED = "updated"
    CREATED = "created"


def _strip_title(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Title must not be blank")
    return value


class NoteCreate(BaseModel):
    """Schema for creating a new note."""

    title: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Note title",
        examples=["Groceries"],
    )
    content: str = Field(
        default="",
        max_length=100_000,
        description="Note content (plaintext)",
        examples=["Milk, eggs, bread"],
    )
    is_public: bool = Field(
        default=False,
        description="Make the note readable through its public link",
    )
    encrypt: bool = Field(
        default=False,
        description="Store the content encrypted",
    )
    label: str | None = Field(
        default=None,
        max_length=64,
        description="Free-text tag",
    )

    @field_validator("title")
    @classmethod
    def strip_title(cls, value: str) -> str:
        return _strip_title(value)

    @field_validator("label")
    @classmethod
    def blank_label_is_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class NoteUpdate(BaseModel):
    """
    Schema for updating an existing note.

    `title` and `content` are always written. `is_public`, `encrypt` and
    `label` are left unchanged when omitted; an empty `label` clears it.
    """

    title: str = Field(..., min_length=1, max_length=255, description="Note title")
    content: str = Field(..., max_length=100_000, description="Note content (plaintext)")
    is_public: bool | None = Field(default=None, description="Public link toggle")
    encrypt: bool | None = Field(
        default=None,
        description="Store encrypted; omitted keeps the current setting",
    )
    label: str | None = Field(default=None, max_length=64, description="Free-text tag")

    @field_validator("title")
    @classmethod
    def strip_title(cls, value: str) -> str:
        return _strip_title(value)

    @field_validator("label")
    @classmethod
    def strip_label(cls, value: str | None) -> str | None:
        return value.strip() if value is not None else None


class NoteOrderUpdate(BaseModel):
    """Schema for persisting a new note order."""

    note_ids: list[str] = Field(
        ...,
        description="Note ids in their new display order",
    )


class NoteOrderResponse(BaseModel):
    """Result of persisting a note order."""

    updated: int = Field(description="Number of notes whose position was written")


class NoteResponse(BaseModel):
    """Schema for note in API responses."""

    id: str = Field(description="Note unique identifier")
    owner_id: str = Field(description="Owner (user) identifier")
    title: str = Field(description="Note title")
    content: str = Field(description="Note content (plaintext)")
    is_public: bool = Field(description="Whether the note is publicly readable")
    public_id: str = Field(description="Identifier used in the public link")
    is_encrypted: bool = Field(description="Whether the content is stored encrypted")
    label: str | None = Field(default=None, description="Free-text tag")
    order_index: int | None = Field(default=None, description="Persisted display position")
    share_path: str | None = Field(default=None, description="Public link path while public")
    created_at: datetime = Field(description="Creation timestamp")
    updated_at: datetime = Field(description="Last update timestamp")

    model_config = ConfigDict(from_attributes=True)


class PublicNoteResponse(BaseModel):
    """Schema for anonymously readable notes. Does not expose the owner."""

    public_id: str
    title: str
    content: str
    label: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
