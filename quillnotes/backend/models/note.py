"""
Note Model.

Database model for notes. `content` holds ciphertext when `is_encrypted`
is set; nothing above the note service ever sees that form.
"""

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from quillnotes.backend.core.security import OWNER_ID_MAX_LENGTH
from quillnotes.backend.core.utils import new_identifier
from quillnotes.backend.models.base import Base, TimestampMixin, UUIDMixin


class Note(UUIDMixin, TimestampMixin, Base):
    """
    Note database model.

    Every row belongs to exactly one owner. `public_id` is generated once
    at insert and never changes, whatever happens to `is_public`.
    """

    __tablename__ = "notes"

    owner_id: Mapped[str] = mapped_column(
        String(OWNER_ID_MAX_LENGTH),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
    )
    is_public: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    public_id: Mapped[str] = mapped_column(
        String(36),
        default=new_identifier,
        nullable=False,
        unique=True,
        index=True,
    )
    is_encrypted: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    label: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
    )
    order_index: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, owner_id={self.owner_id}, title={self.title!r})>"
