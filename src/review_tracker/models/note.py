"""Note model and NoteType enum."""

import enum
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Enum, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..database import db, generate_id

if TYPE_CHECKING:
    from .one_on_one import OneOnOne
    from .user import User


class NoteType(enum.Enum):
    DEVELOPER_NOTES = "developer_notes"
    MANAGER_FEEDBACK = "manager_feedback"


class Note(db.Model):
    """Free-text notes on a session; one per session and note type."""

    __tablename__ = "notes"
    __table_args__ = (
        UniqueConstraint("one_on_one_id", "note_type", name="uq_notes_session_type"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    one_on_one_id: Mapped[str] = mapped_column(
        ForeignKey("one_on_ones.id", ondelete="CASCADE"), nullable=False, index=True
    )
    note_type: Mapped[NoteType] = mapped_column(
        Enum(NoteType, name="notetype", create_constraint=True), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_by: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    one_on_one: Mapped["OneOnOne"] = relationship("OneOnOne", back_populates="notes")
    author: Mapped["User"] = relationship("User")

    def __repr__(self) -> str:
        return f"<Note id={self.id} type={self.note_type.value}>"
