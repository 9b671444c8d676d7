"""Answer model and ParticipantRole enum."""

import enum
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..database import db, generate_id

if TYPE_CHECKING:
    from .one_on_one import OneOnOne
    from .question import Question


class ParticipantRole(enum.Enum):
    """Which participant of a session authored an answer or owns an action item."""

    DEVELOPER = "developer"
    MANAGER = "manager"


# Shared by answers.answer_type and action_items.assigned_to
participant_role_type = Enum(ParticipantRole, name="participantrole", create_constraint=True)


class Answer(db.Model):
    """
    A participant's answer to one question in one session.

    At most one answer exists per (session, question, answer type); writes
    go through a conditional upsert on that key.
    """

    __tablename__ = "answers"
    __table_args__ = (
        UniqueConstraint(
            "one_on_one_id", "question_id", "answer_type",
            name="uq_answers_session_question_type",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    one_on_one_id: Mapped[str] = mapped_column(
        ForeignKey("one_on_ones.id", ondelete="CASCADE"), nullable=False, index=True
    )
    question_id: Mapped[str] = mapped_column(
        ForeignKey("questions.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    answer_type: Mapped[ParticipantRole] = mapped_column(participant_role_type, nullable=False)
    rating_value: Mapped[int | None] = mapped_column(Integer, nullable=True)
    text_value: Mapped[str | None] = mapped_column(Text, nullable=True)
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
    one_on_one: Mapped["OneOnOne"] = relationship("OneOnOne", back_populates="answers")
    question: Mapped["Question"] = relationship("Question")

    def __repr__(self) -> str:
        return (
            f"<Answer id={self.id} question_id={self.question_id} "
            f"type={self.answer_type.value}>"
        )
