"""Question model and its enums."""

import enum
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ..database import db, generate_id


class QuestionType(enum.Enum):
    RATING_1_5 = "rating_1_5"
    RATING_1_10 = "rating_1_10"
    TEXT = "text"
    YES_NO = "yes_no"


class QuestionScope(enum.Enum):
    COMPANY = "company"
    TEAM = "team"


class QuestionCategory(enum.Enum):
    RESEARCH = "research"
    STRATEGY = "strategy"
    CORE_QUALITIES = "core_qualities"
    LEADERSHIP = "leadership"
    TECHNICAL = "technical"


# Inclusive rating bounds per rated question type
RATING_BOUNDS: dict[QuestionType, tuple[int, int]] = {
    QuestionType.RATING_1_5: (1, 5),
    QuestionType.RATING_1_10: (1, 10),
}


class Question(db.Model):
    """
    A recurring question asked in every session.

    Company-scoped questions apply to every session; team-scoped questions
    only to sessions of that team. Questions are seeded, not edited in-app.
    """

    __tablename__ = "questions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    question_type: Mapped[QuestionType] = mapped_column(
        Enum(QuestionType, name="questiontype", create_constraint=True), nullable=False
    )
    scope: Mapped[QuestionScope] = mapped_column(
        Enum(QuestionScope, name="questionscope", create_constraint=True),
        nullable=False,
        default=QuestionScope.COMPANY,
    )
    category: Mapped[QuestionCategory | None] = mapped_column(
        Enum(QuestionCategory, name="questioncategory", create_constraint=True), nullable=True
    )
    team_id: Mapped[str | None] = mapped_column(
        ForeignKey("teams.id", ondelete="SET NULL"), nullable=True, index=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    @property
    def is_rating(self) -> bool:
        return self.question_type in RATING_BOUNDS

    def __repr__(self) -> str:
        return f"<Question id={self.id} type={self.question_type.value} order={self.sort_order}>"
