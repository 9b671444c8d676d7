"""OneOnOne model and SessionStatus enum."""

import enum
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..database import db, generate_id

if TYPE_CHECKING:
    from .action_item import ActionItem
    from .answer import Answer
    from .metrics import MetricsRun, MetricsSnapshot
    from .note import Note
    from .team import Team
    from .user import User


class SessionStatus(enum.Enum):
    """4-state lifecycle for a 1-on-1 session."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    REVIEWED = "reviewed"
    COMPLETED = "completed"


class OneOnOne(db.Model):
    """
    A single monthly review session between one developer and one manager.

    Sessions move draft → submitted → (reviewed) → completed. Several
    sessions may exist for the same pair and month; ``session_number``
    distinguishes them and is unique per (developer, manager, month).
    """

    __tablename__ = "one_on_ones"
    __table_args__ = (
        UniqueConstraint(
            "developer_id", "manager_id", "month_year", "session_number",
            name="uq_one_on_ones_pair_month_number",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    developer_id: Mapped[str] = mapped_column(
        ForeignKey("users.id"), nullable=False, index=True
    )
    manager_id: Mapped[str] = mapped_column(
        ForeignKey("users.id"), nullable=False, index=True
    )
    team_id: Mapped[str | None] = mapped_column(
        ForeignKey("teams.id", ondelete="SET NULL"), nullable=True, index=True
    )
    month_year: Mapped[str] = mapped_column(String(7), nullable=False, index=True)
    session_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[SessionStatus] = mapped_column(
        Enum(SessionStatus, name="sessionstatus", create_constraint=True),
        nullable=False,
        default=SessionStatus.DRAFT,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    developer_submitted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    manager_reviewed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    developer: Mapped["User"] = relationship("User", foreign_keys=[developer_id])
    manager: Mapped["User"] = relationship("User", foreign_keys=[manager_id])
    team: Mapped["Team | None"] = relationship("Team")
    answers: Mapped[list["Answer"]] = relationship(
        "Answer", back_populates="one_on_one", cascade="all, delete-orphan"
    )
    notes: Mapped[list["Note"]] = relationship(
        "Note", back_populates="one_on_one", cascade="all, delete-orphan"
    )
    action_items: Mapped[list["ActionItem"]] = relationship(
        "ActionItem",
        back_populates="one_on_one",
        cascade="all, delete-orphan",
        order_by="ActionItem.created_at.desc()",
    )
    metrics_snapshot: Mapped["MetricsSnapshot | None"] = relationship(
        "MetricsSnapshot", back_populates="one_on_one", uselist=False, cascade="all, delete-orphan"
    )
    metrics_runs: Mapped[list["MetricsRun"]] = relationship(
        "MetricsRun", back_populates="one_on_one", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return (
            f"<OneOnOne id={self.id} month={self.month_year} "
            f"number={self.session_number} status={self.status.value}>"
        )
