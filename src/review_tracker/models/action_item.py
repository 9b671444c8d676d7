"""ActionItem model and ActionStatus enum."""

import enum
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import Date, DateTime, Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..database import db, generate_id
from .answer import ParticipantRole, participant_role_type

if TYPE_CHECKING:
    from .one_on_one import OneOnOne


class ActionStatus(enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


OPEN_ACTION_STATUSES = (ActionStatus.PENDING, ActionStatus.IN_PROGRESS)


class ActionItem(db.Model):
    """A follow-up agreed in a session, owned by the developer or the manager."""

    __tablename__ = "action_items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    one_on_one_id: Mapped[str] = mapped_column(
        ForeignKey("one_on_ones.id", ondelete="CASCADE"), nullable=False, index=True
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[ActionStatus] = mapped_column(
        Enum(ActionStatus, name="actionstatus", create_constraint=True),
        nullable=False,
        default=ActionStatus.PENDING,
        index=True,
    )
    assigned_to: Mapped[ParticipantRole] = mapped_column(participant_role_type, nullable=False)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    one_on_one: Mapped["OneOnOne"] = relationship("OneOnOne", back_populates="action_items")

    @property
    def assignee_id(self) -> str:
        """User id of the session participant this item is assigned to."""
        if self.assigned_to == ParticipantRole.DEVELOPER:
            return self.one_on_one.developer_id
        return self.one_on_one.manager_id

    def __repr__(self) -> str:
        return f"<ActionItem id={self.id} status={self.status.value} assigned_to={self.assigned_to.value}>"
