"""Notification model and NotificationType enum."""

import enum
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..database import db, generate_id

if TYPE_CHECKING:
    from .user import User


class NotificationType(enum.Enum):
    ONE_ON_ONE_SUBMITTED = "one_on_one_submitted"
    ONE_ON_ONE_REVIEWED = "one_on_one_reviewed"
    ONE_ON_ONE_COMPLETED = "one_on_one_completed"
    ONE_ON_ONE_REMINDER = "one_on_one_reminder"
    ACTION_ITEM_ASSIGNED = "action_item_assigned"
    ACTION_ITEM_DUE_SOON = "action_item_due_soon"
    ACTION_ITEM_OVERDUE = "action_item_overdue"


class Notification(db.Model):
    """
    An inbox entry for one user.

    ``related_id``/``related_type`` optionally point at the session or action
    item the notification is about; the scans use them for de-duplication.
    """

    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_related", "related_id", "notification_type"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    notification_type: Mapped[NotificationType] = mapped_column(
        Enum(NotificationType, name="notificationtype", create_constraint=True),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    related_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    related_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    is_emailed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    user: Mapped["User"] = relationship("User")

    def __repr__(self) -> str:
        return (
            f"<Notification id={self.id} user={self.user_id} "
            f"type={self.notification_type.value} read={self.is_read}>"
        )
