"""Team model and the user/team membership table."""

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import Column, DateTime, ForeignKey, String, Table, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..database import db, generate_id

if TYPE_CHECKING:
    from .user import User


# Membership rows restrict team deletion: a team with members cannot be removed.
team_memberships = Table(
    "team_memberships",
    db.metadata,
    Column("user_id", String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("team_id", String(36), ForeignKey("teams.id", ondelete="RESTRICT"), primary_key=True),
    Column(
        "created_at",
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    ),
    UniqueConstraint("user_id", "team_id", name="uq_team_memberships_user_team"),
)


class Team(db.Model):
    """
    Represents a team with zero or one manager.

    Users join teams through ``team_memberships``; a user may belong to
    several teams.
    """

    __tablename__ = "teams"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    manager_id: Mapped[str | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
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

    # Relationships
    manager: Mapped["User | None"] = relationship(
        "User", back_populates="managed_teams", foreign_keys=[manager_id]
    )
    members: Mapped[list["User"]] = relationship(
        "User", secondary=team_memberships, back_populates="teams"
    )

    def __repr__(self) -> str:
        return f"<Team id={self.id} name={self.name}>"
