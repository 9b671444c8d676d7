"""User model and UserRole enum."""

import enum
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Enum, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..database import db, generate_id

if TYPE_CHECKING:
    from .team import Team


class UserRole(enum.Enum):
    """Application-wide role of a user."""

    ADMIN = "admin"
    MANAGER = "manager"
    DEVELOPER = "developer"


class User(db.Model):
    """
    Represents a person signed in through the external identity provider.

    Users are provisioned on first sign-in with the developer role. Only an
    admin may change a role, and never their own. Users are never hard-deleted.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="userrole", create_constraint=True),
        nullable=False,
        default=UserRole.DEVELOPER,
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
    teams: Mapped[list["Team"]] = relationship(
        "Team", secondary="team_memberships", back_populates="members"
    )
    managed_teams: Mapped[list["Team"]] = relationship(
        "Team", back_populates="manager", foreign_keys="Team.manager_id"
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def display_name(self) -> str:
        return self.full_name or self.email

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email} role={self.role.value}>"
