"""Admin management of teams and users."""

import logging

from ..database import db
from ..models.question import Question
from ..models.team import Team, team_memberships
from ..models.user import User, UserRole
from .authorization import require_admin
from .errors import NotFoundError, ValidationError, storage_errors

logger = logging.getLogger(__name__)


def parse_role(value) -> UserRole:
    if isinstance(value, UserRole):
        return value
    try:
        return UserRole(value)
    except ValueError:
        raise ValidationError("Invalid role. Must be admin, manager, or developer")


def _resolve_manager_id(manager_id) -> str | None:
    if manager_id in (None, ""):
        return None
    if db.session.get(User, manager_id) is None:
        raise ValidationError("manager_id does not reference an existing user")
    return manager_id


def _load_team(team_id: str) -> Team:
    team = db.session.get(Team, team_id)
    if team is None:
        raise NotFoundError("Team not found")
    return team


def team_member_ids(team_id: str) -> list[str]:
    rows = (
        db.session.query(team_memberships.c.user_id)
        .filter(team_memberships.c.team_id == team_id)
        .all()
    )
    return [row[0] for row in rows]


def user_team_ids(user_id: str) -> list[str]:
    rows = (
        db.session.query(team_memberships.c.team_id)
        .filter(team_memberships.c.user_id == user_id)
        .all()
    )
    return [row[0] for row in rows]


# --- Teams ---


def list_teams(user: User) -> list[Team]:
    require_admin(user)
    return Team.query.order_by(Team.name.asc()).all()


def create_team(user: User, name: str, manager_id: str | None = None) -> Team:
    require_admin(user)
    if not name or not str(name).strip():
        raise ValidationError("Team name is required")
    manager_id = _resolve_manager_id(manager_id)

    with storage_errors("create team"):
        team = Team(name=str(name).strip(), manager_id=manager_id)
        db.session.add(team)
        db.session.commit()

    logger.info(f"Team {team.id} ({team.name}) created by user {user.id}")
    return team


def update_team(user: User, team_id: str, updates: dict) -> Team:
    """Update a team's name and/or manager. ``manager_id: null`` clears the manager."""
    require_admin(user)
    team = _load_team(team_id)

    changes = {}
    if "name" in updates:
        name = updates["name"]
        if not name or not str(name).strip():
            raise ValidationError("Team name is required")
        changes["name"] = str(name).strip()
    if "manager_id" in updates:
        changes["manager_id"] = _resolve_manager_id(updates["manager_id"])

    with storage_errors("update team"):
        for key, value in changes.items():
            setattr(team, key, value)
        db.session.commit()
    return team


def delete_team(user: User, team_id: str) -> None:
    """Delete a team. Refused while it still has members.

    The team's questions are detached and deactivated rather than deleted,
    so answers in past sessions keep their question. Past sessions and
    snapshots keep their rows with ``team_id`` cleared.
    """
    require_admin(user)
    team = _load_team(team_id)
    if team_member_ids(team.id):
        raise ValidationError("Cannot delete team with assigned members. Please reassign them first.")

    with storage_errors("delete team"):
        retired = (
            Question.query.filter_by(team_id=team.id)
            .update({"team_id": None, "is_active": False}, synchronize_session=False)
        )
        db.session.delete(team)
        db.session.commit()
    logger.info(f"Team {team_id} deleted by user {user.id} ({retired} team question(s) retired)")


# --- Users ---


def list_users(user: User) -> list[User]:
    require_admin(user)
    return User.query.order_by(User.email.asc()).all()


def get_user(user: User, user_id: str) -> User:
    require_admin(user)
    target = db.session.get(User, user_id)
    if target is None:
        raise NotFoundError("User not found")
    return target


def update_user(user: User, user_id: str, updates: dict) -> User:
    """Change a user's role and/or replace their full team set.

    Admins cannot change their own role. ``team_ids`` replaces every
    membership; an empty list removes the user from all teams.
    """
    require_admin(user)
    target = db.session.get(User, user_id)
    if target is None:
        raise NotFoundError("User not found")

    role = None
    if updates.get("role") is not None:
        role = parse_role(updates["role"])
        if target.id == user.id and role != target.role:
            raise ValidationError("You cannot change your own role")

    teams = None
    if "team_ids" in updates:
        team_ids = updates["team_ids"] or []
        if not isinstance(team_ids, list):
            raise ValidationError("team_ids must be an array")
        teams = Team.query.filter(Team.id.in_(team_ids)).all() if team_ids else []
        missing = set(team_ids) - {t.id for t in teams}
        if missing:
            raise ValidationError(f"Unknown team ids: {', '.join(sorted(missing))}")

    with storage_errors("update user"):
        if role is not None:
            target.role = role
        if teams is not None:
            target.teams = teams
        db.session.commit()

    logger.info(
        f"User {target.id} updated by admin {user.id}"
        + (f": role={role.value}" if role is not None else "")
        + (f", teams={len(teams)}" if teams is not None else "")
    )
    return target


def set_user_role(email: str, role) -> User:
    """Set a user's role by email. Used by the CLI to bootstrap the first admin."""
    role = parse_role(role)
    target = User.query.filter_by(email=email.strip().lower()).first()
    if target is None:
        raise NotFoundError(f"User {email} not found")
    with storage_errors("update user role"):
        target.role = role
        db.session.commit()
    logger.info(f"User {target.id} role set to {role.value} from the command line")
    return target
