"""Authorization guard: role and ownership predicates.

Every predicate either returns quietly or raises ``AuthorizationError``.
Services call them before touching the session, so a denied call never
leaves a partial write behind.
"""

import logging

from ..database import db
from ..models.answer import ParticipantRole
from ..models.note import NoteType
from ..models.one_on_one import OneOnOne
from ..models.team import Team, team_memberships
from ..models.user import User, UserRole
from .errors import AuthorizationError

logger = logging.getLogger(__name__)

ROLE_DEVELOPER = "developer"
ROLE_MANAGER = "manager"
ROLE_ADMIN = "admin"

# Which session participant may author each note type
NOTE_AUTHORS: dict[NoteType, ParticipantRole] = {
    NoteType.DEVELOPER_NOTES: ParticipantRole.DEVELOPER,
    NoteType.MANAGER_FEEDBACK: ParticipantRole.MANAGER,
}


def session_roles(user: User, session: OneOnOne) -> set[str]:
    """Return the roles ``user`` holds on ``session``.

    A user can hold several at once, e.g. an admin who is also the
    session's manager.
    """
    roles = set()
    if session.developer_id == user.id:
        roles.add(ROLE_DEVELOPER)
    if session.manager_id == user.id:
        roles.add(ROLE_MANAGER)
    if user.role == UserRole.ADMIN:
        roles.add(ROLE_ADMIN)
    return roles


def _deny(user: User, message: str) -> None:
    logger.info(f"Authorization denied for user {user.id}: {message}")
    raise AuthorizationError(message)


def require_session_access(user: User, session: OneOnOne) -> set[str]:
    """Developer, manager or admin may read and write the session."""
    roles = session_roles(user, session)
    if not roles:
        _deny(user, "You do not have access to this 1-on-1")
    return roles


def require_answer_author(user: User, session: OneOnOne, answer_type: ParticipantRole) -> None:
    """Only the developer writes developer answers; only the manager writes manager answers."""
    expected = session.developer_id if answer_type == ParticipantRole.DEVELOPER else session.manager_id
    if user.id != expected:
        _deny(user, f"Only the session's {answer_type.value} may save {answer_type.value} answers")


def require_note_author(user: User, session: OneOnOne, note_type: NoteType) -> None:
    author = NOTE_AUTHORS[note_type]
    expected = session.developer_id if author == ParticipantRole.DEVELOPER else session.manager_id
    if user.id != expected:
        _deny(user, f"Only the session's {author.value} may save {note_type.value}")


def require_session_participant(user: User, session: OneOnOne) -> None:
    """Action-item writes are limited to the session's developer and manager."""
    if user.id not in (session.developer_id, session.manager_id):
        _deny(user, "Only session participants can manage action items")


def require_admin(user: User) -> None:
    if user.role != UserRole.ADMIN:
        _deny(user, "Admin access required")


def require_manager_or_admin(user: User) -> None:
    if user.role not in (UserRole.MANAGER, UserRole.ADMIN):
        _deny(user, "Manager or admin access required")


def require_self_or_admin(user: User, user_id: str) -> None:
    if user.id != user_id and user.role != UserRole.ADMIN:
        _deny(user, "You can only access your own record")


def managed_team_ids(user: User) -> list[str]:
    """Ids of teams ``user`` manages."""
    rows = db.session.query(Team.id).filter(Team.manager_id == user.id).all()
    return [row[0] for row in rows]


def managed_developer_ids(user: User) -> set[str]:
    """Ids of users on any team ``user`` manages (excluding the manager)."""
    team_ids = managed_team_ids(user)
    if not team_ids:
        return set()
    rows = (
        db.session.query(team_memberships.c.user_id)
        .filter(team_memberships.c.team_id.in_(team_ids))
        .distinct()
        .all()
    )
    return {row[0] for row in rows if row[0] != user.id}


def require_team_manager_or_admin(user: User, developer: User) -> Team | None:
    """Allow creating a session for ``developer``.

    Managers may only target developers on a team they manage; admins may
    target anyone. Returns the team the session belongs to (None if the
    developer is on no team).
    """
    developer_teams = list(developer.teams)
    if user.role == UserRole.ADMIN:
        managed = [t for t in developer_teams if t.manager_id == user.id]
        if managed:
            return managed[0]
        with_manager = [t for t in developer_teams if t.manager_id is not None]
        if with_manager:
            return with_manager[0]
        return developer_teams[0] if developer_teams else None

    if user.role != UserRole.MANAGER:
        _deny(user, "Manager or admin access required")

    for team in developer_teams:
        if team.manager_id == user.id:
            return team
    _deny(user, f"{developer.display_name} is not on a team you manage")


def require_developer_visibility(user: User, developer_id: str) -> None:
    """Self, admins, or a manager of one of the developer's teams."""
    if user.id == developer_id or user.role == UserRole.ADMIN:
        return
    if developer_id in managed_developer_ids(user):
        return
    _deny(user, "You do not have access to this developer's metrics")
