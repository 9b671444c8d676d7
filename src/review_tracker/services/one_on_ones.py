"""Session creation and retrieval.

Session numbers are allocated as "max + 1, then insert under the unique
constraint". A concurrent request that wins the same number makes the
insert fail inside a savepoint; the allocation is then retried with a fresh
maximum, a bounded number of times.
"""

import logging
from dataclasses import dataclass
from datetime import date

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..database import db
from ..models.one_on_one import OneOnOne, SessionStatus
from ..models.team import Team
from ..models.user import User, UserRole
from .authorization import (
    managed_team_ids,
    require_manager_or_admin,
    require_session_access,
    require_team_manager_or_admin,
)
from .bulk import BulkResult
from .errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ServiceError,
    ValidationError,
    storage_errors,
)
from .months import current_month, validate_month_year

logger = logging.getLogger(__name__)

MAX_ALLOCATION_ATTEMPTS = 5


@dataclass
class MySessions:
    """Sessions where the caller is the developer and where they are the manager."""

    as_developer: list[OneOnOne]
    as_manager: list[OneOnOne]


def _ordered(query):
    return query.order_by(OneOnOne.month_year.desc(), OneOnOne.session_number.desc())


def list_my_sessions(user: User) -> MySessions:
    return MySessions(
        as_developer=_ordered(OneOnOne.query.filter_by(developer_id=user.id)).all(),
        as_manager=_ordered(OneOnOne.query.filter_by(manager_id=user.id)).all(),
    )


def load_session(session_id: str) -> OneOnOne:
    session = db.session.get(OneOnOne, session_id)
    if session is None:
        raise NotFoundError("1-on-1 not found")
    return session


def get_session(user: User, session_id: str) -> OneOnOne:
    """Return a session the caller may read."""
    session = load_session(session_id)
    require_session_access(user, session)
    return session


def next_session_number(developer_id: str, manager_id: str, month_year: str) -> int:
    current = (
        db.session.query(func.max(OneOnOne.session_number))
        .filter(
            OneOnOne.developer_id == developer_id,
            OneOnOne.manager_id == manager_id,
            OneOnOne.month_year == month_year,
        )
        .scalar()
    )
    return (current or 0) + 1


def allocate_session(
    developer_id: str,
    manager_id: str,
    month_year: str,
    team_id: str | None = None,
    title: str | None = None,
) -> OneOnOne:
    """Insert a draft session with the next free session number.

    The insert runs in a savepoint. The caller commits.

    Raises:
        ConflictError: No free number was won after MAX_ALLOCATION_ATTEMPTS.
    """
    for attempt in range(1, MAX_ALLOCATION_ATTEMPTS + 1):
        number = next_session_number(developer_id, manager_id, month_year)
        session = OneOnOne(
            developer_id=developer_id,
            manager_id=manager_id,
            team_id=team_id,
            month_year=month_year,
            session_number=number,
            title=title or f"Session {number}",
            status=SessionStatus.DRAFT,
        )
        try:
            with db.session.begin_nested():
                db.session.add(session)
        except IntegrityError:
            logger.warning(
                f"Session number {number} for developer {developer_id} in {month_year} "
                f"was taken concurrently (attempt {attempt}/{MAX_ALLOCATION_ATTEMPTS})"
            )
            continue
        return session

    raise ConflictError("Could not allocate a session number, please retry")


def _resolve_manager(user: User, developer: User) -> Team:
    """Team (with a manager) the new session belongs to."""
    team = require_team_manager_or_admin(user, developer)
    if team is None:
        raise ValidationError(f"{developer.display_name} is not assigned to a team")
    if team.manager_id is None:
        raise ValidationError("Developer does not have a manager assigned")
    return team


def create_session(
    user: User,
    developer_id: str,
    month_year: str,
    title: str | None = None,
) -> OneOnOne:
    """Create the next session for a developer (managers of their team, or admins)."""
    require_manager_or_admin(user)
    month_year = validate_month_year(month_year)
    developer = db.session.get(User, developer_id)
    if developer is None:
        raise NotFoundError("Developer not found")
    team = _resolve_manager(user, developer)

    with storage_errors("create 1-on-1"):
        session = allocate_session(developer.id, team.manager_id, month_year, team.id, title)
        db.session.commit()

    logger.info(
        f"Created 1-on-1 {session.id} ({session.title}) for developer {developer.id} "
        f"in {month_year} by user {user.id}"
    )
    return session


def get_or_create_current_month(user: User, developer_id: str, today: date | None = None) -> OneOnOne:
    """Return the developer's latest session this month, creating Session 1 if none.

    Allowed for the developer, a manager of one of their teams, or an admin.
    """
    developer = db.session.get(User, developer_id)
    if developer is None:
        raise NotFoundError("Developer not found")

    teams = [t for t in developer.teams if t.manager_id is not None]
    is_their_manager = any(t.manager_id == user.id for t in teams)
    if user.id != developer.id and not is_their_manager and user.role != UserRole.ADMIN:
        raise AuthorizationError("You do not have permission to access this 1-on-1")
    if not teams:
        raise ValidationError("Developer does not have a manager assigned")

    team = next((t for t in teams if t.manager_id == user.id), teams[0])
    month_year = current_month(today)

    existing = (
        OneOnOne.query.filter_by(
            developer_id=developer.id, manager_id=team.manager_id, month_year=month_year
        )
        .order_by(OneOnOne.session_number.desc())
        .first()
    )
    if existing is not None:
        return existing

    with storage_errors("create 1-on-1"):
        session = allocate_session(developer.id, team.manager_id, month_year, team.id)
        db.session.commit()
    logger.info(f"Created current-month 1-on-1 {session.id} for developer {developer.id}")
    return session


def _has_session(developer_id: str, manager_id: str, month_year: str) -> bool:
    return (
        OneOnOne.query.filter_by(
            developer_id=developer_id, manager_id=manager_id, month_year=month_year
        ).first()
        is not None
    )


def _bulk_targets(user: User, developer_ids, team_id):
    """Return [(developer_id, team_or_None)] for a bulk request."""
    if developer_ids is not None:
        if not isinstance(developer_ids, list) or not developer_ids:
            raise ValidationError("developer_ids must be a non-empty array")
        return [(developer_id, None) for developer_id in developer_ids]

    if team_id:
        team = db.session.get(Team, team_id)
        if team is None:
            raise NotFoundError("Team not found")
        if user.role != UserRole.ADMIN and team.manager_id != user.id:
            raise AuthorizationError("You can only create 1-on-1s for your team members")
        teams = [team]
    else:
        team_ids = managed_team_ids(user)
        if not team_ids:
            raise NotFoundError("Team not found")
        teams = Team.query.filter(Team.id.in_(team_ids)).order_by(Team.name.asc()).all()

    targets = []
    seen = set()
    for team in teams:
        if team.manager_id is None:
            raise ValidationError(f"Team {team.name} has no manager")
        for member in sorted(team.members, key=lambda m: m.email):
            if member.role != UserRole.DEVELOPER or member.id == team.manager_id:
                continue
            if member.id in seen:
                continue
            seen.add(member.id)
            targets.append((member.id, team))
    return targets


def bulk_create_sessions(
    user: User,
    month_year: str,
    developer_ids: list[str] | None = None,
    team_id: str | None = None,
    additional: bool = False,
) -> BulkResult:
    """
    Create one draft session per target developer for ``month_year``.

    Targets are the explicit ``developer_ids``, else every developer on
    ``team_id``, else every developer on the caller's teams. A developer who
    already has a session with that manager this month is skipped unless
    ``additional`` is set, in which case the next session number is used.
    Each developer is committed independently; failures are collected.
    """
    require_manager_or_admin(user)
    month_year = validate_month_year(month_year)
    targets = _bulk_targets(user, developer_ids, team_id)

    result = BulkResult(total=len(targets))
    for developer_id, team in targets:
        developer = db.session.get(User, developer_id)
        if developer is None:
            result.fail(f"Developer {developer_id}: not found")
            continue
        label = f"Developer {developer.email}"
        try:
            if team is None:
                team = _resolve_manager(user, developer)
            if not additional and _has_session(developer.id, team.manager_id, month_year):
                result.skipped += 1
                continue
            allocate_session(developer.id, team.manager_id, month_year, team.id)
            db.session.commit()
            result.created += 1
        except AuthorizationError:
            result.fail(f"{label}: not your team member")
        except ServiceError as e:
            db.session.rollback()
            result.fail(f"{label}: {e.message}")
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Bulk 1-on-1 creation failed for developer {developer.id}: {e}")
            result.fail(f"{label}: {e}")

    logger.info(f"Bulk 1-on-1 creation for {month_year} by user {user.id}: {result.to_dict()}")
    return result
