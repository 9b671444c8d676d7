"""Manager dashboard statistics and session export."""

import logging

from sqlalchemy.orm import selectinload

from ..database import db
from ..models.one_on_one import OneOnOne, SessionStatus
from ..models.team import Team
from ..models.user import User, UserRole
from .authorization import managed_team_ids, require_manager_or_admin
from .errors import NotFoundError, ValidationError
from .months import validate_month_year

logger = logging.getLogger(__name__)


def manager_stats(user: User, month_year: str) -> dict | None:
    """
    Session counts for the caller's teams in ``month_year``.

    ``draft`` counts developers who have not moved past draft: total
    developers minus submitted, reviewed and completed sessions (floored
    at zero). Returns None if the caller manages no team.
    """
    require_manager_or_admin(user)
    month_year = validate_month_year(month_year)

    team_ids = managed_team_ids(user)
    if not team_ids:
        return None

    total_members = (
        User.query.join(User.teams)
        .filter(Team.id.in_(team_ids), User.role == UserRole.DEVELOPER)
        .distinct()
        .count()
    )
    statuses = [
        row[0]
        for row in db.session.query(OneOnOne.status)
        .filter(OneOnOne.manager_id == user.id, OneOnOne.month_year == month_year)
        .all()
    ]

    stats = {
        "month_year": month_year,
        "total_members": total_members,
        "submitted": statuses.count(SessionStatus.SUBMITTED),
        "reviewed": statuses.count(SessionStatus.REVIEWED),
        "completed": statuses.count(SessionStatus.COMPLETED),
    }
    stats["draft"] = max(
        0, total_members - stats["submitted"] - stats["reviewed"] - stats["completed"]
    )
    return stats


def export_sessions(
    user: User,
    start_month: str,
    end_month: str,
    team_id: str | None = None,
) -> list[OneOnOne]:
    """Sessions in a month range with answers, notes, action items and snapshot loaded.

    Managers only see sessions of teams they manage; admins see everything
    and may filter by ``team_id``.
    """
    require_manager_or_admin(user)
    start_month = validate_month_year(start_month, "start_month")
    end_month = validate_month_year(end_month, "end_month")
    if start_month > end_month:
        raise ValidationError("start_month must not be after end_month")

    query = (
        OneOnOne.query.options(
            selectinload(OneOnOne.answers),
            selectinload(OneOnOne.notes),
            selectinload(OneOnOne.action_items),
            selectinload(OneOnOne.metrics_snapshot),
            selectinload(OneOnOne.developer),
            selectinload(OneOnOne.manager),
        )
        .filter(OneOnOne.month_year >= start_month, OneOnOne.month_year <= end_month)
    )

    if user.role == UserRole.ADMIN:
        if team_id:
            if db.session.get(Team, team_id) is None:
                raise NotFoundError("Team not found")
            query = query.filter(OneOnOne.team_id == team_id)
    else:
        team_ids = managed_team_ids(user)
        if team_id:
            if team_id not in team_ids:
                raise NotFoundError("Team not found")
            team_ids = [team_id]
        if not team_ids:
            return []
        query = query.filter(OneOnOne.team_id.in_(team_ids))

    sessions = query.order_by(OneOnOne.month_year.asc(), OneOnOne.session_number.asc()).all()
    logger.info(
        f"Export of {len(sessions)} 1-on-1(s) for {start_month}..{end_month} by user {user.id}"
    )
    return sessions
