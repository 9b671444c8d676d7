"""Per-user and per-developer analytics built from sessions, action items and snapshots."""

import logging
from dataclasses import dataclass, field
from datetime import date

from sqlalchemy import and_, or_

from ..database import db
from ..models.action_item import OPEN_ACTION_STATUSES, ActionItem, ActionStatus
from ..models.answer import Answer, ParticipantRole
from ..models.metrics import MetricsSnapshot
from ..models.one_on_one import OneOnOne, SessionStatus
from ..models.user import User
from .authorization import require_developer_visibility, require_self_or_admin
from .errors import NotFoundError
from .months import current_month, shift_month

logger = logging.getLogger(__name__)

RECENT_SESSIONS = 5
RECENT_SNAPSHOTS = 6

DEFAULT_LOOKBACK_MONTHS = 6
MAX_LOOKBACK_MONTHS = 24

# Smallest change between the older and recent halves that counts as a trend
TREND_THRESHOLD = 0.1

PENDING_SESSION_STATUSES = (SessionStatus.DRAFT, SessionStatus.SUBMITTED)


@dataclass
class UserAnalytics:
    """Activity summary of one user across every session they take part in."""

    user: User
    stats: dict
    recent_sessions: list[OneOnOne] = field(default_factory=list)
    snapshots: list[MetricsSnapshot] = field(default_factory=list)
    action_items: list[ActionItem] = field(default_factory=list)


def _mean(values) -> float | None:
    values = [v for v in values if v is not None]
    if not values:
        return None
    return sum(values) / len(values)


def _load_user(user_id: str, message: str) -> User:
    target = db.session.get(User, user_id)
    if target is None:
        raise NotFoundError(message)
    return target


def rating_trend(values) -> str:
    """
    Direction of a series, oldest value first.

    The series is split at its midpoint and the mean of the recent half is
    compared to the mean of the older half. Missing values are skipped.

    Returns:
        "up", "down" or "stable" (fewer than two values, or a change below
        TREND_THRESHOLD)
    """
    values = [v for v in values if v is not None]
    if len(values) < 2:
        return "stable"

    midpoint = len(values) // 2
    diff = _mean(values[midpoint:]) - _mean(values[:midpoint])
    if abs(diff) < TREND_THRESHOLD:
        return "stable"
    return "up" if diff > 0 else "down"


def _assigned_items(user_id: str) -> list[ActionItem]:
    """Action items owned by ``user_id`` in the role they hold in each session."""
    return (
        ActionItem.query.join(OneOnOne, ActionItem.one_on_one_id == OneOnOne.id)
        .filter(
            or_(
                and_(OneOnOne.developer_id == user_id, ActionItem.assigned_to == ParticipantRole.DEVELOPER),
                and_(OneOnOne.manager_id == user_id, ActionItem.assigned_to == ParticipantRole.MANAGER),
            )
        )
        .order_by(ActionItem.created_at.desc())
        .all()
    )


def user_analytics(user: User, user_id: str, today: date | None = None) -> UserAnalytics:
    """Session, action item and score summary for one user (self or admin)."""
    require_self_or_admin(user, user_id)
    target = _load_user(user_id, "User not found")
    today = today or date.today()

    sessions = (
        OneOnOne.query.filter(or_(OneOnOne.developer_id == user_id, OneOnOne.manager_id == user_id))
        .order_by(OneOnOne.month_year.desc(), OneOnOne.session_number.desc())
        .all()
    )
    snapshots = (
        MetricsSnapshot.query.filter_by(developer_id=user_id)
        .order_by(MetricsSnapshot.month_year.desc())
        .limit(RECENT_SNAPSHOTS)
        .all()
    )
    items = _assigned_items(user_id)

    total = len(sessions)
    completed = sum(1 for s in sessions if s.status == SessionStatus.COMPLETED)
    stats = {
        "total_one_on_ones": total,
        "completed_one_on_ones": completed,
        "pending_one_on_ones": sum(1 for s in sessions if s.status in PENDING_SESSION_STATUSES),
        "total_action_items": len(items),
        "completed_action_items": sum(1 for i in items if i.status == ActionStatus.COMPLETED),
        "pending_action_items": sum(1 for i in items if i.status in OPEN_ACTION_STATUSES),
        "overdue_action_items": sum(
            1 for i in items
            if i.status != ActionStatus.COMPLETED and i.due_date is not None and i.due_date < today
        ),
        "average_score": _mean(s.average_score for s in snapshots),
        "completion_rate": completed / total * 100 if total else 0.0,
    }

    return UserAnalytics(
        user=target,
        stats=stats,
        recent_sessions=sessions[:RECENT_SESSIONS],
        snapshots=snapshots,
        action_items=items,
    )


def _category_scores(developer_id: str) -> dict | None:
    """Developer answers of the latest completed session, averaged per question category."""
    latest = (
        OneOnOne.query.filter_by(developer_id=developer_id, status=SessionStatus.COMPLETED)
        .order_by(OneOnOne.month_year.desc(), OneOnOne.session_number.desc())
        .first()
    )
    if latest is None:
        return None

    answers = Answer.query.filter_by(
        one_on_one_id=latest.id, answer_type=ParticipantRole.DEVELOPER
    ).all()

    by_category: dict[str, list[int]] = {}
    for answer in answers:
        if answer.rating_value is None or answer.question.category is None:
            continue
        by_category.setdefault(answer.question.category.value, []).append(answer.rating_value)

    return {
        "one_on_one_id": latest.id,
        "month_year": latest.month_year,
        "answers": answers,
        "categories": {category: _mean(ratings) for category, ratings in sorted(by_category.items())},
    }


def developer_analytics(
    user: User,
    developer_id: str,
    months: int = DEFAULT_LOOKBACK_MONTHS,
    today: date | None = None,
) -> dict:
    """
    Rating history, category scores and trends for one developer.

    Args:
        user: Caller (self, admin, or a manager of one of the developer's teams)
        developer_id: Developer to analyse
        months: Look-back window, clamped to 1..24
        today: Reference date for the window

    Returns:
        Dict with developer, monthly_metrics (oldest first), category_scores
        (None without a completed session), overall_stats and trends
    """
    developer = _load_user(developer_id, "Developer not found")
    require_developer_visibility(user, developer_id)
    months = max(1, min(int(months), MAX_LOOKBACK_MONTHS))
    start_month = shift_month(current_month(today), -months)

    snapshots = (
        MetricsSnapshot.query.filter(
            MetricsSnapshot.developer_id == developer_id,
            MetricsSnapshot.month_year >= start_month,
        )
        .order_by(MetricsSnapshot.month_year.asc(), MetricsSnapshot.updated_at.asc())
        .all()
    )

    monthly = []
    for snapshot in snapshots:
        data = snapshot.metric_data or {}
        monthly.append({
            "one_on_one_id": snapshot.one_on_one_id,
            "month_year": snapshot.month_year,
            "average_score": snapshot.average_score,
            "developer_avg_rating": data.get("developer_avg_rating"),
            "manager_avg_rating": data.get("manager_avg_rating"),
            "rating_alignment": data.get("rating_alignment"),
        })

    developer_ratings = [m["developer_avg_rating"] for m in monthly]
    manager_ratings = [m["manager_avg_rating"] for m in monthly]
    alignments = [m["rating_alignment"] for m in monthly]

    return {
        "developer": developer,
        "start_month": start_month,
        "monthly_metrics": monthly,
        "category_scores": _category_scores(developer_id),
        "overall_stats": {
            "avg_developer_rating": _mean(developer_ratings),
            "avg_manager_rating": _mean(manager_ratings),
            "avg_alignment": _mean(alignments),
            "total_one_on_ones": len(monthly),
        },
        "trends": {
            "developer_rating_trend": rating_trend(developer_ratings),
            "manager_rating_trend": rating_trend(manager_ratings),
            "alignment_trend": rating_trend(alignments),
        },
    }
