"""Metrics computation, snapshot persistence and the follow-up run queue.

``compute_metrics`` is pure. ``calculate_and_save_metrics`` persists its
result as one snapshot per session through a conditional upsert.
Completing a session enqueues a ``MetricsRun``; runs execute after the
status change commits and failed runs are retried by
``process_pending_runs`` (``flask metrics process``).
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Iterable

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..config import get_metrics_config
from ..database import db, generate_id, upsert_statement
from ..models.answer import Answer, ParticipantRole
from ..models.metrics import MetricsRun, MetricsRunStatus, MetricsSnapshot
from ..models.one_on_one import OneOnOne, SessionStatus
from ..models.team import Team
from ..models.user import User, UserRole
from .authorization import managed_team_ids, require_admin, require_developer_visibility, require_self_or_admin
from .errors import NotFoundError, storage_errors
from .months import current_month, shift_month

logger = logging.getLogger(__name__)

# Months compared by the team trend, and months of history returned
TREND_LOOKBACK_MONTHS = 3
HISTORY_MONTHS = 6

DEFAULT_HISTORY_LIMIT = 12
MAX_HISTORY_LIMIT = 60


@dataclass
class SessionMetrics:
    """Aggregate ratings of one session."""

    average_score: float | None
    total_questions: int
    rating_questions: int
    developer_avg_rating: float | None
    manager_avg_rating: float | None
    rating_alignment: float | None
    developer_rating_count: int
    manager_rating_count: int

    def metric_data(self) -> dict:
        return {
            "total_questions": self.total_questions,
            "rating_questions": self.rating_questions,
            "developer_avg_rating": self.developer_avg_rating,
            "manager_avg_rating": self.manager_avg_rating,
            "rating_alignment": self.rating_alignment,
            "developer_rating_count": self.developer_rating_count,
            "manager_rating_count": self.manager_rating_count,
        }


def _mean(values: list[int]) -> float | None:
    if not values:
        return None
    return sum(values) / len(values)


def compute_metrics(answers: Iterable) -> SessionMetrics:
    """
    Compute rating metrics from a session's answers.

    Each answer needs ``question_id``, ``answer_type`` and ``rating_value``.
    Counts are explicit per type rather than inferred from the number of
    answers, so sessions where only one side answered are measured
    correctly.

    Args:
        answers: Answers of a single session

    Returns:
        SessionMetrics with averages, alignment and counts
    """
    answers = list(answers)
    rated = [a for a in answers if a.rating_value is not None]
    developer_ratings = [a.rating_value for a in rated if a.answer_type == ParticipantRole.DEVELOPER]
    manager_ratings = [a.rating_value for a in rated if a.answer_type == ParticipantRole.MANAGER]

    developer_avg = _mean(developer_ratings)
    manager_avg = _mean(manager_ratings)
    alignment = None
    if developer_avg is not None and manager_avg is not None:
        alignment = abs(developer_avg - manager_avg)

    return SessionMetrics(
        average_score=_mean([a.rating_value for a in rated]),
        total_questions=len({a.question_id for a in answers}),
        rating_questions=len({a.question_id for a in rated}),
        developer_avg_rating=developer_avg,
        manager_avg_rating=manager_avg,
        rating_alignment=alignment,
        developer_rating_count=len(developer_ratings),
        manager_rating_count=len(manager_ratings),
    )


def calculate_and_save_metrics(session_id: str) -> MetricsSnapshot | None:
    """Compute and upsert the snapshot for a completed session.

    Returns None (writing nothing) when the session is not completed or has
    no answers. Recalculating with unchanged answers rewrites the same row.

    Raises:
        NotFoundError: No such session.
        StorageError: The upsert failed.
    """
    session = db.session.get(OneOnOne, session_id)
    if session is None:
        raise NotFoundError("1-on-1 not found")
    if session.status != SessionStatus.COMPLETED:
        return None

    answers = Answer.query.filter_by(one_on_one_id=session_id).all()
    if not answers:
        return None

    metrics = compute_metrics(answers)
    now = datetime.now(timezone.utc)

    with storage_errors("save metrics"):
        stmt = upsert_statement(MetricsSnapshot).values(
            id=generate_id(),
            one_on_one_id=session.id,
            developer_id=session.developer_id,
            team_id=session.team_id,
            month_year=session.month_year,
            average_score=metrics.average_score,
            metric_data=metrics.metric_data(),
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["one_on_one_id"],
            set_={
                "developer_id": stmt.excluded.developer_id,
                "team_id": stmt.excluded.team_id,
                "month_year": stmt.excluded.month_year,
                "average_score": stmt.excluded.average_score,
                "metric_data": stmt.excluded.metric_data,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        db.session.execute(stmt)
        db.session.commit()

    logger.info(
        f"Metrics saved for 1-on-1 {session_id}: average={metrics.average_score} "
        f"alignment={metrics.rating_alignment}"
    )
    return MetricsSnapshot.query.filter_by(one_on_one_id=session_id).one()


def execute_run(run_id: str) -> MetricsRun | None:
    """Execute one metrics follow-up and record its outcome on the run.

    Failures are recorded (status ``failed`` and ``last_error``) and logged,
    never raised, so callers that already committed a status change are not
    affected.
    """
    run = db.session.get(MetricsRun, run_id)
    if run is None:
        logger.warning(f"Metrics run {run_id} not found")
        return None
    session_id = run.one_on_one_id

    error = None
    try:
        calculate_and_save_metrics(session_id)
    except Exception as e:
        db.session.rollback()
        error = f"{type(e).__name__}: {e}"
        logger.warning(f"Metrics run {run_id} for 1-on-1 {session_id} failed: {error}")

    try:
        run = db.session.get(MetricsRun, run_id)
        run.attempts += 1
        run.finished_at = datetime.now(timezone.utc)
        if error is None:
            run.status = MetricsRunStatus.SUCCEEDED
            run.last_error = None
        else:
            run.status = MetricsRunStatus.FAILED
            run.last_error = error[:2000]
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception(f"Failed to record outcome of metrics run {run_id}")
        return None

    return run


def process_pending_runs(max_attempts: int | None = None) -> dict:
    """Retry pending and failed runs that have attempts left.

    Args:
        max_attempts: Attempt ceiling; defaults to ``metrics.max_attempts``.

    Returns:
        Counts: {processed, succeeded, failed}
    """
    if max_attempts is None:
        max_attempts = get_metrics_config(current_app.config["APP_CONFIG"])["max_attempts"]

    run_ids = [
        row[0]
        for row in db.session.query(MetricsRun.id)
        .filter(
            MetricsRun.status.in_([MetricsRunStatus.PENDING, MetricsRunStatus.FAILED]),
            MetricsRun.attempts < max_attempts,
        )
        .order_by(MetricsRun.created_at.asc())
        .all()
    ]

    summary = {"processed": 0, "succeeded": 0, "failed": 0}
    for run_id in run_ids:
        run = execute_run(run_id)
        summary["processed"] += 1
        if run is not None and run.status == MetricsRunStatus.SUCCEEDED:
            summary["succeeded"] += 1
        else:
            summary["failed"] += 1

    if run_ids:
        logger.info(
            f"Processed {summary['processed']} metrics run(s): "
            f"{summary['succeeded']} succeeded, {summary['failed']} failed"
        )
    return summary


def recalculate_metrics(user: User, session_id: str) -> MetricsSnapshot | None:
    """Admin-triggered recalculation of one session's snapshot."""
    require_admin(user)
    return calculate_and_save_metrics(session_id)


# --- Read side ---


def developer_metrics_history(
    user: User, developer_id: str, limit: int = DEFAULT_HISTORY_LIMIT
) -> list[MetricsSnapshot]:
    """Most recent snapshots of a developer, newest month first. ``limit`` is clamped to 1..60."""
    limit = max(1, min(int(limit), MAX_HISTORY_LIMIT))
    if db.session.get(User, developer_id) is None:
        raise NotFoundError("Developer not found")
    require_developer_visibility(user, developer_id)
    return (
        MetricsSnapshot.query.filter_by(developer_id=developer_id)
        .order_by(MetricsSnapshot.month_year.desc(), MetricsSnapshot.updated_at.desc())
        .limit(limit)
        .all()
    )


def _manager_team_ids(user: User, manager_id: str) -> list[str]:
    require_self_or_admin(user, manager_id)
    manager = db.session.get(User, manager_id)
    if manager is None:
        raise NotFoundError("Manager not found")
    return managed_team_ids(manager)


def team_metrics(user: User, manager_id: str) -> list[dict]:
    """Developers on the manager's teams with their snapshots (newest first)."""
    team_ids = _manager_team_ids(user, manager_id)
    if not team_ids:
        return []

    developers = (
        User.query.join(User.teams)
        .filter(Team.id.in_(team_ids), User.role == UserRole.DEVELOPER)
        .distinct()
        .order_by(User.email.asc())
        .all()
    )
    if not developers:
        return []

    snapshots = (
        MetricsSnapshot.query.filter(MetricsSnapshot.developer_id.in_([d.id for d in developers]))
        .order_by(MetricsSnapshot.month_year.desc(), MetricsSnapshot.updated_at.desc())
        .all()
    )
    by_developer: dict[str, list[MetricsSnapshot]] = {}
    for snapshot in snapshots:
        by_developer.setdefault(snapshot.developer_id, []).append(snapshot)

    return [
        {
            "developer": developer,
            "metrics": by_developer.get(developer.id, []),
            "latest": (by_developer.get(developer.id) or [None])[0],
        }
        for developer in developers
    ]


def _average(values) -> float | None:
    values = [v for v in values if v is not None]
    return _mean(values)


def team_statistics(user: User, manager_id: str, today: date | None = None) -> dict | None:
    """
    Team statistics for a manager's teams.

    Returns None when the manager has no team. Otherwise:
        current_month_average: mean snapshot score this month
        average_alignment: mean rating alignment this month
        trend: percent change of the average vs. three months earlier
        historical_data: [{month_year, average_score}] for the last six months
        total_snapshots: snapshots this month
    """
    team_ids = _manager_team_ids(user, manager_id)
    if not team_ids:
        return None

    month = current_month(today)
    team_filter = MetricsSnapshot.team_id.in_(team_ids)

    current = MetricsSnapshot.query.filter(team_filter, MetricsSnapshot.month_year == month).all()
    past = MetricsSnapshot.query.filter(
        team_filter, MetricsSnapshot.month_year == shift_month(month, -TREND_LOOKBACK_MONTHS)
    ).all()
    history = (
        MetricsSnapshot.query.filter(
            team_filter, MetricsSnapshot.month_year >= shift_month(month, -HISTORY_MONTHS)
        )
        .order_by(MetricsSnapshot.month_year.asc())
        .all()
    )

    current_average = _average(s.average_score for s in current)
    past_average = _average(s.average_score for s in past)
    trend = None
    if current_average is not None and past_average:
        trend = (current_average - past_average) / past_average * 100

    return {
        "current_month_average": current_average,
        "average_alignment": _average((s.metric_data or {}).get("rating_alignment") for s in current),
        "trend": trend,
        "historical_data": [
            {"month_year": s.month_year, "average_score": s.average_score} for s in history
        ],
        "total_snapshots": len(current),
    }


def metrics_status_report(user: User) -> dict:
    """Admin view of which completed sessions have snapshots and run outcomes."""
    require_admin(user)

    completed = (
        OneOnOne.query.filter_by(status=SessionStatus.COMPLETED)
        .order_by(OneOnOne.month_year.desc())
        .all()
    )
    snapshot_ids = {
        row[0] for row in db.session.query(MetricsSnapshot.one_on_one_id).all()
    }

    details = []
    for session in completed:
        latest_run = (
            MetricsRun.query.filter_by(one_on_one_id=session.id)
            .order_by(MetricsRun.created_at.desc())
            .first()
        )
        details.append({
            "one_on_one_id": session.id,
            "month_year": session.month_year,
            "developer_id": session.developer_id,
            "has_metrics": session.id in snapshot_ids,
            "answer_count": Answer.query.filter_by(one_on_one_id=session.id).count(),
            "run_status": latest_run.status.value if latest_run else None,
            "run_attempts": latest_run.attempts if latest_run else 0,
            "last_error": latest_run.last_error if latest_run else None,
        })

    with_metrics = sum(1 for d in details if d["has_metrics"])
    return {
        "total_completed": len(details),
        "with_metrics": with_metrics,
        "without_metrics": len(details) - with_metrics,
        "details": details,
    }
