"""Metrics and analytics endpoints, plus admin metrics maintenance."""

import logging

from flask import Blueprint, jsonify, request

from ..services import analytics as analytics_service
from ..services import metrics as metrics_service
from ..services.errors import ValidationError
from ..services.identity import current_user
from ..services.authorization import require_admin
from .serializers import (
    action_item_to_dict,
    answer_to_dict,
    envelope,
    session_to_dict,
    snapshot_to_dict,
    user_summary,
    user_to_dict,
)

logger = logging.getLogger(__name__)

metrics_bp = Blueprint("metrics", __name__)


@metrics_bp.route("/api/metrics/developers/<developer_id>", methods=["GET"])
def developer_history(developer_id: str):
    """Recent snapshots of a developer (``?limit=``, default 12)."""
    try:
        limit = int(request.args.get("limit", metrics_service.DEFAULT_HISTORY_LIMIT))
    except ValueError:
        raise ValidationError("limit must be an integer")
    snapshots = metrics_service.developer_metrics_history(current_user(), developer_id, limit=limit)
    return jsonify([snapshot_to_dict(s) for s in snapshots])


@metrics_bp.route("/api/metrics/managers/<manager_id>/team", methods=["GET"])
def team_metrics(manager_id: str):
    rows = metrics_service.team_metrics(current_user(), manager_id)
    return jsonify([
        {
            "developer": user_summary(row["developer"]),
            "metrics": [snapshot_to_dict(s) for s in row["metrics"]],
            "latest": snapshot_to_dict(row["latest"]),
        }
        for row in rows
    ])


@metrics_bp.route("/api/metrics/managers/<manager_id>/statistics", methods=["GET"])
def team_statistics(manager_id: str):
    """Current-month average, alignment, trend and six-month history (null without a team)."""
    return jsonify(metrics_service.team_statistics(current_user(), manager_id))


# --- Analytics ---


@metrics_bp.route("/api/analytics/users/<user_id>", methods=["GET"])
def user_analytics(user_id: str):
    """Session, action item and score summary of a user (self or admin)."""
    result = analytics_service.user_analytics(current_user(), user_id)
    return jsonify({
        "user": user_to_dict(result.user),
        "stats": result.stats,
        "recent_one_on_ones": [session_to_dict(s) for s in result.recent_sessions],
        "performance_metrics": [snapshot_to_dict(s) for s in result.snapshots],
        "action_items": [action_item_to_dict(i) for i in result.action_items],
    })


@metrics_bp.route("/api/analytics/developers/<developer_id>", methods=["GET"])
def developer_analytics(developer_id: str):
    """
    Rating history, latest category scores and trends of a developer.

    Query params:
        - months (optional, default 6, max 24)
    """
    try:
        months = int(request.args.get("months", analytics_service.DEFAULT_LOOKBACK_MONTHS))
    except ValueError:
        raise ValidationError("months must be an integer")

    data = analytics_service.developer_analytics(current_user(), developer_id, months=months)
    categories = data["category_scores"]
    if categories is not None:
        categories = {
            **categories,
            "answers": [answer_to_dict(a, include_question=True) for a in categories["answers"]],
        }
    return jsonify({
        **data,
        "developer": user_summary(data["developer"]),
        "category_scores": categories,
    })


# --- Admin ---


@metrics_bp.route("/api/admin/metrics/status", methods=["GET"])
def metrics_status():
    return jsonify(metrics_service.metrics_status_report(current_user()))


@metrics_bp.route("/api/admin/metrics/recalculate", methods=["POST"])
def recalculate():
    """
    Recalculate one session's snapshot.

    Accepts JSON:
        - one_on_one_id (required)

    Returns:
        200: {success, data: snapshot or null}
    """
    data = request.get_json(silent=True) or {}
    if not data.get("one_on_one_id"):
        raise ValidationError("one_on_one_id is required")
    snapshot = metrics_service.recalculate_metrics(current_user(), data["one_on_one_id"])
    return envelope(snapshot_to_dict(snapshot))


@metrics_bp.route("/api/admin/metrics/process", methods=["POST"])
def process_runs():
    """Retry pending and failed metrics follow-ups."""
    require_admin(current_user())
    return envelope(metrics_service.process_pending_runs())
