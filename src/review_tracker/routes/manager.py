"""Manager endpoints: session creation, reminders, stats and export."""

import logging

from flask import Blueprint, jsonify, request

from ..services import one_on_ones as session_service
from ..services.errors import ValidationError
from ..services.identity import current_user
from ..services.months import current_month
from ..services.notifications import send_bulk_reminders
from ..services.reporting import export_sessions, manager_stats
from .serializers import envelope, export_to_dict, session_to_dict

logger = logging.getLogger(__name__)

manager_bp = Blueprint("manager", __name__, url_prefix="/api/manager")


@manager_bp.route("/one-on-ones", methods=["POST"])
def create_session():
    """
    Create the next session for one developer.

    Accepts JSON:
        - developer_id (required)
        - month_year (required): YYYY-MM
        - title (optional): defaults to "Session N"

    Returns:
        201: {success, data: session}
    """
    data = request.get_json(silent=True) or {}
    if not data.get("developer_id"):
        raise ValidationError("developer_id is required")

    session = session_service.create_session(
        current_user(), data["developer_id"], data.get("month_year"), data.get("title")
    )
    return envelope(session_to_dict(session), 201)


@manager_bp.route("/one-on-ones/bulk", methods=["POST"])
def bulk_create_sessions():
    """
    Create sessions for many developers at once.

    Accepts JSON:
        - month_year (required)
        - developer_ids (optional): explicit targets
        - team_id (optional): every developer on the team
        - additional (optional): create another session for developers
          who already have one this month

    Returns:
        200: {success, data: {total, created, skipped, failed, errors}}
    """
    data = request.get_json(silent=True) or {}
    result = session_service.bulk_create_sessions(
        current_user(),
        data.get("month_year"),
        developer_ids=data.get("developer_ids"),
        team_id=data.get("team_id"),
        additional=bool(data.get("additional", False)),
    )
    return envelope(result.to_dict())


@manager_bp.route("/reminders", methods=["POST"])
def send_reminders():
    """Remind developers whose session for ``month_year`` is still a draft."""
    data = request.get_json(silent=True) or {}
    result = send_bulk_reminders(current_user(), data.get("month_year"), data.get("team_id"))
    return envelope(result.to_dict())


@manager_bp.route("/stats", methods=["GET"])
def get_stats():
    """Per-status counts for the caller's teams (``?month_year=``, default this month)."""
    stats = manager_stats(current_user(), request.args.get("month_year") or current_month())
    return jsonify(stats)


@manager_bp.route("/export", methods=["GET"])
def export():
    """
    Export sessions in a month range.

    Query params:
        - start_month, end_month (required)
        - team_id (optional)
    """
    sessions = export_sessions(
        current_user(),
        request.args.get("start_month"),
        request.args.get("end_month"),
        team_id=request.args.get("team_id"),
    )
    return jsonify([export_to_dict(s) for s in sessions])
