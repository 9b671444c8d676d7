"""Notification inbox and admin notification endpoints."""

import logging

from flask import Blueprint, jsonify, request

from ..services import notifications as notification_service
from ..services.errors import ValidationError
from ..services.identity import current_user
from .serializers import envelope, notification_to_dict

logger = logging.getLogger(__name__)

notifications_bp = Blueprint("notifications", __name__)


def _int_arg(name: str, default: int) -> int:
    value = request.args.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"{name} must be an integer")


# --- Inbox ---


@notifications_bp.route("/api/notifications", methods=["GET"])
def list_notifications():
    """
    The caller's notifications, newest first.

    Query params:
        - limit (optional, default 50, max 200)
        - unread_only (optional): "true" to hide read notifications
    """
    notifications = notification_service.list_notifications(
        current_user(),
        limit=_int_arg("limit", notification_service.DEFAULT_INBOX_LIMIT),
        unread_only=request.args.get("unread_only", "").lower() in ("1", "true", "yes"),
    )
    return jsonify([notification_to_dict(n) for n in notifications])


@notifications_bp.route("/api/notifications/unread-count", methods=["GET"])
def unread_count():
    return jsonify({"count": notification_service.unread_count(current_user())})


@notifications_bp.route("/api/notifications/read", methods=["POST"])
def mark_read():
    """Mark notifications as read. Accepts JSON ``{notification_ids: [...]}``."""
    data = request.get_json(silent=True) or {}
    updated = notification_service.mark_read(current_user(), data.get("notification_ids"))
    return envelope({"updated": updated})


@notifications_bp.route("/api/notifications/read-all", methods=["POST"])
def mark_all_read():
    updated = notification_service.mark_all_read(current_user())
    return envelope({"updated": updated})


@notifications_bp.route("/api/notifications/<notification_id>", methods=["DELETE"])
def delete_notification(notification_id: str):
    notification_service.delete_notification(current_user(), notification_id)
    return envelope({"id": notification_id})


# --- Admin ---


@notifications_bp.route("/api/admin/notifications", methods=["POST"])
def admin_create_notification():
    """
    Create a notification for any user.

    Accepts JSON:
        - user_id, notification_type, title, message (required)
        - related_id, related_type (optional)

    Returns:
        201: {success, data: notification}
    """
    data = request.get_json(silent=True) or {}
    if not data.get("user_id") or not data.get("notification_type"):
        raise ValidationError("user_id and notification_type are required")

    notification = notification_service.admin_create_notification(
        current_user(),
        user_id=data["user_id"],
        notification_type=data["notification_type"],
        title=data.get("title"),
        message=data.get("message"),
        related_id=data.get("related_id"),
        related_type=data.get("related_type"),
    )
    return envelope(notification_to_dict(notification), 201)


@notifications_bp.route("/api/admin/notifications/scan-overdue", methods=["POST"])
def scan_overdue():
    result = notification_service.scan_overdue(current_user())
    return envelope(result.to_dict())


@notifications_bp.route("/api/admin/notifications/scan-due-soon", methods=["POST"])
def scan_due_soon():
    result = notification_service.scan_due_soon(current_user())
    return envelope(result.to_dict())
