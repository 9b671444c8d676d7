"""Action item endpoints."""

import logging

from flask import Blueprint, jsonify, request

from ..services import action_items as action_service
from ..services.identity import current_user
from .serializers import action_item_to_dict, envelope

logger = logging.getLogger(__name__)

action_items_bp = Blueprint("action_items", __name__)


@action_items_bp.route("/api/one-on-ones/<session_id>/action-items", methods=["POST"])
def create_action_item(session_id: str):
    """
    Add an action item to a session.

    Accepts JSON:
        - description (required)
        - assigned_to (required): developer or manager
        - due_date (optional): YYYY-MM-DD

    Returns:
        201: {success, data: item}
    """
    data = request.get_json(silent=True) or {}
    item = action_service.create_action_item(
        current_user(),
        session_id,
        data.get("description"),
        data.get("assigned_to"),
        data.get("due_date"),
    )
    return envelope(action_item_to_dict(item), 201)


@action_items_bp.route("/api/one-on-ones/<session_id>/action-items", methods=["GET"])
def list_action_items(session_id: str):
    items = action_service.list_action_items(current_user(), session_id)
    return jsonify([action_item_to_dict(i) for i in items])


@action_items_bp.route("/api/action-items/mine", methods=["GET"])
def my_action_items():
    items = action_service.my_pending_action_items(current_user())
    return jsonify([action_item_to_dict(i) for i in items])


@action_items_bp.route("/api/action-items/<item_id>", methods=["PATCH"])
def update_action_item(item_id: str):
    """Update description, status and/or due_date of an item."""
    data = request.get_json(silent=True) or {}
    item = action_service.update_action_item(current_user(), item_id, data)
    return envelope(action_item_to_dict(item))


@action_items_bp.route("/api/action-items/<item_id>", methods=["DELETE"])
def delete_action_item(item_id: str):
    action_service.delete_action_item(current_user(), item_id)
    return envelope({"id": item_id})
