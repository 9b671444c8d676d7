"""Admin team and user management endpoints."""

import logging

from flask import Blueprint, jsonify, request

from ..services import admin as admin_service
from ..services.identity import current_user
from .serializers import envelope, team_to_dict, user_to_dict

logger = logging.getLogger(__name__)

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


# --- Teams ---


@admin_bp.route("/teams", methods=["GET"])
def list_teams():
    teams = admin_service.list_teams(current_user())
    return jsonify([team_to_dict(t) for t in teams])


@admin_bp.route("/teams", methods=["POST"])
def create_team():
    """Create a team.

    Accepts JSON:
        - name (required)
        - manager_id (optional)
    """
    data = request.get_json(silent=True) or {}
    team = admin_service.create_team(current_user(), data.get("name"), data.get("manager_id"))
    return envelope(team_to_dict(team), 201)


@admin_bp.route("/teams/<team_id>", methods=["PATCH"])
def update_team(team_id: str):
    """Update a team's name and/or manager (``manager_id: null`` clears it)."""
    data = request.get_json(silent=True) or {}
    updates = {k: data[k] for k in ("name", "manager_id") if k in data}
    team = admin_service.update_team(current_user(), team_id, updates)
    return envelope(team_to_dict(team))


@admin_bp.route("/teams/<team_id>", methods=["DELETE"])
def delete_team(team_id: str):
    """Delete a team with no members (400 otherwise)."""
    admin_service.delete_team(current_user(), team_id)
    return envelope({"id": team_id})


# --- Users ---


@admin_bp.route("/users", methods=["GET"])
def list_users():
    users = admin_service.list_users(current_user())
    return jsonify([user_to_dict(u) for u in users])


@admin_bp.route("/users/<user_id>", methods=["GET"])
def get_user(user_id: str):
    return envelope(user_to_dict(admin_service.get_user(current_user(), user_id)))


@admin_bp.route("/users/<user_id>", methods=["PATCH"])
def update_user(user_id: str):
    """Update a user's role and/or team assignments.

    Accepts JSON:
        - role (optional): admin, manager or developer
        - team_ids (optional): replaces the full membership set
    """
    data = request.get_json(silent=True) or {}
    updates = {k: data[k] for k in ("role", "team_ids") if k in data}
    user = admin_service.update_user(current_user(), user_id, updates)
    return envelope(user_to_dict(user))
