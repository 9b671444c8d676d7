"""Sign-in callback and current-user endpoints."""

import logging

from flask import Blueprint, jsonify, request

from ..services.identity import current_user, provision_user, verify_provider_secret
from .serializers import envelope, user_to_dict

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__)


@auth_bp.route("/auth/callback", methods=["POST"])
def auth_callback():
    """Provision or refresh a user from the identity provider's verified profile.

    Requires ``Authorization: Bearer <auth.provider_secret>``.

    Accepts JSON:
        - email (required)
        - full_name (optional)
        - avatar_url (optional)

    Returns:
        200/201: {success, data: {token, user, created}}
        400: Missing email
        401: Missing or invalid provider secret
    """
    verify_provider_secret(request.headers.get("Authorization"))
    data = request.get_json(silent=True) or {}

    result = provision_user(
        email=data.get("email", ""),
        full_name=data.get("full_name"),
        avatar_url=data.get("avatar_url"),
    )
    return envelope(
        {
            "token": result.token,
            "user": user_to_dict(result.user),
            "created": result.created,
        },
        201 if result.created else 200,
    )


@auth_bp.route("/api/me", methods=["GET"])
def get_me():
    """Profile and team ids of the authenticated caller."""
    return jsonify(user_to_dict(current_user()))
