"""Caller identity: provider sign-in, signed session tokens, request resolution.

The external identity provider is out of scope. It posts the verified
profile to ``/auth/callback``; from then on clients authenticate with the
signed token returned here.
"""

import hmac
import logging
from dataclasses import dataclass

from flask import current_app, g, request
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from ..config import get_auth_config
from ..database import db
from ..models.user import User, UserRole
from .errors import AuthenticationError, ValidationError, storage_errors

logger = logging.getLogger(__name__)

TOKEN_SALT = "review-tracker-session"


@dataclass
class SignInResult:
    """Result of a provider sign-in."""

    user: User
    token: str
    created: bool


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=TOKEN_SALT)


def issue_token(user: User) -> str:
    """Sign a session token carrying the user id."""
    return _serializer().dumps({"uid": user.id})


def load_token(token: str) -> str:
    """Return the user id inside ``token``.

    Raises:
        AuthenticationError: If the token is malformed, tampered or expired.
    """
    max_age = get_auth_config(current_app.config["APP_CONFIG"])["token_max_age_seconds"]
    try:
        payload = _serializer().loads(token, max_age=max_age)
    except SignatureExpired:
        raise AuthenticationError("Session token expired")
    except BadSignature:
        raise AuthenticationError("Invalid session token")

    user_id = payload.get("uid") if isinstance(payload, dict) else None
    if not user_id:
        raise AuthenticationError("Invalid session token")
    return user_id


def verify_provider_secret(auth_header: str | None) -> None:
    """Check the bearer secret the identity provider sends to the callback."""
    secret = get_auth_config(current_app.config["APP_CONFIG"])["provider_secret"]
    if not secret:
        raise AuthenticationError("Identity provider callback is not configured")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise AuthenticationError("Missing provider credentials")
    if not hmac.compare_digest(auth_header[7:], secret):
        raise AuthenticationError("Invalid provider credentials")


def provision_user(
    email: str,
    full_name: str | None = None,
    avatar_url: str | None = None,
) -> SignInResult:
    """Create the user on first sign-in, refresh their profile afterwards.

    New users always start as developers; roles only change through an admin.
    """
    if email is not None and not isinstance(email, str):
        raise ValidationError("email must be a string")
    if not email or not email.strip():
        raise ValidationError("email is required")
    email = email.strip().lower()

    with storage_errors("sign in"):
        user = User.query.filter_by(email=email).first()
        created = user is None
        if created:
            user = User(
                email=email,
                full_name=full_name,
                avatar_url=avatar_url,
                role=UserRole.DEVELOPER,
            )
            db.session.add(user)
        else:
            if full_name:
                user.full_name = full_name
            if avatar_url:
                user.avatar_url = avatar_url
        db.session.commit()

    if created:
        logger.info(f"Provisioned new user {user.id} ({user.email})")
    return SignInResult(user=user, token=issue_token(user), created=created)


def resolve_request_user() -> User:
    """Resolve the caller from ``Authorization: Bearer <token>``.

    The user is cached on ``flask.g`` for the rest of the request.
    """
    cached = g.get("current_user")
    if cached is not None:
        return cached

    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        raise AuthenticationError("Authentication required")

    user_id = load_token(auth_header[7:])
    user = db.session.get(User, user_id)
    if user is None:
        raise AuthenticationError("Unknown user")

    g.current_user = user
    return user


def current_user() -> User:
    """The authenticated caller of the current request."""
    return resolve_request_user()
