"""Tests for provider sign-in and session tokens."""

import pytest
from itsdangerous import URLSafeTimedSerializer

from review_tracker.models import User, UserRole
from review_tracker.services.errors import AuthenticationError, ValidationError
from review_tracker.services.identity import (
    TOKEN_SALT,
    issue_token,
    load_token,
    provision_user,
    verify_provider_secret,
)

from ..conftest import PROVIDER_SECRET
from ..factories import UserFactory


class TestProvisionUser:

    def test_first_sign_in_creates_developer(self, db_session):
        result = provision_user(" New.Person@Example.com ", "New Person", "https://img/1.png")

        assert result.created is True
        assert result.user.email == "new.person@example.com"
        assert result.user.role == UserRole.DEVELOPER
        assert load_token(result.token) == result.user.id

    def test_returning_user_keeps_role(self, db_session):
        existing = UserFactory(email="lead@example.com", role=UserRole.MANAGER, full_name="Old Name")

        result = provision_user("lead@example.com", "New Name")

        assert result.created is False
        assert result.user.id == existing.id
        assert result.user.role == UserRole.MANAGER
        assert result.user.full_name == "New Name"
        assert User.query.count() == 1

    def test_blank_profile_fields_do_not_overwrite(self, db_session):
        UserFactory(email="lead@example.com", full_name="Kept")
        result = provision_user("lead@example.com", None)
        assert result.user.full_name == "Kept"

    def test_email_required(self, db_session):
        with pytest.raises(ValidationError):
            provision_user("  ")

    def test_email_must_be_a_string(self, db_session):
        with pytest.raises(ValidationError) as exc:
            provision_user(123)
        assert exc.value.message == "email must be a string"
        assert User.query.count() == 0


class TestTokens:

    def test_tampered_token(self, db_session):
        token = issue_token(UserFactory())
        with pytest.raises(AuthenticationError):
            load_token(token + "x")

    def test_foreign_key_is_rejected(self, app):
        with app.app_context():
            forged = URLSafeTimedSerializer("someone-else", salt=TOKEN_SALT).dumps({"uid": "abc"})
            with pytest.raises(AuthenticationError):
                load_token(forged)

    def test_payload_without_uid(self, app):
        with app.app_context():
            token = URLSafeTimedSerializer(app.config["SECRET_KEY"], salt=TOKEN_SALT).dumps({"id": "abc"})
            with pytest.raises(AuthenticationError):
                load_token(token)

    def test_expired_token(self, db_session, app):
        token = issue_token(UserFactory())
        app.config["APP_CONFIG"]["auth"]["token_max_age_seconds"] = -1
        with pytest.raises(AuthenticationError) as exc:
            load_token(token)
        assert exc.value.message == "Session token expired"


class TestProviderSecret:

    def test_accepts_configured_secret(self, app):
        with app.app_context():
            verify_provider_secret(f"Bearer {PROVIDER_SECRET}")

    @pytest.mark.parametrize("header", [None, "", PROVIDER_SECRET, "Bearer wrong"])
    def test_rejects_bad_credentials(self, app, header):
        with app.app_context():
            with pytest.raises(AuthenticationError):
                verify_provider_secret(header)

    def test_unconfigured_callback_is_refused(self, app):
        app.config["APP_CONFIG"]["auth"]["provider_secret"] = ""
        with app.app_context():
            with pytest.raises(AuthenticationError):
                verify_provider_secret("Bearer ")
