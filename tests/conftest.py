"""Pytest fixtures for Review Tracker tests."""

import os
import sqlite3
from pathlib import Path

import pytest
from sqlalchemy import event
from sqlalchemy.engine import Engine

from review_tracker import models  # noqa: F401
from review_tracker.app import create_app
from review_tracker.database import db
from review_tracker.services.identity import issue_token

from . import factories

_PROJECT_ROOT = Path(__file__).parent.parent

PROVIDER_SECRET = "test-provider-secret"


@event.listens_for(Engine, "connect")
def _enforce_sqlite_foreign_keys(dbapi_connection, connection_record):
    """SQLite ignores ondelete rules unless foreign keys are switched on per connection."""
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _build_test_database_url() -> str:
    """TEST_DATABASE_URL if set, else in-memory SQLite."""
    return os.environ.get("TEST_DATABASE_URL", "sqlite://")


@pytest.fixture(scope="session", autouse=True)
def _force_test_database():
    """Force ALL tests to use the test database. Never connect to production.

    Sets DATABASE_URL before any test or fixture can create a Flask app.
    """
    original = os.environ.get("DATABASE_URL")
    os.environ["DATABASE_URL"] = _build_test_database_url()

    yield

    # Restore original (or remove if it wasn't set)
    if original is not None:
        os.environ["DATABASE_URL"] = original
    else:
        os.environ.pop("DATABASE_URL", None)


@pytest.fixture
def app():
    """Create a Flask application for testing."""
    app = create_app(config_path=str(_PROJECT_ROOT / "config.yaml"), testing=True)
    app.config["APP_CONFIG"]["auth"]["provider_secret"] = PROVIDER_SECRET
    yield app


@pytest.fixture
def client(app):
    """Create a test client."""
    return app.test_client()


@pytest.fixture
def runner(app):
    """Create a test CLI runner."""
    return app.test_cli_runner()


@pytest.fixture
def db_session(app):
    """Create all tables inside an app context and drop them after the test."""
    with app.app_context():
        db.create_all()
        yield db.session
        db.session.remove()
        db.drop_all()


@pytest.fixture(autouse=True)
def _bind_factories(request):
    """Bind factory_boy factories to the test session for DB-backed tests."""
    if "db_session" not in request.fixturenames:
        yield
        return

    session = request.getfixturevalue("db_session")
    for factory in factories.ALL_FACTORIES:
        factory._meta.sqlalchemy_session = session
    yield
    for factory in factories.ALL_FACTORIES:
        factory._meta.sqlalchemy_session = None


@pytest.fixture
def auth_headers(app):
    """Build Authorization headers carrying a signed token for a user."""

    def _headers(user) -> dict:
        return {"Authorization": f"Bearer {issue_token(user)}"}

    return _headers


@pytest.fixture
def team_setup(db_session):
    """A manager, a team they manage with two developers, an admin and an outsider."""
    manager = factories.UserFactory(role=models.UserRole.MANAGER, full_name="Morgan Manager")
    developer = factories.UserFactory(full_name="Dana Developer")
    second_developer = factories.UserFactory(full_name="Sam Second")
    admin = factories.UserFactory(role=models.UserRole.ADMIN, full_name="Alex Admin")
    outsider = factories.UserFactory(full_name="Olly Outsider")
    team = factories.TeamFactory(manager=manager, members=[developer, second_developer])
    return {
        "manager": manager,
        "developer": developer,
        "second_developer": second_developer,
        "admin": admin,
        "outsider": outsider,
        "team": team,
    }
