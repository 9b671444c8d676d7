"""Service-layer exceptions mapped to HTTP status codes."""

import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from ..database import db

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base class for errors raised by services.

    ``status_code`` is the HTTP status the app factory maps the error to.
    """

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(ServiceError):
    """Missing or malformed input. Nothing has been written."""

    status_code = 400


class AuthenticationError(ServiceError):
    status_code = 401


class AuthorizationError(ServiceError):
    """The caller's role or ownership does not permit the operation."""

    status_code = 403


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    status_code = 409


class StorageError(ServiceError):
    """An underlying database operation failed and was rolled back."""

    status_code = 500


@contextmanager
def storage_errors(verb: str):
    """Roll back and re-raise SQLAlchemy failures as StorageError.

    Usage:
        with storage_errors("create team"):
            db.session.add(team)
            db.session.commit()
    """
    try:
        yield
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Failed to {verb}: {e}")
        raise StorageError(f"Failed to {verb}: {e}") from e
