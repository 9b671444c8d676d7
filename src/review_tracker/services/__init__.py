"""Services package for Review Tracker."""

from .errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ServiceError,
    StorageError,
    ValidationError,
)
from .lifecycle import (
    InvalidTransitionError,
    TransitionResult,
    VALID_TRANSITIONS,
    update_status,
    validate_transition,
)
from .metrics import SessionMetrics, calculate_and_save_metrics, compute_metrics

__all__ = [
    "AuthenticationError",
    "AuthorizationError",
    "ConflictError",
    "NotFoundError",
    "ServiceError",
    "StorageError",
    "ValidationError",
    "InvalidTransitionError",
    "TransitionResult",
    "VALID_TRANSITIONS",
    "update_status",
    "validate_transition",
    "SessionMetrics",
    "calculate_and_save_metrics",
    "compute_metrics",
]
