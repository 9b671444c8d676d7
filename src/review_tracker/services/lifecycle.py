"""Session lifecycle: the transition table and status updates."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from ..database import db
from ..models.metrics import MetricsRun
from ..models.notification import NotificationType
from ..models.one_on_one import OneOnOne, SessionStatus
from ..models.user import User
from .authorization import ROLE_ADMIN, ROLE_DEVELOPER, ROLE_MANAGER, require_session_access
from .errors import AuthorizationError, ConflictError, NotFoundError, ValidationError, storage_errors
from .metrics import execute_run
from .notifications import create_notification, deliver_notifications

logger = logging.getLogger(__name__)


class InvalidTransitionError(ConflictError):
    """Raised when the caller may set the target status, but not from the current one."""

    def __init__(self, result: "TransitionResult"):
        self.result = result
        super().__init__(result.reason)


@dataclass
class TransitionResult:
    """Result of a transition check."""

    valid: bool
    from_state: SessionStatus
    to_state: SessionStatus
    reason: str
    roles: tuple[str, ...] = ()


@dataclass
class StatusUpdateResult:
    """Result of a committed status change."""

    session: OneOnOne
    transition: TransitionResult
    metrics_run: Optional[MetricsRun] = None
    notification_ids: list[str] = field(default_factory=list)


# Format: {(from_state, actor_role): allowed next states}
#
# ``reviewed`` is optional: a manager may complete straight from submitted.
# ``reviewed -> reviewed`` lets a manager re-save a review. ``completed``
# is terminal and draft is never a target, so there is no reopen path.
VALID_TRANSITIONS: dict[tuple[SessionStatus, str], frozenset[SessionStatus]] = {
    (SessionStatus.DRAFT, ROLE_DEVELOPER): frozenset({SessionStatus.SUBMITTED}),
    (SessionStatus.SUBMITTED, ROLE_MANAGER): frozenset({SessionStatus.REVIEWED, SessionStatus.COMPLETED}),
    (SessionStatus.SUBMITTED, ROLE_ADMIN): frozenset({SessionStatus.REVIEWED, SessionStatus.COMPLETED}),
    (SessionStatus.REVIEWED, ROLE_MANAGER): frozenset({SessionStatus.REVIEWED, SessionStatus.COMPLETED}),
    (SessionStatus.REVIEWED, ROLE_ADMIN): frozenset({SessionStatus.REVIEWED, SessionStatus.COMPLETED}),
}

# Timestamp column set (once) when a session first enters each status
STATUS_TIMESTAMPS: dict[SessionStatus, str] = {
    SessionStatus.SUBMITTED: "developer_submitted_at",
    SessionStatus.REVIEWED: "manager_reviewed_at",
    SessionStatus.COMPLETED: "completed_at",
}

_ROLE_DENIALS: dict[SessionStatus, str] = {
    SessionStatus.SUBMITTED: "Only the developer can submit a 1-on-1",
    SessionStatus.REVIEWED: "Only the manager can mark a 1-on-1 as reviewed or completed",
    SessionStatus.COMPLETED: "Only the manager can mark a 1-on-1 as reviewed or completed",
}


def allowed_targets(from_state: SessionStatus, roles) -> set[SessionStatus]:
    """Union of the next states permitted to any of ``roles`` from ``from_state``."""
    targets: set[SessionStatus] = set()
    for role in roles:
        targets |= VALID_TRANSITIONS.get((from_state, role), frozenset())
    return targets


def role_may_ever_set(to_state: SessionStatus, roles) -> bool:
    """True if any of ``roles`` is permitted ``to_state`` from some state."""
    return any(
        to_state in targets
        for (_, role), targets in VALID_TRANSITIONS.items()
        if role in roles
    )


def validate_transition(
    from_state: SessionStatus,
    to_state: SessionStatus,
    roles,
) -> TransitionResult:
    """
    Validate a proposed status change.

    This function is pure and stateless - it only consults the transition
    table.

    Args:
        from_state: Current session status
        to_state: Requested status
        roles: Roles the caller holds on the session

    Returns:
        TransitionResult indicating if the transition is valid and why
    """
    roles = tuple(sorted(roles))
    if to_state in allowed_targets(from_state, roles):
        return TransitionResult(
            valid=True,
            from_state=from_state,
            to_state=to_state,
            reason=f"{from_state.value} -> {to_state.value}",
            roles=roles,
        )

    if from_state == SessionStatus.COMPLETED:
        reason = "1-on-1 is already completed"
    elif to_state == SessionStatus.DRAFT:
        reason = "A 1-on-1 cannot be moved back to draft"
    else:
        reason = f"Cannot move a 1-on-1 from {from_state.value} to {to_state.value}"
    return TransitionResult(
        valid=False,
        from_state=from_state,
        to_state=to_state,
        reason=reason,
        roles=roles,
    )


def parse_status(value) -> SessionStatus:
    if isinstance(value, SessionStatus):
        return value
    try:
        return SessionStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in SessionStatus)
        raise ValidationError(f"Invalid status. Must be one of: {allowed}")


def _status_notification(session: OneOnOne, new_status: SessionStatus):
    """Return (recipient_id, type, title, message) for a status change, or None."""
    month = session.month_year
    if new_status == SessionStatus.SUBMITTED:
        return (
            session.manager_id,
            NotificationType.ONE_ON_ONE_SUBMITTED,
            "1-on-1 Submitted",
            f"{session.developer.display_name} submitted their {month} 1-on-1 for review",
        )
    if new_status == SessionStatus.REVIEWED:
        return (
            session.developer_id,
            NotificationType.ONE_ON_ONE_REVIEWED,
            "1-on-1 Reviewed",
            f"{session.manager.display_name} reviewed your {month} 1-on-1",
        )
    if new_status == SessionStatus.COMPLETED:
        return (
            session.developer_id,
            NotificationType.ONE_ON_ONE_COMPLETED,
            "1-on-1 Completed",
            f"Your {month} 1-on-1 with {session.manager.display_name} is complete",
        )
    return None


def update_status(session_id: str, new_status, user: User) -> StatusUpdateResult:
    """Move a session to ``new_status`` on behalf of ``user``.

    The status change, its timestamp, the counterpart's notification and
    (on completion) a pending metrics run commit together. The metrics run
    then executes after commit; its failure is recorded on the run and
    never undoes the status change.

    Raises:
        ValidationError: Unknown status value.
        NotFoundError: No such session.
        AuthorizationError: The caller holds no role that may ever set the status.
        InvalidTransitionError: The move is not allowed from the current status.
    """
    target = parse_status(new_status)
    session = db.session.get(OneOnOne, session_id)
    if session is None:
        raise NotFoundError("1-on-1 not found")

    roles = require_session_access(user, session)
    result = validate_transition(session.status, target, roles)
    if not result.valid:
        if not role_may_ever_set(target, roles) and target in _ROLE_DENIALS:
            raise AuthorizationError(_ROLE_DENIALS[target])
        raise InvalidTransitionError(result)

    now = datetime.now(timezone.utc)
    metrics_run = None
    notifications = []

    with storage_errors("update status"):
        session.status = target
        column = STATUS_TIMESTAMPS.get(target)
        if column and getattr(session, column) is None:
            setattr(session, column, now)

        notice = None
        if result.from_state != target:
            notice = _status_notification(session, target)
        if notice is not None and notice[0] != user.id:
            recipient_id, notification_type, title, message = notice
            notifications.append(create_notification(
                user_id=recipient_id,
                notification_type=notification_type,
                title=title,
                message=message,
                related_id=session.id,
                related_type="one_on_one",
            ))

        if target == SessionStatus.COMPLETED:
            metrics_run = MetricsRun(one_on_one_id=session.id)
            db.session.add(metrics_run)

        db.session.commit()

    logger.info(
        f"1-on-1 {session.id} moved {result.from_state.value} -> {target.value} "
        f"by user {user.id} (roles={','.join(result.roles)})"
    )

    if metrics_run is not None:
        execute_run(metrics_run.id)

    deliver_notifications(notifications)

    return StatusUpdateResult(
        session=session,
        transition=result,
        metrics_run=metrics_run,
        notification_ids=[n.id for n in notifications],
    )
