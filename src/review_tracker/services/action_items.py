"""Action item CRUD for session participants."""

import logging
from datetime import date, datetime, timezone

from sqlalchemy import and_, or_

from ..database import db
from ..models.action_item import OPEN_ACTION_STATUSES, ActionItem, ActionStatus
from ..models.answer import ParticipantRole
from ..models.notification import NotificationType
from ..models.one_on_one import OneOnOne
from ..models.user import User
from .authorization import require_session_access, require_session_participant
from .errors import NotFoundError, ValidationError, storage_errors
from .notifications import create_notification, deliver_notifications
from .one_on_ones import load_session

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("description", "status", "due_date")


def parse_due_date(value) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError("due_date must be a date in YYYY-MM-DD format")


def parse_action_status(value) -> ActionStatus:
    try:
        return value if isinstance(value, ActionStatus) else ActionStatus(value)
    except ValueError:
        raise ValidationError("status must be one of: pending, in_progress, completed")


def _load_item(item_id: str) -> ActionItem:
    item = db.session.get(ActionItem, item_id)
    if item is None:
        raise NotFoundError("Action item not found")
    return item


def create_action_item(
    user: User,
    session_id: str,
    description: str,
    assigned_to,
    due_date=None,
) -> ActionItem:
    """Create an item on a session and notify the assignee if it is someone else."""
    session = load_session(session_id)
    require_session_participant(user, session)
    if not description or not str(description).strip():
        raise ValidationError("description is required")
    try:
        assignee = assigned_to if isinstance(assigned_to, ParticipantRole) else ParticipantRole(assigned_to)
    except ValueError:
        raise ValidationError("assigned_to must be 'developer' or 'manager'")
    due = parse_due_date(due_date)

    notifications = []
    with storage_errors("create action item"):
        item = ActionItem(
            one_on_one_id=session.id,
            description=str(description).strip(),
            assigned_to=assignee,
            due_date=due,
            status=ActionStatus.PENDING,
        )
        item.one_on_one = session
        db.session.add(item)
        db.session.flush()

        assignee_id = item.assignee_id
        if assignee_id != user.id:
            notifications.append(create_notification(
                user_id=assignee_id,
                notification_type=NotificationType.ACTION_ITEM_ASSIGNED,
                title="New Action Item",
                message=f"You have been assigned a new action item: {item.description}",
                related_id=item.id,
                related_type="action_item",
            ))
        db.session.commit()

    logger.info(f"Action item {item.id} created on 1-on-1 {session.id} for {assignee.value}")
    deliver_notifications(notifications)
    return item


def update_action_item(user: User, item_id: str, updates: dict) -> ActionItem:
    """Apply ``updates`` (description, status, due_date) to an item.

    ``completed_at`` is set the first time the item becomes completed.
    """
    item = _load_item(item_id)
    require_session_participant(user, item.one_on_one)

    unknown = set(updates) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")

    changes = {}
    if "description" in updates:
        description = updates["description"]
        if not description or not str(description).strip():
            raise ValidationError("description cannot be empty")
        changes["description"] = str(description).strip()
    if "status" in updates:
        changes["status"] = parse_action_status(updates["status"])
    if "due_date" in updates:
        changes["due_date"] = parse_due_date(updates["due_date"])

    with storage_errors("update action item"):
        for key, value in changes.items():
            setattr(item, key, value)
        if item.status == ActionStatus.COMPLETED and item.completed_at is None:
            item.completed_at = datetime.now(timezone.utc)
        db.session.commit()

    return item


def delete_action_item(user: User, item_id: str) -> None:
    item = _load_item(item_id)
    require_session_participant(user, item.one_on_one)
    with storage_errors("delete action item"):
        db.session.delete(item)
        db.session.commit()
    logger.info(f"Action item {item_id} deleted by user {user.id}")


def list_action_items(user: User, session_id: str) -> list[ActionItem]:
    """Items of a session, newest first (participants and admins)."""
    session = load_session(session_id)
    require_session_access(user, session)
    return (
        ActionItem.query.filter_by(one_on_one_id=session.id)
        .order_by(ActionItem.created_at.desc())
        .all()
    )


def my_pending_action_items(user: User) -> list[ActionItem]:
    """Open items assigned to the caller, soonest due first, undated last."""
    return (
        ActionItem.query.join(OneOnOne, ActionItem.one_on_one_id == OneOnOne.id)
        .filter(
            ActionItem.status.in_(OPEN_ACTION_STATUSES),
            or_(
                and_(
                    ActionItem.assigned_to == ParticipantRole.DEVELOPER,
                    OneOnOne.developer_id == user.id,
                ),
                and_(
                    ActionItem.assigned_to == ParticipantRole.MANAGER,
                    OneOnOne.manager_id == user.id,
                ),
            ),
        )
        .order_by(
            ActionItem.due_date.is_(None).asc(),
            ActionItem.due_date.asc(),
            ActionItem.created_at.asc(),
        )
        .all()
    )
