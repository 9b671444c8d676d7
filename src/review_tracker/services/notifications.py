"""Notification inbox, fan-out scans and reminders.

Notifications are rows in the recipient's inbox. When
``notifications.delivery_enabled`` is on, each new row is also offered to
the configured ``NotificationDelivery`` after it commits; ``is_emailed``
records whether delivery succeeded. Delivery failures never fail the
operation that created the notification.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..config import get_notifications_config
from ..database import db
from ..models.action_item import ActionItem, ActionStatus
from ..models.notification import Notification, NotificationType
from ..models.one_on_one import OneOnOne, SessionStatus
from ..models.team import Team
from ..models.user import User, UserRole
from .authorization import managed_team_ids, require_admin, require_manager_or_admin
from .bulk import BulkResult
from .errors import NotFoundError, ValidationError, storage_errors
from .months import validate_month_year

logger = logging.getLogger(__name__)

DEFAULT_INBOX_LIMIT = 50
MAX_INBOX_LIMIT = 200


@dataclass
class ScanResult:
    """Outcome of an overdue or due-soon scan."""

    checked: int = 0
    notified: int = 0
    already_notified: int = 0
    failed: int = 0

    def to_dict(self) -> dict:
        return {
            "checked": self.checked,
            "notified": self.notified,
            "already_notified": self.already_notified,
            "failed": self.failed,
        }


def create_notification(
    user_id: str,
    notification_type: NotificationType,
    title: str,
    message: str,
    related_id: str | None = None,
    related_type: str | None = None,
) -> Notification:
    """Add a notification to the current transaction. The caller commits."""
    notification = Notification(
        user_id=user_id,
        notification_type=notification_type,
        title=title,
        message=message,
        related_id=related_id,
        related_type=related_type,
        is_read=False,
        is_emailed=False,
    )
    db.session.add(notification)
    return notification


def _delivery_data(notification: Notification, recipient: User) -> dict:
    data = {
        "recipient_name": recipient.display_name,
        "title": notification.title,
        "message": notification.message,
        "related_id": notification.related_id,
        "related_type": notification.related_type,
        "session_id": None,
    }
    if notification.related_type == "one_on_one":
        data["session_id"] = notification.related_id
    elif notification.related_type == "action_item" and notification.related_id:
        item = db.session.get(ActionItem, notification.related_id)
        if item is not None:
            data["session_id"] = item.one_on_one_id
            data["description"] = item.description
            data["due_date"] = item.due_date.isoformat() if item.due_date else None
    return data


def deliver_notifications(notifications: list[Notification]) -> int:
    """Offer committed notifications to the delivery collaborator.

    Returns the number delivered. A no-op unless delivery is enabled.
    """
    if not notifications:
        return 0
    config = get_notifications_config(current_app.config["APP_CONFIG"])
    delivery = current_app.extensions.get("notification_delivery")
    if not config["delivery_enabled"] or delivery is None:
        return 0

    delivered = 0
    for notification in notifications:
        try:
            recipient = db.session.get(User, notification.user_id)
            if recipient is None:
                continue
            template = notification.notification_type.value
            if delivery.send(recipient.email, template, _delivery_data(notification, recipient)):
                notification.is_emailed = True
                db.session.commit()
                delivered += 1
        except Exception as e:
            db.session.rollback()
            logger.warning(f"Delivery of notification {notification.id} failed: {e}")
    return delivered


# --- Inbox ---


def list_notifications(user: User, limit: int = DEFAULT_INBOX_LIMIT, unread_only: bool = False) -> list[Notification]:
    limit = max(1, min(int(limit), MAX_INBOX_LIMIT))
    query = Notification.query.filter_by(user_id=user.id)
    if unread_only:
        query = query.filter_by(is_read=False)
    return query.order_by(Notification.created_at.desc()).limit(limit).all()


def unread_count(user: User) -> int:
    return Notification.query.filter_by(user_id=user.id, is_read=False).count()


def mark_read(user: User, notification_ids: list[str]) -> int:
    """Mark the caller's notifications with the given ids as read."""
    if not isinstance(notification_ids, list) or not notification_ids:
        raise ValidationError("notification_ids must be a non-empty array")
    with storage_errors("mark notifications as read"):
        updated = (
            Notification.query.filter(
                Notification.user_id == user.id,
                Notification.id.in_(notification_ids),
                Notification.is_read.is_(False),
            )
            .update(
                {"is_read": True, "read_at": datetime.now(timezone.utc)},
                synchronize_session=False,
            )
        )
        db.session.commit()
    return updated


def mark_all_read(user: User) -> int:
    with storage_errors("mark all notifications as read"):
        updated = (
            Notification.query.filter_by(user_id=user.id, is_read=False)
            .update(
                {"is_read": True, "read_at": datetime.now(timezone.utc)},
                synchronize_session=False,
            )
        )
        db.session.commit()
    return updated


def delete_notification(user: User, notification_id: str) -> None:
    notification = Notification.query.filter_by(id=notification_id, user_id=user.id).first()
    if notification is None:
        raise NotFoundError("Notification not found")
    with storage_errors("delete notification"):
        db.session.delete(notification)
        db.session.commit()


def admin_create_notification(
    user: User,
    user_id: str,
    notification_type: str,
    title: str,
    message: str,
    related_id: str | None = None,
    related_type: str | None = None,
) -> Notification:
    """Create an arbitrary notification for any user (admins only)."""
    require_admin(user)
    if not title or not message:
        raise ValidationError("title and message are required")
    try:
        kind = NotificationType(notification_type)
    except ValueError:
        raise ValidationError(f"Invalid notification_type: {notification_type}")
    if db.session.get(User, user_id) is None:
        raise NotFoundError("User not found")

    with storage_errors("create notification"):
        notification = create_notification(user_id, kind, title, message, related_id, related_type)
        db.session.commit()
    deliver_notifications([notification])
    return notification


# --- Scans ---


def _start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min).astimezone(timezone.utc)


def _open_items_query():
    return ActionItem.query.filter(
        ActionItem.status != ActionStatus.COMPLETED,
        ActionItem.due_date.isnot(None),
    )


def scan_overdue(user: User | None = None, today: date | None = None) -> ScanResult:
    """Notify assignees of overdue action items, once per item.

    ``user`` is None when run from the CLI as the system actor; otherwise
    the caller must be an admin. Items are handled independently: one
    failed insert does not undo the others.
    """
    if user is not None:
        require_admin(user)
    today = today or date.today()
    result = ScanResult()
    created = []

    for item in _open_items_query().filter(ActionItem.due_date < today).all():
        result.checked += 1
        already = Notification.query.filter_by(
            related_id=item.id,
            notification_type=NotificationType.ACTION_ITEM_OVERDUE,
        ).first()
        if already is not None:
            result.already_notified += 1
            continue
        try:
            notification = create_notification(
                user_id=item.assignee_id,
                notification_type=NotificationType.ACTION_ITEM_OVERDUE,
                title="Action Item Overdue",
                message=f"Action item is overdue: {item.description}",
                related_id=item.id,
                related_type="action_item",
            )
            db.session.commit()
            created.append(notification)
            result.notified += 1
        except SQLAlchemyError as e:
            db.session.rollback()
            result.failed += 1
            logger.error(f"Failed to create overdue notification for action item {item.id}: {e}")

    logger.info(f"Overdue scan: {result.to_dict()}")
    deliver_notifications(created)
    return result


def scan_due_soon(user: User | None = None, today: date | None = None, days: int | None = None) -> ScanResult:
    """Notify assignees of action items due within ``days`` days.

    At most one due-soon notification per item per day.
    """
    if user is not None:
        require_admin(user)
    today = today or date.today()
    if days is None:
        days = get_notifications_config(current_app.config["APP_CONFIG"])["due_soon_days"]
    horizon = today + timedelta(days=days)
    day_start = _start_of_day(today)
    result = ScanResult()
    created = []

    items = _open_items_query().filter(ActionItem.due_date >= today, ActionItem.due_date <= horizon).all()
    for item in items:
        result.checked += 1
        already = Notification.query.filter(
            Notification.related_id == item.id,
            Notification.notification_type == NotificationType.ACTION_ITEM_DUE_SOON,
            Notification.created_at >= day_start,
        ).first()
        if already is not None:
            result.already_notified += 1
            continue

        days_until_due = (item.due_date - today).days
        plural = "" if days_until_due == 1 else "s"
        try:
            notification = create_notification(
                user_id=item.assignee_id,
                notification_type=NotificationType.ACTION_ITEM_DUE_SOON,
                title="Action Item Due Soon",
                message=f"Action item due in {days_until_due} day{plural}: {item.description}",
                related_id=item.id,
                related_type="action_item",
            )
            db.session.commit()
            created.append(notification)
            result.notified += 1
        except SQLAlchemyError as e:
            db.session.rollback()
            result.failed += 1
            logger.error(f"Failed to create due-soon notification for action item {item.id}: {e}")

    logger.info(f"Due-soon scan: {result.to_dict()}")
    deliver_notifications(created)
    return result


# --- Reminders ---


def send_bulk_reminders(user: User, month_year: str, team_id: str | None = None) -> BulkResult:
    """Remind every developer on the caller's teams whose session is still a draft.

    Admins may target any team with ``team_id``; managers are limited to
    the teams they manage.
    """
    require_manager_or_admin(user)
    month_year = validate_month_year(month_year)

    if team_id:
        team = db.session.get(Team, team_id)
        if team is None:
            raise NotFoundError("Team not found")
        if user.role != UserRole.ADMIN and team.manager_id != user.id:
            raise NotFoundError("Team not found")
        team_ids = [team.id]
    else:
        team_ids = managed_team_ids(user)
        if not team_ids:
            raise NotFoundError("Team not found")

    developers = (
        User.query.join(User.teams)
        .filter(Team.id.in_(team_ids), User.role == UserRole.DEVELOPER)
        .distinct()
        .all()
    )

    result = BulkResult(total=len(developers))
    created = []
    for developer in developers:
        session = (
            OneOnOne.query.filter(
                OneOnOne.developer_id == developer.id,
                OneOnOne.month_year == month_year,
                OneOnOne.team_id.in_(team_ids),
            )
            .order_by(OneOnOne.session_number.desc())
            .first()
        )
        if session is None or session.status != SessionStatus.DRAFT:
            result.skipped += 1
            continue
        try:
            notification = create_notification(
                user_id=developer.id,
                notification_type=NotificationType.ONE_ON_ONE_REMINDER,
                title="1-on-1 Reminder",
                message=f"Don't forget to complete your {month_year} 1-on-1!",
                related_id=session.id,
                related_type="one_on_one",
            )
            db.session.commit()
            created.append(notification)
            result.created += 1
        except SQLAlchemyError as e:
            db.session.rollback()
            result.fail(f"Developer {developer.email}: {e}")

    logger.info(f"Bulk reminders for {month_year} by user {user.id}: {result.to_dict()}")
    deliver_notifications(created)
    return result
