"""Notification delivery collaborator.

Delivery is an external concern. The application only talks to the
``NotificationDelivery`` interface; the shipped ``LoggingDelivery`` renders
the message from a Jinja2 template and writes it to the log instead of
sending mail.
"""

import logging

from jinja2 import Environment, PackageLoader, TemplateNotFound, select_autoescape

logger = logging.getLogger(__name__)

# Subject line per template (template names match notification types)
SUBJECTS = {
    "one_on_one_submitted": "1-on-1 Submitted for Review",
    "one_on_one_reviewed": "Your 1-on-1 Has Been Reviewed",
    "one_on_one_completed": "Your 1-on-1 Is Complete",
    "one_on_one_reminder": "1-on-1 Reminder",
    "action_item_assigned": "New Action Item Assigned",
    "action_item_due_soon": "Action Item Due Soon",
    "action_item_overdue": "Action Item Overdue",
}


class NotificationDelivery:
    """Interface for delivering a notification to a recipient."""

    def send(self, recipient: str, template: str, data: dict) -> bool:
        """Deliver ``template`` rendered with ``data`` to ``recipient``.

        Returns:
            True if the message was accepted for delivery, False otherwise.
        """
        raise NotImplementedError


class LoggingDelivery(NotificationDelivery):
    """Renders email bodies and logs them."""

    def __init__(self, base_url: str = "http://localhost:5060"):
        self.base_url = base_url.rstrip("/")
        self.env = Environment(
            loader=PackageLoader("review_tracker", "templates/email"),
            autoescape=select_autoescape(["html"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.sent: int = 0

    def render(self, template: str, data: dict) -> tuple[str, str]:
        """Return (subject, body) for a template."""
        body = self.env.get_template(f"{template}.txt").render(base_url=self.base_url, **data)
        subject = SUBJECTS.get(template, data.get("title", "Notification"))
        return subject, body

    def send(self, recipient: str, template: str, data: dict) -> bool:
        if not recipient:
            logger.warning(f"Notification delivery skipped: no recipient for {template}")
            return False
        try:
            subject, body = self.render(template, data)
        except TemplateNotFound:
            logger.warning(f"Notification delivery skipped: no email template '{template}'")
            return False

        self.sent += 1
        logger.info(f"Email notification to={recipient} subject={subject!r}\n{body}")
        return True
