"""Flask CLI commands for action item notification scans.

Run from cron (or by hand) as the system actor:
``flask notifications scan-overdue`` and ``flask notifications scan-due-soon``.
"""

import click
from flask.cli import AppGroup

from ..services.notifications import ScanResult, scan_due_soon, scan_overdue

notifications_cli = AppGroup("notifications", help="Notification scan commands.")


def _report(label: str, result: ScanResult) -> None:
    click.echo(
        f"{label}: checked {result.checked}, notified {result.notified}, "
        f"already notified {result.already_notified}, failed {result.failed}"
    )
    if result.failed:
        raise SystemExit(1)


@notifications_cli.command("scan-overdue")
def scan_overdue_command() -> None:
    """Notify assignees of overdue action items (once per item)."""
    _report("Overdue scan", scan_overdue())


@notifications_cli.command("scan-due-soon")
@click.option("--days", default=None, type=int, help="Look-ahead window; defaults to notifications.due_soon_days.")
def scan_due_soon_command(days: int | None) -> None:
    """Notify assignees of action items due soon (once per item per day)."""
    _report("Due-soon scan", scan_due_soon(days=days))
