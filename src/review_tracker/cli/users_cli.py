"""Flask CLI commands for user management.

Provides ``flask users set-role``, used to bootstrap the first admin.
"""

import click
from flask.cli import AppGroup

from ..models.user import UserRole
from ..services.admin import set_user_role
from ..services.errors import ServiceError

users_cli = AppGroup("users", help="User management commands.")


@users_cli.command("set-role")
@click.option("--email", required=True, help="Email of an existing user.")
@click.option(
    "--role",
    required=True,
    type=click.Choice([r.value for r in UserRole], case_sensitive=False),
    help="New role.",
)
def set_role_command(email: str, role: str) -> None:
    """Set a user's role."""
    try:
        user = set_user_role(email, role.lower())
    except ServiceError as e:
        click.echo(f"Error: {e.message}", err=True)
        raise SystemExit(1)

    click.echo(f"{user.email} is now {user.role.value}")
