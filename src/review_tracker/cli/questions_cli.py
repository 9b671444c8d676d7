"""Flask CLI commands for the question catalogue.

Provides ``flask questions seed`` and ``flask questions list``.
"""

import click
from flask.cli import AppGroup

from ..services.answers import active_questions
from ..services.errors import ServiceError
from ..services.question_seed import seed_questions

questions_cli = AppGroup("questions", help="Question catalogue commands.")


@questions_cli.command("seed")
@click.option(
    "--file",
    "path",
    default=None,
    type=click.Path(dir_okay=False),
    help="YAML file with a 'questions' list. Defaults to the bundled catalogue.",
)
def seed_command(path: str | None) -> None:
    """Insert questions that are not in the database yet."""
    try:
        result = seed_questions(path)
    except ServiceError as e:
        click.echo(f"Error: {e.message}", err=True)
        raise SystemExit(1)

    click.echo(f"Questions seeded: {result.created} created, {result.skipped} already present")


@questions_cli.command("list")
@click.option("--team-id", default=None, help="Include questions scoped to this team.")
def list_command(team_id: str | None) -> None:
    """List active questions in sort order."""
    questions = active_questions(team_id)
    if not questions:
        click.echo("No active questions.")
        return
    for q in questions:
        click.echo(f"{q.sort_order:>3}  {q.question_type.value:<12} {q.question_text}")
