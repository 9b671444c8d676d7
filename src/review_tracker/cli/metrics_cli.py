"""Flask CLI commands for metrics follow-ups.

Provides ``flask metrics process``.
"""

import click
from flask.cli import AppGroup

from ..services.metrics import process_pending_runs

metrics_cli = AppGroup("metrics", help="Metrics snapshot commands.")


@metrics_cli.command("process")
@click.option(
    "--max-attempts",
    default=None,
    type=int,
    help="Attempt ceiling per run; defaults to metrics.max_attempts.",
)
def process_command(max_attempts: int | None) -> None:
    """Retry pending and failed metrics follow-ups."""
    summary = process_pending_runs(max_attempts=max_attempts)
    if not summary["processed"]:
        click.echo("No metrics runs to process.")
        return
    click.echo(
        f"Processed {summary['processed']} run(s): "
        f"{summary['succeeded']} succeeded, {summary['failed']} failed"
    )
