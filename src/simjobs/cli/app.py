"""
Root Typer application for the simjobs CLI.
"""

from __future__ import annotations

import sys

import typer
from typer import Typer

from simjobs.core.config import get_settings
from simjobs.core.logging import configure_logging

app = Typer(
    name="simjobs",
    help="simjobs — durable simulation job dispatch.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from simjobs import __version__

        typer.echo(f"simjobs {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """simjobs CLI — submit simulations, run workers, inspect jobs."""
    settings = get_settings()
    configure_logging(
        level=settings.log_level,
        json_format=settings.json_logs,
        service="simjobs",
        stream=sys.stderr,
    )


# ── Sub-command registration ─────────────────────────────────────────────

from simjobs.cli.db import app as db_app  # noqa: E402
from simjobs.cli.dlq import app as dlq_app  # noqa: E402
from simjobs.cli.health import health  # noqa: E402
from simjobs.cli.jobs import app as jobs_app  # noqa: E402
from simjobs.cli.outbox import app as outbox_app  # noqa: E402
from simjobs.cli.submit import submit  # noqa: E402
from simjobs.cli.worker import app as worker_app  # noqa: E402

app.command("submit")(submit)
app.command("health")(health)
app.add_typer(db_app, name="db", help="Record store management.")
app.add_typer(jobs_app, name="jobs", help="Inspect job records.")
app.add_typer(worker_app, name="worker", help="Job worker.")
app.add_typer(outbox_app, name="outbox", help="Outbox relay.")
app.add_typer(dlq_app, name="dlq", help="Dead letters.")
