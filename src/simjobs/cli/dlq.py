"""
CLI: ``simjobs dlq`` — dead letter commands.
"""

from __future__ import annotations

import typer

from simjobs.cli.utils import console, fail, open_runtime, output
from simjobs.jobs.models import DeadLetterReason

app = typer.Typer(no_args_is_help=True)


@app.command("list")
def list_dead_letters(
    reason: DeadLetterReason | None = typer.Option(None, "--reason", "-r"),  # noqa: UP007
    limit: int = typer.Option(50, "--limit", "-n"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List unresolved dead letters, oldest first."""
    with open_runtime(database, connect_transport=False) as runtime:
        entries = runtime.dead_letters.list_unresolved(reason=reason, limit=limit)
    output(entries, as_json=json_out, title="Dead Letters")


@app.command("resolve")
def resolve(
    dead_letter_id: str = typer.Argument(..., help="Dead letter id"),
    resolved_by: str | None = typer.Option(None, "--by", help="Who resolved it"),  # noqa: UP007
    database: str | None = typer.Option(None, "--database", "-d"),
) -> None:
    """Mark a dead letter as handled. Nothing is replayed."""
    with open_runtime(database, connect_transport=False) as runtime:
        resolved = runtime.dead_letters.resolve(dead_letter_id, resolved_by)
    if not resolved:
        fail(f"Dead letter not found or already resolved: {dead_letter_id}")
    console.print(f"[green]Resolved[/green] {dead_letter_id}")
