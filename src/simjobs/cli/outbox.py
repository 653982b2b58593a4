"""
CLI: ``simjobs outbox`` — inspect and relay the outbox.
"""

from __future__ import annotations

import typer

from simjobs.cli.utils import console, fail, open_runtime, output

app = typer.Typer(no_args_is_help=True)


@app.command("relay")
def relay(
    limit: int | None = typer.Option(None, "--limit", "-n", help="Max rows to publish"),  # noqa: UP007
    database: str | None = typer.Option(None, "--database", "-d"),
    broker: str | None = typer.Option(None, "--broker", help="Broker URL"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Publish pending outbox rows, oldest first."""
    with open_runtime(database, broker) as runtime:
        result = runtime.relay.run_pass(limit)
        remaining = runtime.store.count_pending_outbox()

    if json_out:
        output({"published": result.published, "pending": remaining, "error": result.error}, as_json=True)
    else:
        console.print(f"Published {result.published} message(s); {remaining} pending")
    if not result.ok:
        fail(f"Publish failed for outbox row {result.failed_id}: {result.error}")


@app.command("pending")
def pending(
    limit: int = typer.Option(50, "--limit", "-n"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List outbox rows not yet published."""
    with open_runtime(database, connect_transport=False) as runtime:
        entries = runtime.store.pending_outbox(limit)
    rows = [
        {
            "id": e.id,
            "simulation_id": e.simulation_id,
            "created_at": e.created_at.isoformat(),
            "publish_attempts": e.publish_attempts,
            "last_error": e.last_error,
        }
        for e in entries
    ]
    output(rows, as_json=json_out, title="Pending Outbox")
