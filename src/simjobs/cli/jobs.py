"""
CLI: ``simjobs jobs`` — inspect job records.
"""

from __future__ import annotations

from datetime import timedelta

import typer

from simjobs.cli.utils import fail, open_runtime, output
from simjobs.core.errors import RecordNotFoundError

app = typer.Typer(no_args_is_help=True)


@app.command("show")
def show(
    simulation_id: str = typer.Argument(..., help="Simulation id"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show one job record."""
    with open_runtime(database, connect_transport=False) as runtime:
        record = runtime.store.get(simulation_id)
    if record is None:
        fail(RecordNotFoundError(simulation_id))
    output(record, as_json=json_out, title="Simulation")


@app.command("stale")
def stale(
    older_than: float = typer.Option(30.0, "--older-than", help="Minutes without an update"),
    limit: int = typer.Option(100, "--limit", "-n"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List jobs stuck in ``running``. Read-only; nothing is reset."""
    with open_runtime(database, connect_transport=False) as runtime:
        records = runtime.store.list_stale(timedelta(minutes=older_than), limit=limit)
    output(records, as_json=json_out, title="Stale Simulations")


@app.command("counts")
def counts(
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show the number of jobs in each status."""
    with open_runtime(database, connect_transport=False) as runtime:
        by_status = runtime.store.count_by_status()
    output(by_status, as_json=json_out, title="Simulations by status")
