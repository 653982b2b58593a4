"""
CLI: ``simjobs db`` — record store management.
"""

from __future__ import annotations

import typer

from simjobs.cli.utils import console, open_runtime, output

app = typer.Typer(no_args_is_help=True)


@app.command()
def init(
    database: str | None = typer.Option(None, "--database", "-d", help="SQLite database path"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Create the record store tables (idempotent)."""
    with open_runtime(database, connect_transport=False) as runtime:
        tables = runtime.store.initialize()
    if json_out:
        output({"tables": tables}, as_json=True)
    else:
        for name in tables:
            console.print(f"[green]✓[/green] {name}")
