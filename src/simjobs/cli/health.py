"""
CLI: ``simjobs health`` — check the record store and the broker.
"""

from __future__ import annotations

from typing import Any

import typer

from simjobs.cli.utils import console, load_settings, output
from simjobs.core.errors import SimJobsError
from simjobs.core.schema import missing_tables
from simjobs.runtime import JobRuntime


def health(
    database: str | None = typer.Option(None, "--database", "-d"),
    broker: str | None = typer.Option(None, "--broker", help="Broker URL"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Check connectivity. Exits with code 1 if anything is unhealthy."""
    runtime = JobRuntime(load_settings(database, broker))
    report: dict[str, Any] = {"database": "ok", "broker": "ok"}

    store = runtime.store
    try:
        store.connect()
        store.ping()
        missing = missing_tables(store.adapter)
        if missing:
            report["database"] = f"missing tables: {', '.join(missing)}"
        else:
            report["jobs"] = store.count_by_status()
            report["outbox_pending"] = store.count_pending_outbox()
            report["dead_letters_unresolved"] = runtime.dead_letters.count_unresolved()
    except SimJobsError as e:
        report["database"] = f"error: {e.message}"
    finally:
        store.close()

    transport = runtime.transport
    try:
        transport.connect()
        report["queue_depth"] = transport.depth()
    except SimJobsError as e:
        report["broker"] = f"error: {e.message}"
    finally:
        transport.close()

    healthy = report["database"] == "ok" and report["broker"] == "ok"
    report["status"] = "healthy" if healthy else "unhealthy"

    if json_out:
        output(report, as_json=True)
    else:
        colour = "green" if healthy else "red"
        console.print(f"[bold {colour}]{report['status']}[/bold {colour}]")
        output({k: v for k, v in report.items() if k != "status"})
    if not healthy:
        raise typer.Exit(code=1)
