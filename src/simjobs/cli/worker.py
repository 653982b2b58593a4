"""
CLI: ``simjobs worker`` — run the job worker.
"""

from __future__ import annotations

import typer

from simjobs.cli.utils import console, open_runtime

app = typer.Typer(no_args_is_help=True)


@app.command("start")
def start(
    poll_interval: float | None = typer.Option(  # noqa: UP007
        None, "--poll-interval", help="Seconds to wait for a message per cycle"
    ),
    worker_id: str | None = typer.Option(None, "--id", help="Custom worker identifier"),  # noqa: UP007
    max_messages: int | None = typer.Option(  # noqa: UP007
        None, "--max-messages", help="Exit after this many messages"
    ),
    drain: bool = typer.Option(False, "--drain", help="Exit once the queue is empty"),
    database: str | None = typer.Option(None, "--database", "-d"),
    broker: str | None = typer.Option(None, "--broker", help="Broker URL"),
) -> None:
    """Start the worker. Consumes one message at a time until SIGINT/SIGTERM.

    The process exits with code 1 if the database or broker is unreachable
    at startup, or lost while running.

    Example::

        simjobs worker start
        simjobs worker start --drain --poll-interval 0.5
    """
    with open_runtime(database, broker) as runtime:
        kwargs = {"worker_id": worker_id, "max_messages": max_messages, "stop_when_idle": drain}
        if poll_interval is not None:
            kwargs["poll_interval"] = poll_interval
        loop = runtime.worker(**kwargs)
        console.print(
            f"[bold green]Starting simjobs worker[/bold green] {loop.worker_id} "
            f"(queue={runtime.settings.queue_name}, transport={runtime.transport.name})"
        )
        exit_code = loop.start()
        stats = loop.get_stats()

    console.print(
        f"Worker stopped: received={stats.total_received} done={stats.total_done} "
        f"failed={stats.total_failed} rejected={stats.total_rejected} "
        f"skipped={stats.total_skipped}"
    )
    if exit_code:
        raise typer.Exit(code=exit_code)
