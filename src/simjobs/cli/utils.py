"""
CLI utility helpers — runtime management and output formatting.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from simjobs.core.config import DatabaseBackend, SimJobsSettings, get_settings
from simjobs.core.errors import ConfigError, SimJobsError
from simjobs.runtime import JobRuntime

console = Console()
err_console = Console(stderr=True)


# ── Runtime helper ───────────────────────────────────────────────────────


def load_settings(database: str | None = None, broker: str | None = None) -> SimJobsSettings:
    """Settings from the environment, with command-line overrides applied.

    ``--database`` names a SQLite file, so it is refused when the configured
    backend is mysql rather than silently ignored.
    """
    settings = get_settings()
    overrides: dict[str, Any] = {}
    if database:
        if settings.database_backend == DatabaseBackend.MYSQL:
            fail(ConfigError("--database sets a SQLite path; the mysql backend reads SIMJOBS_MYSQL_* settings"))
        overrides["database_path"] = database
    if broker:
        overrides["broker_url"] = broker
    return settings.model_copy(update=overrides) if overrides else settings


@contextmanager
def open_runtime(
    database: str | None = None,
    broker: str | None = None,
    *,
    connect_transport: bool = True,
) -> Iterator[JobRuntime]:
    """Start a :class:`JobRuntime` for one command; errors exit with code 1."""
    runtime = JobRuntime(load_settings(database, broker))
    try:
        runtime.start(connect_transport=connect_transport)
    except SimJobsError as e:
        fail(e)
    try:
        yield runtime
    finally:
        runtime.close()


def fail(error: SimJobsError | str, code: int = 1) -> None:
    """Print an error and exit."""
    if isinstance(error, SimJobsError):
        err_console.print(f"[bold red]Error[/bold red] ({error.category.value}): {error.message}")
    else:
        err_console.print(f"[bold red]Error[/bold red]: {error}")
    raise typer.Exit(code=code)


# ── Output helpers ───────────────────────────────────────────────────────


def _to_dict(obj: Any) -> dict[str, Any]:
    """Convert record / dataclass / pydantic model / dict to plain dict."""
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    if hasattr(obj, "model_dump"):
        return obj.model_dump()
    if hasattr(obj, "__dataclass_fields__"):
        return asdict(obj)
    if isinstance(obj, dict):
        return obj
    return {"value": str(obj)}


def output(data: Any, *, as_json: bool = False, title: str = "") -> None:
    """Render an object or a list of objects to the terminal."""
    if as_json:
        payload = [_to_dict(d) for d in data] if isinstance(data, list | tuple) else _to_dict(data)
        console.print_json(json.dumps(payload, default=str))
        return

    if isinstance(data, list):
        if not data:
            console.print("[dim]No items.[/dim]")
            return
        _print_table(data, title=title)
    else:
        _print_dict(_to_dict(data), title=title)


# ── Private helpers ──────────────────────────────────────────────────────


def _print_table(items: list, *, title: str = "") -> None:
    """Render a list of records/dicts as a Rich table."""
    first = _to_dict(items[0])
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in first:
        table.add_column(col, overflow="fold")
    for item in items:
        d = _to_dict(item)
        table.add_row(*(_cell(v) for v in d.values()))
    console.print(table)


def _print_dict(data: dict[str, Any], *, title: str = "") -> None:
    """Render a single dict as key-value pairs."""
    if title:
        console.print(f"[bold]{title}[/bold]")
    for k, v in data.items():
        console.print(f"  [cyan]{k}[/cyan]: {_cell(v)}")


def _cell(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, dict | list):
        return escape(json.dumps(value, default=str))
    return escape(str(value))
