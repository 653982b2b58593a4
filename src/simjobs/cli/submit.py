"""
CLI: ``simjobs submit`` — create a simulation job.
"""

from __future__ import annotations

import typer

from simjobs.cli.utils import err_console, fail, open_runtime, output
from simjobs.core.errors import InvalidParametersError, SimJobsError


def submit(
    name: str = typer.Argument(..., help="Display name of the run"),
    behavior: str = typer.Option("Random", "--behavior", "-b", help="Agent behavior"),
    runs: int = typer.Option(1, "--runs", "-r", help="Number of runs"),
    agent_count: int = typer.Option(50, "--agents", "-a", help="Agents per run"),
    seed: int | None = typer.Option(None, "--seed"),  # noqa: UP007
    speed: float | None = typer.Option(None, "--speed", help="0.1 .. 10"),  # noqa: UP007
    cohesion: float | None = typer.Option(None, "--cohesion", help="0 .. 2"),  # noqa: UP007
    separation: float | None = typer.Option(None, "--separation", help="0 .. 2"),  # noqa: UP007
    alignment: float | None = typer.Option(None, "--alignment", help="0 .. 2"),  # noqa: UP007
    noise: float | None = typer.Option(None, "--noise", help="0 .. 1"),  # noqa: UP007
    steps: int | None = typer.Option(None, "--steps", help="10 .. 10000"),  # noqa: UP007
    database: str | None = typer.Option(None, "--database", "-d"),
    broker: str | None = typer.Option(None, "--broker", help="Broker URL"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Submit a simulation job. The record is created as ``queued``.

    Example::

        simjobs submit "Flock A" --behavior Flocking --runs 5 --agents 50
    """
    data = {
        "name": name,
        "behavior": behavior,
        "runs": runs,
        "agentCount": agent_count,
        "seed": seed,
        "speed": speed,
        "cohesion": cohesion,
        "separation": separation,
        "alignment": alignment,
        "noise": noise,
        "steps": steps,
    }
    with open_runtime(database, broker) as runtime:
        try:
            record = runtime.submitter().submit(data)
        except InvalidParametersError as e:
            for err in e.errors:
                err_console.print(f"  [red]{err['field']}[/red]: {err['message']}")
            fail(e)
        except SimJobsError as e:
            fail(e)
    output(record, as_json=json_out, title="Submitted")
