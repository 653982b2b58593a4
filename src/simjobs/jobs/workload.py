"""Workloads - the unit of work a job executes.

The pipeline only needs ``run(message) -> dict``. ``SimulationWorkload``
is a placeholder for the real simulation: it waits a fixed delay and
echoes the run shape back as metrics.

A workload reports an explicit failure by raising
:class:`~simjobs.core.errors.WorkloadFailed`; that is the only way a job
ends up ``failed``. Anything else it raises leaves the job ``running``.
"""

from __future__ import annotations

import time
from typing import Any, Protocol, runtime_checkable

from simjobs.core.logging import get_logger

from .models import QueueMessage

logger = get_logger(__name__)


@runtime_checkable
class Workload(Protocol):
    """Executes one job and returns its result document."""

    def run(self, message: QueueMessage) -> dict[str, Any]:
        ...


class SimulationWorkload:
    """Placeholder simulation.

    Example:
        >>> workload = SimulationWorkload(delay_seconds=0)
        >>> workload.run(message)
        {'ok': True, 'metrics': {'echoRuns': 5, 'echoAgentCount': 50, 'advancedProvided': 0}}
    """

    def __init__(self, delay_seconds: float = 2.0):
        self._delay = delay_seconds

    def run(self, message: QueueMessage) -> dict[str, Any]:
        if self._delay > 0:
            time.sleep(self._delay)
        metrics = {
            "echoRuns": message.runs,
            "echoAgentCount": message.agent_count,
            "advancedProvided": message.advanced_provided(),
        }
        logger.debug("workload.finished", simulation_id=message.simulation_id, **metrics)
        return {"ok": True, "metrics": metrics}


__all__ = [
    "Workload",
    "SimulationWorkload",
]
