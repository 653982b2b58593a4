"""Job submitter - accept a simulation request and make it durable.

``submit()`` validates the parameters, then writes the ``queued`` record
and its outbox row in one transaction. Publishing is the relay's job;
by default the submitter asks it for an immediate flush so the message
is on the queue before ``submit()`` returns. If that publish fails the
row stays pending and a later relay pass (the worker runs one when
idle) delivers it.

The submitter never waits on a worker.
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError as PydanticValidationError

from simjobs.core.errors import InvalidParametersError
from simjobs.core.logging import get_logger

from .codec import encode_message
from .models import JobRecord, QueueMessage, SimulationParameters
from .outbox import OutboxRelay
from .store import RecordStore

logger = get_logger(__name__)


def validate_parameters(data: dict[str, Any] | SimulationParameters) -> SimulationParameters:
    """Validate raw intake data.

    Raises:
        InvalidParametersError: With one entry per failing field.
    """
    if isinstance(data, SimulationParameters):
        return data
    try:
        return SimulationParameters.model_validate(data)
    except PydanticValidationError as e:
        errors = [
            {
                "field": ".".join(str(part) for part in err["loc"]),
                "message": err["msg"],
                "type": err["type"],
            }
            for err in e.errors()
        ]
        raise InvalidParametersError(
            f"Invalid simulation parameters: {e.error_count()} error(s)",
            errors=errors,
            cause=e,
        ) from e


class JobSubmitter:
    """Creates jobs.

    Example:
        >>> submitter = JobSubmitter(store, relay)
        >>> record = submitter.submit({"name": "A", "behavior": "Random", "runs": 5, "agentCount": 50})
        >>> record.status
        <JobStatus.QUEUED: 'queued'>
    """

    def __init__(self, store: RecordStore, relay: OutboxRelay | None = None, *, flush: bool = True):
        self._store = store
        self._relay = relay
        self._flush = flush and relay is not None

    def submit(self, data: dict[str, Any] | SimulationParameters) -> JobRecord:
        """Validate, persist as ``queued``, and enqueue.

        Raises:
            InvalidParametersError: If the parameters fail validation.
            DatabaseError: If the record could not be written; nothing
                is enqueued in that case.
        """
        parameters = validate_parameters(data)
        record = JobRecord.create(parameters)
        body = encode_message(QueueMessage.from_record(record))
        self._store.create(record, body.decode("utf-8"))

        logger.info(
            "simulation.submitted",
            simulation_id=record.id,
            behavior=parameters.behavior,
            runs=parameters.runs,
            agent_count=parameters.agent_count,
        )

        if self._flush:
            result = self._relay.run_pass()
            if not result.ok:
                logger.warning(
                    "simulation.enqueue_deferred",
                    simulation_id=record.id,
                    error=result.error,
                )
        return record


__all__ = [
    "JobSubmitter",
    "validate_parameters",
]
