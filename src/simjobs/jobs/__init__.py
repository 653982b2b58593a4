"""
simjobs.jobs - simulation job dispatch and processing.

Components, leaves first::

    models.py      JobStatus state machine, parameters, records, messages
    codec.py       QueueMessage <-> JSON body
    store.py       RecordStore: guarded status writes + outbox rows
    transport/     QueueTransport protocol, in-memory and AMQP (kombu)
    outbox.py      OutboxRelay: committed outbox rows -> queue
    dlq.py         DeadLetterLog: messages rejected without requeue
    workload.py    Workload protocol + placeholder SimulationWorkload
    submitter.py   JobSubmitter: validate, persist, enqueue
    processor.py   JobProcessor: claim, run, reconcile, ack/reject
    worker.py      WorkerLoop: sequential consumption, signals, stats

Control flow::

    JobSubmitter ──► outbox ──► OutboxRelay ──► QueueTransport
                                                     │
    RecordStore ◄── JobProcessor ◄── WorkerLoop ◄────┘
"""

from .dlq import DeadLetterLog
from .models import (
    ClaimOutcome,
    DeadLetter,
    DeadLetterReason,
    InvalidTransitionError,
    JobRecord,
    JobStatus,
    OutboxEntry,
    QueueMessage,
    SimulationParameters,
    validate_transition,
)
from .outbox import OutboxRelay
from .processor import Disposition, JobProcessor, ProcessingOutcome
from .store import RecordStore
from .submitter import JobSubmitter
from .worker import WorkerLoop, WorkerStats
from .workload import SimulationWorkload, Workload

__all__ = [
    "ClaimOutcome",
    "DeadLetter",
    "DeadLetterLog",
    "DeadLetterReason",
    "Disposition",
    "InvalidTransitionError",
    "JobProcessor",
    "JobRecord",
    "JobStatus",
    "JobSubmitter",
    "OutboxEntry",
    "OutboxRelay",
    "ProcessingOutcome",
    "QueueMessage",
    "RecordStore",
    "SimulationParameters",
    "SimulationWorkload",
    "WorkerLoop",
    "WorkerStats",
    "Workload",
    "validate_transition",
]
