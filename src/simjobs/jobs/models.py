"""Job domain models.

Defines the core data structures for the job pipeline:

- JobStatus + transition table: the lifecycle state machine
- SimulationParameters: validated intake parameters
- JobRecord: the persisted job row
- QueueMessage: the transient snapshot carried by the queue
- OutboxEntry / DeadLetter: rows of the outbox and dead letter tables
- ClaimOutcome: what happened when a worker tried to claim a record

These models are used by RecordStore, JobSubmitter, JobProcessor and the CLI.
"""

import threading
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utcnow() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(UTC)


_clock_lock = threading.Lock()
_last_created: datetime | None = None


def creation_time() -> datetime:
    """``utcnow()``, nudged forward so two calls in one process never tie.

    Outbox rows are relayed in ``created_at`` order.
    """
    global _last_created
    with _clock_lock:
        now = utcnow()
        if _last_created is not None and now <= _last_created:
            now = _last_created + timedelta(microseconds=1)
        _last_created = now
        return now


def format_ts(value: datetime) -> str:
    """Render a timestamp the way the record store keeps it.

    Fixed width (microseconds always present) so stored values sort
    lexicographically in time order.
    """
    return value.astimezone(UTC).isoformat(timespec="microseconds")


def parse_ts(value: str | None) -> datetime | None:
    """Inverse of :func:`format_ts`; ``None`` passes through."""
    return datetime.fromisoformat(value) if value else None


class InvalidTransitionError(ValueError):
    """Raised when an illegal status transition is attempted.

    Transition validation is strict. Nothing ever goes back to
    ``queued`` and terminal statuses never change.
    """

    def __init__(self, current: str, target: str, enum_name: str = "JobStatus") -> None:
        self.current = current
        self.target = target
        super().__init__(f"Invalid {enum_name} transition: {current} → {target}")


class JobStatus(str, Enum):
    """Status of a simulation job.

    Valid transition graph::

        QUEUED  → RUNNING
        RUNNING → DONE | FAILED
        RUNNING → RUNNING  (re-claim of a redelivered message only)
        DONE    → (terminal)
        FAILED  → (terminal)
    """

    QUEUED = "queued"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES: frozenset[JobStatus] = frozenset({JobStatus.DONE, JobStatus.FAILED})

JOB_VALID_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.QUEUED: frozenset({JobStatus.RUNNING}),
    JobStatus.RUNNING: frozenset({
        JobStatus.RUNNING,  # redelivery re-claim
        JobStatus.DONE,
        JobStatus.FAILED,
    }),
    JobStatus.DONE: frozenset(),  # terminal
    JobStatus.FAILED: frozenset(),  # terminal
}


def validate_transition(
    current: JobStatus,
    target: JobStatus,
    *,
    redelivered: bool = False,
) -> None:
    """Raise :class:`InvalidTransitionError` if *current → target* is illegal.

    Args:
        current: The current job status.
        target: The desired next status.
        redelivered: Whether the transition is driven by a redelivered
            message. ``running → running`` is only legal in that case.

    Example:
        >>> validate_transition(JobStatus.QUEUED, JobStatus.RUNNING)
        >>> validate_transition(JobStatus.DONE, JobStatus.RUNNING)
        InvalidTransitionError: Invalid JobStatus transition: done → running
    """
    allowed = JOB_VALID_TRANSITIONS.get(current, frozenset())
    if target not in allowed:
        raise InvalidTransitionError(current.value, target.value)
    if current == target == JobStatus.RUNNING and not redelivered:
        raise InvalidTransitionError(current.value, target.value)


# =============================================================================
# PARAMETERS AND MESSAGES
# =============================================================================

# Optional tuning fields, in message order
ADVANCED_FIELDS: tuple[str, ...] = (
    "seed",
    "speed",
    "cohesion",
    "separation",
    "alignment",
    "noise",
    "steps",
)


def _zero_as_none(value: Any) -> Any:
    """A zero or blank tuning value is treated as not supplied."""
    return None if value in (0, "") else value


class SimulationParameters(BaseModel):
    """Validated submission parameters.

    Accepts both the wire names (``agentCount``) and the Python names
    (``agent_count``).
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    name: str = Field(..., min_length=1, description="Display name of the run")
    behavior: str = Field(..., min_length=1, description="Agent behavior, e.g. 'Random'")
    runs: int = Field(..., ge=1)
    agent_count: int = Field(..., ge=1, alias="agentCount")

    seed: int | None = None
    speed: float | None = Field(default=None, ge=0.1, le=10)
    cohesion: float | None = Field(default=None, ge=0, le=2)
    separation: float | None = Field(default=None, ge=0, le=2)
    alignment: float | None = Field(default=None, ge=0, le=2)
    noise: float | None = Field(default=None, ge=0, le=1)
    steps: int | None = Field(default=None, ge=10, le=10000)

    _zero_means_unset = field_validator(*ADVANCED_FIELDS, mode="before")(_zero_as_none)

    def advanced_provided(self) -> int:
        """Count of optional tuning fields that were supplied."""
        return sum(1 for name in ADVANCED_FIELDS if getattr(self, name) is not None)


class QueueMessage(BaseModel):
    """Body of a queue message: a snapshot of the job at submission time.

    Only the shape is checked here (required fields present, types
    coercible). Tuning ranges were enforced at intake.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    simulation_id: str = Field(..., min_length=1, alias="simulationId")
    name: str = Field(..., min_length=1)
    behavior: str = Field(..., min_length=1)
    runs: int
    agent_count: int = Field(..., alias="agentCount")

    seed: int | None = None
    speed: float | None = None
    cohesion: float | None = None
    separation: float | None = None
    alignment: float | None = None
    noise: float | None = None
    steps: int | None = None

    _zero_means_unset = field_validator(*ADVANCED_FIELDS, mode="before")(_zero_as_none)

    @classmethod
    def from_record(cls, record: "JobRecord") -> "QueueMessage":
        return cls(
            simulation_id=record.id,
            **record.parameters.model_dump(),
        )

    def advanced_provided(self) -> int:
        """Count of optional tuning fields present in the message."""
        return sum(1 for name in ADVANCED_FIELDS if getattr(self, name) is not None)


# =============================================================================
# RECORDS
# =============================================================================


@dataclass
class JobRecord:
    """A simulation job as stored in the ``simulations`` table.

    Example:
        >>> params = SimulationParameters(name="A", behavior="Random", runs=5, agentCount=50)
        >>> record = JobRecord.create(params)
        >>> record.status
        <JobStatus.QUEUED: 'queued'>
    """

    id: str
    parameters: SimulationParameters
    status: JobStatus
    created_at: datetime
    updated_at: datetime
    result: dict[str, Any] | None = None
    error: str | None = None
    attempts: int = 0

    @classmethod
    def create(cls, parameters: SimulationParameters) -> "JobRecord":
        """Create a new record in QUEUED status."""
        now = creation_time()
        return cls(
            id=str(uuid.uuid4()),
            parameters=parameters,
            status=JobStatus.QUEUED,
            created_at=now,
            updated_at=now,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "status": self.status.value,
            "parameters": self.parameters.model_dump(by_alias=True, exclude_none=True),
            "result": self.result,
            "error": self.error,
            "attempts": self.attempts,
            "created_at": format_ts(self.created_at),
            "updated_at": format_ts(self.updated_at),
        }


@dataclass
class OutboxEntry:
    """A message waiting in (or relayed from) the outbox."""

    id: str
    simulation_id: str
    payload: str
    created_at: datetime
    published_at: datetime | None = None
    publish_attempts: int = 0
    last_error: str | None = None


class DeadLetterReason(str, Enum):
    """Why a message was dropped without requeue."""

    MALFORMED_MESSAGE = "malformed_message"
    UNKNOWN_JOB = "unknown_job"
    WORKLOAD_ERROR = "workload_error"
    STORE_MISMATCH = "store_mismatch"


@dataclass
class DeadLetter:
    """A message that was rejected without requeue.

    Dead letters persist until explicitly resolved by an operator.
    """

    id: str
    reason: DeadLetterReason
    created_at: datetime
    simulation_id: str | None = None
    body: str | None = None
    error: str | None = None
    resolved_at: datetime | None = None
    resolved_by: str | None = None

    @property
    def is_resolved(self) -> bool:
        return self.resolved_at is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "simulation_id": self.simulation_id,
            "reason": self.reason.value,
            "error": self.error,
            "body": self.body,
            "created_at": format_ts(self.created_at),
            "resolved_at": format_ts(self.resolved_at) if self.resolved_at else None,
            "resolved_by": self.resolved_by,
        }


class ClaimOutcome(str, Enum):
    """Result of a worker's attempt to claim a job record."""

    CLAIMED = "claimed"  # queued → running
    RECLAIMED = "reclaimed"  # running → running after redelivery
    ALREADY_TERMINAL = "already_terminal"  # duplicate message for a finished job
    IN_PROGRESS = "in_progress"  # running, owned by another delivery
    NOT_FOUND = "not_found"

    @property
    def acquired(self) -> bool:
        return self in (ClaimOutcome.CLAIMED, ClaimOutcome.RECLAIMED)


__all__ = [
    "utcnow",
    "format_ts",
    "parse_ts",
    "InvalidTransitionError",
    "JobStatus",
    "TERMINAL_STATUSES",
    "JOB_VALID_TRANSITIONS",
    "validate_transition",
    "ADVANCED_FIELDS",
    "SimulationParameters",
    "QueueMessage",
    "JobRecord",
    "OutboxEntry",
    "DeadLetterReason",
    "DeadLetter",
    "ClaimOutcome",
]
