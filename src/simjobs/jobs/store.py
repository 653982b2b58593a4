"""Record store - persistent state of every simulation job.

The RecordStore is the single source of truth for job status. Every
status change is one conditional UPDATE keyed by id, so two writers can
never both win the same transition.

Architecture:

    .. code-block:: text

        RecordStore
        ┌───────────────────────────────────────────────────────────┐
        │  JOB RECORDS                 GUARDED TRANSITIONS           │
        │  ───────────                 ───────────────────           │
        │  create()  ── + outbox row   claim()     queued → running  │
        │  get()                                   running → running │
        │  list_stale()                            (redelivery)      │
        │  count_by_status()           complete()  running → done    │
        │                              fail()      running → failed  │
        │                                                            │
        │  update_status(id, status, expected=...)        -> bool    │
        │  update_status_and_result(id, status, result, expected=...)│
        ├───────────────────────────────────────────────────────────┤
        │  OUTBOX                                                    │
        │  pending_outbox()  mark_published()  mark_publish_failed() │
        └───────────────────────────────────────────────────────────┘

Works with any :class:`~simjobs.core.adapters.DatabaseAdapter`. Access
is serialized with a lock because the SQLite adapter shares one
connection between threads.

Example:
    >>> from simjobs.core.adapters import SQLiteAdapter
    >>> store = RecordStore(SQLiteAdapter(":memory:"))
    >>> store.connect()
    >>> store.create(record, payload)
    >>> store.claim(record.id, redelivered=False)
    <ClaimOutcome.CLAIMED: 'claimed'>
"""

import json
import threading
import uuid
from datetime import timedelta
from typing import Any

from simjobs.core.adapters import DatabaseAdapter
from simjobs.core.errors import StoreWriteError
from simjobs.core.logging import get_logger
from simjobs.core.schema import create_tables

from .models import (
    ClaimOutcome,
    JobRecord,
    JobStatus,
    OutboxEntry,
    SimulationParameters,
    format_ts,
    parse_ts,
    utcnow,
    validate_transition,
)

logger = get_logger(__name__)

_RECORD_COLUMNS = """
    id, name, behavior, runs, agent_count, seed, speed, cohesion,
    separation, alignment, noise, steps, status, result, error, attempts,
    created_at, updated_at
"""


class RecordStore:
    """Reads and writes Job Records, plus the outbox rows created with them."""

    def __init__(self, adapter: DatabaseAdapter):
        self._adapter = adapter
        self._lock = threading.RLock()

    @property
    def adapter(self) -> DatabaseAdapter:
        return self._adapter

    def _sql(self, template: str) -> str:
        """Substitute ``{p}`` with the dialect's placeholder."""
        return template.format(p=self._adapter.dialect.placeholder(0))

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def connect(self) -> None:
        """Connect the adapter.

        Raises:
            DatabaseConnectionError: If the database cannot be reached.
        """
        self._adapter.connect()

    def close(self) -> None:
        self._adapter.disconnect()

    def initialize(self) -> list[str]:
        """Create the tables if they do not exist."""
        with self._lock:
            return create_tables(self._adapter)

    def ping(self) -> bool:
        with self._lock:
            return self._adapter.ping()

    # =========================================================================
    # LOW-LEVEL HELPERS (shared with the outbox relay and dead letter log)
    # =========================================================================

    def execute(self, template: str, params: tuple = ()) -> int:
        """Run one write statement in its own transaction; return ``rowcount``."""
        with self._lock, self._adapter.transaction() as conn:
            cursor = conn.cursor()
            cursor.execute(self._sql(template), params)
            return cursor.rowcount

    def fetch_all(self, template: str, params: tuple = ()) -> list[dict[str, Any]]:
        with self._lock:
            return self._adapter.query(self._sql(template), params)

    def fetch_one(self, template: str, params: tuple = ()) -> dict[str, Any] | None:
        with self._lock:
            return self._adapter.query_one(self._sql(template), params)

    # =========================================================================
    # JOB RECORDS
    # =========================================================================

    def create(self, record: JobRecord, payload: str) -> OutboxEntry:
        """Insert a queued record and its outbox row in one transaction.

        Args:
            record: New record (status ``queued``)
            payload: Encoded queue message for the record

        Returns:
            The pending outbox entry
        """
        params = record.parameters
        entry = OutboxEntry(
            id=str(uuid.uuid4()),
            simulation_id=record.id,
            payload=payload,
            created_at=record.created_at,
        )
        with self._lock, self._adapter.transaction() as conn:
            cursor = conn.cursor()
            cursor.execute(
                self._sql(
                    """
                    INSERT INTO simulations (
                        id, name, behavior, runs, agent_count, seed, speed,
                        cohesion, separation, alignment, noise, steps,
                        status, attempts, created_at, updated_at
                    ) VALUES ({p}, {p}, {p}, {p}, {p}, {p}, {p}, {p}, {p}, {p}, {p}, {p}, {p}, {p}, {p}, {p})
                    """
                ),
                (
                    record.id,
                    params.name,
                    params.behavior,
                    params.runs,
                    params.agent_count,
                    params.seed,
                    params.speed,
                    params.cohesion,
                    params.separation,
                    params.alignment,
                    params.noise,
                    params.steps,
                    record.status.value,
                    record.attempts,
                    format_ts(record.created_at),
                    format_ts(record.updated_at),
                ),
            )
            cursor.execute(
                self._sql(
                    """
                    INSERT INTO simulation_outbox (id, simulation_id, payload, created_at)
                    VALUES ({p}, {p}, {p}, {p})
                    """
                ),
                (entry.id, entry.simulation_id, entry.payload, format_ts(entry.created_at)),
            )
        logger.debug("record.created", simulation_id=record.id, outbox_id=entry.id)
        return entry

    def get(self, simulation_id: str) -> JobRecord | None:
        """Get a record by id, or None if not found."""
        row = self.fetch_one(
            f"SELECT {_RECORD_COLUMNS} FROM simulations WHERE id = {{p}}",
            (simulation_id,),
        )
        return self._row_to_record(row) if row else None

    def update_status(
        self,
        simulation_id: str,
        status: JobStatus,
        *,
        expected: JobStatus | None = None,
    ) -> bool:
        """Atomically set ``status`` (and refresh ``updated_at``).

        Args:
            simulation_id: Record id
            status: New status
            expected: When given, the update only applies if the record is
                currently in this status. When omitted, the record's current
                status is read and must allow the move to ``status``.

        Returns:
            True if a row was updated

        Raises:
            InvalidTransitionError: If the move is not a legal transition.
        """
        return self._update(simulation_id, status, expected=expected)

    def update_status_and_result(
        self,
        simulation_id: str,
        status: JobStatus,
        result: dict[str, Any],
        *,
        expected: JobStatus | None = None,
    ) -> bool:
        """Atomically set ``status`` and ``result`` in one update."""
        return self._update(simulation_id, status, expected=expected, result=result)

    def _update(
        self,
        simulation_id: str,
        status: JobStatus,
        *,
        expected: JobStatus | None = None,
        result: dict[str, Any] | None = None,
        error: str | None = None,
    ) -> bool:
        with self._lock:
            if expected is None:
                current = self._current_status(simulation_id)
                if current is None:
                    return False
                expected = current
            validate_transition(expected, status, redelivered=expected == status)
            return self._guarded_update(simulation_id, status, expected, result, error)

    def _current_status(self, simulation_id: str) -> JobStatus | None:
        row = self.fetch_one("SELECT status FROM simulations WHERE id = {p}", (simulation_id,))
        return JobStatus(row["status"]) if row else None

    def _guarded_update(
        self,
        simulation_id: str,
        status: JobStatus,
        expected: JobStatus,
        result: dict[str, Any] | None,
        error: str | None,
    ) -> bool:
        sets = ["status = {p}", "updated_at = {p}"]
        params: list[Any] = [status.value, format_ts(utcnow())]
        if status == JobStatus.RUNNING:
            sets.append("attempts = attempts + 1")
        if result is not None:
            sets.append("result = {p}")
            params.append(json.dumps(result))
        if error is not None:
            sets.append("error = {p}")
            params.append(error)

        query = f"UPDATE simulations SET {', '.join(sets)} WHERE id = {{p}} AND status = {{p}}"
        params.extend((simulation_id, expected.value))

        updated = self.execute(query, tuple(params)) > 0
        logger.debug(
            "record.status_update",
            simulation_id=simulation_id,
            status=status.value,
            expected=expected.value,
            updated=updated,
        )
        return updated

    def claim(self, simulation_id: str, *, redelivered: bool = False) -> ClaimOutcome:
        """Move a record into ``running`` for the delivery in hand.

        ``queued → running`` always; ``running → running`` only when the
        delivery is a redelivery (the previous consumer died mid-job).
        Terminal records are never touched.
        """
        with self._lock:
            if self._update(simulation_id, JobStatus.RUNNING, expected=JobStatus.QUEUED):
                return ClaimOutcome.CLAIMED
            if redelivered and self._update(
                simulation_id, JobStatus.RUNNING, expected=JobStatus.RUNNING
            ):
                return ClaimOutcome.RECLAIMED

            record = self.get(simulation_id)
            if record is None:
                return ClaimOutcome.NOT_FOUND
            if record.status.is_terminal:
                return ClaimOutcome.ALREADY_TERMINAL
            if record.status == JobStatus.RUNNING:
                return ClaimOutcome.IN_PROGRESS
            raise StoreWriteError(
                f"Claim matched no row although record is {record.status.value}"
            ).with_context(simulation_id=simulation_id)

    def complete(self, simulation_id: str, result: dict[str, Any]) -> bool:
        """``running → done`` with ``result``; False if the record was not running."""
        return self.update_status_and_result(
            simulation_id, JobStatus.DONE, result, expected=JobStatus.RUNNING
        )

    def fail(self, simulation_id: str, error: str) -> bool:
        """``running → failed`` with ``error``; False if the record was not running."""
        return self._update(
            simulation_id, JobStatus.FAILED, expected=JobStatus.RUNNING, error=error
        )

    def list_stale(self, older_than: timedelta, limit: int = 100) -> list[JobRecord]:
        """Records stuck in ``running`` with no update for ``older_than``.

        Read-only; nothing is reset. Oldest first.
        """
        cutoff = format_ts(utcnow() - older_than)
        rows = self.fetch_all(
            f"""
            SELECT {_RECORD_COLUMNS} FROM simulations
            WHERE status = {{p}} AND updated_at < {{p}}
            ORDER BY updated_at ASC
            LIMIT {{p}}
            """,
            (JobStatus.RUNNING.value, cutoff, limit),
        )
        return [self._row_to_record(row) for row in rows]

    def count_by_status(self) -> dict[str, int]:
        """``{status: count}`` over all records; every status is present."""
        rows = self.fetch_all("SELECT status, COUNT(*) AS n FROM simulations GROUP BY status")
        counts = {status.value: 0 for status in JobStatus}
        for row in rows:
            counts[row["status"]] = int(row["n"])
        return counts

    # =========================================================================
    # OUTBOX
    # =========================================================================

    def pending_outbox(self, limit: int = 100) -> list[OutboxEntry]:
        """Unpublished outbox rows, oldest first."""
        rows = self.fetch_all(
            """
            SELECT id, simulation_id, payload, created_at, published_at,
                   publish_attempts, last_error
            FROM simulation_outbox
            WHERE published_at IS NULL
            ORDER BY created_at ASC, id ASC
            LIMIT {p}
            """,
            (limit,),
        )
        return [self._row_to_outbox(row) for row in rows]

    def count_pending_outbox(self) -> int:
        row = self.fetch_one(
            "SELECT COUNT(*) AS n FROM simulation_outbox WHERE published_at IS NULL"
        )
        return int(row["n"]) if row else 0

    def mark_published(self, outbox_id: str) -> bool:
        return self.execute(
            """
            UPDATE simulation_outbox
            SET published_at = {p}, publish_attempts = publish_attempts + 1, last_error = NULL
            WHERE id = {p} AND published_at IS NULL
            """,
            (format_ts(utcnow()), outbox_id),
        ) > 0

    def mark_publish_failed(self, outbox_id: str, error: str) -> None:
        self.execute(
            """
            UPDATE simulation_outbox
            SET publish_attempts = publish_attempts + 1, last_error = {p}
            WHERE id = {p}
            """,
            (error, outbox_id),
        )

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _row_to_record(self, row: dict[str, Any]) -> JobRecord:
        parameters = SimulationParameters.model_construct(
            name=row["name"],
            behavior=row["behavior"],
            runs=row["runs"],
            agent_count=row["agent_count"],
            seed=row["seed"],
            speed=row["speed"],
            cohesion=row["cohesion"],
            separation=row["separation"],
            alignment=row["alignment"],
            noise=row["noise"],
            steps=row["steps"],
        )
        return JobRecord(
            id=row["id"],
            parameters=parameters,
            status=JobStatus(row["status"]),
            created_at=parse_ts(row["created_at"]),
            updated_at=parse_ts(row["updated_at"]),
            result=json.loads(row["result"]) if row["result"] else None,
            error=row["error"],
            attempts=row["attempts"],
        )

    def _row_to_outbox(self, row: dict[str, Any]) -> OutboxEntry:
        return OutboxEntry(
            id=row["id"],
            simulation_id=row["simulation_id"],
            payload=row["payload"],
            created_at=parse_ts(row["created_at"]),
            published_at=parse_ts(row["published_at"]),
            publish_attempts=row["publish_attempts"],
            last_error=row["last_error"],
        )


__all__ = [
    "RecordStore",
]
