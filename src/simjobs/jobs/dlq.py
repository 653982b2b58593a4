"""Dead letter log - record and inspect messages dropped without requeue.

WHY
───
A message the worker rejects is gone from the broker for good. The dead
letter log keeps what is needed to reconcile it by hand: the job id (when
the body could be read), the raw body, why it was dropped, and the error.

ARCHITECTURE
────────────
::

    DeadLetterLog(store)
      ├── .record(reason, ...)       ─ capture a dropped message
      ├── .get(id)
      ├── .list_unresolved(reason)   ─ oldest first
      ├── .resolve(id, by)           ─ mark as handled
      └── .count_unresolved(reason)

    DeadLetter (models.py)      ─ row-level data model

There is no replay: resolving an entry only records that an operator
dealt with it.

Example::

    dlq = DeadLetterLog(store)
    entry = dlq.record(
        DeadLetterReason.STORE_MISMATCH,
        simulation_id=job_id,
        body=delivery.body,
        error="terminal write matched no row",
    )
    dlq.resolve(entry.id, resolved_by="ops@example.com")
"""

import uuid
from typing import Any

from .codec import body_preview
from .models import DeadLetter, DeadLetterReason, format_ts, parse_ts, utcnow
from .store import RecordStore

_COLUMNS = "id, simulation_id, body, reason, error, created_at, resolved_at, resolved_by"


class DeadLetterLog:
    """Manages the ``simulation_dead_letters`` table."""

    def __init__(self, store: RecordStore):
        self._store = store

    def record(
        self,
        reason: DeadLetterReason,
        *,
        simulation_id: str | None = None,
        body: bytes | str | None = None,
        error: str | None = None,
    ) -> DeadLetter:
        """Add an entry.

        Args:
            reason: Why the message was dropped
            simulation_id: Job id, if the body could be decoded
            body: Raw message body (stored as text, truncated)
            error: Error message

        Returns:
            Created DeadLetter entry
        """
        entry = DeadLetter(
            id=str(uuid.uuid4()),
            reason=reason,
            created_at=utcnow(),
            simulation_id=simulation_id,
            body=body_preview(body) if body is not None else None,
            error=error,
        )
        self._store.execute(
            """
            INSERT INTO simulation_dead_letters (
                id, simulation_id, body, reason, error, created_at
            ) VALUES ({p}, {p}, {p}, {p}, {p}, {p})
            """,
            (
                entry.id,
                entry.simulation_id,
                entry.body,
                entry.reason.value,
                entry.error,
                format_ts(entry.created_at),
            ),
        )
        return entry

    def get(self, dlq_id: str) -> DeadLetter | None:
        """Get an entry by id, or None if not found."""
        row = self._store.fetch_one(
            f"SELECT {_COLUMNS} FROM simulation_dead_letters WHERE id = {{p}}",
            (dlq_id,),
        )
        return self._row_to_dead_letter(row) if row else None

    def list_unresolved(
        self,
        reason: DeadLetterReason | None = None,
        limit: int = 100,
    ) -> list[DeadLetter]:
        """List unresolved entries, oldest first."""
        query = f"SELECT {_COLUMNS} FROM simulation_dead_letters WHERE resolved_at IS NULL"
        params: list[Any] = []
        if reason:
            query += " AND reason = {p}"
            params.append(reason.value)
        query += " ORDER BY created_at ASC LIMIT {p}"
        params.append(limit)
        rows = self._store.fetch_all(query, tuple(params))
        return [self._row_to_dead_letter(row) for row in rows]

    def resolve(self, dlq_id: str, resolved_by: str | None = None) -> bool:
        """Mark an entry as resolved.

        Returns:
            True if resolved, False if not found or already resolved
        """
        return self._store.execute(
            """
            UPDATE simulation_dead_letters
            SET resolved_at = {p}, resolved_by = {p}
            WHERE id = {p} AND resolved_at IS NULL
            """,
            (format_ts(utcnow()), resolved_by, dlq_id),
        ) > 0

    def count_unresolved(self, reason: DeadLetterReason | None = None) -> int:
        query = "SELECT COUNT(*) AS n FROM simulation_dead_letters WHERE resolved_at IS NULL"
        params: tuple = ()
        if reason:
            query += " AND reason = {p}"
            params = (reason.value,)
        row = self._store.fetch_one(query, params)
        return int(row["n"]) if row else 0

    def _row_to_dead_letter(self, row: dict[str, Any]) -> DeadLetter:
        return DeadLetter(
            id=row["id"],
            reason=DeadLetterReason(row["reason"]),
            created_at=parse_ts(row["created_at"]),
            simulation_id=row["simulation_id"],
            body=row["body"],
            error=row["error"],
            resolved_at=parse_ts(row["resolved_at"]),
            resolved_by=row["resolved_by"],
        )


__all__ = [
    "DeadLetterLog",
]
