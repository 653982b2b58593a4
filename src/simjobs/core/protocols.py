"""
Connection protocol shared by the database adapters and the record store.

The store only relies on the DB-API 2.0 subset below, which both
``sqlite3.Connection`` and ``mysql.connector`` pooled connections provide.
Statements go through ``cursor()`` (``mysql.connector`` connections have
no ``execute`` shortcut).
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Cursor(Protocol):
    """DB-API cursor subset."""

    rowcount: int

    def execute(self, sql: str, params: tuple = ()) -> Any:
        ...

    def fetchone(self) -> Any:
        ...

    def fetchall(self) -> list:
        ...


@runtime_checkable
class Connection(Protocol):
    """
    Minimal SYNCHRONOUS connection interface for database operations.

    Examples:
        >>> def mark_published(conn: Connection, outbox_id: str, now: str):
        ...     cursor = conn.cursor()
        ...     cursor.execute(
        ...         "UPDATE simulation_outbox SET published_at = ? WHERE id = ?",
        ...         (now, outbox_id),
        ...     )
        ...     conn.commit()
    """

    def cursor(self) -> Any:
        """Open a cursor. SYNC."""
        ...

    def commit(self) -> None:
        """Commit current transaction. SYNC."""
        ...

    def rollback(self) -> None:
        """Rollback current transaction. SYNC."""
        ...


__all__ = [
    "Connection",
    "Cursor",
]
