"""SQL dialect abstraction for the record store.

The store builds its SQL from templates and asks the ``Dialect`` for the
fragments that differ between backends, so the same repository code runs
on SQLite (tests, local runs) and MySQL (the deployed record store).

Architecture::

    Store code:
    ┌────────────────────────────────────────────────────────────────┐
    │  p = dialect.placeholder                                       │
    │  sql = f"UPDATE simulations SET status = {p(0)} WHERE id = {p(1)}"
    └────────────────────────────────────────────────────────────────┘
                              │
                              ▼
                   ┌──────────┐      ┌────────┐
                   │ SQLite   │      │ MySQL  │
                   │ ?, ?, ?  │      │ %s,%s  │
                   └──────────┘      └────────┘

Examples:
    >>> from simjobs.core.dialect import get_dialect
    >>> d = get_dialect("sqlite")
    >>> d.placeholders(3)
    '?, ?, ?'
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract.

    Every method returns a SQL fragment (string) valid for the target
    database.
    """

    @property
    def name(self) -> str:
        """Human-readable dialect name (e.g. ``'sqlite'``)."""
        ...

    def placeholder(self, index: int) -> str:
        """Single positional placeholder (0-based index)."""
        ...

    def placeholders(self, count: int) -> str:
        """Comma-separated placeholder list."""
        ...

    def key_type(self) -> str:
        """Column type for string primary/foreign keys (UUIDs)."""
        ...

    def table_exists_query(self) -> str:
        """SQL query taking one table-name placeholder, returning rows if it exists."""
        ...


class SQLiteDialect:
    """SQLite dialect — ``?`` placeholders."""

    @property
    def name(self) -> str:
        return "sqlite"

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "?"

    def placeholders(self, count: int) -> str:
        return ", ".join("?" for _ in range(count))

    def key_type(self) -> str:
        return "TEXT"

    def table_exists_query(self) -> str:
        return "SELECT name FROM sqlite_master WHERE type='table' AND name = ?"


class MySQLDialect:
    """MySQL dialect — ``%s`` placeholders.

    Compatible with ``mysql.connector`` (format paramstyle).
    """

    @property
    def name(self) -> str:
        return "mysql"

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "%s"

    def placeholders(self, count: int) -> str:
        return ", ".join("%s" for _ in range(count))

    def key_type(self) -> str:
        # MySQL cannot index an unbounded TEXT column
        return "VARCHAR(36)"

    def table_exists_query(self) -> str:
        return (
            "SELECT TABLE_NAME FROM INFORMATION_SCHEMA.TABLES "
            "WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = %s"
        )


# Dialects are stateless
_DIALECTS: dict[str, Dialect] = {
    "sqlite": SQLiteDialect(),
    "mysql": MySQLDialect(),
}


def get_dialect(db_type: str) -> Dialect:
    """Get a dialect by database type name.

    Raises:
        ValueError: If ``db_type`` is not recognised.
    """
    key = db_type.lower() if isinstance(db_type, str) else db_type.value
    if key not in _DIALECTS:
        raise ValueError(
            f"Unknown dialect '{db_type}'. Supported: {sorted(_DIALECTS)}"
        )
    return _DIALECTS[key]


__all__ = [
    "Dialect",
    "SQLiteDialect",
    "MySQLDialect",
    "get_dialect",
]
