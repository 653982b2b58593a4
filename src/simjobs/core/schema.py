"""
Record store tables.

Defines table names and DDL for the three tables the pipeline owns:

- ``simulations``: the Job Record, one row per submitted job
- ``simulation_outbox``: messages waiting to be relayed to the broker,
  written in the same transaction as the job row
- ``simulation_dead_letters``: messages dropped without requeue, kept for
  manual inspection and reconciliation

Column types are the common subset of SQLite and MySQL. Timestamps are
ISO-8601 UTC strings; ``result`` and ``payload`` hold JSON text.

Example:
    >>> from simjobs.core.adapters import SQLiteAdapter
    >>> adapter = SQLiteAdapter(":memory:")
    >>> create_tables(adapter)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from simjobs.core.adapters.base import DatabaseAdapter

TABLES = {
    "simulations": "simulations",
    "outbox": "simulation_outbox",
    "dead_letters": "simulation_dead_letters",
}


def build_ddl(key_type: str) -> dict[str, str]:
    """Return ``{table: CREATE TABLE statement}`` for the given key column type."""
    return {
        # =====================================================================
        # SIMULATIONS: Job Record. status only moves forward:
        #   queued -> running -> done | failed
        # =====================================================================
        "simulations": f"""
            CREATE TABLE IF NOT EXISTS simulations (
                id {key_type} PRIMARY KEY,

                -- Submission-time parameters (immutable)
                name VARCHAR(255) NOT NULL,
                behavior VARCHAR(64) NOT NULL,
                runs INTEGER NOT NULL,
                agent_count INTEGER NOT NULL,
                seed INTEGER,
                speed DOUBLE,
                cohesion DOUBLE,
                separation DOUBLE,
                alignment DOUBLE,
                noise DOUBLE,
                steps INTEGER,

                -- Lifecycle
                status VARCHAR(16) NOT NULL DEFAULT 'queued',
                result TEXT,                    -- JSON, written with status=done
                error TEXT,                     -- written with status=failed
                attempts INTEGER NOT NULL DEFAULT 0,

                created_at VARCHAR(40) NOT NULL,
                updated_at VARCHAR(40) NOT NULL
            )
        """,
        # =====================================================================
        # SIMULATION_OUTBOX: pending broker publishes
        # =====================================================================
        "outbox": f"""
            CREATE TABLE IF NOT EXISTS simulation_outbox (
                id {key_type} PRIMARY KEY,
                simulation_id {key_type} NOT NULL,
                payload TEXT NOT NULL,          -- encoded message body
                created_at VARCHAR(40) NOT NULL,
                published_at VARCHAR(40),       -- NULL until relayed
                publish_attempts INTEGER NOT NULL DEFAULT 0,
                last_error TEXT
            )
        """,
        # =====================================================================
        # SIMULATION_DEAD_LETTERS: messages rejected without requeue
        # =====================================================================
        "dead_letters": f"""
            CREATE TABLE IF NOT EXISTS simulation_dead_letters (
                id {key_type} PRIMARY KEY,
                simulation_id {key_type},       -- NULL when the body was unreadable
                body TEXT,
                reason VARCHAR(32) NOT NULL,
                error TEXT,
                created_at VARCHAR(40) NOT NULL,
                resolved_at VARCHAR(40),
                resolved_by VARCHAR(255)
            )
        """,
    }


def create_tables(adapter: DatabaseAdapter) -> list[str]:
    """
    Create all record store tables.

    Safe to call multiple times (CREATE IF NOT EXISTS).

    Returns:
        Names of the tables ensured.
    """
    ddl = build_ddl(adapter.dialect.key_type())
    with adapter.transaction() as conn:
        cursor = conn.cursor()
        for statement in ddl.values():
            cursor.execute(statement)
    return [TABLES[key] for key in ddl]


def missing_tables(adapter: DatabaseAdapter) -> list[str]:
    """Return the names of record store tables that do not exist yet."""
    sql = adapter.dialect.table_exists_query()
    return [name for name in TABLES.values() if adapter.query_one(sql, (name,)) is None]


__all__ = [
    "TABLES",
    "build_ddl",
    "create_tables",
    "missing_tables",
]
