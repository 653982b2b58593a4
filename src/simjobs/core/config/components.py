"""
Component backend enumerations and compatibility validation.

Each enum represents a pluggable backend dimension. The
:func:`validate_component_combination` function checks that a set of
chosen backends is consistent.

Example::

    from simjobs.core.config.components import (
        DatabaseBackend, TransportBackend, validate_component_combination,
    )

    warnings = validate_component_combination(
        database=DatabaseBackend.SQLITE,
        transport=TransportBackend.MEMORY,
    )
    for w in warnings:
        print(w.severity, w.message)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class DatabaseBackend(str, Enum):
    """Supported record store backends."""

    SQLITE = "sqlite"
    MYSQL = "mysql"


class TransportBackend(str, Enum):
    """Supported queue transport backends."""

    MEMORY = "memory"
    AMQP = "amqp"


@dataclass(frozen=True)
class ComponentWarning:
    """A compatibility finding for a backend combination."""

    severity: str  # "warning" | "error"
    message: str


def validate_component_combination(
    *,
    database: DatabaseBackend,
    transport: TransportBackend,
    database_path: str = "",
) -> list[ComponentWarning]:
    """Check a backend combination.

    Returns warnings; raises ``ValueError`` for combinations that cannot
    work at all.
    """
    warnings: list[ComponentWarning] = []

    if transport == TransportBackend.MEMORY:
        warnings.append(
            ComponentWarning(
                "warning",
                "memory transport only delivers within one process; "
                "submitter and worker must share it",
            )
        )

    if database == DatabaseBackend.SQLITE and database_path == ":memory:" and transport == TransportBackend.AMQP:
        raise ValueError(
            "an in-memory SQLite record store cannot be shared with a worker "
            "consuming from a broker in another process"
        )

    return warnings


__all__ = [
    "DatabaseBackend",
    "TransportBackend",
    "ComponentWarning",
    "validate_component_combination",
]
