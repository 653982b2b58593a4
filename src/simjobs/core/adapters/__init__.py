"""Database adapters -- one interface for the record store backends.

Architecture::

    DatabaseAdapter (base.py)        Abstract base with connect/transaction/query
        |-- SQLiteAdapter            stdlib sqlite3 (always available)
        |-- MySQLAdapter             mysql.connector (optional extra)

    AdapterRegistry (registry.py)    name -> adapter class
    DatabaseConfig (types.py)        connection parameters
    DatabaseType (types.py)          enum of supported backends

Drivers are import-guarded: ``mysql.connector`` is only required at
``connect()`` time::

    pip install simjobs[mysql]
"""

from .base import DatabaseAdapter
from .mysql import MySQLAdapter
from .registry import AdapterRegistry, adapter_registry, get_adapter
from .sqlite import SQLiteAdapter
from .types import DatabaseConfig, DatabaseType

__all__ = [
    "DatabaseAdapter",
    "SQLiteAdapter",
    "MySQLAdapter",
    "AdapterRegistry",
    "adapter_registry",
    "get_adapter",
    "DatabaseConfig",
    "DatabaseType",
]
