"""MySQL database adapter.

Uses ``mysql.connector`` from the ``mysql-connector-python`` package.
MySQL uses **format** (``%s``) placeholder style.

Install the driver::

    pip install simjobs[mysql]

This adapter is import-guarded: if ``mysql.connector`` is not installed
a clear :class:`~simjobs.core.errors.ConfigError` is raised at
``connect()`` time.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from simjobs.core.errors import ConfigError, DatabaseConnectionError
from simjobs.core.logging import get_logger
from simjobs.core.protocols import Connection

from .base import DatabaseAdapter
from .types import DatabaseConfig, DatabaseType

logger = get_logger(__name__)


class MySQLAdapter(DatabaseAdapter):
    """MySQL / MariaDB database adapter.

    Uses ``mysql.connector`` connection pooling. Every transaction or query
    borrows a connection and returns it to the pool when done.

    The pool is opened with ``FOUND_ROWS`` so that ``cursor.rowcount`` on
    an UPDATE counts matched rows, not changed rows. The record store's
    guarded transitions rely on that.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 3306,
        database: str = "",
        username: str | None = None,
        password: str | None = None,
        *,
        pool_size: int = 10,
        charset: str = "utf8mb4",
        **kwargs: Any,
    ):
        config = DatabaseConfig(
            db_type=DatabaseType.MYSQL,
            host=host,
            port=port,
            database=database,
            username=username,
            password=password,
            pool_size=pool_size,
            options={**(kwargs or {}), "charset": charset},
        )
        super().__init__(config)
        self._pool: Any = None

    def connect(self) -> None:
        """Create the connection pool and verify one connection."""
        try:
            from mysql.connector import pooling
            from mysql.connector.constants import ClientFlag
        except ImportError:
            raise ConfigError(
                "mysql-connector-python is required for MySQL. "
                "Install with: pip install simjobs[mysql]"
            ) from None

        try:
            self._pool = pooling.MySQLConnectionPool(
                pool_name="simjobs_mysql_pool",
                pool_size=self._config.pool_size,
                host=self._config.host,
                port=self._config.port,
                database=self._config.database,
                user=self._config.username,
                password=self._config.password,
                charset=self._config.options.get("charset", "utf8mb4"),
                connect_timeout=self._config.connect_timeout,
                client_flags=[ClientFlag.FOUND_ROWS],
                autocommit=False,
            )
            self._connected = True
        except Exception as e:
            raise DatabaseConnectionError(
                f"Failed to connect to MySQL: {e}",
                cause=e,
            ) from e

    def disconnect(self) -> None:
        """Drop the pool; pooled connections close when garbage collected."""
        self._pool = None
        self._connected = False

    def get_connection(self) -> Any:
        """Get connection from pool."""
        if not self._pool:
            self.connect()
        return self._pool.get_connection()

    def _return_connection(self, conn: Any) -> None:
        """Return connection to pool (``close()`` on a pooled connection)."""
        try:
            conn.close()
        except Exception as e:
            logger.warning("mysql.return_connection_failed", error=str(e))

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """Transaction context manager."""
        conn = self.get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            self._return_connection(conn)

    def query(self, sql: str, params: tuple = ()) -> list[dict[str, Any]]:
        """Execute query and return results as dicts."""
        conn = self.get_connection()
        try:
            cursor = conn.cursor(dictionary=True)
            cursor.execute(sql, params)
            rows = cursor.fetchall()
            # End the implicit read transaction so the next read sees fresh rows
            conn.commit()
            return rows
        finally:
            self._return_connection(conn)


__all__ = [
    "MySQLAdapter",
]
