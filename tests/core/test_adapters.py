"""Tests for ``simjobs.core.adapters`` and ``simjobs.core.dialect``."""

from __future__ import annotations

import sqlite3
from unittest.mock import patch

import pytest

from simjobs.core.adapters import (
    DatabaseConfig,
    DatabaseType,
    MySQLAdapter,
    SQLiteAdapter,
    adapter_registry,
    get_adapter,
)
from simjobs.core.dialect import MySQLDialect, SQLiteDialect, get_dialect
from simjobs.core.errors import ConfigError, DatabaseConnectionError


class TestDialect:
    def test_sqlite_placeholders(self):
        d = get_dialect("sqlite")
        assert isinstance(d, SQLiteDialect)
        assert d.placeholder(0) == "?"
        assert d.placeholders(3) == "?, ?, ?"
        assert d.key_type() == "TEXT"

    def test_mysql_placeholders(self):
        d = get_dialect("MySQL")
        assert isinstance(d, MySQLDialect)
        assert d.placeholders(2) == "%s, %s"
        assert d.key_type() == "VARCHAR(36)"

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown dialect"):
            get_dialect("oracle")


class TestSQLiteAdapter:
    def test_default_memory(self):
        adapter = SQLiteAdapter()
        assert adapter.db_type == DatabaseType.SQLITE
        assert adapter.is_connected is False

    def test_connect_and_query(self):
        with SQLiteAdapter(":memory:") as adapter:
            assert adapter.is_connected
            assert adapter.query_one("SELECT 1 AS ok") == {"ok": 1}
            assert adapter.ping() is True
        assert adapter.is_connected is False

    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / "nested" / "jobs.db"
        with SQLiteAdapter(str(path)):
            pass
        assert path.parent.is_dir()

    def test_transaction_commits(self):
        with SQLiteAdapter(":memory:") as adapter:
            with adapter.transaction() as conn:
                conn.cursor().execute("CREATE TABLE t (x INTEGER)")
                conn.cursor().execute("INSERT INTO t VALUES (1)")
            assert adapter.query("SELECT x FROM t") == [{"x": 1}]

    def test_transaction_rolls_back(self):
        with SQLiteAdapter(":memory:") as adapter:
            with adapter.transaction() as conn:
                conn.cursor().execute("CREATE TABLE t (x INTEGER)")
            with pytest.raises(RuntimeError):
                with adapter.transaction() as conn:
                    conn.cursor().execute("INSERT INTO t VALUES (1)")
                    raise RuntimeError("abort")
            assert adapter.query("SELECT x FROM t") == []

    def test_connect_failure_wrapped(self):
        adapter = SQLiteAdapter(":memory:")
        with patch("simjobs.core.adapters.sqlite.sqlite3.connect", side_effect=sqlite3.OperationalError("locked")):
            with pytest.raises(DatabaseConnectionError):
                adapter.connect()


class TestMySQLAdapter:
    def test_config(self):
        adapter = MySQLAdapter(host="db", port=3307, database="sims", username="u", password="p")
        assert adapter.db_type == DatabaseType.MYSQL
        assert adapter.dialect.name == "mysql"
        assert adapter.config.to_connection_string() == "mysql://u:***@db:3307/sims"

    def test_missing_driver_is_config_error(self):
        adapter = MySQLAdapter(database="sims")
        with patch.dict("sys.modules", {"mysql": None, "mysql.connector": None}):
            with pytest.raises(ConfigError, match="mysql-connector-python"):
                adapter.connect()


class TestRegistry:
    def test_defaults_registered(self):
        assert adapter_registry.list_adapters() == ["mysql", "sqlite"]

    def test_get_adapter_by_enum(self):
        adapter = get_adapter(DatabaseType.SQLITE, path=":memory:")
        assert isinstance(adapter, SQLiteAdapter)

    def test_unknown_adapter(self):
        with pytest.raises(ConfigError):
            get_adapter("oracle")

    def test_sqlite_connection_string(self):
        assert DatabaseConfig(path="x.db").to_connection_string() == "x.db"
