"""Tests for simjobs.core.logging."""

import io
import json

import structlog

from simjobs.core.logging import (
    LogContext,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)


class TestConfigureLogging:
    def test_json_output(self):
        stream = io.StringIO()
        configure_logging(level="INFO", json_format=True, service="simjobs-test", stream=stream)
        structlog.get_logger("t").bind().info("simulation.completed", simulation_id="s1")

        line = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert line["event"] == "simulation.completed"
        assert line["simulation_id"] == "s1"
        assert line["service.name"] == "simjobs-test"
        assert line["log.level"] == "info"
        assert "@timestamp" in line

    def test_level_filters(self):
        stream = io.StringIO()
        configure_logging(level="WARNING", json_format=True, stream=stream)
        structlog.get_logger("t").bind().info("ignored")
        assert stream.getvalue() == ""


class TestContext:
    def teardown_method(self):
        clear_context()

    def test_log_context_binds_and_unbinds(self):
        with LogContext(simulation_id="s1"):
            assert structlog.contextvars.get_contextvars()["simulation_id"] == "s1"
        assert "simulation_id" not in structlog.contextvars.get_contextvars()

    def test_bind_and_clear(self):
        bind_context(worker_id="w1")
        assert structlog.contextvars.get_contextvars() == {"worker_id": "w1"}
        clear_context()
        assert structlog.contextvars.get_contextvars() == {}

    def test_get_logger(self):
        assert get_logger(__name__) is not None
