"""
Shared pytest fixtures for simjobs tests.

This module provides:
- Settings cache isolation
- An in-memory SQLite record store with tables created
- An in-memory transport and the collaborators built on the two

Usage:
    Fixtures are auto-discovered by pytest::

        def test_something(store, transport, submitter):
            ...
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from simjobs.core.adapters import SQLiteAdapter
from simjobs.core.config import SimJobsSettings, clear_settings_cache
from simjobs.jobs.dlq import DeadLetterLog
from simjobs.jobs.outbox import OutboxRelay
from simjobs.jobs.processor import JobProcessor
from simjobs.jobs.store import RecordStore
from simjobs.jobs.submitter import JobSubmitter
from simjobs.jobs.transport import InMemoryTransport
from simjobs.jobs.workload import SimulationWorkload

# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)
        if "integration" in str(test_path) or "test_pipeline" in str(test_path):
            item.add_marker(pytest.mark.integration)
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Settings isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch):
    """Fresh settings for every test; no legacy variables leak in."""
    for name in (
        "MYSQL_HOST",
        "MYSQL_PORT",
        "MYSQL_USER",
        "MYSQL_PASSWORD",
        "MYSQL_DB",
        "RABBITMQ_URL",
    ):
        monkeypatch.delenv(name, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def settings() -> SimJobsSettings:
    return SimJobsSettings(
        database_path=":memory:",
        transport_backend="memory",
        workload_delay_seconds=0,
        poll_interval_seconds=0.01,
    )


# =============================================================================
# Pipeline components
# =============================================================================


@pytest.fixture
def adapter() -> Iterator[SQLiteAdapter]:
    adapter = SQLiteAdapter(":memory:")
    adapter.connect()
    yield adapter
    adapter.disconnect()


@pytest.fixture
def store(adapter) -> RecordStore:
    store = RecordStore(adapter)
    store.initialize()
    return store


@pytest.fixture
def transport() -> Iterator[InMemoryTransport]:
    transport = InMemoryTransport()
    transport.connect()
    yield transport
    transport.close()


@pytest.fixture
def dead_letters(store) -> DeadLetterLog:
    return DeadLetterLog(store)


@pytest.fixture
def relay(store, transport) -> OutboxRelay:
    return OutboxRelay(store, transport)


@pytest.fixture
def submitter(store, relay) -> JobSubmitter:
    return JobSubmitter(store, relay)


@pytest.fixture
def workload() -> SimulationWorkload:
    return SimulationWorkload(delay_seconds=0)


@pytest.fixture
def processor(store, transport, workload, dead_letters) -> JobProcessor:
    return JobProcessor(store, transport, workload, dead_letters)


@pytest.fixture
def random_params() -> dict:
    """The canonical small submission."""
    return {"name": "A", "behavior": "Random", "runs": 5, "agentCount": 50}
