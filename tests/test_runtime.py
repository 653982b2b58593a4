"""Tests for JobRuntime wiring and lifecycle."""

import pytest

from simjobs.core.adapters import SQLiteAdapter
from simjobs.core.errors import TransportConnectionError
from simjobs.jobs.models import JobStatus
from simjobs.jobs.transport import InMemoryTransport
from simjobs.runtime import JobRuntime, create_adapter


class RefusingTransport(InMemoryTransport):
    def connect(self) -> None:
        raise TransportConnectionError("connection refused")


@pytest.fixture
def runtime(settings):
    runtime = JobRuntime(settings, adapter=SQLiteAdapter(":memory:"), transport=InMemoryTransport())
    yield runtime
    runtime.close()


def test_submit_and_work(runtime, random_params):
    runtime.start()
    record = runtime.submitter().submit(random_params)

    assert runtime.worker(stop_when_idle=True).start() == 0

    assert runtime.store.get(record.id).status == JobStatus.DONE


def test_context_manager(settings):
    with JobRuntime(settings, adapter=SQLiteAdapter(":memory:"), transport=InMemoryTransport()) as runtime:
        assert runtime.started
        assert runtime.store.ping()
    assert not runtime.started


def test_close_twice(runtime):
    runtime.start()
    runtime.close()
    runtime.close()
    assert not runtime.started


def test_transport_failure_closes_store(settings):
    adapter = SQLiteAdapter(":memory:")
    runtime = JobRuntime(settings, adapter=adapter, transport=RefusingTransport())

    with pytest.raises(TransportConnectionError):
        runtime.start()

    assert not runtime.started
    assert not adapter.is_connected


def test_store_only(runtime):
    runtime.start(connect_transport=False)
    assert not runtime.transport.is_connected


def test_worker_defaults_from_settings(settings, runtime):
    worker = runtime.worker(worker_id="w-1")
    assert worker.worker_id == "w-1"
    assert worker._poll_interval == settings.poll_interval_seconds
    assert worker._relay is runtime.relay


def test_worker_without_relay(settings):
    settings = settings.model_copy(update={"relay_outbox_in_worker": False})
    runtime = JobRuntime(settings, adapter=SQLiteAdapter(":memory:"), transport=InMemoryTransport())
    assert runtime.worker()._relay is None


def test_create_adapter_sqlite(settings):
    adapter = create_adapter(settings)
    assert isinstance(adapter, SQLiteAdapter)
    assert adapter.config.path == ":memory:"
