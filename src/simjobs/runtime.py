"""
Explicit dependency container for the job pipeline.

:class:`JobRuntime` owns the record store connection and the queue
transport. Nothing connects at import time and nothing is global: the
process entry point builds a runtime, calls :meth:`start` (which
connects eagerly, so a missing database or broker fails fast) and
:meth:`close` when done.

Usage::

    from simjobs.core.config import get_settings
    from simjobs.runtime import JobRuntime

    with JobRuntime(get_settings()) as runtime:
        record = runtime.submitter().submit({...})
        runtime.worker(stop_when_idle=True).start()

    # Tests inject components directly:
    runtime = JobRuntime(settings, adapter=SQLiteAdapter(":memory:"),
                         transport=InMemoryTransport())
"""

from __future__ import annotations

from simjobs.core.adapters import DatabaseAdapter, get_adapter
from simjobs.core.config import DatabaseBackend, SimJobsSettings, get_settings
from simjobs.core.logging import get_logger
from simjobs.jobs.dlq import DeadLetterLog
from simjobs.jobs.outbox import OutboxRelay
from simjobs.jobs.processor import JobProcessor
from simjobs.jobs.store import RecordStore
from simjobs.jobs.submitter import JobSubmitter
from simjobs.jobs.transport import QueueTransport, create_transport
from simjobs.jobs.worker import WorkerLoop
from simjobs.jobs.workload import SimulationWorkload, Workload

logger = get_logger(__name__)


def create_adapter(settings: SimJobsSettings) -> DatabaseAdapter:
    """Build the (not yet connected) database adapter named by ``settings``."""
    if settings.database_backend == DatabaseBackend.MYSQL:
        return get_adapter(
            "mysql",
            host=settings.mysql_host,
            port=settings.mysql_port,
            database=settings.mysql_database,
            username=settings.mysql_user,
            password=settings.mysql_password,
            pool_size=settings.mysql_pool_size,
        )
    return get_adapter("sqlite", path=settings.database_path)


class JobRuntime:
    """Owns the store and transport for one process.

    Components are built in ``__init__`` and connected in :meth:`start`.
    Collaborators (submitter, processor, worker) are cheap and created on
    demand.
    """

    def __init__(
        self,
        settings: SimJobsSettings | None = None,
        *,
        adapter: DatabaseAdapter | None = None,
        transport: QueueTransport | None = None,
        workload: Workload | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._store = RecordStore(adapter or create_adapter(self._settings))
        self._transport = transport or create_transport(self._settings)
        self._workload = workload or SimulationWorkload(self._settings.workload_delay_seconds)
        self._dead_letters = DeadLetterLog(self._store)
        self._relay = OutboxRelay(
            self._store,
            self._transport,
            batch_size=self._settings.outbox_batch_size,
        )
        self._started = False

    # ── Properties ───────────────────────────────────────────────

    @property
    def settings(self) -> SimJobsSettings:
        return self._settings

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def transport(self) -> QueueTransport:
        return self._transport

    @property
    def dead_letters(self) -> DeadLetterLog:
        return self._dead_letters

    @property
    def relay(self) -> OutboxRelay:
        return self._relay

    @property
    def started(self) -> bool:
        return self._started

    # ── Collaborators ────────────────────────────────────────────

    def submitter(self, *, flush: bool = True) -> JobSubmitter:
        return JobSubmitter(self._store, self._relay, flush=flush)

    def processor(self) -> JobProcessor:
        return JobProcessor(self._store, self._transport, self._workload, self._dead_letters)

    def worker(self, **kwargs) -> WorkerLoop:
        """Build a :class:`WorkerLoop`; keyword arguments override settings."""
        kwargs.setdefault("poll_interval", self._settings.poll_interval_seconds)
        relay = self._relay if self._settings.relay_outbox_in_worker else None
        return WorkerLoop(self.processor(), self._transport, relay, **kwargs)

    # ── Lifecycle ────────────────────────────────────────────────

    def start(self, *, initialize: bool = True, connect_transport: bool = True) -> JobRuntime:
        """Connect the store and the transport.

        Args:
            initialize: Create missing tables.
            connect_transport: Also connect the broker. Commands that only
                read or write the record store skip it.

        Raises:
            DatabaseConnectionError: If the database cannot be reached.
            TransportConnectionError: If the broker cannot be reached.
        """
        if self._started:
            return self
        for warning in self._settings.component_warnings:
            logger.warning("runtime.component_warning", severity=warning.severity, message=warning.message)

        self._store.connect()
        try:
            if initialize:
                self._store.initialize()
            if connect_transport:
                self._transport.connect()
        except Exception:
            self._store.close()
            raise
        self._started = True
        logger.info(
            "runtime.started",
            database=self._store.adapter.config.to_connection_string(),
            transport=self._transport.name,
            queue=self._settings.queue_name,
        )
        return self

    def close(self) -> None:
        """Release the transport and the store. Safe to call twice."""
        if not self._started:
            return
        self._started = False
        try:
            self._transport.close()
        finally:
            self._store.close()
        logger.info("runtime.closed")

    def __enter__(self) -> JobRuntime:
        return self.start()

    def __exit__(self, *args: object) -> None:
        self.close()


__all__ = [
    "JobRuntime",
    "create_adapter",
]
