"""Worker loop - consume the simulations queue one message at a time.

Usage (programmatic)::

    from simjobs.runtime import JobRuntime

    with JobRuntime(get_settings()) as runtime:
        worker = runtime.worker()
        worker.start()  # blocking, runs until SIGINT/SIGTERM

Usage (CLI)::

    simjobs worker start --poll-interval 1
"""

from __future__ import annotations

import os
import platform
import signal
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from simjobs.core.errors import categorize_error, is_retryable
from simjobs.core.logging import LogContext, get_logger

from .models import JobStatus, utcnow
from .outbox import OutboxRelay
from .processor import Disposition, JobProcessor, ProcessingOutcome
from .transport.protocol import QueueTransport

logger = get_logger(__name__)


@dataclass
class WorkerStats:
    """Aggregate statistics for a worker."""

    total_received: int = 0
    total_done: int = 0
    total_failed: int = 0
    total_rejected: int = 0
    total_skipped: int = 0
    total_relayed: int = 0
    uptime_seconds: float = 0
    last_poll_at: datetime | None = None
    fatal_error: str | None = None
    fatal_error_category: str | None = None

    def record(self, outcome: ProcessingOutcome) -> None:
        self.total_received += 1
        if outcome.disposition == Disposition.REJECTED:
            self.total_rejected += 1
        elif outcome.disposition == Disposition.SKIPPED:
            self.total_skipped += 1
        elif outcome.status == JobStatus.DONE:
            self.total_done += 1
        elif outcome.status == JobStatus.FAILED:
            self.total_failed += 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_received": self.total_received,
            "total_done": self.total_done,
            "total_failed": self.total_failed,
            "total_rejected": self.total_rejected,
            "total_skipped": self.total_skipped,
            "total_relayed": self.total_relayed,
            "uptime_seconds": round(self.uptime_seconds, 2),
            "last_poll_at": self.last_poll_at.isoformat() if self.last_poll_at else None,
            "fatal_error": self.fatal_error,
            "fatal_error_category": self.fatal_error_category,
        }


class WorkerLoop:
    """Receives deliveries and hands them to the processor, sequentially.

    Architecture:
        1. ``receive()`` waits up to ``poll_interval`` for a delivery; the
           transport never hands out a second one before the first is
           settled.
        2. The processor claims, executes and settles it.
        3. When the queue is idle, one outbox relay pass runs so rows left
           behind by a failed submit-time publish still get delivered.

    An exception escaping a step means the store or the broker is gone.
    The loop stops with ``exit_code = 1`` and leaves the current message
    unsettled; the broker redelivers it to the next worker.
    """

    def __init__(
        self,
        processor: JobProcessor,
        transport: QueueTransport,
        relay: OutboxRelay | None = None,
        *,
        poll_interval: float = 1.0,
        worker_id: str | None = None,
        max_messages: int | None = None,
        stop_when_idle: bool = False,
    ):
        """
        Args:
            processor: Handles each delivery.
            transport: Queue to consume from.
            relay: Optional outbox relay, run when the queue is idle.
            poll_interval: Seconds to wait for a delivery per cycle.
            worker_id: Custom worker identifier. Auto-generated if ``None``.
            max_messages: Stop after this many deliveries.
            stop_when_idle: Stop after the first cycle with nothing to do.
        """
        self._processor = processor
        self._transport = transport
        self._relay = relay
        self._poll_interval = poll_interval
        self._worker_id = worker_id or f"worker-{uuid.uuid4().hex[:8]}"
        self._max_messages = max_messages
        self._stop_when_idle = stop_when_idle

        self._shutdown = threading.Event()
        self._started_at = utcnow()
        self._stats = WorkerStats()
        self.exit_code = 0

    @property
    def worker_id(self) -> str:
        return self._worker_id

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def start(self) -> int:
        """Run the loop (blocking) and return the process exit code.

        Installs signal handlers for graceful shutdown on SIGINT / SIGTERM.
        """
        logger.info(
            "worker.starting",
            worker_id=self._worker_id,
            pid=os.getpid(),
            hostname=platform.node(),
            transport=self._transport.name,
            poll_interval=self._poll_interval,
        )

        previous = {}
        try:
            for signum in (signal.SIGINT, signal.SIGTERM):
                previous[signum] = signal.signal(signum, self._handle_signal)
        except (ValueError, OSError):
            pass  # Not in main thread

        try:
            with LogContext(worker_id=self._worker_id):
                self._run_loop()
        finally:
            for signum, handler in previous.items():
                if handler is not None:
                    signal.signal(signum, handler)

        stats = self.get_stats()
        logger.info("worker.stopped", worker_id=self._worker_id, exit_code=self.exit_code, **stats.to_dict())
        return self.exit_code

    def start_background(self) -> threading.Thread:
        """Start the worker in a daemon thread. Returns the thread."""
        t = threading.Thread(target=self.start, name=f"{self._worker_id}-loop", daemon=True)
        t.start()
        return t

    def stop(self) -> None:
        """Request graceful shutdown after the current message."""
        logger.info("worker.stopping", worker_id=self._worker_id)
        self._shutdown.set()

    def get_stats(self) -> WorkerStats:
        self._stats.uptime_seconds = (utcnow() - self._started_at).total_seconds()
        return self._stats

    # ------------------------------------------------------------------ #
    # Main loop
    # ------------------------------------------------------------------ #

    def _run_loop(self) -> None:
        while not self._shutdown.is_set():
            relayed_before = self._stats.total_relayed
            try:
                outcome = self.run_once(self._poll_interval)
            except Exception as e:
                self._stats.fatal_error = f"{type(e).__name__}: {e}"
                self._stats.fatal_error_category = categorize_error(e).value
                logger.exception(
                    "worker.fatal_error",
                    worker_id=self._worker_id,
                    category=self._stats.fatal_error_category,
                    retryable=is_retryable(e),
                )
                self.exit_code = 1
                break

            if outcome is None and self._stop_when_idle and self._stats.total_relayed == relayed_before:
                break
            if self._max_messages is not None and self._stats.total_received >= self._max_messages:
                break

    def run_once(self, timeout: float = 0.0) -> ProcessingOutcome | None:
        """One cycle: process a delivery if one arrives within ``timeout``.

        Returns:
            The processing outcome, or None if the queue was idle.
        """
        self._stats.last_poll_at = utcnow()
        delivery = self._transport.receive(timeout=timeout)
        if delivery is None:
            if self._relay is not None:
                self._stats.total_relayed += self._relay.relay_pending()
            return None

        outcome = self._processor.process(delivery)
        self._stats.record(outcome)
        return outcome

    # ------------------------------------------------------------------ #
    # Signal handling
    # ------------------------------------------------------------------ #

    def _handle_signal(self, signum, frame):
        logger.info("worker.signal", worker_id=self._worker_id, signal=signum)
        self.stop()


__all__ = [
    "WorkerLoop",
    "WorkerStats",
]
