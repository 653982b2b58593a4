"""Outbox relay - move committed outbox rows onto the queue.

The submitter never publishes directly. It writes the job record and an
outbox row in one transaction; the relay later publishes every pending
row, in creation order, and marks it published once the transport has
accepted it.

A crash between publish and mark leaves the row pending, so it is
published again on the next pass. The processor's claim guard absorbs
the duplicate.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from simjobs.core.errors import SimJobsError
from simjobs.core.logging import get_logger

from .store import RecordStore
from .transport.protocol import QueueTransport

logger = get_logger(__name__)


@dataclass
class RelayResult:
    """Outcome of one relay pass."""

    published: int = 0
    failed_id: str | None = None
    error: str | None = None
    published_ids: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.failed_id is None


class OutboxRelay:
    """Publishes pending outbox rows.

    Example:
        >>> relay = OutboxRelay(store, transport, batch_size=100)
        >>> relay.relay_pending()
        3
    """

    def __init__(self, store: RecordStore, transport: QueueTransport, batch_size: int = 100):
        self._store = store
        self._transport = transport
        self._batch_size = batch_size

    def relay_pending(self, limit: int | None = None) -> int:
        """Publish up to ``limit`` pending rows; return how many were published."""
        return self.run_pass(limit).published

    def run_pass(self, limit: int | None = None) -> RelayResult:
        """One pass over the pending rows, oldest first.

        Stops at the first publish error so later rows never overtake an
        earlier one. The failed row records the attempt and the error.
        """
        result = RelayResult()
        for entry in self._store.pending_outbox(limit or self._batch_size):
            try:
                self._transport.publish(entry.payload.encode("utf-8"))
            except SimJobsError as e:
                self._store.mark_publish_failed(entry.id, str(e))
                logger.warning(
                    "outbox.publish_failed",
                    outbox_id=entry.id,
                    simulation_id=entry.simulation_id,
                    attempts=entry.publish_attempts + 1,
                    error=str(e),
                )
                result.failed_id = entry.id
                result.error = str(e)
                break

            self._store.mark_published(entry.id)
            result.published += 1
            result.published_ids.append(entry.id)
            logger.debug("outbox.published", outbox_id=entry.id, simulation_id=entry.simulation_id)

        if result.published:
            logger.info("outbox.relayed", count=result.published)
        return result


__all__ = [
    "OutboxRelay",
    "RelayResult",
]
