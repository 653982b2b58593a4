"""In-memory transport for testing and development.

Behaves like a single durable queue with one consumer and a prefetch of
one: a second ``receive()`` returns nothing until the outstanding
delivery is settled. Messages live only as long as the object.

``recover()`` plays the part of a broker noticing a dead consumer: every
unsettled delivery goes back to the head of the queue flagged
``redelivered``.
"""

from __future__ import annotations

import itertools
import threading
from collections import deque
from dataclasses import dataclass

from simjobs.core.errors import TransportConnectionError
from simjobs.core.logging import get_logger

from .protocol import Delivery

logger = get_logger(__name__)


@dataclass
class _Message:
    body: bytes
    redelivered: bool = False


class InMemoryTransport:
    """In-process queue - thread-safe, not persistent.

    Perfect for:
    - Unit tests
    - Running submitter and worker in one process

    Example:
        >>> transport = InMemoryTransport()
        >>> transport.connect()
        >>> transport.publish(b'{"simulationId": "abc"}')
        >>> delivery = transport.receive(timeout=0)
        >>> transport.ack(delivery)
        >>> transport.depth()
        0
    """

    def __init__(self, queue_name: str = "simulations", prefetch: int = 1):
        self.queue_name = queue_name
        self._prefetch = prefetch
        self._ready: deque[_Message] = deque()
        self._unacked: dict[str, _Message] = {}
        self._rejected: list[bytes] = []
        self._tags = itertools.count(1)
        self._cond = threading.Condition()
        self._connected = False

    @property
    def name(self) -> str:
        return "memory"

    @property
    def is_connected(self) -> bool:
        return self._connected

    def connect(self) -> None:
        self._connected = True

    def close(self) -> None:
        """Disconnect; unsettled deliveries go back to the queue."""
        self.recover()
        self._connected = False

    def _require_connected(self) -> None:
        if not self._connected:
            raise TransportConnectionError(
                "In-memory transport is not connected"
            ).with_context(queue=self.queue_name)

    def publish(self, body: bytes) -> None:
        self._require_connected()
        with self._cond:
            self._ready.append(_Message(body=bytes(body)))
            self._cond.notify_all()

    def receive(self, timeout: float = 1.0) -> Delivery | None:
        self._require_connected()
        with self._cond:
            available = self._cond.wait_for(
                lambda: bool(self._ready) and len(self._unacked) < self._prefetch,
                timeout=timeout,
            )
            if not available:
                return None
            message = self._ready.popleft()
            tag = str(next(self._tags))
            self._unacked[tag] = message
            return Delivery(
                body=message.body,
                delivery_tag=tag,
                redelivered=message.redelivered,
                raw=message,
            )

    def _settle(self, delivery: Delivery) -> _Message:
        with self._cond:
            try:
                message = self._unacked.pop(delivery.delivery_tag)
            except KeyError:
                raise ValueError(
                    f"Unknown or already settled delivery tag: {delivery.delivery_tag}"
                ) from None
            self._cond.notify_all()
            return message

    def ack(self, delivery: Delivery) -> None:
        self._settle(delivery)

    def reject(self, delivery: Delivery) -> None:
        message = self._settle(delivery)
        self._rejected.append(message.body)

    def depth(self) -> int:
        with self._cond:
            return len(self._ready)

    # --- Inspection helpers (MemoryTransport-specific) ---

    def unacked_count(self) -> int:
        """Number of deliveries handed out and not yet settled."""
        with self._cond:
            return len(self._unacked)

    @property
    def rejected(self) -> list[bytes]:
        """Bodies rejected so far, oldest first."""
        return list(self._rejected)

    def recover(self) -> int:
        """Requeue every unsettled delivery at the head, flagged redelivered.

        Returns:
            Number of messages requeued.
        """
        with self._cond:
            pending = list(self._unacked.values())
            self._unacked.clear()
            for message in reversed(pending):
                message.redelivered = True
                self._ready.appendleft(message)
            if pending:
                logger.info("transport.recovered", queue=self.queue_name, count=len(pending))
                self._cond.notify_all()
            return len(pending)

    def clear(self) -> None:
        """Drop all messages (for testing)."""
        with self._cond:
            self._ready.clear()
            self._unacked.clear()
            self._rejected.clear()


__all__ = [
    "InMemoryTransport",
]
