"""Queue transport protocol.

Manifesto:
The processor needs exactly one thing from a broker: a durable,
at-least-once channel it can pull one message from at a time and then
settle. ``QueueTransport`` is a ``typing.Protocol``; any object with the
right methods satisfies it, no base class required.

ARCHITECTURE
────────────
::

    QueueTransport (Protocol)
      ├── .connect() / .close()
      ├── .publish(body)        ─ persistent message, durable queue
      ├── .receive(timeout)     ─ next Delivery or None (in-flight limit 1)
      ├── .ack(delivery)        ─ remove the message
      ├── .reject(delivery)     ─ remove the message, never requeued
      └── .depth()              ─ ready message count

    Implementations:
      InMemoryTransport  ─ thread-safe, in-process   (tests, local runs)
      AmqpTransport      ─ kombu, RabbitMQ           (production)

Bodies are raw bytes; ``simjobs.jobs.codec`` owns the format.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


@dataclass
class Delivery:
    """One received, not yet settled message.

    Attributes:
        body: Raw message body.
        delivery_tag: Transport-assigned identifier, unique per delivery.
        redelivered: True when the broker delivered this message before
            and it was never settled (the previous consumer died).
        raw: Transport-specific message object.
    """

    body: bytes
    delivery_tag: str
    redelivered: bool = False
    raw: Any = field(default=None, repr=False)


@runtime_checkable
class QueueTransport(Protocol):
    """Durable at-least-once queue.

    Example implementation:
        >>> class MyTransport:
        ...     def connect(self) -> None: ...
        ...     def close(self) -> None: ...
        ...     def publish(self, body: bytes) -> None: ...
        ...     def receive(self, timeout: float = 1.0) -> Delivery | None: ...
        ...     def ack(self, delivery: Delivery) -> None: ...
        ...     def reject(self, delivery: Delivery) -> None: ...
        ...     def depth(self) -> int: ...
    """

    @property
    def name(self) -> str:
        """Transport name for logging."""
        ...

    def connect(self) -> None:
        """Open the connection and declare the queue.

        Raises:
            TransportConnectionError: If the broker cannot be reached.
        """
        ...

    def close(self) -> None:
        """Release the connection. Unsettled deliveries return to the queue."""
        ...

    def publish(self, body: bytes) -> None:
        """Publish a persistent message.

        Raises:
            TransportConnectionError: If the broker did not accept it.
        """
        ...

    def receive(self, timeout: float = 1.0) -> Delivery | None:
        """Wait up to ``timeout`` seconds for the next message."""
        ...

    def ack(self, delivery: Delivery) -> None:
        """Acknowledge: the message is removed for good."""
        ...

    def reject(self, delivery: Delivery) -> None:
        """Reject without requeue: the message is removed for good."""
        ...

    def depth(self) -> int:
        """Number of messages ready for delivery."""
        ...


__all__ = [
    "Delivery",
    "QueueTransport",
]
