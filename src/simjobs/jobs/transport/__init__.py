"""Queue transports.

    QueueTransport (protocol.py)   Protocol + Delivery
        |-- InMemoryTransport      in-process, thread-safe
        |-- AmqpTransport          kombu (RabbitMQ, or any kombu URL)

``create_transport(settings)`` picks one from configuration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from simjobs.core.config import TransportBackend
from simjobs.core.errors import ConfigError

from .amqp import AmqpTransport
from .memory import InMemoryTransport
from .protocol import Delivery, QueueTransport

if TYPE_CHECKING:
    from simjobs.core.config import SimJobsSettings


def create_transport(settings: SimJobsSettings) -> QueueTransport:
    """Build the (not yet connected) transport named by ``settings``."""
    backend = settings.transport_backend
    if backend == TransportBackend.MEMORY:
        return InMemoryTransport(queue_name=settings.queue_name)
    if backend == TransportBackend.AMQP:
        return AmqpTransport(
            settings.broker_url,
            settings.queue_name,
            connect_max_retries=settings.connect_max_retries,
        )
    raise ConfigError(f"Unknown transport backend: {backend}")


__all__ = [
    "Delivery",
    "QueueTransport",
    "InMemoryTransport",
    "AmqpTransport",
    "create_transport",
]
