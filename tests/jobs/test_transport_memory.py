"""Tests for InMemoryTransport."""

import threading

import pytest

from simjobs.core.errors import TransportConnectionError
from simjobs.jobs.transport import InMemoryTransport


class TestPublishReceive:
    def test_fifo(self, transport):
        transport.publish(b"one")
        transport.publish(b"two")

        first = transport.receive(timeout=0)
        transport.ack(first)
        second = transport.receive(timeout=0)

        assert first.body == b"one"
        assert second.body == b"two"
        assert first.redelivered is False

    def test_empty_returns_none(self, transport):
        assert transport.receive(timeout=0) is None

    def test_prefetch_one(self, transport):
        transport.publish(b"one")
        transport.publish(b"two")
        delivery = transport.receive(timeout=0)

        assert transport.receive(timeout=0) is None
        transport.ack(delivery)
        assert transport.receive(timeout=0).body == b"two"

    def test_receive_wakes_on_publish(self, transport):
        timer = threading.Timer(0.05, transport.publish, args=(b"late",))
        timer.start()
        try:
            delivery = transport.receive(timeout=2.0)
        finally:
            timer.cancel()
        assert delivery.body == b"late"

    def test_not_connected(self):
        transport = InMemoryTransport()
        with pytest.raises(TransportConnectionError):
            transport.publish(b"x")
        with pytest.raises(TransportConnectionError):
            transport.receive(timeout=0)


class TestSettlement:
    def test_ack_removes(self, transport):
        transport.publish(b"x")
        transport.ack(transport.receive(timeout=0))
        assert transport.depth() == 0
        assert transport.unacked_count() == 0

    def test_reject_drops_without_requeue(self, transport):
        transport.publish(b"bad")
        transport.reject(transport.receive(timeout=0))
        assert transport.depth() == 0
        assert transport.rejected == [b"bad"]
        assert transport.recover() == 0

    def test_double_settle_raises(self, transport):
        transport.publish(b"x")
        delivery = transport.receive(timeout=0)
        transport.ack(delivery)
        with pytest.raises(ValueError):
            transport.ack(delivery)

    def test_depth_counts_ready_only(self, transport):
        for body in (b"a", b"b", b"c"):
            transport.publish(body)
        transport.receive(timeout=0)
        assert transport.depth() == 2
        assert transport.unacked_count() == 1


class TestRecover:
    def test_unacked_redelivered_first(self, transport):
        transport.publish(b"first")
        transport.publish(b"second")
        transport.receive(timeout=0)

        assert transport.recover() == 1
        delivery = transport.receive(timeout=0)
        assert delivery.body == b"first"
        assert delivery.redelivered is True

    def test_close_requeues(self):
        transport = InMemoryTransport()
        transport.connect()
        transport.publish(b"x")
        transport.receive(timeout=0)
        transport.close()

        transport.connect()
        assert transport.depth() == 1
        assert transport.receive(timeout=0).redelivered is True
