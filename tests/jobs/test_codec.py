"""Tests for simjobs.jobs.codec."""

import json

import pytest

from simjobs.core.errors import MessageDecodeError
from simjobs.jobs.codec import body_preview, decode_message, encode_message
from simjobs.jobs.models import QueueMessage


@pytest.fixture
def message() -> QueueMessage:
    return QueueMessage(
        simulation_id="5b0c7a2e-0000-4000-8000-000000000001",
        name="A",
        behavior="Random",
        runs=5,
        agent_count=50,
        noise=0.25,
    )


class TestEncode:
    def test_wire_names_and_omitted_optionals(self, message):
        payload = json.loads(encode_message(message))
        assert payload == {
            "simulationId": message.simulation_id,
            "name": "A",
            "behavior": "Random",
            "runs": 5,
            "agentCount": 50,
            "noise": 0.25,
        }

    def test_decode_inverse(self, message):
        assert decode_message(encode_message(message)) == message


class TestDecode:
    def test_accepts_str(self, message):
        assert decode_message(encode_message(message).decode()) == message

    def test_extra_fields_ignored(self):
        body = b'{"simulationId":"s1","name":"A","behavior":"B","runs":1,"agentCount":2,"x":1}'
        assert decode_message(body).simulation_id == "s1"

    @pytest.mark.parametrize(
        "body",
        [
            b"not json",
            b"\xff\xfe",
            b"[1, 2]",
            b'"text"',
            b"{}",
            b'{"simulationId": "s1", "name": "A", "behavior": "B", "runs": "many", "agentCount": 1}',
            b'{"name": "A", "behavior": "B", "runs": 1, "agentCount": 1}',
        ],
    )
    def test_malformed(self, body):
        with pytest.raises(MessageDecodeError):
            decode_message(body)

    def test_simulation_id_kept_in_context(self):
        with pytest.raises(MessageDecodeError) as exc_info:
            decode_message(b'{"simulationId": "s1", "name": "A"}')
        assert exc_info.value.context.simulation_id == "s1"


class TestBodyPreview:
    def test_invalid_utf8_replaced(self):
        assert body_preview(b"ok\xff") == "ok�"

    def test_truncated(self):
        assert len(body_preview("x" * 5000, limit=10)) == 10
