"""Tests for JobSubmitter and parameter validation."""

import json

import pytest

from simjobs.core.errors import InvalidParametersError, TransportConnectionError
from simjobs.jobs.codec import decode_message
from simjobs.jobs.models import JobStatus, SimulationParameters
from simjobs.jobs.outbox import OutboxRelay
from simjobs.jobs.submitter import JobSubmitter, validate_parameters


class BrokenTransport:
    def publish(self, body: bytes) -> None:
        raise TransportConnectionError("connection refused")


class TestValidateParameters:
    def test_valid(self, random_params):
        params = validate_parameters(random_params)
        assert params.agent_count == 50

    def test_model_passes_through(self, random_params):
        params = SimulationParameters.model_validate(random_params)
        assert validate_parameters(params) is params

    def test_errors_per_field(self):
        with pytest.raises(InvalidParametersError) as exc_info:
            validate_parameters({"name": "A", "behavior": "Random", "runs": 0, "noise": 3})

        fields = {err["field"] for err in exc_info.value.errors}
        assert fields == {"runs", "agentCount", "noise"}
        assert exc_info.value.to_dict()["category"] == "VALIDATION"


class TestSubmit:
    def test_queued_and_enqueued(self, submitter, store, transport, random_params):
        record = submitter.submit(random_params)

        assert record.status == JobStatus.QUEUED
        assert store.get(record.id).status == JobStatus.QUEUED
        assert store.count_pending_outbox() == 0

        message = decode_message(transport.receive(timeout=0).body)
        assert message.simulation_id == record.id
        assert message.runs == 5
        assert message.agent_count == 50

    def test_advanced_fields_carried(self, submitter, transport, random_params):
        submitter.submit({**random_params, "seed": 3, "noise": 0.5})
        message = decode_message(transport.receive(timeout=0).body)
        assert message.seed == 3
        assert message.noise == 0.5
        assert message.advanced_provided() == 2

    def test_zero_tuning_values_dropped(self, submitter, transport, random_params):
        record = submitter.submit({**random_params, "seed": 0, "noise": 0, "cohesion": 0})
        payload = json.loads(transport.receive(timeout=0).body)
        assert "seed" not in payload
        assert record.parameters.advanced_provided() == 0

    def test_invalid_writes_nothing(self, submitter, store, transport):
        with pytest.raises(InvalidParametersError):
            submitter.submit({"name": "", "behavior": "Random", "runs": 1, "agentCount": 1})
        assert sum(store.count_by_status().values()) == 0
        assert transport.depth() == 0

    def test_without_flush_stays_pending(self, store, relay, transport, random_params):
        record = JobSubmitter(store, relay, flush=False).submit(random_params)
        assert transport.depth() == 0
        assert [e.simulation_id for e in store.pending_outbox()] == [record.id]

    def test_publish_failure_keeps_record(self, store, random_params):
        submitter = JobSubmitter(store, OutboxRelay(store, BrokenTransport()))

        record = submitter.submit(random_params)

        assert store.get(record.id).status == JobStatus.QUEUED
        pending = store.pending_outbox()
        assert pending[0].last_error == "connection refused"
