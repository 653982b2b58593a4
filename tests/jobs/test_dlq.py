"""Tests for the dead letter log."""

from simjobs.jobs.models import DeadLetterReason


class TestRecord:
    def test_record_and_get(self, dead_letters):
        entry = dead_letters.record(
            DeadLetterReason.STORE_MISMATCH,
            simulation_id="abc",
            body=b'{"simulationId": "abc"}',
            error="terminal write matched no row",
        )
        loaded = dead_letters.get(entry.id)
        assert loaded.reason == DeadLetterReason.STORE_MISMATCH
        assert loaded.simulation_id == "abc"
        assert loaded.body == '{"simulationId": "abc"}'
        assert loaded.error == "terminal write matched no row"
        assert loaded.is_resolved is False

    def test_unreadable_body_kept_as_text(self, dead_letters):
        entry = dead_letters.record(DeadLetterReason.MALFORMED_MESSAGE, body=b"\xff{")
        loaded = dead_letters.get(entry.id)
        assert loaded.simulation_id is None
        assert loaded.body.endswith("{")

    def test_body_truncated(self, dead_letters):
        entry = dead_letters.record(DeadLetterReason.MALFORMED_MESSAGE, body="x" * 5000)
        assert len(dead_letters.get(entry.id).body) == 2000

    def test_get_missing(self, dead_letters):
        assert dead_letters.get("nope") is None


class TestListAndResolve:
    def test_list_filters_by_reason(self, dead_letters):
        dead_letters.record(DeadLetterReason.MALFORMED_MESSAGE, body=b"x")
        dead_letters.record(DeadLetterReason.UNKNOWN_JOB, simulation_id="ghost")

        assert len(dead_letters.list_unresolved()) == 2
        unknown = dead_letters.list_unresolved(DeadLetterReason.UNKNOWN_JOB)
        assert [e.simulation_id for e in unknown] == ["ghost"]
        assert dead_letters.count_unresolved(DeadLetterReason.MALFORMED_MESSAGE) == 1

    def test_resolve(self, dead_letters):
        entry = dead_letters.record(DeadLetterReason.WORKLOAD_ERROR, simulation_id="abc")

        assert dead_letters.resolve(entry.id, resolved_by="ops") is True
        assert dead_letters.resolve(entry.id, resolved_by="ops") is False

        loaded = dead_letters.get(entry.id)
        assert loaded.is_resolved
        assert loaded.resolved_by == "ops"
        assert dead_letters.list_unresolved() == []
        assert dead_letters.count_unresolved() == 0

    def test_to_dict(self, dead_letters):
        entry = dead_letters.record(DeadLetterReason.UNKNOWN_JOB, simulation_id="ghost")
        data = entry.to_dict()
        assert data["reason"] == "unknown_job"
        assert data["resolved_at"] is None
