"""
Tests for job status transition validation.

Tests cover:
- Valid forward transitions
- running → running only for redeliveries
- Terminal statuses have no outgoing transitions
- Nothing returns to queued
- InvalidTransitionError details
"""

import pytest

from simjobs.jobs.models import (
    JOB_VALID_TRANSITIONS,
    TERMINAL_STATUSES,
    InvalidTransitionError,
    JobStatus,
    validate_transition,
)


class TestValidTransitions:
    """Tests for allowed transitions."""

    def test_queued_to_running(self):
        validate_transition(JobStatus.QUEUED, JobStatus.RUNNING)

    def test_running_to_done(self):
        validate_transition(JobStatus.RUNNING, JobStatus.DONE)

    def test_running_to_failed(self):
        validate_transition(JobStatus.RUNNING, JobStatus.FAILED)

    def test_running_to_running_on_redelivery(self):
        validate_transition(JobStatus.RUNNING, JobStatus.RUNNING, redelivered=True)


class TestInvalidTransitions:
    """Tests for rejected transitions."""

    def test_running_to_running_without_redelivery(self):
        with pytest.raises(InvalidTransitionError):
            validate_transition(JobStatus.RUNNING, JobStatus.RUNNING)

    def test_queued_to_done_skips_running(self):
        with pytest.raises(InvalidTransitionError):
            validate_transition(JobStatus.QUEUED, JobStatus.DONE)

    @pytest.mark.parametrize("status", list(JobStatus))
    def test_nothing_returns_to_queued(self, status):
        with pytest.raises(InvalidTransitionError):
            validate_transition(status, JobStatus.QUEUED)

    @pytest.mark.parametrize("terminal", sorted(TERMINAL_STATUSES, key=lambda s: s.value))
    @pytest.mark.parametrize("target", list(JobStatus))
    def test_terminal_is_final(self, terminal, target):
        with pytest.raises(InvalidTransitionError):
            validate_transition(terminal, target, redelivered=True)


class TestTransitionTable:
    def test_every_status_has_an_entry(self):
        assert set(JOB_VALID_TRANSITIONS) == set(JobStatus)

    def test_terminal_entries_empty(self):
        for status in TERMINAL_STATUSES:
            assert JOB_VALID_TRANSITIONS[status] == frozenset()

    def test_is_terminal(self):
        assert JobStatus.DONE.is_terminal
        assert JobStatus.FAILED.is_terminal
        assert not JobStatus.RUNNING.is_terminal


class TestInvalidTransitionError:
    def test_message_and_attributes(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            validate_transition(JobStatus.DONE, JobStatus.RUNNING)
        err = exc_info.value
        assert err.current == "done"
        assert err.target == "running"
        assert "JobStatus" in str(err)

    def test_is_value_error(self):
        assert issubclass(InvalidTransitionError, ValueError)
