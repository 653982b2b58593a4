"""Tests for simjobs.core.errors module."""

import pytest

from simjobs.core.errors import (
    ConfigError,
    DatabaseConnectionError,
    ErrorCategory,
    ErrorContext,
    InvalidParametersError,
    MessageDecodeError,
    RecordNotFoundError,
    SimJobsError,
    StoreWriteError,
    TransientError,
    TransportConnectionError,
    ValidationError,
    WorkloadError,
    WorkloadFailed,
    categorize_error,
    is_retryable,
)


class TestErrorContext:
    """Test ErrorContext dataclass."""

    def test_create_empty_context(self):
        ctx = ErrorContext()
        assert ctx.simulation_id is None
        assert ctx.metadata == {}
        assert ctx.to_dict() == {}

    def test_to_dict_only_set_fields(self):
        ctx = ErrorContext(simulation_id="sim-1", queue="simulations")
        assert ctx.to_dict() == {"simulation_id": "sim-1", "queue": "simulations"}

    def test_metadata_merged(self):
        ctx = ErrorContext(worker_id="w1", metadata={"attempt": 2})
        assert ctx.to_dict() == {"worker_id": "w1", "attempt": 2}


class TestSimJobsError:
    """Test the base error."""

    def test_defaults(self):
        error = SimJobsError("boom")
        assert error.message == "boom"
        assert error.category == ErrorCategory.INTERNAL
        assert error.retryable is False
        assert error.cause is None

    def test_cause_is_chained(self):
        cause = ConnectionError("refused")
        error = TransportConnectionError("Cannot reach broker", cause=cause)
        assert error.__cause__ is cause
        assert error.to_dict()["cause"] == "refused"

    def test_with_context_sets_typed_fields_and_metadata(self):
        error = StoreWriteError("no row").with_context(simulation_id="sim-1", expected="running")
        assert error.context.simulation_id == "sim-1"
        assert error.context.metadata == {"expected": "running"}

    def test_to_dict(self):
        error = MessageDecodeError("bad body").with_context(queue="simulations")
        d = error.to_dict()
        assert d["error_type"] == "MessageDecodeError"
        assert d["category"] == "PARSE"
        assert d["retryable"] is False
        assert d["context"] == {"queue": "simulations"}

    def test_repr(self):
        assert repr(ConfigError("bad")) == "ConfigError('bad', category=CONFIG)"


class TestHierarchy:
    """Categories and retry semantics of the subclasses."""

    @pytest.mark.parametrize(
        ("cls", "category", "retryable"),
        [
            (DatabaseConnectionError, ErrorCategory.DATABASE, True),
            (TransportConnectionError, ErrorCategory.TRANSPORT, True),
            (InvalidParametersError, ErrorCategory.VALIDATION, False),
            (MessageDecodeError, ErrorCategory.PARSE, False),
            (ConfigError, ErrorCategory.CONFIG, False),
            (StoreWriteError, ErrorCategory.DATABASE, False),
            (WorkloadFailed, ErrorCategory.WORKLOAD, False),
        ],
    )
    def test_defaults(self, cls, category, retryable):
        error = cls("x")
        assert error.category == category
        assert error.retryable is retryable

    def test_transient_subclasses(self):
        assert issubclass(DatabaseConnectionError, TransientError)
        assert issubclass(TransportConnectionError, TransientError)

    def test_workload_failed_is_workload_error(self):
        assert issubclass(WorkloadFailed, WorkloadError)

    def test_validation_errors_list(self):
        error = InvalidParametersError("bad", errors=[{"field": "runs", "message": "too small"}])
        assert isinstance(error, ValidationError)
        assert error.to_dict()["errors"] == [{"field": "runs", "message": "too small"}]

    def test_record_not_found_context(self):
        error = RecordNotFoundError("sim-9")
        assert "sim-9" in error.message
        assert error.context.simulation_id == "sim-9"


class TestHelpers:
    def test_is_retryable(self):
        assert is_retryable(DatabaseConnectionError("x")) is True
        assert is_retryable(WorkloadFailed("x")) is False
        assert is_retryable(TimeoutError()) is True
        assert is_retryable(KeyError("x")) is False

    def test_categorize_error(self):
        assert categorize_error(MessageDecodeError("x")) == ErrorCategory.PARSE
        assert categorize_error(ConnectionRefusedError()) == ErrorCategory.NETWORK
        assert categorize_error(ValueError()) == ErrorCategory.VALIDATION
        assert categorize_error(KeyError()) == ErrorCategory.UNKNOWN
