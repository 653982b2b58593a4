"""
Structured error types for simjobs.

Every failure the pipeline can produce is a typed error carrying the
metadata the worker needs to decide what to do with the message in hand:

- **Category:** What kind of error (network, database, parse, workload...)
- **Retryable:** Whether the same operation could succeed if repeated
- **Context:** simulation id, queue name, delivery tag, custom fields
- **Cause:** Chained underlying exception for root cause analysis

Manifesto:
    - **Typed Error Hierarchy:** Different error types for different failures
    - **Explicit Retry Semantics:** Each error knows if it's retryable
    - **Rich Context:** Errors carry metadata for structured logging
    - **Error Chaining:** Preserve original exceptions while adding context

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                       SimJobsError                              │
        │  (category, retryable, context, cause)                          │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                 │
        │  TransientError             ValidationError     ParseError      │
        │  (retryable=True)           (VALIDATION)        (PARSE)         │
        │       │                          │                  │           │
        │  DatabaseConnectionError    InvalidParameters   MessageDecode   │
        │  TransportConnectionError                                       │
        │                                                                 │
        │  ConfigError       DatabaseError       WorkloadError            │
        │  (CONFIG)          (DATABASE)          (WORKLOAD)               │
        │                         │                   │                   │
        │                    StoreWriteError     WorkloadFailed           │
        │                    RecordNotFound                               │
        └─────────────────────────────────────────────────────────────────┘

How the worker reads these:
    - ``TransientError`` while starting up is fatal: the process exits and
      its supervisor restarts it.
    - ``MessageDecodeError`` and unexpected workload errors drop the message
      (reject without requeue).
    - ``WorkloadFailed`` is the one error that moves a job to ``failed``.
    - ``StoreWriteError`` after the workload ran means the message is never
      acknowledged; it is rejected and dead-lettered for reconciliation.

Tags:
    error-handling, exception-hierarchy, error-context, simjobs
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    # Infrastructure
    NETWORK = "NETWORK"
    DATABASE = "DATABASE"
    TRANSPORT = "TRANSPORT"

    # Data
    PARSE = "PARSE"
    VALIDATION = "VALIDATION"

    # Configuration
    CONFIG = "CONFIG"

    # Application
    WORKLOAD = "WORKLOAD"
    LIFECYCLE = "LIFECYCLE"

    # Internal
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata context for errors.

    Typed fields for the identifiers that matter when a job goes wrong;
    anything else goes into ``metadata``. ``to_dict()`` only emits the
    fields that were set, so it can be splatted straight into a log call.

    Examples:
        >>> ctx = ErrorContext(simulation_id="5b0c...", queue="simulations")
        >>> ctx.to_dict()
        {'simulation_id': '5b0c...', 'queue': 'simulations'}
    """

    simulation_id: str | None = None
    queue: str | None = None
    delivery_tag: str | None = None
    worker_id: str | None = None

    # Additional metadata
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["simulation_id", "queue", "delivery_tag", "worker_id"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class SimJobsError(Exception):
    """
    Base exception for all simjobs errors.

    Subclasses set ``default_category`` and ``default_retryable`` so that
    raising sites only pass what differs from the defaults.

    Examples:
        >>> error = SimJobsError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.retryable
        False

        >>> try:
        ...     raise ConnectionError("broker refused")
        ... except ConnectionError as e:
        ...     error = TransportConnectionError("Cannot reach broker", cause=e)
        >>> error.retryable
        True
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> SimJobsError:
        """
        Add context to this error (fluent API).

        Usage:
            raise StoreWriteError("No row updated").with_context(
                simulation_id=job_id,
                expected="running",
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# TRANSIENT ERRORS (Usually Retryable)
# =============================================================================


class TransientError(SimJobsError):
    """
    Temporary infrastructure error that may succeed on retry.

    Raised when the record store or the broker cannot be reached. The
    worker treats these as fatal at startup: a worker with no dependencies
    is useless, so it exits and lets its supervisor restart it.
    """

    default_category = ErrorCategory.NETWORK
    default_retryable = True


class DatabaseConnectionError(TransientError):
    """Database connection or pool error."""

    default_category = ErrorCategory.DATABASE


class TransportConnectionError(TransientError):
    """Broker connection or channel error."""

    default_category = ErrorCategory.TRANSPORT


# =============================================================================
# VALIDATION / PARSE ERRORS
# =============================================================================


class ValidationError(SimJobsError):
    """
    Data validation error.

    Never retryable - data must be fixed.
    """

    default_category = ErrorCategory.VALIDATION
    default_retryable = False

    def __init__(
        self,
        message: str,
        *,
        errors: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.errors = errors or []

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.errors:
            result["errors"] = self.errors
        return result


class InvalidParametersError(ValidationError):
    """Submitted simulation parameters failed validation."""

    pass


class ParseError(SimJobsError):
    """Error parsing inbound data."""

    default_category = ErrorCategory.PARSE
    default_retryable = False


class MessageDecodeError(ParseError):
    """Queue message body could not be decoded into a job message.

    Deterministic: the same body fails the same way every time, so the
    message is dropped rather than redelivered.
    """

    pass


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(SimJobsError):
    """
    Configuration error.

    Never retryable - configuration must be fixed.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


# =============================================================================
# DATABASE ERRORS
# =============================================================================


class DatabaseError(SimJobsError):
    """Database query or transaction error."""

    default_category = ErrorCategory.DATABASE
    default_retryable = False


class StoreWriteError(DatabaseError):
    """A record store write failed or matched no row."""

    pass


class RecordNotFoundError(DatabaseError):
    """No job record exists for the given id."""

    def __init__(self, simulation_id: str):
        super().__init__(
            f"Simulation not found: {simulation_id}",
            context=ErrorContext(simulation_id=simulation_id),
        )


# =============================================================================
# WORKLOAD ERRORS
# =============================================================================


class WorkloadError(SimJobsError):
    """Error raised while executing a job's workload."""

    default_category = ErrorCategory.WORKLOAD
    default_retryable = False


class WorkloadFailed(WorkloadError):
    """The workload ran and explicitly reported failure.

    This is the only path into the ``failed`` status. Any other exception
    escaping a workload leaves the job at ``running``.
    """

    pass


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, SimJobsError):
        return error.retryable
    return isinstance(error, (ConnectionError, TimeoutError))


def categorize_error(error: Exception) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, SimJobsError):
        return error.category
    if isinstance(error, (ConnectionError, OSError)):
        return ErrorCategory.NETWORK
    if isinstance(error, ValueError):
        return ErrorCategory.VALIDATION
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "SimJobsError",
    "TransientError",
    "DatabaseConnectionError",
    "TransportConnectionError",
    "ValidationError",
    "InvalidParametersError",
    "ParseError",
    "MessageDecodeError",
    "ConfigError",
    "DatabaseError",
    "StoreWriteError",
    "RecordNotFoundError",
    "WorkloadError",
    "WorkloadFailed",
    "is_retryable",
    "categorize_error",
]
