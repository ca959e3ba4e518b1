"""
Structured error types for the storer contract.

Every backend speaks a different failure dialect: pymongo raises
``OperationFailure`` with numeric server codes, the network layer raises
``AutoReconnect``, bson raises ``InvalidDocument``, and the in-memory double
raises whatever it was told to.  Callers must be able to tell "no such
record" from "the database is down" without knowing which backend produced
the error, so every adapter maps its native errors onto exactly four kinds.

Manifesto:
    - **Four kinds only:** NOT_FOUND, INVALID_ARGUMENT, UNSUPPORTED, DRIVER
    - **No leaks:** Raw driver exceptions never cross the contract boundary
    - **Rich context:** Errors carry backend, operation and collection
    - **Error chaining:** The native exception is preserved as ``cause``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                        StorerError                           │
        │          (kind, retryable, context, cause)                   │
        ├─────────────────────────────────────────────────────────────┤
        │                                                              │
        │  NotFoundError     InvalidArgumentError    UnsupportedError  │
        │  (NOT_FOUND)       (INVALID_ARGUMENT)      (UNSUPPORTED)     │
        │                                                              │
        │  DriverError (DRIVER)                                        │
        │       │                                                      │
        │  ConflictError   OperationTimeoutError  ConnectionFailedError│
        └─────────────────────────────────────────────────────────────┘

        ResultShapeError (TypeError) sits outside the hierarchy: it is a
        programmer error, not a recoverable kind.

Examples:
    >>> error = NotFoundError("no document matches")
    >>> error.kind
    <ErrorKind.NOT_FOUND: 'NOT_FOUND'>
    >>> is_not_found(error)
    True

    >>> error = DriverError("server gone").with_context(backend="pooled", table="users")
    >>> error.context.table
    'users'

Guardrails:
    ❌ DON'T: Let ``pymongo.errors.*`` escape an adapter
    ✅ DO: Translate with ``storer.adapters._mongo.translate_errors``

    ❌ DON'T: Retry on ``retryable`` inside the core
    ✅ DO: Leave retry policy to the caller (writes have no idempotency keys)

Tags:
    error-handling, exception-hierarchy, storer, error-context

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """The four error kinds every backend surfaces."""

    NOT_FOUND = "NOT_FOUND"                # Required record missing
    INVALID_ARGUMENT = "INVALID_ARGUMENT"  # Malformed query/change/pagination
    UNSUPPORTED = "UNSUPPORTED"            # Backend cannot express the request
    DRIVER = "DRIVER"                      # Connectivity, timeout, library failure


@dataclass
class ErrorContext:
    """
    Structured metadata attached to a storer error.

    Attributes:
        backend: Registry name of the backend (``session``, ``pooled``, ``memory``)
        operation: Contract operation (``find``, ``update``, ...)
        table: Collection the operation addressed
        metadata: Additional key-value pairs (server code, ...)
    """

    backend: str | None = None
    operation: str | None = None
    table: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["backend", "operation", "table"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class StorerError(Exception):
    """
    Base exception for every error raised through the storer contract.

    Subclasses set ``default_kind`` and ``default_retryable``.  ``retryable``
    is advisory metadata for the caller's own retry layer; nothing inside
    storer acts on it.

    Examples:
        >>> error = StorerError("boom")
        >>> error.kind
        <ErrorKind.DRIVER: 'DRIVER'>
        >>> error.to_dict()["error_type"]
        'StorerError'
    """

    default_kind: ErrorKind = ErrorKind.DRIVER

    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = self.default_kind
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> StorerError:
        """
        Add context to this error (fluent API).

        Usage:
            raise NotFoundError("missing").with_context(
                backend="session",
                table="users",
            )
        """
        for key, value in kwargs.items():
            if key != "metadata" and hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "kind": self.kind.value,
            "retryable": self.retryable,
        }

        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict

        if self.cause is not None:
            result["cause"] = f"{type(self.cause).__name__}: {self.cause}"

        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, kind={self.kind.value})"


class NotFoundError(StorerError):
    """No record matched where one was required."""

    default_kind = ErrorKind.NOT_FOUND


class InvalidArgumentError(StorerError):
    """Malformed collection name, payload, options or pagination."""

    default_kind = ErrorKind.INVALID_ARGUMENT

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        if self.value is not None:
            result["value"] = repr(self.value)
        return result


class UnsupportedError(StorerError):
    """The backend cannot express this operation/option combination."""

    default_kind = ErrorKind.UNSUPPORTED


class DriverError(StorerError):
    """Connectivity, timeout or underlying-library failure."""

    default_kind = ErrorKind.DRIVER


class ConflictError(DriverError):
    """Unique constraint violated on insert or upsert."""


class OperationTimeoutError(DriverError):
    """The per-call deadline expired before the driver answered."""

    default_retryable = True


class ConnectionFailedError(DriverError):
    """The server could not be reached or the connection dropped."""

    default_retryable = True


class ResultShapeError(TypeError):
    """A result target cannot hold the value produced for it.

    Raised for programmer errors (a mapping fixture copied into a list
    target, a document that fails model validation).  Not a
    :class:`StorerError`; callers are not expected to recover from it.
    """


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_not_found(error: BaseException) -> bool:
    """Check if an error is the NOT_FOUND kind."""
    return isinstance(error, StorerError) and error.kind is ErrorKind.NOT_FOUND


def error_kind(error: BaseException) -> ErrorKind | None:
    """Return the kind of a storer error, ``None`` for anything else."""
    if isinstance(error, StorerError):
        return error.kind
    return None


__all__ = [
    "ErrorKind",
    "ErrorContext",
    "StorerError",
    "NotFoundError",
    "InvalidArgumentError",
    "UnsupportedError",
    "DriverError",
    "ConflictError",
    "OperationTimeoutError",
    "ConnectionFailedError",
    "ResultShapeError",
    "is_not_found",
    "error_kind",
]
