"""Tests for the storer error taxonomy."""

from __future__ import annotations

import pytest

from storer.errors import (
    ConflictError,
    ConnectionFailedError,
    DriverError,
    ErrorContext,
    ErrorKind,
    InvalidArgumentError,
    NotFoundError,
    OperationTimeoutError,
    ResultShapeError,
    StorerError,
    UnsupportedError,
    error_kind,
    is_not_found,
)


class TestErrorKinds:
    @pytest.mark.parametrize(
        "error_class,kind",
        [
            (NotFoundError, ErrorKind.NOT_FOUND),
            (InvalidArgumentError, ErrorKind.INVALID_ARGUMENT),
            (UnsupportedError, ErrorKind.UNSUPPORTED),
            (DriverError, ErrorKind.DRIVER),
            (ConflictError, ErrorKind.DRIVER),
            (OperationTimeoutError, ErrorKind.DRIVER),
            (ConnectionFailedError, ErrorKind.DRIVER),
        ],
    )
    def test_kind(self, error_class: type[StorerError], kind: ErrorKind) -> None:
        assert error_class("x").kind is kind

    def test_driver_refinements_are_driver_errors(self) -> None:
        for error_class in (ConflictError, OperationTimeoutError, ConnectionFailedError):
            assert issubclass(error_class, DriverError)

    def test_retryable_defaults(self) -> None:
        assert OperationTimeoutError("x").retryable
        assert ConnectionFailedError("x").retryable
        assert not ConflictError("x").retryable
        assert not NotFoundError("x").retryable

    def test_retryable_override(self) -> None:
        assert DriverError("x", retryable=True).retryable

    def test_result_shape_error_is_not_a_storer_error(self) -> None:
        assert issubclass(ResultShapeError, TypeError)
        assert not issubclass(ResultShapeError, StorerError)


class TestErrorHelpers:
    def test_is_not_found(self) -> None:
        assert is_not_found(NotFoundError("missing"))
        assert not is_not_found(DriverError("down"))
        assert not is_not_found(KeyError("missing"))

    def test_error_kind(self) -> None:
        assert error_kind(UnsupportedError("no")) is ErrorKind.UNSUPPORTED
        assert error_kind(ValueError("no")) is None


class TestErrorContext:
    def test_with_context_is_fluent(self) -> None:
        error = NotFoundError("missing").with_context(
            backend="session", operation="find_one", table="users", code=7
        )
        assert error.context.backend == "session"
        assert error.context.table == "users"
        assert error.context.metadata == {"code": 7}

    def test_empty_context_omitted_from_dict(self) -> None:
        assert "context" not in DriverError("x").to_dict()

    def test_context_to_dict_skips_none(self) -> None:
        context = ErrorContext(backend="pooled")
        assert context.to_dict() == {"backend": "pooled"}


class TestErrorSerialization:
    def test_to_dict(self) -> None:
        cause = RuntimeError("socket closed")
        error = ConnectionFailedError("Connection failed", cause=cause).with_context(
            backend="pooled", operation="count"
        )
        payload = error.to_dict()
        assert payload["error_type"] == "ConnectionFailedError"
        assert payload["kind"] == "DRIVER"
        assert payload["retryable"] is True
        assert payload["context"] == {"backend": "pooled", "operation": "count"}
        assert payload["cause"] == "RuntimeError: socket closed"

    def test_cause_is_chained(self) -> None:
        cause = RuntimeError("boom")
        assert DriverError("wrapped", cause=cause).__cause__ is cause

    def test_invalid_argument_fields(self) -> None:
        payload = InvalidArgumentError("bad limit", field="limit", value=0).to_dict()
        assert payload["field"] == "limit"
        assert payload["value"] == "0"

    def test_repr(self) -> None:
        assert repr(NotFoundError("missing")) == "NotFoundError('missing', kind=NOT_FOUND)"
