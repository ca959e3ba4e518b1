"""pymongo glue shared by the session and pooled adapters.

Error translation, URI/database resolution, client construction and
deadline handling live here so both adapters map driver behaviour onto the
contract the same way.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from numbers import Real
from typing import Any

from bson.errors import BSONError, InvalidDocument
from pymongo.errors import (
    BulkWriteError,
    ConnectionFailure,
    DuplicateKeyError,
    InvalidName,
    OperationFailure,
    PyMongoError,
)
from pymongo.uri_parser import parse_uri

from storer.errors import (
    ConflictError,
    ConnectionFailedError,
    DriverError,
    InvalidArgumentError,
    OperationTimeoutError,
    ResultShapeError,
    StorerError,
)
from storer.pagination import SortKey

DUPLICATE_KEY_CODE = 11000
DEFAULT_CONNECT_TIMEOUT = 10.0

# Server codes meaning "your query/update document is malformed".
INVALID_ARGUMENT_CODES = frozenset(
    {
        2,    # BadValue
        9,    # FailedToParse
        14,   # TypeMismatch
        40,   # ConflictingUpdateOperators
        52,   # DollarPrefixedFieldName
        56,   # EmptyFieldName
        57,   # DottedFieldName
        66,   # ImmutableField
        168,  # InvalidPipelineOperator
    }
)


def _bulk_has_duplicate(error: BulkWriteError) -> bool:
    write_errors = (error.details or {}).get("writeErrors", [])
    return any(item.get("code") == DUPLICATE_KEY_CODE for item in write_errors)


def translate_error(error: BaseException) -> StorerError | None:
    """Map a pymongo/bson exception onto a storer error kind.

    Returns ``None`` for exceptions that are not driver errors; those are
    bugs and must propagate unchanged.
    """
    if isinstance(error, DuplicateKeyError):
        return ConflictError(f"Duplicate key: {error}", cause=error)

    if isinstance(error, BulkWriteError):
        if _bulk_has_duplicate(error):
            return ConflictError(f"Duplicate key in batch: {error}", cause=error)
        return DriverError(f"Batch write failed: {error}", cause=error)

    if isinstance(error, PyMongoError):
        if error.timeout:
            return OperationTimeoutError(f"Operation timed out: {error}", cause=error)
        if isinstance(error, InvalidName):
            return InvalidArgumentError(f"Invalid name: {error}", cause=error)
        if isinstance(error, OperationFailure) and error.code in INVALID_ARGUMENT_CODES:
            return InvalidArgumentError(
                f"Server rejected the request: {error}", cause=error
            ).with_context(code=error.code)
        if isinstance(error, ConnectionFailure):
            return ConnectionFailedError(f"Connection failed: {error}", cause=error)
        translated = DriverError(f"Driver error: {error}", cause=error)
        if isinstance(error, OperationFailure) and error.code is not None:
            translated.with_context(code=error.code)
        return translated

    if isinstance(error, InvalidDocument):
        return InvalidArgumentError(f"Document cannot be encoded: {error}", cause=error)

    if isinstance(error, BSONError):
        return DriverError(f"BSON error: {error}", cause=error)

    return None


@contextmanager
def translate_errors(backend: str, operation: str, table: str | None = None) -> Iterator[None]:
    """Re-raise driver exceptions as storer errors tagged with call context."""
    try:
        yield
    except StorerError as e:
        if e.context.backend is None:
            e.with_context(backend=backend, operation=operation, table=table)
        raise
    except (PyMongoError, BSONError) as e:
        translated = translate_error(e)
        if translated is None:  # pragma: no cover - both branches above translate
            raise
        raise translated.with_context(
            backend=backend, operation=operation, table=table
        ) from e
    except ResultShapeError:
        raise
    except (ValueError, TypeError) as e:
        # pymongo validates arguments client-side before any I/O.
        raise InvalidArgumentError(
            f"Driver rejected the request: {e}", cause=e
        ).with_context(backend=backend, operation=operation, table=table) from e


def resolve_database(uri: str, database: str | None = None) -> str:
    """Database named by ``database`` or, failing that, by the URI path."""
    try:
        parsed = parse_uri(uri)
    except (PyMongoError, ValueError) as e:
        raise DriverError(f"Invalid MongoDB URI: {e}", cause=e) from e

    name = database or parsed.get("database")
    if not name:
        raise DriverError(
            "MongoDB URI does not name a database and no database was given"
        )
    return name


def connect_client(
    client_factory: Callable[..., Any],
    uri: str,
    *,
    connect_timeout: float,
    backend: str,
    **client_options: Any,
) -> Any:
    """Build a client; any driver failure becomes a ``DriverError``."""
    seconds = resolve_timeout(connect_timeout, DEFAULT_CONNECT_TIMEOUT, "connect_timeout")
    timeout_ms = int(seconds * 1000)
    with translate_errors(backend, "connect"):
        try:
            return client_factory(
                uri,
                serverSelectionTimeoutMS=timeout_ms,
                connectTimeoutMS=timeout_ms,
                **client_options,
            )
        except (ValueError, TypeError) as e:
            raise DriverError(f"Invalid client options: {e}", cause=e) from e


def resolve_timeout(
    timeout: float | None, default: float, field: str = "timeout"
) -> float:
    """Deadline in seconds; ``None`` selects ``default``."""
    if timeout is None:
        return default
    if isinstance(timeout, bool) or not isinstance(timeout, Real) or timeout <= 0:
        raise InvalidArgumentError(
            f"{field} must be a positive number of seconds, got {timeout!r}",
            field=field,
            value=timeout,
        )
    return float(timeout)


def sort_spec(keys: list[SortKey]) -> list[tuple[str, int]]:
    return [(key.field, key.direction) for key in keys]


__all__ = [
    "DUPLICATE_KEY_CODE",
    "DEFAULT_CONNECT_TIMEOUT",
    "INVALID_ARGUMENT_CODES",
    "translate_error",
    "translate_errors",
    "resolve_database",
    "connect_client",
    "resolve_timeout",
    "sort_spec",
]
