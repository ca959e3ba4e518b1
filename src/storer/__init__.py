"""storer -- one data-access contract over several document-store clients.

Calling code depends on :class:`Storer` and on the error kinds in
:mod:`storer.errors`.  Backends (pymongo session-per-call, pymongo pooled
client, in-memory fake) are interchangeable behind it.

Examples:
    >>> from storer import FakeStorer, PaginationParams
    >>> fake = FakeStorer({"users": [{"id": 1}]})
    >>> users = []
    >>> fake.find("users", {"active": True}, users, PaginationParams(limit=10))
    >>> users
    [{'id': 1}]
"""

from storer.adapters import PooledMongoStorer, SessionMongoStorer, open_storer, storer_registry
from storer.base import Storer, UpdateOptions
from storer.errors import (
    ConflictError,
    ConnectionFailedError,
    DriverError,
    ErrorKind,
    InvalidArgumentError,
    NotFoundError,
    OperationTimeoutError,
    ResultShapeError,
    StorerError,
    UnsupportedError,
    is_not_found,
)
from storer.fake import FakeStorer
from storer.pagination import PaginationParams, SortKey, parse_sort
from storer.results import Decodable, RecordList, RecordSlot
from storer.settings import StorerSettings, get_settings

__version__ = "0.1.0"

__all__ = [
    # Contract
    "Storer",
    "UpdateOptions",
    "PaginationParams",
    "SortKey",
    "parse_sort",
    # Result targets
    "Decodable",
    "RecordList",
    "RecordSlot",
    # Backends
    "SessionMongoStorer",
    "PooledMongoStorer",
    "FakeStorer",
    "open_storer",
    "storer_registry",
    # Settings
    "StorerSettings",
    "get_settings",
    # Errors
    "ErrorKind",
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
]
