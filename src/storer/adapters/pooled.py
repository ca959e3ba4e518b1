"""Pooled-client MongoDB storer.

One shared ``MongoClient`` serves every call; pymongo's own connection pool
multiplexes concurrent callers, so the adapter holds no lock and checks out
no session.  The client connects lazily, on the first operation.

Defaults and dialect:
    - pagination ``limit=50, page=0, sort_by="_id"`` (oldest first)
    - only the primary sort key is honoured; further keys are ignored
    - ``update`` / ``delete`` act on all matches
    - ``update_with_options`` and ``ensure_index`` are unsupported and raise
      ``UnsupportedError`` rather than running a plain update
    - ``delete`` physically removes documents
    - operation deadline defaults to 30 seconds
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any

import pymongo
from opentelemetry import trace
from pymongo import MongoClient

from storer.base import Storer, UpdateOptions
from storer.documents import (
    Document,
    Pipeline,
    check_change,
    check_document,
    check_pipeline,
    check_table,
    to_document,
    to_documents,
)
from storer.errors import DriverError, NotFoundError, UnsupportedError
from storer.logging import get_logger
from storer.pagination import PaginationParams
from storer.results import assign_many, assign_one
from storer.tracing import operation_span

from ._mongo import (
    DEFAULT_CONNECT_TIMEOUT,
    connect_client,
    resolve_database,
    resolve_timeout,
    sort_spec,
    translate_errors,
)

log = get_logger(__name__)

DEFAULT_OPERATION_TIMEOUT = 30.0


class PooledMongoStorer(Storer):
    """
    MongoDB storer backed by one pooled client.

    ``close()`` is idempotent.  Any other operation after ``close()`` raises
    ``DriverError``.  ``create_many`` is ordered and not atomic.
    """

    backend_name = "pooled"

    def __init__(
        self,
        uri: str,
        *,
        database: str | None = None,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        operation_timeout: float | None = None,
        default_pagination: PaginationParams | None = None,
        client_factory: Callable[..., Any] = MongoClient,
        tracer_provider: trace.TracerProvider | None = None,
        **client_options: Any,
    ):
        self._database_name = resolve_database(uri, database)
        self._operation_timeout = resolve_timeout(operation_timeout, DEFAULT_OPERATION_TIMEOUT)
        self._tracer_provider = tracer_provider
        self.default_pagination = default_pagination or PaginationParams(
            limit=50, sort_by="_id", page=0
        )

        self._client: Any = connect_client(
            client_factory,
            uri,
            connect_timeout=connect_timeout,
            backend=self.backend_name,
            **client_options,
        )
        self._db = self._client[self._database_name]

    @property
    def database_name(self) -> str:
        return self._database_name

    @property
    def is_closed(self) -> bool:
        return self._client is None

    @contextmanager
    def _collection(self, operation: str, table: str, timeout: float | None) -> Iterator[Any]:
        with operation_span(
            self.backend_name, operation, table, tracer_provider=self._tracer_provider
        ), translate_errors(self.backend_name, operation, table):
            deadline = resolve_timeout(timeout, self._operation_timeout)
            if self._client is None:
                raise DriverError("storer is closed")
            with pymongo.timeout(deadline):
                yield self._db[table]

    def _unsupported(self, operation: str, table: str, message: str) -> UnsupportedError:
        error = UnsupportedError(message)
        error.with_context(backend=self.backend_name, operation=operation, table=table)
        return error

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    def find(
        self,
        table: str,
        query: Document,
        result: Any,
        pagination: PaginationParams | None = None,
        *,
        timeout: float | None = None,
    ) -> None:
        check_table(table)
        check_document(query)
        pagination = pagination or self.default_pagination
        keys = pagination.sort_keys()
        if len(keys) > 1:
            log.debug(
                "storer.find.sort_truncated",
                backend=self.backend_name,
                table=table,
                ignored=[key.field for key in keys[1:]],
            )

        with self._collection("find", table, timeout) as collection:
            cursor = collection.find(query)
            if keys:
                cursor = cursor.sort(sort_spec(keys[:1]))
            records = list(cursor.skip(pagination.skip).limit(pagination.limit))

        assign_many(result, records)

    def find_one(
        self,
        table: str,
        query: Document,
        result: Any,
        *,
        timeout: float | None = None,
    ) -> None:
        check_table(table)
        check_document(query)

        with self._collection("find_one", table, timeout) as collection:
            document = collection.find_one(query)
            if document is None:
                raise NotFoundError(f"No document in {table!r} matches the query")

        assign_one(result, document)

    def count(self, table: str, query: Document, *, timeout: float | None = None) -> int:
        check_table(table)
        check_document(query)

        with self._collection("count", table, timeout) as collection:
            return collection.count_documents(query)

    def aggregate(
        self,
        table: str,
        pipeline: Pipeline,
        result: Any,
        *,
        timeout: float | None = None,
    ) -> None:
        check_table(table)
        stages = check_pipeline(pipeline)

        with self._collection("aggregate", table, timeout) as collection:
            records = list(collection.aggregate(stages))

        assign_many(result, records)

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #

    def create(self, table: str, obj: Any, *, timeout: float | None = None) -> None:
        check_table(table)
        document = to_document(obj)

        with self._collection("create", table, timeout) as collection:
            collection.insert_one(document)

    def create_many(
        self, table: str, objects: Sequence[Any], *, timeout: float | None = None
    ) -> None:
        check_table(table)
        documents = to_documents(objects)
        if not documents:
            return

        with self._collection("create_many", table, timeout) as collection:
            collection.insert_many(documents, ordered=True)

    def update(
        self,
        table: str,
        query: Document,
        change: Document,
        *,
        timeout: float | None = None,
    ) -> None:
        self._update_all("update", table, query, change, timeout)

    def update_many(
        self,
        table: str,
        query: Document,
        change: Document,
        *,
        timeout: float | None = None,
    ) -> None:
        self._update_all("update_many", table, query, change, timeout)

    def update_with_options(
        self,
        table: str,
        query: Document,
        change: Document,
        options: UpdateOptions | Sequence[Mapping[str, Any]],
        *,
        timeout: float | None = None,
    ) -> None:
        raise self._unsupported(
            "update_with_options",
            table,
            "update_with_options is not supported by the pooled backend; use update or update_many",
        )

    def delete(self, table: str, query: Document, *, timeout: float | None = None) -> None:
        self._delete_all("delete", table, query, timeout)

    def delete_many(self, table: str, query: Document, *, timeout: float | None = None) -> None:
        self._delete_all("delete_many", table, query, timeout)

    def ensure_index(
        self,
        table: str,
        keys: str | Sequence[str],
        *,
        timeout: float | None = None,
        **index_options: Any,
    ) -> str:
        raise self._unsupported(
            "ensure_index", table, "ensure_index is not supported by the pooled backend"
        )

    def _update_all(
        self, operation: str, table: str, query: Document, change: Document, timeout: float | None
    ) -> None:
        check_table(table)
        check_document(query)
        check_change(change)

        with self._collection(operation, table, timeout) as collection:
            collection.update_many(query, change)

    def _delete_all(
        self, operation: str, table: str, query: Document, timeout: float | None
    ) -> None:
        check_table(table)
        check_document(query)

        with self._collection(operation, table, timeout) as collection:
            collection.delete_many(query)

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def close(self) -> None:
        if self._client is None:
            return
        client, self._client = self._client, None
        with translate_errors(self.backend_name, "close"):
            client.close()
        log.info("storer.closed", backend=self.backend_name)

    def new_pagination_params(self) -> PaginationParams:
        return self.default_pagination


__all__ = [
    "PooledMongoStorer",
    "DEFAULT_OPERATION_TIMEOUT",
]
