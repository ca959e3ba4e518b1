"""Session-per-call MongoDB storer.

One long-lived ``MongoClient`` is dialled (and pinged) at construction.  Each
operation checks out its own ``ClientSession`` and ends it before returning,
error paths included, so a session is never shared between in-flight calls.

Defaults and dialect:
    - pagination ``limit=50, page=0, sort_by="-_id"`` (newest first)
    - every comma-separated sort key is honoured
    - ``update`` / ``delete`` act on all matches
    - ``update_with_options`` supports array filters, upsert and ``multi``
    - ``delete`` physically removes documents; soft deletion is the caller's
      job (``update`` with a marker field)
    - operation deadline defaults to 10 seconds
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
from storer.pagination import PaginationParams, parse_sort
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

DEFAULT_OPERATION_TIMEOUT = 10.0


class SessionMongoStorer(Storer):
    """
    MongoDB storer that checks out a fresh session for every operation.

    ``close()`` may be called any number of times; only the first closes the
    client.  Any other operation after ``close()`` raises ``DriverError``.

    Batch writes (``create_many``) are ordered but not atomic: documents
    inserted before a failure stay inserted.
    """

    backend_name = "session"

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
        connect_timeout = resolve_timeout(
            connect_timeout, DEFAULT_CONNECT_TIMEOUT, "connect_timeout"
        )
        self._tracer_provider = tracer_provider
        self.default_pagination = default_pagination or PaginationParams(
            limit=50, sort_by="-_id", page=0
        )

        client = connect_client(
            client_factory,
            uri,
            connect_timeout=connect_timeout,
            backend=self.backend_name,
            **client_options,
        )
        try:
            with translate_errors(self.backend_name, "connect"), pymongo.timeout(connect_timeout):
                client.admin.command("ping")
        except Exception:
            client.close()
            raise

        self._client: Any = client
        log.info("storer.connected", backend=self.backend_name, database=self._database_name)

    @property
    def database_name(self) -> str:
        return self._database_name

    @property
    def is_closed(self) -> bool:
        return self._client is None

    @contextmanager
    def _checkout(
        self, operation: str, table: str, timeout: float | None
    ) -> Iterator[tuple[Any, Any]]:
        """Yield ``(session, collection)`` for one call and end the session afterwards."""
        with operation_span(
            self.backend_name, operation, table, tracer_provider=self._tracer_provider
        ), translate_errors(self.backend_name, operation, table):
            deadline = resolve_timeout(timeout, self._operation_timeout)
            if self._client is None:
                raise DriverError("storer is closed")
            with pymongo.timeout(deadline):
                session = self._client.start_session(causal_consistency=False)
                try:
                    yield session, self._client[self._database_name][table]
                finally:
                    session.end_session()

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

        with self._checkout("find", table, timeout) as (session, collection):
            cursor = collection.find(query, session=session)
            if keys:
                cursor = cursor.sort(sort_spec(keys))
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

        with self._checkout("find_one", table, timeout) as (session, collection):
            document = collection.find_one(query, session=session)
            if document is None:
                raise NotFoundError(f"No document in {table!r} matches the query")

        assign_one(result, document)

    def count(self, table: str, query: Document, *, timeout: float | None = None) -> int:
        check_table(table)
        check_document(query)

        with self._checkout("count", table, timeout) as (session, collection):
            return collection.count_documents(query, session=session)

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

        with self._checkout("aggregate", table, timeout) as (session, collection):
            records = list(collection.aggregate(stages, session=session))

        assign_many(result, records)

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #

    def create(self, table: str, obj: Any, *, timeout: float | None = None) -> None:
        check_table(table)
        document = to_document(obj)

        with self._checkout("create", table, timeout) as (session, collection):
            collection.insert_one(document, session=session)

    def create_many(
        self, table: str, objects: Sequence[Any], *, timeout: float | None = None
    ) -> None:
        check_table(table)
        documents = to_documents(objects)
        if not documents:
            return

        with self._checkout("create_many", table, timeout) as (session, collection):
            collection.insert_many(documents, ordered=True, session=session)

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
        check_table(table)
        check_document(query)
        check_change(change)
        opts = UpdateOptions.coerce(options)
        if opts.extra:
            raise UnsupportedError(
                f"Unsupported update options: {sorted(opts.extra)}"
            ).with_context(backend=self.backend_name, operation="update_with_options", table=table)

        with self._checkout("update_with_options", table, timeout) as (session, collection):
            update = collection.update_many if opts.multi else collection.update_one
            update(
                query,
                change,
                upsert=opts.upsert,
                array_filters=opts.array_filters,
                session=session,
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
        """Create an index if it does not exist; returns the index name.

        ``keys`` uses the sort syntax: ``"-created_at,name"`` or
        ``["-created_at", "name"]``.  ``index_options`` go straight to
        ``create_index`` (``unique=True``, ``name=...``, ...).
        """
        check_table(table)
        spec = parse_sort(keys if isinstance(keys, str) else ",".join(keys))
        if not spec:
            raise UnsupportedError("An index needs at least one key").with_context(
                backend=self.backend_name, operation="ensure_index", table=table
            )

        with self._checkout("ensure_index", table, timeout) as (session, collection):
            return collection.create_index(sort_spec(spec), session=session, **index_options)

    def _update_all(
        self, operation: str, table: str, query: Document, change: Document, timeout: float | None
    ) -> None:
        check_table(table)
        check_document(query)
        check_change(change)

        with self._checkout(operation, table, timeout) as (session, collection):
            collection.update_many(query, change, session=session)

    def _delete_all(
        self, operation: str, table: str, query: Document, timeout: float | None
    ) -> None:
        check_table(table)
        check_document(query)

        with self._checkout(operation, table, timeout) as (session, collection):
            collection.delete_many(query, session=session)

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
    "SessionMongoStorer",
    "DEFAULT_OPERATION_TIMEOUT",
]
