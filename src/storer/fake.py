"""
In-memory test double for the storer contract.

``FakeStorer`` lets code that depends on :class:`~storer.base.Storer` be unit
tested without a database.  It does not evaluate queries: it captures them.
Reads hand back a fixture configured per collection and writes only record
what they were asked to do, so tests assert on the *query the code built*
rather than on simulated data.

Architecture:
    ::

        FakeStorer(results={"users": [...]}, error=None)
        │
        ├── find / find_one   → capture query, copy fixture into target, raise error
        ├── update*           → capture query + change, succeed
        ├── count             → capture query, return 0
        └── create*, delete*, aggregate, close → no-op

        last_query(table) / last_change(table)  → captured payload or None

Examples:
    >>> fake = FakeStorer({"users": [{"id": 1, "name": "a"}]})
    >>> user = {}
    >>> fake.find_one("users", {"id": 1}, user)
    >>> user
    {'id': 1, 'name': 'a'}
    >>> fake.last_query("users")
    {'id': 1}

Guardrails:
    ❌ DON'T: Assert on ``count()``; it is always zero
    ✅ DO: Assert on ``last_query()`` to check the filter your code built

    ❌ DON'T: Share one instance across threads without a lock
    ✅ DO: Build a fresh FakeStorer per test

Tags:
    test-double, fake, capture-replay, storer

Doc-Types:
    - API Reference
    - Testing Guide
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from types import MappingProxyType
from typing import Any

from storer.base import Storer, UpdateOptions
from storer.documents import Document, Pipeline, check_table, is_sequence
from storer.pagination import PaginationParams
from storer.results import assign_many, assign_one


class FakeStorer(Storer):
    """Capture-and-replay storer.

    Args:
        results: Collection name → value handed back by every read on it.
        error: Raised by every ``find``/``find_one`` after the fixture has
            been copied into the target.  Applies to all collections.
    """

    backend_name = "memory"

    def __init__(
        self,
        results: Mapping[str, Any] | None = None,
        error: BaseException | None = None,
    ):
        self._results: dict[str, Any] = dict(results or {})
        self.error = error
        self._queries: dict[str, Any] = {}
        self._changes: dict[str, Any] = {}

    # ------------------------------------------------------------------ #
    # Inspection
    # ------------------------------------------------------------------ #

    def last_query(self, table: str) -> Any:
        """Most recent query captured for ``table``, or ``None``."""
        return self._queries.get(table)

    def last_change(self, table: str) -> Any:
        """Most recent change captured for ``table``, or ``None``."""
        return self._changes.get(table)

    @property
    def queries(self) -> Mapping[str, Any]:
        return MappingProxyType(self._queries)

    @property
    def changes(self) -> Mapping[str, Any]:
        return MappingProxyType(self._changes)

    def set_result(self, table: str, value: Any) -> None:
        self._results[table] = value

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
        self._queries[table] = query
        assign_many(result, self._results.get(table))
        if self.error is not None:
            raise self.error

    def find_one(
        self,
        table: str,
        query: Document,
        result: Any,
        *,
        timeout: float | None = None,
    ) -> None:
        check_table(table)
        self._queries[table] = query
        fixture = self._results.get(table)
        # A list fixture serves both find and find_one.
        if is_sequence(fixture):
            fixture = fixture[0] if fixture else None
        assign_one(result, fixture)
        if self.error is not None:
            raise self.error

    def count(self, table: str, query: Document, *, timeout: float | None = None) -> int:
        """Always zero; tests assert on the captured query instead."""
        check_table(table)
        self._queries[table] = query
        return 0

    def aggregate(
        self,
        table: str,
        pipeline: Pipeline,
        result: Any,
        *,
        timeout: float | None = None,
    ) -> None:
        return None

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #

    def create(self, table: str, obj: Any, *, timeout: float | None = None) -> None:
        return None

    def create_many(
        self, table: str, objects: Sequence[Any], *, timeout: float | None = None
    ) -> None:
        return None

    def update(
        self,
        table: str,
        query: Document,
        change: Document,
        *,
        timeout: float | None = None,
    ) -> None:
        self._capture_write(table, query, change)

    def update_many(
        self,
        table: str,
        query: Document,
        change: Document,
        *,
        timeout: float | None = None,
    ) -> None:
        self._capture_write(table, query, change)

    def update_with_options(
        self,
        table: str,
        query: Document,
        change: Document,
        options: UpdateOptions | Sequence[Mapping[str, Any]],
        *,
        timeout: float | None = None,
    ) -> None:
        self._capture_write(table, query, change)

    def delete(self, table: str, query: Document, *, timeout: float | None = None) -> None:
        """No-op.  Records are expected to be soft-deleted through :meth:`update`."""
        return None

    def delete_many(self, table: str, query: Document, *, timeout: float | None = None) -> None:
        return None

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def close(self) -> None:
        return None

    def new_pagination_params(self) -> PaginationParams:
        return PaginationParams()

    def _capture_write(self, table: str, query: Any, change: Any) -> None:
        check_table(table)
        self._queries[table] = query
        self._changes[table] = change


__all__ = [
    "FakeStorer",
]
