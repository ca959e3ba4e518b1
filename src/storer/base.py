"""Storer contract.

Manifesto:
    Calling code should be able to find, count, write and aggregate records
    without knowing which client library backs the call.  ``Storer`` is the
    single capability set every backend implements; callers depend on it and
    never on an adapter class.

Features:
    - Abstract CRUD, paginated ``find``, ``count`` and ``aggregate``
    - Batch variants ``create_many`` / ``update_many`` / ``delete_many``
    - ``update_with_options`` for backend-specific modifiers
    - Explicit per-call ``timeout`` deadline on every data operation
    - Context-manager protocol around ``close()``

Tags:
    storer, abstract-base, adapter-pattern, contract

Doc-Types:
    api-reference
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from storer.documents import Document, Pipeline, check_document, is_sequence
from storer.errors import InvalidArgumentError
from storer.pagination import PaginationParams


@dataclass(frozen=True, slots=True)
class UpdateOptions:
    """Modifiers for :meth:`Storer.update_with_options`.

    Attributes:
        array_filters: Filters selecting which array elements ``$[<id>]``
            placeholders in the change apply to.
        upsert: Insert a document when nothing matches.
        multi: Update every match instead of the first one.
    """

    array_filters: list[Mapping[str, Any]] | None = None
    upsert: bool = False
    multi: bool = False
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def coerce(cls, options: Any) -> UpdateOptions:
        """Accept ``UpdateOptions`` or a bare sequence of array filters."""
        if isinstance(options, UpdateOptions):
            return options
        if options is None:
            return cls()
        if is_sequence(options):
            return cls(array_filters=[check_document(f, "array filter") for f in options])
        raise InvalidArgumentError(
            f"options must be UpdateOptions or a sequence of array filters, got {type(options).__name__}",
            field="options",
            value=options,
        )


class Storer(ABC):
    """
    Abstract base class for every storage backend.

    ``table`` is always a non-empty collection name.  Query and change
    payloads are mappings the backend passes through without mutating.
    Errors are raised as :class:`~storer.errors.StorerError` subclasses;
    raw driver exceptions never escape.

    ``timeout`` is the per-call deadline in seconds.  ``None`` selects the
    backend's configured ceiling.
    """

    #: Registry name; also used in logs, spans and error context.
    backend_name: str = "abstract"

    @abstractmethod
    def find(
        self,
        table: str,
        query: Document,
        result: Any,
        pagination: PaginationParams | None = None,
        *,
        timeout: float | None = None,
    ) -> None:
        """Write every record matching ``query`` on the requested page into ``result``.

        ``pagination=None`` uses :meth:`new_pagination_params`.  No match
        leaves ``result`` empty; it is not an error.
        """
        ...

    @abstractmethod
    def find_one(
        self,
        table: str,
        query: Document,
        result: Any,
        *,
        timeout: float | None = None,
    ) -> None:
        """Write the first match into ``result``; ``NotFoundError`` if none."""
        ...

    @abstractmethod
    def create(self, table: str, obj: Any, *, timeout: float | None = None) -> None:
        """Insert one record."""
        ...

    @abstractmethod
    def create_many(
        self, table: str, objects: Sequence[Any], *, timeout: float | None = None
    ) -> None:
        """Insert records in order.  Not atomic across the batch."""
        ...

    @abstractmethod
    def update(
        self,
        table: str,
        query: Document,
        change: Document,
        *,
        timeout: float | None = None,
    ) -> None:
        """Apply ``change`` to every match.  Zero matches is not an error."""
        ...

    @abstractmethod
    def update_many(
        self,
        table: str,
        query: Document,
        change: Document,
        *,
        timeout: float | None = None,
    ) -> None:
        """Explicit batch form of :meth:`update`."""
        ...

    @abstractmethod
    def update_with_options(
        self,
        table: str,
        query: Document,
        change: Document,
        options: UpdateOptions | Sequence[Mapping[str, Any]],
        *,
        timeout: float | None = None,
    ) -> None:
        """Update with backend-specific modifiers.

        A backend that cannot honour ``options`` raises ``UnsupportedError``
        instead of running a plain update.
        """
        ...

    @abstractmethod
    def delete(self, table: str, query: Document, *, timeout: float | None = None) -> None:
        """Remove matching records."""
        ...

    @abstractmethod
    def delete_many(self, table: str, query: Document, *, timeout: float | None = None) -> None:
        """Explicit batch form of :meth:`delete`."""
        ...

    @abstractmethod
    def count(self, table: str, query: Document, *, timeout: float | None = None) -> int:
        """Number of matching records."""
        ...

    @abstractmethod
    def aggregate(
        self,
        table: str,
        pipeline: Pipeline,
        result: Any,
        *,
        timeout: float | None = None,
    ) -> None:
        """Run a backend-native pipeline and write its output into ``result``."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Release the underlying client.  Safe to call twice."""
        ...

    @abstractmethod
    def new_pagination_params(self) -> PaginationParams:
        """This backend's default pagination (first page)."""
        ...

    def __enter__(self) -> Storer:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


__all__ = [
    "Storer",
    "UpdateOptions",
]
