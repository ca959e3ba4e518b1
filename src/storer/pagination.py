"""
Pagination parameters shared by every backend.

``PaginationParams`` is the limit/skip/sort triple that governs which subset
of matching records a ``find`` call returns.  Backend defaults are not
defined here: each backend hands out its own through
``Storer.new_pagination_params()`` and callers must not assume the default
sort direction is the same everywhere.

Sort syntax::

    "name"              ascending by name
    "-created_at"       descending by created_at
    "-score, +name"     descending score, then ascending name

Examples:
    >>> params = PaginationParams(limit=10, sort_by="-created_at,name", page=2)
    >>> params.skip
    20
    >>> params.sort_keys()
    [SortKey(field='created_at', direction=-1), SortKey(field='name', direction=1)]

Tags:
    pagination, sorting, value-object, storer
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import NamedTuple

from storer.errors import InvalidArgumentError

ASCENDING = 1
DESCENDING = -1

DEFAULT_LIMIT = 50


class SortKey(NamedTuple):
    """One parsed sort key."""

    field: str
    direction: int

    @property
    def descending(self) -> bool:
        return self.direction == DESCENDING


def parse_sort(sort_by: str) -> list[SortKey]:
    """Parse a comma-separated sort specification.

    Blank segments are skipped, so ``""`` parses to an empty list (natural
    order).  A segment holding only a direction marker is rejected.
    """
    if not isinstance(sort_by, str):
        raise InvalidArgumentError("sort_by must be a string", field="sort_by", value=sort_by)

    keys: list[SortKey] = []
    for segment in sort_by.split(","):
        token = segment.strip()
        if not token:
            continue

        direction = ASCENDING
        if token[0] in "+-":
            direction = DESCENDING if token[0] == "-" else ASCENDING
            token = token[1:].strip()

        if not token:
            raise InvalidArgumentError(
                f"Sort key without a field name in {sort_by!r}",
                field="sort_by",
                value=sort_by,
            )
        keys.append(SortKey(token, direction))
    return keys


@dataclass(frozen=True, slots=True)
class PaginationParams:
    """Page size, page index and sort specification for ``find``.

    Attributes:
        limit: Maximum records returned (> 0).
        sort_by: Comma-separated sort keys, ``-`` prefix for descending.
        page: Zero-based page index (>= 0).
    """

    limit: int = DEFAULT_LIMIT
    sort_by: str = ""
    page: int = 0

    def __post_init__(self) -> None:
        if isinstance(self.limit, bool) or not isinstance(self.limit, int) or self.limit <= 0:
            raise InvalidArgumentError(
                f"limit must be a positive integer, got {self.limit!r}",
                field="limit",
                value=self.limit,
            )
        if isinstance(self.page, bool) or not isinstance(self.page, int) or self.page < 0:
            raise InvalidArgumentError(
                f"page must be a non-negative integer, got {self.page!r}",
                field="page",
                value=self.page,
            )
        parse_sort(self.sort_by)

    @property
    def skip(self) -> int:
        """Number of matching records skipped before this page."""
        return self.page * self.limit

    def sort_keys(self) -> list[SortKey]:
        return parse_sort(self.sort_by)

    def primary_sort_key(self) -> SortKey | None:
        keys = self.sort_keys()
        return keys[0] if keys else None

    def with_page(self, page: int) -> PaginationParams:
        return replace(self, page=page)

    def next_page(self) -> PaginationParams:
        return replace(self, page=self.page + 1)


__all__ = [
    "ASCENDING",
    "DESCENDING",
    "DEFAULT_LIMIT",
    "SortKey",
    "parse_sort",
    "PaginationParams",
]
