"""
Result targets: caller-owned destinations an operation fills in place.

A ``find`` never returns a fresh list; it writes into whatever the caller
handed over, so the caller keeps ownership of the destination before and
after the call.  Three target shapes are understood:

    ┌───────────────────────┬──────────────────────────────────────────┐
    │ target                │ filled by                                │
    ├───────────────────────┼──────────────────────────────────────────┤
    │ MutableSequence       │ slice assignment (many-result ops)       │
    │ MutableMapping        │ clear() + update() (single-result ops)   │
    │ Decodable             │ target.decode(value)                     │
    └───────────────────────┴──────────────────────────────────────────┘

``RecordList[Model]`` and ``RecordSlot[Model]`` are the typed decodables:
they validate raw documents into pydantic models.  Any mismatch between the
value and the target raises :class:`~storer.errors.ResultShapeError` straight
away.

Usage::

    class User(BaseModel):
        name: str

    users = RecordList(User)
    storer.find("users", {}, users)
    users[0].name  # "ada"

Tags:
    result-target, decoding, pydantic, generics, storer
"""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping, MutableSequence
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from storer.documents import is_sequence
from storer.errors import ResultShapeError

T = TypeVar("T")


@runtime_checkable
class Decodable(Protocol):
    """A result target that knows how to absorb a raw value."""

    def decode(self, value: Any) -> None: ...


class RecordList(list, Generic[T]):
    """A list that validates every incoming document into ``model``."""

    def __init__(self, model: type[T], items: Any = ()):
        super().__init__(items)
        self.model = model
        self._adapter = TypeAdapter(list[model])

    def decode(self, value: Any) -> None:
        if not is_sequence(value):
            raise ResultShapeError(
                f"RecordList[{self.model.__name__}] needs a sequence, got {type(value).__name__}"
            )
        try:
            records = self._adapter.validate_python(list(value))
        except PydanticValidationError as e:
            raise ResultShapeError(
                f"Documents do not fit {self.model.__name__}: {e}"
            ) from e
        self[:] = records


class RecordSlot(Generic[T]):
    """Holds at most one record validated into ``model``."""

    def __init__(self, model: type[T]):
        self.model = model
        self.value: T | None = None
        self._adapter = TypeAdapter(model)

    def decode(self, value: Any) -> None:
        if value is None:
            self.value = None
            return
        try:
            self.value = self._adapter.validate_python(value)
        except PydanticValidationError as e:
            raise ResultShapeError(
                f"Document does not fit {self.model.__name__}: {e}"
            ) from e

    def __bool__(self) -> bool:
        return self.value is not None

    def __repr__(self) -> str:
        return f"RecordSlot[{self.model.__name__}]({self.value!r})"


def assign_many(target: Any, value: Any) -> None:
    """Fill a many-result target with ``value`` (``None`` means empty)."""
    if value is None:
        value = []

    if isinstance(target, Decodable):
        target.decode(value)
        return

    if not isinstance(target, MutableSequence):
        raise ResultShapeError(
            f"Result target must be a mutable sequence or Decodable, got {type(target).__name__}"
        )
    if not is_sequence(value):
        raise ResultShapeError(
            f"Cannot copy {type(value).__name__} into a {type(target).__name__} result target"
        )
    # Shallow-copy each record: targets never alias the source documents.
    target[:] = [dict(record) if isinstance(record, Mapping) else record for record in value]


def assign_one(target: Any, value: Any) -> None:
    """Fill a single-result target with ``value`` (``None`` means empty)."""
    if isinstance(target, Decodable):
        target.decode(value)
        return

    if not isinstance(target, MutableMapping):
        raise ResultShapeError(
            f"Result target must be a mutable mapping or Decodable, got {type(target).__name__}"
        )
    if value is not None and not isinstance(value, Mapping):
        raise ResultShapeError(
            f"Cannot copy {type(value).__name__} into a {type(target).__name__} result target"
        )
    target.clear()
    if value is not None:
        target.update(value)


__all__ = [
    "Decodable",
    "RecordList",
    "RecordSlot",
    "assign_many",
    "assign_one",
]
