"""Payload shape checks shared by the contract and every adapter.

The contract treats queries, changes and pipelines as opaque structured data.
Adapters only check the container shape so the driver never sees a payload it
would reject with a library-specific ``TypeError``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel

from storer.errors import InvalidArgumentError

Document = Mapping[str, Any]
Pipeline = Sequence[Mapping[str, Any]]


def is_sequence(value: Any) -> bool:
    """True for list-like values; strings, bytes and mappings excluded."""
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray, Mapping))


def check_table(table: Any) -> str:
    if not isinstance(table, str) or not table.strip():
        raise InvalidArgumentError(
            f"Collection name must be a non-empty string, got {table!r}",
            field="table",
            value=table,
        )
    return table


def check_document(value: Any, name: str = "query") -> Document:
    """Return ``value`` unchanged if it is a mapping."""
    if not isinstance(value, Mapping):
        raise InvalidArgumentError(
            f"{name} must be a mapping, got {type(value).__name__}",
            field=name,
            value=value,
        )
    return value


def check_change(value: Any) -> Document:
    """An update document: a non-empty mapping of ``$``-operators."""
    check_document(value, "change")
    if not value:
        raise InvalidArgumentError("change must not be empty", field="change", value=value)
    plain = [key for key in value if not (isinstance(key, str) and key.startswith("$"))]
    if plain:
        raise InvalidArgumentError(
            f"change must only use update operators, got plain fields {plain}",
            field="change",
            value=value,
        )
    return value


def check_pipeline(value: Any) -> list[Document]:
    if not is_sequence(value):
        raise InvalidArgumentError(
            f"pipeline must be a sequence of stages, got {type(value).__name__}",
            field="pipeline",
            value=value,
        )
    return [check_document(stage, "pipeline stage") for stage in value]


def to_document(obj: Any) -> dict[str, Any]:
    """Copy an object into a fresh dict suitable for insertion.

    Mappings are shallow-copied so the driver cannot write ``_id`` back into
    the caller's object; pydantic models are dumped by alias.
    """
    if isinstance(obj, BaseModel):
        return obj.model_dump(by_alias=True)
    if isinstance(obj, Mapping):
        return dict(obj)
    raise InvalidArgumentError(
        f"Cannot store object of type {type(obj).__name__}; expected a mapping or pydantic model",
        field="object",
        value=obj,
    )


def to_documents(objects: Any) -> list[dict[str, Any]]:
    if not is_sequence(objects):
        raise InvalidArgumentError(
            f"objects must be a sequence, got {type(objects).__name__}",
            field="objects",
            value=objects,
        )
    return [to_document(obj) for obj in objects]


__all__ = [
    "Document",
    "Pipeline",
    "is_sequence",
    "check_table",
    "check_document",
    "check_change",
    "check_pipeline",
    "to_document",
    "to_documents",
]
