"""Storer registry and factory.

Manifesto:
    Callers should never hard-code adapter class names.  The registry maps
    backend names to storer classes and ``open_storer()`` builds a configured
    instance from :class:`~storer.settings.StorerSettings`, so switching a
    service from the pooled to the session backend (or to the in-memory fake
    in tests) is a configuration change.

Features:
    - ``StorerRegistry`` with pre-registered defaults
    - ``register()`` for custom / third-party backends
    - ``open_storer()`` factory: settings → ready storer

Tags:
    storer, registry, factory

Doc-Types:
    api-reference
"""

from __future__ import annotations

from typing import Any

from storer.base import Storer
from storer.errors import UnsupportedError
from storer.fake import FakeStorer
from storer.settings import StorerSettings, get_settings

from .pooled import PooledMongoStorer
from .session import SessionMongoStorer


class StorerRegistry:
    """
    Registry for storer backends.

    Pre-registered backends:
    - ``session``: :class:`SessionMongoStorer`
    - ``pooled`` / ``mongo``: :class:`PooledMongoStorer`
    - ``memory`` / ``fake``: :class:`FakeStorer`
    """

    def __init__(self):
        self._factories: dict[str, type[Storer]] = {}
        self._register_defaults()

    def _register_defaults(self) -> None:
        self._factories["session"] = SessionMongoStorer
        self._factories["pooled"] = PooledMongoStorer
        self._factories["mongo"] = PooledMongoStorer  # Alias
        self._factories["memory"] = FakeStorer
        self._factories["fake"] = FakeStorer  # Alias

    def register(self, name: str, storer_class: type[Storer]) -> None:
        """Register a backend class under ``name``."""
        self._factories[name.lower()] = storer_class

    def get(self, name: str) -> type[Storer]:
        key = name.lower()
        if key not in self._factories:
            raise UnsupportedError(f"Unknown storer backend: {name}")
        return self._factories[key]

    def create(self, name: str, *args: Any, **kwargs: Any) -> Storer:
        """Create a storer by backend name."""
        return self.get(name)(*args, **kwargs)

    def list_backends(self) -> list[str]:
        return sorted(self._factories.keys())


# Global registry
storer_registry = StorerRegistry()


def open_storer(settings: StorerSettings | None = None, **overrides: Any) -> Storer:
    """
    Build the storer described by ``settings`` (process settings by default).

    ``overrides`` are passed to the backend constructor and win over
    settings, e.g. ``client_factory=`` or ``tracer_provider=`` in tests.

    Usage:
        storer = open_storer()
        storer = open_storer(StorerSettings(backend="session", uri="mongodb://db/app"))
    """
    settings = settings or get_settings()
    storer_class = storer_registry.get(settings.backend)

    if issubclass(storer_class, FakeStorer):
        return storer_class(**overrides)

    kwargs: dict[str, Any] = {
        "database": settings.database,
        "connect_timeout": settings.connect_timeout,
        "operation_timeout": settings.operation_timeout,
    }
    kwargs.update(overrides)
    return storer_class(settings.uri, **kwargs)


__all__ = [
    "StorerRegistry",
    "storer_registry",
    "open_storer",
]
