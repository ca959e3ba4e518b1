"""Environment-driven settings for building a storer.

Manifesto:
    Which backend a service talks to, and where, is deployment configuration,
    not code.  ``StorerSettings`` reads it from ``STORER_*`` environment
    variables (or a ``.env`` file), validates it at startup and hands it to
    :func:`storer.adapters.registry.open_storer`.

    - **Pydantic validation:** Type-checked at startup, not on first query
    - **Environment-driven:** ``STORER_URI``, ``STORER_BACKEND``, ...
    - **Sensible defaults:** Works against a local MongoDB out of the box

Examples:
    >>> import os
    >>> os.environ["STORER_BACKEND"] = "session"
    >>> get_settings().backend
    'session'

Tags:
    settings, configuration, pydantic, environment, storer

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorerSettings(BaseSettings):
    """Settings for the default storer of a process.

    Fields
    ──────
    backend            : Registry name (``session``, ``pooled``, ``memory``)
    uri                : MongoDB connection string
    database           : Database name; overrides the URI path when set
    connect_timeout    : Server selection / dial ceiling in seconds
    operation_timeout  : Per-call ceiling in seconds (adapter default if unset)
    log_level          : Structlog log level
    log_json           : JSON logs; auto-detected from the TTY when unset
    service_name       : ``service.name`` stamped on every log line
    """

    model_config = SettingsConfigDict(
        env_prefix="STORER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Backend ──────────────────────────────────────────────────
    backend: Literal["session", "pooled", "memory"] = "pooled"
    uri: str = "mongodb://localhost:27017/storer"
    database: str | None = None

    # ── Deadlines ────────────────────────────────────────────────
    connect_timeout: float = Field(default=10.0, gt=0)
    operation_timeout: float | None = Field(default=None, gt=0)

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool | None = None
    service_name: str = "storer"


@lru_cache(maxsize=1)
def get_settings() -> StorerSettings:
    """Process-wide settings, read once."""
    return StorerSettings()


def reset_settings() -> None:
    """Drop the cached settings (tests, reconfiguration)."""
    get_settings.cache_clear()


__all__ = [
    "StorerSettings",
    "get_settings",
    "reset_settings",
]
