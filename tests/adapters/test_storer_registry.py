"""Tests for backend registration and the open_storer factory."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from storer.adapters.pooled import PooledMongoStorer
from storer.adapters.registry import StorerRegistry, open_storer, storer_registry
from storer.adapters.session import SessionMongoStorer
from storer.errors import UnsupportedError
from storer.fake import FakeStorer
from storer.settings import StorerSettings


class TestStorerRegistry:
    @pytest.mark.parametrize(
        "name,storer_class",
        [
            ("session", SessionMongoStorer),
            ("pooled", PooledMongoStorer),
            ("mongo", PooledMongoStorer),
            ("memory", FakeStorer),
            ("fake", FakeStorer),
        ],
    )
    def test_defaults_registered(self, name: str, storer_class: type) -> None:
        assert storer_registry.get(name) is storer_class

    def test_lookup_is_case_insensitive(self) -> None:
        assert storer_registry.get("Pooled") is PooledMongoStorer

    def test_unknown_raises(self) -> None:
        with pytest.raises(UnsupportedError, match="Unknown storer backend"):
            storer_registry.get("cassandra")

    def test_register_custom_backend(self) -> None:
        registry = StorerRegistry()

        class RecordingStorer(FakeStorer):
            backend_name = "recording"

        registry.register("Recording", RecordingStorer)
        assert "recording" in registry.list_backends()
        assert isinstance(registry.create("recording"), RecordingStorer)

    def test_list_backends_sorted(self) -> None:
        backends = StorerRegistry().list_backends()
        assert backends == sorted(backends)


class TestOpenStorer:
    def test_memory_backend(self) -> None:
        storer = open_storer(StorerSettings(backend="memory"))
        assert isinstance(storer, FakeStorer)

    def test_memory_backend_takes_fixtures(self) -> None:
        storer = open_storer(StorerSettings(backend="memory"), results={"users": [{"id": 1}]})
        users: list = []
        storer.find("users", {}, users)
        assert users == [{"id": 1}]

    def test_pooled_backend_from_settings(self, mongo_client) -> None:
        factory = MagicMock(return_value=mongo_client)
        settings = StorerSettings(
            backend="pooled",
            uri="mongodb://db.internal:27017/orders",
            connect_timeout=3,
            operation_timeout=4,
        )

        storer = open_storer(settings, client_factory=factory)

        assert isinstance(storer, PooledMongoStorer)
        assert storer.database_name == "orders"
        factory.assert_called_once_with(
            "mongodb://db.internal:27017/orders",
            serverSelectionTimeoutMS=3000,
            connectTimeoutMS=3000,
        )

    def test_database_setting_overrides_uri(self, mongo_client) -> None:
        settings = StorerSettings(uri="mongodb://localhost/orders", database="billing")
        storer = open_storer(settings, client_factory=lambda uri, **kw: mongo_client)
        assert storer.database_name == "billing"

    def test_session_backend(self) -> None:
        client = MagicMock()
        storer = open_storer(
            StorerSettings(backend="session", uri="mongodb://localhost/app"),
            client_factory=MagicMock(return_value=client),
        )
        assert isinstance(storer, SessionMongoStorer)
        client.admin.command.assert_called_once_with("ping")

    def test_process_settings_used_by_default(self, monkeypatch) -> None:
        monkeypatch.setenv("STORER_BACKEND", "memory")
        assert isinstance(open_storer(), FakeStorer)
