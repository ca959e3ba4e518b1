"""Tests for StorerSettings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from storer.settings import StorerSettings, get_settings, reset_settings


class TestStorerSettings:
    def test_defaults(self, monkeypatch) -> None:
        for name in ("STORER_BACKEND", "STORER_URI", "STORER_DATABASE", "STORER_LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)
        settings = StorerSettings(_env_file=None)
        assert settings.backend == "pooled"
        assert settings.uri == "mongodb://localhost:27017/storer"
        assert settings.database is None
        assert settings.connect_timeout == 10.0
        assert settings.operation_timeout is None
        assert settings.service_name == "storer"

    def test_env_override(self, monkeypatch) -> None:
        monkeypatch.setenv("STORER_BACKEND", "session")
        monkeypatch.setenv("STORER_URI", "mongodb://db:27017/app")
        monkeypatch.setenv("STORER_OPERATION_TIMEOUT", "2.5")
        monkeypatch.setenv("STORER_LOG_JSON", "true")

        settings = StorerSettings(_env_file=None)

        assert settings.backend == "session"
        assert settings.uri == "mongodb://db:27017/app"
        assert settings.operation_timeout == 2.5
        assert settings.log_json is True

    def test_unknown_backend_rejected(self) -> None:
        with pytest.raises(ValidationError):
            StorerSettings(backend="cassandra")

    @pytest.mark.parametrize("field", ["connect_timeout", "operation_timeout"])
    def test_non_positive_timeouts_rejected(self, field: str) -> None:
        with pytest.raises(ValidationError):
            StorerSettings(**{field: 0})

    def test_unrelated_env_ignored(self, monkeypatch) -> None:
        monkeypatch.setenv("STORER_SOMETHING_ELSE", "x")
        StorerSettings(_env_file=None)


class TestGetSettings:
    def test_cached(self) -> None:
        assert get_settings() is get_settings()

    def test_reset(self, monkeypatch) -> None:
        first = get_settings()
        monkeypatch.setenv("STORER_SERVICE_NAME", "billing")
        reset_settings()
        second = get_settings()
        assert second is not first
        assert second.service_name == "billing"
