"""Tests for storer.logging."""

from __future__ import annotations

import json
import logging

import pytest
import structlog

from storer.logging import (
    LogContext,
    bind_context,
    clear_context,
    configure_from_settings,
    configure_logging,
    get_logger,
    unbind_context,
)
from storer.settings import StorerSettings


class TestConfigureLogging:
    def test_json_output_is_ecs_shaped(self, caplog) -> None:
        configure_logging(level="INFO", json_format=True, service="orders-api")
        caplog.set_level(logging.INFO)

        get_logger("storer.test").info("storer.find.end", table="users", duration_ms=1.5)

        payload = json.loads(caplog.records[-1].getMessage())
        assert payload["event"] == "storer.find.end"
        assert payload["table"] == "users"
        assert payload["service.name"] == "orders-api"
        assert payload["log.level"] == "info"
        assert payload["logger"] == "storer.test"
        assert "@timestamp" in payload

    def test_level_filters(self, caplog) -> None:
        configure_logging(level="WARNING", json_format=True)
        caplog.set_level(logging.DEBUG)

        logger = get_logger("storer.test.filter")
        logger.info("storer.quiet")
        logger.warning("storer.loud")

        events = [json.loads(r.getMessage())["event"] for r in caplog.records]
        assert events == ["storer.loud"]

    def test_timestamp_optional(self, caplog) -> None:
        configure_logging(level="INFO", json_format=True, add_timestamp=False)
        caplog.set_level(logging.INFO)

        get_logger("storer.test.ts").info("storer.event")

        assert "@timestamp" not in json.loads(caplog.records[-1].getMessage())

    def test_configure_from_settings(self, caplog) -> None:
        configure_from_settings(
            StorerSettings(log_level="info", log_json=True, service_name="billing")
        )
        caplog.set_level(logging.INFO)

        get_logger("storer.test.settings").info("storer.event")

        assert json.loads(caplog.records[-1].getMessage())["service.name"] == "billing"

    def test_unknown_level(self) -> None:
        with pytest.raises(ValueError, match="Unknown log level"):
            configure_logging(level="CHATTY")


class TestLogContext:
    def test_bind_and_unbind(self) -> None:
        bind_context(request_id="r-1", tenant="acme")
        unbind_context("tenant")
        assert structlog.contextvars.get_contextvars() == {"request_id": "r-1"}
        clear_context()
        assert structlog.contextvars.get_contextvars() == {}

    def test_scoped_context(self) -> None:
        with LogContext(request_id="r-2"):
            assert structlog.contextvars.get_contextvars()["request_id"] == "r-2"
        assert "request_id" not in structlog.contextvars.get_contextvars()

    def test_context_reaches_output(self, caplog) -> None:
        configure_logging(level="INFO", json_format=True)
        caplog.set_level(logging.INFO)

        with LogContext(request_id="r-3"):
            get_logger("storer.test.ctx").info("storer.event")

        assert json.loads(caplog.records[-1].getMessage())["request_id"] == "r-3"
