"""Behaviour every backend shares, checked against each of them."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from storer.adapters.pooled import PooledMongoStorer
from storer.adapters.session import SessionMongoStorer
from storer.base import Storer, UpdateOptions
from storer.errors import InvalidArgumentError
from storer.fake import FakeStorer


@pytest.fixture(params=["memory", "pooled", "session"])
def any_storer(request, mongo_client) -> Storer:
    if request.param == "memory":
        return FakeStorer()
    if request.param == "pooled":
        return PooledMongoStorer(
            "mongodb://localhost/contract", client_factory=lambda uri, **kw: mongo_client
        )
    return SessionMongoStorer(
        "mongodb://localhost/contract", client_factory=MagicMock(return_value=MagicMock())
    )


class TestStorerContract:
    def test_is_a_storer(self, any_storer: Storer) -> None:
        assert isinstance(any_storer, Storer)

    def test_pagination_defaults_are_valid(self, any_storer: Storer) -> None:
        params = any_storer.new_pagination_params()
        assert params.limit > 0
        assert params.page == 0
        assert params.skip == 0

    def test_close_twice(self, any_storer: Storer) -> None:
        any_storer.close()
        any_storer.close()

    def test_empty_table_rejected(self, any_storer: Storer) -> None:
        with pytest.raises(InvalidArgumentError):
            any_storer.find("", {}, [])


class TestStorerBase:
    def test_cannot_instantiate_abstract(self) -> None:
        with pytest.raises(TypeError):
            Storer()  # type: ignore[abstract]


class TestUpdateOptions:
    def test_coerce_passthrough(self) -> None:
        options = UpdateOptions(upsert=True)
        assert UpdateOptions.coerce(options) is options

    def test_coerce_none(self) -> None:
        assert UpdateOptions.coerce(None) == UpdateOptions()

    def test_coerce_filters(self) -> None:
        options = UpdateOptions.coerce(({"e.id": 3},))
        assert options.array_filters == [{"e.id": 3}]
        assert not options.upsert

    def test_coerce_rejects_bad_filter(self) -> None:
        with pytest.raises(InvalidArgumentError):
            UpdateOptions.coerce(["e.id"])
