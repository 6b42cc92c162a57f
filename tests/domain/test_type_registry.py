from __future__ import annotations

import logging

import pytest

from catimport.domain.importing import TypeRegistry
from tests.helpers.importing import FakeImportStore, type_item


def test_request_is_idempotent_and_ignores_blank_codes(store: FakeImportStore) -> None:
    registry = TypeRegistry(store.unit_of_work)

    registry.request("product/lists/type", "text", "default")
    registry.request("product/lists/type", "text", " default ")
    registry.request("product/lists/type", "text", "")
    registry.request("product/lists/type", "media", None)

    assert registry.pending == {"product/lists/type": {"text": {"default"}}}
    assert store.opened == 0


def test_flush_creates_only_missing_types(store: FakeImportStore) -> None:
    store.types.items.append(type_item("product/lists/type", "text", "default"))
    registry = TypeRegistry(store.unit_of_work)
    registry.request("product/lists/type", "text", "default")
    registry.request("product/lists/type", "text", "variant")
    registry.request("product/lists/type", "media", "default")
    registry.request("text/type", "product", "name")

    created = registry.flush()

    assert created == 3
    assert store.types.codes("product/lists/type", "text") == {"default", "variant"}
    assert store.types.codes("product/lists/type", "media") == {"default"}
    assert store.types.codes("text/type", "product") == {"name"}
    assert [item.label for item in store.types.items if item.code == "variant"] == ["variant"]


def test_flush_reads_once_per_scope(store: FakeImportStore) -> None:
    registry = TypeRegistry(store.unit_of_work)
    registry.request("product/lists/type", "text", "default")
    registry.request("product/lists/type", "media", "default")
    registry.request("product/lists/type", "price", "default")

    registry.flush()

    assert store.types.search_calls == [("product/lists/type", ("media", "price", "text"))]
    assert store.types.save_calls == 1
    assert store.commits == 1


def test_second_flush_is_a_noop(store: FakeImportStore) -> None:
    registry = TypeRegistry(store.unit_of_work)
    registry.request("product/type", "product", "default")

    assert registry.flush() == 1
    assert registry.pending == {}
    assert registry.flush() == 0
    assert store.opened == 1


def test_failing_scope_does_not_stop_other_scopes(caplog: pytest.LogCaptureFixture) -> None:
    store = FakeImportStore(failing_type_scopes={"media/type"})
    registry = TypeRegistry(store.unit_of_work)
    registry.request("media/type", "product", "download")
    registry.request("text/type", "product", "name")

    with caplog.at_level(logging.ERROR):
        created = registry.flush()

    assert created == 1
    assert store.types.codes("text/type", "product") == {"name"}
    assert store.types.codes("media/type", "product") == set()
    assert store.rollbacks == 1
    assert "Unable to create missing types for media/type" in caplog.text


def test_nothing_missing_does_not_commit(store: FakeImportStore) -> None:
    store.types.items.append(type_item("text/type", "product", "name"))
    registry = TypeRegistry(store.unit_of_work)
    registry.request("text/type", "product", "name")

    assert registry.flush() == 0
    assert store.commits == 0
