from __future__ import annotations

import pytest

from catimport.config import ImportSettings
from catimport.domain.importing import (
    ChainConfigurationError,
    DoneProcessor,
    ImportJobError,
    InvalidTypeError,
    MappedChunks,
    ProcessorContext,
    TypeRegistry,
    build_processor_chain,
    row_data,
)
from catimport.domain.model import Catalog, ListDomain, Resource
from tests.helpers.importing import FakeImportStore, make_product, make_settings, type_item

MAPPING = {
    "text": {1: "text.type", 2: "text.content"},
    "media": {3: "media.url"},
}


def _context(
    store: FakeImportStore,
    settings: ImportSettings,
    resource: Resource = Resource.PRODUCT,
) -> ProcessorContext:
    context = ProcessorContext(
        settings=settings, resource=resource, registry=TypeRegistry(store.unit_of_work)
    )
    context.bind(store.repositories)
    return context


def _mapped(kind: str) -> MappedChunks:
    return MappedChunks(MAPPING[kind])


def test_chain_runs_kinds_in_order_and_returns_the_rest(
    store: FakeImportStore, settings: ImportSettings
) -> None:
    chain = build_processor_chain(["text", "media"], _context(store, settings), _mapped)
    product = make_product()

    remaining = chain.process(product, row_data(["P-1", "name", "Shirt", "a.jpg", "extra"]))

    assert chain.kinds == ["text", "media"]
    assert remaining == {0: "P-1", 4: "extra"}
    assert len(product.get_list_items(ListDomain.TEXT)) == 1
    assert len(product.get_list_items(ListDomain.MEDIA)) == 1


def test_done_processor_returns_data_unchanged() -> None:
    data = {0: "x"}

    assert DoneProcessor().process(make_product(), data) is data


def test_unknown_kind_fails_before_any_link_is_built(
    store: FakeImportStore, settings: ImportSettings
) -> None:
    with pytest.raises(ChainConfigurationError, match='Unknown processor kind "stock"'):
        build_processor_chain(["text", "stock"], _context(store, settings), _mapped)

    assert store.types.search_calls == []


def test_unknown_processor_name_is_rejected(store: FakeImportStore) -> None:
    settings = make_settings(
        product={"text": {"listtypes": ["default"], "processor": "fancy"}},
    )

    with pytest.raises(ChainConfigurationError, match='Unknown processor "fancy" for kind "text"'):
        build_processor_chain(["text"], _context(store, settings), _mapped)


def test_finish_flushes_requested_types_once(
    store: FakeImportStore, settings: ImportSettings
) -> None:
    chain = build_processor_chain(["text", "media"], _context(store, settings), _mapped)
    chain.process(make_product(), row_data(["P-1", "short", "Shirt", "a.jpg"]))

    assert chain.finish() == 4
    assert chain.finish() == 0
    assert store.types.codes("product/lists/type", "text") == {"default"}
    assert store.types.codes("product/lists/type", "media") == {"default"}
    assert store.types.codes("text/type", "product") == {"short"}
    assert store.types.codes("media/type", "product") == {"default"}


def test_types_are_discovered_when_not_configured(store: FakeImportStore) -> None:
    store.types.items.extend(
        [
            type_item("product/lists/type", "text", "default"),
            type_item("text/type", "product", "name"),
        ]
    )
    chain = build_processor_chain(
        ["text"], _context(store, ImportSettings.from_mapping({})), _mapped
    )

    product = make_product()
    chain.process(product, row_data(["P-1", "name", "Shirt"]))
    assert len(product.list_items) == 1

    with pytest.raises(InvalidTypeError):
        chain.process(make_product("P-2"), row_data(["P-2", "long", "Shirt"]))


def test_property_processor_requires_products(store: FakeImportStore) -> None:
    settings = make_settings()
    context = _context(store, settings, Resource.CATALOG)
    chain = build_processor_chain(["property"], context, lambda _kind: lambda _data: [])

    with pytest.raises(ImportJobError, match="not supported for catalog"):
        chain.process(Catalog(code="root"), {})


def test_context_without_unit_of_work(settings: ImportSettings, store: FakeImportStore) -> None:
    context = ProcessorContext(
        settings=settings, resource=Resource.PRODUCT, registry=TypeRegistry(store.unit_of_work)
    )

    with pytest.raises(ImportJobError, match="No unit of work"):
        context.lookups.products.get("P-1")


def test_fallback_types_are_accepted_on_an_empty_type_store(store: FakeImportStore) -> None:
    chain = build_processor_chain(
        ["text"], _context(store, ImportSettings.from_mapping({})), _mapped
    )
    product = make_product()

    chain.process(product, row_data(["P-1", "", "Shirt"]))
    chain.process(product, row_data(["P-1", "", "Shirt"]))

    (list_item,) = product.get_list_items(ListDomain.TEXT)
    assert list_item.type == "default"
    assert chain.finish() == 2
    assert store.types.codes("product/lists/type", "text") == {"default"}
    assert store.types.codes("text/type", "product") == {"name"}

    with pytest.raises(InvalidTypeError):
        chain.process(make_product("P-2"), row_data(["P-2", "long", "Shirt"]))
