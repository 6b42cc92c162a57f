from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING

import pytest

from catimport.domain.importing import (
    AttributeKind,
    AttributeLookup,
    CodeLookup,
    InvalidListConfigError,
    InvalidTypeError,
    InvalidValueError,
    LinkKind,
    ListReconciler,
    MediaKind,
    PriceKind,
    TextKind,
    TypeRegistry,
)
from catimport.domain.model import Attribute, Catalog, ListDomain, ListItem, Media, Price, Text
from tests.helpers.importing import FakeImportStore, add_text, make_product

if TYPE_CHECKING:
    from pathlib import Path

    from catimport.domain.importing import ListKind


def _reconciler(
    store: FakeImportStore,
    kind: ListKind | None = None,
    *,
    list_types: set[str] | None = None,
    ref_types: set[str] | None = None,
) -> ListReconciler:
    return ListReconciler(
        kind or TextKind(),
        TypeRegistry(store.unit_of_work),
        list_types=list_types if list_types is not None else {"default", "variant"},
        ref_types=ref_types if ref_types is not None else {"name", "short", "default"},
    )


def _texts(product_items: list[ListItem]) -> list[str]:
    return [item.ref_item.content for item in product_items if isinstance(item.ref_item, Text)]


def test_creates_text_with_defaults(store: FakeImportStore) -> None:
    product = make_product()
    chunk = {"text.type": "name", "text.content": "<b>Blue</b> shirt", "text.languageid": "en"}

    _reconciler(store).reconcile(product, [chunk])

    (list_item,) = product.get_list_items(ListDomain.TEXT)
    text = list_item.ref_item
    assert isinstance(text, Text)
    assert text.content == "<b>Blue</b> shirt"
    assert text.label == "Blue shirt"
    assert text.language_id == "en"
    assert text.domain == "product"
    assert list_item.type == "default"
    assert list_item.position == 0
    assert list_item.ref_id == text.id


def test_reconciling_twice_changes_nothing(store: FakeImportStore) -> None:
    product = make_product()
    chunks = [
        {"text.type": "name", "text.content": "Shirt"},
        {"text.type": "short", "text.content": "Blue shirt"},
    ]
    reconciler = _reconciler(store)

    reconciler.reconcile(product, chunks)
    first = [(item.id, item.ref_id, item.position) for item in product.list_items]
    product.take_deletions()
    reconciler.reconcile(product, chunks)

    assert [(item.id, item.ref_id, item.position) for item in product.list_items] == first
    assert product.take_deletions() == ([], [])


def test_matching_item_is_updated_in_place(store: FakeImportStore) -> None:
    product = make_product()
    existing = add_text(product, "Shirt")
    text = existing.ref_item

    _reconciler(store).reconcile(
        product, [{"text.type": "name", "text.content": "Shirt", "text.status": "0"}]
    )

    assert product.list_items == [existing]
    assert existing.ref_item is text
    assert isinstance(text, Text)
    assert text.status == 0


def test_unmatched_items_are_deleted_with_owned_texts(store: FakeImportStore) -> None:
    product = make_product()
    add_text(product, "Shirt", position=0)
    doomed = add_text(product, "Old name", position=1)

    _reconciler(store).reconcile(product, [{"text.type": "name", "text.content": "Shirt"}])

    assert _texts(product.list_items) == ["Shirt"]
    deleted_items, deleted_refs = product.take_deletions()
    assert deleted_items == [doomed]
    assert deleted_refs == [doomed.ref_item]


def test_items_outside_list_types_are_left_alone(store: FakeImportStore) -> None:
    product = make_product()
    hidden = add_text(product, "Internal note", list_type="internal")

    _reconciler(store).reconcile(product, [{"text.type": "name", "text.content": "Shirt"}])

    assert hidden in product.list_items
    assert _texts(product.get_list_items(ListDomain.TEXT)) == ["Internal note", "Shirt"]
    assert product.take_deletions() == ([], [])


def test_unknown_list_type_leaves_parent_unchanged(store: FakeImportStore) -> None:
    product = make_product()
    existing = add_text(product, "Shirt")
    chunks = [
        {"text.type": "name", "text.content": "Changed"},
        {"text.type": "name", "text.content": "Other", "product.lists.type": "bogus"},
    ]

    with pytest.raises(InvalidTypeError) as excinfo:
        _reconciler(store).reconcile(product, chunks)

    assert str(excinfo.value) == 'Invalid type "bogus" (product/lists/type) in text data'
    assert product.list_items == [existing]
    assert _texts(product.list_items) == ["Shirt"]
    assert product.take_deletions() == ([], [])


def test_unknown_referenced_type_is_rejected(store: FakeImportStore) -> None:
    product = make_product()

    with pytest.raises(InvalidTypeError) as excinfo:
        _reconciler(store).reconcile(product, [{"text.type": "weird", "text.content": "x"}])

    assert excinfo.value.scope == "text/type"
    assert excinfo.value.code == "weird"
    assert product.list_items == []


def test_invalid_value_is_a_validation_error(store: FakeImportStore) -> None:
    product = make_product()

    with pytest.raises(InvalidValueError):
        _reconciler(store).reconcile(
            product, [{"text.type": "name", "text.content": "x", "text.status": "on"}]
        )

    assert product.list_items == []


def test_chunks_without_required_value_are_skipped(store: FakeImportStore) -> None:
    product = make_product()

    _reconciler(store).reconcile(
        product, [{"text.type": "name"}, {"text.type": "name", "text.content": "   "}]
    )

    assert product.list_items == []


def test_ordered_kind_follows_source_order(store: FakeImportStore) -> None:
    product = make_product()
    add_text(product, "A", position=0)
    add_text(product, "B", position=1)
    chunks = [
        {"text.type": "name", "text.content": "C"},
        {"text.type": "name", "text.content": "A"},
        {"text.type": "name", "text.content": "B"},
    ]

    _reconciler(store).reconcile(product, chunks)

    items = product.get_list_items(ListDomain.TEXT)
    assert _texts(items) == ["C", "A", "B"]
    assert [item.position for item in items] == [0, 1, 2]


def test_explicit_position_wins(store: FakeImportStore) -> None:
    product = make_product()

    _reconciler(store).reconcile(
        product,
        [{"text.type": "name", "text.content": "A", "product.lists.position": "7"}],
    )

    assert product.list_items[0].position == 7


def test_duplicate_natural_key_last_write_wins(store: FakeImportStore) -> None:
    product = make_product()
    chunks = [
        {"text.type": "name", "text.content": "A", "text.status": "1"},
        {"text.type": "name", "text.content": "B"},
        {"text.type": "name", "text.content": "A", "text.status": "0"},
    ]

    _reconciler(store).reconcile(product, chunks)

    items = product.get_list_items(ListDomain.TEXT)
    assert _texts(items) == ["A", "B"]
    assert [item.position for item in items] == [0, 1]
    first = items[0].ref_item
    assert isinstance(first, Text)
    assert first.status == 0


def test_list_config_as_json_or_lines(store: FakeImportStore) -> None:
    product = make_product()
    chunks = [
        {"text.type": "name", "text.content": "A", "product.lists.config": '{"css": "big"}'},
        {"text.type": "short", "text.content": "B", "product.lists.config": "css: small\nx:1"},
    ]

    _reconciler(store).reconcile(product, chunks)

    configs = [item.config for item in product.get_list_items(ListDomain.TEXT)]
    assert configs == [{"css": "big"}, {"css": "small", "x": "1"}]


def test_invalid_list_config_is_rejected(store: FakeImportStore) -> None:
    product = make_product()
    chunk = {"text.type": "name", "text.content": "A", "product.lists.config": "no pairs"}

    with pytest.raises(InvalidListConfigError):
        _reconciler(store).reconcile(product, [chunk])


def test_used_types_are_requested(store: FakeImportStore) -> None:
    reconciler = _reconciler(store)

    reconciler.reconcile(make_product(), [{"text.type": "short", "text.content": "A"}])

    assert reconciler.registry.pending == {
        "product/lists/type": {"text": {"default"}},
        "text/type": {"product": {"short"}},
    }


def test_media_urls_are_split_into_separate_items(store: FakeImportStore) -> None:
    product = make_product()

    _reconciler(store, MediaKind()).reconcile(
        product, [{"media.url": "img/a.jpg\nimg/b.png", "media.type": "default"}]
    )

    items = product.get_list_items(ListDomain.MEDIA)
    media = [item.ref_item for item in items]
    assert all(isinstance(item, Media) for item in media)
    assert [(m.url, m.mime_type, m.label) for m in media if isinstance(m, Media)] == [
        ("img/a.jpg", "image/jpeg", "img/a.jpg"),
        ("img/b.png", "image/png", "img/b.png"),
    ]
    assert [item.position for item in items] == [0, 1]


def test_missing_media_file_is_skipped(
    store: FakeImportStore, tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    (tmp_path / "here.jpg").write_bytes(b"")
    product = make_product()

    with caplog.at_level(logging.WARNING):
        _reconciler(store, MediaKind(media_root=tmp_path)).reconcile(
            product, [{"media.url": "missing.jpg\nhere.jpg"}]
        )

    urls = [item.ref_item.url for item in product.list_items if isinstance(item.ref_item, Media)]
    assert urls == ["here.jpg"]
    assert 'media "missing.jpg" file not found' in caplog.text


def test_price_label_and_amounts(store: FakeImportStore) -> None:
    product = make_product()

    _reconciler(store, PriceKind()).reconcile(
        product,
        [{"price.currencyid": "EUR", "price.value": "19.90", "price.taxrate": "19.00"}],
    )

    (item,) = product.list_items
    price = item.ref_item
    assert isinstance(price, Price)
    assert price.label == "EUR 19.90"
    assert price.value == Decimal("19.90")
    assert price.tax_rate == Decimal("19.00")
    assert price.type == "default"


def test_attributes_keep_positions_and_are_shared(store: FakeImportStore) -> None:
    red = Attribute(code="red", type="color", label="Red")
    store.attributes.items.append(red)
    product = make_product()
    linked = product.add_list_item(ListItem(domain=ListDomain.ATTRIBUTE, position=4), red)
    dropped_attribute = Attribute(code="S", type="size")
    dropped = product.add_list_item(
        ListItem(domain=ListDomain.ATTRIBUTE, position=1), dropped_attribute
    )
    lookup = AttributeLookup(store.attributes.search, store.attributes.create)
    chunks = [
        {"attribute.type": "size", "attribute.code": "XL"},
        {"attribute.type": "color", "attribute.code": "red"},
    ]

    _reconciler(store, AttributeKind(lookup), ref_types={"color", "size"}).reconcile(
        product, chunks
    )

    items = product.get_list_items(ListDomain.ATTRIBUTE)
    assert [(item.ref_item.code, item.position) for item in items if item.ref_item] == [
        ("red", 4),
        ("XL", 5),
    ]
    assert linked in items
    created = items[1].ref_item
    assert isinstance(created, Attribute)
    assert (created.type, created.label, created.domain) == ("size", "XL", "product")
    assert product.take_deletions() == ([dropped], [])


def test_links_resolve_codes_and_skip_unknown(
    store: FakeImportStore, caplog: pytest.LogCaptureFixture
) -> None:
    shirts = Catalog(code="shirts", label="Shirts")
    store.catalogs.seed(shirts)
    lookup = CodeLookup(store.catalogs.search)
    product = make_product()
    kind = LinkKind(ListDomain.CATALOG, lookup)  # pyright: ignore[reportArgumentType]

    with caplog.at_level(logging.WARNING):
        _reconciler(store, kind, list_types={"default", "promotion"}).reconcile(
            product, [{"catalog.code": "shirts\nunknown", "product.lists.type": "promotion"}]
        )

    (item,) = product.get_list_items(ListDomain.CATALOG)
    assert item.ref_id == shirts.id
    assert item.type == "promotion"
    assert 'catalog "unknown" not found' in caplog.text


def test_removed_link_keeps_linked_item(store: FakeImportStore) -> None:
    shirts = Catalog(code="shirts")
    product = make_product()
    product.add_list_item(ListItem(domain=ListDomain.CATALOG), shirts)
    kind = LinkKind(ListDomain.CATALOG, CodeLookup(store.catalogs.search))  # pyright: ignore[reportArgumentType]

    _reconciler(store, kind).reconcile(product, [])

    deleted_items, deleted_refs = product.take_deletions()
    assert len(deleted_items) == 1
    assert deleted_refs == []
