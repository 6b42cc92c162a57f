from __future__ import annotations

from catimport.domain.importing import PropertyReconciler, TypeRegistry
from catimport.domain.model import PropertyItem
from tests.helpers.importing import FakeImportStore, make_product


def test_properties_are_matched_by_value_type_and_language(store: FakeImportStore) -> None:
    product = make_product()
    kept = product.add_property_item(PropertyItem(type="size", value="XL"))
    dropped = product.add_property_item(PropertyItem(type="size", value="S"))
    reconciler = PropertyReconciler(TypeRegistry(store.unit_of_work))

    reconciler.reconcile(
        product,
        [
            {"product.property.type": "size", "product.property.value": "XL"},
            {"product.property.type": "weight", "product.property.value": "1.5"},
            {"product.property.type": "size"},
        ],
    )

    assert product.property_items[0] is kept
    assert [(item.type, item.value) for item in product.property_items] == [
        ("size", "XL"),
        ("weight", "1.5"),
    ]
    assert product.take_deleted_property_items() == [dropped]
    assert reconciler.registry.pending == {
        "product/property/type": {"product": {"size", "weight"}}
    }


def test_property_types_limit_the_scope(store: FakeImportStore) -> None:
    product = make_product()
    other = product.add_property_item(PropertyItem(type="internal", value="x"))
    reconciler = PropertyReconciler(TypeRegistry(store.unit_of_work), types={"size"})

    reconciler.reconcile(product, [])

    assert product.property_items == [other]


def test_blank_language_is_stored_as_none(store: FakeImportStore) -> None:
    product = make_product()
    reconciler = PropertyReconciler(TypeRegistry(store.unit_of_work))

    reconciler.reconcile(
        product,
        [
            {
                "product.property.type": "size",
                "product.property.value": "XL",
                "product.property.languageid": " ",
            }
        ],
    )

    assert product.property_items[0].language_id is None


def test_chunks_without_type_are_skipped(store: FakeImportStore) -> None:
    product = make_product()
    existing = product.add_property_item(PropertyItem(type="size", value="XL"))
    reconciler = PropertyReconciler(TypeRegistry(store.unit_of_work))

    reconciler.reconcile(
        product,
        [
            {"product.property.type": " ", "product.property.value": "XL"},
            {"product.property.value": "M"},
        ],
    )

    assert product.property_items == []
    assert product.take_deleted_property_items() == [existing]
    assert reconciler.registry.pending == {}
