from __future__ import annotations

from catimport.domain.importing import AttributeLookup, CodeLookup, Lookups
from catimport.domain.model import Attribute, Catalog, Product
from tests.helpers.importing import FakeImportStore


def test_prime_resolves_codes_with_one_read(store: FakeImportStore) -> None:
    store.catalogs.seed(Catalog(code="a"), Catalog(code="b"))
    lookup = CodeLookup(store.catalogs.search)

    lookup.prime(["a", "b", "missing"])

    assert lookup.get("a") is not None
    assert lookup.get("b") is not None
    assert lookup.get("missing") is None
    assert lookup.reads == 1
    assert store.catalogs.search_calls == [["a", "b", "missing"]]


def test_unprimed_code_is_read_on_demand(store: FakeImportStore) -> None:
    store.products.seed(Product(code="P-1"))
    lookup = CodeLookup(store.products.search)

    first = lookup.get("P-1")
    second = lookup.get("P-1")

    assert first is second
    assert lookup.reads == 1


def test_added_and_discarded_items(store: FakeImportStore) -> None:
    lookup = CodeLookup(store.products.search)
    lookup.prime(["P-1"])
    product = Product(code="P-1")

    lookup.add(product)
    assert lookup.get("P-1") is product

    lookup.discard("P-1")
    assert lookup.get("P-1") is None
    assert lookup.reads == 2


def test_attribute_lookup_creates_missing_attributes(store: FakeImportStore) -> None:
    red = Attribute(code="red", type="color")
    store.attributes.items.append(red)
    lookup = AttributeLookup(store.attributes.search, store.attributes.create)
    lookup.prime(["red", "XL"])

    assert lookup.get_or_create("red", "color", domain="product") is red
    created = lookup.get_or_create("XL", "size", domain="product")

    assert (created.code, created.type, created.label) == ("XL", "size", "XL")
    assert lookup.get_or_create("XL", "size", domain="product") is created
    assert lookup.reads == 1


def test_bound_lookups_read_through_current_repositories(store: FakeImportStore) -> None:
    other = FakeImportStore()
    other.catalogs.seed(Catalog(code="late"))
    current = [store]
    lookups = Lookups.bind(lambda: current[0].repositories)

    assert lookups.catalogs.get("late") is None
    current[0] = other
    lookups.catalogs.discard("late")

    assert lookups.catalogs.get("late") is not None
