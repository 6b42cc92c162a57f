"""Ports for persisting domain aggregates."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from catimport.domain.model import Catalog, Product, Supplier

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable
    from uuid import UUID

    from catimport.domain.model import Attribute, TypeItem


@runtime_checkable
class TypeRepository(Protocol):
    """Persistence contract for classification codes."""

    def search(
        self,
        scope: str,
        *,
        domains: Collection[str],
        codes: Collection[str] | None = None,
    ) -> list[TypeItem]: ...

    def create(self, scope: str, domain: str, code: str) -> TypeItem: ...

    def save(self, items: Iterable[TypeItem]) -> None: ...


@runtime_checkable
class ParentRepository[TParent](Protocol):
    """Persistence contract for aggregates owning list items."""

    def find(self, code: str) -> TParent | None: ...

    def search(self, codes: Collection[str]) -> list[TParent]: ...

    def create(self) -> TParent: ...

    def save(self, items: Iterable[TParent]) -> None: ...

    def delete(self, ids: Iterable[UUID]) -> None: ...


@runtime_checkable
class ProductRepository(ParentRepository[Product], Protocol):
    """Repository contract for products."""


@runtime_checkable
class CatalogRepository(ParentRepository[Catalog], Protocol):
    """Repository contract for catalog tree nodes."""

    def children(self, parent_id: UUID) -> list[Catalog]: ...


@runtime_checkable
class SupplierRepository(ParentRepository[Supplier], Protocol):
    """Repository contract for suppliers."""


@runtime_checkable
class AttributeRepository(Protocol):
    """Persistence contract for shared attributes."""

    def find(self, code: str, type_: str) -> Attribute | None: ...

    def search(self, codes: Collection[str]) -> list[Attribute]: ...

    def create(self) -> Attribute: ...

    def save(self, items: Iterable[Attribute]) -> None: ...
