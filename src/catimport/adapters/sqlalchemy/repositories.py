"""Repository implementations backed by SQLAlchemy sessions.

Parents are loaded as aggregates: their list items come with the referenced
items attached, read with one query per referenced domain. Saving a parent
writes its row, its list items and the items those list items own, and removes
list items that are no longer part of the aggregate.
"""

from __future__ import annotations

import dataclasses
import logging
from collections import defaultdict
from functools import cache
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError

from catimport.adapters.sqlalchemy.mappings import (
    attribute_table,
    catalog_table,
    list_item_table,
    media_table,
    price_table,
    product_table,
    property_item_table,
    supplier_table,
    text_table,
    type_item_table,
)
from catimport.domain.importing.errors import TypeCreationFailure
from catimport.domain.model import (
    Attribute,
    Catalog,
    ListDomain,
    ListItem,
    ListsRefEntity,
    Media,
    Price,
    Product,
    PropertyItem,
    Supplier,
    Text,
    TypeItem,
)

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable, Sequence
    from uuid import UUID

    from sqlalchemy import Row, Table
    from sqlalchemy.orm import Session

    from catimport.domain.model import RefItem

log = logging.getLogger(__name__)

OWNED_TABLES: dict[type[Any], Table] = {
    Text: text_table,
    Media: media_table,
    Price: price_table,
}
REF_TABLES: dict[str, tuple[Table, type[Any]]] = {
    ListDomain.TEXT: (text_table, Text),
    ListDomain.MEDIA: (media_table, Media),
    ListDomain.PRICE: (price_table, Price),
    ListDomain.ATTRIBUTE: (attribute_table, Attribute),
    ListDomain.CATALOG: (catalog_table, Catalog),
    ListDomain.PRODUCT: (product_table, Product),
    ListDomain.SUPPLIER: (supplier_table, Supplier),
}


@cache
def _init_fields(cls: type[Any]) -> frozenset[str]:
    return frozenset(field.name for field in dataclasses.fields(cls) if field.init)


def _entity[T](cls: type[T], row: Row[Any]) -> T:
    names = _init_fields(cls)
    return cls(**{key: value for key, value in row._mapping.items() if key in names})  # noqa: SLF001


def _values(entity: object, table: Table, **extra: object) -> dict[str, object]:
    values = {
        column.key: getattr(entity, column.key)
        for column in table.columns
        if hasattr(entity, column.key)
    }
    values.update(extra)
    return values


def _upsert(session: Session, table: Table, values: dict[str, object]) -> None:
    result = session.execute(update(table).where(table.c.id == values["id"]).values(values))
    if result.rowcount == 0:
        session.execute(insert(table).values(values))


class SqlAlchemyTypeRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def search(
        self,
        scope: str,
        *,
        domains: Collection[str],
        codes: Collection[str] | None = None,
    ) -> list[TypeItem]:
        stmt = (
            select(type_item_table)
            .where(type_item_table.c.scope == scope)
            .where(type_item_table.c.domain.in_(list(domains)))
        )
        if codes is not None:
            stmt = stmt.where(type_item_table.c.code.in_(list(codes)))
        return [_entity(TypeItem, row) for row in self.session.execute(stmt)]

    def create(self, scope: str, domain: str, code: str) -> TypeItem:
        return TypeItem(scope=scope, domain=str(domain), code=code, label=code)

    def save(self, items: Iterable[TypeItem]) -> None:
        pending = list(items)
        if not pending:
            return
        try:
            for item in pending:
                _upsert(self.session, type_item_table, _values(item, type_item_table))
            self.session.flush()
        except SQLAlchemyError as exc:
            scope = pending[0].scope
            raise TypeCreationFailure(scope=scope, codes=[item.code for item in pending]) from exc


class SqlAlchemyAttributeRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def find(self, code: str, type_: str) -> Attribute | None:
        stmt = (
            select(attribute_table)
            .where(attribute_table.c.code == code)
            .where(attribute_table.c.type == type_)
        )
        row = self.session.execute(stmt).first()
        return _entity(Attribute, row) if row is not None else None

    def search(self, codes: Collection[str]) -> list[Attribute]:
        stmt = select(attribute_table).where(attribute_table.c.code.in_(list(codes)))
        return [_entity(Attribute, row) for row in self.session.execute(stmt)]

    def create(self) -> Attribute:
        return Attribute()

    def save(self, items: Iterable[Attribute]) -> None:
        for item in items:
            _upsert(self.session, attribute_table, _values(item, attribute_table))


class SqlAlchemyParentRepository[TParent: ListsRefEntity]:
    """Shared aggregate loading and saving for products, catalogs and suppliers."""

    def __init__(self, session: Session, table: Table, entity_cls: type[TParent]) -> None:
        self.session = session
        self.table = table
        self.entity_cls = entity_cls
        self.resource = entity_cls.RESOURCE.value

    def find(self, code: str) -> TParent | None:
        found = self.search([code])
        return found[0] if found else None

    def search(self, codes: Collection[str]) -> list[TParent]:
        if not codes:
            return []
        stmt = select(self.table).where(self.table.c.code.in_(list(codes)))
        return self._load(self.session.execute(stmt).all())

    def create(self) -> TParent:
        return self.entity_cls()

    def save(self, items: Iterable[TParent]) -> None:
        for parent in items:
            _upsert(self.session, self.table, _values(parent, self.table))
            self._save_list_items(parent)
            self._save_extra(parent)

    def delete(self, ids: Iterable[UUID]) -> None:
        doomed = list(ids)
        if not doomed:
            return
        list_items = list_item_table.c
        owned_rows = self.session.execute(
            select(list_items.domain, list_items.ref_id)
            .where(list_items.parent_resource == self.resource)
            .where(list_items.parent_id.in_(doomed))
        ).all()
        self._delete_extra(doomed)
        self.session.execute(
            delete(list_item_table)
            .where(list_items.parent_resource == self.resource)
            .where(list_items.parent_id.in_(doomed))
        )
        self.session.execute(
            delete(list_item_table)
            .where(list_items.domain == self.resource)
            .where(list_items.ref_id.in_(doomed))
        )
        owned_by_domain: dict[str, list[UUID]] = defaultdict(list)
        for domain, ref_id in owned_rows:
            owned_by_domain[domain].append(ref_id)
        for domain, ref_ids in owned_by_domain.items():
            table, entity_cls = REF_TABLES[domain]
            if entity_cls in OWNED_TABLES:
                self.session.execute(delete(table).where(table.c.id.in_(ref_ids)))
        self.session.execute(delete(self.table).where(self.table.c.id.in_(doomed)))
        log.debug("Deleted %d %s items", len(doomed), self.resource)

    # Loading -------------------------------------------------------------

    def _load(self, rows: Sequence[Row[Any]]) -> list[TParent]:
        parents = [_entity(self.entity_cls, row) for row in rows]
        if parents:
            self._load_list_items(parents)
            self._load_extra(parents)
        return parents

    def _load_list_items(self, parents: list[TParent]) -> None:
        by_id = {parent.id: parent for parent in parents}
        stmt = (
            select(list_item_table)
            .where(list_item_table.c.parent_resource == self.resource)
            .where(list_item_table.c.parent_id.in_(list(by_id)))
            .order_by(list_item_table.c.position)
        )
        rows = self.session.execute(stmt).all()

        ref_ids: dict[str, set[UUID]] = defaultdict(set)
        for row in rows:
            ref_ids[row.domain].add(row.ref_id)
        refs: dict[UUID, RefItem] = {}
        for domain, ids in ref_ids.items():
            table, entity_cls = REF_TABLES[domain]
            ref_stmt = select(table).where(table.c.id.in_(list(ids)))
            for ref_row in self.session.execute(ref_stmt):
                refs[ref_row.id] = _entity(entity_cls, ref_row)

        for row in rows:
            list_item = _entity(ListItem, row)
            list_item.domain = ListDomain(row.domain)
            list_item.ref_item = refs.get(row.ref_id)
            by_id[row.parent_id].list_items.append(list_item)

    def _load_extra(self, parents: list[TParent]) -> None:
        _ = parents

    # Saving --------------------------------------------------------------

    def _save_list_items(self, parent: TParent) -> None:
        _deleted_items, deleted_refs = parent.take_deletions()
        current_ids = [item.id for item in parent.list_items]
        self.session.execute(
            delete(list_item_table)
            .where(list_item_table.c.parent_resource == self.resource)
            .where(list_item_table.c.parent_id == parent.id)
            .where(list_item_table.c.id.not_in(current_ids))
        )
        for ref in deleted_refs:
            table = OWNED_TABLES.get(type(ref))
            if table is not None:
                self.session.execute(delete(table).where(table.c.id == ref.id))

        for item in parent.list_items:
            ref = item.ref_item
            table = OWNED_TABLES.get(type(ref)) if ref is not None else None
            if isinstance(ref, Attribute):
                table = attribute_table
            if table is not None:
                _upsert(self.session, table, _values(ref, table))
            values = _values(
                item,
                list_item_table,
                parent_resource=self.resource,
                parent_id=parent.id,
                domain=str(item.domain),
            )
            _upsert(self.session, list_item_table, values)

    def _save_extra(self, parent: TParent) -> None:
        _ = parent

    def _delete_extra(self, ids: list[UUID]) -> None:
        _ = ids


class SqlAlchemyProductRepository(SqlAlchemyParentRepository[Product]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, product_table, Product)

    def _load_extra(self, parents: list[Product]) -> None:
        by_id = {parent.id: parent for parent in parents}
        stmt = select(property_item_table).where(
            property_item_table.c.parent_id.in_(list(by_id))
        )
        for row in self.session.execute(stmt):
            by_id[row.parent_id].property_items.append(_entity(PropertyItem, row))

    def _save_extra(self, parent: Product) -> None:
        parent.take_deleted_property_items()
        current_ids = [item.id for item in parent.property_items]
        self.session.execute(
            delete(property_item_table)
            .where(property_item_table.c.parent_id == parent.id)
            .where(property_item_table.c.id.not_in(current_ids))
        )
        for item in parent.property_items:
            values = _values(item, property_item_table, parent_id=parent.id)
            _upsert(self.session, property_item_table, values)

    def _delete_extra(self, ids: list[UUID]) -> None:
        self.session.execute(
            delete(property_item_table).where(property_item_table.c.parent_id.in_(ids))
        )


class SqlAlchemyCatalogRepository(SqlAlchemyParentRepository[Catalog]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, catalog_table, Catalog)

    def children(self, parent_id: UUID) -> list[Catalog]:
        stmt = (
            select(catalog_table)
            .where(catalog_table.c.parent_id == parent_id)
            .order_by(catalog_table.c.code)
        )
        return self._load(self.session.execute(stmt).all())


class SqlAlchemySupplierRepository(SqlAlchemyParentRepository[Supplier]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, supplier_table, Supplier)


if TYPE_CHECKING:
    from catimport.domain.ports.persistence import (
        AttributeRepository,
        CatalogRepository,
        ProductRepository,
        SupplierRepository,
        TypeRepository,
    )

    _session_stub = cast("Session", object())
    _type_repo: TypeRepository = SqlAlchemyTypeRepository(_session_stub)
    _attribute_repo: AttributeRepository = SqlAlchemyAttributeRepository(_session_stub)
    _product_repo: ProductRepository = SqlAlchemyProductRepository(_session_stub)
    _catalog_repo: CatalogRepository = SqlAlchemyCatalogRepository(_session_stub)
    _supplier_repo: SupplierRepository = SqlAlchemySupplierRepository(_session_stub)
