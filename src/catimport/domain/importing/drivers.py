"""Import runs: the record loop around a processor chain.

A record is applied to its parent by the whole chain before the parent is
saved. When any link rejects the record with a :class:`ValidationError`, the
parent is not saved, the in-memory copy is dropped so later records reload it,
and the run continues with the next record. Types requested by the chain are
created once, after the last record.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from itertools import batched
from typing import TYPE_CHECKING, ClassVar, Final

from catimport.domain.importing.chunking import map_chunks, mapping_pairs, row_data
from catimport.domain.importing.errors import (
    ChainConfigurationError,
    InvalidValueError,
    ValidationError,
)
from catimport.domain.importing.processors import ProcessorContext, build_processor_chain
from catimport.domain.importing.types import TypeRegistry
from catimport.domain.importing.xml import (
    XmlChunks,
    child_catalog_nodes,
    collect_codes,
    item_values,
    top_catalog_nodes,
)
from catimport.domain.model import (
    Catalog,
    InvalidFieldValue,
    ListsRefEntity,
    Product,
    Resource,
    Supplier,
    assign,
    convert_fields,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Collection, Iterable, Mapping, Sequence
    from uuid import UUID
    from xml.etree.ElementTree import Element

    from catimport.config import ImportSettings
    from catimport.domain.importing.chunking import Chunk, FieldMapping
    from catimport.domain.importing.lookups import CodeLookup, Lookups
    from catimport.domain.importing.processors import ChunkSource, ProcessorChain
    from catimport.domain.ports import ImportRepositories, ImportUnitOfWorkFactory
    from catimport.domain.ports.persistence import ParentRepository

log = logging.getLogger(__name__)

PRODUCT_XML_KINDS: Final[tuple[str, ...]] = (
    "text",
    "media",
    "price",
    "attribute",
    "catalog",
    "product",
    "supplier",
    "property",
)
CATALOG_XML_KINDS: Final[tuple[str, ...]] = ("text", "media", "product")
SUPPLIER_XML_KINDS: Final[tuple[str, ...]] = ("text", "media", "product")


@dataclass(slots=True)
class ImportResult:
    """Outcome of an import run."""

    total: int = 0
    imported: int = 0
    errors: int = 0
    types_created: int = 0


class MappedChunks:
    """Chunk source cutting one kind's columns out of a CSV row."""

    def __init__(self, mapping: FieldMapping) -> None:
        self.mapping = mapping_pairs(mapping)

    def __call__(self, data: dict[int, str]) -> list[Chunk]:
        return map_chunks(data, self.mapping)


class _ParentCache[TParent: ListsRefEntity]:
    """Parents of one batch, loaded with a single read."""

    def __init__(self, repository: ParentRepository[TParent], codes: Collection[str]) -> None:
        self.repository = repository
        self.loaded = {parent.code: parent for parent in repository.search(codes)}
        self.absent = set(codes) - set(self.loaded)

    def load(self, code: str) -> TParent:
        parent = self.loaded.get(code)
        if parent is None and code not in self.absent:
            parent = self.repository.find(code)
        if parent is None:
            parent = self.repository.create()
            parent.code = code
        return parent

    def keep(self, parent: TParent) -> None:
        self.loaded[parent.code] = parent
        self.absent.discard(parent.code)

    def discard(self, code: str) -> None:
        self.loaded.pop(code, None)


def _start(
    resource: Resource,
    kinds: Iterable[str],
    settings: ImportSettings,
    unit_of_work_factory: ImportUnitOfWorkFactory,
    chunk_source: Callable[[str], ChunkSource],
) -> tuple[ProcessorContext, ProcessorChain]:
    registry = TypeRegistry(unit_of_work_factory)
    context = ProcessorContext(settings=settings, resource=resource, registry=registry)
    with unit_of_work_factory() as uow:
        context.bind(uow.repositories)
        try:
            chain = build_processor_chain(kinds, context, chunk_source)
        finally:
            context.bind(None)
    return context, chain


def _apply_fields(parent: ListsRefEntity, values: Mapping[str, str]) -> None:
    try:
        converted = convert_fields(values, parent.resource, type(parent).FIELDS)
    except InvalidFieldValue as exc:
        raise InvalidValueError(str(exc)) from exc
    converted.pop("code", None)
    assign(parent, converted)


def code_position(item_mapping: FieldMapping | None, key: str = "product.code") -> int:
    """Return the column of ``key`` (the parent code by default) in the item mapping."""

    for position, mapped in mapping_pairs(item_mapping or {}):
        if mapped == key:
            return position
    raise ChainConfigurationError(f'No "{key}" column in the item mapping')


class _Parents[TParent: ListsRefEntity]:
    """Resource specific steps of the record loop."""

    resource: ClassVar[Resource]

    def repository(self, repositories: ImportRepositories) -> ParentRepository[TParent]:
        raise NotImplementedError

    def lookup(self, lookups: Lookups) -> CodeLookup[TParent]:
        raise NotImplementedError

    def check_mapping(self, item_mapping: FieldMapping) -> int:
        """Validate the item mapping and return the column of the parent code."""

        return code_position(item_mapping, f"{self.resource}.code")

    def begin_batch(self, context: ProcessorContext) -> None:
        _ = context

    def prepare(self, parent: TParent, fields: Chunk, context: ProcessorContext) -> None:
        """Apply what the chain does not handle; may raise :class:`ValidationError`."""

        _ = (parent, fields, context)


class _Products(_Parents[Product]):
    resource = Resource.PRODUCT

    def __init__(self) -> None:
        self.known_types: set[str] = set()

    def repository(self, repositories: ImportRepositories) -> ParentRepository[Product]:
        return repositories.products

    def lookup(self, lookups: Lookups) -> CodeLookup[Product]:
        return lookups.products

    def begin_batch(self, context: ProcessorContext) -> None:
        self.known_types = context.known_types("product/type", "product")

    def prepare(self, parent: Product, fields: Chunk, context: ProcessorContext) -> None:
        if parent.type not in self.known_types:
            log.debug("Unknown product type %r for %s, using default", parent.type, parent.code)
            parent.type = "default"
        context.registry.request("product/type", "product", parent.type)


class _Catalogs(_Parents[Catalog]):
    """Catalog rows name their parent node by code in ``catalog.parent``."""

    resource = Resource.CATALOG

    def repository(self, repositories: ImportRepositories) -> ParentRepository[Catalog]:
        return repositories.catalogs

    def lookup(self, lookups: Lookups) -> CodeLookup[Catalog]:
        return lookups.catalogs

    def check_mapping(self, item_mapping: FieldMapping) -> int:
        code_position(item_mapping, "catalog.parent")
        return super().check_mapping(item_mapping)

    def prepare(self, parent: Catalog, fields: Chunk, context: ProcessorContext) -> None:
        if "catalog.parent" not in fields:
            return
        parent_code = fields["catalog.parent"].strip()
        if not parent_code:
            parent.parent_id = None
            return
        if parent_code == parent.code:
            raise InvalidValueError(f'Catalog "{parent.code}" can not be its own parent')
        node = context.lookups.catalogs.get(parent_code)
        if node is None:
            raise InvalidValueError(f'Parent catalog "{parent_code}" not found')
        parent.parent_id = node.id


class _Suppliers(_Parents[Supplier]):
    resource = Resource.SUPPLIER

    def repository(self, repositories: ImportRepositories) -> ParentRepository[Supplier]:
        return repositories.suppliers

    def lookup(self, lookups: Lookups) -> CodeLookup[Supplier]:
        return lookups.suppliers


def import_product_rows(
    rows: Iterable[Sequence[str]],
    *,
    settings: ImportSettings,
    unit_of_work_factory: ImportUnitOfWorkFactory,
    mapping: Mapping[str, FieldMapping] | None = None,
) -> ImportResult:
    """Import product CSV rows, ``max_size`` rows per unit of work."""

    return _import_rows(
        _Products(),
        rows,
        settings=settings,
        unit_of_work_factory=unit_of_work_factory,
        mapping=mapping,
    )


def import_catalog_rows(
    rows: Iterable[Sequence[str]],
    *,
    settings: ImportSettings,
    unit_of_work_factory: ImportUnitOfWorkFactory,
    mapping: Mapping[str, FieldMapping] | None = None,
) -> ImportResult:
    """Import catalog CSV rows.

    A parent node has to be imported before its children, either by an earlier
    run or by an earlier row of the same file.
    """

    return _import_rows(
        _Catalogs(),
        rows,
        settings=settings,
        unit_of_work_factory=unit_of_work_factory,
        mapping=mapping,
    )


def import_supplier_rows(
    rows: Iterable[Sequence[str]],
    *,
    settings: ImportSettings,
    unit_of_work_factory: ImportUnitOfWorkFactory,
    mapping: Mapping[str, FieldMapping] | None = None,
) -> ImportResult:
    return _import_rows(
        _Suppliers(),
        rows,
        settings=settings,
        unit_of_work_factory=unit_of_work_factory,
        mapping=mapping,
    )


def _import_rows[TParent: ListsRefEntity](
    parents: _Parents[TParent],
    rows: Iterable[Sequence[str]],
    *,
    settings: ImportSettings,
    unit_of_work_factory: ImportUnitOfWorkFactory,
    mapping: Mapping[str, FieldMapping] | None,
) -> ImportResult:
    resource = parents.resource
    kind_mappings = dict(mapping if mapping is not None else settings.mapping_for(resource))
    item_mapping = kind_mappings.pop("item", None) or {}
    position = parents.check_mapping(item_mapping)

    context, chain = _start(
        resource,
        list(kind_mappings),
        settings,
        unit_of_work_factory,
        lambda kind: MappedChunks(kind_mappings[kind]),
    )
    result = ImportResult()
    log.info("Starting %s import: kinds=%s", resource, ", ".join(chain.kinds))

    for batch in batched(rows, settings.max_size):
        with unit_of_work_factory() as uow:
            context.bind(uow.repositories)
            try:
                _import_row_batch(
                    parents,
                    [row_data(values) for values in batch],
                    position,
                    item_mapping,
                    uow.repositories,
                    context,
                    chain,
                    result,
                )
                uow.commit()
            finally:
                context.bind(None)

    result.types_created = chain.finish()
    log.info(
        "Finished %s import: total=%s, imported=%s, errors=%s",
        resource,
        result.total,
        result.imported,
        result.errors,
    )
    return result


def _import_row_batch[TParent: ListsRefEntity](
    parents: _Parents[TParent],
    rows: list[dict[int, str]],
    position: int,
    item_mapping: FieldMapping,
    repositories: ImportRepositories,
    context: ProcessorContext,
    chain: ProcessorChain,
    result: ImportResult,
) -> None:
    resource = parents.resource
    repository = parents.repository(repositories)
    lookup = parents.lookup(context.lookups)
    codes = {row[position].strip() for row in rows if row.get(position, "").strip()}
    cache = _ParentCache(repository, codes)
    parents.begin_batch(context)

    for data in rows:
        result.total += 1
        code = data.get(position, "").strip()
        if not code:
            log.error("Skipping row without %s code: %s", resource, data)
            result.errors += 1
            continue

        parent = cache.load(code)
        try:
            items = map_chunks(data, item_mapping)
            fields = items[0] if items else {}
            _apply_fields(parent, fields)
            parents.prepare(parent, fields, context)
            remaining = chain.process(parent, data)
        except ValidationError as exc:
            log.error('Unable to import %s with code "%s": %s', resource, code, exc)  # noqa: TRY400
            result.errors += 1
            cache.discard(code)
            lookup.discard(code)
            continue

        repository.save([parent])
        cache.keep(parent)
        lookup.add(parent)
        result.imported += 1
        if remaining:
            log.debug("Not imported for %s: %s", code, remaining)


def import_product_nodes(
    nodes: Iterable[Element],
    *,
    settings: ImportSettings,
    unit_of_work_factory: ImportUnitOfWorkFactory,
    kinds: Sequence[str] = PRODUCT_XML_KINDS,
) -> ImportResult:
    """Import ``<productitem>`` nodes, ``max_size`` nodes per unit of work.

    Each node is cleared once its batch has been committed.
    """

    return _import_nodes(
        _Products(),
        nodes,
        settings=settings,
        unit_of_work_factory=unit_of_work_factory,
        kinds=kinds,
    )


def import_supplier_nodes(
    nodes: Iterable[Element],
    *,
    settings: ImportSettings,
    unit_of_work_factory: ImportUnitOfWorkFactory,
    kinds: Sequence[str] = SUPPLIER_XML_KINDS,
) -> ImportResult:
    """Import ``<supplieritem>`` nodes the same way as product nodes."""

    return _import_nodes(
        _Suppliers(),
        nodes,
        settings=settings,
        unit_of_work_factory=unit_of_work_factory,
        kinds=kinds,
    )


def _import_nodes[TParent: ListsRefEntity](
    parents: _Parents[TParent],
    nodes: Iterable[Element],
    *,
    settings: ImportSettings,
    unit_of_work_factory: ImportUnitOfWorkFactory,
    kinds: Sequence[str],
) -> ImportResult:
    resource = parents.resource
    context, chain = _start(
        resource,
        kinds,
        settings,
        unit_of_work_factory,
        lambda kind: XmlChunks(kind, resource),
    )
    result = ImportResult()
    log.info("Starting %s XML import: kinds=%s", resource, ", ".join(chain.kinds))

    for batch in batched(nodes, settings.max_size):
        with unit_of_work_factory() as uow:
            context.bind(uow.repositories)
            try:
                _import_node_batch(parents, batch, uow.repositories, context, chain, result)
                uow.commit()
            finally:
                context.bind(None)
        for node in batch:
            node.clear()

    result.types_created = chain.finish()
    log.info(
        "Finished %s XML import: total=%s, imported=%s, errors=%s",
        resource,
        result.total,
        result.imported,
        result.errors,
    )
    return result


def _import_node_batch[TParent: ListsRefEntity](
    parents: _Parents[TParent],
    nodes: Sequence[Element],
    repositories: ImportRepositories,
    context: ProcessorContext,
    chain: ProcessorChain,
    result: ImportResult,
) -> None:
    resource = parents.resource
    code_key = f"{resource}.code"
    repository = parents.repository(repositories)
    lookup = parents.lookup(context.lookups)
    values = [item_values(node, resource) for node in nodes]
    codes = {entry[code_key] for entry in values if entry.get(code_key)}
    cache = _ParentCache(repository, codes)
    parents.begin_batch(context)

    for node, fields in zip(nodes, values, strict=True):
        result.total += 1
        code = fields.get(code_key, "")
        if not code:
            log.error("Skipping <%s> without ref attribute", node.tag)
            result.errors += 1
            continue

        parent = cache.load(code)
        try:
            _apply_fields(parent, fields)
            parents.prepare(parent, fields, context)
            chain.process(parent, node)
        except ValidationError as exc:
            log.error('Unable to import %s with code "%s": %s', resource, code, exc)  # noqa: TRY400
            result.errors += 1
            cache.discard(code)
            lookup.discard(code)
            continue

        repository.save([parent])
        cache.keep(parent)
        lookup.add(parent)
        result.imported += 1


def import_catalog_tree(
    root: Element,
    *,
    settings: ImportSettings,
    unit_of_work_factory: ImportUnitOfWorkFactory,
    kinds: Sequence[str] = CATALOG_XML_KINDS,
) -> ImportResult:
    """Import a ``<catalogitem>`` tree in one unit of work.

    Every code the document references is resolved up front with one read per
    repository. Children of imported catalogs that the document no longer
    lists are deleted together with their subtrees.
    """

    resource = Resource.CATALOG
    context, chain = _start(
        resource,
        kinds,
        settings,
        unit_of_work_factory,
        lambda kind: XmlChunks(kind, resource),
    )
    importer = _CatalogTreeImport(context, chain)
    log.info("Starting catalog import: kinds=%s", ", ".join(chain.kinds))

    with unit_of_work_factory() as uow:
        context.bind(uow.repositories)
        try:
            importer.run(root, uow.repositories)
            uow.commit()
        finally:
            context.bind(None)

    importer.result.types_created = chain.finish()
    result = importer.result
    log.info(
        "Finished catalog import: total=%s, imported=%s, errors=%s",
        result.total,
        result.imported,
        result.errors,
    )
    return result


class _CatalogTreeImport:
    def __init__(self, context: ProcessorContext, chain: ProcessorChain) -> None:
        self.context = context
        self.chain = chain
        self.result = ImportResult()
        self._imported: list[Catalog] = []

    def run(self, root: Element, repositories: ImportRepositories) -> None:
        codes = collect_codes(root)
        lookups = self.context.lookups
        lookups.catalogs.prime(codes.get("catalog", ()))
        lookups.products.prime(codes.get("product", ()))
        lookups.suppliers.prime(codes.get("supplier", ()))
        lookups.attributes.prime(codes.get("attribute", ()))

        for node in top_catalog_nodes(root):
            self._import_node(node, None, repositories)

        document_codes = codes.get("catalog", set())
        for catalog in self._imported:
            stale = [
                child
                for child in repositories.catalogs.children(catalog.id)
                if child.code not in document_codes
            ]
            if stale:
                self._delete_subtrees(stale, document_codes, repositories)

    def _import_node(
        self, node: Element, parent_id: UUID | None, repositories: ImportRepositories
    ) -> None:
        self.result.total += 1
        fields = item_values(node, "catalog")
        code = fields.get("catalog.code", "")
        if not code:
            log.error("Skipping <catalogitem> without ref attribute")
            self.result.errors += 1
            return

        lookups = self.context.lookups
        catalog = lookups.catalogs.get(code)
        if catalog is None:
            catalog = repositories.catalogs.create()
            catalog.code = code

        try:
            _apply_fields(catalog, fields)
            catalog.parent_id = parent_id
            self.chain.process(catalog, node)
        except ValidationError as exc:
            log.error('Unable to import catalog with code "%s": %s', code, exc)  # noqa: TRY400
            self.result.errors += 1
            lookups.catalogs.discard(code)
            return

        repositories.catalogs.save([catalog])
        lookups.catalogs.add(catalog)
        self._imported.append(catalog)
        self.result.imported += 1

        for child in child_catalog_nodes(node):
            self._import_node(child, catalog.id, repositories)

    def _delete_subtrees(
        self,
        catalogs: list[Catalog],
        keep_codes: Collection[str],
        repositories: ImportRepositories,
    ) -> None:
        doomed: list[UUID] = []
        pending = list(catalogs)
        while pending:
            catalog = pending.pop()
            doomed.append(catalog.id)
            pending.extend(
                child
                for child in repositories.catalogs.children(catalog.id)
                if child.code not in keep_codes
            )
            self.context.lookups.catalogs.discard(catalog.code)
        log.info("Deleting %d catalogs missing from the document", len(doomed))
        repositories.catalogs.delete(doomed)

