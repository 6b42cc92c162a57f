"""Processor chain applying one record to a parent, kind after kind.

Every link reconciles its own kind and hands the remaining record data to the
``next`` link; the terminal :class:`DoneProcessor` returns the data unchanged.
Chains are assembled outside-in from the static :data:`PROCESSORS` registry,
so a misconfigured kind or processor name fails before the first record.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Final, Protocol, cast

from catimport.domain.importing.errors import ChainConfigurationError, ImportJobError
from catimport.domain.importing.kinds import (
    DEFAULT_LIST_TYPE,
    AttributeKind,
    LinkKind,
    ListKind,
    MediaKind,
    PriceKind,
    TextKind,
)
from catimport.domain.importing.lookups import Lookups
from catimport.domain.importing.reconcile import ListReconciler, PropertyReconciler
from catimport.domain.model import ListDomain, Product

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from catimport.config import ImportSettings
    from catimport.domain.importing.chunking import Chunk
    from catimport.domain.importing.types import TypeRegistry
    from catimport.domain.model import ListsRefEntity, Resource
    from catimport.domain.ports import ImportRepositories

log = logging.getLogger(__name__)

type ChunkSource = Callable[[Any], list[Chunk]]
"""Extract the chunks of one kind from a record, consuming what it used."""

DEFAULT_PROCESSOR: Final[str] = "standard"


class Processor(Protocol):
    def process(self, parent: ListsRefEntity, data: Any) -> Any: ...

    def finish(self) -> None: ...


@dataclass(slots=True)
class ProcessorContext:
    """Everything the links of one run share."""

    settings: ImportSettings
    resource: Resource
    registry: TypeRegistry
    lookups: Lookups = field(init=False)
    _repositories: ImportRepositories | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        self.lookups = Lookups.bind(lambda: self.repositories)

    @property
    def repositories(self) -> ImportRepositories:
        if self._repositories is None:
            raise ImportJobError("No unit of work is active for this import run")
        return self._repositories

    def bind(self, repositories: ImportRepositories | None) -> None:
        """Route repository access through the currently open unit of work."""

        self._repositories = repositories

    def option(self, kind: str, name: str) -> Any:
        return self.settings.get(f"{self.resource}/{kind}/{name}")

    def known_types(self, scope: str, domain: str) -> set[str]:
        items = self.repositories.types.search(scope, domains=[domain])
        return {item.code for item in items}


class DoneProcessor:
    """Terminal link returning the remaining data."""

    def process(self, parent: ListsRefEntity, data: Any) -> Any:
        _ = parent
        return data

    def finish(self) -> None:
        return None


class ListProcessor:
    """Link reconciling the list items of one kind."""

    def __init__(self, reconciler: ListReconciler, chunks: ChunkSource, next_: Processor) -> None:
        self.reconciler = reconciler
        self.chunks = chunks
        self.next = next_

    @property
    def kind(self) -> str:
        return self.reconciler.kind.name

    def process(self, parent: ListsRefEntity, data: Any) -> Any:
        self.reconciler.reconcile(parent, self.chunks(data))
        return self.next.process(parent, data)

    def finish(self) -> None:
        return None


class PropertyProcessor:
    """Link reconciling product property items."""

    kind = "property"

    def __init__(
        self, reconciler: PropertyReconciler, chunks: ChunkSource, next_: Processor
    ) -> None:
        self.reconciler = reconciler
        self.chunks = chunks
        self.next = next_

    def process(self, parent: ListsRefEntity, data: Any) -> Any:
        if not isinstance(parent, Product):
            raise ImportJobError(f"Property items are not supported for {parent.resource}")
        self.reconciler.reconcile(parent, self.chunks(data))
        return self.next.process(parent, data)

    def finish(self) -> None:
        return None


class ProcessorChain:
    """Head of an assembled chain; owns the type registry of the run."""

    def __init__(self, head: Processor, links: Sequence[Processor], registry: TypeRegistry) -> None:
        self.head = head
        self.links = tuple(links)
        self.registry = registry
        self._finished = False

    @property
    def kinds(self) -> list[str]:
        return [cast(Any, link).kind for link in self.links]

    def process(self, parent: ListsRefEntity, data: Any) -> Any:
        return self.head.process(parent, data)

    def finish(self) -> int:
        """Finish every link, then create the types requested during the run."""

        if self._finished:
            return 0
        self._finished = True
        for link in self.links:
            link.finish()
        return self.registry.flush()


type ProcessorFactory = Callable[[ProcessorContext, ChunkSource, Processor], Processor]


def _list_reconciler(context: ProcessorContext, kind: ListKind) -> ListReconciler:
    resource = str(context.resource)
    list_types = context.option(kind.name, "listtypes")
    if list_types is None:
        list_types = context.known_types(f"{resource}/lists/type", kind.domain)
        list_types.add(DEFAULT_LIST_TYPE)

    ref_types = None
    if kind.type_scope is not None:
        ref_types = context.option(kind.name, "types")
        if ref_types is None:
            ref_types = context.known_types(kind.type_scope, resource)
            if kind.default_ref_type:
                ref_types.add(kind.default_ref_type)

    return ListReconciler(
        kind,
        context.registry,
        list_types=list_types,
        ref_types=ref_types,
        separator=context.settings.separator,
    )


def _text(context: ProcessorContext, chunks: ChunkSource, next_: Processor) -> Processor:
    return ListProcessor(_list_reconciler(context, TextKind()), chunks, next_)


def _media(context: ProcessorContext, chunks: ChunkSource, next_: Processor) -> Processor:
    kind = MediaKind(media_root=context.settings.media_root)
    return ListProcessor(_list_reconciler(context, kind), chunks, next_)


def _price(context: ProcessorContext, chunks: ChunkSource, next_: Processor) -> Processor:
    return ListProcessor(_list_reconciler(context, PriceKind()), chunks, next_)


def _attribute(context: ProcessorContext, chunks: ChunkSource, next_: Processor) -> Processor:
    kind = AttributeKind(context.lookups.attributes)
    return ListProcessor(_list_reconciler(context, kind), chunks, next_)


def _catalog(context: ProcessorContext, chunks: ChunkSource, next_: Processor) -> Processor:
    kind = LinkKind(ListDomain.CATALOG, cast(Any, context.lookups.catalogs))
    return ListProcessor(_list_reconciler(context, kind), chunks, next_)


def _product(context: ProcessorContext, chunks: ChunkSource, next_: Processor) -> Processor:
    kind = LinkKind(ListDomain.PRODUCT, cast(Any, context.lookups.products))
    return ListProcessor(_list_reconciler(context, kind), chunks, next_)


def _supplier(context: ProcessorContext, chunks: ChunkSource, next_: Processor) -> Processor:
    kind = LinkKind(ListDomain.SUPPLIER, cast(Any, context.lookups.suppliers))
    return ListProcessor(_list_reconciler(context, kind), chunks, next_)


def _property(context: ProcessorContext, chunks: ChunkSource, next_: Processor) -> Processor:
    reconciler = PropertyReconciler(context.registry, types=context.option("property", "types"))
    return PropertyProcessor(reconciler, chunks, next_)


PROCESSORS: Final[dict[str, dict[str, ProcessorFactory]]] = {
    "text": {DEFAULT_PROCESSOR: _text},
    "media": {DEFAULT_PROCESSOR: _media},
    "price": {DEFAULT_PROCESSOR: _price},
    "attribute": {DEFAULT_PROCESSOR: _attribute},
    "catalog": {DEFAULT_PROCESSOR: _catalog},
    "product": {DEFAULT_PROCESSOR: _product},
    "supplier": {DEFAULT_PROCESSOR: _supplier},
    "property": {DEFAULT_PROCESSOR: _property},
}


def resolve_factories(
    kinds: Iterable[str], context: ProcessorContext
) -> list[tuple[str, ProcessorFactory]]:
    """Validate ``kinds`` against the registry before anything is constructed."""

    factories: list[tuple[str, ProcessorFactory]] = []
    for kind in kinds:
        by_name = PROCESSORS.get(kind)
        if by_name is None:
            raise ChainConfigurationError(f'Unknown processor kind "{kind}"')
        name = context.option(kind, "processor") or DEFAULT_PROCESSOR
        factory = by_name.get(name)
        if factory is None:
            raise ChainConfigurationError(f'Unknown processor "{name}" for kind "{kind}"')
        factories.append((kind, factory))
    return factories


def build_processor_chain(
    kinds: Iterable[str],
    context: ProcessorContext,
    chunk_source: Callable[[str], ChunkSource],
) -> ProcessorChain:
    """Build a chain running ``kinds`` in the given order.

    ``chunk_source`` returns, per kind, the callable extracting that kind's
    chunks from a record (a column mapping for CSV rows, child nodes for XML).
    """

    factories = resolve_factories(kinds, context)

    link: Processor = DoneProcessor()
    links: list[Processor] = []
    for kind, factory in reversed(factories):
        link = factory(context, chunk_source(kind), link)
        links.append(link)
    links.reverse()

    log.debug("Built processor chain: %s", ", ".join(kind for kind, _ in factories))
    return ProcessorChain(link, links, context.registry)
