"""Synchronise a parent's associations of one kind with incoming chunks.

Reconciling works in two passes. The validation pass converts every chunk and
checks its type codes without touching the parent, so an invalid chunk leaves
the parent exactly as it was. The apply pass then matches each incoming value
to an existing association by natural key, updates or creates associations
and finally deletes the existing associations nothing matched.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from catimport.domain.importing.errors import (
    InvalidTypeError,
    InvalidValueError,
    MissingReferenceWarning,
)
from catimport.domain.importing.kinds import DEFAULT_LIST_TYPE, Entry, parse_list_config
from catimport.domain.model import (
    InvalidFieldValue,
    ListItem,
    PropertyItem,
    assign,
    convert_fields,
)

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence

    from catimport.domain.importing.chunking import Chunk
    from catimport.domain.importing.kinds import ListKind, NaturalKey
    from catimport.domain.importing.types import TypeRegistry
    from catimport.domain.model import ListsRefEntity, Product

log = logging.getLogger(__name__)


class ListReconciler:
    """Reconcile the list items of one kind.

    ``list_types`` is both the allow-list for incoming list types and the scope
    filter for existing list items; ``None`` disables both. ``ref_types``
    restricts the types of referenced items in the same way.
    """

    def __init__(
        self,
        kind: ListKind,
        registry: TypeRegistry,
        *,
        list_types: Collection[str] | None = None,
        ref_types: Collection[str] | None = None,
        separator: str = "\n",
    ) -> None:
        self.kind = kind
        self.registry = registry
        self.list_types = frozenset(list_types) if list_types is not None else None
        self.ref_types = frozenset(ref_types) if ref_types is not None else None
        self.separator = separator

    def reconcile[TParent: ListsRefEntity](
        self, parent: TParent, chunks: Sequence[Chunk]
    ) -> TParent:
        resource = parent.resource
        entries = [
            entry for chunk in chunks if (entry := self.prepare(resource, chunk)) is not None
        ]

        kind = self.kind
        current = parent.get_list_items(kind.domain, self.list_types)
        remaining: dict[NaturalKey, ListItem] = {}
        for list_item in current:
            key = kind.existing_key(list_item)
            if key is not None:
                remaining[key] = list_item

        applied: dict[NaturalKey, ListItem] = {}
        next_position = max((item.position for item in current), default=-1) + 1
        position = 0

        for entry in entries:
            self._request_types(resource, entry)
            for value in entry.values:
                try:
                    shared = kind.resolve(entry, value, resource)
                except MissingReferenceWarning as warning:
                    log.warning("Skipping value for %s %s: %s", resource, parent.code, warning)
                    continue

                key = kind.incoming_key(entry, value, shared)
                repeated = key in applied
                list_item = applied.get(key) or remaining.pop(key, None)
                created = list_item is None or list_item.ref_item is None
                if list_item is None:
                    list_item = ListItem(domain=kind.domain, position=next_position)
                    next_position += 1

                ref = shared if shared is not None else list_item.ref_item
                if ref is None:
                    ref = kind.create_ref()

                kind.populate(ref, entry, value, resource=resource, created=created)
                list_item.type = entry.list_type
                # a repeated key overwrites the values but keeps its first position
                if kind.ordered and not repeated:
                    list_item.position = position
                    position += 1
                assign(list_item, entry.list_fields)
                if entry.config is not None:
                    list_item.config = entry.config

                parent.add_list_item(list_item, ref)
                applied[key] = list_item

        kept = {id(item) for item in applied.values()}
        orphans = [item for item in current if id(item) not in kept]
        if orphans:
            parent.delete_list_items(orphans, with_ref_items=kind.owned)
        return parent

    def prepare(self, resource: str, chunk: Chunk) -> Entry | None:
        """Validate ``chunk``; ``None`` if it lacks the kind's required value."""

        kind = self.kind
        if not kind.has_required(chunk):
            return None

        list_prefix = f"{resource}.lists"
        # only codes named by the chunk are checked, the fallbacks are always accepted
        named_type = chunk.get(f"{list_prefix}.type", "").strip()
        if named_type and self.list_types is not None and named_type not in self.list_types:
            raise InvalidTypeError(
                code=named_type, scope=f"{resource}/lists/type", kind=kind.name
            )
        list_type = named_type or DEFAULT_LIST_TYPE

        named_ref_type = kind.named_ref_type(chunk)
        type_scope = kind.type_scope
        if (
            type_scope is not None
            and named_ref_type
            and self.ref_types is not None
            and named_ref_type not in self.ref_types
        ):
            raise InvalidTypeError(code=named_ref_type, scope=type_scope, kind=kind.name)
        ref_type = kind.ref_type(chunk)

        try:
            list_fields = convert_fields(chunk, list_prefix, ListItem.FIELDS)
            ref_fields = kind.ref_fields(chunk)
        except InvalidFieldValue as exc:
            raise InvalidValueError(str(exc)) from exc
        list_fields.pop("type", None)

        config_key = f"{list_prefix}.config"
        config = parse_list_config(config_key, chunk[config_key]) if config_key in chunk else None

        return Entry(
            chunk=chunk,
            list_type=list_type,
            ref_type=ref_type,
            list_fields=list_fields,
            ref_fields=ref_fields,
            config=config,
            values=kind.values(chunk, self.separator),
        )

    def _request_types(self, resource: str, entry: Entry) -> None:
        self.registry.request(f"{resource}/lists/type", self.kind.domain, entry.list_type)
        type_scope = self.kind.type_scope
        if type_scope is not None and entry.ref_type:
            self.registry.request(type_scope, resource, entry.ref_type)


class PropertyReconciler:
    """Reconcile a product's property items keyed by value, type and language."""

    def __init__(self, registry: TypeRegistry, *, types: Collection[str] | None = None) -> None:
        self.registry = registry
        self.types = frozenset(types) if types is not None else None

    def reconcile(self, product: Product, chunks: Sequence[Chunk]) -> Product:
        resource = product.resource
        prefix = f"{resource}.property"
        scope = f"{resource}/property/type"

        incoming: list[dict[str, object]] = []
        for chunk in chunks:
            if not (chunk.get(f"{prefix}.value") or "").strip():
                continue
            if not (chunk.get(f"{prefix}.type") or "").strip():
                continue
            try:
                incoming.append(convert_fields(chunk, prefix, PropertyItem.FIELDS))
            except InvalidFieldValue as exc:
                raise InvalidValueError(str(exc)) from exc

        current = product.get_property_items(self.types)
        remaining = {(item.value, item.type, item.language_id): item for item in current}
        applied: dict[tuple[object, ...], PropertyItem] = {}

        for fields in incoming:
            key = (fields["value"], fields.get("type", ""), fields.get("language_id"))
            item = applied.get(key) or remaining.pop(key, None) or PropertyItem()
            assign(item, fields)
            self.registry.request(scope, resource, item.type)
            product.add_property_item(item)
            applied[key] = item

        kept = {id(item) for item in applied.values()}
        orphans = [item for item in current if id(item) not in kept]
        if orphans:
            product.delete_property_items(orphans)
        return product
