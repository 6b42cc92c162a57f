"""Parent aggregates owning list items (and, for products, property items)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

from catimport.domain.model.entity import Entity
from catimport.domain.model.enums import Resource, Status
from catimport.domain.model.fields import FieldSpec, to_int
from catimport.domain.model.items import ListItem, PropertyItem

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable
    from uuid import UUID

    from catimport.domain.model.enums import ListDomain
    from catimport.domain.model.items import RefItem


@dataclass(eq=False, kw_only=True)
class ListsRefEntity(Entity):
    """Entity that references other items through typed, positioned list items.

    Deleted list items (and the referenced items deleted along with them) are
    remembered until the repository persisting the aggregate collects them
    with :meth:`take_deletions`.
    """

    RESOURCE: ClassVar[Resource]
    FIELDS: ClassVar[dict[str, FieldSpec]] = {
        "code": FieldSpec("code"),
        "label": FieldSpec("label"),
        "status": FieldSpec("status", to_int),
    }

    code: str = ""
    label: str = ""
    status: int = Status.ENABLED
    list_items: list[ListItem] = field(default_factory=list[ListItem])
    _deleted_list_items: list[ListItem] = field(
        default_factory=list[ListItem], init=False, repr=False
    )
    _deleted_ref_items: list[RefItem] = field(default_factory=list, init=False, repr=False)

    @property
    def resource(self) -> str:
        return self.RESOURCE.value

    def get_list_items(
        self, domain: ListDomain | str, types: Collection[str] | None = None
    ) -> list[ListItem]:
        """Return list items of ``domain`` ordered by position, optionally limited to ``types``."""

        items = [
            item
            for item in self.list_items
            if item.domain == domain and (types is None or item.type in types)
        ]
        return sorted(items, key=lambda item: item.position)

    def get_list_item(self, domain: ListDomain | str, type_: str, ref_id: UUID) -> ListItem | None:
        for item in self.list_items:
            if item.domain == domain and item.type == type_ and item.ref_id == ref_id:
                return item
        return None

    def add_list_item(self, list_item: ListItem, ref_item: RefItem | None = None) -> ListItem:
        if ref_item is not None:
            list_item.attach(ref_item)
        if not any(existing is list_item for existing in self.list_items):
            self.list_items.append(list_item)
        return list_item

    def delete_list_items(
        self, items: Iterable[ListItem], *, with_ref_items: bool = False
    ) -> None:
        doomed = list(items)
        doomed_ids = {id(item) for item in doomed}
        self.list_items = [item for item in self.list_items if id(item) not in doomed_ids]
        self._deleted_list_items.extend(doomed)
        if with_ref_items:
            self._deleted_ref_items.extend(
                item.ref_item for item in doomed if item.ref_item is not None
            )

    def take_deletions(self) -> tuple[list[ListItem], list[RefItem]]:
        """Return and forget list items and referenced items deleted since the last call."""

        deleted = (self._deleted_list_items, self._deleted_ref_items)
        self._deleted_list_items = []
        self._deleted_ref_items = []
        return deleted


@dataclass(eq=False, kw_only=True)
class Product(ListsRefEntity):
    RESOURCE: ClassVar[Resource] = Resource.PRODUCT
    FIELDS: ClassVar[dict[str, FieldSpec]] = {
        **ListsRefEntity.FIELDS,
        "type": FieldSpec("type"),
    }

    type: str = "default"
    config: dict[str, object] = field(default_factory=dict[str, object])
    property_items: list[PropertyItem] = field(default_factory=list[PropertyItem])
    _deleted_property_items: list[PropertyItem] = field(
        default_factory=list[PropertyItem], init=False, repr=False
    )

    def get_property_items(self, types: Collection[str] | None = None) -> list[PropertyItem]:
        return [item for item in self.property_items if types is None or item.type in types]

    def add_property_item(self, item: PropertyItem) -> PropertyItem:
        if not any(existing is item for existing in self.property_items):
            self.property_items.append(item)
        return item

    def delete_property_items(self, items: Iterable[PropertyItem]) -> None:
        doomed = list(items)
        doomed_ids = {id(item) for item in doomed}
        self.property_items = [
            item for item in self.property_items if id(item) not in doomed_ids
        ]
        self._deleted_property_items.extend(doomed)

    def take_deleted_property_items(self) -> list[PropertyItem]:
        deleted = self._deleted_property_items
        self._deleted_property_items = []
        return deleted


@dataclass(eq=False, kw_only=True)
class Catalog(ListsRefEntity):
    """Node of the category tree; ``parent_id`` is ``None`` for the root."""

    RESOURCE: ClassVar[Resource] = Resource.CATALOG

    parent_id: UUID | None = None
    config: dict[str, object] = field(default_factory=dict[str, object])


@dataclass(eq=False, kw_only=True)
class Supplier(ListsRefEntity):
    RESOURCE: ClassVar[Resource] = Resource.SUPPLIER


type Parent = Product | Catalog | Supplier
