"""Referenced items, list items and classification types."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, ClassVar

from catimport.domain.model.entity import Entity
from catimport.domain.model.enums import ListDomain, Status
from catimport.domain.model.fields import (
    FieldSpec,
    to_decimal,
    to_float,
    to_int,
    to_optional_text,
)

if TYPE_CHECKING:
    from uuid import UUID

    from catimport.domain.model.parents import Catalog, Product, Supplier


@dataclass(eq=False, kw_only=True)
class TypeItem(Entity):
    """Classification code, e.g. the list type ``default`` of ``product/lists/type``."""

    scope: str
    domain: str
    code: str
    label: str = ""
    status: int = Status.ENABLED


@dataclass(eq=False, kw_only=True)
class Text(Entity):
    PREFIX: ClassVar[str] = "text"
    FIELDS: ClassVar[dict[str, FieldSpec]] = {
        "type": FieldSpec("type"),
        "languageid": FieldSpec("language_id", to_optional_text),
        "label": FieldSpec("label"),
        "content": FieldSpec("content"),
        "status": FieldSpec("status", to_int),
    }

    type: str = "name"
    domain: str = "product"
    language_id: str | None = None
    label: str = ""
    content: str = ""
    status: int = Status.ENABLED


@dataclass(eq=False, kw_only=True)
class Media(Entity):
    PREFIX: ClassVar[str] = "media"
    FIELDS: ClassVar[dict[str, FieldSpec]] = {
        "type": FieldSpec("type"),
        "languageid": FieldSpec("language_id", to_optional_text),
        "label": FieldSpec("label"),
        "url": FieldSpec("url"),
        "preview": FieldSpec("preview"),
        "mimetype": FieldSpec("mime_type"),
        "status": FieldSpec("status", to_int),
    }

    type: str = "default"
    domain: str = "product"
    language_id: str | None = None
    label: str = ""
    url: str = ""
    preview: str = ""
    mime_type: str = ""
    status: int = Status.ENABLED


@dataclass(eq=False, kw_only=True)
class Price(Entity):
    PREFIX: ClassVar[str] = "price"
    FIELDS: ClassVar[dict[str, FieldSpec]] = {
        "type": FieldSpec("type"),
        "currencyid": FieldSpec("currency_id"),
        "quantity": FieldSpec("quantity", to_float),
        "value": FieldSpec("value", to_decimal),
        "costs": FieldSpec("costs", to_decimal),
        "rebate": FieldSpec("rebate", to_decimal),
        "taxrate": FieldSpec("tax_rate", to_decimal),
        "label": FieldSpec("label"),
        "status": FieldSpec("status", to_int),
    }

    type: str = "default"
    domain: str = "product"
    currency_id: str = ""
    quantity: float = 1.0
    value: Decimal = Decimal("0.00")
    costs: Decimal = Decimal("0.00")
    rebate: Decimal = Decimal("0.00")
    tax_rate: Decimal = Decimal("0.00")
    label: str = ""
    status: int = Status.ENABLED


@dataclass(eq=False, kw_only=True)
class Attribute(Entity):
    """Shared attribute; many parents may reference the same one."""

    PREFIX: ClassVar[str] = "attribute"
    FIELDS: ClassVar[dict[str, FieldSpec]] = {
        "type": FieldSpec("type"),
        "code": FieldSpec("code"),
        "label": FieldSpec("label"),
        "position": FieldSpec("position", to_int),
        "status": FieldSpec("status", to_int),
    }

    type: str = ""
    domain: str = "product"
    code: str = ""
    label: str = ""
    position: int = 0
    status: int = Status.ENABLED


@dataclass(eq=False, kw_only=True)
class PropertyItem(Entity):
    """Typed value owned by a single parent (``<resource>.property.*``)."""

    FIELDS: ClassVar[dict[str, FieldSpec]] = {
        "type": FieldSpec("type"),
        "languageid": FieldSpec("language_id", to_optional_text),
        "value": FieldSpec("value"),
    }

    type: str = ""
    language_id: str | None = None
    value: str = ""


type RefItem = Text | Media | Price | Attribute | Catalog | Product | Supplier


@dataclass(eq=False, kw_only=True)
class ListItem(Entity):
    """Association between a parent and one referenced item."""

    FIELDS: ClassVar[dict[str, FieldSpec]] = {
        "type": FieldSpec("type"),
        "position": FieldSpec("position", to_int),
        "status": FieldSpec("status", to_int),
    }

    domain: ListDomain
    type: str = "default"
    ref_id: UUID | None = None
    ref_item: RefItem | None = None
    position: int = 0
    status: int = Status.ENABLED
    config: dict[str, object] = field(default_factory=dict)

    def attach(self, ref_item: RefItem) -> None:
        self.ref_item = ref_item
        self.ref_id = ref_item.id
