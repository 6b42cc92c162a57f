"""Public domain model surface."""

from __future__ import annotations

from catimport.domain.model.entity import Entity, new_id
from catimport.domain.model.enums import ListDomain, Resource, Status
from catimport.domain.model.fields import (
    FieldSpec,
    InvalidFieldValue,
    assign,
    convert_fields,
)
from catimport.domain.model.items import (
    Attribute,
    ListItem,
    Media,
    Price,
    PropertyItem,
    RefItem,
    Text,
    TypeItem,
)
from catimport.domain.model.parents import (
    Catalog,
    ListsRefEntity,
    Parent,
    Product,
    Supplier,
)

__all__ = [
    "Attribute",
    "Catalog",
    "Entity",
    "FieldSpec",
    "InvalidFieldValue",
    "ListDomain",
    "ListItem",
    "ListsRefEntity",
    "Media",
    "Parent",
    "Price",
    "Product",
    "PropertyItem",
    "RefItem",
    "Resource",
    "Status",
    "Supplier",
    "Text",
    "TypeItem",
    "assign",
    "convert_fields",
    "new_id",
]
