"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import IntEnum, StrEnum


class ListDomain(StrEnum):
    """Kinds of items a parent can reference through its list items."""

    TEXT = "text"
    MEDIA = "media"
    PRICE = "price"
    ATTRIBUTE = "attribute"
    CATALOG = "catalog"
    PRODUCT = "product"
    SUPPLIER = "supplier"


class Resource(StrEnum):
    """Parent resources owning list items."""

    PRODUCT = "product"
    CATALOG = "catalog"
    SUPPLIER = "supplier"


class Status(IntEnum):
    ARCHIVED = -2
    REVIEW = -1
    DISABLED = 0
    ENABLED = 1
    HIDDEN = 2
