"""SQLAlchemy table metadata for the catimport domain model.

Column names match the attribute names of the domain dataclasses so rows can
be turned into entities (and back) without per-field glue.
"""

from __future__ import annotations

import logging
import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Column,
    Dialect,
    Float,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class DecimalString(TypeDecorator[Decimal]):
    """Store decimals as text so no backend rounds them."""

    impl = String(32)
    cache_ok = True

    def process_bind_param(self, value: Decimal | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return str(value)

    def process_result_value(self, value: str | None, dialect: Dialect) -> Decimal | None:
        _ = dialect
        if value is None:
            return None
        return Decimal(value)


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

# Core tables -----------------------------------------------------------------

type_item_table = Table(
    "type_item",
    metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("scope", String, nullable=False),
    Column("domain", String, nullable=False),
    Column("code", String, nullable=False),
    Column("label", String, nullable=False, default=""),
    Column("status", Integer, nullable=False, default=1),
    UniqueConstraint("scope", "domain", "code"),
)

product_table = Table(
    "product",
    metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("code", String, nullable=False, unique=True),
    Column("label", String, nullable=False, default=""),
    Column("type", String, nullable=False, default="default"),
    Column("status", Integer, nullable=False, default=1),
    Column("config", JSON, nullable=False, default=dict),
)

catalog_table = Table(
    "catalog",
    metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("code", String, nullable=False, unique=True),
    Column("label", String, nullable=False, default=""),
    Column("status", Integer, nullable=False, default=1),
    Column("parent_id", UUIDColumnType, ForeignKey("catalog.id"), nullable=True),
    Column("config", JSON, nullable=False, default=dict),
    Index("ix_catalog_parent_id", "parent_id"),
)

supplier_table = Table(
    "supplier",
    metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("code", String, nullable=False, unique=True),
    Column("label", String, nullable=False, default=""),
    Column("status", Integer, nullable=False, default=1),
)

attribute_table = Table(
    "attribute",
    metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("domain", String, nullable=False),
    Column("type", String, nullable=False, default=""),
    Column("code", String, nullable=False),
    Column("label", String, nullable=False, default=""),
    Column("position", Integer, nullable=False, default=0),
    Column("status", Integer, nullable=False, default=1),
    UniqueConstraint("domain", "type", "code"),
)

text_table = Table(
    "text",
    metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("domain", String, nullable=False),
    Column("type", String, nullable=False),
    Column("language_id", String(5), nullable=True),
    Column("label", String(255), nullable=False, default=""),
    Column("content", Text, nullable=False, default=""),
    Column("status", Integer, nullable=False, default=1),
)

media_table = Table(
    "media",
    metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("domain", String, nullable=False),
    Column("type", String, nullable=False),
    Column("language_id", String(5), nullable=True),
    Column("label", String(255), nullable=False, default=""),
    Column("url", String, nullable=False),
    Column("preview", String, nullable=False, default=""),
    Column("mime_type", String(64), nullable=False, default=""),
    Column("status", Integer, nullable=False, default=1),
)

price_table = Table(
    "price",
    metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("domain", String, nullable=False),
    Column("type", String, nullable=False),
    Column("currency_id", String(3), nullable=False, default=""),
    Column("quantity", Float, nullable=False, default=1.0),
    Column("value", DecimalString, nullable=False),
    Column("costs", DecimalString, nullable=False),
    Column("rebate", DecimalString, nullable=False),
    Column("tax_rate", DecimalString, nullable=False),
    Column("label", String(255), nullable=False, default=""),
    Column("status", Integer, nullable=False, default=1),
)

list_item_table = Table(
    "list_item",
    metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("parent_resource", String, nullable=False),
    Column("parent_id", UUIDColumnType, nullable=False),
    Column("domain", String, nullable=False),
    Column("type", String, nullable=False, default="default"),
    Column("ref_id", UUIDColumnType, nullable=False),
    Column("position", Integer, nullable=False, default=0),
    Column("status", Integer, nullable=False, default=1),
    Column("config", JSON, nullable=False, default=dict),
    Index("ix_list_item_parent", "parent_resource", "parent_id"),
    Index("ix_list_item_ref", "domain", "ref_id"),
)

property_item_table = Table(
    "property_item",
    metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("parent_id", UUIDColumnType, ForeignKey("product.id"), nullable=False),
    Column("type", String, nullable=False, default=""),
    Column("language_id", String(5), nullable=True),
    Column("value", String, nullable=False),
    Index("ix_property_item_parent_id", "parent_id"),
)


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the metadata."""

    log.info("Creating all tables")
    metadata.create_all(engine)
