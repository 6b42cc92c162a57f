"""SQLAlchemy adapter package for catimport."""

from __future__ import annotations

from .mappings import create_all_tables, metadata
from .repositories import (
    SqlAlchemyAttributeRepository,
    SqlAlchemyCatalogRepository,
    SqlAlchemyParentRepository,
    SqlAlchemyProductRepository,
    SqlAlchemySupplierRepository,
    SqlAlchemyTypeRepository,
)
from .unit_of_work import (
    BaseSqlAlchemyUnitOfWork,
    SqlAlchemyImportUnitOfWork,
    StartupError,
    shutdown,
    startup,
)

__all__ = [
    "BaseSqlAlchemyUnitOfWork",
    "SqlAlchemyAttributeRepository",
    "SqlAlchemyCatalogRepository",
    "SqlAlchemyImportUnitOfWork",
    "SqlAlchemyParentRepository",
    "SqlAlchemyProductRepository",
    "SqlAlchemySupplierRepository",
    "SqlAlchemyTypeRepository",
    "StartupError",
    "create_all_tables",
    "metadata",
    "shutdown",
    "startup",
]
