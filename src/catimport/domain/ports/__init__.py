"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import (
    AttributeRepository,
    CatalogRepository,
    ParentRepository,
    ProductRepository,
    SupplierRepository,
    TypeRepository,
)
from .unit_of_work import (
    ImportRepositories,
    ImportUnitOfWork,
    ImportUnitOfWorkFactory,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "AttributeRepository",
    "CatalogRepository",
    "ImportRepositories",
    "ImportUnitOfWork",
    "ImportUnitOfWorkFactory",
    "ParentRepository",
    "ProductRepository",
    "RepositoryCollection",
    "SupplierRepository",
    "TypeRepository",
    "UnitOfWork",
]
