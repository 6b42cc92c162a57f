"""Application configuration helpers."""

from __future__ import annotations

from .errors import ConfigurationError
from .importing import (
    DEFAULT_CATALOG_MAPPING,
    DEFAULT_PRODUCT_MAPPING,
    DEFAULT_SUPPLIER_MAPPING,
    ImportConfigDocument,
    ImportSettings,
    load_import_settings,
)
from .logging import configure_logging
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "DEFAULT_CATALOG_MAPPING",
    "DEFAULT_PRODUCT_MAPPING",
    "DEFAULT_SUPPLIER_MAPPING",
    "ConfigurationError",
    "DatabaseConfig",
    "ImportConfigDocument",
    "ImportSettings",
    "StorageConfig",
    "configure_logging",
    "get_database_config",
    "get_storage_config",
    "load_import_settings",
]
