"""Import job configuration.

Settings are read from a TOML document and validated with pydantic before they
are exposed through :class:`ImportSettings`, whose ``get`` accepts slash
separated keys such as ``"product/text/listtypes"``.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping

CONFIG_ENV_VAR: Final[str] = "CATIMPORT_CONFIG"
DEFAULT_SEPARATOR: Final[str] = "\n"
DEFAULT_MAX_SIZE: Final[int] = 1000

# Classic column layout of a product CSV file; "item" holds the product itself.
DEFAULT_PRODUCT_MAPPING: Final[dict[str, dict[int, str]]] = {
    "item": {
        0: "product.code",
        1: "product.label",
        2: "product.type",
        3: "product.status",
    },
    "text": {
        4: "text.type",
        5: "text.content",
        6: "text.type",
        7: "text.content",
    },
    "media": {
        8: "media.url",
    },
    "price": {
        9: "price.currencyid",
        10: "price.quantity",
        11: "price.value",
        12: "price.taxrate",
    },
    "attribute": {
        13: "product.lists.type",
        14: "attribute.code",
        15: "attribute.type",
    },
    "product": {
        16: "product.code",
        17: "product.lists.type",
    },
    "property": {
        18: "product.property.value",
        19: "product.property.type",
    },
    "catalog": {
        20: "catalog.code",
        21: "product.lists.type",
    },
}

# Catalog CSV files name the parent node by code; a blank parent is a top level node.
DEFAULT_CATALOG_MAPPING: Final[dict[str, dict[int, str]]] = {
    "item": {
        0: "catalog.code",
        1: "catalog.parent",
        2: "catalog.label",
        3: "catalog.status",
    },
    "text": {
        4: "text.type",
        5: "text.content",
    },
    "media": {
        6: "media.url",
    },
}

DEFAULT_SUPPLIER_MAPPING: Final[dict[str, dict[int, str]]] = {
    "item": {
        0: "supplier.code",
        1: "supplier.label",
        2: "supplier.status",
    },
    "text": {
        3: "text.type",
        4: "text.content",
    },
    "media": {
        5: "media.url",
    },
}

DEFAULT_MAPPINGS: Final[dict[str, dict[str, dict[int, str]]]] = {
    "product": DEFAULT_PRODUCT_MAPPING,
    "catalog": DEFAULT_CATALOG_MAPPING,
    "supplier": DEFAULT_SUPPLIER_MAPPING,
}


class KindSection(BaseModel):
    """Per-kind options below a resource section, e.g. ``[product.text]``."""

    model_config = ConfigDict(extra="forbid")

    listtypes: list[str] | None = None
    types: list[str] | None = None
    processor: str | None = None


class ImportConfigDocument(BaseModel):
    """Schema of the TOML import configuration file."""

    model_config = ConfigDict(extra="forbid")

    separator: str = Field(default=DEFAULT_SEPARATOR, min_length=1)
    max_size: int = Field(default=DEFAULT_MAX_SIZE, gt=0)
    skip_lines: int = Field(default=0, ge=0)
    media_root: Path | None = None
    mapping: dict[str, dict[int, str]] | None = None
    catalog_mapping: dict[str, dict[int, str]] | None = None
    supplier_mapping: dict[str, dict[int, str]] | None = None

    database_uri: str | None = Field(default=None, min_length=1)
    data_dir: Path | None = None
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    product: dict[str, KindSection] = Field(default_factory=dict)
    catalog: dict[str, KindSection] = Field(default_factory=dict)
    supplier: dict[str, KindSection] = Field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ImportSettings:
    """Read-only view on validated import configuration values."""

    values: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, document: Mapping[str, Any]) -> ImportSettings:
        try:
            model = ImportConfigDocument.model_validate(document)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid import configuration: {exc}") from exc
        return cls(values=model.model_dump(exclude_none=True))

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value stored below the slash separated ``key``."""

        node: Any = self.values
        for part in key.split("/"):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return default if node is None else node

    def with_overrides(self, **values: Any) -> ImportSettings:
        """Return new settings with top-level ``values`` replaced (``None`` is ignored)."""

        overrides = {key: value for key, value in values.items() if value is not None}
        return ImportSettings.from_mapping({**self.values, **overrides})

    @property
    def separator(self) -> str:
        return str(self.get("separator", DEFAULT_SEPARATOR))

    @property
    def max_size(self) -> int:
        return int(self.get("max_size", DEFAULT_MAX_SIZE))

    @property
    def skip_lines(self) -> int:
        return int(self.get("skip_lines", 0))

    @property
    def media_root(self) -> Path | None:
        return self.get("media_root")

    @property
    def mapping(self) -> dict[str, dict[int, str]]:
        return self.mapping_for("product")

    def mapping_for(self, resource: str) -> dict[str, dict[int, str]]:
        """Return the CSV column mapping of ``resource``, the classic layout if not configured."""

        key = "mapping" if resource == "product" else f"{resource}_mapping"
        return self.get(key, DEFAULT_MAPPINGS[resource])

    @property
    def database_uri(self) -> str | None:
        return self.get("database_uri")

    @property
    def data_dir(self) -> Path | None:
        return self.get("data_dir")

    @property
    def log_level(self) -> str:
        return str(self.get("log_level", "INFO"))


def load_import_settings(path: Path | None = None) -> ImportSettings:
    """Load settings from ``path`` or ``$CATIMPORT_CONFIG``; defaults if neither is set."""

    if path is None:
        env_path = os.getenv(CONFIG_ENV_VAR)
        if not env_path:
            return ImportSettings.from_mapping({})
        path = Path(env_path)

    try:
        with path.expanduser().open("rb") as handle:
            document = tomllib.load(handle)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Import configuration file not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Invalid TOML in {path}: {exc}") from exc

    return ImportSettings.from_mapping(document)
