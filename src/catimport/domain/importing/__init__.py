"""Import reconciliation: chunking, list reconciliation, deferred types and drivers."""

from __future__ import annotations

from .chunking import Chunk, FieldMapping, map_chunks, row_data, split_values
from .drivers import (
    CATALOG_XML_KINDS,
    PRODUCT_XML_KINDS,
    SUPPLIER_XML_KINDS,
    ImportResult,
    MappedChunks,
    import_catalog_rows,
    import_catalog_tree,
    import_product_nodes,
    import_product_rows,
    import_supplier_nodes,
    import_supplier_rows,
)
from .errors import (
    ChainConfigurationError,
    ImportJobError,
    InvalidListConfigError,
    InvalidTypeError,
    InvalidValueError,
    MissingReferenceWarning,
    TypeCreationFailure,
    ValidationError,
)
from .kinds import AttributeKind, LinkKind, ListKind, MediaKind, PriceKind, TextKind
from .lookups import AttributeLookup, CodeLookup, Lookups
from .processors import (
    PROCESSORS,
    DoneProcessor,
    ListProcessor,
    Processor,
    ProcessorChain,
    ProcessorContext,
    PropertyProcessor,
    build_processor_chain,
)
from .reconcile import ListReconciler, PropertyReconciler
from .types import TypeRegistry

__all__ = [
    "CATALOG_XML_KINDS",
    "PROCESSORS",
    "PRODUCT_XML_KINDS",
    "AttributeKind",
    "AttributeLookup",
    "ChainConfigurationError",
    "Chunk",
    "CodeLookup",
    "DoneProcessor",
    "FieldMapping",
    "ImportJobError",
    "ImportResult",
    "InvalidListConfigError",
    "InvalidTypeError",
    "InvalidValueError",
    "LinkKind",
    "ListKind",
    "ListProcessor",
    "ListReconciler",
    "Lookups",
    "MappedChunks",
    "MediaKind",
    "MissingReferenceWarning",
    "PriceKind",
    "Processor",
    "ProcessorChain",
    "ProcessorContext",
    "PropertyProcessor",
    "PropertyReconciler",
    "TextKind",
    "TypeCreationFailure",
    "TypeRegistry",
    "ValidationError",
    "build_processor_chain",
    "import_catalog_rows",
    "import_catalog_tree",
    "import_product_nodes",
    "import_product_rows",
    "import_supplier_nodes",
    "import_supplier_rows",
    "map_chunks",
    "row_data",
    "split_values",
]
