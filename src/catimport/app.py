"""Application orchestration entry points."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from catimport.adapters.csv_source import read_csv_rows
from catimport.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyImportUnitOfWork,
    is_started,
    startup,
)
from catimport.adapters.xml_source import iter_elements, parse_document
from catimport.config import load_import_settings
from catimport.domain.importing import (
    ImportResult,
    import_catalog_rows,
    import_catalog_tree,
    import_product_nodes,
    import_product_rows,
    import_supplier_nodes,
    import_supplier_rows,
)

if TYPE_CHECKING:
    from pathlib import Path

    from catimport.config import ImportSettings
    from catimport.domain.ports import ImportUnitOfWorkFactory

log = getLogger(__name__)


def _prepare(
    settings: ImportSettings | None,
    unit_of_work_factory: ImportUnitOfWorkFactory | None,
) -> tuple[ImportSettings, ImportUnitOfWorkFactory]:
    effective_settings = settings or load_import_settings()
    if unit_of_work_factory is not None:
        return effective_settings, unit_of_work_factory
    if not is_started():
        startup(settings=effective_settings)
    return effective_settings, SqlAlchemyImportUnitOfWork


def import_products_csv(
    path: Path,
    *,
    settings: ImportSettings | None = None,
    unit_of_work_factory: ImportUnitOfWorkFactory | None = None,
) -> ImportResult:
    """Import a product CSV file using the configured adapters."""

    effective_settings, effective_uow = _prepare(settings, unit_of_work_factory)
    log.info("Importing products from %s (skip_lines=%s)", path, effective_settings.skip_lines)
    return import_product_rows(
        read_csv_rows(path, effective_settings.skip_lines),
        settings=effective_settings,
        unit_of_work_factory=effective_uow,
    )


def import_products_xml(
    path: Path,
    *,
    settings: ImportSettings | None = None,
    unit_of_work_factory: ImportUnitOfWorkFactory | None = None,
) -> ImportResult:
    """Import the ``<productitem>`` elements of an XML file."""

    effective_settings, effective_uow = _prepare(settings, unit_of_work_factory)
    log.info("Importing products from %s", path)
    return import_product_nodes(
        iter_elements(path, "productitem"),
        settings=effective_settings,
        unit_of_work_factory=effective_uow,
    )


def import_catalog_xml(
    path: Path,
    *,
    settings: ImportSettings | None = None,
    unit_of_work_factory: ImportUnitOfWorkFactory | None = None,
) -> ImportResult:
    """Import a catalog tree from an XML file."""

    effective_settings, effective_uow = _prepare(settings, unit_of_work_factory)
    log.info("Importing catalog tree from %s", path)
    return import_catalog_tree(
        parse_document(path),
        settings=effective_settings,
        unit_of_work_factory=effective_uow,
    )


def import_catalog_csv(
    path: Path,
    *,
    settings: ImportSettings | None = None,
    unit_of_work_factory: ImportUnitOfWorkFactory | None = None,
) -> ImportResult:
    """Import catalog nodes from CSV, parents listed before their children."""

    effective_settings, effective_uow = _prepare(settings, unit_of_work_factory)
    log.info("Importing catalog from %s (skip_lines=%s)", path, effective_settings.skip_lines)
    return import_catalog_rows(
        read_csv_rows(path, effective_settings.skip_lines),
        settings=effective_settings,
        unit_of_work_factory=effective_uow,
    )


def import_suppliers_csv(
    path: Path,
    *,
    settings: ImportSettings | None = None,
    unit_of_work_factory: ImportUnitOfWorkFactory | None = None,
) -> ImportResult:
    effective_settings, effective_uow = _prepare(settings, unit_of_work_factory)
    log.info("Importing suppliers from %s (skip_lines=%s)", path, effective_settings.skip_lines)
    return import_supplier_rows(
        read_csv_rows(path, effective_settings.skip_lines),
        settings=effective_settings,
        unit_of_work_factory=effective_uow,
    )


def import_suppliers_xml(
    path: Path,
    *,
    settings: ImportSettings | None = None,
    unit_of_work_factory: ImportUnitOfWorkFactory | None = None,
) -> ImportResult:
    """Import the ``<supplieritem>`` elements of an XML file."""

    effective_settings, effective_uow = _prepare(settings, unit_of_work_factory)
    log.info("Importing suppliers from %s", path)
    return import_supplier_nodes(
        iter_elements(path, "supplieritem"),
        settings=effective_settings,
        unit_of_work_factory=effective_uow,
    )
