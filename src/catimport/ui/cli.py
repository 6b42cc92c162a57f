from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from catimport.app import (
    import_catalog_csv,
    import_catalog_xml,
    import_products_csv,
    import_products_xml,
    import_suppliers_csv,
    import_suppliers_xml,
)
from catimport.config import ConfigurationError, configure_logging, load_import_settings

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from catimport.config import ImportSettings
    from catimport.domain.importing import ImportResult

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import catalog data")
    parser.add_argument(
        "--config",
        type=Path,
        help="TOML import configuration (defaults to $CATIMPORT_CONFIG)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug messages",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    products_csv = subparsers.add_parser("products-csv", help="Import products from CSV")
    _add_csv_arguments(products_csv)

    products_xml = subparsers.add_parser("products-xml", help="Import products from XML")
    products_xml.add_argument("path", type=Path, help="XML file with <productitem> elements")
    _add_max_size(products_xml, "items")

    catalog_csv = subparsers.add_parser("catalog-csv", help="Import catalog nodes from CSV")
    _add_csv_arguments(catalog_csv)

    catalog_xml = subparsers.add_parser("catalog-xml", help="Import a catalog tree from XML")
    catalog_xml.add_argument("path", type=Path, help="XML file with a <catalogitem> tree")

    suppliers_csv = subparsers.add_parser("suppliers-csv", help="Import suppliers from CSV")
    _add_csv_arguments(suppliers_csv)

    suppliers_xml = subparsers.add_parser("suppliers-xml", help="Import suppliers from XML")
    suppliers_xml.add_argument("path", type=Path, help="XML file with <supplieritem> elements")
    _add_max_size(suppliers_xml, "items")

    return parser.parse_args(list(argv))


def _add_csv_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("path", type=Path, help="CSV file to import")
    parser.add_argument(
        "--skip-lines",
        type=int,
        default=None,
        help="Number of header lines to skip (defaults to config)",
    )
    _add_max_size(parser, "rows")


def _add_max_size(parser: argparse.ArgumentParser, unit: str) -> None:
    parser.add_argument(
        "--max-size",
        type=int,
        default=None,
        help=f"Number of {unit} per transaction (defaults to config)",
    )


def _settings(args: argparse.Namespace) -> ImportSettings:
    settings = load_import_settings(args.config)
    return settings.with_overrides(
        skip_lines=getattr(args, "skip_lines", None),
        max_size=getattr(args, "max_size", None),
    )


def _run(args: argparse.Namespace, settings: ImportSettings) -> ImportResult:  # noqa: PLR0911
    if args.command == "products-csv":
        return import_products_csv(args.path, settings=settings)
    if args.command == "products-xml":
        return import_products_xml(args.path, settings=settings)
    if args.command == "catalog-csv":
        return import_catalog_csv(args.path, settings=settings)
    if args.command == "catalog-xml":
        return import_catalog_xml(args.path, settings=settings)
    if args.command == "suppliers-csv":
        return import_suppliers_csv(args.path, settings=settings)
    if args.command == "suppliers-xml":
        return import_suppliers_xml(args.path, settings=settings)
    raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)

    try:
        if not parsed_args.path.is_file():
            raise ConfigurationError(f"No such file: {parsed_args.path}")  # noqa: TRY301
        settings = _settings(parsed_args)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)

    configure_logging(logging.DEBUG if parsed_args.verbose else settings.log_level)

    try:
        result = _run(parsed_args, settings)
    except Exception:
        log.exception("Fatal error during import")
        sys.exit(1)

    log.info(
        "Import finished: total=%s, imported=%s, errors=%s, types created=%s",
        result.total,
        result.imported,
        result.errors,
        result.types_created,
    )


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
