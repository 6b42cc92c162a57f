"""CSV record source."""

from __future__ import annotations

import csv
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

log = logging.getLogger(__name__)


def read_csv_rows(
    path: Path,
    skip_lines: int = 0,
    *,
    encoding: str = "utf-8",
    delimiter: str = ",",
) -> Iterator[list[str]]:
    """Yield the column values of each row, skipping header and blank lines."""

    with path.open(newline="", encoding=encoding) as handle:
        reader = csv.reader(handle, delimiter=delimiter)
        for _ in range(skip_lines):
            if next(reader, None) is None:
                return
        for row in reader:
            if not any(value.strip() for value in row):
                log.debug("Skipping blank line %d in %s", reader.line_num, path)
                continue
            yield row
