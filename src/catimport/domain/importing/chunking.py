"""Turn flat positional records into logical sub-records ("chunks").

A field mapping is an ordered sequence of ``(position, key)`` pairs. Walking
the mapping, a key that is already set in the current chunk starts the next
chunk, so ``[A, B, A, B]`` describes two chunks of ``{A, B}``. Positions that
are copied into a chunk are removed from the row, which leaves later links of
a processor chain with only the columns they map themselves.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, MutableMapping, Sequence

type Chunk = dict[str, str]
type FieldMapping = Mapping[int, str] | Iterable[tuple[int, str]]


def row_data(values: Sequence[str]) -> dict[int, str]:
    """Return ``position -> value`` for one CSV row."""

    return dict(enumerate(values))


def mapping_pairs(mapping: FieldMapping) -> list[tuple[int, str]]:
    if isinstance(mapping, Mapping):
        return [(int(position), str(key)) for position, key in mapping.items()]
    return [(int(position), str(key)) for position, key in mapping]


def map_chunks(row: MutableMapping[int, str], mapping: FieldMapping) -> list[Chunk]:
    """Split ``row`` into chunks according to ``mapping``, consuming mapped positions.

    A position missing from ``row`` leaves its key absent from the chunk. Chunks
    that did not receive a single value are not returned.
    """

    chunks: dict[int, Chunk] = {}
    index = 0

    for position, key in mapping_pairs(mapping):
        if key in chunks.get(index, {}):
            index += 1
        if position in row:
            chunks.setdefault(index, {})[key] = row.pop(position)

    return [chunks[idx] for idx in sorted(chunks)]


def split_values(value: str | None, separator: str = "\n") -> list[str]:
    """Split a multi-value field, trimming parts and dropping empty ones."""

    if not value:
        return []
    return [part.strip() for part in value.split(separator) if part.strip()]
