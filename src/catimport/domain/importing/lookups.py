"""Run-scoped code caches for items referenced by import records."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from catimport.domain.model import ListsRefEntity

if TYPE_CHECKING:
    from collections.abc import Callable, Collection, Iterable

    from catimport.domain.model import Attribute, Catalog, Product, Supplier
    from catimport.domain.ports import ImportRepositories

log = logging.getLogger(__name__)


class CodeLookup[TItem: ListsRefEntity]:
    """Cache of ``code -> item``; unknown codes are remembered as misses.

    ``prime`` resolves many codes with a single repository read, ``get`` falls
    back to a read for a single code that was not primed.
    """

    def __init__(self, fetch: Callable[[Collection[str]], Iterable[TItem]]) -> None:
        self._fetch = fetch
        self._items: dict[str, TItem | None] = {}
        self.reads = 0

    def prime(self, codes: Iterable[str]) -> None:
        missing = {code for code in codes if code and code not in self._items}
        if not missing:
            return
        self.reads += 1
        found = {item.code: item for item in self._fetch(sorted(missing))}
        for code in missing:
            self._items[code] = found.get(code)
        log.debug("Resolved %d of %d codes", len(found), len(missing))

    def get(self, code: str) -> TItem | None:
        if code not in self._items:
            self.prime([code])
        return self._items.get(code)

    def add(self, item: TItem) -> None:
        self._items[item.code] = item

    def discard(self, code: str) -> None:
        self._items.pop(code, None)


class AttributeLookup:
    """Cache of attributes by code and type, creating attributes that do not exist yet."""

    def __init__(
        self,
        fetch: Callable[[Collection[str]], Iterable[Attribute]],
        create: Callable[[], Attribute],
    ) -> None:
        self._fetch = fetch
        self._create = create
        self._items: dict[tuple[str, str], Attribute] = {}
        self._primed: set[str] = set()
        self.reads = 0

    def prime(self, codes: Iterable[str]) -> None:
        missing = {code for code in codes if code and code not in self._primed}
        if not missing:
            return
        self.reads += 1
        for item in self._fetch(sorted(missing)):
            self._items.setdefault((item.code, item.type), item)
        self._primed |= missing

    def get(self, code: str, type_: str) -> Attribute | None:
        self.prime([code])
        return self._items.get((code, type_))

    def get_or_create(self, code: str, type_: str, *, domain: str) -> Attribute:
        item = self.get(code, type_)
        if item is None:
            item = self._create()
            item.code = code
            item.type = type_
            item.domain = domain
            item.label = code
            self._items[(code, type_)] = item
            log.debug("Created attribute %s (%s)", code, type_)
        return item


@dataclass(slots=True)
class Lookups:
    catalogs: CodeLookup[Catalog]
    products: CodeLookup[Product]
    suppliers: CodeLookup[Supplier]
    attributes: AttributeLookup

    @classmethod
    def bind(cls, repositories: Callable[[], ImportRepositories]) -> Lookups:
        """Build lookups reading through the repositories current at call time."""

        return cls(
            catalogs=CodeLookup(lambda codes: repositories().catalogs.search(codes)),
            products=CodeLookup(lambda codes: repositories().products.search(codes)),
            suppliers=CodeLookup(lambda codes: repositories().suppliers.search(codes)),
            attributes=AttributeLookup(
                lambda codes: repositories().attributes.search(codes),
                lambda: repositories().attributes.create(),
            ),
        )
