"""Deferred creation of classification codes referenced during an import run.

Processors only record which ``(scope, domain, code)`` triples they used;
nothing is written until :meth:`TypeRegistry.flush` runs once at the end of
the run. Each scope is flushed in its own unit of work, so a failure for one
scope does not prevent the others from being created.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from catimport.domain.model import TypeItem
    from catimport.domain.ports import ImportUnitOfWorkFactory

log = logging.getLogger(__name__)


class TypeRegistry:
    def __init__(self, unit_of_work_factory: ImportUnitOfWorkFactory) -> None:
        self._unit_of_work_factory = unit_of_work_factory
        self._requests: dict[str, dict[str, set[str]]] = {}

    @property
    def pending(self) -> dict[str, dict[str, set[str]]]:
        """Requested codes grouped by scope and domain."""

        return {
            scope: {domain: set(codes) for domain, codes in domains.items()}
            for scope, domains in self._requests.items()
        }

    def request(self, scope: str, domain: str, code: str | None) -> None:
        """Remember that ``code`` must exist in ``scope`` for ``domain``."""

        if code is None or not code.strip():
            return
        self._requests.setdefault(scope, {}).setdefault(domain, set()).add(code.strip())

    def flush(self) -> int:
        """Create all missing requested types and return how many were created."""

        requests, self._requests = self._requests, {}
        created = 0
        for scope, domains in requests.items():
            try:
                created += self._flush_scope(scope, domains)
            except Exception:  # noqa: BLE001
                log.exception("Unable to create missing types for %s", scope)
        return created

    def _flush_scope(self, scope: str, domains: dict[str, set[str]]) -> int:
        codes = set().union(*domains.values())
        with self._unit_of_work_factory() as uow:
            repository = uow.repositories.types
            existing = {
                (item.domain, item.code)
                for item in repository.search(scope, domains=sorted(domains), codes=sorted(codes))
            }
            missing: list[TypeItem] = [
                repository.create(scope, domain, code)
                for domain in sorted(domains)
                for code in sorted(domains[domain])
                if (domain, code) not in existing
            ]
            if not missing:
                return 0
            repository.save(missing)
            uow.commit()

        log.info("Created %d %s types", len(missing), scope)
        return len(missing)
