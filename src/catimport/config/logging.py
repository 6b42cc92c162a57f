"""Console logging for import runs."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: int | str = logging.INFO, *, force: bool = False) -> None:
    """Send log records of ``level`` and above to stderr.

    ``level`` is a :mod:`logging` level or its name, as read from the ``log_level``
    configuration key. Pass ``force=True`` to replace handlers installed earlier,
    e.g. when the configuration changes the level after startup.
    """

    if isinstance(level, str):
        level = logging.getLevelNamesMapping()[level.upper()]
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%H:%M:%S", force=force)
    # SQL statements stay hidden at DEBUG
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
