"""XML record source built on defusedxml."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from xml.etree.ElementTree import ParseError

import defusedxml.ElementTree as DefusedET
from defusedxml import DefusedXmlException

from catimport.domain.importing.errors import ImportJobError

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path
    from xml.etree.ElementTree import Element

log = logging.getLogger(__name__)


class XmlSourceError(ImportJobError):
    """Raised when an XML import file cannot be parsed."""


def iter_elements(path: Path, tag: str) -> Iterator[Element]:
    """Yield the ``tag`` children of the document element one by one.

    Only direct children of the document element are yielded, so items nested
    in ``<lists>`` with the same tag are left to their parent item. Elements are
    yielded complete; the consumer clears them once they are no longer needed.
    """

    depth = 0
    try:
        for event, element in DefusedET.iterparse(str(path), events=("start", "end")):
            if event == "start":
                depth += 1
                continue
            depth -= 1
            if depth == 1 and element.tag == tag:
                yield element
    except (ParseError, DefusedXmlException) as exc:
        raise XmlSourceError(f"Unable to read {path}: {exc}") from exc


def parse_document(path: Path) -> Element:
    """Parse a whole XML file and return its document element."""

    try:
        root = DefusedET.parse(str(path)).getroot()
    except (ParseError, DefusedXmlException) as exc:
        raise XmlSourceError(f"Unable to read {path}: {exc}") from exc
    log.debug("Parsed %s (<%s>)", path, root.tag)
    return root
