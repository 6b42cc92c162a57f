"""Conversion of XML item nodes into chunks.

Item nodes look like this::

    <productitem ref="P-1">
      <product.label>Shirt</product.label>
      <lists>
        <text>
          <textitem lists.type="default">
            <text.type>name</text.type>
            <text.content>Blue shirt</text.content>
          </textitem>
        </text>
        <catalog>
          <catalogitem ref="shirts" lists.type="promotion"/>
        </catalog>
      </lists>
      <property>
        <propertyitem>
          <product.property.type>size</product.property.type>
          <product.property.value>XL</product.property.value>
        </propertyitem>
      </property>
    </productitem>

Child elements keep their (already prefixed) tag as key. XML attributes named
``lists.*`` belong to the association and are prefixed with the resource,
``ref`` names the code of the item and any other attribute is prefixed with
the item's domain.
"""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator
    from xml.etree.ElementTree import Element

    from catimport.domain.importing.chunking import Chunk

CONTAINER_TAGS = frozenset({"lists", "property", "catalog"})


def element_values(node: Element) -> Chunk:
    """Return ``tag -> text`` of the leaf children of ``node``."""

    return {
        child.tag: (child.text or "").strip()
        for child in node
        if child.tag not in CONTAINER_TAGS and len(child) == 0
    }


def item_values(node: Element, resource: str) -> Chunk:
    """Return the fields of the parent item itself, including its ``ref`` code."""

    prefix = f"{resource}."
    values = {key: value for key, value in element_values(node).items() if key.startswith(prefix)}
    if (code := node.get("ref")) is not None:
        values[f"{resource}.code"] = code.strip()
    return values


def list_nodes(node: Element, domain: str) -> Iterator[Element]:
    lists = node.find("lists")
    if lists is None:
        return
    container = lists.find(domain)
    if container is None:
        return
    yield from container.iterfind(f"{domain}item")


def list_chunks(node: Element, resource: str, domain: str) -> list[Chunk]:
    """Return one chunk per ``lists/<domain>/<domain>item`` child of ``node``."""

    chunks: list[Chunk] = []
    for item in list_nodes(node, domain):
        chunk: Chunk = {}
        for name, value in item.attrib.items():
            if name == "ref":
                chunk[f"{domain}.code"] = value
            elif name.startswith("lists."):
                chunk[f"{resource}.{name}"] = value
            else:
                chunk[f"{domain}.{name}"] = value
        chunk.update(element_values(item))
        chunks.append(chunk)
    return chunks


def property_chunks(node: Element) -> list[Chunk]:
    container = node.find("property")
    if container is None:
        return []
    return [element_values(item) for item in container.iterfind("propertyitem")]


class XmlChunks:
    """Chunk source reading one kind from an item node."""

    def __init__(self, kind: str, resource: str) -> None:
        self.kind = kind
        self.resource = resource

    def __call__(self, node: Element) -> list[Chunk]:
        if self.kind == "property":
            return property_chunks(node)
        return list_chunks(node, self.resource, self.kind)


def child_catalog_nodes(node: Element) -> list[Element]:
    """Return the ``catalog/catalogitem`` children of a catalog tree node."""

    container = node.find("catalog")
    if container is None:
        return []
    return list(container.iterfind("catalogitem"))


def collect_codes(root: Element) -> dict[str, set[str]]:
    """Collect catalog codes of the tree and all linked codes per domain."""

    codes: dict[str, set[str]] = defaultdict(set)
    for node in _tree_nodes(root):
        if (code := node.get("ref")) is not None:
            codes["catalog"].add(code.strip())
    for lists in root.iter("lists"):
        for container in lists:
            for item in container.iterfind(f"{container.tag}item"):
                if (code := item.get("ref")) is not None:
                    codes[container.tag].add(code.strip())
    return dict(codes)


def top_catalog_nodes(root: Element) -> list[Element]:
    """Return the tree roots: ``root`` itself or its ``catalogitem`` children."""

    if root.tag == "catalogitem":
        return [root]
    return list(root.iterfind("catalogitem"))


def _tree_nodes(root: Element) -> list[Element]:
    nodes: list[Element] = []
    pending = top_catalog_nodes(root)
    while pending:
        node = pending.pop()
        nodes.append(node)
        pending.extend(child_catalog_nodes(node))
    return nodes
