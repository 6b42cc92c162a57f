"""Per-kind behaviour plugged into the list reconciler.

A kind knows which chunk key makes a chunk worth importing, how the natural
key of an association is built, which referenced item an incoming value
points to and how that item is filled from the chunk. Texts, media and prices
are owned by their association; attributes and links to catalogs, products
and suppliers reference shared items resolved through code lookups.
"""

from __future__ import annotations

import json
import mimetypes
import re
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, ClassVar, cast

from catimport.domain.importing.chunking import split_values
from catimport.domain.importing.errors import (
    ImportJobError,
    InvalidListConfigError,
    MissingReferenceWarning,
)
from catimport.domain.model import (
    Attribute,
    ListDomain,
    Media,
    Price,
    Text,
    assign,
    convert_fields,
)

if TYPE_CHECKING:
    from pathlib import Path

    from catimport.domain.importing.chunking import Chunk
    from catimport.domain.importing.lookups import AttributeLookup, CodeLookup
    from catimport.domain.model import FieldSpec, ListItem, ListsRefEntity, RefItem

LABEL_LENGTH = 255
DEFAULT_LIST_TYPE = "default"
_TAG_PATTERN = re.compile(r"<[^>]*>")

type NaturalKey = tuple[object, ...]


def make_label(value: str) -> str:
    """Return ``value`` without markup, truncated to the label length."""

    return _TAG_PATTERN.sub("", value).strip()[:LABEL_LENGTH]


def parse_list_config(key: str, value: str) -> dict[str, object]:
    """Parse a list item config given as JSON object or as ``name:value`` lines."""

    value = value.strip()
    if not value:
        return {}
    if value.startswith("{"):
        try:
            loaded = json.loads(value)
        except json.JSONDecodeError as exc:
            raise InvalidListConfigError(key=key, value=value) from exc
        if not isinstance(loaded, dict):
            raise InvalidListConfigError(key=key, value=value)
        return cast(dict[str, object], loaded)

    config: dict[str, object] = {}
    for line in filter(None, (line.strip() for line in value.split("\n"))):
        parts = line.split(":")
        if len(parts) != 2:  # noqa: PLR2004
            raise InvalidListConfigError(key=key, value=value)
        config[parts[0].strip()] = parts[1].strip()
    return config


@dataclass(slots=True)
class Entry:
    """Validated chunk, ready to be applied to a parent."""

    chunk: Chunk
    list_type: str
    ref_type: str
    list_fields: dict[str, object]
    ref_fields: dict[str, object]
    config: dict[str, object] | None
    values: list[str] = field(default_factory=lambda: [""])


class ListKind:
    """Base behaviour shared by all list kinds."""

    name: ClassVar[str]
    domain: ClassVar[ListDomain]
    required_key: ClassVar[str]
    ref_fields_spec: ClassVar[dict[str, FieldSpec]] = {}
    ref_prefix: ClassVar[str | None] = None
    split_key: ClassVar[str | None] = None
    default_ref_type: ClassVar[str | None] = "default"
    ordered: ClassVar[bool] = True
    owned: ClassVar[bool] = True

    @property
    def type_scope(self) -> str | None:
        """Scope of the referenced item's type codes, ``None`` for untyped items."""

        if self.default_ref_type is None:
            return None
        return f"{self.domain}/type"

    def has_required(self, chunk: Chunk) -> bool:
        value = chunk.get(self.required_key)
        return value is not None and value.strip() != ""

    def named_ref_type(self, chunk: Chunk) -> str:
        """Return the referenced item's type as given in ``chunk``, blank if absent."""

        if self.ref_prefix is None:
            return ""
        return chunk.get(f"{self.ref_prefix}.type", "").strip()

    def ref_type(self, chunk: Chunk) -> str:
        if self.default_ref_type is None:
            return ""
        return self.named_ref_type(chunk) or self.default_ref_type

    def ref_fields(self, chunk: Chunk) -> dict[str, object]:
        if self.ref_prefix is None:
            return {}
        converted = convert_fields(chunk, self.ref_prefix, self.ref_fields_spec)
        converted.pop("type", None)
        if self.split_key is not None:
            converted.pop(self.split_key.rsplit(".", 1)[1], None)
        return converted

    def values(self, chunk: Chunk, separator: str) -> list[str]:
        if self.split_key is None:
            return [""]
        return split_values(chunk.get(self.split_key), separator)

    def existing_key(self, list_item: ListItem) -> NaturalKey | None:
        raise NotImplementedError

    def incoming_key(self, entry: Entry, value: str, shared: RefItem | None) -> NaturalKey:
        raise NotImplementedError

    def resolve(self, entry: Entry, value: str, resource: str) -> RefItem | None:
        """Return the shared item ``value`` refers to; ``None`` for owned kinds.

        Raises :class:`MissingReferenceWarning` when the value has to be skipped.
        """

        _ = (entry, value, resource)
        return None

    def create_ref(self) -> RefItem:
        raise NotImplementedError

    def populate(
        self, ref: RefItem, entry: Entry, value: str, *, resource: str, created: bool
    ) -> None:
        _ = (ref, entry, value, resource, created)


class TextKind(ListKind):
    name = "text"
    domain = ListDomain.TEXT
    required_key = "text.content"
    ref_fields_spec = Text.FIELDS
    ref_prefix = Text.PREFIX
    default_ref_type = "name"

    def existing_key(self, list_item: ListItem) -> NaturalKey | None:
        text = list_item.ref_item
        if not isinstance(text, Text):
            return None
        return (text.content, text.language_id, text.type, list_item.type)

    def incoming_key(self, entry: Entry, value: str, shared: RefItem | None) -> NaturalKey:
        return (
            entry.ref_fields["content"],
            entry.ref_fields.get("language_id"),
            entry.ref_type,
            entry.list_type,
        )

    def create_ref(self) -> Text:
        return Text()

    def populate(
        self, ref: RefItem, entry: Entry, value: str, *, resource: str, created: bool
    ) -> None:
        text = cast(Text, ref)
        assign(text, entry.ref_fields)
        text.type = entry.ref_type
        text.domain = resource
        if "label" not in entry.ref_fields:
            text.label = make_label(text.content)


class MediaKind(ListKind):
    name = "media"
    domain = ListDomain.MEDIA
    required_key = "media.url"
    ref_fields_spec = Media.FIELDS
    ref_prefix = Media.PREFIX
    split_key = "media.url"

    def __init__(self, media_root: Path | None = None) -> None:
        self.media_root = media_root

    def existing_key(self, list_item: ListItem) -> NaturalKey | None:
        media = list_item.ref_item
        if not isinstance(media, Media):
            return None
        return (media.url, media.type, list_item.type)

    def incoming_key(self, entry: Entry, value: str, shared: RefItem | None) -> NaturalKey:
        return (value, entry.ref_type, entry.list_type)

    def resolve(self, entry: Entry, value: str, resource: str) -> RefItem | None:
        if self.media_root is not None and not _is_remote(value):
            if not (self.media_root / value.lstrip("/")).exists():
                raise MissingReferenceWarning(kind=self.name, code=value, reason="file not found")
        return None

    def create_ref(self) -> Media:
        return Media()

    def populate(
        self, ref: RefItem, entry: Entry, value: str, *, resource: str, created: bool
    ) -> None:
        media = cast(Media, ref)
        assign(media, entry.ref_fields)
        media.url = value
        media.type = entry.ref_type
        media.domain = resource
        if "mime_type" not in entry.ref_fields:
            media.mime_type = guess_mime_type(value) or media.mime_type
        if created and "label" not in entry.ref_fields:
            media.label = make_label(value)


class PriceKind(ListKind):
    name = "price"
    domain = ListDomain.PRICE
    required_key = "price.value"
    ref_fields_spec = Price.FIELDS
    ref_prefix = Price.PREFIX

    def has_required(self, chunk: Chunk) -> bool:
        return any((chunk.get(key) or "").strip() for key in ("price.value", "price.currencyid"))

    def existing_key(self, list_item: ListItem) -> NaturalKey | None:
        price = list_item.ref_item
        if not isinstance(price, Price):
            return None
        return (price.currency_id, price.type, list_item.type)

    def incoming_key(self, entry: Entry, value: str, shared: RefItem | None) -> NaturalKey:
        return (entry.ref_fields.get("currency_id", ""), entry.ref_type, entry.list_type)

    def create_ref(self) -> Price:
        return Price()

    def populate(
        self, ref: RefItem, entry: Entry, value: str, *, resource: str, created: bool
    ) -> None:
        price = cast(Price, ref)
        assign(price, entry.ref_fields)
        price.type = entry.ref_type
        price.domain = resource
        if "label" not in entry.ref_fields:
            currency = entry.chunk.get("price.currencyid", "").strip()
            amount = entry.chunk.get("price.value", "").strip()
            price.label = make_label(f"{currency} {amount}")


class AttributeKind(ListKind):
    name = "attribute"
    domain = ListDomain.ATTRIBUTE
    required_key = "attribute.code"
    ref_fields_spec = Attribute.FIELDS
    ref_prefix = Attribute.PREFIX
    split_key = "attribute.code"
    default_ref_type = ""
    ordered = False
    owned = False

    def __init__(self, lookup: AttributeLookup) -> None:
        self.lookup = lookup

    @property
    def type_scope(self) -> str | None:
        return "attribute/type"

    def existing_key(self, list_item: ListItem) -> NaturalKey | None:
        attribute = list_item.ref_item
        if not isinstance(attribute, Attribute):
            return None
        return (attribute.code, attribute.type, list_item.type)

    def incoming_key(self, entry: Entry, value: str, shared: RefItem | None) -> NaturalKey:
        return (value, entry.ref_type, entry.list_type)

    def resolve(self, entry: Entry, value: str, resource: str) -> RefItem | None:
        return self.lookup.get_or_create(value, entry.ref_type, domain=resource)

    def populate(
        self, ref: RefItem, entry: Entry, value: str, *, resource: str, created: bool
    ) -> None:
        assign(ref, entry.ref_fields)


class LinkKind(ListKind):
    """Link to a catalog, product or supplier identified by its code."""

    default_ref_type = None
    ordered = False
    owned = False

    def __init__(self, domain: ListDomain, lookup: CodeLookup[ListsRefEntity]) -> None:
        self.lookup = lookup
        self._domain = domain

    @property
    def name(self) -> str:  # type: ignore[override]
        return self._domain.value

    @property
    def domain(self) -> ListDomain:  # type: ignore[override]
        return self._domain

    @property
    def required_key(self) -> str:  # type: ignore[override]
        return f"{self._domain}.code"

    @property
    def split_key(self) -> str:  # type: ignore[override]
        return f"{self._domain}.code"

    def existing_key(self, list_item: ListItem) -> NaturalKey | None:
        return (list_item.ref_id, list_item.type)

    def incoming_key(self, entry: Entry, value: str, shared: RefItem | None) -> NaturalKey:
        if shared is None:
            raise ImportJobError(f'No {self.name} resolved for "{value}"')
        return (shared.id, entry.list_type)

    def resolve(self, entry: Entry, value: str, resource: str) -> RefItem | None:
        item = self.lookup.get(value)
        if item is None:
            raise MissingReferenceWarning(kind=self.name, code=value)
        return item


def guess_mime_type(url: str) -> str | None:
    mime_type, _encoding = mimetypes.guess_type(PurePosixPath(url.split("?", 1)[0]).name)
    return mime_type


def _is_remote(url: str) -> bool:
    return "://" in url or url.startswith("data:")
