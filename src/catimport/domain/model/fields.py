"""Conversion of raw ``prefix.name`` import values onto entity attributes.

Every importable entity declares a ``FIELDS`` table mapping the key suffix used
in import files (``"languageid"``) to the attribute it fills (``language_id``)
and a converter for the raw string. Keys that are absent from the raw values
leave the attribute untouched.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

type Converter = Callable[[str], object]


class InvalidFieldValue(ValueError):
    """Raised when a raw import value cannot be converted."""

    def __init__(self, key: str, value: str, reason: str) -> None:
        super().__init__(f'Invalid value "{value}" for "{key}": {reason}')
        self.key = key
        self.value = value


def to_text(value: str) -> str:
    return value.strip()


def to_optional_text(value: str) -> str | None:
    return value.strip() or None


def to_int(value: str) -> int:
    return int(value.strip())


def to_float(value: str) -> float:
    return float(value.strip())


def to_decimal(value: str) -> Decimal:
    try:
        return Decimal(value.strip())
    except InvalidOperation as exc:
        raise ValueError("not a decimal number") from exc


@dataclass(frozen=True, slots=True)
class FieldSpec:
    attr: str
    convert: Converter = to_text


def convert_fields(
    values: Mapping[str, str],
    prefix: str,
    spec: Mapping[str, FieldSpec],
) -> dict[str, object]:
    """Return ``attribute -> converted value`` for all ``prefix.*`` keys present."""

    converted: dict[str, object] = {}
    for name, field_spec in spec.items():
        key = f"{prefix}.{name}"
        if key not in values:
            continue
        raw = values[key]
        try:
            converted[field_spec.attr] = field_spec.convert(raw)
        except ValueError as exc:
            raise InvalidFieldValue(key, raw, str(exc)) from exc
    return converted


def assign(target: object, converted: Mapping[str, object]) -> None:
    for attr, value in converted.items():
        setattr(target, attr, value)
