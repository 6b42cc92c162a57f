"""
Base building blocks:
identity for every persisted item.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID, uuid4


def new_id() -> UUID:
    return uuid4()


@dataclass(eq=False, kw_only=True)
class Entity:
    """Internal identity exists immediately in the domain, before any save."""

    id: UUID = field(default_factory=new_id)
