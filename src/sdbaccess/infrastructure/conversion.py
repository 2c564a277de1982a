"""
sdbaccess.infrastructure.conversion - Wire ↔ Domain Conversion
================================================================

Pure mappings between the backend's wire records and the domain model.
No I/O, no errors, no side effects.

    read path:   BackendAttribute / BackendItem → ItemAttribute / Item
    write path:  ItemAttribute → ReplaceableAttribute / DeletableAttribute

Reads carry no replace flag, so attributes coming back from the backend
keep ItemAttribute's default mode.
"""

from __future__ import annotations

from typing import Iterable
from uuid import uuid4

from sdbaccess.core.models import Item, ItemAttribute
from sdbaccess.integrations.backend.base import (
    BackendAttribute,
    BackendItem,
    DeletableAttribute,
    ReplaceableAttribute,
    ReplaceableItem,
)


def to_domain_attributes(attributes: Iterable[BackendAttribute]) -> list[ItemAttribute]:
    return [ItemAttribute(name=a.name, value=a.value) for a in attributes]


def to_backend_attributes(attributes: Iterable[ItemAttribute]) -> list[ReplaceableAttribute]:
    return [
        ReplaceableAttribute(name=a.name, value=a.value, replace=a.replace)
        for a in attributes
    ]


def to_deletable_attributes(attributes: Iterable[ItemAttribute]) -> list[DeletableAttribute]:
    return [DeletableAttribute(name=a.name, value=a.value) for a in attributes]


def to_domain_item(item: BackendItem) -> Item:
    return Item(key=item.name, attributes=tuple(to_domain_attributes(item.attributes)))


def to_domain_items(items: Iterable[BackendItem]) -> list[Item]:
    return [to_domain_item(i) for i in items]


def to_replaceable_item(item: Item) -> ReplaceableItem:
    return ReplaceableItem(name=item.key, attributes=tuple(to_backend_attributes(item.attributes)))


def new_item_id() -> str:
    """A random 128-bit identifier as 32 lowercase hex characters."""
    return uuid4().hex
