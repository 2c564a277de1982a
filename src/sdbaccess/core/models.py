"""
sdbaccess.core.models - Attribute and Item Models
===================================================

The domain value types every layer speaks in. They are frozen Pydantic
models: equality is structural and nothing mutates an item after creation.
Adding an attribute yields a new Item.

Model Hierarchy:
    ItemAttribute → one (name, value, write intent) triple
    Item          → key + ordered attributes (names may repeat)
    UpdatePlan    → upserts and deletes computed for a partial update
    UpdateResult  → what update_item() did

Sentinel:
    Every item created through this package carries Exists = "1". The
    update path uses it as an existence guard on its conditional write.
    Reads return it as stored; Item.without_sentinel() strips it for
    callers that only want domain data.
"""

from __future__ import annotations

from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field

from sdbaccess.core.enums import ReplaceMode, UpdateStatus


# =============================================================================
# Sentinel
# =============================================================================
EXISTS_ATTRIBUTE = "Exists"
EXISTS_VALUE = "1"


# =============================================================================
# Item Attribute
# =============================================================================
class ItemAttribute(BaseModel):
    """A single named value on an item.

    Attributes:
        name: Attribute name. Not unique within an item.
        value: Attribute value. The store is untyped; everything is a string.
        mode: Whether a write replaces existing values of the name or adds
            another value. Defaults to REPLACE_VALUE.

    Example:
        >>> ItemAttribute(name="Username", value="JohnD")
        >>> ItemAttribute.of("Tag", "blue", replace=False)
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Attribute name")
    value: str = Field(description="Attribute value")
    mode: ReplaceMode = Field(
        default=ReplaceMode.REPLACE_VALUE,
        description="Write intent: replace existing values or add a new one",
    )

    @classmethod
    def of(cls, name: str, value: str, replace: bool = True) -> ItemAttribute:
        """Build an attribute from a wire-style boolean replace flag."""
        return cls(name=name, value=value, mode=ReplaceMode.from_flag(replace))

    @property
    def replace(self) -> bool:
        return self.mode.replace

    @property
    def is_sentinel(self) -> bool:
        return self.name == EXISTS_ATTRIBUTE


def sentinel_attribute() -> ItemAttribute:
    """The Exists = "1" marker appended to created items."""
    return ItemAttribute(name=EXISTS_ATTRIBUTE, value=EXISTS_VALUE)


# =============================================================================
# Item
# =============================================================================
class Item(BaseModel):
    """An item: a unique key and its attributes.

    Attribute order is preserved as supplied (or as the backend returned
    it). Multi-valued attributes appear as repeated names.

    Example:
        >>> item = Item(
        ...     key="user-1",
        ...     attributes=[ItemAttribute(name="Username", value="JohnD")],
        ... )
        >>> created = item.with_attributes(sentinel_attribute())
        >>> item.attributes is created.attributes  # False, item untouched
    """

    model_config = ConfigDict(frozen=True)

    key: str = Field(description="Unique item name within the domain")
    attributes: tuple[ItemAttribute, ...] = Field(
        default_factory=tuple,
        description="Ordered attributes; names may repeat",
    )

    @classmethod
    def from_dict(cls, key: str, values: dict[str, str]) -> Item:
        """Build an item from a plain name → value mapping."""
        return cls(
            key=key,
            attributes=tuple(ItemAttribute(name=n, value=v) for n, v in values.items()),
        )

    def names(self) -> list[str]:
        """Distinct attribute names in first-seen order."""
        return list(dict.fromkeys(a.name for a in self.attributes))

    def values(self, name: str) -> list[str]:
        """Every value stored under `name`."""
        return [a.value for a in self.attributes if a.name == name]

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Last value stored under `name`, or `default`."""
        found = self.values(name)
        return found[-1] if found else default

    def to_dict(self) -> dict[str, str]:
        """Name → value mapping; for repeated names the last value wins."""
        return {a.name: a.value for a in self.attributes}

    def with_attributes(self, *attributes: ItemAttribute) -> Item:
        """Return a new Item with `attributes` appended."""
        return self.model_copy(update={"attributes": self.attributes + tuple(attributes)})

    def without_sentinel(self) -> Item:
        """Return a new Item without the Exists marker."""
        return self.model_copy(
            update={"attributes": tuple(a for a in self.attributes if not a.is_sentinel)}
        )

    @property
    def has_sentinel(self) -> bool:
        return EXISTS_VALUE in self.values(EXISTS_ATTRIBUTE)

    def __len__(self) -> int:
        return len(self.attributes)


# =============================================================================
# Update Plan & Result
# =============================================================================
class UpdatePlan(BaseModel):
    """Writes computed for one partial update.

    Attributes:
        upserts: Attributes to put, in the caller's order. Mode is
            REPLACE_VALUE when the name already exists, NEW_VALUE otherwise.
        deletes: Stored name/value pairs to remove. Every stored value of a
            removed name is listed.
    """

    model_config = ConfigDict(frozen=True)

    upserts: tuple[ItemAttribute, ...] = Field(default_factory=tuple)
    deletes: tuple[ItemAttribute, ...] = Field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not self.upserts and not self.deletes

    def delete_names(self) -> list[str]:
        return list(dict.fromkeys(a.name for a in self.deletes))


class UpdateResult(BaseModel):
    """What UpdateReconciler.update_item() did.

    Attributes:
        key: The targeted item.
        status: UPDATED, or NOT_FOUND when the item had no attributes (no
            write was issued).
        plan: The applied plan; None for NOT_FOUND.
    """

    model_config = ConfigDict(frozen=True)

    key: str
    status: UpdateStatus
    plan: Optional[UpdatePlan] = None

    @property
    def updated(self) -> bool:
        return self.status is UpdateStatus.UPDATED


def index_by_name(attributes: Iterable[ItemAttribute]) -> dict[str, ItemAttribute]:
    """Index attributes by name; on repeated names the last one wins."""
    return {a.name: a for a in attributes}
