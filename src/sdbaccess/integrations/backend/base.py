"""
sdbaccess.integrations.backend.base - Abstract Backend Interface
==================================================================

The contract every SimpleDB backend binding implements, plus the wire
records that cross it. The Store Access layer never talks to boto3 (or any
other transport) directly; it talks to a BaseSimpleDbBackend.

Architecture Context:
    ┌───────────────┐   put/get/select   ┌──────────────────────┐
    │   ItemStore   │ ─────────────────→ │  BaseSimpleDbBackend  │
    │               │ ←── wire records ─ │  (abstract)           │
    └───────────────┘                    └──────────┬───────────┘
                                                    │
                                         ┌──────────┴──────────┐
                                         │                     │
                                   ┌─────▼─────┐       ┌───────▼──────┐
                                   │ InMemory  │       │ AwsSimpleDb  │
                                   │ Backend   │       │ (boto3 sdb)  │
                                   └───────────┘       └──────────────┘

Wire Records:
    BackendAttribute      (name, value)                  ← reads
    ReplaceableAttribute  (name, value, replace)         → puts
    UpdateCondition       (name, value, exists)          → conditional puts
    DeletableAttribute    (name, value)                  → attribute deletes
    ReplaceableItem       (name, [ReplaceableAttribute]) → batch puts
    DeletableItem         (name, [DeletableAttribute]?)  → batch deletes
    BackendItem           (name, [BackendAttribute])     ← select
    SelectResponse        (status_code, items, next_token)

Failures:
    Bindings raise BackendError (or a subclass) for every failed call.
    Write calls return the HTTP-style status code the backend reported.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field


HTTP_OK = 200


# =============================================================================
# Wire Records
# =============================================================================
class BackendAttribute(BaseModel):
    """An attribute as returned by a read. Reads carry no replace flag."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: str


class ReplaceableAttribute(BaseModel):
    """An attribute as sent on a put."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: str
    replace: bool = False


class UpdateCondition(BaseModel):
    """Precondition for a put.

    With exists=True the put is applied only if attribute `name` currently
    holds `value`. With exists=False it is applied only if `name` is absent.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    value: Optional[str] = None
    exists: bool = True


class DeletableAttribute(BaseModel):
    """A stored name/value pair to remove."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: str


class ReplaceableItem(BaseModel):
    """One item of a batch put."""

    model_config = ConfigDict(frozen=True)

    name: str
    attributes: tuple[ReplaceableAttribute, ...] = Field(default_factory=tuple)


class DeletableItem(BaseModel):
    """One item of a batch delete. attributes=None removes the whole item."""

    model_config = ConfigDict(frozen=True)

    name: str
    attributes: Optional[tuple[DeletableAttribute, ...]] = None


class BackendItem(BaseModel):
    """An item as returned by select."""

    model_config = ConfigDict(frozen=True)

    name: str
    attributes: tuple[BackendAttribute, ...] = Field(default_factory=tuple)


class SelectResponse(BaseModel):
    """One page of select results.

    Attributes:
        status_code: HTTP-style status reported by the backend.
        items: Matching items on this page.
        next_token: Continuation token; None on the last page.
    """

    status_code: int = HTTP_OK
    items: list[BackendItem] = Field(default_factory=list)
    next_token: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status_code == HTTP_OK


# =============================================================================
# Abstract Backend
# =============================================================================
class BaseSimpleDbBackend(ABC):
    """Abstract base class for SimpleDB backend bindings.

    Every method is a single backend round-trip. Bindings do not retry,
    chunk batches, or swallow errors: batch-size limits are the backend's to
    enforce and surface as BackendError.

    Example:
        >>> class MyBackend(BaseSimpleDbBackend):
        ...     async def get_attributes(self, domain, key, *, consistent_read=False):
        ...         ...
    """

    name: str = "abstract"

    # =========================================================================
    # Abstract Methods (Subclasses MUST implement)
    # =========================================================================

    @abstractmethod
    async def get_attributes(
        self,
        domain: str,
        key: str,
        *,
        consistent_read: bool = False,
    ) -> list[BackendAttribute]:
        """Read every attribute of an item.

        Returns:
            The item's attributes; an empty list when the item does not exist.
        """
        ...

    @abstractmethod
    async def put_attributes(
        self,
        domain: str,
        key: str,
        attributes: Sequence[ReplaceableAttribute],
        *,
        condition: Optional[UpdateCondition] = None,
    ) -> int:
        """Write attributes to an item (creating it if needed).

        Raises:
            ConditionalCheckFailedError: If `condition` does not hold.
            BackendError: On any other failure.
        """
        ...

    @abstractmethod
    async def delete_attributes(
        self,
        domain: str,
        key: str,
        attributes: Optional[Sequence[DeletableAttribute]] = None,
    ) -> int:
        """Remove listed name/value pairs, or the whole item when None."""
        ...

    @abstractmethod
    async def batch_put_attributes(
        self,
        domain: str,
        items: Sequence[ReplaceableItem],
    ) -> int:
        """Write several items in one call."""
        ...

    @abstractmethod
    async def batch_delete_attributes(
        self,
        domain: str,
        items: Sequence[DeletableItem],
    ) -> int:
        """Remove several items (or attribute subsets of them) in one call."""
        ...

    @abstractmethod
    async def select(
        self,
        expression: str,
        *,
        consistent_read: bool = False,
        next_token: Optional[str] = None,
    ) -> SelectResponse:
        """Run a select expression in the backend's own dialect.

        The expression names its domain; nothing is parsed locally.
        """
        ...

    # =========================================================================
    # Domain Management (Subclasses MUST implement)
    # =========================================================================

    @abstractmethod
    async def create_domain(self, domain: str) -> int:
        """Create a domain. Creating an existing domain is a no-op."""
        ...

    @abstractmethod
    async def delete_domain(self, domain: str) -> int:
        """Delete a domain and everything in it."""
        ...

    @abstractmethod
    async def list_domains(self) -> list[str]:
        """Names of all domains visible to this backend."""
        ...

    # =========================================================================
    # Optional Methods (Subclasses CAN override)
    # =========================================================================

    async def close(self) -> None:
        """Release transport resources."""
        return None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"
