"""
sdbaccess.infrastructure.item_store - Store Access Component
==============================================================

One-call mappings of item operations onto the backend contract for a
single domain. ItemStore owns nothing but the domain name; all item state
lives in the backend.

Architecture Context:
    ┌──────────────────┐                 ┌────────────┐       ┌──────────────┐
    │ UpdateReconciler │ ── read/write → │ ItemStore  │ ───→  │   Backend    │
    │ SimpleDbClient   │                 │ (+convert) │       │  (abstract)  │
    └──────────────────┘                 └────────────┘       └──────────────┘

Operations:
    get_item(key)             → Item, or None when no attributes come back
    get_all_items()           → select * from `<domain>` (all pages)
    query_items(expression)   → verbatim select passthrough (all pages)
    create_item(item)         → unconditional put of item + sentinel
    batch_create_items(items) → one batch put, sentinel on each item
    delete_item(key)          → whole-item delete
    batch_delete_items(keys)  → one batch of whole-item deletes

Sentinel:
    Created items get Exists = "1" appended. The caller's Item is never
    modified; a new Item value is built and written.

Failures:
    BackendError from the binding is logged as "backend_call_failed" on the
    injected (or default) structlog logger and re-raised unchanged. A select
    page with a non-200 status raises BackendError(kind="UnexpectedStatus")
    instead of looking like an empty result.

Batches are not chunked here: exceeding the backend's batch limit raises
BackendError for the whole call.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterable, Iterator, Optional, Sequence

import structlog

from sdbaccess.core.enums import BackendOperation
from sdbaccess.core.exceptions import BackendError
from sdbaccess.core.models import (
    EXISTS_ATTRIBUTE,
    EXISTS_VALUE,
    Item,
    ItemAttribute,
    sentinel_attribute,
)
from sdbaccess.infrastructure.conversion import (
    to_backend_attributes,
    to_deletable_attributes,
    to_domain_attributes,
    to_domain_items,
    to_replaceable_item,
)
from sdbaccess.integrations.backend.base import (
    HTTP_OK,
    BaseSimpleDbBackend,
    DeletableItem,
    UpdateCondition,
)


# =============================================================================
# Logger
# =============================================================================
logger = structlog.get_logger()


def quote_name(name: str) -> str:
    """Backtick-quote a domain or attribute name for select expressions."""
    return "`" + name.replace("`", "``") + "`"


def existence_condition() -> UpdateCondition:
    """Condition asserting the item still carries Exists = "1"."""
    return UpdateCondition(name=EXISTS_ATTRIBUTE, value=EXISTS_VALUE, exists=True)


class ItemStore:
    """Store access for one SimpleDB domain.

    Attributes:
        _backend: The backend binding every call goes through.
        _domain: Domain name this store operates against.
        _logger: structlog logger, or the bound logger passed as `observer`.

    Example:
        >>> store = ItemStore(InMemorySimpleDbBackend(domains=["users"]), "users")
        >>> await store.create_item(Item.from_dict("user-1", {"Username": "JohnD"}))
        >>> (await store.get_item("user-1")).to_dict()
        {'Username': 'JohnD', 'Exists': '1'}
    """

    def __init__(
        self,
        backend: BaseSimpleDbBackend,
        domain_name: str,
        *,
        observer: Optional[Any] = None,
    ) -> None:
        self._backend = backend
        self._domain = domain_name
        self._logger = (observer or logger).bind(component="item_store", domain=domain_name)

    @property
    def domain_name(self) -> str:
        return self._domain

    @property
    def backend(self) -> BaseSimpleDbBackend:
        return self._backend

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_attributes(self, key: str, consistent_read: bool = False) -> list[ItemAttribute]:
        """Every attribute stored on `key` (empty when the item is absent)."""
        with self._logged_failure(BackendOperation.GET_ATTRIBUTES, key=key):
            attributes = await self._backend.get_attributes(
                self._domain, key, consistent_read=consistent_read
            )
        return to_domain_attributes(attributes)

    async def get_item(self, key: str, consistent_read: bool = False) -> Optional[Item]:
        """Read one item.

        Args:
            key: Item name.
            consistent_read: Ask the backend for a strongly consistent read.

        Returns:
            The Item, or None when the backend returned zero attributes.
            Zero attributes is the only not-found signal there is.
        """
        attributes = await self.get_attributes(key, consistent_read=consistent_read)
        if not attributes:
            self._logger.debug("item_not_found", key=key)
            return None
        return Item(key=key, attributes=tuple(attributes))

    async def get_all_items(self) -> list[Item]:
        """Every item in the domain via `select * from <domain>`."""
        return await self._select_all(f"select * from {quote_name(self._domain)}")

    async def query_items(self, expression: str, consistent_read: bool = False) -> list[Item]:
        """Run a select expression verbatim.

        The expression is not parsed or validated here; a malformed one
        comes back from the backend as BackendError.
        """
        return await self._select_all(expression, consistent_read=consistent_read)

    # =========================================================================
    # Creates
    # =========================================================================

    def with_sentinel(self, item: Item) -> Item:
        """A copy of `item` with Exists = "1" appended."""
        return item.with_attributes(sentinel_attribute())

    async def create_item(self, item: Item) -> int:
        """Write a new item (or overwrite one) with the sentinel attached.

        Returns:
            The status code reported by the backend.
        """
        created = self.with_sentinel(item)
        with self._logged_failure(BackendOperation.PUT_ATTRIBUTES, key=item.key):
            status = await self._backend.put_attributes(
                self._domain,
                created.key,
                to_backend_attributes(created.attributes),
            )
        self._logger.info(
            "item_created",
            key=item.key,
            attribute_count=len(created),
            status_code=status,
        )
        return status

    async def batch_create_items(self, items: Iterable[Item]) -> None:
        """Create several items in a single backend batch call."""
        replaceable = [to_replaceable_item(self.with_sentinel(i)) for i in items]
        with self._logged_failure(BackendOperation.BATCH_PUT_ATTRIBUTES, count=len(replaceable)):
            await self._backend.batch_put_attributes(self._domain, replaceable)
        self._logger.info("items_batch_created", count=len(replaceable))

    # =========================================================================
    # Attribute-Level Writes (used by the update reconciler)
    # =========================================================================

    async def put_attributes(
        self,
        key: str,
        attributes: Sequence[ItemAttribute],
        *,
        condition: Optional[UpdateCondition] = None,
    ) -> int:
        with self._logged_failure(BackendOperation.PUT_ATTRIBUTES, key=key):
            return await self._backend.put_attributes(
                self._domain,
                key,
                to_backend_attributes(attributes),
                condition=condition,
            )

    async def delete_attributes(self, key: str, attributes: Sequence[ItemAttribute]) -> int:
        """Remove exactly the listed name/value pairs from `key`."""
        with self._logged_failure(BackendOperation.DELETE_ATTRIBUTES, key=key):
            return await self._backend.delete_attributes(
                self._domain,
                key,
                to_deletable_attributes(attributes),
            )

    # =========================================================================
    # Deletes
    # =========================================================================

    async def delete_item(self, key: str) -> int:
        """Remove an item and all of its attributes."""
        with self._logged_failure(BackendOperation.DELETE_ATTRIBUTES, key=key):
            status = await self._backend.delete_attributes(self._domain, key)
        self._logger.info("item_deleted", key=key, status_code=status)
        return status

    async def batch_delete_items(self, keys: Iterable[str]) -> None:
        """Remove several whole items in one backend batch call."""
        deletable = [DeletableItem(name=k, attributes=None) for k in keys]
        with self._logged_failure(BackendOperation.BATCH_DELETE_ATTRIBUTES, count=len(deletable)):
            await self._backend.batch_delete_attributes(self._domain, deletable)
        self._logger.info("items_batch_deleted", count=len(deletable))

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    async def _select_all(self, expression: str, consistent_read: bool = False) -> list[Item]:
        items: list[Item] = []
        next_token: Optional[str] = None
        pages = 0
        while True:
            with self._logged_failure(BackendOperation.SELECT, expression=expression):
                response = await self._backend.select(
                    expression,
                    consistent_read=consistent_read,
                    next_token=next_token,
                )
                if response.status_code != HTTP_OK:
                    raise BackendError(
                        message=f"Select returned status {response.status_code}",
                        operation=BackendOperation.SELECT,
                        kind="UnexpectedStatus",
                        status_code=response.status_code,
                        domain=self._domain,
                        details={"expression": expression},
                    )
            items.extend(to_domain_items(response.items))
            pages += 1
            next_token = response.next_token
            if not next_token:
                break

        self._logger.debug("select_completed", item_count=len(items), pages=pages)
        return items

    @contextmanager
    def _logged_failure(self, operation: BackendOperation, **context: Any) -> Iterator[None]:
        """Log a BackendError raised inside the block, then re-raise it."""
        try:
            yield
        except BackendError as e:
            self._logger.error(
                "backend_call_failed",
                operation=operation.value,
                kind=e.kind,
                status_code=e.status_code,
                error=e.message,
                **context,
            )
            raise

    def __repr__(self) -> str:
        return f"ItemStore(domain={self._domain!r}, backend={self._backend!r})"
