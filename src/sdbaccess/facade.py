"""
sdbaccess.facade - SimpleDbClient Top-Level Facade
=====================================================

The single entry point that wires configuration, backend, store access and
update reconciliation together.

Architecture Context:
    ┌──────────────────────────────────────────────┐
    │              SimpleDbClient (Facade)          │
    │                                               │
    │  ┌─────────────────────────────────────────┐ │
    │  │  UpdateReconciler   (partial updates)    │ │
    │  └────────────────────┬────────────────────┘ │
    │  ┌────────────────────▼────────────────────┐ │
    │  │  ItemStore          (one-call ops)       │ │
    │  └────────────────────┬────────────────────┘ │
    │  ┌────────────────────▼────────────────────┐ │
    │  │  Backend            (memory / aws)       │ │
    │  └─────────────────────────────────────────┘ │
    └──────────────────────────────────────────────┘

Usage:
    >>> async with SimpleDbClient(SimpleDbConfig(domain_name="users")) as client:
    ...     await client.ensure_domain()
    ...     await client.create_item(Item.from_dict("user-1", {"Username": "JohnD"}))
    ...     await client.update_item("user-1", {"Age": "36"})
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

import structlog

from sdbaccess.core.config import SimpleDbConfig
from sdbaccess.core.models import Item, UpdateResult
from sdbaccess.infrastructure.conversion import new_item_id
from sdbaccess.infrastructure.item_store import ItemStore
from sdbaccess.integrations.backend.base import BaseSimpleDbBackend
from sdbaccess.integrations.backend.factory import create_backend
from sdbaccess.reconciliation.update_reconciler import Changes, UpdateReconciler


# =============================================================================
# Logger
# =============================================================================
logger = structlog.get_logger()


class SimpleDbClient:
    """Client for one SimpleDB domain.

    Lifecycle:
        1. ``SimpleDbClient(config)`` — backend built from config.backend
        2. ``await initialize()``   — mark ready (idempotent)
        3. item operations
        4. ``await close()``        — release the backend

    Or use the async context manager.

    Attributes:
        _config: Client configuration.
        _backend: Backend binding (from the factory unless injected).
        _store: ItemStore bound to config.domain_name.
        _reconciler: UpdateReconciler over _store.
        _initialized: Whether initialize() has been called.
    """

    def __init__(
        self,
        config: Optional[SimpleDbConfig] = None,
        *,
        backend: Optional[BaseSimpleDbBackend] = None,
        observer: Optional[Any] = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Client configuration. Defaults to SimpleDbConfig(),
                which reads SDB_* environment variables.
            backend: Optional pre-built backend; overrides config.backend.
            observer: Optional structlog-style logger for diagnostics.
        """
        self._config = config or SimpleDbConfig()
        self._backend = backend or create_backend(self._config.backend)
        self._store = ItemStore(self._backend, self._config.domain_name, observer=observer)
        self._reconciler = UpdateReconciler(self._store, observer=observer)
        self._initialized = False
        self._logger = (observer or logger).bind(
            component="simpledb_client",
            domain=self._config.domain_name,
        )

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def config(self) -> SimpleDbConfig:
        return self._config

    @property
    def backend(self) -> BaseSimpleDbBackend:
        return self._backend

    @property
    def store(self) -> ItemStore:
        return self._store

    @property
    def reconciler(self) -> UpdateReconciler:
        return self._reconciler

    @property
    def domain_name(self) -> str:
        return self._config.domain_name

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    # =========================================================================
    # Lifecycle Management
    # =========================================================================

    async def initialize(self) -> None:
        """Mark the client ready. Idempotent."""
        if self._initialized:
            self._logger.debug("client_already_initialized")
            return
        self._initialized = True
        self._logger.info("client_initialized", backend=self._backend.name)

    async def close(self) -> None:
        """Release the backend. Idempotent.

        The backend is built in __init__, so it is closed even when
        initialize() was never called.
        """
        await self._backend.close()
        if not self._initialized:
            self._logger.debug("client_closed_before_initialize")
            return
        self._initialized = False
        self._logger.info("client_closed")

    async def __aenter__(self) -> SimpleDbClient:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    # =========================================================================
    # Domain Management
    # =========================================================================

    async def ensure_domain(self) -> None:
        """Create the configured domain if the backend does not list it."""
        self._ensure_initialized()
        domains = await self._backend.list_domains()
        if self.domain_name not in domains:
            await self._backend.create_domain(self.domain_name)
            self._logger.info("domain_created")

    # =========================================================================
    # Item Operations
    # =========================================================================

    async def get_item(self, key: str, consistent_read: bool = False) -> Optional[Item]:
        self._ensure_initialized()
        return await self._store.get_item(key, consistent_read=consistent_read)

    async def get_all_items(self) -> list[Item]:
        self._ensure_initialized()
        return await self._store.get_all_items()

    async def query_items(self, expression: str, consistent_read: bool = False) -> list[Item]:
        self._ensure_initialized()
        return await self._store.query_items(expression, consistent_read=consistent_read)

    async def create_item(self, item: Item) -> int:
        self._ensure_initialized()
        return await self._store.create_item(item)

    async def batch_create_items(self, items: Iterable[Item]) -> None:
        self._ensure_initialized()
        await self._store.batch_create_items(items)

    async def delete_item(self, key: str) -> int:
        self._ensure_initialized()
        return await self._store.delete_item(key)

    async def batch_delete_items(self, keys: Iterable[str]) -> None:
        self._ensure_initialized()
        await self._store.batch_delete_items(keys)

    async def update_item(
        self,
        key: str,
        changes: Changes,
        remove_unspecified: bool = False,
    ) -> UpdateResult:
        """Partial update; see UpdateReconciler.update_item()."""
        self._ensure_initialized()
        return await self._reconciler.update_item(
            key, changes, remove_unspecified=remove_unspecified
        )

    @staticmethod
    def new_item_id() -> str:
        """A fresh 32-character hex item key."""
        return new_item_id()

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError(
                "SimpleDbClient has not been initialized. "
                "Call await client.initialize() or use 'async with SimpleDbClient() as client:'"
            )

    def __repr__(self) -> str:
        return (
            f"SimpleDbClient("
            f"domain={self.domain_name!r}, "
            f"backend={self._backend.name!r}, "
            f"initialized={self._initialized})"
        )
