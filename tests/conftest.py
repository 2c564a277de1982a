"""
Shared Test Fixtures for sdbaccess
=====================================

Fixtures are organized by layer:

    1. Configuration
    2. Backend (in-memory, with a "users" domain)
    3. Store access and reconciliation
    4. Facade
    5. Sample items
"""

from __future__ import annotations

from typing import Any

import pytest
import structlog

from sdbaccess.core.config import SimpleDbConfig
from sdbaccess.core.models import Item
from sdbaccess.facade import SimpleDbClient
from sdbaccess.infrastructure.item_store import ItemStore
from sdbaccess.integrations.backend.memory import InMemorySimpleDbBackend
from sdbaccess.reconciliation.update_reconciler import UpdateReconciler


DOMAIN = "users"


# =============================================================================
# Configuration
# =============================================================================

@pytest.fixture
def config():
    """Config pointing at the in-memory backend and the 'users' domain."""
    return SimpleDbConfig(domain_name=DOMAIN)


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Undo any structlog configuration a test applied."""
    yield
    structlog.reset_defaults()


# =============================================================================
# Backend
# =============================================================================

@pytest.fixture
def backend():
    """Fresh InMemorySimpleDbBackend with an empty 'users' domain."""
    return InMemorySimpleDbBackend(domains=[DOMAIN])


# =============================================================================
# Store Access & Reconciliation
# =============================================================================

@pytest.fixture
def store(backend):
    """ItemStore over the in-memory backend."""
    return ItemStore(backend, DOMAIN)


@pytest.fixture
def reconciler(store):
    """UpdateReconciler over the store."""
    return UpdateReconciler(store)


# =============================================================================
# Facade
# =============================================================================

@pytest.fixture
async def client(config, backend):
    """Initialized SimpleDbClient sharing the in-memory backend."""
    async with SimpleDbClient(config, backend=backend) as c:
        yield c


# =============================================================================
# Sample Items
# =============================================================================

@pytest.fixture
def john():
    """The first user the walkthrough creates."""
    return Item.from_dict(
        "test-user-1",
        {"Username": "JohnD", "FirstName": "John", "LastName": "Doe", "Age": "35"},
    )


def _users(start: int, count: int) -> list[Item]:
    return [
        Item.from_dict(
            f"test-item-{i}",
            {
                "Username": f"test-username-{i}",
                "FirstName": f"test-name-{i}",
                "LastName": f"test-lastname-{i}",
                "Age": str(20 + i),
            },
        )
        for i in range(start, start + count)
    ]


@pytest.fixture
def make_users():
    """Factory for test-item-<n> users numbered from `start`."""
    return _users


class RecordingObserver:
    """structlog-shaped logger that records events instead of printing."""

    def __init__(self) -> None:
        self.events: list[tuple[str, str, dict[str, Any]]] = []
        self.context: dict[str, Any] = {}

    def bind(self, **context: Any) -> "RecordingObserver":
        self.context.update(context)
        return self

    def _record(self, level: str, event: str, **kw: Any) -> None:
        self.events.append((level, event, kw))

    def debug(self, event: str, **kw: Any) -> None:
        self._record("debug", event, **kw)

    def info(self, event: str, **kw: Any) -> None:
        self._record("info", event, **kw)

    def warning(self, event: str, **kw: Any) -> None:
        self._record("warning", event, **kw)

    def error(self, event: str, **kw: Any) -> None:
        self._record("error", event, **kw)

    def names(self, level: str | None = None) -> list[str]:
        return [e for lvl, e, _ in self.events if level is None or lvl == level]


@pytest.fixture
def observer():
    """Fresh RecordingObserver."""
    return RecordingObserver()
