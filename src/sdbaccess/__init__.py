"""
sdbaccess - SimpleDB Client Access Layer
==========================================

Async access to a schemaless, eventually-consistent attribute store:
domains hold items, items hold possibly multi-valued string attributes.

Architecture Layers (top to bottom):
    1. Facade          - SimpleDbClient
    2. Reconciliation  - UpdateReconciler (partial updates)
    3. Infrastructure  - ItemStore (one-call operations), conversion
    4. Integrations    - Backend bindings (in-memory, AWS via boto3)

Quick Start:
    >>> from sdbaccess import SimpleDbClient
    >>> async with SimpleDbClient() as client:
    ...     await client.update_item("user-1", {"Age": "36", "Nickname": ""})
"""

__version__ = "0.1.0"

from sdbaccess.core.models import Item, ItemAttribute
from sdbaccess.facade import SimpleDbClient

__all__ = ["SimpleDbClient", "Item", "ItemAttribute", "__version__"]
