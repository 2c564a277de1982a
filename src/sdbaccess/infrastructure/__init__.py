"""
sdbaccess.infrastructure - Store Access Layer
===============================================

    ┌─────────────── RECONCILIATION ──────────────────┐
    │  UpdateReconciler                                │
    └─────────────────────┬───────────────────────────┘
                          │
    ┌─────────────── INFRASTRUCTURE ──────────────────┐
    │  ItemStore      one-call item operations         │
    │  conversion     wire records ↔ Item/ItemAttribute│
    └─────────────────────┬───────────────────────────┘
                          │
    ┌─────────────── INTEGRATIONS ────────────────────┐
    │  BaseSimpleDbBackend (memory / aws)              │
    └──────────────────────────────────────────────────┘
"""

from sdbaccess.infrastructure.conversion import new_item_id
from sdbaccess.infrastructure.item_store import ItemStore

__all__ = [
    "ItemStore",
    "new_item_id",
]
