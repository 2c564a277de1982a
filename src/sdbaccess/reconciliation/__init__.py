"""
sdbaccess.reconciliation - Partial Update Reconciliation
==========================================================

    - plan_update():      pure diff of stored attributes vs requested changes
    - UpdateReconciler:   consistent read → conditional put → attribute delete
"""

from sdbaccess.reconciliation.update_reconciler import (
    UpdateReconciler,
    normalize_changes,
    plan_update,
)

__all__ = [
    "UpdateReconciler",
    "normalize_changes",
    "plan_update",
]
