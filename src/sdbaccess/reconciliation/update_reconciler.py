"""
sdbaccess.reconciliation.update_reconciler - Partial Update Reconciliation
============================================================================

Turns "set these attributes, drop those" into the smallest pair of backend
writes for one item, and refuses to touch items that do not exist.

Change Convention:
    {"Age": "36"}   → set Age to "36"
    {"Age": ""}     → delete Age (a no-op when Age is already absent)

Flow:
    ┌─────────────┐  consistent read  ┌───────────┐
    │ update_item │ ────────────────→ │ ItemStore │   zero attributes?
    │             │ ←──── attrs ───── │           │   → NOT_FOUND, no writes
    │             │                   │           │
    │ plan_update │  (pure diff)      │           │
    │             │                   │           │
    │  step 6     │ ── conditional ─→ │  put      │   Exists must equal "1"
    │  step 7     │ ── attr delete ─→ │  delete   │   only if plan has deletes
    └─────────────┘                   └───────────┘

Guarantees and Non-Guarantees:
    - The read is always strongly consistent.
    - An update never creates an item.
    - The Exists sentinel is never planned for deletion or overwrite;
      changes naming it are ignored.
    - The conditional put rejects the write if the item was deleted after
      the read. It does NOT detect another updater changing attributes in
      between: concurrent updates of one key are last-writer-wins per
      attribute. Callers needing serialization must lock externally.
    - The put and the delete are separate calls. If the put lands and the
      delete fails, PartialUpdateError is raised; the item then carries the
      new values plus the attributes that should have been removed. Nothing
      is rolled back. retry_deletes() re-issues only the delete.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Optional, Union

import structlog

from sdbaccess.core.enums import ReplaceMode, UpdateStatus
from sdbaccess.core.exceptions import BackendError, PartialUpdateError
from sdbaccess.core.models import (
    EXISTS_ATTRIBUTE,
    ItemAttribute,
    UpdatePlan,
    UpdateResult,
    index_by_name,
    sentinel_attribute,
)
from sdbaccess.infrastructure.item_store import ItemStore, existence_condition
from sdbaccess.integrations.backend.base import HTTP_OK


# =============================================================================
# Logger
# =============================================================================
logger = structlog.get_logger()


Changes = Union[Mapping[str, str], Iterable[ItemAttribute]]


def normalize_changes(changes: Changes) -> dict[str, str]:
    """Accept a name → value mapping or ItemAttributes (later names win)."""
    if isinstance(changes, Mapping):
        return dict(changes)
    return {a.name: a.value for a in changes}


# =============================================================================
# Planning (pure)
# =============================================================================
def plan_update(
    current: Iterable[ItemAttribute],
    changes: Changes,
    remove_unspecified: bool = False,
) -> UpdatePlan:
    """Compute the upserts and deletes for one partial update.

    Args:
        current: The item's stored attributes (possibly multi-valued).
        changes: Requested changes; "" means delete.
        remove_unspecified: Also delete every stored name not mentioned in
            `changes`, except the Exists sentinel.

    Returns:
        UpdatePlan with upserts in caller order and, for every name to
        delete, each of its stored values.

    Example:
        >>> current = [ItemAttribute(name="Age", value="35"),
        ...            ItemAttribute(name="Exists", value="1")]
        >>> plan = plan_update(current, {"Age": "36", "City": "Oslo"})
        >>> [(a.name, a.mode.value) for a in plan.upserts]
        [('Age', 'replace'), ('City', 'add')]
    """
    current = list(current)
    requested = normalize_changes(changes)
    existing = index_by_name(current)

    upserts: list[ItemAttribute] = []
    doomed: list[str] = []

    for name, value in requested.items():
        # The sentinel is owned by this package, never by callers.
        if name == EXISTS_ATTRIBUTE:
            continue
        if value == "":
            if name in existing:
                doomed.append(name)
            continue
        mode = ReplaceMode.REPLACE_VALUE if name in existing else ReplaceMode.NEW_VALUE
        upserts.append(ItemAttribute(name=name, value=value, mode=mode))

    if remove_unspecified:
        for name in existing:
            if name != EXISTS_ATTRIBUTE and name not in requested:
                doomed.append(name)

    doomed_names = set(doomed)
    deletes = [a for a in current if a.name in doomed_names]
    return UpdatePlan(upserts=tuple(upserts), deletes=tuple(deletes))


# =============================================================================
# Reconciler
# =============================================================================
class UpdateReconciler:
    """Executes partial updates against an ItemStore.

    Stateless between calls: every update starts from a fresh consistent
    read.

    Example:
        >>> reconciler = UpdateReconciler(store)
        >>> result = await reconciler.update_item("user-1", {"Age": "36", "Nick": ""})
        >>> result.status
        <UpdateStatus.UPDATED: 'updated'>
    """

    def __init__(self, store: ItemStore, *, observer: Optional[object] = None) -> None:
        self._store = store
        self._logger = (observer or logger).bind(
            component="update_reconciler",
            domain=store.domain_name,
        )

    @property
    def store(self) -> ItemStore:
        return self._store

    async def update_item(
        self,
        key: str,
        changes: Changes,
        remove_unspecified: bool = False,
    ) -> UpdateResult:
        """Apply a partial update to an existing item.

        Args:
            key: Item to update.
            changes: Mapping name → value, or ItemAttributes. "" deletes.
            remove_unspecified: Delete stored names absent from `changes`
                (the Exists sentinel is always kept).

        Returns:
            UpdateResult with UPDATED and the applied plan, or NOT_FOUND
            when the item has no attributes (no write is issued).

        Raises:
            ConditionalCheckFailedError: The item disappeared between the
                read and the put. Nothing was written.
            PartialUpdateError: The put succeeded but the delete failed.
            BackendError: Any other backend failure.
        """
        requested = normalize_changes(changes)

        # --- Step 1: strongly consistent read, always ---
        current = await self._store.get_attributes(key, consistent_read=True)

        # --- Step 2: updates never create ---
        if not current:
            self._logger.info("update_skipped_item_not_found", key=key)
            return UpdateResult(key=key, status=UpdateStatus.NOT_FOUND)

        # --- Steps 3-5: diff ---
        plan = plan_update(current, requested, remove_unspecified=remove_unspecified)
        self._logger.debug(
            "update_plan_computed",
            key=key,
            upserts=[a.name for a in plan.upserts],
            deletes=plan.delete_names(),
            remove_unspecified=remove_unspecified,
        )

        # --- Step 6: conditional put guarded by the sentinel ---
        # The backend rejects empty puts, so a delete-only plan re-puts the
        # sentinel itself to keep the existence guard.
        upserts = list(plan.upserts) or [sentinel_attribute()]
        await self._store.put_attributes(key, upserts, condition=existence_condition())

        # --- Step 7: separate attribute-level delete ---
        if plan.deletes:
            try:
                await self._store.delete_attributes(key, plan.deletes)
            except BackendError as e:
                self._logger.error(
                    "update_partially_applied",
                    key=key,
                    pending_deletes=plan.delete_names(),
                    kind=e.kind,
                )
                raise PartialUpdateError(
                    message=(
                        f"Item {key!r} was updated but {len(plan.deletes)} "
                        f"attribute value(s) could not be deleted: {e.message}"
                    ),
                    plan=plan,
                    cause=e,
                    domain=self._store.domain_name,
                    item_key=key,
                ) from e

        self._logger.info(
            "item_updated",
            key=key,
            upserted=len(plan.upserts),
            deleted=len(plan.deletes),
        )
        return UpdateResult(key=key, status=UpdateStatus.UPDATED, plan=plan)

    async def retry_deletes(self, key: str, attributes: Iterable[ItemAttribute]) -> int:
        """Re-issue only the delete step of a partially applied update.

        Deleting pairs that are already gone is a no-op, so this is safe to
        repeat. An empty list issues no backend call.
        """
        attributes = list(attributes)
        if not attributes:
            self._logger.debug("pending_deletes_empty", key=key)
            return HTTP_OK
        status = await self._store.delete_attributes(key, attributes)
        self._logger.info("pending_deletes_retried", key=key, count=len(attributes))
        return status
