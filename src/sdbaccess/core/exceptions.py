"""
sdbaccess.core.exceptions - Custom Exception Hierarchy
========================================================

Structured exceptions for sdbaccess. Components raise and catch these
specific types instead of generic Exception; each one carries an error
code and a details dict that serialize cleanly into structlog events.

Exception Hierarchy:
    SimpleDbAccessError (base)
        ├── ConfigurationError           - Invalid config, unknown backend
        └── BackendError                 - Any failure reported by the backend
                ├── ConditionalCheckFailedError - Existence guard rejected a put
                └── PartialUpdateError          - Upsert applied, delete failed

Not-found is never an exception: ItemStore.get_item() returns None and
UpdateReconciler.update_item() returns UpdateStatus.NOT_FOUND.

Error Handling Flow:
    Backend binding raises BackendError
        → ItemStore logs "backend_call_failed" with the error context
        → ItemStore re-raises the same exception unchanged
        → Caller decides (no retry or backoff happens in this layer)

Usage:
    >>> from sdbaccess.core.exceptions import BackendError
    >>> raise BackendError(
    ...     message="Rate exceeded",
    ...     operation="put_attributes",
    ...     kind="ServiceUnavailable",
    ...     status_code=503,
    ...     domain="users",
    ...     item_key="user-1",
    ... )
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Sequence

if TYPE_CHECKING:
    from sdbaccess.core.models import ItemAttribute, UpdatePlan


# =============================================================================
# Base Exception
# =============================================================================
class SimpleDbAccessError(Exception):
    """Base exception for all sdbaccess errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable code, UPPER_SNAKE_CASE.
        details: Additional debugging context.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "UNKNOWN_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)

        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize this exception to a dictionary (for structured logs).

        Returns:
            Dictionary with error_type, message, error_code, and details.
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


# =============================================================================
# Configuration Error
# =============================================================================
class ConfigurationError(SimpleDbAccessError):
    """Raised when configuration is invalid or incomplete.

    Common Causes:
        - Unknown backend provider name
        - Only one half of a static credential pair supplied
        - Malformed YAML configuration file
    """

    def __init__(
        self,
        message: str,
        error_code: str = "CONFIG_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)


# =============================================================================
# Backend Error
# =============================================================================
# Every failure reported by the backend collaborator (throttling,
# validation, network, authorization, non-success status) surfaces as a
# BackendError. The `kind` is the backend's own error code where it has
# one (e.g. "InvalidQueryExpression", "NumberSubmittedItemsExceeded").
# =============================================================================
class BackendError(SimpleDbAccessError):
    """Raised when a backend call fails.

    Attributes:
        operation: The backend call that failed (see BackendOperation).
        kind: Backend-specific error code.
        status_code: HTTP-style status, when the backend reported one.
        domain: Domain the call targeted.
        item_key: Item the call targeted, for single-item calls.

    Example:
        >>> try:
        ...     await store.create_item(item)
        ... except BackendError as e:
        ...     print(e.operation, e.kind, e.status_code)
    """

    def __init__(
        self,
        message: str,
        operation: str,
        kind: str = "Unknown",
        status_code: Optional[int] = None,
        domain: Optional[str] = None,
        item_key: Optional[str] = None,
        error_code: str = "BACKEND_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["operation"] = str(getattr(operation, "value", operation))
        enriched_details["kind"] = kind
        if status_code is not None:
            enriched_details["status_code"] = status_code
        if domain is not None:
            enriched_details["domain"] = domain
        if item_key is not None:
            enriched_details["item_key"] = item_key

        super().__init__(message=message, error_code=error_code, details=enriched_details)

        self.operation = enriched_details["operation"]
        self.kind = kind
        self.status_code = status_code
        self.domain = domain
        self.item_key = item_key


class ConditionalCheckFailedError(BackendError):
    """Raised when a conditional put is rejected.

    For updates this means the item lost its existence sentinel (it was
    deleted) between the consistent read and the write.
    """

    def __init__(
        self,
        message: str,
        operation: str,
        kind: str = "ConditionalCheckFailed",
        status_code: Optional[int] = 409,
        domain: Optional[str] = None,
        item_key: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            operation=operation,
            kind=kind,
            status_code=status_code,
            domain=domain,
            item_key=item_key,
            error_code="CONDITIONAL_CHECK_FAILED",
            details=details,
        )


# =============================================================================
# Partial Update Error
# =============================================================================
# A partial update is two backend calls: a conditional put, then an
# attribute-level delete. They are not atomic. When the put lands and the
# delete fails, the item holds the new values AND the attributes that were
# meant to be removed. Nothing is rolled back; the pending deletes travel
# with the exception so the caller can retry just that step.
# =============================================================================
class PartialUpdateError(BackendError):
    """Raised when an update's upsert succeeded but its delete failed.

    Attributes:
        plan: The full UpdatePlan that was being applied.
        pending_deletes: Attribute name/value pairs still on the item.
        cause: The BackendError raised by the delete call.

    Example:
        >>> try:
        ...     await reconciler.update_item("user-1", {"Age": ""})
        ... except PartialUpdateError as e:
        ...     await reconciler.retry_deletes("user-1", e.pending_deletes)
    """

    def __init__(
        self,
        message: str,
        plan: "UpdatePlan",
        cause: BackendError,
        domain: Optional[str] = None,
        item_key: Optional[str] = None,
    ) -> None:
        pending: Sequence["ItemAttribute"] = tuple(plan.deletes)
        super().__init__(
            message=message,
            operation=cause.operation,
            kind=cause.kind,
            status_code=cause.status_code,
            domain=domain,
            item_key=item_key,
            error_code="PARTIAL_UPDATE",
            details={
                "upserted": [a.name for a in plan.upserts],
                "pending_deletes": [a.name for a in pending],
            },
        )

        self.plan = plan
        self.pending_deletes = pending
        self.cause = cause
