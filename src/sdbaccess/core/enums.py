"""
sdbaccess.core.enums - Type-Safe Enumerations
===============================================

Enumerations shared by every layer of sdbaccess. All of them inherit from
both `str` and `Enum` so they serialize to plain strings (Pydantic-friendly)
and compare equal to their string values.

    ReplaceMode     → how a written attribute value lands on the item
    UpdateStatus    → outcome of a partial update (UPDATED / NOT_FOUND)
    BackendOperation→ which backend call a log line or error refers to
"""

from enum import Enum


# =============================================================================
# Replace Mode
# =============================================================================
# SimpleDB attributes can hold several values under one name. Every write
# says whether the value is ADDED next to existing values or REPLACES them.
# The wire protocol carries this as a boolean; the domain model keeps the
# two cases apart so update plans read unambiguously.
# =============================================================================
class ReplaceMode(str, Enum):
    """Write intent for a single attribute value.

    Usage:
        >>> ReplaceMode.REPLACE_VALUE.replace  # True
        >>> ReplaceMode.from_flag(False)       # ReplaceMode.NEW_VALUE
    """

    NEW_VALUE = "add"           # Append alongside any existing values
    REPLACE_VALUE = "replace"   # Overwrite every existing value of the name

    @property
    def replace(self) -> bool:
        """The boolean replace flag the backend protocol expects."""
        return self is ReplaceMode.REPLACE_VALUE

    @classmethod
    def from_flag(cls, replace: bool) -> "ReplaceMode":
        """Map a wire-level replace flag to a ReplaceMode."""
        return cls.REPLACE_VALUE if replace else cls.NEW_VALUE


# =============================================================================
# Update Status
# =============================================================================
class UpdateStatus(str, Enum):
    """Outcome of UpdateReconciler.update_item().

    A missing item is an expected value, not an error: updates never create.
    """

    UPDATED = "updated"
    NOT_FOUND = "not_found"


# =============================================================================
# Backend Operation
# =============================================================================
# One member per call in the backend collaborator contract. Used to tag
# log events, BackendError instances and the in-memory backend's failure
# simulation.
# =============================================================================
class BackendOperation(str, Enum):
    """Backend collaborator calls."""

    GET_ATTRIBUTES = "get_attributes"
    PUT_ATTRIBUTES = "put_attributes"
    DELETE_ATTRIBUTES = "delete_attributes"
    BATCH_PUT_ATTRIBUTES = "batch_put_attributes"
    BATCH_DELETE_ATTRIBUTES = "batch_delete_attributes"
    SELECT = "select"
    CREATE_DOMAIN = "create_domain"
    DELETE_DOMAIN = "delete_domain"
    LIST_DOMAINS = "list_domains"
