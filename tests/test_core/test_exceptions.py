"""
Tests for sdbaccess.core.exceptions
=====================================

What's Being Tested:
    - Structured context on every exception (error_code, details)
    - BackendError enrichment and subclass relationships
    - PartialUpdateError carrying the pending deletes
"""

import pytest

from sdbaccess.core.enums import BackendOperation
from sdbaccess.core.exceptions import (
    BackendError,
    ConditionalCheckFailedError,
    ConfigurationError,
    PartialUpdateError,
    SimpleDbAccessError,
)
from sdbaccess.core.models import ItemAttribute, UpdatePlan


class TestBaseError:
    """Tests for SimpleDbAccessError."""

    def test_defaults(self) -> None:
        e = SimpleDbAccessError("boom")
        assert str(e) == "boom"
        assert e.error_code == "UNKNOWN_ERROR"
        assert e.details == {}

    def test_to_dict(self) -> None:
        e = ConfigurationError("bad", details={"field": "region"})
        assert e.to_dict() == {
            "error_type": "ConfigurationError",
            "message": "bad",
            "error_code": "CONFIG_ERROR",
            "details": {"field": "region"},
        }

    def test_repr_mentions_code(self) -> None:
        assert "CONFIG_ERROR" in repr(ConfigurationError("bad"))


class TestBackendError:
    """Tests for BackendError and its subclasses."""

    def test_enriched_details(self) -> None:
        e = BackendError(
            message="Rate exceeded",
            operation=BackendOperation.PUT_ATTRIBUTES,
            kind="ServiceUnavailable",
            status_code=503,
            domain="users",
            item_key="user-1",
        )
        assert e.operation == "put_attributes"
        assert e.details == {
            "operation": "put_attributes",
            "kind": "ServiceUnavailable",
            "status_code": 503,
            "domain": "users",
            "item_key": "user-1",
        }
        assert isinstance(e, SimpleDbAccessError)

    def test_plain_string_operation(self) -> None:
        assert BackendError("x", operation="select").operation == "select"

    def test_conditional_check_failed_is_backend_error(self) -> None:
        e = ConditionalCheckFailedError("gone", operation=BackendOperation.PUT_ATTRIBUTES)
        assert isinstance(e, BackendError)
        assert e.error_code == "CONDITIONAL_CHECK_FAILED"
        assert e.kind == "ConditionalCheckFailed"

    def test_partial_update_error(self) -> None:
        plan = UpdatePlan(
            upserts=(ItemAttribute(name="Age", value="36"),),
            deletes=(ItemAttribute(name="Nick", value="JD"),),
        )
        cause = BackendError("down", operation=BackendOperation.DELETE_ATTRIBUTES, kind="ServiceUnavailable")
        e = PartialUpdateError("partial", plan=plan, cause=cause, domain="users", item_key="u1")

        assert isinstance(e, BackendError)
        assert e.error_code == "PARTIAL_UPDATE"
        assert e.operation == "delete_attributes"
        assert e.kind == "ServiceUnavailable"
        assert e.pending_deletes == (ItemAttribute(name="Nick", value="JD"),)
        assert e.details["upserted"] == ["Age"]
        assert e.details["pending_deletes"] == ["Nick"]
        assert e.cause is cause

    def test_can_catch_by_base(self) -> None:
        with pytest.raises(SimpleDbAccessError):
            raise ConditionalCheckFailedError("gone", operation="put_attributes")
