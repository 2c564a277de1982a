"""
Tests for sdbaccess.infrastructure.item_store
===============================================

What's Being Tested:
    - Reads: get_item (found / not found / consistency flag), get_all_items,
      query_items (passthrough, paging, non-success status)
    - Creates: sentinel appended without touching the caller's item
    - Batches: single round-trip, no local chunking
    - Deletes: whole item, batch subset
    - Failure policy: backend errors logged then re-raised unchanged

All tests use InMemorySimpleDbBackend.
"""

import pytest
from structlog.testing import capture_logs

from sdbaccess.core.enums import BackendOperation
from sdbaccess.core.exceptions import BackendError
from sdbaccess.core.models import Item, ItemAttribute
from sdbaccess.infrastructure.item_store import ItemStore, existence_condition, quote_name
from sdbaccess.integrations.backend.base import BackendAttribute


# =============================================================================
# Tests: Reads
# =============================================================================
class TestGetItem:
    """Tests for get_item()."""

    async def test_create_then_read_includes_sentinel(self, store, backend) -> None:
        await store.create_item(Item.from_dict("user-1", {"Username": "JohnD"}))
        item = await store.get_item("user-1")
        assert item is not None
        assert item.to_dict() == {"Username": "JohnD", "Exists": "1"}

    async def test_missing_item_returns_none(self, store) -> None:
        assert await store.get_item("ghost") is None

    async def test_consistent_read_flag_passed(self, store, backend) -> None:
        await store.get_item("user-1", consistent_read=True)
        await store.get_item("user-1")
        calls = backend.calls(BackendOperation.GET_ATTRIBUTES)
        assert [c["consistent_read"] for c in calls] == [True, False]

    async def test_multi_valued_attributes(self, store, backend) -> None:
        backend.seed("users", "k", {"Tag": "red"})
        backend.seed("users", "k", {"Tag": "blue"})
        item = await store.get_item("k")
        assert item.values("Tag") == ["red", "blue"]


class TestSelect:
    """Tests for get_all_items() and query_items()."""

    async def test_get_all_items_expression(self, store, backend) -> None:
        await store.get_all_items()
        call = backend.calls(BackendOperation.SELECT)[0]
        assert call["expression"] == "select * from `users`"

    async def test_get_all_items_empty_domain(self, store) -> None:
        assert await store.get_all_items() == []

    async def test_get_all_items_returns_everything(self, store, make_users) -> None:
        await store.batch_create_items(make_users(1, 5))
        items = await store.get_all_items()
        assert len(items) == 5
        assert all(i.has_sentinel for i in items)

    async def test_query_passthrough(self, store, backend, make_users) -> None:
        await store.batch_create_items(make_users(1, 3))
        expression = "select * from `users` where `Username` = 'test-username-2'"
        items = await store.query_items(expression, consistent_read=True)
        assert [i.key for i in items] == ["test-item-2"]
        call = backend.calls(BackendOperation.SELECT)[0]
        assert call["expression"] == expression
        assert call["consistent_read"] is True

    async def test_query_follows_next_token(self, store, backend, make_users) -> None:
        await store.batch_create_items(make_users(1, 20))
        await store.batch_create_items(make_users(21, 10))
        items = await store.query_items("select * from `users` limit 10")
        assert len(items) == 30
        assert len({i.key for i in items}) == 30
        tokens = [c["next_token"] for c in backend.calls(BackendOperation.SELECT)]
        assert tokens == [None, "10", "20"]

    async def test_query_value_with_and_passes_through(self, store) -> None:
        await store.create_item(Item.from_dict("k", {"Name": "Tom and Jerry"}))
        items = await store.query_items("select * from `users` where `Name` = 'Tom and Jerry'")
        assert [i.key for i in items] == ["k"]

    async def test_malformed_expression_raises(self, store) -> None:
        with pytest.raises(BackendError) as exc_info:
            await store.query_items("selekt everything")
        assert exc_info.value.kind == "InvalidQueryExpression"

    async def test_non_success_status_is_an_error(self, store, backend, make_users) -> None:
        """A failed select must not look like 'zero matches'."""
        await store.batch_create_items(make_users(1, 2))
        backend.force_status(BackendOperation.SELECT, 500)
        with pytest.raises(BackendError) as exc_info:
            await store.get_all_items()
        assert exc_info.value.kind == "UnexpectedStatus"
        assert exc_info.value.status_code == 500


# =============================================================================
# Tests: Creates
# =============================================================================
class TestCreate:
    """Tests for create_item() and batch_create_items()."""

    async def test_create_returns_status(self, store) -> None:
        assert await store.create_item(Item.from_dict("k", {"A": "1"})) == 200

    async def test_caller_item_untouched(self, store, john) -> None:
        before = john.model_copy()
        await store.create_item(john)
        assert john == before
        assert not john.has_sentinel

    async def test_create_is_unconditional_put(self, store, backend, john) -> None:
        await store.create_item(john)
        call = backend.calls(BackendOperation.PUT_ATTRIBUTES)[0]
        assert call["condition"] is None
        assert call["attributes"][-1].name == "Exists"
        assert all(a.replace for a in call["attributes"])

    async def test_create_overwrites_existing(self, store, backend) -> None:
        await store.create_item(Item.from_dict("k", {"A": "1"}))
        await store.create_item(Item.from_dict("k", {"A": "2"}))
        assert (await store.get_item("k")).values("A") == ["2"]

    async def test_batch_create_single_round_trip(self, store, backend, make_users) -> None:
        await store.batch_create_items(make_users(1, 5))
        assert len(backend.calls(BackendOperation.BATCH_PUT_ATTRIBUTES)) == 1
        for i in range(1, 6):
            assert (await store.get_item(f"test-item-{i}")).has_sentinel

    async def test_batch_over_limit_is_not_chunked(self, store, backend, make_users) -> None:
        with pytest.raises(BackendError) as exc_info:
            await store.batch_create_items(make_users(1, 26))
        assert exc_info.value.kind == "NumberSubmittedItemsExceeded"
        assert len(backend.calls(BackendOperation.BATCH_PUT_ATTRIBUTES)) == 1
        assert await store.get_all_items() == []

    def test_with_sentinel_is_pure(self, store, john) -> None:
        created = store.with_sentinel(john)
        assert created.has_sentinel
        assert created.key == john.key
        assert not john.has_sentinel


# =============================================================================
# Tests: Attribute-Level Writes
# =============================================================================
class TestAttributeWrites:
    """Tests for put_attributes() and delete_attributes()."""

    async def test_conditional_put_passes_condition(self, store, backend, john) -> None:
        await store.create_item(john)
        await store.put_attributes(
            john.key, [ItemAttribute(name="Age", value="36")], condition=existence_condition()
        )
        call = backend.calls(BackendOperation.PUT_ATTRIBUTES)[-1]
        assert call["condition"].name == "Exists"
        assert call["condition"].value == "1"
        assert (await store.get_item(john.key)).get("Age") == "36"

    async def test_delete_attributes_removes_only_listed_pairs(self, store, backend) -> None:
        backend.seed("users", "k", {"A": "1", "B": "2"})
        await store.delete_attributes("k", [ItemAttribute(name="A", value="1")])
        assert backend.stored_attributes("users", "k") == [BackendAttribute(name="B", value="2")]


# =============================================================================
# Tests: Deletes
# =============================================================================
class TestDelete:
    """Tests for delete_item() and batch_delete_items()."""

    async def test_delete_item(self, store, john) -> None:
        await store.create_item(john)
        assert await store.delete_item(john.key) == 200
        assert await store.get_item(john.key) is None

    async def test_delete_missing_item_is_fine(self, store) -> None:
        assert await store.delete_item("ghost") == 200

    async def test_batch_delete_subset(self, store, backend, make_users) -> None:
        await store.batch_create_items(make_users(1, 5))
        await store.batch_delete_items(["test-item-3", "test-item-4"])

        assert await store.get_item("test-item-3") is None
        assert await store.get_item("test-item-4") is None
        assert await store.get_item("test-item-5") is not None
        assert len(await store.get_all_items()) == 3

        call = backend.calls(BackendOperation.BATCH_DELETE_ATTRIBUTES)[0]
        assert all(i.attributes is None for i in call["items"])


# =============================================================================
# Tests: Failure Policy
# =============================================================================
class TestFailurePolicy:
    """Backend errors are logged and re-raised unchanged."""

    async def test_error_reraised_unchanged(self, store, backend, john) -> None:
        backend.fail_next(BackendOperation.PUT_ATTRIBUTES, kind="ServiceUnavailable")
        with pytest.raises(BackendError) as exc_info:
            await store.create_item(john)
        assert exc_info.value.kind == "ServiceUnavailable"
        assert exc_info.value.status_code == 503

    async def test_no_retry(self, store, backend, john) -> None:
        backend.fail_next(BackendOperation.PUT_ATTRIBUTES)
        with pytest.raises(BackendError):
            await store.create_item(john)
        assert len(backend.calls(BackendOperation.PUT_ATTRIBUTES)) == 1

    async def test_failure_logged_to_observer(self, backend, observer, john) -> None:
        store = ItemStore(backend, "users", observer=observer)
        backend.fail_next(BackendOperation.GET_ATTRIBUTES)
        with pytest.raises(BackendError):
            await store.get_item(john.key)

        level, event, fields = observer.events[-1]
        assert (level, event) == ("error", "backend_call_failed")
        assert fields["operation"] == "get_attributes"
        assert fields["key"] == john.key
        assert observer.context == {"component": "item_store", "domain": "users"}

    async def test_failure_logged_with_structlog(self, backend) -> None:
        with capture_logs() as logs:
            store = ItemStore(backend, "missing-domain")
            with pytest.raises(BackendError):
                await store.get_all_items()

        failures = [e for e in logs if e["event"] == "backend_call_failed"]
        assert len(failures) == 1
        assert failures[0]["kind"] == "NoSuchDomain"
        assert failures[0]["log_level"] == "error"


def test_quote_name_escapes_backticks() -> None:
    assert quote_name("users") == "`users`"
    assert quote_name("we`ird") == "`we``ird`"
