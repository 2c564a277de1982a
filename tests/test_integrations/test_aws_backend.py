"""
Tests for sdbaccess.integrations.backend.aws
==============================================

The boto3 client is real but stubbed with botocore's Stubber, so request
shapes are validated against the SimpleDB service model and no network
call is made.
"""

import boto3
import pytest
from botocore.stub import Stubber

from sdbaccess.core.config import BackendConfig
from sdbaccess.core.enums import BackendOperation
from sdbaccess.core.exceptions import BackendError, ConditionalCheckFailedError
from sdbaccess.integrations.backend.aws import AwsSimpleDbBackend, build_client
from sdbaccess.integrations.backend.base import (
    BackendAttribute,
    DeletableAttribute,
    DeletableItem,
    ReplaceableAttribute,
    ReplaceableItem,
    UpdateCondition,
)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def sdb_client():
    return boto3.client(
        "sdb",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


@pytest.fixture
def stubber(sdb_client):
    with Stubber(sdb_client) as stub:
        yield stub
        stub.assert_no_pending_responses()


@pytest.fixture
def aws_backend(sdb_client, stubber):
    return AwsSimpleDbBackend(BackendConfig(provider="aws"), client=sdb_client)


# =============================================================================
# Tests: Reads
# =============================================================================
class TestReads:
    """get_attributes() and select()."""

    async def test_get_attributes(self, aws_backend, stubber) -> None:
        stubber.add_response(
            "get_attributes",
            {"Attributes": [{"Name": "Tag", "Value": "red"}, {"Name": "Tag", "Value": "blue"}]},
            {"DomainName": "users", "ItemName": "k", "ConsistentRead": True},
        )
        attrs = await aws_backend.get_attributes("users", "k", consistent_read=True)
        assert attrs == [
            BackendAttribute(name="Tag", value="red"),
            BackendAttribute(name="Tag", value="blue"),
        ]

    async def test_get_attributes_missing_item(self, aws_backend, stubber) -> None:
        stubber.add_response(
            "get_attributes",
            {},
            {"DomainName": "users", "ItemName": "ghost", "ConsistentRead": False},
        )
        assert await aws_backend.get_attributes("users", "ghost") == []

    async def test_select_with_next_token(self, aws_backend, stubber) -> None:
        stubber.add_response(
            "select",
            {
                "Items": [{"Name": "k1", "Attributes": [{"Name": "A", "Value": "1"}]}],
                "NextToken": "page-2",
            },
            {"SelectExpression": "select * from `users`", "ConsistentRead": False},
        )
        stubber.add_response(
            "select",
            {"Items": []},
            {
                "SelectExpression": "select * from `users`",
                "ConsistentRead": False,
                "NextToken": "page-2",
            },
        )
        first = await aws_backend.select("select * from `users`")
        assert first.ok
        assert first.next_token == "page-2"
        assert first.items[0].name == "k1"
        assert first.items[0].attributes == (BackendAttribute(name="A", value="1"),)

        second = await aws_backend.select("select * from `users`", next_token="page-2")
        assert second.items == []
        assert second.next_token is None


# =============================================================================
# Tests: Writes
# =============================================================================
class TestWrites:
    """Request shapes for puts, deletes and batches."""

    async def test_conditional_put(self, aws_backend, stubber) -> None:
        stubber.add_response(
            "put_attributes",
            {},
            {
                "DomainName": "users",
                "ItemName": "k",
                "Attributes": [
                    {"Name": "Age", "Value": "36", "Replace": True},
                    {"Name": "City", "Value": "Oslo", "Replace": False},
                ],
                "Expected": {"Name": "Exists", "Value": "1", "Exists": True},
            },
        )
        status = await aws_backend.put_attributes(
            "users",
            "k",
            [
                ReplaceableAttribute(name="Age", value="36", replace=True),
                ReplaceableAttribute(name="City", value="Oslo"),
            ],
            condition=UpdateCondition(name="Exists", value="1"),
        )
        assert status == 200

    async def test_unconditional_put_omits_expected(self, aws_backend, stubber) -> None:
        stubber.add_response(
            "put_attributes",
            {},
            {
                "DomainName": "users",
                "ItemName": "k",
                "Attributes": [{"Name": "A", "Value": "1", "Replace": True}],
            },
        )
        await aws_backend.put_attributes(
            "users", "k", [ReplaceableAttribute(name="A", value="1", replace=True)]
        )

    async def test_delete_pairs(self, aws_backend, stubber) -> None:
        stubber.add_response(
            "delete_attributes",
            {},
            {
                "DomainName": "users",
                "ItemName": "k",
                "Attributes": [{"Name": "Tag", "Value": "red"}],
            },
        )
        await aws_backend.delete_attributes(
            "users", "k", [DeletableAttribute(name="Tag", value="red")]
        )

    async def test_delete_whole_item(self, aws_backend, stubber) -> None:
        stubber.add_response("delete_attributes", {}, {"DomainName": "users", "ItemName": "k"})
        await aws_backend.delete_attributes("users", "k")

    async def test_batch_put(self, aws_backend, stubber) -> None:
        stubber.add_response(
            "batch_put_attributes",
            {},
            {
                "DomainName": "users",
                "Items": [
                    {"Name": "k1", "Attributes": [{"Name": "A", "Value": "1", "Replace": True}]},
                ],
            },
        )
        await aws_backend.batch_put_attributes(
            "users",
            [ReplaceableItem(name="k1", attributes=(ReplaceableAttribute(name="A", value="1", replace=True),))],
        )

    async def test_batch_delete(self, aws_backend, stubber) -> None:
        stubber.add_response(
            "batch_delete_attributes",
            {},
            {
                "DomainName": "users",
                "Items": [
                    {"Name": "k1"},
                    {"Name": "k2", "Attributes": [{"Name": "A", "Value": "1"}]},
                ],
            },
        )
        await aws_backend.batch_delete_attributes(
            "users",
            [
                DeletableItem(name="k1"),
                DeletableItem(name="k2", attributes=(DeletableAttribute(name="A", value="1"),)),
            ],
        )


# =============================================================================
# Tests: Domains
# =============================================================================
class TestDomains:
    """Domain management calls."""

    async def test_list_domains_follows_next_token(self, aws_backend, stubber) -> None:
        stubber.add_response("list_domains", {"DomainNames": ["a"], "NextToken": "t"}, {})
        stubber.add_response("list_domains", {"DomainNames": ["b"]}, {"NextToken": "t"})
        assert await aws_backend.list_domains() == ["a", "b"]

    async def test_create_and_delete(self, aws_backend, stubber) -> None:
        stubber.add_response("create_domain", {}, {"DomainName": "users"})
        stubber.add_response("delete_domain", {}, {"DomainName": "users"})
        assert await aws_backend.create_domain("users") == 200
        assert await aws_backend.delete_domain("users") == 200


# =============================================================================
# Tests: Error Mapping
# =============================================================================
class TestErrorMapping:
    """botocore errors → package exceptions."""

    async def test_conditional_check_failed(self, aws_backend, stubber) -> None:
        stubber.add_client_error(
            "put_attributes",
            service_error_code="ConditionalCheckFailed",
            service_message="Conditional check failed.",
            http_status_code=409,
        )
        with pytest.raises(ConditionalCheckFailedError) as exc_info:
            await aws_backend.put_attributes(
                "users",
                "k",
                [ReplaceableAttribute(name="A", value="1")],
                condition=UpdateCondition(name="Exists", value="1"),
            )
        error = exc_info.value
        assert error.kind == "ConditionalCheckFailed"
        assert error.status_code == 409
        assert error.operation == BackendOperation.PUT_ATTRIBUTES
        assert error.item_key == "k"

    async def test_attribute_does_not_exist(self, aws_backend, stubber) -> None:
        stubber.add_client_error(
            "put_attributes",
            service_error_code="AttributeDoesNotExist",
            http_status_code=404,
        )
        with pytest.raises(ConditionalCheckFailedError):
            await aws_backend.put_attributes(
                "users", "k", [ReplaceableAttribute(name="A", value="1")]
            )

    async def test_other_client_error(self, aws_backend, stubber) -> None:
        stubber.add_client_error(
            "select",
            service_error_code="InvalidQueryExpression",
            service_message="The specified query expression syntax is not valid.",
            http_status_code=400,
        )
        with pytest.raises(BackendError) as exc_info:
            await aws_backend.select("selekt")
        assert not isinstance(exc_info.value, ConditionalCheckFailedError)
        assert exc_info.value.kind == "InvalidQueryExpression"
        assert exc_info.value.status_code == 400
        assert "not valid" in exc_info.value.message


# =============================================================================
# Tests: Client Construction
# =============================================================================
class TestBuildClient:
    """build_client() honours region, endpoint and static credentials."""

    def test_region_and_endpoint(self) -> None:
        client = build_client(
            BackendConfig(
                provider="aws",
                region="eu-west-1",
                endpoint_url="http://localhost:8080",
                access_key_id="testing",
                secret_access_key="testing",
            )
        )
        assert client.meta.region_name == "eu-west-1"
        assert client.meta.endpoint_url == "http://localhost:8080"

    async def test_close(self, sdb_client) -> None:
        backend = AwsSimpleDbBackend(client=sdb_client)
        await backend.close()
        assert backend.client is sdb_client
