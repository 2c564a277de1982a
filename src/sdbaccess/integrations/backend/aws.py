"""
sdbaccess.integrations.backend.aws - Amazon SimpleDB Backend (boto3)
=====================================================================

Binds the backend contract to Amazon SimpleDB through boto3's `sdb` client.
boto3 is blocking, so every call is dispatched to the default thread pool
with asyncio.to_thread(); cancellation of the awaiting task propagates
through the await, the in-flight HTTP request is left to finish.

Credentials:
    Static keys from BackendConfig are passed to the client when both are
    set. Otherwise boto3's default chain supplies the ambient identity.

Errors:
    botocore ClientError        → BackendError(kind=<AWS error code>)
        ConditionalCheckFailed  → ConditionalCheckFailedError
        AttributeDoesNotExist   → ConditionalCheckFailedError
    botocore BotoCoreError      → BackendError(kind=<exception class name>)

No retries are configured beyond botocore's own defaults.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Optional, Sequence

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from sdbaccess.core.config import BackendConfig
from sdbaccess.core.enums import BackendOperation
from sdbaccess.core.exceptions import BackendError, ConditionalCheckFailedError
from sdbaccess.integrations.backend.base import (
    HTTP_OK,
    BackendAttribute,
    BackendItem,
    BaseSimpleDbBackend,
    DeletableAttribute,
    DeletableItem,
    ReplaceableAttribute,
    ReplaceableItem,
    SelectResponse,
    UpdateCondition,
)


# =============================================================================
# Logger
# =============================================================================
logger = structlog.get_logger()


_CONDITION_ERRORS = {"ConditionalCheckFailed", "AttributeDoesNotExist"}


def build_client(config: BackendConfig) -> Any:
    """Create a boto3 SimpleDB client from BackendConfig."""
    client_kwargs: dict[str, Any] = {
        "service_name": "sdb",
        "region_name": config.region,
    }

    if config.endpoint_url:
        client_kwargs["endpoint_url"] = config.endpoint_url

    if config.has_static_credentials:
        client_kwargs["aws_access_key_id"] = config.access_key_id
        client_kwargs["aws_secret_access_key"] = config.secret_access_key

    return boto3.client(**client_kwargs)


class AwsSimpleDbBackend(BaseSimpleDbBackend):
    """SimpleDB backend over boto3.

    Example:
        >>> backend = AwsSimpleDbBackend(BackendConfig(provider="aws", region="eu-west-1"))
        >>> attrs = await backend.get_attributes("users", "user-1", consistent_read=True)
    """

    name = "aws"

    def __init__(
        self,
        config: Optional[BackendConfig] = None,
        *,
        client: Any = None,
    ) -> None:
        self._config = config or BackendConfig(provider="aws")
        self._client = client if client is not None else build_client(self._config)
        self._logger = logger.bind(component="aws_simpledb_backend", region=self._config.region)

        self._logger.info(
            "aws_backend_initialized",
            endpoint=self._config.endpoint_url,
            static_credentials=self._config.has_static_credentials,
        )

    @property
    def client(self) -> Any:
        return self._client

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_attributes(
        self,
        domain: str,
        key: str,
        *,
        consistent_read: bool = False,
    ) -> list[BackendAttribute]:
        response = await self._call(
            BackendOperation.GET_ATTRIBUTES,
            self._client.get_attributes,
            domain=domain,
            key=key,
            DomainName=domain,
            ItemName=key,
            ConsistentRead=consistent_read,
        )
        return [
            BackendAttribute(name=a["Name"], value=a["Value"])
            for a in response.get("Attributes", [])
        ]

    async def select(
        self,
        expression: str,
        *,
        consistent_read: bool = False,
        next_token: Optional[str] = None,
    ) -> SelectResponse:
        params: dict[str, Any] = {
            "SelectExpression": expression,
            "ConsistentRead": consistent_read,
        }
        if next_token is not None:
            params["NextToken"] = next_token

        response = await self._call(BackendOperation.SELECT, self._client.select, **params)
        items = [
            BackendItem(
                name=i["Name"],
                attributes=tuple(
                    BackendAttribute(name=a["Name"], value=a["Value"])
                    for a in i.get("Attributes", [])
                ),
            )
            for i in response.get("Items", [])
        ]
        return SelectResponse(
            status_code=self._status_of(response),
            items=items,
            next_token=response.get("NextToken"),
        )

    # =========================================================================
    # Writes
    # =========================================================================

    async def put_attributes(
        self,
        domain: str,
        key: str,
        attributes: Sequence[ReplaceableAttribute],
        *,
        condition: Optional[UpdateCondition] = None,
    ) -> int:
        params: dict[str, Any] = {
            "DomainName": domain,
            "ItemName": key,
            "Attributes": [self._replaceable(a) for a in attributes],
        }
        if condition is not None:
            expected: dict[str, Any] = {"Name": condition.name, "Exists": condition.exists}
            if condition.value is not None:
                expected["Value"] = condition.value
            params["Expected"] = expected

        response = await self._call(
            BackendOperation.PUT_ATTRIBUTES,
            self._client.put_attributes,
            domain=domain,
            key=key,
            **params,
        )
        return self._status_of(response)

    async def delete_attributes(
        self,
        domain: str,
        key: str,
        attributes: Optional[Sequence[DeletableAttribute]] = None,
    ) -> int:
        params: dict[str, Any] = {"DomainName": domain, "ItemName": key}
        if attributes is not None:
            params["Attributes"] = [{"Name": a.name, "Value": a.value} for a in attributes]

        response = await self._call(
            BackendOperation.DELETE_ATTRIBUTES,
            self._client.delete_attributes,
            domain=domain,
            key=key,
            **params,
        )
        return self._status_of(response)

    async def batch_put_attributes(
        self,
        domain: str,
        items: Sequence[ReplaceableItem],
    ) -> int:
        response = await self._call(
            BackendOperation.BATCH_PUT_ATTRIBUTES,
            self._client.batch_put_attributes,
            domain=domain,
            DomainName=domain,
            Items=[
                {
                    "Name": item.name,
                    "Attributes": [self._replaceable(a) for a in item.attributes],
                }
                for item in items
            ],
        )
        return self._status_of(response)

    async def batch_delete_attributes(
        self,
        domain: str,
        items: Sequence[DeletableItem],
    ) -> int:
        wire_items = []
        for item in items:
            entry: dict[str, Any] = {"Name": item.name}
            if item.attributes is not None:
                entry["Attributes"] = [
                    {"Name": a.name, "Value": a.value} for a in item.attributes
                ]
            wire_items.append(entry)

        response = await self._call(
            BackendOperation.BATCH_DELETE_ATTRIBUTES,
            self._client.batch_delete_attributes,
            domain=domain,
            DomainName=domain,
            Items=wire_items,
        )
        return self._status_of(response)

    # =========================================================================
    # Domain Management
    # =========================================================================

    async def create_domain(self, domain: str) -> int:
        response = await self._call(
            BackendOperation.CREATE_DOMAIN,
            self._client.create_domain,
            domain=domain,
            DomainName=domain,
        )
        return self._status_of(response)

    async def delete_domain(self, domain: str) -> int:
        response = await self._call(
            BackendOperation.DELETE_DOMAIN,
            self._client.delete_domain,
            domain=domain,
            DomainName=domain,
        )
        return self._status_of(response)

    async def list_domains(self) -> list[str]:
        names: list[str] = []
        params: dict[str, Any] = {}
        while True:
            response = await self._call(
                BackendOperation.LIST_DOMAINS,
                self._client.list_domains,
                **params,
            )
            names.extend(response.get("DomainNames", []))
            token = response.get("NextToken")
            if not token:
                return names
            params = {"NextToken": token}

    async def close(self) -> None:
        self._client.close()

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    async def _call(
        self,
        operation: BackendOperation,
        method: Callable[..., dict[str, Any]],
        *,
        domain: Optional[str] = None,
        key: Optional[str] = None,
        **params: Any,
    ) -> dict[str, Any]:
        """Run one boto3 call off the event loop, mapping botocore errors."""
        try:
            return await asyncio.to_thread(method, **params)
        except ClientError as e:
            error = e.response.get("Error", {})
            code = error.get("Code", "Unknown")
            status = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
            error_cls = ConditionalCheckFailedError if code in _CONDITION_ERRORS else BackendError
            raise error_cls(
                message=error.get("Message", str(e)),
                operation=operation,
                kind=code,
                status_code=status,
                domain=domain,
                item_key=key,
            ) from e
        except BotoCoreError as e:
            raise BackendError(
                message=str(e),
                operation=operation,
                kind=type(e).__name__,
                domain=domain,
                item_key=key,
            ) from e

    @staticmethod
    def _replaceable(attribute: ReplaceableAttribute) -> dict[str, Any]:
        return {
            "Name": attribute.name,
            "Value": attribute.value,
            "Replace": attribute.replace,
        }

    @staticmethod
    def _status_of(response: dict[str, Any]) -> int:
        return response.get("ResponseMetadata", {}).get("HTTPStatusCode", HTTP_OK)
