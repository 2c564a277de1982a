"""
sdbaccess.integrations.backend.memory - In-Memory SimpleDB Backend
=====================================================================

A dict-backed backend that behaves like SimpleDB for everything this
package relies on, without any network calls. It is the default backend
for tests and development.

What It Emulates:
    - Multi-valued attributes: identical name/value pairs are stored once;
      replace=True drops every existing value of the name first.
    - Conditional puts: Exists-style expected-value checks.
    - Attribute-level and whole-item deletes (deleting absent data is fine).
    - Batch limits: more than 25 items per batch call is rejected.
    - Empty puts are rejected, as SimpleDB requires at least one attribute.
    - A small select subset:
          select * | itemName() from `domain`
              [where `a` = 'v' [and `b` != 'w' ...]] [limit N]
      with NextToken paging. Anything else → InvalidQueryExpression.

Test Hooks:
    - call_history / calls(operation): every call with its parameters.
    - fail_next(operation, ...): queue a BackendError for the next call.
    - force_status(operation, code): report a non-200 status instead.
    - seed(domain, key, attributes): place raw data (no sentinel).

Usage:
    >>> backend = InMemorySimpleDbBackend(domains=["users"])
    >>> await backend.put_attributes(
    ...     "users", "user-1", [ReplaceableAttribute(name="Age", value="35")]
    ... )
    >>> backend.fail_next(BackendOperation.DELETE_ATTRIBUTES)
"""

from __future__ import annotations

import asyncio
import re
from collections import deque
from typing import Any, Iterable, Optional, Sequence

import structlog

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


MAX_BATCH_ITEMS = 25
DEFAULT_SELECT_LIMIT = 100
MAX_SELECT_LIMIT = 2500

_NAME = r"`(?:[^`]|``)+`|[A-Za-z_$][\w$.-]*"

_SELECT_RE = re.compile(
    r"^\s*select\s+(?P<output>\*|itemName\(\))\s+"
    r"from\s+(?P<domain>" + _NAME + r")"
    r"(?:\s+where\s+(?P<where>.+?))?"
    r"(?:\s+limit\s+(?P<limit>\d+))?\s*$",
    re.IGNORECASE | re.DOTALL,
)

_PREDICATE_RE = re.compile(
    r"\s*(?P<name>" + _NAME + r")\s*(?P<op>!=|=)\s*"
    r"(?P<quote>['\"])(?P<value>(?:(?!(?P=quote)).|(?P=quote)(?P=quote))*)(?P=quote)",
    re.DOTALL,
)

_AND_RE = re.compile(r"\s+and\s+", re.IGNORECASE)


def _unquote_name(raw: str) -> str:
    if raw.startswith("`") and raw.endswith("`"):
        return raw[1:-1].replace("``", "`")
    return raw


class InMemorySimpleDbBackend(BaseSimpleDbBackend):
    """In-process SimpleDB stand-in.

    Attributes:
        _domains: domain → item key → ordered stored attributes.
        _call_history: Every call made, as dicts, in order.
        _failures: Per-operation queue of errors to raise next.
        _forced_status: Per-operation status code to report instead of 200.
        _latency: Seconds awaited inside every call (0 still yields to the
            event loop, so concurrent callers interleave).

    Example:
        >>> backend = InMemorySimpleDbBackend(domains=["users"])
        >>> backend.seed("users", "legacy-1", {"Name": "no sentinel"})
        >>> await backend.get_attributes("users", "legacy-1")
    """

    name = "memory"

    def __init__(
        self,
        domains: Optional[Iterable[str]] = None,
        *,
        latency: float = 0.0,
    ) -> None:
        self._domains: dict[str, dict[str, list[BackendAttribute]]] = {
            d: {} for d in (domains or ())
        }
        self._call_history: list[dict[str, Any]] = []
        self._failures: dict[BackendOperation, deque[BackendError]] = {}
        self._forced_status: dict[BackendOperation, int] = {}
        self._latency = latency
        self._logger = logger.bind(component="in_memory_backend")

    # =========================================================================
    # Test Hooks
    # =========================================================================

    @property
    def call_history(self) -> list[dict[str, Any]]:
        return self._call_history

    @property
    def call_count(self) -> int:
        return len(self._call_history)

    def calls(self, operation: BackendOperation) -> list[dict[str, Any]]:
        """Recorded calls of one operation."""
        return [c for c in self._call_history if c["operation"] == operation.value]

    @property
    def write_call_count(self) -> int:
        writes = {
            BackendOperation.PUT_ATTRIBUTES.value,
            BackendOperation.DELETE_ATTRIBUTES.value,
            BackendOperation.BATCH_PUT_ATTRIBUTES.value,
            BackendOperation.BATCH_DELETE_ATTRIBUTES.value,
        }
        return sum(1 for c in self._call_history if c["operation"] in writes)

    def reset_history(self) -> None:
        self._call_history.clear()

    def fail_next(
        self,
        operation: BackendOperation,
        kind: str = "ServiceUnavailable",
        message: str = "Simulated backend failure",
        status_code: int = 503,
    ) -> None:
        """Make the next call of `operation` raise a BackendError."""
        error = BackendError(
            message=message,
            operation=operation,
            kind=kind,
            status_code=status_code,
        )
        self._failures.setdefault(operation, deque()).append(error)

    def force_status(self, operation: BackendOperation, status_code: int) -> None:
        """Report `status_code` for every later call of `operation`."""
        self._forced_status[operation] = status_code

    def clear_failures(self) -> None:
        self._failures.clear()
        self._forced_status.clear()

    def seed(self, domain: str, key: str, attributes: dict[str, str]) -> None:
        """Store raw attributes directly, bypassing the call log."""
        stored = self._domains.setdefault(domain, {}).setdefault(key, [])
        for name, value in attributes.items():
            self._add_value(stored, name, value)

    def stored_attributes(self, domain: str, key: str) -> list[BackendAttribute]:
        """Current stored attributes, for assertions."""
        return list(self._domains.get(domain, {}).get(key, []))

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
        await self._enter(
            BackendOperation.GET_ATTRIBUTES,
            domain=domain,
            key=key,
            consistent_read=consistent_read,
        )
        items = self._require_domain(BackendOperation.GET_ATTRIBUTES, domain)
        return list(items.get(key, []))

    async def select(
        self,
        expression: str,
        *,
        consistent_read: bool = False,
        next_token: Optional[str] = None,
    ) -> SelectResponse:
        await self._enter(
            BackendOperation.SELECT,
            expression=expression,
            consistent_read=consistent_read,
            next_token=next_token,
        )
        forced = self._forced_status.get(BackendOperation.SELECT)
        if forced is not None and forced != HTTP_OK:
            return SelectResponse(status_code=forced)

        match = _SELECT_RE.match(expression)
        if match is None:
            raise self._invalid_query(expression, "unsupported select expression")

        domain = _unquote_name(match.group("domain"))
        items = self._require_domain(BackendOperation.SELECT, domain)
        predicates = self._parse_where(expression, match.group("where"))

        limit = int(match.group("limit") or DEFAULT_SELECT_LIMIT)
        if not 1 <= limit <= MAX_SELECT_LIMIT:
            raise self._invalid_query(expression, f"limit must be 1..{MAX_SELECT_LIMIT}")

        offset = 0
        if next_token is not None:
            if not next_token.isdigit():
                raise BackendError(
                    message=f"Invalid NextToken: {next_token!r}",
                    operation=BackendOperation.SELECT,
                    kind="InvalidNextToken",
                    status_code=400,
                    domain=domain,
                )
            offset = int(next_token)

        matching = [
            (key, attrs) for key, attrs in items.items()
            if all(self._matches(attrs, name, op, value) for name, op, value in predicates)
        ]
        page = matching[offset:offset + limit]
        names_only = match.group("output").lower() == "itemname()"
        result = [
            BackendItem(name=key, attributes=() if names_only else tuple(attrs))
            for key, attrs in page
        ]
        more = offset + limit < len(matching)
        return SelectResponse(
            status_code=HTTP_OK,
            items=result,
            next_token=str(offset + limit) if more else None,
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
        op = BackendOperation.PUT_ATTRIBUTES
        await self._enter(
            op,
            domain=domain,
            key=key,
            attributes=list(attributes),
            condition=condition,
        )
        items = self._require_domain(op, domain)
        if not attributes:
            raise BackendError(
                message="No attributes supplied",
                operation=op,
                kind="MissingParameter",
                status_code=400,
                domain=domain,
                item_key=key,
            )

        current = items.get(key, [])
        if condition is not None:
            self._check_condition(domain, key, current, condition)

        stored = items.setdefault(key, [])
        self._apply_put(stored, attributes)
        self._logger.debug("attributes_put", domain=domain, key=key, count=len(attributes))
        return self._status(op)

    async def delete_attributes(
        self,
        domain: str,
        key: str,
        attributes: Optional[Sequence[DeletableAttribute]] = None,
    ) -> int:
        op = BackendOperation.DELETE_ATTRIBUTES
        await self._enter(
            op,
            domain=domain,
            key=key,
            attributes=None if attributes is None else list(attributes),
        )
        items = self._require_domain(op, domain)
        self._apply_delete(items, key, attributes)
        return self._status(op)

    async def batch_put_attributes(
        self,
        domain: str,
        items: Sequence[ReplaceableItem],
    ) -> int:
        op = BackendOperation.BATCH_PUT_ATTRIBUTES
        await self._enter(op, domain=domain, items=list(items))
        stored_items = self._require_domain(op, domain)
        self._check_batch_size(op, domain, len(items))
        for item in items:
            self._apply_put(stored_items.setdefault(item.name, []), item.attributes)
        return self._status(op)

    async def batch_delete_attributes(
        self,
        domain: str,
        items: Sequence[DeletableItem],
    ) -> int:
        op = BackendOperation.BATCH_DELETE_ATTRIBUTES
        await self._enter(op, domain=domain, items=list(items))
        stored_items = self._require_domain(op, domain)
        self._check_batch_size(op, domain, len(items))
        for item in items:
            self._apply_delete(stored_items, item.name, item.attributes)
        return self._status(op)

    # =========================================================================
    # Domain Management
    # =========================================================================

    async def create_domain(self, domain: str) -> int:
        await self._enter(BackendOperation.CREATE_DOMAIN, domain=domain)
        self._domains.setdefault(domain, {})
        return self._status(BackendOperation.CREATE_DOMAIN)

    async def delete_domain(self, domain: str) -> int:
        await self._enter(BackendOperation.DELETE_DOMAIN, domain=domain)
        self._domains.pop(domain, None)
        return self._status(BackendOperation.DELETE_DOMAIN)

    async def list_domains(self) -> list[str]:
        await self._enter(BackendOperation.LIST_DOMAINS)
        return sorted(self._domains)

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    async def _enter(self, operation: BackendOperation, **params: Any) -> None:
        """Record the call, yield to the loop, raise a queued failure."""
        self._call_history.append({"operation": operation.value, **params})
        await asyncio.sleep(self._latency)
        queue = self._failures.get(operation)
        if queue:
            error = queue.popleft()
            error.domain = error.domain or params.get("domain")
            error.item_key = error.item_key or params.get("key")
            raise error

    def _status(self, operation: BackendOperation) -> int:
        return self._forced_status.get(operation, HTTP_OK)

    def _require_domain(
        self, operation: BackendOperation, domain: str
    ) -> dict[str, list[BackendAttribute]]:
        try:
            return self._domains[domain]
        except KeyError:
            raise BackendError(
                message=f"The specified domain does not exist: {domain}",
                operation=operation,
                kind="NoSuchDomain",
                status_code=400,
                domain=domain,
            ) from None

    def _check_batch_size(self, operation: BackendOperation, domain: str, count: int) -> None:
        if count > MAX_BATCH_ITEMS:
            raise BackendError(
                message=f"Too many items in a single call: {count} > {MAX_BATCH_ITEMS}",
                operation=operation,
                kind="NumberSubmittedItemsExceeded",
                status_code=409,
                domain=domain,
            )

    def _check_condition(
        self,
        domain: str,
        key: str,
        current: list[BackendAttribute],
        condition: UpdateCondition,
    ) -> None:
        values = [a.value for a in current if a.name == condition.name]
        if condition.exists:
            if not values:
                raise ConditionalCheckFailedError(
                    message=f"Attribute ({condition.name}) does not exist",
                    operation=BackendOperation.PUT_ATTRIBUTES,
                    kind="AttributeDoesNotExist",
                    status_code=404,
                    domain=domain,
                    item_key=key,
                )
            if condition.value not in values:
                raise ConditionalCheckFailedError(
                    message=(
                        f"Conditional check failed. Attribute ({condition.name}) "
                        f"value exists but does not match {condition.value!r}"
                    ),
                    operation=BackendOperation.PUT_ATTRIBUTES,
                    domain=domain,
                    item_key=key,
                )
        elif values:
            raise ConditionalCheckFailedError(
                message=f"Conditional check failed. Attribute ({condition.name}) value exists",
                operation=BackendOperation.PUT_ATTRIBUTES,
                domain=domain,
                item_key=key,
            )

    def _apply_put(
        self,
        stored: list[BackendAttribute],
        attributes: Iterable[ReplaceableAttribute],
    ) -> None:
        attributes = list(attributes)
        replaced = {a.name for a in attributes if a.replace}
        stored[:] = [a for a in stored if a.name not in replaced]
        for attribute in attributes:
            self._add_value(stored, attribute.name, attribute.value)

    @staticmethod
    def _add_value(stored: list[BackendAttribute], name: str, value: str) -> None:
        candidate = BackendAttribute(name=name, value=value)
        if candidate not in stored:
            stored.append(candidate)

    @staticmethod
    def _apply_delete(
        items: dict[str, list[BackendAttribute]],
        key: str,
        attributes: Optional[Iterable[DeletableAttribute]],
    ) -> None:
        if key not in items:
            return
        if attributes is None:
            del items[key]
            return
        doomed = {(a.name, a.value) for a in attributes}
        remaining = [a for a in items[key] if (a.name, a.value) not in doomed]
        if remaining:
            items[key] = remaining
        else:
            del items[key]

    def _parse_where(
        self, expression: str, where: Optional[str]
    ) -> list[tuple[str, str, str]]:
        """Scan `pred [and pred ...]` left to right.

        Each quoted literal is consumed whole, so values may contain
        " and " or doubled quotes.
        """
        if where is None:
            return []
        predicates = []
        pos = 0
        while True:
            match = _PREDICATE_RE.match(where, pos)
            if match is None:
                raise self._invalid_query(expression, f"unsupported predicate: {where[pos:].strip()}")
            quote = match.group("quote")
            value = match.group("value").replace(quote * 2, quote)
            predicates.append((_unquote_name(match.group("name")), match.group("op"), value))
            pos = match.end()
            if not where[pos:].strip():
                return predicates
            separator = _AND_RE.match(where, pos)
            if separator is None:
                raise self._invalid_query(expression, f"unsupported predicate: {where[pos:].strip()}")
            pos = separator.end()

    @staticmethod
    def _matches(attrs: list[BackendAttribute], name: str, op: str, value: str) -> bool:
        values = [a.value for a in attrs if a.name == name]
        if op == "=":
            return value in values
        return any(v != value for v in values)

    @staticmethod
    def _invalid_query(expression: str, reason: str) -> BackendError:
        return BackendError(
            message=f"The specified query expression syntax is not valid: {reason}",
            operation=BackendOperation.SELECT,
            kind="InvalidQueryExpression",
            status_code=400,
            details={"expression": expression},
        )
