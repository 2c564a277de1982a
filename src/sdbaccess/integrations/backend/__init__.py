"""
sdbaccess.integrations.backend - SimpleDB Backend Bindings
=============================================================

    - BaseSimpleDbBackend:      abstract backend contract + wire records
    - InMemorySimpleDbBackend:  in-process emulation for tests/development
    - AwsSimpleDbBackend:       Amazon SimpleDB over boto3
    - create_backend():         factory keyed by BackendConfig.provider

The AWS binding is imported lazily by the factory so the in-memory path
never touches boto3.
"""

from sdbaccess.integrations.backend.base import (
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
from sdbaccess.integrations.backend.factory import create_backend
from sdbaccess.integrations.backend.memory import InMemorySimpleDbBackend

__all__ = [
    "BaseSimpleDbBackend",
    "InMemorySimpleDbBackend",
    "create_backend",
    "BackendAttribute",
    "BackendItem",
    "DeletableAttribute",
    "DeletableItem",
    "ReplaceableAttribute",
    "ReplaceableItem",
    "SelectResponse",
    "UpdateCondition",
]
