"""
sdbaccess.core - Foundation Layer
==================================

Building blocks every other module depends on:

    - config:      SimpleDbConfig, BackendConfig, load_config()
    - enums:       ReplaceMode, UpdateStatus, BackendOperation
    - models:      ItemAttribute, Item, UpdatePlan, UpdateResult, sentinel
    - exceptions:  SimpleDbAccessError hierarchy
    - logging:     structlog configuration

Dependency Rule:
    core/ depends on NOTHING else in the sdbaccess package. No I/O here.
"""

from sdbaccess.core.config import BackendConfig, SimpleDbConfig, load_config
from sdbaccess.core.enums import BackendOperation, ReplaceMode, UpdateStatus
from sdbaccess.core.exceptions import (
    BackendError,
    ConditionalCheckFailedError,
    ConfigurationError,
    PartialUpdateError,
    SimpleDbAccessError,
)
from sdbaccess.core.models import (
    EXISTS_ATTRIBUTE,
    EXISTS_VALUE,
    Item,
    ItemAttribute,
    UpdatePlan,
    UpdateResult,
    sentinel_attribute,
)

__all__ = [
    # Config
    "SimpleDbConfig",
    "BackendConfig",
    "load_config",
    # Enums
    "ReplaceMode",
    "UpdateStatus",
    "BackendOperation",
    # Models
    "Item",
    "ItemAttribute",
    "UpdatePlan",
    "UpdateResult",
    "EXISTS_ATTRIBUTE",
    "EXISTS_VALUE",
    "sentinel_attribute",
    # Exceptions
    "SimpleDbAccessError",
    "ConfigurationError",
    "BackendError",
    "ConditionalCheckFailedError",
    "PartialUpdateError",
]
