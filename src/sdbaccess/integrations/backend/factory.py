"""
sdbaccess.integrations.backend.factory - Backend Factory
===========================================================

Maps BackendConfig.provider to a concrete backend binding.

Usage:
    >>> from sdbaccess.integrations.backend import create_backend
    >>> backend = create_backend(BackendConfig(provider="memory"))
    >>> type(backend)  # InMemorySimpleDbBackend
"""

from __future__ import annotations

from sdbaccess.core.config import BackendConfig
from sdbaccess.core.exceptions import ConfigurationError
from sdbaccess.integrations.backend.base import BaseSimpleDbBackend


def create_backend(config: BackendConfig) -> BaseSimpleDbBackend:
    """Create a backend binding from configuration.

        - "memory" → InMemorySimpleDbBackend (no network, no credentials)
        - "aws"    → AwsSimpleDbBackend (boto3 `sdb` client)

    Args:
        config: Backend configuration.

    Returns:
        A ready-to-use backend.

    Raises:
        ConfigurationError: Unknown provider, or only half of a static
            credential pair supplied.
    """
    provider_name = config.provider.lower()

    if bool(config.access_key_id) != bool(config.secret_access_key):
        raise ConfigurationError(
            message="access_key_id and secret_access_key must be set together",
            error_code="INCOMPLETE_CREDENTIALS",
            details={"provider": provider_name},
        )

    if provider_name == "memory":
        from sdbaccess.integrations.backend.memory import InMemorySimpleDbBackend
        return InMemorySimpleDbBackend()

    if provider_name == "aws":
        from sdbaccess.integrations.backend.aws import AwsSimpleDbBackend
        return AwsSimpleDbBackend(config)

    raise ConfigurationError(
        message=(
            f"Unknown backend provider: '{provider_name}'. "
            f"Available providers: 'memory', 'aws'."
        ),
        error_code="UNKNOWN_BACKEND",
        details={"provider": provider_name},
    )
