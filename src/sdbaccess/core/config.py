"""
sdbaccess.core.config - Configuration Management
==================================================

Configuration for sdbaccess, loaded from (highest priority first):

    1. Explicit constructor arguments (load_config() passes YAML values
       this way, so a YAML file wins over the environment)
    2. Environment variables (prefixed with SDB_)
    3. Default values defined in the models below

Architecture Context:
    SimpleDbConfig is created once and handed to SimpleDbClient:

        SimpleDbConfig
            ├── BackendConfig   → create_backend() → memory / aws binding
            ├── domain_name     → ItemStore
            └── log_level, ...  → configure_logging()

Environment Variables:
    SDB_DOMAIN_NAME=users
    SDB_LOG_LEVEL=DEBUG
    SDB_BACKEND__PROVIDER=aws
    SDB_BACKEND__REGION=eu-west-1
    SDB_BACKEND__ACCESS_KEY_ID=AKIA...
    SDB_BACKEND__SECRET_ACCESS_KEY=...

Leaving both credential fields unset means the AWS binding relies on the
ambient identity (environment, shared config, instance role).
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from sdbaccess.core.exceptions import ConfigurationError


# =============================================================================
# Backend Configuration
# =============================================================================
class BackendConfig(BaseModel):
    """Which backend binding to use and how to reach it.

    Attributes:
        provider: "memory" for the in-process store (tests, development),
            "aws" for Amazon SimpleDB through boto3.
        region: AWS region name used to resolve the SimpleDB endpoint.
        endpoint_url: Explicit endpoint override (proxies, emulators).
        access_key_id: Optional static credential.
        secret_access_key: Optional static credential. Must be given
            together with access_key_id.
    """

    provider: str = Field(
        default="memory",
        description="Backend provider: 'memory' or 'aws'",
    )
    region: str = Field(
        default="us-east-1",
        description="AWS region for the SimpleDB endpoint",
    )
    endpoint_url: Optional[str] = Field(
        default=None,
        description="Custom endpoint URL",
    )
    access_key_id: Optional[str] = Field(
        default=None,
        description="Static access key (None = ambient identity)",
    )
    secret_access_key: Optional[str] = Field(
        default=None,
        description="Static secret key (None = ambient identity)",
    )

    @property
    def has_static_credentials(self) -> bool:
        return bool(self.access_key_id and self.secret_access_key)


# =============================================================================
# Main Configuration
# =============================================================================
class SimpleDbConfig(BaseSettings):
    """Top-level configuration for sdbaccess.

    Attributes:
        log_level: Logging level for structlog output.
        json_logs: Render log events as JSON instead of console text.
        domain_name: The SimpleDB domain the client operates against.
        backend: Backend binding configuration (see BackendConfig).

    Example:
        >>> config = SimpleDbConfig(
        ...     domain_name="users",
        ...     backend=BackendConfig(provider="aws", region="eu-west-1"),
        ... )
    """

    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    json_logs: bool = Field(
        default=False,
        description="Emit JSON log lines instead of console rendering",
    )
    domain_name: str = Field(
        default="default",
        min_length=3,
        max_length=255,
        description="SimpleDB domain name",
    )
    backend: BackendConfig = Field(
        default_factory=BackendConfig,
        description="Backend binding configuration",
    )

    # -------------------------------------------------------------------------
    # SDB_BACKEND__REGION maps to config.backend.region
    # -------------------------------------------------------------------------
    model_config = {
        "env_prefix": "SDB_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
    }


# =============================================================================
# Configuration Loader
# =============================================================================
def load_config(path: Optional[str] = None) -> SimpleDbConfig:
    """Load configuration from a YAML file and/or environment variables.

    Args:
        path: Path to a YAML file. If None, 'sdbaccess.yaml' in the current
            directory is used when present; otherwise defaults + env vars.

    Returns:
        A validated SimpleDbConfig.

    Raises:
        FileNotFoundError: If an explicit path does not exist.
        ConfigurationError: If the file is not valid YAML or not a mapping.
    """
    if path is None:
        default_path = Path("sdbaccess.yaml")
        if default_path.exists():
            path = str(default_path)

    yaml_data: dict[str, Any] = {}
    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(config_path) as f:
            try:
                raw_data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigurationError(
                    message=f"Invalid YAML in {path}: {e}",
                    error_code="INVALID_CONFIG_FILE",
                    details={"path": str(path)},
                ) from e

        if raw_data is None:
            raw_data = {}
        if not isinstance(raw_data, dict):
            raise ConfigurationError(
                message=f"Configuration file {path} must contain a mapping",
                error_code="INVALID_CONFIG_FILE",
                details={"path": str(path), "type": type(raw_data).__name__},
            )
        yaml_data = raw_data

    return SimpleDbConfig(**yaml_data)


def get_default_config() -> SimpleDbConfig:
    """SimpleDbConfig built from defaults and environment variables."""
    return SimpleDbConfig()
