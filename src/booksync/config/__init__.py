"""Application configuration helpers."""

from __future__ import annotations

from .airtable import AirtableConfig, get_airtable_config
from .env import optional_env, positive_int_env, require_env_vars
from .errors import ConfigurationError, InvalidConfigurationError, MissingConfigurationError
from .http_resilience import HttpRetryPolicy, RateLimit, ResilienceConfig
from .logging import configure_logging
from .reconciler import get_reconciler_settings
from .storage import (
    DatabaseConfig,
    StorageConfig,
    StoreBackend,
    get_database_config,
    get_storage_config,
    get_store_backend,
)

__all__ = [
    "AirtableConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "HttpRetryPolicy",
    "InvalidConfigurationError",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "StorageConfig",
    "StoreBackend",
    "configure_logging",
    "get_airtable_config",
    "get_database_config",
    "get_reconciler_settings",
    "get_storage_config",
    "get_store_backend",
    "optional_env",
    "positive_int_env",
    "require_env_vars",
]
