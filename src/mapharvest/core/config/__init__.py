"""Configuration loading and validation."""

from .models import (
    DEFAULT_QUERY_TEMPLATE,
    AppConfig,
    BatchConfig,
    BrowserConfig,
    LoggingConfig,
    QueryEntry,
    RetryPolicyConfig,
    ScrollConfig,
    SearchConfig,
)
from .loader import ConfigError, load_app_config, load_queries

__all__ = [
    "DEFAULT_QUERY_TEMPLATE",
    # Config models
    "AppConfig",
    "BatchConfig",
    "BrowserConfig",
    "LoggingConfig",
    "QueryEntry",
    "RetryPolicyConfig",
    "ScrollConfig",
    "SearchConfig",
    # Loaders
    "ConfigError",
    "load_app_config",
    "load_queries",
]
