"""Configuration module for Chornex News."""

from chornex_news.config.factory import (
    create_cache,
    create_from_config,
    create_primary,
    create_secondary,
)
from chornex_news.config.loader import get_default_config_path, load_config
from chornex_news.config.models import (
    ChatProviderConfig,
    ClaudeProviderConfig,
    FileCacheConfig,
    LoggingConfig,
    MemoryCacheConfig,
    NewsConfig,
    RefreshConfig,
)

__all__ = [
    "ChatProviderConfig",
    "ClaudeProviderConfig",
    "FileCacheConfig",
    "LoggingConfig",
    "MemoryCacheConfig",
    "NewsConfig",
    "RefreshConfig",
    "create_cache",
    "create_from_config",
    "create_primary",
    "create_secondary",
    "get_default_config_path",
    "load_config",
]
