"""Factory functions to create components from configuration."""

import logging
import os
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from chornex_news.cache import CacheStore, FileCacheStore, MemoryCacheStore
from chornex_news.config.models import (
    ChatProviderConfig,
    ClaudeProviderConfig,
    FileCacheConfig,
    MemoryCacheConfig,
    NewsConfig,
)
from chornex_news.pipeline import FallbackOrchestrator
from chornex_news.pipeline.orchestrator import utcnow
from chornex_news.provider import ChatCompletionsProvider, ClaudeHighlightProvider
from chornex_news.run_logger import RunLogger

logger = logging.getLogger(__name__)


def create_cache(config: FileCacheConfig | MemoryCacheConfig) -> CacheStore:
    """Create a cache store from config."""
    if isinstance(config, FileCacheConfig):
        return FileCacheStore(Path(config.path), key=config.key)
    if isinstance(config, MemoryCacheConfig):
        return MemoryCacheStore()
    msg = f"Unknown cache config type: {type(config)}"
    raise ValueError(msg)


def create_primary(config: ClaudeProviderConfig) -> ClaudeHighlightProvider | None:
    """Create the primary provider, or None when its API key is not set."""
    api_key = os.environ.get(config.api_key_env)
    if not api_key:
        logger.warning(f"{config.api_key_env} is not set, primary provider disabled")
        return None
    return ClaudeHighlightProvider(
        api_key=api_key,
        model=config.model,
        max_searches=config.max_searches,
        max_tokens=config.max_tokens,
        timeout_seconds=config.timeout_seconds,
    )


def create_secondary(config: ChatProviderConfig | None) -> ChatCompletionsProvider | None:
    """Create the fallback provider, or None when disabled or its API key is not set."""
    if config is None:
        return None
    api_key = os.environ.get(config.api_key_env)
    if not api_key:
        logger.info(f"{config.api_key_env} is not set, secondary provider disabled")
        return None
    return ChatCompletionsProvider(
        api_key=api_key,
        base_url=config.base_url,
        model=config.model,
        timeout_seconds=config.timeout_seconds,
    )


def create_from_config(
    config: NewsConfig,
    *,
    log_override: bool | None = None,
    log_dir_override: str | None = None,
    clock: Callable[[], datetime] = utcnow,
) -> tuple[FallbackOrchestrator, RunLogger | None]:
    """Create a complete pipeline from root config.

    Args:
        config: Root configuration.
        log_override: Override the config's logging.enabled setting.
        log_dir_override: Override the config's logging.log_dir setting.
        clock: Clock passed to the orchestrator.

    Returns:
        Tuple of (orchestrator, run_logger).
        run_logger is None if logging is disabled.
    """
    log_enabled = log_override if log_override is not None else config.logging.enabled
    log_dir = Path(log_dir_override if log_dir_override is not None else config.logging.log_dir)

    run_logger: RunLogger | None = None
    if log_enabled:
        run_logger = RunLogger(log_dir=log_dir, enabled=True)

    orchestrator = FallbackOrchestrator(
        cache=create_cache(config.cache),
        primary=create_primary(config.primary),
        secondary=create_secondary(config.secondary),
        ttl_seconds=config.cache.ttl_minutes * 60,
        clock=clock,
        run_logger=run_logger,
    )
    return (orchestrator, run_logger)
