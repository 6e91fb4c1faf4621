"""Pydantic configuration models for Chornex News components."""

from typing import Literal

from pydantic import BaseModel, Field

from chornex_news.cache.base import DEFAULT_CACHE_KEY
from chornex_news.data import Language

# ============================================================
# Cache Configs
# ============================================================


class FileCacheConfig(BaseModel):
    """Configuration for FileCacheStore."""

    type: Literal["file"] = "file"
    path: str = ".cache/chornex_news.json"
    key: str = DEFAULT_CACHE_KEY
    ttl_minutes: float = Field(default=15.0, gt=0)

    model_config = {"frozen": True}


class MemoryCacheConfig(BaseModel):
    """Configuration for MemoryCacheStore."""

    type: Literal["memory"] = "memory"
    ttl_minutes: float = Field(default=15.0, gt=0)

    model_config = {"frozen": True}


# ============================================================
# Provider Configs
# ============================================================


class ClaudeProviderConfig(BaseModel):
    """Configuration for ClaudeHighlightProvider (primary)."""

    type: Literal["claude"] = "claude"
    model: str = "claude-haiku-4-5-20251001"
    max_searches: int = Field(default=3, ge=1)
    max_tokens: int = Field(default=4096, ge=256)
    timeout_seconds: float = Field(default=60.0, gt=0)
    api_key_env: str = "CLAUDE_API_KEY"

    model_config = {"frozen": True}


class ChatProviderConfig(BaseModel):
    """Configuration for ChatCompletionsProvider (secondary)."""

    type: Literal["chat_completions"] = "chat_completions"
    base_url: str = "https://api.openai.com/v1"
    model: str = "gpt-4o-mini"
    timeout_seconds: float = Field(default=60.0, gt=0)
    api_key_env: str = "FALLBACK_LLM_API_KEY"

    model_config = {"frozen": True}


# ============================================================
# Refresh / Logging Configs
# ============================================================


class RefreshConfig(BaseModel):
    """Configuration for the periodic feed refresh."""

    language: Language = Language.EN
    interval_seconds: float = Field(default=300.0, gt=0)

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Configuration for per-acquisition run logging."""

    enabled: bool = False
    log_dir: str = "logs"

    model_config = {"frozen": True}


# ============================================================
# Root Config
# ============================================================


class NewsConfig(BaseModel):
    """Root configuration for Chornex News.

    ``secondary`` may be null to run without a fallback provider.
    """

    cache: FileCacheConfig | MemoryCacheConfig = Field(
        default_factory=FileCacheConfig, discriminator="type"
    )
    primary: ClaudeProviderConfig = Field(default_factory=ClaudeProviderConfig)
    secondary: ChatProviderConfig | None = Field(default_factory=ChatProviderConfig)
    refresh: RefreshConfig = Field(default_factory=RefreshConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}
