"""Chornex News: resilient acquisition of AI-synthesized news highlights."""

from chornex_news.cache import CacheStore, FileCacheStore, MemoryCacheStore
from chornex_news.config import NewsConfig, create_from_config, load_config
from chornex_news.data import (
    AcquisitionResult,
    APICallUsage,
    CacheEntry,
    Category,
    GroundingSource,
    Highlight,
    Language,
    NewsResponse,
    NewsStatus,
    Origin,
    Usage,
)
from chornex_news.exceptions import (
    CacheCorrupt,
    MalformedResponse,
    NewsEngineError,
    ProviderUnavailable,
)
from chornex_news.fallback import CONFIGURATION_HIGHLIGHT, STATIC_HIGHLIGHTS, static_fallback
from chornex_news.feed import NewsFeed
from chornex_news.normalizer import normalize
from chornex_news.pipeline import FallbackOrchestrator, NewsPipeline
from chornex_news.prompts import SYSTEM_INSTRUCTION, build_prompt
from chornex_news.provider import (
    ChatCompletionsProvider,
    ClaudeHighlightProvider,
    HighlightProvider,
    ProviderFailure,
    ProviderResult,
    ProviderSuccess,
)
from chornex_news.resolver import next_reference, resolve
from chornex_news.run_logger import RunLogger
from chornex_news.url import extract_domain

__all__ = [
    # Models
    "APICallUsage",
    "AcquisitionResult",
    "CacheEntry",
    "Category",
    "GroundingSource",
    "Highlight",
    "Language",
    "NewsResponse",
    "NewsStatus",
    "Origin",
    "Usage",
    # Errors
    "CacheCorrupt",
    "MalformedResponse",
    "NewsEngineError",
    "ProviderUnavailable",
    # Functions
    "build_prompt",
    "extract_domain",
    "next_reference",
    "normalize",
    "resolve",
    "static_fallback",
    # Constants
    "CONFIGURATION_HIGHLIGHT",
    "STATIC_HIGHLIGHTS",
    "SYSTEM_INSTRUCTION",
    # Protocols
    "CacheStore",
    "HighlightProvider",
    "NewsPipeline",
    # Caches
    "FileCacheStore",
    "MemoryCacheStore",
    # Providers
    "ChatCompletionsProvider",
    "ClaudeHighlightProvider",
    "ProviderFailure",
    "ProviderResult",
    "ProviderSuccess",
    # Pipeline
    "FallbackOrchestrator",
    "NewsFeed",
    # Logging
    "RunLogger",
    # Config
    "NewsConfig",
    "create_from_config",
    "load_config",
]
