"""Highlight acquisition pipelines."""

from chornex_news.pipeline.base import NewsPipeline
from chornex_news.pipeline.orchestrator import DEFAULT_TTL_SECONDS, FallbackOrchestrator

__all__ = [
    "DEFAULT_TTL_SECONDS",
    "FallbackOrchestrator",
    "NewsPipeline",
]
