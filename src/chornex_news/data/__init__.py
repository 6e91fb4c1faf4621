"""Data models for Chornex News."""

from chornex_news.data.models import (
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

__all__ = [
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
]
