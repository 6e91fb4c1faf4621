"""Highlight providers: the services that actually write the news."""

from chornex_news.provider.base import (
    HighlightProvider,
    ProviderFailure,
    ProviderResult,
    ProviderSuccess,
)
from chornex_news.provider.chat import ChatCompletionsProvider
from chornex_news.provider.claude import ClaudeHighlightProvider

__all__ = [
    "ChatCompletionsProvider",
    "ClaudeHighlightProvider",
    "HighlightProvider",
    "ProviderFailure",
    "ProviderResult",
    "ProviderSuccess",
]
