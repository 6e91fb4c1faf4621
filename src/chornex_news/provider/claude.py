import logging
import os

import anthropic

from chornex_news.data import APICallUsage, GroundingSource, Language, Usage
from chornex_news.exceptions import ProviderUnavailable
from chornex_news.provider.base import ProviderFailure, ProviderResult, ProviderSuccess
from chornex_news.url import is_linkable

logger = logging.getLogger(__name__)


class ClaudeHighlightProvider:
    """Generate highlights with Claude, grounded by its built-in web search tool.

    Grounding sources are the web search results Claude consulted while
    answering, plus any citations attached to the answer text. A response
    that did not search has no sources.

    Args:
        api_key: Anthropic API key (defaults to CLAUDE_API_KEY env var).
        model: Model to use (default: claude-haiku-4-5-20251001).
        max_searches: Max web searches per request (default: 3).
        max_tokens: Output token limit (default: 4096).
        timeout_seconds: Request timeout (default: 60).
    """

    name = "claude"

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str = "claude-haiku-4-5-20251001",
        max_searches: int = 3,
        max_tokens: int = 4096,
        timeout_seconds: float = 60.0,
    ) -> None:
        resolved_key = api_key or os.environ.get("CLAUDE_API_KEY")
        self._client = (
            anthropic.AsyncAnthropic(api_key=resolved_key, timeout=timeout_seconds)
            if resolved_key
            else None
        )
        self._model = model
        self._max_searches = max_searches
        self._max_tokens = max_tokens

    @property
    def model(self) -> str:
        return self._model

    async def generate(
        self,
        system_instruction: str,
        prompt: str,
        language: Language,
    ) -> ProviderResult:
        if self._client is None:
            return ProviderFailure(ProviderUnavailable(self.name, "API key not configured"))

        try:
            response = await self._client.messages.create(
                model=self._model,
                max_tokens=self._max_tokens,
                system=system_instruction,
                tools=[
                    {
                        "type": "web_search_20250305",
                        "name": "web_search",
                        "max_uses": self._max_searches,
                    }
                ],
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.RateLimitError as e:
            return ProviderFailure(ProviderUnavailable(self.name, f"rate limited: {e}"))
        except anthropic.APIError as e:
            return ProviderFailure(ProviderUnavailable(self.name, str(e)))

        usage = self._usage(response)
        text = self._answer_text(response)
        if not text:
            return ProviderFailure(
                ProviderUnavailable(self.name, f"empty answer (stop_reason={response.stop_reason})"),
                usage=usage,
            )

        sources = self._grounding_sources(response)
        logger.debug(f"Claude answered for '{language}' with {len(sources)} sources")
        return ProviderSuccess(raw_text=text, sources=sources, usage=usage)

    def _usage(self, response: anthropic.types.Message) -> Usage:
        web_searches = 0
        server_tool_use = getattr(response.usage, "server_tool_use", None)
        if server_tool_use is not None:
            web_searches = getattr(server_tool_use, "web_search_requests", 0) or 0

        return Usage(
            api_calls=[
                APICallUsage(
                    model=self._model,
                    input_tokens=response.usage.input_tokens,
                    output_tokens=response.usage.output_tokens,
                    web_searches=web_searches,
                ),
            ],
        )

    @staticmethod
    def _answer_text(response: anthropic.types.Message) -> str:
        """Join the text blocks that follow the last web search result.

        Text emitted before or between searches is narration ("Let me
        search..."), not the answer.
        """
        blocks = list(response.content)
        start = 0
        for i, block in enumerate(blocks):
            if block.type == "web_search_tool_result":
                start = i + 1
        return "".join(block.text for block in blocks[start:] if block.type == "text").strip()

    @staticmethod
    def _grounding_sources(response: anthropic.types.Message) -> tuple[GroundingSource, ...]:
        seen: set[str] = set()
        sources: list[GroundingSource] = []

        def add(url: str | None, title: str | None) -> None:
            if not is_linkable(url) or url in seen:
                return
            seen.add(url)  # type: ignore[arg-type]
            sources.append(GroundingSource(uri=url, title=title or None))  # type: ignore[arg-type]

        for block in response.content:
            if block.type == "web_search_tool_result":
                # Errors come back as a single object instead of a list
                if isinstance(block.content, list):
                    for result in block.content:
                        add(result.url, result.title)
            elif block.type == "text":
                citations = getattr(block, "citations", None)
                if isinstance(citations, list):
                    for citation in citations:
                        add(getattr(citation, "url", None), getattr(citation, "title", None))

        return tuple(sources)
