import logging
import os

import httpx

from chornex_news.data import APICallUsage, Language, Usage
from chornex_news.exceptions import ProviderUnavailable
from chornex_news.provider.base import ProviderFailure, ProviderResult, ProviderSuccess

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"


class ChatCompletionsProvider:
    """Text-only highlight provider for any OpenAI-compatible chat endpoint.

    Used as the fallback behind the search-grounded provider. It never
    returns grounding sources.

    Args:
        api_key: Bearer token (defaults to FALLBACK_LLM_API_KEY env var).
        base_url: API root; ``/chat/completions`` is appended.
        model: Model name sent with each request.
        timeout_seconds: Request timeout (default: 60).
    """

    name = "chat_completions"

    def __init__(
        self,
        *,
        api_key: str | None = None,
        base_url: str = DEFAULT_BASE_URL,
        model: str = "gpt-4o-mini",
        timeout_seconds: float = 60.0,
    ) -> None:
        self._api_key = api_key or os.environ.get("FALLBACK_LLM_API_KEY")
        self._url = base_url.rstrip("/") + "/chat/completions"
        self._model = model
        self._timeout = timeout_seconds

    @property
    def model(self) -> str:
        return self._model

    async def generate(
        self,
        system_instruction: str,
        prompt: str,
        language: Language,
    ) -> ProviderResult:
        if not self._api_key:
            return ProviderFailure(ProviderUnavailable(self.name, "API key not configured"))

        payload = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": system_instruction},
                {"role": "user", "content": prompt},
            ],
            "temperature": 0.2,
        }
        headers = {"Authorization": f"Bearer {self._api_key}"}

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(self._url, json=payload, headers=headers)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            reason = f"HTTP {e.response.status_code}"
            if e.response.status_code == 429:
                reason += " (quota exhausted)"
            return ProviderFailure(ProviderUnavailable(self.name, reason))
        except (httpx.HTTPError, ValueError) as e:
            return ProviderFailure(ProviderUnavailable(self.name, f"{type(e).__name__}: {e}"))

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            return ProviderFailure(ProviderUnavailable(self.name, "response has no choices"))

        usage = Usage(
            api_calls=[
                APICallUsage(
                    model=self._model,
                    input_tokens=(data.get("usage") or {}).get("prompt_tokens", 0),
                    output_tokens=(data.get("usage") or {}).get("completion_tokens", 0),
                )
            ]
        )
        if not isinstance(content, str) or not content.strip():
            return ProviderFailure(ProviderUnavailable(self.name, "empty answer"), usage=usage)

        logger.debug(f"Fallback model answered for '{language}'")
        return ProviderSuccess(raw_text=content, usage=usage)
