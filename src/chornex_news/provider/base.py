from dataclasses import dataclass, field
from typing import Protocol

from chornex_news.data import GroundingSource, Language, Usage
from chornex_news.exceptions import ProviderUnavailable


@dataclass(frozen=True)
class ProviderSuccess:
    """Raw answer text plus any grounding sources the provider attached."""

    raw_text: str
    sources: tuple[GroundingSource, ...] = ()
    usage: Usage = field(default_factory=Usage)


@dataclass(frozen=True)
class ProviderFailure:
    """The provider could not answer. The reason is informational only."""

    error: ProviderUnavailable
    usage: Usage = field(default_factory=Usage)


ProviderResult = ProviderSuccess | ProviderFailure


class HighlightProvider(Protocol):
    """Interface for services that generate highlight text from a prompt."""

    name: str

    async def generate(
        self,
        system_instruction: str,
        prompt: str,
        language: Language,
    ) -> ProviderResult:
        """Generate highlights.

        Args:
            system_instruction: Standing instruction describing the output format.
            prompt: Per-request prompt.
            language: Target language of the highlights.

        Returns:
            ``ProviderSuccess`` with the raw text, or ``ProviderFailure``.
            Implementations report failures through the result, not by raising.
        """
        ...
