"""Pipeline protocol for highlight acquisition."""

from collections.abc import Sequence
from typing import Protocol

from chornex_news.data import AcquisitionResult, Highlight, Language


class NewsPipeline(Protocol):
    """Interface for anything that can acquire a displayable highlight set."""

    async def acquire(
        self,
        language: Language,
        previous_highlights: Sequence[Highlight] = (),
    ) -> AcquisitionResult:
        """Acquire highlights for ``language``.

        Args:
            language: Target language.
            previous_highlights: Highlights the caller currently treats as the
                latest accepted set.

        Returns:
            A result that is always displayable, possibly degraded. Never raises.
        """
        ...
