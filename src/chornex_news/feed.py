"""Caller-side session that keeps a highlight feed current."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime

from chornex_news.data import AcquisitionResult, GroundingSource, Highlight, Language, NewsResponse
from chornex_news.pipeline import NewsPipeline
from chornex_news.pipeline.orchestrator import utcnow
from chornex_news.resolver import next_reference

logger = logging.getLogger(__name__)

UpdateCallback = Callable[["NewsFeed", AcquisitionResult], Awaitable[None] | None]


class NewsFeed:
    """State a client keeps between acquisitions.

    The pipeline itself is stateless between calls except through its cache.
    The feed owns the reference highlights sent with each request, replacing
    them only when an ``OK`` response arrives, and keeps showing the last
    known grounding sources when a response carries none.

    ``run`` re-invokes ``refresh`` on an interval; there is no other retry.

    Args:
        pipeline: Acquisition pipeline to call.
        language: Initial language.
        clock: Returns the current aware datetime.
    """

    def __init__(
        self,
        pipeline: NewsPipeline,
        language: Language = Language.EN,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._pipeline = pipeline
        self._language = Language(language)
        self._clock = clock
        self._reference: tuple[Highlight, ...] = ()
        self._data: NewsResponse | None = None
        self._sources: tuple[GroundingSource, ...] = ()
        self._last_updated: datetime | None = None

    @property
    def language(self) -> Language:
        return self._language

    @property
    def data(self) -> NewsResponse | None:
        """Response currently on display, or None before the first refresh."""
        return self._data

    @property
    def sources(self) -> tuple[GroundingSource, ...]:
        return self._sources

    @property
    def reference_highlights(self) -> tuple[Highlight, ...]:
        """Last accepted ``OK`` highlight set."""
        return self._reference

    @property
    def last_updated(self) -> datetime | None:
        return self._last_updated

    def set_language(self, language: Language) -> None:
        """Switch language. The next refresh re-acquires since the cache is language-tagged."""
        language = Language(language)
        if language != self._language:
            logger.info(f"Switching feed language to '{language}'")
            self._language = language

    async def refresh(self) -> AcquisitionResult:
        """Acquire once and fold the result into the feed state."""
        result = await self._pipeline.acquire(self._language, self._reference)

        self._data = result.data
        self._reference = next_reference(result.data, self._reference)
        if result.sources:
            self._sources = result.sources
        self._last_updated = self._clock()
        return result

    async def run(
        self,
        interval_seconds: float,
        *,
        iterations: int | None = None,
        on_update: UpdateCallback | None = None,
    ) -> None:
        """Refresh now and then every ``interval_seconds``.

        Args:
            interval_seconds: Delay between the end of one refresh and the next.
            iterations: Stop after this many refreshes (None runs until cancelled).
            on_update: Called after each refresh with the feed and the result.
        """
        count = 0
        while iterations is None or count < iterations:
            if count:
                await asyncio.sleep(interval_seconds)
            result = await self.refresh()
            count += 1
            if on_update is not None:
                maybe_awaitable = on_update(self, result)
                if maybe_awaitable is not None:
                    await maybe_awaitable
