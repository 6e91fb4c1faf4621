"""Cache-first fallback chain for highlight acquisition."""

import asyncio
import logging
import time
from collections.abc import Callable, Sequence
from datetime import UTC, datetime

from chornex_news.cache import CacheStore
from chornex_news.data import (
    AcquisitionResult,
    CacheEntry,
    GroundingSource,
    Highlight,
    Language,
    NewsResponse,
    NewsStatus,
    Origin,
    Usage,
)
from chornex_news.exceptions import MalformedResponse
from chornex_news.fallback import static_fallback
from chornex_news.normalizer import check_regional_highlight, normalize
from chornex_news.prompts import SYSTEM_INSTRUCTION, build_prompt
from chornex_news.provider import HighlightProvider, ProviderFailure
from chornex_news.resolver import resolve
from chornex_news.run_logger import RunLogger

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 15 * 60


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


class FallbackOrchestrator:
    """Acquire highlights through a strictly ordered chain of sources.

    Order: fresh cache, primary provider, secondary provider, any cached
    entry (served as ``QUOTA_EXCEEDED``), static fallback. The first viable
    source wins, so a refresh costs at most two billed provider calls and
    usually none. An unexpected error anywhere in the chain still ends in
    the last two steps.

    Overlapping ``acquire`` calls for the same language share one in-flight
    acquisition.

    Args:
        cache: Store holding the last successful response.
        primary: Search-grounded provider, or None when its credentials are
            absent. When no provider answers, a missing primary is reported
            through the "Configuration Required" highlight instead of any
            cached archive.
        secondary: Text-only fallback provider, or None.
        ttl_seconds: Max age of a cache entry that short-circuits providers.
        system_instruction: Standing instruction sent to both providers.
        clock: Returns the current aware datetime.
        run_logger: Optional RunLogger for per-acquisition traces.
    """

    def __init__(
        self,
        cache: CacheStore,
        primary: HighlightProvider | None,
        secondary: HighlightProvider | None = None,
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        system_instruction: str = SYSTEM_INSTRUCTION,
        clock: Callable[[], datetime] = utcnow,
        run_logger: RunLogger | None = None,
    ) -> None:
        self._cache = cache
        self._primary = primary
        self._secondary = secondary
        self._ttl = ttl_seconds
        self._system_instruction = system_instruction
        self._clock = clock
        self._run_logger = run_logger
        self._inflight: dict[Language, asyncio.Task[AcquisitionResult]] = {}

    async def acquire(
        self,
        language: Language,
        previous_highlights: Sequence[Highlight] = (),
    ) -> AcquisitionResult:
        """Acquire highlights for ``language``.

        If an acquisition for the same language is already running, its
        result is shared instead of starting another one (the later caller's
        ``previous_highlights`` are not used).

        Args:
            language: Target language.
            previous_highlights: The caller's current reference highlights.

        Returns:
            A displayable result. Never raises.
        """
        language = Language(language)
        task = self._inflight.get(language)
        if task is None:
            task = asyncio.ensure_future(self._acquire(language, tuple(previous_highlights)))
            self._inflight[language] = task
            task.add_done_callback(lambda t, lang=language: self._forget(lang, t))
        else:
            logger.info(f"Joining in-flight acquisition for '{language}'")
        # A cancelled waiter must not cancel the acquisition others are sharing
        return await asyncio.shield(task)

    def _forget(self, language: Language, task: asyncio.Task[AcquisitionResult]) -> None:
        if self._inflight.get(language) is task:
            del self._inflight[language]

    async def _acquire(
        self, language: Language, previous: tuple[Highlight, ...]
    ) -> AcquisitionResult:
        run_id = None
        if self._run_logger:
            run_id = self._run_logger.start_run(language.value, len(previous))

        try:
            result = await self._run_chain(run_id, language, previous)
        except Exception:
            logger.error("Acquisition failed unexpectedly, serving degraded data", exc_info=True)
            result = self._serve_degraded(
                run_id, language, self._clock(), self._read_cache(), Usage()
            )

        if self._run_logger:
            self._run_logger.finish_run(run_id, result)
        return result

    async def _run_chain(
        self, run_id: str | None, language: Language, previous: tuple[Highlight, ...]
    ) -> AcquisitionResult:
        now = self._clock()

        # Step 1: fresh cache
        cached = self._read_cache()
        if cached is not None and cached.is_fresh(language, now, self._ttl):
            logger.info("Serving fresh cache to preserve API quota")
            self._log_stage(run_id, "cache", "hit")
            return AcquisitionResult(data=cached.data, sources=cached.sources, origin=Origin.CACHE)
        self._log_stage(run_id, "cache", "miss" if cached is None else "stale")

        # Steps 2-4: providers in order
        if self._primary is None:
            logger.warning("Primary provider API key is missing, skipping primary")

        prompt = build_prompt(language, previous, now)
        usage = Usage()
        tiers = (
            ("primary", Origin.PRIMARY, self._primary),
            ("secondary", Origin.SECONDARY, self._secondary),
        )
        for stage, origin, provider in tiers:
            if provider is None:
                self._log_stage(run_id, stage, "skipped", detail="not configured")
                continue

            outcome = await self._try_provider(
                run_id, stage, provider, prompt, language, previous, usage
            )
            if outcome is None:
                continue

            response, sources = outcome
            # Only the search-grounded primary can attribute its answer
            if origin != Origin.PRIMARY:
                sources = ()
            self._write_cache(
                CacheEntry(
                    data=response,
                    sources=sources,
                    captured_at=self._clock(),
                    language=language,
                )
            )
            logger.info(f"Acquired {len(response.highlights)} highlights from {stage} provider")
            return AcquisitionResult(data=response, sources=sources, origin=origin, usage=usage)

        return self._serve_degraded(run_id, language, now, cached, usage)

    def _serve_degraded(
        self,
        run_id: str | None,
        language: Language,
        now: datetime,
        cached: CacheEntry | None,
        usage: Usage,
    ) -> AcquisitionResult:
        """Serve archival data once no provider produced an answer.

        A missing primary credential always surfaces as the "Configuration
        Required" highlight, even over a cached archive.
        """
        if self._primary is None:
            logger.warning("No provider answered and the primary is not configured")
            self._log_stage(run_id, "static_fallback", "served", detail="configuration missing")
            return AcquisitionResult(
                data=static_fallback(language, now, configuration_missing=True),
                origin=Origin.STATIC_FALLBACK,
                usage=usage,
            )

        # Step 5: any cache entry, marked as archival
        if cached is not None:
            logger.warning("All providers failed, serving cached highlights as archive")
            self._log_stage(run_id, "stale_cache", "served")
            return AcquisitionResult(
                data=cached.data.with_status(NewsStatus.QUOTA_EXCEEDED),
                sources=cached.sources,
                origin=Origin.STALE_CACHE,
                usage=usage,
            )

        # Step 6: static fallback
        logger.warning("All providers failed and no cache exists, serving static fallback")
        self._log_stage(run_id, "static_fallback", "served")
        return AcquisitionResult(
            data=static_fallback(language, now),
            origin=Origin.STATIC_FALLBACK,
            usage=usage,
        )

    async def _try_provider(
        self,
        run_id: str | None,
        stage: str,
        provider: HighlightProvider,
        prompt: str,
        language: Language,
        previous: tuple[Highlight, ...],
        usage: Usage,
    ) -> tuple[NewsResponse, tuple[GroundingSource, ...]] | None:
        """Call one provider and validate its answer.

        An answer in a language other than the requested one is rejected
        like any other malformed answer.

        Returns:
            The resolved response and its sources, or None if this tier
            produced nothing usable.
        """
        component = type(provider).__name__
        t0 = time.monotonic()
        try:
            result = await provider.generate(self._system_instruction, prompt, language)
        except Exception as e:
            logger.warning(f"{stage} provider raised: {e}", exc_info=True)
            self._log_stage(run_id, stage, "error", component=component, detail=str(e), t0=t0)
            return None

        usage += result.usage
        if isinstance(result, ProviderFailure):
            logger.warning(f"{stage} provider failed: {result.error}")
            self._log_stage(
                run_id, stage, "failed", component=component, detail=str(result.error),
                usage=result.usage, t0=t0,
            )
            return None

        try:
            response = normalize(result.raw_text)
            if response.language != language:
                raise MalformedResponse(
                    f"Answered in '{response.language}', requested '{language}'",
                    result.raw_text,
                )
        except MalformedResponse as e:
            logger.warning(f"{stage} provider returned a malformed response: {e}")
            logger.debug(f"Raw {stage} response: {e.raw_text!r}")
            self._log_stage(
                run_id, stage, "malformed", component=component, detail=str(e),
                usage=result.usage, t0=t0,
            )
            return None

        check_regional_highlight(response)

        self._log_stage(
            run_id, stage, "success", component=component, detail=response.status.value,
            usage=result.usage, t0=t0,
        )
        return resolve(response, previous), result.sources

    def _read_cache(self) -> CacheEntry | None:
        try:
            return self._cache.get()
        except Exception:
            logger.warning("Cache read failed, treating as miss", exc_info=True)
            return None

    def _write_cache(self, entry: CacheEntry) -> None:
        try:
            self._cache.put(entry)
        except Exception:
            logger.warning("Cache write failed, result not persisted", exc_info=True)

    def _log_stage(
        self,
        run_id: str | None,
        stage: str,
        outcome: str,
        *,
        component: str | None = None,
        detail: str | None = None,
        usage: Usage | None = None,
        t0: float | None = None,
    ) -> None:
        if not self._run_logger:
            return
        self._run_logger.log_stage(
            run_id,
            stage=stage,
            component=component or type(self).__name__,
            outcome=outcome,
            detail=detail,
            usage=usage,
            duration_seconds=time.monotonic() - t0 if t0 is not None else 0.0,
        )
