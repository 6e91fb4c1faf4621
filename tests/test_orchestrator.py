"""Tests for the fallback orchestrator."""

import asyncio
import json
from datetime import UTC, datetime, timedelta
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from chornex_news.cache import MemoryCacheStore
from chornex_news.data import (
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
from chornex_news.exceptions import ProviderUnavailable
from chornex_news.fallback import (
    CONFIGURATION_HEADLINE,
    CONFIGURATION_HIGHLIGHT,
    MAINTENANCE_HEADLINE,
    STATIC_HIGHLIGHTS,
)
from chornex_news.pipeline import FallbackOrchestrator
from chornex_news.prompts import SYSTEM_INSTRUCTION
from chornex_news.provider import ProviderFailure, ProviderSuccess
from chornex_news.run_logger import RunLogger

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=UTC)

FRESH_HIGHLIGHTS = (
    Highlight(headline="Summit opens", summary="Leaders met.", category=Category.WORLD),
    Highlight(headline="Dhaka metro", summary="New line.", category=Category.BANGLADESH),
)
PREVIOUS = (
    Highlight(headline="Earlier story", summary="Full earlier summary.", category=Category.TECH),
    Highlight(headline="Earlier Dhaka", summary="Earlier body.", category=Category.BANGLADESH),
)
SOURCES = (GroundingSource(uri="https://example.com/summit", title="Example"),)


def _raw(
    status: str = "OK",
    highlights: tuple[Highlight, ...] = FRESH_HIGHLIGHTS,
    language: str = "en",
) -> str:
    return json.dumps(
        {
            "generated_at": "2026-10-18 12:00 UTC",
            "language": language,
            "status": status,
            "highlights": [
                {
                    "headline": h.headline,
                    "summary": h.summary,
                    "category": h.category.value,
                    "timestamp": "just now",
                }
                for h in highlights
            ],
        }
    )


def _provider(result: object = None, *, side_effect: object = None) -> MagicMock:
    provider = MagicMock()
    provider.generate = AsyncMock(return_value=result, side_effect=side_effect)
    return provider


def _failing() -> MagicMock:
    return _provider(ProviderFailure(ProviderUnavailable("mock", "quota exhausted")))


def _cache_with(
    status: NewsStatus = NewsStatus.OK,
    *,
    age: timedelta = timedelta(minutes=1),
    language: Language = Language.EN,
) -> MemoryCacheStore:
    store = MemoryCacheStore()
    store.put(
        CacheEntry(
            data=NewsResponse(
                generated_at="2026-10-18 11:00 UTC",
                language=language,
                status=status,
                highlights=PREVIOUS,
            ),
            sources=SOURCES,
            captured_at=NOW - age,
            language=language,
        )
    )
    return store


def _orchestrator(cache, primary, secondary=None, **kwargs) -> FallbackOrchestrator:
    return FallbackOrchestrator(cache, primary, secondary, clock=lambda: NOW, **kwargs)


class TestCachePrecedence:
    """A fresh cache entry short-circuits every provider."""

    async def test_fresh_cache_makes_no_provider_call(self) -> None:
        primary = _provider(ProviderSuccess(raw_text=_raw()))
        secondary = _provider(ProviderSuccess(raw_text=_raw()))
        orchestrator = _orchestrator(_cache_with(), primary, secondary)

        result = await orchestrator.acquire(Language.EN, ())

        assert result.origin == Origin.CACHE
        assert result.data.highlights == PREVIOUS
        assert result.sources == SOURCES
        primary.generate.assert_not_called()
        secondary.generate.assert_not_called()

    async def test_fresh_cache_keeps_original_status(self) -> None:
        orchestrator = _orchestrator(_cache_with(NewsStatus.NO_NEW_UPDATE), _failing())
        result = await orchestrator.acquire(Language.EN, ())
        assert result.data.status == NewsStatus.NO_NEW_UPDATE

    async def test_language_mismatch_forces_refresh(self) -> None:
        primary = _provider(ProviderSuccess(raw_text=_raw(language="bn"), sources=SOURCES))
        orchestrator = _orchestrator(_cache_with(language=Language.EN), primary)

        result = await orchestrator.acquire(Language.BN, ())

        primary.generate.assert_awaited_once()
        assert result.origin == Origin.PRIMARY

    async def test_stale_cache_forces_refresh(self) -> None:
        primary = _provider(ProviderSuccess(raw_text=_raw()))
        orchestrator = _orchestrator(_cache_with(age=timedelta(minutes=16)), primary)

        result = await orchestrator.acquire(Language.EN, ())

        primary.generate.assert_awaited_once()
        assert result.origin == Origin.PRIMARY

    async def test_custom_ttl(self) -> None:
        primary = _provider(ProviderSuccess(raw_text=_raw()))
        orchestrator = _orchestrator(
            _cache_with(age=timedelta(minutes=6)), primary, ttl_seconds=5 * 60
        )
        await orchestrator.acquire(Language.EN, ())
        primary.generate.assert_awaited_once()


class TestProviderChain:
    """Primary, then secondary."""

    async def test_primary_success_is_cached_with_sources(self) -> None:
        cache = MemoryCacheStore()
        primary = _provider(ProviderSuccess(raw_text=_raw(), sources=SOURCES))
        orchestrator = _orchestrator(cache, primary)

        result = await orchestrator.acquire(Language.EN, ())

        assert result.origin == Origin.PRIMARY
        assert result.data.status == NewsStatus.OK
        assert result.data.highlights == FRESH_HIGHLIGHTS
        assert result.sources == SOURCES

        entry = cache.get()
        assert entry is not None
        assert entry.data == result.data
        assert entry.sources == SOURCES
        assert entry.language == Language.EN
        assert entry.captured_at == NOW

    async def test_primary_receives_instruction_and_reduced_prompt(self) -> None:
        primary = _provider(ProviderSuccess(raw_text=_raw()))
        orchestrator = _orchestrator(MemoryCacheStore(), primary)

        await orchestrator.acquire(Language.BN, PREVIOUS)

        instruction, prompt, language = primary.generate.call_args.args
        assert instruction == SYSTEM_INSTRUCTION
        assert language == Language.BN
        assert "Earlier story" in prompt
        assert "Full earlier summary." not in prompt
        assert NOW.isoformat() in prompt

    async def test_secondary_used_when_primary_fails(self) -> None:
        cache = MemoryCacheStore()
        secondary = _provider(ProviderSuccess(raw_text=_raw(status="NO NEW UPDATE")))
        orchestrator = _orchestrator(cache, _failing(), secondary)

        result = await orchestrator.acquire(Language.EN, PREVIOUS)

        assert result.origin == Origin.SECONDARY
        assert result.sources == ()
        # Secondary's own status, not forced to QUOTA_EXCEEDED
        assert result.data.status == NewsStatus.NO_NEW_UPDATE
        entry = cache.get()
        assert entry is not None
        assert entry.sources == ()

    async def test_secondary_sources_are_dropped(self) -> None:
        secondary = _provider(ProviderSuccess(raw_text=_raw(), sources=SOURCES))
        orchestrator = _orchestrator(MemoryCacheStore(), _failing(), secondary)
        result = await orchestrator.acquire(Language.EN, ())
        assert result.sources == ()

    async def test_malformed_primary_falls_through(self) -> None:
        primary = _provider(ProviderSuccess(raw_text="I could not find anything today."))
        secondary = _provider(ProviderSuccess(raw_text=_raw()))
        orchestrator = _orchestrator(MemoryCacheStore(), primary, secondary)

        result = await orchestrator.acquire(Language.EN, ())

        assert result.origin == Origin.SECONDARY
        secondary.generate.assert_awaited_once()

    async def test_raising_primary_falls_through(self) -> None:
        primary = _provider(side_effect=RuntimeError("socket closed"))
        secondary = _provider(ProviderSuccess(raw_text=_raw()))
        orchestrator = _orchestrator(MemoryCacheStore(), primary, secondary)

        result = await orchestrator.acquire(Language.EN, ())

        assert result.origin == Origin.SECONDARY

    async def test_wrong_language_answer_falls_through(self) -> None:
        primary = _provider(ProviderSuccess(raw_text=_raw(language="bn"), sources=SOURCES))
        secondary = _provider(ProviderSuccess(raw_text=_raw(language="en")))
        orchestrator = _orchestrator(MemoryCacheStore(), primary, secondary)

        result = await orchestrator.acquire(Language.EN, ())

        assert result.origin == Origin.SECONDARY
        assert result.data.language == Language.EN

    async def test_wrong_language_answer_is_not_cached(self) -> None:
        cache = MemoryCacheStore()
        primary = _provider(ProviderSuccess(raw_text=_raw(language="bn")))
        orchestrator = _orchestrator(cache, primary)

        result = await orchestrator.acquire(Language.EN, ())

        assert result.origin == Origin.STATIC_FALLBACK
        assert cache.get() is None

    async def test_secondary_not_called_after_primary_success(self) -> None:
        secondary = _provider(ProviderSuccess(raw_text=_raw()))
        orchestrator = _orchestrator(
            MemoryCacheStore(), _provider(ProviderSuccess(raw_text=_raw())), secondary
        )
        await orchestrator.acquire(Language.EN, ())
        secondary.generate.assert_not_called()

    async def test_usage_accumulates_across_tiers(self) -> None:
        primary = _provider(
            ProviderFailure(
                ProviderUnavailable("mock", "empty answer"),
                usage=Usage(api_calls=[APICallUsage(model="p", input_tokens=10)]),
            )
        )
        secondary = _provider(
            ProviderSuccess(
                raw_text=_raw(),
                usage=Usage(api_calls=[APICallUsage(model="s", input_tokens=5)]),
            )
        )
        orchestrator = _orchestrator(MemoryCacheStore(), primary, secondary)

        result = await orchestrator.acquire(Language.EN, ())

        assert result.usage.input_tokens == 15


class TestStatusResolution:
    """Duplicate suppression through the chain."""

    async def test_no_new_update_keeps_previous_highlights(self) -> None:
        echo = (Highlight(headline="Earlier story", summary="truncated"),)
        primary = _provider(ProviderSuccess(raw_text=_raw(status="NO NEW UPDATE", highlights=echo)))
        cache = MemoryCacheStore()
        orchestrator = _orchestrator(cache, primary)

        result = await orchestrator.acquire(Language.EN, PREVIOUS)

        assert result.data.status == NewsStatus.NO_NEW_UPDATE
        assert result.data.highlights == PREVIOUS
        assert result.data.generated_at == "2026-10-18 12:00 UTC"
        entry = cache.get()
        assert entry is not None
        assert entry.data.highlights == PREVIOUS


class TestDegradedServing:
    """Stale cache and static fallback."""

    @pytest.mark.parametrize("original", [NewsStatus.OK, NewsStatus.NO_NEW_UPDATE])
    async def test_stale_cache_served_as_quota_exceeded(self, original: NewsStatus) -> None:
        cache = _cache_with(original, age=timedelta(hours=6))
        orchestrator = _orchestrator(cache, _failing(), _failing())

        result = await orchestrator.acquire(Language.EN, ())

        assert result.origin == Origin.STALE_CACHE
        assert result.data.status == NewsStatus.QUOTA_EXCEEDED
        assert result.data.highlights == PREVIOUS
        assert result.sources == SOURCES

    async def test_other_language_cache_served_when_unreachable(self) -> None:
        cache = _cache_with(language=Language.EN)
        orchestrator = _orchestrator(cache, _failing(), _failing())

        result = await orchestrator.acquire(Language.BN, ())

        assert result.origin == Origin.STALE_CACHE
        assert result.data.status == NewsStatus.QUOTA_EXCEEDED
        assert result.data.language == Language.EN

    async def test_degraded_serving_does_not_touch_cache(self) -> None:
        cache = _cache_with(age=timedelta(hours=6))
        orchestrator = _orchestrator(cache, _failing())
        await orchestrator.acquire(Language.EN, ())
        entry = cache.get()
        assert entry is not None
        assert entry.data.status == NewsStatus.OK
        assert entry.captured_at == NOW - timedelta(hours=6)

    async def test_static_fallback_when_nothing_available(self) -> None:
        orchestrator = _orchestrator(MemoryCacheStore(), _failing(), _failing())

        result = await orchestrator.acquire(Language.EN, PREVIOUS)

        assert result.origin == Origin.STATIC_FALLBACK
        assert result.data.status == NewsStatus.QUOTA_EXCEEDED
        assert result.data.highlights == STATIC_HIGHLIGHTS
        assert result.data.highlights[0].headline == MAINTENANCE_HEADLINE
        assert result.sources == ()

    async def test_missing_configuration_highlight(self) -> None:
        orchestrator = _orchestrator(MemoryCacheStore(), None, None)

        result = await orchestrator.acquire("en", [])

        assert result.data.status == NewsStatus.QUOTA_EXCEEDED
        assert result.data.highlights == (CONFIGURATION_HIGHLIGHT,)
        assert result.data.highlights[0].headline == CONFIGURATION_HEADLINE
        assert result.sources == ()

    async def test_missing_primary_still_tries_secondary(self) -> None:
        secondary = _provider(ProviderSuccess(raw_text=_raw()))
        orchestrator = _orchestrator(MemoryCacheStore(), None, secondary)

        result = await orchestrator.acquire(Language.EN, ())

        assert result.origin == Origin.SECONDARY
        assert result.data.status == NewsStatus.OK

    async def test_missing_primary_reported_over_cached_archive(self) -> None:
        cache = _cache_with(age=timedelta(hours=1))
        orchestrator = _orchestrator(cache, None, None)

        result = await orchestrator.acquire(Language.EN, ())

        assert result.origin == Origin.STATIC_FALLBACK
        assert result.data.status == NewsStatus.QUOTA_EXCEEDED
        assert result.data.highlights == (CONFIGURATION_HIGHLIGHT,)
        assert result.sources == ()

    async def test_missing_primary_with_failing_secondary_reports_configuration(self) -> None:
        cache = _cache_with(age=timedelta(hours=1))
        secondary = _failing()
        orchestrator = _orchestrator(cache, None, secondary)

        result = await orchestrator.acquire(Language.EN, ())

        secondary.generate.assert_awaited_once()
        assert result.data.highlights[0].headline == CONFIGURATION_HEADLINE


class TestTotality:
    """acquire never raises."""

    async def test_corrupt_cache_is_a_miss(self) -> None:
        cache = MemoryCacheStore(record={"data": "garbage"})
        primary = _provider(ProviderSuccess(raw_text=_raw()))
        orchestrator = _orchestrator(cache, primary)

        result = await orchestrator.acquire(Language.EN, ())

        assert result.origin == Origin.PRIMARY

    async def test_broken_cache_store_does_not_raise(self) -> None:
        cache = MagicMock()
        cache.get.side_effect = OSError("disk gone")
        cache.put.side_effect = OSError("disk gone")
        primary = _provider(ProviderSuccess(raw_text=_raw()))
        orchestrator = _orchestrator(cache, primary)

        result = await orchestrator.acquire(Language.EN, ())

        assert result.origin == Origin.PRIMARY
        assert result.data.highlights == FRESH_HIGHLIGHTS

    async def test_everything_failing_returns_static(self) -> None:
        cache = MagicMock()
        cache.get.side_effect = OSError("disk gone")
        orchestrator = _orchestrator(
            cache,
            _provider(side_effect=RuntimeError("boom")),
            _provider(side_effect=RuntimeError("boom")),
        )

        result = await orchestrator.acquire(Language.BN, ())

        assert result.origin == Origin.STATIC_FALLBACK
        assert result.data.language == Language.BN
        assert result.data.generated_at == NOW.isoformat()

    async def test_unexpected_error_still_prefers_cached_archive(self) -> None:
        # A provider breaking its contract by returning None
        orchestrator = _orchestrator(_cache_with(age=timedelta(hours=2)), _provider(None))

        result = await orchestrator.acquire(Language.EN, ())

        assert result.origin == Origin.STALE_CACHE
        assert result.data.status == NewsStatus.QUOTA_EXCEEDED
        assert result.data.highlights == PREVIOUS


class TestSingleFlight:
    """Overlapping calls share one acquisition per language."""

    async def test_overlapping_calls_share_one_provider_call(self) -> None:
        gate = asyncio.Event()

        async def slow_generate(*args: object, **kwargs: object) -> ProviderSuccess:
            await gate.wait()
            return ProviderSuccess(raw_text=_raw(), sources=SOURCES)

        primary = _provider(side_effect=slow_generate)
        orchestrator = _orchestrator(MemoryCacheStore(), primary)

        first = asyncio.create_task(orchestrator.acquire(Language.EN, ()))
        second = asyncio.create_task(orchestrator.acquire(Language.EN, PREVIOUS))
        await asyncio.sleep(0)
        gate.set()
        r1, r2 = await asyncio.gather(first, second)

        assert primary.generate.await_count == 1
        assert r1 == r2
        assert orchestrator._inflight == {}

    async def test_different_languages_are_not_coalesced(self) -> None:
        gate = asyncio.Event()

        async def slow_generate(instruction: str, prompt: str, language: Language) -> ProviderSuccess:
            await gate.wait()
            return ProviderSuccess(raw_text=_raw(language=language.value))

        primary = _provider(side_effect=slow_generate)
        orchestrator = _orchestrator(MemoryCacheStore(), primary)

        en = asyncio.create_task(orchestrator.acquire(Language.EN, ()))
        bn = asyncio.create_task(orchestrator.acquire(Language.BN, ()))
        await asyncio.sleep(0)
        gate.set()
        await asyncio.gather(en, bn)

        assert primary.generate.await_count == 2

    async def test_cancelled_waiter_does_not_cancel_shared_acquisition(self) -> None:
        gate = asyncio.Event()

        async def slow_generate(*args: object, **kwargs: object) -> ProviderSuccess:
            await gate.wait()
            return ProviderSuccess(raw_text=_raw())

        orchestrator = _orchestrator(MemoryCacheStore(), _provider(side_effect=slow_generate))

        first = asyncio.create_task(orchestrator.acquire(Language.EN, ()))
        second = asyncio.create_task(orchestrator.acquire(Language.EN, ()))
        await asyncio.sleep(0)
        first.cancel()
        gate.set()

        result = await second
        assert result.origin == Origin.PRIMARY
        with pytest.raises(asyncio.CancelledError):
            await first


class TestRunLogging:
    """Per-acquisition traces."""

    async def test_trace_written_per_acquisition(self, tmp_path: Path) -> None:
        run_logger = RunLogger(log_dir=tmp_path)
        orchestrator = _orchestrator(
            MemoryCacheStore(),
            _failing(),
            _provider(ProviderSuccess(raw_text=_raw())),
            run_logger=run_logger,
        )

        await orchestrator.acquire(Language.EN, PREVIOUS)

        assert run_logger.last_log_path is not None
        record = json.loads(run_logger.last_log_path.read_text())
        assert record["origin"] == "secondary"
        assert record["previous_highlight_count"] == 2
        assert [(s["stage"], s["outcome"]) for s in record["stages"]] == [
            ("cache", "miss"),
            ("primary", "failed"),
            ("secondary", "success"),
        ]

    async def test_overlapping_languages_write_separate_traces(self, tmp_path: Path) -> None:
        gate = asyncio.Event()

        async def slow_generate(instruction: str, prompt: str, language: Language) -> ProviderSuccess:
            await gate.wait()
            return ProviderSuccess(raw_text=_raw(language=language.value))

        run_logger = RunLogger(log_dir=tmp_path)
        orchestrator = _orchestrator(
            MemoryCacheStore(), _provider(side_effect=slow_generate), run_logger=run_logger
        )

        en = asyncio.create_task(orchestrator.acquire(Language.EN, PREVIOUS))
        bn = asyncio.create_task(orchestrator.acquire(Language.BN, ()))
        for _ in range(5):
            await asyncio.sleep(0)
        gate.set()
        await asyncio.gather(en, bn)

        records = [json.loads(p.read_text()) for p in tmp_path.glob("run_*.json")]
        assert sorted(r["language"] for r in records) == ["bn", "en"]
        for record in records:
            assert record["origin"] == "primary"
            assert [(s["stage"], s["outcome"]) for s in record["stages"]] == [
                ("cache", "miss"),
                ("primary", "success"),
            ]
        by_language = {r["language"]: r for r in records}
        assert by_language["en"]["previous_highlight_count"] == 2
        assert by_language["bn"]["previous_highlight_count"] == 0
