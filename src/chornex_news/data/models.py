"""Core data models for Chornex News."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import StrEnum

from chornex_news.url import extract_domain


class Language(StrEnum):
    """Languages the news engine can generate highlights in."""

    EN = "en"
    BN = "bn"


class Category(StrEnum):
    """Topical category of a highlight."""

    WORLD = "world"
    ECONOMY = "economy"
    TECH = "tech"
    SECURITY = "security"
    CLIMATE = "climate"
    POLITICS = "politics"
    BANGLADESH = "bangladesh"
    OTHER = "other"


class NewsStatus(StrEnum):
    """Status attached to a highlight set.

    ``QUOTA_EXCEEDED`` is never produced by a provider: the pipeline sets it
    when it serves archival data (stale cache or the static fallback).
    """

    OK = "OK"
    NO_NEW_UPDATE = "NO NEW UPDATE"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"

    @classmethod
    def parse(cls, value: str) -> "NewsStatus":
        """Parse a status string, accepting ``NO_NEW_UPDATE`` as an alias."""
        if value == "NO_NEW_UPDATE":
            return cls.NO_NEW_UPDATE
        return cls(value)


class Origin(StrEnum):
    """Which tier of the fallback chain served an acquisition."""

    CACHE = "cache"
    PRIMARY = "primary"
    SECONDARY = "secondary"
    STALE_CACHE = "stale_cache"
    STATIC_FALLBACK = "static_fallback"


@dataclass(frozen=True)
class Highlight:
    """A single synthesized news item."""

    headline: str
    summary: str
    category: Category = Category.OTHER
    timestamp: str = ""
    url: str | None = None


@dataclass(frozen=True)
class NewsResponse:
    """A highlight set as produced by a provider or served by the pipeline."""

    generated_at: str
    language: Language
    status: NewsStatus
    highlights: tuple[Highlight, ...] = ()

    def with_status(self, status: NewsStatus) -> "NewsResponse":
        return replace(self, status=status)

    def count_category(self, category: Category) -> int:
        return sum(1 for h in self.highlights if h.category == category)


@dataclass(frozen=True)
class GroundingSource:
    """A web citation attributing content of a response."""

    uri: str
    title: str | None = None

    @property
    def label(self) -> str:
        """Human readable label: the title, or the URI's domain."""
        return self.title or extract_domain(self.uri)


@dataclass(frozen=True)
class CacheEntry:
    """The last successfully acquired response, as held by a cache store."""

    data: NewsResponse
    sources: tuple[GroundingSource, ...]
    captured_at: datetime
    language: Language

    def is_fresh(self, language: Language, now: datetime, ttl_seconds: float) -> bool:
        """Whether the entry may short-circuit a provider call.

        Fresh means younger than the TTL *and* generated for ``language``.
        """
        if self.language != language:
            return False
        return (now - self.captured_at).total_seconds() < ttl_seconds


@dataclass(frozen=True)
class APICallUsage:
    """Usage from a single provider call."""

    model: str
    input_tokens: int = 0
    output_tokens: int = 0
    web_searches: int = 0


@dataclass
class Usage:
    """Accumulated provider usage across one acquisition."""

    api_calls: list[APICallUsage] = field(default_factory=list)

    @property
    def input_tokens(self) -> int:
        return sum(c.input_tokens for c in self.api_calls)

    @property
    def output_tokens(self) -> int:
        return sum(c.output_tokens for c in self.api_calls)

    @property
    def web_searches(self) -> int:
        return sum(c.web_searches for c in self.api_calls)

    def __add__(self, other: "Usage") -> "Usage":
        return Usage(api_calls=self.api_calls + other.api_calls)

    def __iadd__(self, other: "Usage") -> "Usage":
        self.api_calls.extend(other.api_calls)
        return self


@dataclass(frozen=True)
class AcquisitionResult:
    """What ``acquire`` hands back to its caller.

    ``data`` and ``sources`` are the displayable payload; ``origin`` tells
    which tier of the fallback chain produced it.
    """

    data: NewsResponse
    sources: tuple[GroundingSource, ...] = ()
    origin: Origin = Origin.CACHE
    usage: Usage = field(default_factory=Usage)

    @property
    def degraded(self) -> bool:
        return self.data.status == NewsStatus.QUOTA_EXCEEDED
