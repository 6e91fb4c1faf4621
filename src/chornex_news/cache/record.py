"""Conversion between ``CacheEntry`` and its stored JSON record.

Record layout::

    {"data": <NewsResponse>, "sources": [{"uri", "title"}],
     "timestamp": <epoch millis>, "lang": "en" | "bn"}
"""

from datetime import UTC, datetime
from typing import Any

from chornex_news.data import (
    CacheEntry,
    Category,
    GroundingSource,
    Highlight,
    Language,
    NewsResponse,
    NewsStatus,
)
from chornex_news.exceptions import CacheCorrupt


def response_to_dict(response: NewsResponse) -> dict[str, Any]:
    return {
        "generated_at": response.generated_at,
        "language": response.language.value,
        "status": response.status.value,
        "highlights": [
            {
                "headline": h.headline,
                "summary": h.summary,
                "url": h.url,
                "category": h.category.value,
                "timestamp": h.timestamp,
            }
            for h in response.highlights
        ],
    }


def encode_entry(entry: CacheEntry) -> dict[str, Any]:
    """Build the JSON-compatible record for ``entry``."""
    return {
        "data": response_to_dict(entry.data),
        "sources": [{"uri": s.uri, "title": s.title} for s in entry.sources],
        "timestamp": int(entry.captured_at.timestamp() * 1000),
        "lang": entry.language.value,
    }


def decode_entry(record: Any) -> CacheEntry:
    """Rebuild a ``CacheEntry`` from a stored record.

    Raises:
        CacheCorrupt: If the record does not have the expected shape.
    """
    try:
        data = record["data"]
        highlights = tuple(
            Highlight(
                headline=str(h["headline"]),
                summary=str(h["summary"]),
                url=h.get("url"),
                category=Category(h.get("category", "other")),
                timestamp=str(h.get("timestamp", "")),
            )
            for h in data["highlights"]
        )
        response = NewsResponse(
            generated_at=str(data["generated_at"]),
            language=Language(data["language"]),
            status=NewsStatus.parse(data["status"]),
            highlights=highlights,
        )
        sources = tuple(
            GroundingSource(uri=str(s["uri"]), title=s.get("title"))
            for s in record.get("sources") or []
        )
        captured_at = datetime.fromtimestamp(float(record["timestamp"]) / 1000, tz=UTC)
        language = Language(record["lang"])
    except (KeyError, TypeError, ValueError, AttributeError, OverflowError) as e:
        raise CacheCorrupt(f"Unreadable cache record: {e}") from e

    return CacheEntry(data=response, sources=sources, captured_at=captured_at, language=language)
