"""Reconcile a fresh response with the highlights the caller already has."""

from collections.abc import Sequence
from dataclasses import replace

from chornex_news.data import Highlight, NewsResponse, NewsStatus


def resolve(response: NewsResponse, previous_highlights: Sequence[Highlight]) -> NewsResponse:
    """Apply duplicate suppression to a provider response.

    A ``NO NEW UPDATE`` response keeps its ``generated_at`` and ``status`` but
    its highlight bodies are replaced by ``previous_highlights``; whatever the
    provider echoed back is discarded. When the caller has no previous
    highlights the echo is all there is, so it is kept.

    ``OK`` and ``QUOTA_EXCEEDED`` responses are returned unchanged.
    """
    if response.status == NewsStatus.NO_NEW_UPDATE and previous_highlights:
        return replace(response, highlights=tuple(previous_highlights))
    return response


def next_reference(
    response: NewsResponse, previous_highlights: Sequence[Highlight]
) -> tuple[Highlight, ...]:
    """Highlights to send as ``previous_highlights`` on the next request.

    Only an ``OK`` response replaces the reference set.
    """
    if response.status == NewsStatus.OK:
        return response.highlights
    return tuple(previous_highlights)
