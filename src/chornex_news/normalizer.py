"""Turn raw provider text into a validated ``NewsResponse``."""

import json
import logging
import re
from typing import Any

from chornex_news.data import Category, Highlight, Language, NewsResponse, NewsStatus
from chornex_news.exceptions import MalformedResponse

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json|JSON)?")


def strip_code_fences(raw: str) -> str:
    """Remove markdown code-fence delimiters wherever the provider put them."""
    return _FENCE_RE.sub("", raw).strip()


def _require_str(obj: dict[str, Any], key: str, raw: str) -> str:
    value = obj.get(key)
    if not isinstance(value, str):
        raise MalformedResponse(f"Field '{key}' must be a string, got {value!r}", raw)
    return value


def _parse_category(value: object) -> Category:
    # Providers sometimes echo the instruction's slash list or invent labels
    try:
        return Category(str(value).strip().lower())
    except ValueError:
        return Category.OTHER


def _parse_highlight(item: object, raw: str) -> Highlight:
    if not isinstance(item, dict):
        raise MalformedResponse(f"Highlight must be an object, got {type(item).__name__}", raw)

    url = item.get("url")
    if url is not None and not isinstance(url, str):
        raise MalformedResponse(f"Highlight url must be a string, got {url!r}", raw)

    timestamp = item.get("timestamp", "")
    return Highlight(
        headline=_require_str(item, "headline", raw),
        summary=_require_str(item, "summary", raw),
        url=url or None,
        category=_parse_category(item.get("category", "other")),
        timestamp=timestamp if isinstance(timestamp, str) else str(timestamp),
    )


def normalize(raw_text: str) -> NewsResponse:
    """Parse provider output into a ``NewsResponse``.

    Args:
        raw_text: Text exactly as returned by the provider.

    Returns:
        The validated response.

    Raises:
        MalformedResponse: If the text is not JSON or not shaped like a
            highlight set. Nothing is partially accepted.
    """
    text = strip_code_fences(raw_text)
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedResponse(f"Invalid JSON from provider: {e}", raw_text) from e

    if not isinstance(payload, dict):
        raise MalformedResponse(
            f"Expected a JSON object, got {type(payload).__name__}", raw_text
        )

    try:
        language = Language(_require_str(payload, "language", raw_text).strip().lower())
    except ValueError as e:
        raise MalformedResponse(f"Unsupported language: {e}", raw_text) from e

    try:
        status = NewsStatus.parse(_require_str(payload, "status", raw_text).strip().upper())
    except ValueError as e:
        raise MalformedResponse(f"Unknown status: {e}", raw_text) from e
    if status == NewsStatus.QUOTA_EXCEEDED:
        raise MalformedResponse("Providers may not report QUOTA_EXCEEDED", raw_text)

    items = payload.get("highlights")
    if not isinstance(items, list):
        raise MalformedResponse("Field 'highlights' must be a list", raw_text)

    return NewsResponse(
        generated_at=_require_str(payload, "generated_at", raw_text),
        language=language,
        status=status,
        highlights=tuple(_parse_highlight(item, raw_text) for item in items),
    )


def check_regional_highlight(response: NewsResponse) -> bool:
    """Check that an OK response carries exactly one Bangladesh highlight.

    The provider is instructed to include one; a violation is logged but the
    response is still accepted.
    """
    if response.status != NewsStatus.OK:
        return True
    count = response.count_category(Category.BANGLADESH)
    if count != 1:
        logger.warning(f"Expected exactly one bangladesh highlight, got {count}")
        return False
    return True
