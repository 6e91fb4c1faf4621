"""URL handling utilities."""

from __future__ import annotations

import logging
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


def extract_domain(url: str) -> str:
    """Extract domain name from URL.

    Args:
        url: The URL to extract the domain from.

    Returns:
        The domain name (without 'www.' prefix), or "Unknown" if extraction fails.
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        return "Unknown"
    domain = parsed.netloc
    if not domain:
        logger.debug(f"Could not get domain from url {url}")
        return "Unknown"
    return domain.removeprefix("www.")


def is_linkable(url: str | None) -> bool:
    """Whether ``url`` points somewhere real (not empty and not a ``#`` placeholder)."""
    if not url:
        return False
    return urlparse(url).scheme in ("http", "https")
