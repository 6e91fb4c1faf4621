"""In-process cache store."""

import logging
from typing import Any

from chornex_news.cache.record import decode_entry, encode_entry
from chornex_news.data import CacheEntry
from chornex_news.exceptions import CacheCorrupt

logger = logging.getLogger(__name__)


class MemoryCacheStore:
    """Cache store that lives only as long as the process.

    Entries are kept in their encoded form so that reads go through the same
    decoding path as the file store.
    """

    def __init__(self, record: dict[str, Any] | None = None) -> None:
        self._record = record

    def get(self) -> CacheEntry | None:
        if self._record is None:
            return None
        try:
            return decode_entry(self._record)
        except CacheCorrupt as e:
            logger.warning(f"Discarding in-memory cache entry: {e}")
            self._record = None
            return None

    def put(self, entry: CacheEntry) -> None:
        self._record = encode_entry(entry)

    def clear(self) -> None:
        self._record = None
