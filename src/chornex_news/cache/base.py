from typing import Protocol

from chornex_news.data import CacheEntry

DEFAULT_CACHE_KEY = "chornex_news_cache_v3"


class CacheStore(Protocol):
    """Interface for the single-slot store holding the last good response.

    ``get`` never raises: an unreadable record is discarded and reported as
    absent.
    """

    def get(self) -> CacheEntry | None: ...

    def put(self, entry: CacheEntry) -> None: ...

    def clear(self) -> None: ...
