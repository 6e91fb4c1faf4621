"""Persistent storage of the last successfully acquired highlights."""

from chornex_news.cache.base import DEFAULT_CACHE_KEY, CacheStore
from chornex_news.cache.file import FileCacheStore
from chornex_news.cache.memory import MemoryCacheStore
from chornex_news.cache.record import decode_entry, encode_entry

__all__ = [
    "DEFAULT_CACHE_KEY",
    "CacheStore",
    "FileCacheStore",
    "MemoryCacheStore",
    "decode_entry",
    "encode_entry",
]
