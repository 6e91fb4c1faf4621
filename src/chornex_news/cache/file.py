"""JSON file cache store."""

import json
import logging
from pathlib import Path
from typing import Any

from chornex_news.cache.base import DEFAULT_CACHE_KEY
from chornex_news.cache.record import decode_entry, encode_entry
from chornex_news.data import CacheEntry
from chornex_news.exceptions import CacheCorrupt

logger = logging.getLogger(__name__)


class FileCacheStore:
    """Durable cache store backed by a JSON file on local disk.

    The file holds a JSON object mapping cache keys to records, so one file
    can be shared by several keys. Only the slot named by ``key`` is ever
    read or written by this store.

    Args:
        path: JSON file location. Parent directories are created on write.
        key: Cache key of the slot this store owns.
    """

    def __init__(self, path: Path, *, key: str = DEFAULT_CACHE_KEY) -> None:
        self._path = path
        self._key = key

    @property
    def path(self) -> Path:
        return self._path

    def get(self) -> CacheEntry | None:
        """Read the entry, discarding it if it cannot be decoded."""
        try:
            record = self._read_all().get(self._key)
        except CacheCorrupt as e:
            logger.warning(f"Discarding cache file {self._path}: {e}")
            self._path.unlink(missing_ok=True)
            return None

        if record is None:
            return None
        try:
            return decode_entry(record)
        except CacheCorrupt as e:
            logger.warning(f"Discarding cache entry '{self._key}': {e}")
            self.clear()
            return None

    def put(self, entry: CacheEntry) -> None:
        try:
            records = self._read_all()
        except CacheCorrupt:
            records = {}
        records[self._key] = encode_entry(entry)
        self._write_all(records)

    def clear(self) -> None:
        try:
            records = self._read_all()
        except CacheCorrupt:
            self._path.unlink(missing_ok=True)
            return
        if records.pop(self._key, None) is not None:
            self._write_all(records)

    def _read_all(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            records = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CacheCorrupt(str(e)) from e
        if not isinstance(records, dict):
            raise CacheCorrupt(f"Expected a JSON object, got {type(records).__name__}")
        return records

    def _write_all(self, records: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(records, ensure_ascii=False, indent=2), encoding="utf-8")
        tmp.replace(self._path)
