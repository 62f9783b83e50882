# src/cache/json_store.py - v1
"""JSON file-based cache store (default CACHE_BACKEND=json).

Stores cache entries as individual JSON files under CACHE_ROOT, one file per
key.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from leakwatch.cache.base_cache_store import BaseCacheStore
from leakwatch.cache.models import CacheEntry

logger = logging.getLogger(__name__)


class JsonCacheStore(BaseCacheStore):
    """File-based cache store using JSON files."""

    def __init__(self, cache_root: Path | str) -> None:
        self._root = Path(cache_root).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)

    async def get(self, key: str) -> CacheEntry | None:
        return self._read(self._entry_path(key))

    async def put(self, entry: CacheEntry) -> None:
        path = self._entry_path(entry.key)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(entry.model_dump_json(indent=2), encoding="utf-8")
        tmp.replace(path)

    async def delete(self, key: str) -> bool:
        path = self._entry_path(key)
        if not path.exists():
            return False
        path.unlink(missing_ok=True)
        return True

    async def increment_hits(self, key: str) -> int:
        entry = await self.get(key)
        if entry is None:
            return 0
        entry.hit_count += 1
        await self.put(entry)
        return entry.hit_count

    async def delete_by_content(self, content_id: str) -> int:
        deleted = 0
        for path, entry in self._iter_entries():
            if entry.content_id == content_id:
                path.unlink(missing_ok=True)
                deleted += 1
        return deleted

    async def delete_expired(self, now: datetime) -> int:
        deleted = 0
        for path, entry in self._iter_entries():
            if entry.expires_at < now:
                path.unlink(missing_ok=True)
                deleted += 1
        return deleted

    async def count(self) -> int:
        return sum(1 for _ in self._root.glob("*.json"))

    async def list_entries(self) -> list[CacheEntry]:
        return [entry for _, entry in self._iter_entries()]

    def _iter_entries(self):
        if not self._root.is_dir():
            return
        for path in sorted(self._root.glob("*.json")):
            entry = self._read(path)
            if entry is not None:
                yield path, entry

    def _read(self, path: Path) -> CacheEntry | None:
        if not path.exists():
            return None
        try:
            return CacheEntry.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError, json.JSONDecodeError) as e:
            logger.warning("Failed to read cache entry %s: %s", path.name, e)
            return None

    def _entry_path(self, key: str) -> Path:
        safe_key = key.replace("/", "_").replace("\\", "_")
        return self._root / f"{safe_key}.json"
