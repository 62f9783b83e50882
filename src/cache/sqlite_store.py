# src/cache/sqlite_store.py - v1
"""SQLite-based cache store (CACHE_BACKEND=sqlite).

Uses stdlib sqlite3. Expiry is stored as a UTC epoch so sweeps are a single
indexed DELETE.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from leakwatch.cache.base_cache_store import BaseCacheStore
from leakwatch.cache.models import CacheEntry

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS scan_cache (
    key TEXT PRIMARY KEY,
    content_id TEXT NOT NULL,
    source_type TEXT NOT NULL,
    data TEXT NOT NULL,
    expires_ts REAL NOT NULL,
    hit_count INTEGER NOT NULL DEFAULT 0
);
CREATE INDEX IF NOT EXISTS idx_scan_cache_content ON scan_cache(content_id);
CREATE INDEX IF NOT EXISTS idx_scan_cache_expires ON scan_cache(expires_ts);
"""


class SqliteCacheStore(BaseCacheStore):
    """SQLite-backed cache store."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path))
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    async def get(self, key: str) -> CacheEntry | None:
        row = self._conn.execute(
            "SELECT data, hit_count FROM scan_cache WHERE key = ?", (key,)
        ).fetchone()
        if row is None:
            return None
        entry = self._decode(key, row[0])
        if entry is not None:
            entry.hit_count = row[1]
        return entry

    async def put(self, entry: CacheEntry) -> None:
        self._conn.execute(
            """INSERT OR REPLACE INTO scan_cache
               (key, content_id, source_type, data, expires_ts, hit_count)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (
                entry.key,
                entry.content_id,
                entry.source_type.value,
                entry.model_dump_json(),
                entry.expires_at.timestamp(),
                entry.hit_count,
            ),
        )
        self._conn.commit()

    async def delete(self, key: str) -> bool:
        cursor = self._conn.execute("DELETE FROM scan_cache WHERE key = ?", (key,))
        self._conn.commit()
        return cursor.rowcount > 0

    async def increment_hits(self, key: str) -> int:
        self._conn.execute(
            "UPDATE scan_cache SET hit_count = hit_count + 1 WHERE key = ?", (key,)
        )
        self._conn.commit()
        row = self._conn.execute(
            "SELECT hit_count FROM scan_cache WHERE key = ?", (key,)
        ).fetchone()
        return row[0] if row else 0

    async def delete_by_content(self, content_id: str) -> int:
        cursor = self._conn.execute(
            "DELETE FROM scan_cache WHERE content_id = ?", (content_id,)
        )
        self._conn.commit()
        return cursor.rowcount

    async def delete_expired(self, now: datetime) -> int:
        cursor = self._conn.execute(
            "DELETE FROM scan_cache WHERE expires_ts < ?", (now.timestamp(),)
        )
        self._conn.commit()
        return cursor.rowcount

    async def count(self) -> int:
        return self._conn.execute("SELECT COUNT(*) FROM scan_cache").fetchone()[0]

    async def list_entries(self) -> list[CacheEntry]:
        entries: list[CacheEntry] = []
        for key, data, hits in self._conn.execute(
            "SELECT key, data, hit_count FROM scan_cache"
        ).fetchall():
            entry = self._decode(key, data)
            if entry is not None:
                entry.hit_count = hits
                entries.append(entry)
        return entries

    def close(self) -> None:
        self._conn.close()

    @staticmethod
    def _decode(key: str, data: str) -> CacheEntry | None:
        try:
            return CacheEntry.model_validate_json(data)
        except ValidationError as e:
            logger.warning("Failed to deserialize cache entry %s: %s", key, e)
            return None
