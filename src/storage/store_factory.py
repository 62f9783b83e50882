# src/storage/store_factory.py - v1
"""Factory for record store instantiation."""

from __future__ import annotations

from leakwatch.config.settings import Settings
from leakwatch.storage.base_record_store import BaseRecordStore


def create_record_store(settings: Settings | None = None) -> BaseRecordStore:
    """Instantiate the configured record store.

    Args:
        settings: Application settings. Defaults to the in-memory backend.

    Returns:
        Configured BaseRecordStore implementation.
    """
    backend = "memory" if settings is None else settings.record_store_backend

    if backend == "memory":
        from leakwatch.storage.memory_store import InMemoryRecordStore
        return InMemoryRecordStore()

    if backend == "sqlite":
        from leakwatch.storage.sqlite_store import SqliteRecordStore
        return SqliteRecordStore(db_path=settings.record_store_path)

    raise ValueError(f"Unsupported record store backend: {backend!r}")
