# src/cache/cache_key.py - v1
"""Cache key derivation.

The key is a pure function of (content_id, source_type) so a hit can be
predicted without touching any store.
"""

from __future__ import annotations

import hashlib

from leakwatch.core.models import SourceType


def generate_cache_key(content_id: str, source_type: SourceType | str) -> str:
    """SHA-256 hex digest (64 chars) of ``"<content_id>:<source_type>"``."""
    source = source_type.value if isinstance(source_type, SourceType) else str(source_type)
    data = f"{content_id}:{source}"
    return hashlib.sha256(data.encode("utf-8")).hexdigest()
