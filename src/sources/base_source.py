# src/sources/base_source.py - v1
"""Abstract source adapter interface.

An adapter queries exactly one class of external source and normalizes its
output into candidate results. Transport failures (timeouts, non-2xx,
malformed payloads) are absorbed: ``search`` returns an empty list and logs.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from leakwatch.core.models import CandidateResult, ProtectedContent, SourceType


class BaseSourceAdapter(ABC):
    """Unified interface for all detection sources."""

    @property
    @abstractmethod
    def source_type(self) -> SourceType:
        """Source identifier, also used as the cache key component."""

    @abstractmethod
    async def search(self, content: ProtectedContent) -> list[CandidateResult]:
        """Query the source for copies of ``content``."""

    def is_available(self) -> bool:
        """Whether credentials/configuration allow this source to run."""
        return True

    async def close(self) -> None:
        """Release network resources. No-op by default."""
