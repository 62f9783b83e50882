# src/scan/policy.py - v1
"""Tier gate: which sources a scan may use for a given owner.

Search-engine scanning is a paid entitlement. Messaging and torrent sources
run for every tier.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from leakwatch.config.plans import has_web_search
from leakwatch.core.models import SourceType
from leakwatch.storage.base_record_store import BaseRecordStore

logger = logging.getLogger(__name__)

SCAN_ORDER: tuple[SourceType, ...] = (
    SourceType.WEB_SEARCH,
    SourceType.MESSAGING,
    SourceType.TORRENT,
)


class SubscriptionLookup(ABC):
    """Answers whether an owner is entitled to search-engine scanning."""

    @abstractmethod
    async def has_web_search(self, owner_id: str) -> bool:
        """Entitlement for ``owner_id``; unknown owners are not entitled."""


class RecordStoreSubscriptionLookup(SubscriptionLookup):
    """Reads the owner's plan slug from the record store."""

    def __init__(self, store: BaseRecordStore) -> None:
        self._store = store

    async def has_web_search(self, owner_id: str) -> bool:
        owner = await self._store.get_owner(owner_id)
        if owner is None:
            logger.warning("Owner %s not found, applying free tier", owner_id)
            return False
        return has_web_search(owner.plan)


def enabled_sources(web_search_entitled: bool) -> list[SourceType]:
    """Sources to run, in scan order."""
    return [
        s for s in SCAN_ORDER
        if s is not SourceType.WEB_SEARCH or web_search_entitled
    ]
