# tests/unit/scan/test_unit_policy.py - v1
"""Tests for scan/policy.py: plan gating of sources."""

from __future__ import annotations

import pytest

from leakwatch.core.models import Owner, SourceType
from leakwatch.scan.policy import SCAN_ORDER, RecordStoreSubscriptionLookup, enabled_sources


class TestEnabledSources:
    def test_entitled(self):
        assert enabled_sources(True) == list(SCAN_ORDER)

    def test_not_entitled(self):
        assert enabled_sources(False) == [SourceType.MESSAGING, SourceType.TORRENT]


class TestRecordStoreSubscriptionLookup:
    @pytest.mark.asyncio
    async def test_plans(self, record_store):
        lookup = RecordStoreSubscriptionLookup(record_store)
        assert await lookup.has_web_search("owner_free") is False
        assert await lookup.has_web_search("owner_pro") is True

    @pytest.mark.asyncio
    async def test_unknown_owner_is_free(self, record_store):
        assert await RecordStoreSubscriptionLookup(record_store).has_web_search("ghost") is False

    @pytest.mark.asyncio
    async def test_unknown_plan_is_free(self, record_store):
        await record_store.save_owner(Owner(id="legacy", plan="gold"))
        assert await RecordStoreSubscriptionLookup(record_store).has_web_search("legacy") is False
