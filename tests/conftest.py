# tests/conftest.py - v1
"""Shared test fixtures for all unit and integration tests.

Provides sample content and owners, an in-memory record store, scripted
source adapters and a controllable clock. No network access: HTTP goes
through httpx.MockTransport and messaging through fake clients.
"""

from __future__ import annotations

from datetime import timedelta

import pytest
import pytest_asyncio

from leakwatch.core.models import (
    ContentType,
    Owner,
    ProtectedContent,
    ScanFrequency,
)
from leakwatch.storage.memory_store import InMemoryRecordStore
from tests.fakes import T0, FakeClock


# === FIXTURES: Sample data ===


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def free_owner() -> Owner:
    return Owner(id="owner_free", email="free@example.com", plan="free")


@pytest.fixture
def pro_owner() -> Owner:
    return Owner(id="owner_pro", email="pro@example.com", plan="pro")


@pytest.fixture
def sample_content(free_owner: Owner) -> ProtectedContent:
    """Video course owned by a free-tier user."""
    return ProtectedContent(
        id="content_react",
        owner_id=free_owner.id,
        title="React Masterclass 2024",
        original_url="https://www.mycourses.com/react-masterclass",
        content_type=ContentType.VIDEO,
        keywords=("react", "hooks", "redux"),
        created_at=T0 - timedelta(days=30),
    )


@pytest.fixture
def pro_content(pro_owner: Owner) -> ProtectedContent:
    return ProtectedContent(
        id="content_pro",
        owner_id=pro_owner.id,
        title="React Masterclass 2024",
        original_url="https://www.mycourses.com/react-masterclass",
        content_type=ContentType.VIDEO,
        keywords=("react", "hooks", "redux"),
        scan_frequency=ScanFrequency.DAILY,
        created_at=T0 - timedelta(days=30),
    )


@pytest.fixture
def pdf_content(pro_owner: Owner) -> ProtectedContent:
    return ProtectedContent(
        id="content_pdf",
        owner_id=pro_owner.id,
        title="Python Data Handbook",
        original_url="https://books.example.org/python-data",
        content_type=ContentType.PDF,
        keywords=("python", "pandas"),
    )


@pytest_asyncio.fixture
async def record_store(
    free_owner: Owner,
    pro_owner: Owner,
    sample_content: ProtectedContent,
    pro_content: ProtectedContent,
) -> InMemoryRecordStore:
    """In-memory store seeded with both owners and their content."""
    store = InMemoryRecordStore()
    await store.save_owner(free_owner)
    await store.save_owner(pro_owner)
    await store.save_content(sample_content)
    await store.save_content(pro_content)
    return store
