# tests/unit/sources/test_unit_messaging.py - v1
"""Tests for sources/messaging.py: adapter behavior and Telethon result parsing."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from telethon.tl.types import Channel, Chat, Message, PeerChannel, PeerUser

from leakwatch.core.models import MessagingCandidate, SourceType
from leakwatch.sources.messaging import (
    ChannelMessage,
    MessagingAdapter,
    MessagingClient,
    TelethonMessagingClient,
    to_candidate,
)
from tests.fakes import T0


class _FakeMessagingClient(MessagingClient):
    def __init__(self, messages=None, error=None):
        self.messages = messages or []
        self.error = error
        self.queries: list[tuple[str, int]] = []
        self.closed = False

    async def search_global(self, query, limit):
        self.queries.append((query, limit))
        if self.error is not None:
            raise self.error
        return list(self.messages)

    async def close(self):
        self.closed = True


def _message(message_id=42, handle="leakedcourses", text="React Masterclass 2024 all videos"):
    return ChannelMessage(
        message_id=message_id,
        channel_name="Leaked Courses",
        channel_handle=handle,
        text=text,
        posted_at=T0,
    )


class TestToCandidate:
    def test_fields(self):
        candidate = to_candidate(_message())
        assert isinstance(candidate, MessagingCandidate)
        assert candidate.source_url == "https://t.me/leakedcourses/42"
        assert candidate.source_domain == "t.me"
        assert candidate.title == "Post in Leaked Courses (@leakedcourses)"
        assert candidate.confidence == 90
        assert candidate.posted_at == T0

    def test_snippet_truncated(self):
        candidate = to_candidate(_message(text="x" * 500))
        assert len(candidate.snippet) == 200


class TestMessagingAdapter:
    @pytest.mark.asyncio
    async def test_no_client(self, sample_content):
        adapter = MessagingAdapter(None)
        assert adapter.is_available() is False
        assert await adapter.search(sample_content) == []

    @pytest.mark.asyncio
    async def test_searches_title(self, sample_content):
        client = _FakeMessagingClient([_message()])
        adapter = MessagingAdapter(client, search_limit=15)
        results = await adapter.search(sample_content)
        assert client.queries == [("React Masterclass 2024", 15)]
        assert len(results) == 1
        assert results[0].source_type is SourceType.MESSAGING

    @pytest.mark.asyncio
    async def test_confidence_fixed_regardless_of_text(self, sample_content):
        client = _FakeMessagingClient([_message(1, text=""), _message(2, text="unrelated chatter")])
        results = await MessagingAdapter(client).search(sample_content)
        assert [r.confidence for r in results] == [90, 90]

    @pytest.mark.asyncio
    async def test_dedupes_and_skips_handleless(self, sample_content):
        client = _FakeMessagingClient([_message(1), _message(1), _message(2, handle=""), _message(3)])
        results = await MessagingAdapter(client).search(sample_content)
        assert [r.message_id for r in results] == [1, 3]

    @pytest.mark.asyncio
    async def test_errors_return_empty(self, sample_content):
        client = _FakeMessagingClient(error=ConnectionError("dc unreachable"))
        assert await MessagingAdapter(client).search(sample_content) == []

    @pytest.mark.asyncio
    async def test_close_releases_client(self):
        client = _FakeMessagingClient()
        await MessagingAdapter(client).close()
        assert client.closed is True


def _channel(channel_id, username, title="Leaks"):
    return MagicMock(spec=Channel, id=channel_id, username=username, title=title)


def _tl_message(msg_id, peer, text="React Masterclass 2024"):
    return MagicMock(spec=Message, id=msg_id, peer_id=peer, message=text, date=T0)


class TestTelethonMessagingClient:
    @pytest.fixture
    def client(self):
        c = TelethonMessagingClient(api_id=1, api_hash="hash", session="")
        c._client = MagicMock()
        c._client.disconnect = AsyncMock()
        return c

    @pytest.mark.asyncio
    async def test_parses_public_channel_posts(self, client):
        result = SimpleNamespace(
            chats=[
                _channel(10, "leaks", "Leaks Hub"),
                _channel(11, None),
                MagicMock(spec=Chat, id=12),
            ],
            messages=[
                _tl_message(1, PeerChannel(channel_id=10)),
                _tl_message(2, PeerChannel(channel_id=11)),
                _tl_message(3, PeerChannel(channel_id=99)),
                _tl_message(4, PeerUser(user_id=5)),
                SimpleNamespace(id=5),
            ],
        )
        call = AsyncMock(return_value=result)
        client._get_client = AsyncMock(return_value=call)

        messages = await client.search_global("React Masterclass 2024", 20)

        assert [m.message_id for m in messages] == [1]
        assert messages[0].channel_handle == "leaks"
        assert messages[0].channel_name == "Leaks Hub"
        assert messages[0].permalink == "https://t.me/leaks/1"
        request = call.await_args.args[0]
        assert request.q == "React Masterclass 2024"
        assert request.limit == 20

    @pytest.mark.asyncio
    async def test_close_disconnects(self, client):
        inner = client._client
        await client.close()
        inner.disconnect.assert_awaited_once()
        assert client._client is None

    @pytest.mark.asyncio
    async def test_close_without_connection(self):
        await TelethonMessagingClient(api_id=1, api_hash="h", session="").close()
