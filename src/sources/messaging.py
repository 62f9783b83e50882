# src/sources/messaging.py - v1
"""Messaging source adapter (Telegram global message search).

The MTProto connection is owned by ``TelethonMessagingClient``: created on
first use, reused for the life of the process, released by ``close()``.
The adapter receives the client by injection and never connects on its own.

Confidence for every messaging candidate is fixed at ``MESSAGING_CONFIDENCE``:
a title hit inside a public file-sharing channel is treated as a strong
signal, so the scoring engine is not applied.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from leakwatch.core.models import (
    CandidateResult,
    MessagingCandidate,
    ProtectedContent,
    SourceType,
)
from leakwatch.scoring.confidence import MESSAGING_CONFIDENCE
from leakwatch.sources.base_source import BaseSourceAdapter

logger = logging.getLogger(__name__)

MESSAGING_DOMAIN = "t.me"
SNIPPET_LENGTH = 200


@dataclass(frozen=True)
class ChannelMessage:
    """A message from a public channel, as returned by global search."""

    message_id: int
    channel_name: str
    channel_handle: str
    text: str
    posted_at: datetime | None = None

    @property
    def permalink(self) -> str:
        return f"https://{MESSAGING_DOMAIN}/{self.channel_handle}/{self.message_id}"


class MessagingClient(ABC):
    """Session-backed client able to run a global text search."""

    @abstractmethod
    async def search_global(self, query: str, limit: int) -> list[ChannelMessage]:
        """Messages from public channels matching ``query``."""

    async def close(self) -> None:
        """Disconnect. No-op by default."""


class TelethonMessagingClient(MessagingClient):
    """Telethon implementation using a string session.

    Connection is established lazily on the first search and reused.
    """

    def __init__(
        self,
        api_id: int,
        api_hash: str,
        session: str,
        connection_retries: int = 5,
    ) -> None:
        self._api_id = api_id
        self._api_hash = api_hash
        self._session = session
        self._connection_retries = connection_retries
        self._client = None
        self._connect_lock = asyncio.Lock()

    async def _get_client(self):
        async with self._connect_lock:
            if self._client is None:
                from telethon import TelegramClient
                from telethon.sessions import StringSession

                client = TelegramClient(
                    StringSession(self._session),
                    self._api_id,
                    self._api_hash,
                    connection_retries=self._connection_retries,
                )
                await client.connect()
                self._client = client
                logger.info("Connected to Telegram")
        return self._client

    async def search_global(self, query: str, limit: int) -> list[ChannelMessage]:
        from telethon.tl.functions.messages import SearchGlobalRequest
        from telethon.tl.types import (
            Channel,
            InputMessagesFilterEmpty,
            InputPeerEmpty,
            Message,
            PeerChannel,
        )

        client = await self._get_client()
        result = await client(
            SearchGlobalRequest(
                q=query,
                filter=InputMessagesFilterEmpty(),
                min_date=None,
                max_date=None,
                offset_rate=0,
                offset_peer=InputPeerEmpty(),
                offset_id=0,
                limit=limit,
            )
        )

        channels = {
            chat.id: chat
            for chat in getattr(result, "chats", [])
            if isinstance(chat, Channel) and chat.username
        }
        messages: list[ChannelMessage] = []
        for msg in getattr(result, "messages", []):
            if not isinstance(msg, Message) or not isinstance(msg.peer_id, PeerChannel):
                continue
            channel = channels.get(msg.peer_id.channel_id)
            if channel is None:
                continue
            messages.append(
                ChannelMessage(
                    message_id=msg.id,
                    channel_name=channel.title,
                    channel_handle=channel.username,
                    text=msg.message or "",
                    posted_at=msg.date,
                )
            )
        return messages

    async def close(self) -> None:
        if self._client is not None:
            await self._client.disconnect()
            self._client = None


def to_candidate(message: ChannelMessage) -> MessagingCandidate:
    """Normalize a channel message into a candidate with fixed confidence."""
    return MessagingCandidate(
        source_url=message.permalink,
        source_domain=MESSAGING_DOMAIN,
        title=f"Post in {message.channel_name} (@{message.channel_handle})",
        snippet=message.text[:SNIPPET_LENGTH],
        confidence=MESSAGING_CONFIDENCE,
        channel_name=message.channel_name,
        channel_handle=message.channel_handle,
        message_id=message.message_id,
        posted_at=message.posted_at,
    )


class MessagingAdapter(BaseSourceAdapter):
    """Searches public channels for the content title.

    A missing client means messaging is not configured: the adapter is
    disabled and returns no results.
    """

    def __init__(self, client: MessagingClient | None, search_limit: int = 20) -> None:
        self._client = client
        self._search_limit = search_limit

    @property
    def source_type(self) -> SourceType:
        return SourceType.MESSAGING

    def is_available(self) -> bool:
        return self._client is not None

    async def search(self, content: ProtectedContent) -> list[CandidateResult]:
        if self._client is None:
            logger.warning("Telegram session not configured, skipping messaging search")
            return []

        try:
            messages = await self._client.search_global(content.title, self._search_limit)
        except Exception:
            # RPC, connection and auth failures all disable this source for the run.
            logger.exception("Telegram search failed")
            return []

        seen: set[str] = set()
        results: list[CandidateResult] = []
        for message in messages:
            if not message.channel_handle or message.permalink in seen:
                continue
            seen.add(message.permalink)
            results.append(to_candidate(message))

        logger.info("Telegram search found %d candidates", len(results))
        return results

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
