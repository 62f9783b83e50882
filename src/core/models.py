# src/core/models.py - v1
"""Shared Pydantic domain models used across modules.

No module redefines these types; all imports come from core.models.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


# === ENUMS ===


class ContentType(str, Enum):
    VIDEO = "video"
    PDF = "pdf"


class SourceType(str, Enum):
    WEB_SEARCH = "web_search"
    MESSAGING = "messaging"
    TORRENT = "torrent"


class ScanFrequency(str, Enum):
    MANUAL = "manual"
    DAILY = "daily"
    WEEKLY = "weekly"


class ScanType(str, Enum):
    FULL = "full"
    SCHEDULED = "scheduled"


class ScanStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class InfringementStatus(str, Enum):
    """Lifecycle of a persisted finding.

    Detection only ever creates ``detected``; every later transition is owned
    by the takedown workflow.
    """

    DETECTED = "detected"
    REVIEWING = "reviewing"
    TAKEDOWN_SENT = "takedown_sent"
    REMOVED = "removed"
    DISPUTED = "disputed"
    DISMISSED = "dismissed"
    FAILED = "failed"

    def can_transition_to(self, target: InfringementStatus) -> bool:
        return target in _STATUS_TRANSITIONS[self]


_STATUS_TRANSITIONS: dict[InfringementStatus, frozenset[InfringementStatus]] = {
    InfringementStatus.DETECTED: frozenset({InfringementStatus.REVIEWING}),
    InfringementStatus.REVIEWING: frozenset(
        {InfringementStatus.TAKEDOWN_SENT, InfringementStatus.FAILED}
    ),
    InfringementStatus.TAKEDOWN_SENT: frozenset(
        {
            InfringementStatus.REMOVED,
            InfringementStatus.DISPUTED,
            InfringementStatus.DISMISSED,
            InfringementStatus.FAILED,
        }
    ),
    InfringementStatus.REMOVED: frozenset(),
    InfringementStatus.DISPUTED: frozenset(),
    InfringementStatus.DISMISSED: frozenset(),
    InfringementStatus.FAILED: frozenset(),
}


# === OWNERS & CONTENT ===


class Owner(BaseModel):
    """Account owning protected content; ``plan`` is a subscription slug."""

    id: str
    email: str | None = None
    plan: str = "free"


class ProtectedContent(BaseModel):
    """A protected course or document. Read-only input to a scan."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    owner_id: str
    title: str
    original_url: str
    content_type: ContentType = ContentType.VIDEO
    keywords: tuple[str, ...]

    # --- Scheduling / bookkeeping ---
    scan_frequency: ScanFrequency = ScanFrequency.MANUAL
    is_active: bool = True
    last_scanned_at: datetime | None = None
    next_scan_at: datetime | None = None
    scan_count: int = 0
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("keywords")
    @classmethod
    def validate_keywords(cls, v: tuple[str, ...]) -> tuple[str, ...]:  # noqa: N805
        cleaned = tuple(k.strip() for k in v if k and k.strip())
        if not cleaned:
            raise ValueError("keywords must contain at least one entry")
        return cleaned

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:  # noqa: N805
        if not v.strip():
            raise ValueError("title must not be empty")
        return v.strip()


# === CANDIDATE RESULTS (adapter output, pre-persistence) ===


class _CandidateBase(BaseModel):
    source_url: str
    source_domain: str
    title: str
    snippet: str = ""
    confidence: int = Field(default=0, ge=0, le=100)


class WebSearchCandidate(_CandidateBase):
    """Search-engine hit."""

    source_type: Literal[SourceType.WEB_SEARCH] = SourceType.WEB_SEARCH


class MessagingCandidate(_CandidateBase):
    """Public channel post matching the content title."""

    source_type: Literal[SourceType.MESSAGING] = SourceType.MESSAGING
    channel_name: str
    channel_handle: str
    message_id: int
    posted_at: datetime | None = None


class TorrentCandidate(_CandidateBase):
    """Torrent index listing. ``title`` is prefixed with the site name."""

    source_type: Literal[SourceType.TORRENT] = SourceType.TORRENT
    site_name: str
    torrent_title: str
    seeders: int | None = None
    leechers: int | None = None
    size: str | None = None


CandidateResult = Annotated[
    Union[WebSearchCandidate, MessagingCandidate, TorrentCandidate],
    Field(discriminator="source_type"),
]


# === PERSISTED RECORDS ===


class Infringement(BaseModel):
    """Persisted finding, unique per (content_id, source_url)."""

    id: str = Field(default_factory=new_id)
    content_id: str
    source_url: str
    source_type: SourceType
    source_domain: str
    title: str
    snippet: str = ""
    confidence: int = Field(ge=0, le=100)
    status: InfringementStatus = InfringementStatus.DETECTED
    detected_at: datetime = Field(default_factory=utcnow)

    @classmethod
    def from_candidate(
        cls, content_id: str, candidate: _CandidateBase, detected_at: datetime | None = None,
    ) -> Infringement:
        """Build a new ``detected`` record from an adapter candidate."""
        return cls(
            content_id=content_id,
            source_url=candidate.source_url,
            source_type=candidate.source_type,  # type: ignore[attr-defined]
            source_domain=candidate.source_domain,
            title=candidate.title,
            snippet=candidate.snippet,
            confidence=candidate.confidence,
            detected_at=detected_at or utcnow(),
        )


class ScanJob(BaseModel):
    """One orchestration run: running -> completed | failed, finalized once."""

    id: str = Field(default_factory=new_id)
    content_id: str
    scan_type: ScanType = ScanType.FULL
    status: ScanStatus = ScanStatus.RUNNING
    started_at: datetime = Field(default_factory=utcnow)
    completed_at: datetime | None = None
    results_count: int = 0
    infringements_found: int = 0
    error_message: str | None = None

    @property
    def is_finalized(self) -> bool:
        return self.status is not ScanStatus.RUNNING
