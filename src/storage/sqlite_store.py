# src/storage/sqlite_store.py - v1
"""SQLite-based record store (RECORD_STORE_BACKEND=sqlite).

Uses stdlib sqlite3. The UNIQUE(content_id, source_url) constraint is the
final guard against two concurrent scans inserting the same finding.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any

from leakwatch.core.errors import (
    ContentNotFoundError,
    DuplicateInfringementError,
    InvalidStatusTransitionError,
    RecordNotFoundError,
    ScanJobAlreadyFinalizedError,
)
from leakwatch.core.models import (
    Infringement,
    InfringementStatus,
    Owner,
    ProtectedContent,
    ScanJob,
    ScanStatus,
    ScanType,
    utcnow,
)
from leakwatch.storage.base_record_store import (
    BaseRecordStore,
    check_final_status,
    due_sort_key,
    is_due,
)

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS owners (
    id TEXT PRIMARY KEY,
    email TEXT,
    plan TEXT NOT NULL DEFAULT 'free'
);
CREATE TABLE IF NOT EXISTS protected_content (
    id TEXT PRIMARY KEY,
    owner_id TEXT NOT NULL,
    data TEXT NOT NULL,
    is_active INTEGER NOT NULL DEFAULT 1,
    scan_frequency TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS infringements (
    id TEXT PRIMARY KEY,
    content_id TEXT NOT NULL,
    source_url TEXT NOT NULL,
    source_type TEXT NOT NULL,
    source_domain TEXT NOT NULL,
    title TEXT NOT NULL,
    snippet TEXT NOT NULL DEFAULT '',
    confidence INTEGER NOT NULL,
    status TEXT NOT NULL,
    detected_at TEXT NOT NULL,
    UNIQUE (content_id, source_url)
);
CREATE INDEX IF NOT EXISTS idx_infringements_status ON infringements(status);
CREATE TABLE IF NOT EXISTS scan_jobs (
    id TEXT PRIMARY KEY,
    content_id TEXT NOT NULL,
    scan_type TEXT NOT NULL,
    status TEXT NOT NULL,
    started_at TEXT NOT NULL,
    completed_at TEXT,
    results_count INTEGER NOT NULL DEFAULT 0,
    infringements_found INTEGER NOT NULL DEFAULT 0,
    error_message TEXT
);
CREATE INDEX IF NOT EXISTS idx_scan_jobs_content ON scan_jobs(content_id);
"""

_INFRINGEMENT_COLUMNS = (
    "id, content_id, source_url, source_type, source_domain, title, "
    "snippet, confidence, status, detected_at"
)
_JOB_COLUMNS = (
    "id, content_id, scan_type, status, started_at, completed_at, "
    "results_count, infringements_found, error_message"
)


class SqliteRecordStore(BaseRecordStore):
    """SQLite-backed record store."""

    def __init__(self, db_path: Path | str) -> None:
        if str(db_path) == ":memory:":
            self._db_path = None
            self._conn = sqlite3.connect(":memory:")
        else:
            self._db_path = Path(db_path).expanduser()
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self._db_path))
            self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    # --- Owners ---

    async def save_owner(self, owner: Owner) -> Owner:
        self._conn.execute(
            "INSERT OR REPLACE INTO owners (id, email, plan) VALUES (?, ?, ?)",
            (owner.id, owner.email, owner.plan),
        )
        self._conn.commit()
        return owner

    async def get_owner(self, owner_id: str) -> Owner | None:
        row = self._conn.execute(
            "SELECT id, email, plan FROM owners WHERE id = ?", (owner_id,)
        ).fetchone()
        if row is None:
            return None
        return Owner(id=row[0], email=row[1], plan=row[2])

    # --- Protected content ---

    async def save_content(self, content: ProtectedContent) -> ProtectedContent:
        self._conn.execute(
            """INSERT OR REPLACE INTO protected_content
               (id, owner_id, data, is_active, scan_frequency)
               VALUES (?, ?, ?, ?, ?)""",
            (
                content.id,
                content.owner_id,
                content.model_dump_json(),
                int(content.is_active),
                content.scan_frequency.value,
            ),
        )
        self._conn.commit()
        return content

    async def get_content(self, content_id: str) -> ProtectedContent:
        row = self._conn.execute(
            "SELECT data FROM protected_content WHERE id = ?", (content_id,)
        ).fetchone()
        if row is None:
            raise ContentNotFoundError(content_id)
        return ProtectedContent.model_validate_json(row[0])

    async def list_due_content(self, now: datetime, limit: int) -> list[ProtectedContent]:
        rows = self._conn.execute(
            """SELECT data FROM protected_content
               WHERE is_active = 1 AND scan_frequency IN ('daily', 'weekly')"""
        ).fetchall()
        candidates = [ProtectedContent.model_validate_json(r[0]) for r in rows]
        due = [c for c in candidates if is_due(c, now)]
        return sorted(due, key=due_sort_key)[:limit]

    async def mark_content_scanned(self, content_id: str, at: datetime) -> ProtectedContent:
        content = await self.get_content(content_id)
        updated = content.model_copy(
            update={"last_scanned_at": at, "scan_count": content.scan_count + 1}
        )
        return await self.save_content(updated)

    async def schedule_next_scan(self, content_id: str, at: datetime) -> ProtectedContent:
        content = await self.get_content(content_id)
        return await self.save_content(content.model_copy(update={"next_scan_at": at}))

    # --- Infringements ---

    async def find_infringement(
        self, content_id: str, source_url: str,
    ) -> Infringement | None:
        row = self._conn.execute(
            f"SELECT {_INFRINGEMENT_COLUMNS} FROM infringements "
            "WHERE content_id = ? AND source_url = ?",
            (content_id, source_url),
        ).fetchone()
        return _row_to_infringement(row) if row else None

    async def create_infringement(self, infringement: Infringement) -> Infringement:
        try:
            self._conn.execute(
                f"INSERT INTO infringements ({_INFRINGEMENT_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    infringement.id,
                    infringement.content_id,
                    infringement.source_url,
                    infringement.source_type.value,
                    infringement.source_domain,
                    infringement.title,
                    infringement.snippet,
                    infringement.confidence,
                    infringement.status.value,
                    infringement.detected_at.isoformat(),
                ),
            )
            self._conn.commit()
        except sqlite3.IntegrityError as e:
            self._conn.rollback()
            raise DuplicateInfringementError(
                infringement.content_id, infringement.source_url
            ) from e
        return infringement

    async def list_infringements(
        self, content_id: str, status: InfringementStatus | None = None,
    ) -> list[Infringement]:
        query = f"SELECT {_INFRINGEMENT_COLUMNS} FROM infringements WHERE content_id = ?"
        params: list[Any] = [content_id]
        if status is not None:
            query += " AND status = ?"
            params.append(status.value)
        query += " ORDER BY detected_at DESC"
        return [_row_to_infringement(r) for r in self._conn.execute(query, params).fetchall()]

    async def update_infringement_status(
        self, infringement_id: str, status: InfringementStatus,
    ) -> Infringement:
        row = self._conn.execute(
            f"SELECT {_INFRINGEMENT_COLUMNS} FROM infringements WHERE id = ?",
            (infringement_id,),
        ).fetchone()
        if row is None:
            raise RecordNotFoundError("Infringement", infringement_id)
        current = _row_to_infringement(row)
        if not current.status.can_transition_to(status):
            raise InvalidStatusTransitionError(current.status.value, status.value)
        self._conn.execute(
            "UPDATE infringements SET status = ? WHERE id = ?",
            (status.value, infringement_id),
        )
        self._conn.commit()
        return current.model_copy(update={"status": status})

    async def count_infringements_by_status(
        self, content_id: str | None = None,
    ) -> dict[InfringementStatus, int]:
        if content_id is None:
            rows = self._conn.execute(
                "SELECT status, COUNT(*) FROM infringements GROUP BY status"
            ).fetchall()
        else:
            rows = self._conn.execute(
                "SELECT status, COUNT(*) FROM infringements "
                "WHERE content_id = ? GROUP BY status",
                (content_id,),
            ).fetchall()
        return {InfringementStatus(status): count for status, count in rows}

    # --- Scan jobs ---

    async def create_scan_job(
        self, content_id: str, scan_type: ScanType = ScanType.FULL,
    ) -> ScanJob:
        job = ScanJob(content_id=content_id, scan_type=scan_type)
        self._conn.execute(
            f"INSERT INTO scan_jobs ({_JOB_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                job.id, job.content_id, job.scan_type.value, job.status.value,
                job.started_at.isoformat(), None, 0, 0, None,
            ),
        )
        self._conn.commit()
        return job

    async def finalize_scan_job(
        self,
        scan_job_id: str,
        status: ScanStatus,
        *,
        results_count: int = 0,
        infringements_found: int = 0,
        error_message: str | None = None,
        completed_at: datetime | None = None,
    ) -> ScanJob:
        check_final_status(status)
        job = await self.get_scan_job(scan_job_id)
        completed_at = completed_at or utcnow()
        # Guarded on status so a concurrent finalize cannot overwrite.
        cursor = self._conn.execute(
            """UPDATE scan_jobs
               SET status = ?, completed_at = ?, results_count = ?,
                   infringements_found = ?, error_message = ?
               WHERE id = ? AND status = ?""",
            (
                status.value, completed_at.isoformat(), results_count,
                infringements_found, error_message,
                scan_job_id, ScanStatus.RUNNING.value,
            ),
        )
        self._conn.commit()
        if cursor.rowcount == 0:
            raise ScanJobAlreadyFinalizedError(scan_job_id, job.status.value)
        return job.model_copy(
            update={
                "status": status,
                "completed_at": completed_at,
                "results_count": results_count,
                "infringements_found": infringements_found,
                "error_message": error_message,
            }
        )

    async def get_scan_job(self, scan_job_id: str) -> ScanJob:
        row = self._conn.execute(
            f"SELECT {_JOB_COLUMNS} FROM scan_jobs WHERE id = ?", (scan_job_id,)
        ).fetchone()
        if row is None:
            raise RecordNotFoundError("Scan job", scan_job_id)
        return _row_to_job(row)

    async def list_scan_jobs(self, content_id: str) -> list[ScanJob]:
        rows = self._conn.execute(
            f"SELECT {_JOB_COLUMNS} FROM scan_jobs WHERE content_id = ? ORDER BY started_at",
            (content_id,),
        ).fetchall()
        return [_row_to_job(r) for r in rows]

    def close(self) -> None:
        self._conn.close()


def _row_to_infringement(row: tuple) -> Infringement:
    return Infringement(
        id=row[0],
        content_id=row[1],
        source_url=row[2],
        source_type=row[3],
        source_domain=row[4],
        title=row[5],
        snippet=row[6],
        confidence=row[7],
        status=row[8],
        detected_at=datetime.fromisoformat(row[9]),
    )


def _row_to_job(row: tuple) -> ScanJob:
    return ScanJob(
        id=row[0],
        content_id=row[1],
        scan_type=row[2],
        status=row[3],
        started_at=datetime.fromisoformat(row[4]),
        completed_at=datetime.fromisoformat(row[5]) if row[5] else None,
        results_count=row[6],
        infringements_found=row[7],
        error_message=row[8],
    )
