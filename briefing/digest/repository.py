"""Database repository for the digests table."""

import logging
from datetime import date, datetime
from typing import Any

import asyncpg

from briefing.digest.schemas import Digest, DigestStatus
from briefing.storage.database import Database

logger = logging.getLogger(__name__)

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS digests (
    id            BIGSERIAL PRIMARY KEY,
    digest_date   DATE NOT NULL UNIQUE,
    post_count    INTEGER NOT NULL DEFAULT 0,
    article_count INTEGER NOT NULL DEFAULT 0,
    listing_count INTEGER NOT NULL DEFAULT 0,
    content       TEXT NOT NULL,
    status        TEXT NOT NULL DEFAULT 'draft',
    sent_at       TIMESTAMPTZ,
    created_at    TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at    TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_digests_status ON digests(status);
"""

# Regenerating a date overwrites its row; sent_at is cleared with the status
_UPSERT_SQL = """
INSERT INTO digests (
    digest_date, post_count, article_count, listing_count, content, status
)
VALUES ($1, $2, $3, $4, $5, $6)
ON CONFLICT (digest_date) DO UPDATE SET
    post_count = EXCLUDED.post_count,
    article_count = EXCLUDED.article_count,
    listing_count = EXCLUDED.listing_count,
    content = EXCLUDED.content,
    status = EXCLUDED.status,
    sent_at = NULL,
    updated_at = NOW()
RETURNING *
"""

_UPDATE_STATUS_SQL = """
UPDATE digests SET status = $2, sent_at = $3, updated_at = NOW()
WHERE id = $1
RETURNING *
"""


def _record_to_digest(record: Any) -> Digest:
    """Convert an asyncpg Record to a Digest dataclass."""
    return Digest(
        id=record["id"],
        digest_date=record["digest_date"],
        post_count=record["post_count"],
        article_count=record["article_count"],
        listing_count=record["listing_count"],
        content=record["content"],
        status=DigestStatus(record["status"]),
        sent_at=record["sent_at"],
        created_at=record["created_at"],
        updated_at=record["updated_at"],
    )


class DigestRepository:
    """Persistence for daily digests, one row per date."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def create_table(self) -> None:
        await self._db.execute(_CREATE_TABLE_SQL)
        logger.info("Digests table ensured")

    async def upsert(
        self,
        digest: Digest,
        conn: asyncpg.Connection | None = None,
    ) -> Digest:
        """Insert the digest for its date, or overwrite the existing one."""
        runner = conn or self._db
        row = await runner.fetchrow(
            _UPSERT_SQL,
            digest.digest_date,
            digest.post_count,
            digest.article_count,
            digest.listing_count,
            digest.content,
            digest.status.value,
        )
        return _record_to_digest(row)

    async def get_by_date(
        self,
        digest_date: date,
        conn: asyncpg.Connection | None = None,
    ) -> Digest | None:
        runner = conn or self._db
        row = await runner.fetchrow(
            "SELECT * FROM digests WHERE digest_date = $1", digest_date
        )
        return _record_to_digest(row) if row else None

    async def get_by_id(
        self,
        digest_id: int,
        conn: asyncpg.Connection | None = None,
    ) -> Digest | None:
        runner = conn or self._db
        row = await runner.fetchrow("SELECT * FROM digests WHERE id = $1", digest_id)
        return _record_to_digest(row) if row else None

    async def save_status(
        self,
        digest: Digest,
        conn: asyncpg.Connection | None = None,
    ) -> Digest:
        """Persist the status and sent_at of an existing digest."""
        runner = conn or self._db
        row = await runner.fetchrow(
            _UPDATE_STATUS_SQL, digest.id, digest.status.value, digest.sent_at
        )
        return _record_to_digest(row)

    async def list_recent(self, limit: int = 30) -> list[Digest]:
        rows = await self._db.fetch(
            "SELECT * FROM digests ORDER BY digest_date DESC LIMIT $1", limit
        )
        return [_record_to_digest(r) for r in rows]

    async def mark_sent_by_id(
        self,
        digest_id: int,
        sent_at: datetime,
        conn: asyncpg.Connection | None = None,
    ) -> Digest | None:
        """Re-read the digest by id and mark it sent. None if it is gone."""
        digest = await self.get_by_id(digest_id, conn=conn)
        if digest is None:
            return None
        digest.mark_sent(sent_at)
        return await self.save_status(digest, conn=conn)
