"""Database repository for the content_items table.

Every method accepts an optional ``conn`` so callers can group several
statements in one transaction; without it the statement runs on a pooled
connection of its own.
"""

import json
import logging
from collections.abc import Sequence
from datetime import datetime
from typing import Any

import asyncpg

from briefing.content.schemas import ContentItem, StoredCounters
from briefing.storage.database import Database

logger = logging.getLogger(__name__)

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS content_items (
    id               BIGSERIAL PRIMARY KEY,
    source_id        BIGINT NOT NULL REFERENCES sources(id),
    kind             TEXT NOT NULL,
    external_id      TEXT NOT NULL,
    title            TEXT NOT NULL,
    body             TEXT NOT NULL DEFAULT '',
    title_translated TEXT,
    body_translated  TEXT,
    translated_at    TIMESTAMPTZ,
    author           TEXT,
    url              TEXT,
    tags             JSONB NOT NULL DEFAULT '[]',
    like_count       INTEGER NOT NULL DEFAULT 0,
    comment_count    INTEGER NOT NULL DEFAULT 0,
    share_count      INTEGER NOT NULL DEFAULT 0,
    language         TEXT,
    sentiment        TEXT,
    published_at     TIMESTAMPTZ,
    created_at       TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at       TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    UNIQUE (source_id, external_id)
);

CREATE INDEX IF NOT EXISTS idx_content_items_created_at
    ON content_items(created_at);
CREATE INDEX IF NOT EXISTS idx_content_items_untranslated
    ON content_items(language, created_at) WHERE translated_at IS NULL;
CREATE INDEX IF NOT EXISTS idx_content_items_no_sentiment
    ON content_items(kind, created_at) WHERE sentiment IS NULL;
"""

_FIND_EXISTING_SQL = """
SELECT id, external_id, like_count, comment_count, share_count
FROM content_items
WHERE source_id = $1 AND external_id = ANY($2::text[])
"""

_BATCH_INSERT_SQL = """
INSERT INTO content_items (
    source_id, kind, external_id, title, body, author, url, tags,
    like_count, comment_count, share_count, language, published_at
)
SELECT * FROM unnest(
    $1::bigint[], $2::text[], $3::text[], $4::text[], $5::text[],
    $6::text[], $7::text[], $8::jsonb[], $9::int[], $10::int[],
    $11::int[], $12::text[], $13::timestamptz[]
)
ON CONFLICT (source_id, external_id) DO NOTHING
RETURNING id
"""

_BATCH_UPDATE_COUNTERS_SQL = """
UPDATE content_items AS c SET
    like_count = u.like_count,
    comment_count = u.comment_count,
    share_count = u.share_count,
    updated_at = NOW()
FROM unnest($1::bigint[], $2::int[], $3::int[], $4::int[])
    AS u(id, like_count, comment_count, share_count)
WHERE c.id = u.id
"""

# Only enrichment columns are written back; counters belong to the crawler.
# A NULL in the detached copy never clears a value stored by another job.
_BATCH_UPDATE_ENRICHMENT_SQL = """
UPDATE content_items AS c SET
    title_translated = COALESCE(u.title_translated, c.title_translated),
    body_translated = COALESCE(u.body_translated, c.body_translated),
    translated_at = COALESCE(u.translated_at, c.translated_at),
    sentiment = COALESCE(u.sentiment, c.sentiment),
    updated_at = NOW()
FROM unnest($1::bigint[], $2::text[], $3::text[], $4::timestamptz[], $5::text[])
    AS u(id, title_translated, body_translated, translated_at, sentiment)
WHERE c.id = u.id
"""

_PENDING_TRANSLATION_SQL = """
SELECT * FROM content_items
WHERE language = $1 AND translated_at IS NULL AND kind = ANY($2::text[])
ORDER BY created_at, id
LIMIT $3
"""

_PENDING_SENTIMENT_SQL = """
SELECT * FROM content_items
WHERE sentiment IS NULL AND kind = ANY($1::text[])
ORDER BY created_at, id
LIMIT $2
"""

_CREATED_BETWEEN_SQL = """
SELECT * FROM content_items
WHERE created_at >= $1 AND created_at <= $2
ORDER BY created_at DESC, id DESC
"""


def _record_to_item(record: Any) -> ContentItem:
    """Convert an asyncpg Record to a ContentItem dataclass."""
    tags = record["tags"]
    if isinstance(tags, str):
        tags = json.loads(tags)

    return ContentItem(
        id=record["id"],
        source_id=record["source_id"],
        kind=record["kind"],
        external_id=record["external_id"],
        title=record["title"],
        body=record["body"],
        title_translated=record["title_translated"],
        body_translated=record["body_translated"],
        translated_at=record["translated_at"],
        author=record["author"],
        url=record["url"],
        tags=list(tags or []),
        like_count=record["like_count"],
        comment_count=record["comment_count"],
        share_count=record["share_count"],
        language=record["language"],
        sentiment=record["sentiment"],
        published_at=record["published_at"],
        created_at=record["created_at"],
        updated_at=record["updated_at"],
    )


def _affected_rows(status: str) -> int:
    """Parse the row count out of a command tag such as 'UPDATE 3'."""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (AttributeError, ValueError):
        return 0


class ContentRepository:
    """Batch reads and writes for content items."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def create_table(self) -> None:
        """Create the content_items table and indexes (idempotent)."""
        await self._db.execute(_CREATE_TABLE_SQL)
        logger.info("Content items table ensured")

    async def find_existing(
        self,
        source_id: int,
        external_ids: Sequence[str],
        conn: asyncpg.Connection | None = None,
    ) -> dict[str, StoredCounters]:
        """Look up already-stored items of a source in one query."""
        if not external_ids:
            return {}

        runner = conn or self._db
        rows = await runner.fetch(_FIND_EXISTING_SQL, source_id, list(external_ids))
        return {
            r["external_id"]: StoredCounters(
                id=r["id"],
                like_count=r["like_count"],
                comment_count=r["comment_count"],
                share_count=r["share_count"],
            )
            for r in rows
        }

    async def insert_batch(
        self,
        items: Sequence[ContentItem],
        conn: asyncpg.Connection | None = None,
    ) -> int:
        """Insert new items with one multi-row statement.

        Rows that collide with the (source_id, external_id) constraint are
        skipped by the database. Returns the number actually inserted.
        """
        if not items:
            return 0

        runner = conn or self._db
        rows = await runner.fetch(
            _BATCH_INSERT_SQL,
            [i.source_id for i in items],
            [i.kind for i in items],
            [i.external_id for i in items],
            [i.title for i in items],
            [i.body for i in items],
            [i.author for i in items],
            [i.url for i in items],
            [json.dumps(i.tags, ensure_ascii=False) for i in items],
            [i.like_count for i in items],
            [i.comment_count for i in items],
            [i.share_count for i in items],
            [i.language for i in items],
            [i.published_at for i in items],
        )
        return len(rows)

    async def update_counters_batch(
        self,
        updates: Sequence[StoredCounters],
        conn: asyncpg.Connection | None = None,
    ) -> int:
        """Overwrite engagement counters by id. Returns rows updated."""
        if not updates:
            return 0

        runner = conn or self._db
        status = await runner.execute(
            _BATCH_UPDATE_COUNTERS_SQL,
            [u.id for u in updates],
            [u.like_count for u in updates],
            [u.comment_count for u in updates],
            [u.share_count for u in updates],
        )
        return _affected_rows(status)

    async def save_all(
        self,
        items: Sequence[ContentItem],
        conn: asyncpg.Connection | None = None,
    ) -> int:
        """Merge detached items back by identity.

        Items with an id get their enrichment fields written back (fields
        left unset keep the stored value); items without one are inserted.
        Returns the number of rows written.
        """
        if not items:
            return 0

        existing = [i for i in items if i.id is not None]
        new = [i for i in items if i.id is None]

        runner = conn or self._db
        written = 0
        if existing:
            status = await runner.execute(
                _BATCH_UPDATE_ENRICHMENT_SQL,
                [i.id for i in existing],
                [i.title_translated for i in existing],
                [i.body_translated for i in existing],
                [i.translated_at for i in existing],
                [i.sentiment for i in existing],
            )
            written += _affected_rows(status)
        if new:
            written += await self.insert_batch(new, conn=conn)
        return written

    async def find_pending_translation(
        self,
        language: str,
        kinds: Sequence[str],
        limit: int,
        conn: asyncpg.Connection | None = None,
    ) -> list[ContentItem]:
        """Oldest items in ``language`` that have not been translated yet."""
        runner = conn or self._db
        rows = await runner.fetch(_PENDING_TRANSLATION_SQL, language, list(kinds), limit)
        return [_record_to_item(r) for r in rows]

    async def find_pending_sentiment(
        self,
        kinds: Sequence[str],
        limit: int,
        conn: asyncpg.Connection | None = None,
    ) -> list[ContentItem]:
        """Oldest items without a sentiment tag."""
        runner = conn or self._db
        rows = await runner.fetch(_PENDING_SENTIMENT_SQL, list(kinds), limit)
        return [_record_to_item(r) for r in rows]

    async def find_created_between(
        self,
        start: datetime,
        end: datetime,
        conn: asyncpg.Connection | None = None,
    ) -> list[ContentItem]:
        """Items first stored within ``[start, end]``, newest first."""
        runner = conn or self._db
        rows = await runner.fetch(_CREATED_BETWEEN_SQL, start, end)
        return [_record_to_item(r) for r in rows]
