"""Database repository for the sources table."""

import json
import logging
from datetime import datetime
from typing import Any

import asyncpg

from briefing.sources.schemas import Source
from briefing.storage.database import Database

logger = logging.getLogger(__name__)

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS sources (
    id              BIGSERIAL PRIMARY KEY,
    name            TEXT NOT NULL UNIQUE,
    url             TEXT NOT NULL,
    category        TEXT NOT NULL,
    platform        TEXT NOT NULL,
    config          JSONB NOT NULL DEFAULT '{}',
    enabled         BOOLEAN NOT NULL DEFAULT TRUE,
    cron            TEXT NOT NULL DEFAULT '0 */2 * * *',
    last_crawled_at TIMESTAMPTZ,
    created_at      TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at      TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_sources_category_enabled
    ON sources(category, enabled) WHERE enabled = TRUE;
"""

_BULK_UPSERT_SQL = """
INSERT INTO sources (name, url, category, platform, config, enabled, cron)
SELECT * FROM unnest(
    $1::text[], $2::text[], $3::text[], $4::text[], $5::jsonb[], $6::boolean[], $7::text[]
)
ON CONFLICT (name) DO UPDATE SET
    url = EXCLUDED.url,
    category = EXCLUDED.category,
    platform = EXCLUDED.platform,
    config = EXCLUDED.config,
    cron = EXCLUDED.cron,
    updated_at = NOW()
"""

_TOUCH_CRAWLED_SQL = """
UPDATE sources SET last_crawled_at = $2, updated_at = NOW()
WHERE id = $1
"""


def _record_to_source(record: Any) -> Source:
    """Convert an asyncpg Record to a Source dataclass."""
    config = record["config"]
    if isinstance(config, str):
        config = json.loads(config)

    return Source(
        id=record["id"],
        name=record["name"],
        url=record["url"],
        category=record["category"],
        platform=record["platform"],
        config=dict(config) if config else {},
        enabled=record["enabled"],
        cron=record["cron"],
        last_crawled_at=record["last_crawled_at"],
        created_at=record["created_at"],
        updated_at=record["updated_at"],
    )


class SourcesRepository:
    """CRUD operations for the sources table."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def create_table(self) -> None:
        """Create the sources table and indexes (idempotent)."""
        await self._db.execute(_CREATE_TABLE_SQL)
        logger.info("Sources table ensured")

    async def bulk_upsert(self, sources: list[Source]) -> int:
        """Insert or update multiple sources by name in one statement.

        ``enabled`` is only applied on insert so that re-seeding never
        re-enables a source an operator switched off.

        Returns the number of sources processed.
        """
        if not sources:
            return 0

        await self._db.execute(
            _BULK_UPSERT_SQL,
            [s.name for s in sources],
            [s.url for s in sources],
            [s.category for s in sources],
            [s.platform for s in sources],
            [json.dumps(s.config) for s in sources],
            [s.enabled for s in sources],
            [s.cron for s in sources],
        )
        logger.info("Bulk upserted %d sources", len(sources))
        return len(sources)

    async def get_by_id(self, source_id: int) -> Source | None:
        row = await self._db.fetchrow(
            "SELECT * FROM sources WHERE id = $1", source_id
        )
        return _record_to_source(row) if row else None

    async def list_enabled(
        self,
        category: str | None = None,
        platform: str | None = None,
    ) -> list[Source]:
        """Fetch enabled sources, optionally narrowed by category and platform."""
        conditions = ["enabled = TRUE"]
        params: list = []

        if category:
            params.append(category)
            conditions.append(f"category = ${len(params)}")
        if platform:
            params.append(platform)
            conditions.append(f"platform = ${len(params)}")

        rows = await self._db.fetch(
            f"SELECT * FROM sources WHERE {' AND '.join(conditions)} ORDER BY id",
            *params,
        )
        return [_record_to_source(r) for r in rows]

    async def list_all(self) -> list[Source]:
        rows = await self._db.fetch("SELECT * FROM sources ORDER BY id")
        return [_record_to_source(r) for r in rows]

    async def set_enabled(self, source_id: int, enabled: bool) -> bool:
        """Enable or disable a source. Returns True if a row was updated."""
        result = await self._db.execute(
            """
            UPDATE sources SET enabled = $2, updated_at = NOW()
            WHERE id = $1 AND enabled <> $2
            """,
            source_id, enabled,
        )
        return result.endswith("1")

    async def touch_last_crawled(
        self,
        source_id: int,
        crawled_at: datetime,
        conn: asyncpg.Connection | None = None,
    ) -> None:
        """Advance last_crawled_at, inside the caller's transaction if given."""
        runner = conn or self._db
        await runner.execute(_TOUCH_CRAWLED_SQL, source_id, crawled_at)

    async def count(self) -> int:
        """Count total sources in the table."""
        return await self._db.fetchval("SELECT COUNT(*) FROM sources")
