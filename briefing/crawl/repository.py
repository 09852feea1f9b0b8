"""Database repository for the crawl_histories table."""

import logging
from typing import Any

from briefing.crawl.schemas import CrawlHistory, CrawlStatus
from briefing.storage.database import Database

logger = logging.getLogger(__name__)

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS crawl_histories (
    id            BIGSERIAL PRIMARY KEY,
    source_id     BIGINT NOT NULL REFERENCES sources(id),
    status        TEXT NOT NULL,
    items_found   INTEGER NOT NULL DEFAULT 0,
    items_saved   INTEGER NOT NULL DEFAULT 0,
    items_updated INTEGER NOT NULL DEFAULT 0,
    error_message TEXT,
    started_at    TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    finished_at   TIMESTAMPTZ,
    duration_ms   BIGINT
);

CREATE INDEX IF NOT EXISTS idx_crawl_histories_source
    ON crawl_histories(source_id, started_at DESC);
CREATE INDEX IF NOT EXISTS idx_crawl_histories_status
    ON crawl_histories(status);
"""

_INSERT_SQL = """
INSERT INTO crawl_histories (source_id, status, started_at)
VALUES ($1, $2, $3)
RETURNING id
"""

_FINISH_SQL = """
UPDATE crawl_histories SET
    status = $2,
    items_found = $3,
    items_saved = $4,
    items_updated = $5,
    error_message = $6,
    finished_at = $7,
    duration_ms = $8
WHERE id = $1
"""


def _record_to_history(record: Any) -> CrawlHistory:
    """Convert an asyncpg Record to a CrawlHistory dataclass."""
    return CrawlHistory(
        id=record["id"],
        source_id=record["source_id"],
        status=CrawlStatus(record["status"]),
        items_found=record["items_found"],
        items_saved=record["items_saved"],
        items_updated=record["items_updated"],
        error_message=record["error_message"],
        started_at=record["started_at"],
        finished_at=record["finished_at"],
        duration_ms=record["duration_ms"],
    )


class CrawlHistoryRepository:
    """Persistence for crawl run history rows."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def create_table(self) -> None:
        await self._db.execute(_CREATE_TABLE_SQL)
        logger.info("Crawl histories table ensured")

    async def insert(self, history: CrawlHistory) -> CrawlHistory:
        """Persist a freshly started run and assign its id."""
        history.id = await self._db.fetchval(
            _INSERT_SQL,
            history.source_id,
            history.status.value,
            history.started_at,
        )
        return history

    async def save_result(self, history: CrawlHistory) -> CrawlHistory:
        """Write the terminal state of a run."""
        await self._db.execute(
            _FINISH_SQL,
            history.id,
            history.status.value,
            history.items_found,
            history.items_saved,
            history.items_updated,
            history.error_message,
            history.finished_at,
            history.duration_ms,
        )
        return history

    async def list_recent(
        self,
        source_id: int | None = None,
        limit: int = 20,
    ) -> list[CrawlHistory]:
        """Most recent runs, optionally for one source."""
        if source_id is not None:
            rows = await self._db.fetch(
                """
                SELECT * FROM crawl_histories WHERE source_id = $1
                ORDER BY started_at DESC LIMIT $2
                """,
                source_id, limit,
            )
        else:
            rows = await self._db.fetch(
                "SELECT * FROM crawl_histories ORDER BY started_at DESC LIMIT $1",
                limit,
            )
        return [_record_to_history(r) for r in rows]
