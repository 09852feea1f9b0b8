"""
Transactional write side of a crawl run.

One ``upsert`` call is one transaction: a single existence lookup for the
whole batch, one multi-row insert for new items, one multi-row update for
items whose counters moved, and the source's last_crawled_at bump.
No external calls happen while the transaction is open.
"""

import logging
from collections.abc import Callable, Sequence
from datetime import datetime, timezone

from briefing.content.repository import ContentRepository
from briefing.content.schemas import KIND_BY_CATEGORY, ContentItem, ContentKind, StoredCounters
from briefing.ingestion.language import detect_language
from briefing.ingestion.schemas import RawItem
from briefing.sources.repository import SourcesRepository
from briefing.sources.schemas import Source
from briefing.storage.database import Database

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _counters_changed(stored: StoredCounters, item: RawItem) -> bool:
    return (
        stored.like_count != item.like_count
        or stored.comment_count != item.comment_count
        or stored.share_count != item.share_count
    )


class IngestionGateway:
    """
    Batch upsert of crawled items keyed by (source_id, external_id).

    Usage:
        gateway = IngestionGateway(db)
        inserted, updated = await gateway.upsert(source, items)
    """

    def __init__(
        self,
        database: Database,
        content_repository: ContentRepository | None = None,
        sources_repository: SourcesRepository | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._db = database
        self._content = content_repository or ContentRepository(database)
        self._sources = sources_repository or SourcesRepository(database)
        self._clock = clock

    async def upsert(
        self,
        source: Source,
        items: Sequence[RawItem],
        kind: str | None = None,
    ) -> tuple[int, int]:
        """
        Insert new items, refresh changed counters, touch the source.

        ``items`` must already be unique by external id.

        Returns:
            (inserted, updated)
        """
        kind = kind or KIND_BY_CATEGORY.get(source.category, ContentKind.POST).value
        crawled_at = self._clock()

        async with self._db.transaction() as conn:
            if not items:
                await self._sources.touch_last_crawled(source.id, crawled_at, conn=conn)
                return 0, 0

            existing = await self._content.find_existing(
                source.id, [i.external_id for i in items], conn=conn
            )

            new_items: list[ContentItem] = []
            changed: list[StoredCounters] = []
            for item in items:
                stored = existing.get(item.external_id)
                if stored is None:
                    new_items.append(self._to_content_item(source, kind, item))
                elif _counters_changed(stored, item):
                    changed.append(
                        StoredCounters(
                            id=stored.id,
                            like_count=item.like_count,
                            comment_count=item.comment_count,
                            share_count=item.share_count,
                        )
                    )

            inserted = await self._content.insert_batch(new_items, conn=conn)
            if inserted < len(new_items):
                # Another run stored these between our lookup and insert
                logger.warning(
                    "Integrity conflict for source %s: %d of %d new items already existed",
                    source.id, len(new_items) - inserted, len(new_items),
                )

            updated = await self._content.update_counters_batch(changed, conn=conn)
            await self._sources.touch_last_crawled(source.id, crawled_at, conn=conn)

        logger.debug(
            "Upserted source %s: inserted=%d updated=%d unchanged=%d",
            source.id, inserted, updated, len(items) - len(new_items) - len(changed),
        )
        return inserted, updated

    @staticmethod
    def _to_content_item(source: Source, kind: str, item: RawItem) -> ContentItem:
        return ContentItem(
            source_id=source.id,
            kind=kind,
            external_id=item.external_id,
            title=item.title,
            body=item.body,
            author=item.author,
            url=item.url,
            tags=list(item.tags),
            like_count=item.like_count,
            comment_count=item.comment_count,
            share_count=item.share_count,
            language=detect_language(f"{item.title} {item.body}"),
            published_at=item.published_at,
        )
