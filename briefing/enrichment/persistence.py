"""
Transaction boundaries of an enrichment batch.

Reads run in a read-only transaction and hand out detached dataclasses;
writes merge those records back in a separate transaction. Nothing here
is ever held open across an LLM call.
"""

import logging
from collections.abc import Sequence

from briefing.content.repository import ContentRepository
from briefing.content.schemas import ContentItem
from briefing.storage.database import Database

logger = logging.getLogger(__name__)


class EnrichmentGateway:
    """Read and write sides of the enrichment jobs."""

    def __init__(
        self,
        database: Database,
        content_repository: ContentRepository | None = None,
    ) -> None:
        self._db = database
        self._content = content_repository or ContentRepository(database)

    async def fetch_untranslated(
        self,
        language: str,
        kinds: Sequence[str],
        limit: int,
    ) -> list[ContentItem]:
        async with self._db.transaction(readonly=True) as conn:
            return await self._content.find_pending_translation(
                language, kinds, limit, conn=conn
            )

    async def fetch_without_sentiment(
        self,
        kinds: Sequence[str],
        limit: int,
    ) -> list[ContentItem]:
        async with self._db.transaction(readonly=True) as conn:
            return await self._content.find_pending_sentiment(kinds, limit, conn=conn)

    async def save_all(self, items: Sequence[ContentItem]) -> int:
        """Write enriched records back by identity. Empty input is a no-op."""
        if not items:
            return 0
        async with self._db.transaction() as conn:
            written = await self._content.save_all(items, conn=conn)
        if written < len(items):
            logger.warning(
                "Enrichment save wrote %d of %d records", written, len(items)
            )
        return written
