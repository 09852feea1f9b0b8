"""
Transaction boundaries of a digest run.

Each method is its own transaction: reads are read-only, and nothing is
held open while the LLM or the notifier is being called.
"""

import logging
from datetime import date, datetime

from briefing.content.repository import ContentRepository
from briefing.content.schemas import ContentItem
from briefing.digest.repository import DigestRepository
from briefing.digest.schemas import Digest, DigestStatus, SummaryOutcome
from briefing.storage.database import Database

logger = logging.getLogger(__name__)

FAILED_DIGEST_CONTENT = "Digest generation failed"


class DigestGateway:
    """Reads and writes used by DigestService."""

    def __init__(
        self,
        database: Database,
        content_repository: ContentRepository | None = None,
        digest_repository: DigestRepository | None = None,
    ) -> None:
        self._db = database
        self._content = content_repository or ContentRepository(database)
        self._digests = digest_repository or DigestRepository(database)

    async def is_sent(self, digest_date: date) -> bool:
        async with self._db.transaction(readonly=True) as conn:
            digest = await self._digests.get_by_date(digest_date, conn=conn)
        return digest is not None and digest.is_sent

    async def find_items_between(self, start: datetime, end: datetime) -> list[ContentItem]:
        """Every item created within ``[start, end]``, all kinds."""
        async with self._db.transaction(readonly=True) as conn:
            return await self._content.find_created_between(start, end, conn=conn)

    async def save_summary(self, digest_date: date, outcome: SummaryOutcome) -> Digest:
        """Insert or overwrite the date's digest as draft, or failed on fallback."""
        digest = Digest(
            digest_date=digest_date,
            content=outcome.content,
            post_count=outcome.stats.post_count,
            article_count=outcome.stats.article_count,
            listing_count=outcome.stats.listing_count,
            status=DigestStatus.DRAFT if outcome.success else DigestStatus.FAILED,
        )
        async with self._db.transaction() as conn:
            saved = await self._digests.upsert(digest, conn=conn)
        logger.info("Digest %s saved with id %s (%s)", digest_date, saved.id, saved.status.value)
        return saved

    async def save_failed(self, digest_date: date) -> Digest:
        """Record a failed run with zero counts."""
        digest = Digest(
            digest_date=digest_date,
            content=FAILED_DIGEST_CONTENT,
            status=DigestStatus.FAILED,
        )
        async with self._db.transaction() as conn:
            return await self._digests.upsert(digest, conn=conn)

    async def mark_sent(self, digest_id: int, sent_at: datetime) -> Digest | None:
        """Re-fetch by id and mark sent. None if the row disappeared."""
        async with self._db.transaction() as conn:
            digest = await self._digests.mark_sent_by_id(digest_id, sent_at, conn=conn)
        if digest is None:
            logger.warning("Digest %s not found when marking sent", digest_id)
        return digest
