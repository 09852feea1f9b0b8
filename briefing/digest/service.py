"""
Daily digest service - summarize one day of content and deliver it.

A run:
1. skips when asked to and the date's digest is already ``sent``
2. gathers the day's items (read-only transaction)
3. writes the summary outside any transaction, falling back to a plain
   digest when the LLM is unavailable
4. saves the digest as ``draft`` (or ``failed`` on fallback)
5. optionally sends it, then marks it ``sent`` in a third transaction

If gathering or generation raises, a ``failed`` digest with zero counts is
saved and a generic error message is returned.

A crash after delivery but before the digest is marked sent leaves it
``draft``; the next run for that date regenerates and resends it, so
delivery is at-least-once.
"""

from collections.abc import Callable
from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

import structlog

from briefing.digest.config import DigestConfig
from briefing.digest.notifier import Notifier, format_digest_message
from briefing.digest.persistence import DigestGateway
from briefing.digest.schemas import Digest, DigestResult
from briefing.digest.summarizer import DigestSummarizer
from briefing.llm.client import LLMClient
from briefing.observability.metrics import get_metrics
from briefing.storage.database import Database

logger = structlog.get_logger(__name__)

GENERATION_FAILED_MESSAGE = "Digest generation failed"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DigestService:
    """
    Generates, stores and optionally delivers the digest for one date.

    Usage:
        service = DigestService(db, create_llm_client(), TelegramNotifier())
        result = await service.generate(date(2024, 5, 1), skip_if_exists=True, notify=True)
    """

    def __init__(
        self,
        database: Database,
        llm: LLMClient,
        notifier: Notifier | None = None,
        gateway: DigestGateway | None = None,
        summarizer: DigestSummarizer | None = None,
        config: DigestConfig | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._config = config or DigestConfig()
        self._gateway = gateway or DigestGateway(database)
        self._summarizer = summarizer or DigestSummarizer(llm, self._config)
        self._notifier = notifier
        self._tz = ZoneInfo(self._config.timezone)
        self._clock = clock
        self._metrics = get_metrics()

    def today(self) -> date:
        """Current calendar date in the digest timezone."""
        return self._clock().astimezone(self._tz).date()

    def day_window(self, digest_date: date) -> tuple[datetime, datetime]:
        """Inclusive bounds of ``digest_date`` in the digest timezone."""
        return (
            datetime.combine(digest_date, time.min, tzinfo=self._tz),
            datetime.combine(digest_date, time.max, tzinfo=self._tz),
        )

    async def generate(
        self,
        digest_date: date,
        skip_if_exists: bool = False,
        notify: bool = False,
    ) -> DigestResult:
        """
        Build the digest for ``digest_date``.

        Args:
            digest_date: Calendar date to summarize
            skip_if_exists: Do nothing if that date's digest was already sent
            notify: Deliver the digest and mark it sent on success

        Returns:
            DigestResult; never raises for generation problems
        """
        log = logger.bind(date=digest_date.isoformat(), notify=notify)

        if skip_if_exists and await self._gateway.is_sent(digest_date):
            log.info("Digest already sent, skipping")
            self._metrics.record_digest("skipped")
            return DigestResult.already_sent()

        try:
            start, end = self.day_window(digest_date)
            items = await self._gateway.find_items_between(start, end)
            log.info("Digest items collected", items=len(items))

            outcome = await self._summarizer.summarize(digest_date, items)
            saved = await self._gateway.save_summary(digest_date, outcome)
        except Exception as e:
            log.error("Digest generation failed", error=str(e), error_type=type(e).__name__)
            failed = await self._gateway.save_failed(digest_date)
            self._metrics.record_digest("failed")
            return DigestResult(
                digest=failed,
                failed=True,
                error_message=GENERATION_FAILED_MESSAGE,
            )

        result = DigestResult(digest=saved, stats=outcome.stats)
        if notify:
            result.digest, result.notified = await self._deliver(saved, log)

        self._metrics.record_digest("sent" if result.notified else saved.status.value)
        return result

    async def _deliver(self, digest: Digest, log) -> tuple[Digest, bool]:
        if self._notifier is None:
            log.warning("No notifier configured, digest not sent")
            return digest, False

        message = format_digest_message(digest.digest_date, digest.content, self._config)
        sent = await self._notifier.send(message)
        if not sent:
            log.warning("Digest delivery failed", channel=self._notifier.name)
            return digest, False

        updated = await self._gateway.mark_sent(digest.id, self._clock())
        if updated is None:
            log.warning("Digest sent but could not be marked sent", digest_id=digest.id)
            return digest, True

        log.info("Digest sent", digest_id=digest.id, channel=self._notifier.name)
        return updated, True
