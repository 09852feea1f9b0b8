"""
Two-phase enrichment orchestration shared by every enrichment kind.

A batch:
1. fetches up to ``batch_size`` candidates in a read-only transaction
2. enriches each one outside any transaction, in fetch order
3. writes the successfully enriched subset back in a new transaction

A record whose enrichment fails is counted and left untouched, so the
candidate predicate picks it up again on a later run.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass

import structlog

from briefing.content.schemas import ContentItem
from briefing.enrichment.config import EnrichmentConfig
from briefing.enrichment.persistence import EnrichmentGateway
from briefing.llm.client import LLMClient
from briefing.observability.metrics import get_metrics

logger = structlog.get_logger(__name__)


@dataclass
class EnrichmentBatchResult:
    """Outcome of one enrichment batch."""

    processed: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.processed + self.failed


class EnrichmentOrchestrator(ABC):
    """Base class for batch enrichment jobs."""

    #: Short name used in logs and metrics
    task: str = "enrichment"

    def __init__(
        self,
        gateway: EnrichmentGateway,
        llm: LLMClient,
        config: EnrichmentConfig | None = None,
    ) -> None:
        self._gateway = gateway
        self._llm = llm
        self._config = config or EnrichmentConfig()
        self._metrics = get_metrics()

    @property
    @abstractmethod
    def default_batch_size(self) -> int:
        """Batch size used when none is given."""

    @abstractmethod
    async def fetch_candidates(self, batch_size: int) -> list[ContentItem]:
        """Read phase; must run in its own read-only transaction."""

    @abstractmethod
    async def enrich(self, item: ContentItem) -> bool:
        """Enrich ``item`` in place. Returns False if it could not be enriched."""

    async def process_pending(self, batch_size: int | None = None) -> EnrichmentBatchResult:
        """Run one batch and return the processed/failed counts."""
        batch_size = batch_size or self.default_batch_size
        log = logger.bind(task=self.task, batch_size=batch_size)
        started = time.monotonic()

        candidates = await self.fetch_candidates(batch_size)
        if not candidates:
            log.debug("No pending records")
            return EnrichmentBatchResult()

        result = EnrichmentBatchResult()
        to_save: list[ContentItem] = []
        for item in candidates:
            try:
                ok = await self.enrich(item)
            except Exception as e:
                log.warning("Enrichment raised", item_id=item.id, error=str(e))
                ok = False

            if ok:
                to_save.append(item)
                result.processed += 1
            else:
                result.failed += 1

        await self._gateway.save_all(to_save)

        log.info(
            "Enrichment batch finished",
            candidates=len(candidates),
            processed=result.processed,
            failed=result.failed,
            elapsed_seconds=round(time.monotonic() - started, 2),
        )
        self._metrics.record_enrichment(self.task, result.processed, result.failed)
        return result
