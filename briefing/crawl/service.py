"""
Crawl service - runs one crawl per configured source.

A run:
1. records a ``running`` history row
2. fetches one page per query facet through the source client
   (no transaction open, transient failures retried)
3. deduplicates by external id, keeping the later payload
4. applies the source's relevance filter
5. hands the survivors to the ingestion gateway (one transaction)
6. records the terminal history (success, partial or failed)

``run_source`` never raises; failures end up in the history row.
Manual triggers are mutually exclusive per source within this process
and raise CrawlAlreadyRunningError when a run is already in flight.
"""

import asyncio
import time
from collections import Counter
from collections.abc import Awaitable, Callable, Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Any

import structlog

from briefing.config.settings import get_settings
from briefing.crawl.config import CrawlConfig
from briefing.crawl.persistence import IngestionGateway
from briefing.crawl.repository import CrawlHistoryRepository
from briefing.crawl.schemas import CrawlHistory, CrawlStatus
from briefing.errors import CrawlAlreadyRunningError, SourceNotFoundError
from briefing.ingestion.base_client import SourceClient
from briefing.ingestion.schemas import RawItem
from briefing.observability.metrics import get_metrics
from briefing.resilience.retry import retry_async
from briefing.sources.repository import SourcesRepository
from briefing.sources.schemas import Source
from briefing.storage.database import Database

logger = structlog.get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def dedupe_latest(items: Iterable[RawItem]) -> list[RawItem]:
    """Collapse items sharing an external id.

    The first occurrence keeps its position; the last occurrence's data
    wins.
    """
    latest: dict[str, RawItem] = {}
    for item in items:
        latest[item.external_id] = item
    return list(latest.values())


class CrawlService:
    """
    Orchestrates crawl runs across sources and platforms.

    Usage:
        service = CrawlService(db, clients={"reddit": RedditClient()})
        histories = await service.run_all_sources(category="community")
    """

    def __init__(
        self,
        database: Database,
        clients: dict[str, SourceClient],
        gateway: IngestionGateway | None = None,
        history_repository: CrawlHistoryRepository | None = None,
        sources_repository: SourcesRepository | None = None,
        config: CrawlConfig | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], datetime] = _utc_now,
    ):
        """
        Initialize crawl service.

        Args:
            database: Connected database
            clients: Source clients keyed by platform
            gateway: Ingestion gateway (or create from database)
            history_repository: Crawl history store (or create from database)
            sources_repository: Source registry (or create from database)
            config: Fetch retry settings
            sleep: Awaitable sleep used for request spacing and retries
            clock: Current UTC time, used for the freshness cutoff
        """
        settings = get_settings()

        self._clients = clients
        self._gateway = gateway or IngestionGateway(database)
        self._histories = history_repository or CrawlHistoryRepository(database)
        self._sources = sources_repository or SourcesRepository(database)
        self._config = config or CrawlConfig()
        self._freshness = timedelta(hours=settings.freshness_hours)
        self._sleep = sleep
        self._clock = clock
        self._metrics = get_metrics()

        # Runs currently in flight in this process
        self._active_sources: Counter[int] = Counter()
        self._active_keys: set[str] = set()

    # ── Single source ───────────────────────────────────────────

    async def run_source(self, source: Source) -> CrawlHistory:
        """Crawl one source and return its terminal history."""
        self._active_sources[source.id] += 1
        try:
            return await self._run_source(source)
        finally:
            self._active_sources[source.id] -= 1
            if self._active_sources[source.id] <= 0:
                del self._active_sources[source.id]

    async def _run_source(self, source: Source) -> CrawlHistory:
        log = logger.bind(source_id=source.id, source=source.name, platform=source.platform)
        history = CrawlHistory.start(source.id)
        started = time.monotonic()

        try:
            await self._histories.insert(history)

            client = self._clients.get(source.platform)
            if client is None:
                raise ValueError(f"No client for platform {source.platform!r}")
            if not client.enabled:
                raise ValueError(f"{source.platform} client is not configured")

            fetched, failures, facet_count = await self._fetch_all(client, source)
            if facet_count and len(failures) == facet_count:
                raise RuntimeError("All queries failed: " + "; ".join(failures))

            unique = dedupe_latest(fetched)
            cutoff = self._clock() - self._freshness
            relevant = client.relevance_filter_for(source).apply(unique, cutoff)

            inserted, updated = await self._gateway.upsert(source, relevant)

            if failures:
                history.partial(
                    items_found=len(relevant),
                    items_saved=inserted,
                    items_updated=updated,
                    error_message="Some queries failed: " + "; ".join(failures),
                )
            else:
                history.complete(
                    items_found=len(relevant),
                    items_saved=inserted,
                    items_updated=updated,
                )

            log.info(
                "Crawl completed",
                status=history.status.value,
                fetched=len(fetched),
                found=len(relevant),
                saved=inserted,
                updated=updated,
            )

        except Exception as e:
            log.error("Crawl failed", error=str(e), error_type=type(e).__name__)
            history.fail(str(e) or type(e).__name__)

        try:
            await self._histories.save_result(history)
        except Exception as e:
            log.error("Failed to record crawl history", error=str(e))

        self._metrics.record_crawl(
            source.platform,
            history.status.value,
            saved=history.items_saved,
            updated=history.items_updated,
            latency=time.monotonic() - started,
        )
        return history

    async def _fetch_all(
        self,
        client: SourceClient,
        source: Source,
    ) -> tuple[list[RawItem], list[str], int]:
        """Fetch and normalize one page per facet.

        Returns (items, failure descriptions, facet count).
        """
        queries = client.queries_for(source)
        page_size = client.page_size_for(source)
        options = client.options_for(source)

        items: list[RawItem] = []
        failures: list[str] = []

        for index, query in enumerate(queries):
            if index and client.request_delay:
                await self._sleep(client.request_delay)

            try:
                raws = await retry_async(
                    lambda q=query: client.fetch_page(q, 1, page_size, **options),
                    max_retries=self._config.fetch_max_retries,
                    initial_delay=self._config.fetch_retry_initial_delay,
                    sleep=self._sleep,
                )
            except Exception as e:
                logger.warning(
                    "Query failed, skipping",
                    source_id=source.id,
                    query=query,
                    error=str(e),
                )
                failures.append(f"{query}: {e}")
                continue

            items.extend(self._normalize_all(client, raws))

        return items, failures, len(queries)

    @staticmethod
    def _normalize_all(client: SourceClient, raws: list[dict[str, Any]]) -> Iterator[RawItem]:
        for raw in raws:
            try:
                item = client.normalize(raw)
            except ValueError as e:
                logger.debug("Skipping malformed item", platform=client.platform, error=str(e))
                continue
            if item is not None:
                yield item

    # ── Batches ─────────────────────────────────────────────────

    async def run_all_sources(
        self,
        category: str | None = None,
        platform: str | None = None,
        skip_running: bool = False,
    ) -> list[CrawlHistory]:
        """Crawl every enabled source, one after another.

        A failing source never stops the remaining ones. With
        ``skip_running``, sources that already have a run in flight in
        this process are left out.
        """
        sources = await self._sources.list_enabled(category=category, platform=platform)
        if not sources:
            logger.info("No enabled sources", category=category, platform=platform)
            return []

        histories: list[CrawlHistory] = []
        for source in sources:
            client = self._clients.get(source.platform)
            if client is None or not client.enabled:
                logger.warning(
                    "Skipping source, client unavailable",
                    source_id=source.id,
                    platform=source.platform,
                )
                continue
            if skip_running and self.is_running(source.id):
                logger.warning("Skipping source, crawl already in progress", source_id=source.id)
                continue
            histories.append(await self.run_source(source))

        logger.info(
            "Crawl batch finished",
            category=category,
            platform=platform,
            runs=len(histories),
            failed=sum(1 for h in histories if h.status == CrawlStatus.FAILED),
        )
        return histories

    # ── Manual triggers ─────────────────────────────────────────

    def is_running(self, source_id: int) -> bool:
        return self._active_sources.get(source_id, 0) > 0

    async def trigger_source(self, source_id: int) -> CrawlHistory:
        """Crawl one source on demand.

        Raises:
            SourceNotFoundError: Unknown source id
            CrawlAlreadyRunningError: A run for this source is in flight
        """
        source = await self._sources.get_by_id(source_id)
        if source is None:
            raise SourceNotFoundError(f"Source {source_id} not found")

        # No await between this check and run_source registering the source
        if self.is_running(source_id):
            raise CrawlAlreadyRunningError(f"source {source_id}")
        return await self.run_source(source)

    async def trigger_platform(self, platform: str) -> list[CrawlHistory]:
        """Crawl every enabled source of a platform on demand.

        Sources already being crawled by another trigger are skipped.

        Raises:
            CrawlAlreadyRunningError: A manual run for this platform is in flight
        """
        with self._exclusive(f"platform {platform}"):
            return await self.run_all_sources(platform=platform, skip_running=True)

    @contextmanager
    def _exclusive(self, key: str) -> Iterator[None]:
        if key in self._active_keys:
            raise CrawlAlreadyRunningError(key)
        self._active_keys.add(key)
        try:
            yield
        finally:
            self._active_keys.discard(key)
