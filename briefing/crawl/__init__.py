"""Crawl runs: fetch, filter, dedupe and persist source content."""

from briefing.crawl.persistence import IngestionGateway
from briefing.crawl.repository import CrawlHistoryRepository
from briefing.crawl.schemas import CrawlHistory, CrawlStatus
from briefing.crawl.service import CrawlService, dedupe_latest

__all__ = [
    "CrawlHistory",
    "CrawlHistoryRepository",
    "CrawlService",
    "CrawlStatus",
    "IngestionGateway",
    "dedupe_latest",
]
