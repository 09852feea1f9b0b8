"""Shared fixtures for crawl tests."""

from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import AsyncMock

import pytest

from briefing.crawl.repository import CrawlHistoryRepository
from briefing.ingestion.base_client import SourceClient
from briefing.ingestion.schemas import RawItem
from briefing.sources.repository import SourcesRepository
from briefing.sources.schemas import Source

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class FakeClient(SourceClient):
    """In-memory source client.

    ``pages`` maps each query to a list of outcomes, one per call; the last
    outcome repeats. An outcome is a list of raw payloads or an exception.
    """

    def __init__(
        self,
        pages: dict[str, Any],
        queries: list[str] | None = None,
        enabled: bool = True,
    ) -> None:
        super().__init__(timeout=1.0, require_keyword=True)
        self._pages = pages
        self._queries = queries or list(pages)
        self._enabled = enabled
        self.fetch_calls: list[str] = []

    @property
    def platform(self) -> str:
        return "fake"

    @property
    def enabled(self) -> bool:
        return self._enabled

    def queries_for(self, source: Source) -> list[str]:
        return list(self._queries)

    async def fetch_page(self, query, page=1, page_size=50, **options):
        self.fetch_calls.append(query)
        outcomes = self._pages[query]
        outcome = outcomes.pop(0) if len(outcomes) > 1 else outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def normalize(self, raw: dict[str, Any]) -> RawItem | None:
        if raw.get("skip"):
            return None
        if raw.get("broken"):
            raise ValueError("broken payload")
        return RawItem(
            external_id=raw["id"],
            title=raw.get("title", ""),
            body=raw.get("body", ""),
            origin=raw.get("origin"),
            like_count=raw.get("likes", 0),
            published_at=NOW - timedelta(hours=raw["hours_old"]) if "hours_old" in raw else None,
        )


def raw(id: str, title: str = "career talk", hours_old: float = 1, **extra) -> dict:
    return {"id": id, "title": title, "hours_old": hours_old, **extra}


@pytest.fixture
def community_source() -> Source:
    return Source(
        id=7,
        name="Community-X",
        url="https://example.com/community-x",
        category="community",
        platform="fake",
        config={"keywords": ["job", "career"], "allowed_origins": ["trusted"]},
    )


@pytest.fixture
def history_repository() -> AsyncMock:
    repo = AsyncMock(spec=CrawlHistoryRepository)

    async def insert(history):
        history.id = 100
        return history

    repo.insert.side_effect = insert
    repo.save_result.side_effect = lambda history: history
    return repo


@pytest.fixture
def sources_repository() -> AsyncMock:
    return AsyncMock(spec=SourcesRepository)


@pytest.fixture
def gateway() -> AsyncMock:
    gw = AsyncMock()
    gw.upsert.side_effect = lambda source, items, kind=None: (len(items), 0)
    return gw


@pytest.fixture
def make_client():
    """Factory for FakeClient."""
    return FakeClient


@pytest.fixture
def make_raw():
    """Factory for raw payloads understood by FakeClient.normalize."""
    return raw


@pytest.fixture
def now() -> datetime:
    return NOW
