"""Tests for the ingestion gateway."""

from unittest.mock import AsyncMock

import pytest

from briefing.content.repository import ContentRepository
from briefing.content.schemas import StoredCounters
from briefing.crawl.persistence import IngestionGateway
from briefing.ingestion.schemas import RawItem
from briefing.sources.repository import SourcesRepository


@pytest.fixture
def content_repository() -> AsyncMock:
    repo = AsyncMock(spec=ContentRepository)
    repo.find_existing.return_value = {}
    repo.insert_batch.side_effect = lambda items, conn=None: len(items)
    repo.update_counters_batch.side_effect = lambda updates, conn=None: len(updates)
    return repo


@pytest.fixture
def sources_repo() -> AsyncMock:
    return AsyncMock(spec=SourcesRepository)


@pytest.fixture
def ingestion_gateway(mock_database, content_repository, sources_repo, now) -> IngestionGateway:
    return IngestionGateway(
        mock_database,
        content_repository=content_repository,
        sources_repository=sources_repo,
        clock=lambda: now,
    )


class TestUpsert:
    """Tests for IngestionGateway.upsert."""

    @pytest.mark.asyncio
    async def test_empty_batch_only_touches_source(
        self, ingestion_gateway, community_source, content_repository, sources_repo, mock_conn, now
    ):
        result = await ingestion_gateway.upsert(community_source, [])

        assert result == (0, 0)
        content_repository.find_existing.assert_not_awaited()
        content_repository.insert_batch.assert_not_awaited()
        sources_repo.touch_last_crawled.assert_awaited_once_with(7, now, conn=mock_conn)

    @pytest.mark.asyncio
    async def test_new_changed_and_unchanged_items(
        self, ingestion_gateway, community_source, content_repository, sources_repo, mock_database
    ):
        content_repository.find_existing.return_value = {
            "b": StoredCounters(id=11, like_count=3, comment_count=0),
            "c": StoredCounters(id=12, like_count=5, comment_count=2),
        }
        items = [
            RawItem(external_id="a", title="new one"),
            RawItem(external_id="b", title="more likes", like_count=8),
            RawItem(external_id="c", title="same", like_count=5, comment_count=2),
        ]

        result = await ingestion_gateway.upsert(community_source, items)

        assert result == (1, 1)
        inserted = content_repository.insert_batch.await_args.args[0]
        assert [i.external_id for i in inserted] == ["a"]
        assert inserted[0].kind == "post"
        assert inserted[0].source_id == 7
        updates = content_repository.update_counters_batch.await_args.args[0]
        assert updates == [StoredCounters(id=11, like_count=8, comment_count=0, share_count=0)]
        sources_repo.touch_last_crawled.assert_awaited_once()
        assert mock_database.transaction_calls == [False]

    @pytest.mark.asyncio
    async def test_kind_follows_source_category(
        self, ingestion_gateway, community_source, content_repository
    ):
        community_source.category = "job_site"

        await ingestion_gateway.upsert(community_source, [RawItem(external_id="a", title="Engineer")])

        assert content_repository.insert_batch.await_args.args[0][0].kind == "listing"

    @pytest.mark.asyncio
    async def test_language_is_detected_on_insert(
        self, ingestion_gateway, community_source, content_repository
    ):
        await ingestion_gateway.upsert(
            community_source, [RawItem(external_id="a", title="東京で転職活動を始めました")]
        )

        assert content_repository.insert_batch.await_args.args[0][0].language == "ja"

    @pytest.mark.asyncio
    async def test_rerun_with_same_data_changes_nothing(
        self, ingestion_gateway, community_source, content_repository
    ):
        content_repository.find_existing.return_value = {
            "a": StoredCounters(id=10, like_count=1, comment_count=1),
        }

        result = await ingestion_gateway.upsert(
            community_source,
            [RawItem(external_id="a", title="x", like_count=1, comment_count=1)],
        )

        assert result == (0, 0)
        assert content_repository.insert_batch.await_args.args[0] == []
        assert content_repository.update_counters_batch.await_args.args[0] == []

    @pytest.mark.asyncio
    async def test_insert_conflicts_are_reported_not_raised(
        self, ingestion_gateway, community_source, content_repository
    ):
        content_repository.insert_batch.side_effect = None
        content_repository.insert_batch.return_value = 1

        result = await ingestion_gateway.upsert(
            community_source,
            [RawItem(external_id="a", title="x"), RawItem(external_id="b", title="y")],
        )

        assert result == (1, 0)
