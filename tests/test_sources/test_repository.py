"""Tests for SourcesRepository."""

import json
from datetime import datetime, timezone

import pytest

from briefing.sources.repository import SourcesRepository, _record_to_source
from briefing.sources.schemas import Source


@pytest.fixture
def repo(mock_database) -> SourcesRepository:
    return SourcesRepository(mock_database)


class TestRecordToSource:
    def test_decodes_json_config(self, sample_db_row: dict) -> None:
        source = _record_to_source(sample_db_row)

        assert source.id == 3
        assert source.config == {"subreddit": "japandev", "sort": "new"}
        assert source.enabled is True

    def test_accepts_decoded_config(self, sample_db_row: dict) -> None:
        sample_db_row["config"] = {"tags": ["転職"]}

        assert _record_to_source(sample_db_row).config == {"tags": ["転職"]}

    def test_null_config(self, sample_db_row: dict) -> None:
        sample_db_row["config"] = None

        assert _record_to_source(sample_db_row).config == {}


class TestBulkUpsert:
    @pytest.mark.asyncio
    async def test_empty_list(self, repo: SourcesRepository, mock_database) -> None:
        assert await repo.bulk_upsert([]) == 0
        mock_database.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_single_statement(
        self, repo: SourcesRepository, mock_database, sample_source: Source
    ) -> None:
        other = Source(
            name="Qiita 転職",
            url="https://qiita.com/tags/転職",
            category="news_site",
            platform="qiita",
            config={"tags": ["転職"]},
            enabled=False,
        )

        assert await repo.bulk_upsert([sample_source, other]) == 2

        mock_database.execute.assert_awaited_once()
        args = mock_database.execute.await_args.args
        assert args[1] == ["r/japandev", "Qiita 転職"]
        assert [json.loads(c) for c in args[5]] == [
            {"subreddit": "japandev", "sort": "new"},
            {"tags": ["転職"]},
        ]
        assert args[6] == [True, False]


class TestQueries:
    @pytest.mark.asyncio
    async def test_get_by_id_not_found(self, repo: SourcesRepository) -> None:
        assert await repo.get_by_id(42) is None

    @pytest.mark.asyncio
    async def test_get_by_id(self, repo: SourcesRepository, mock_database, sample_db_row) -> None:
        mock_database.fetchrow.return_value = sample_db_row

        source = await repo.get_by_id(3)

        assert source is not None and source.name == "r/japandev"

    @pytest.mark.asyncio
    async def test_list_enabled_without_filters(self, repo: SourcesRepository, mock_database) -> None:
        await repo.list_enabled()

        query = mock_database.fetch.await_args.args[0]
        assert "enabled = TRUE" in query
        assert "category" not in query
        assert mock_database.fetch.await_args.args[1:] == ()

    @pytest.mark.asyncio
    async def test_list_enabled_with_filters(
        self, repo: SourcesRepository, mock_database, sample_db_row
    ) -> None:
        mock_database.fetch.return_value = [sample_db_row]

        result = await repo.list_enabled(category="community", platform="reddit")

        args = mock_database.fetch.await_args.args
        assert "category = $1" in args[0]
        assert "platform = $2" in args[0]
        assert args[1:] == ("community", "reddit")
        assert [s.id for s in result] == [3]


class TestWrites:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("status,expected", [("UPDATE 1", True), ("UPDATE 0", False)])
    async def test_set_enabled(self, repo: SourcesRepository, mock_database, status, expected) -> None:
        mock_database.execute.return_value = status

        assert await repo.set_enabled(3, False) is expected
        assert mock_database.execute.await_args.args[1:] == (3, False)

    @pytest.mark.asyncio
    async def test_touch_last_crawled_uses_given_connection(
        self, repo: SourcesRepository, mock_database, mock_conn
    ) -> None:
        crawled_at = datetime(2024, 5, 1, tzinfo=timezone.utc)

        await repo.touch_last_crawled(3, crawled_at, conn=mock_conn)

        assert mock_conn.execute.await_args.args[1:] == (3, crawled_at)
        mock_database.execute.assert_not_awaited()
