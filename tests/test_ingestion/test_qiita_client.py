"""Tests for the Qiita source client."""

from datetime import date, datetime

import httpx
import pytest
import respx

from briefing.errors import TransientExternalError
from briefing.ingestion.config import QiitaConfig
from briefing.ingestion.qiita_client import JST, QiitaClient
from briefing.sources.schemas import Source

ITEMS_URL = "https://qiita.com/api/v2/items"


def _article(**overrides) -> dict:
    article = {
        "id": "q1",
        "title": "外資系企業への転職体験記",
        "body": "本文",
        "url": "https://qiita.com/user/items/q1",
        "created_at": "2024-05-01T09:00:00+09:00",
        "likes_count": 10,
        "comments_count": 2,
        "stocks_count": 5,
        "tags": [{"name": "転職"}, {"name": "キャリア"}],
        "user": {"id": "writer"},
    }
    article.update(overrides)
    return article


@pytest.fixture
def client() -> QiitaClient:
    return QiitaClient(config=QiitaConfig(access_token="secret-token"), timeout=5.0)


class TestConfiguration:
    def test_queries_from_source_tags(self, client, qiita_source):
        assert client.queries_for(qiita_source) == ["転職", "キャリア"]

    def test_queries_fall_back_to_defaults(self, client):
        source = Source(name="Qiita", url="https://qiita.com", category="news_site", platform="qiita")

        assert client.queries_for(source) == ["日本", "就職", "転職", "キャリア"]

    def test_page_size_from_per_page(self, client, qiita_source):
        assert client.page_size_for(qiita_source) == 20

    def test_created_after_is_a_date(self, client, qiita_source):
        created_after = client.options_for(qiita_source)["created_after"]

        assert isinstance(created_after, date)
        assert created_after < datetime.now(JST).date()

    def test_relevance_does_not_require_keywords(self, client, qiita_source):
        assert client.relevance_filter_for(qiita_source)._require_keyword is False


class TestFetchPage:
    @pytest.mark.asyncio
    @respx.mock
    async def test_builds_tag_search(self, client):
        route = respx.get(ITEMS_URL).mock(return_value=httpx.Response(200, json=[_article()]))

        items = await client.fetch_page("転職", 1, 20, created_after=date(2024, 4, 30))

        assert len(items) == 1
        request = route.calls.last.request
        assert request.url.params["query"] == "tag:転職 created:>2024-04-30"
        assert request.url.params["per_page"] == "20"
        assert request.headers["Authorization"] == "Bearer secret-token"

    @pytest.mark.asyncio
    @respx.mock
    async def test_rate_limit_is_transient(self, client):
        respx.get(ITEMS_URL).mock(return_value=httpx.Response(429))

        with pytest.raises(TransientExternalError):
            await client.fetch_page("転職")


class TestNormalize:
    def test_maps_fields(self, client):
        item = client.normalize(_article())

        assert item.external_id == "q1"
        assert item.author == "writer"
        assert item.origin == "転職"
        assert item.tags == ["転職", "キャリア"]
        assert item.share_count == 5
        assert item.published_at.utcoffset().total_seconds() == 9 * 3600

    def test_naive_timestamp_is_jst(self, client):
        item = client.normalize(_article(created_at="2024-05-01T09:00:00"))

        assert item.published_at.tzinfo == JST

    def test_unparsable_timestamp(self, client):
        item = client.normalize(_article(created_at="garbage"))

        assert item.published_at is None
