"""Tests for the Reddit source client."""

import asyncio

import httpx
import pytest
import respx

from briefing.errors import PermanentExternalError, TransientExternalError
from briefing.ingestion.config import RedditConfig
from briefing.ingestion.reddit_client import RedditClient, extract_subreddit
from briefing.sources.schemas import Source

TOKEN_URL = "https://www.reddit.com/api/v1/access_token"
LISTING_URL = "https://oauth.reddit.com/r/japandev/new"


def _listing(*posts: dict) -> dict:
    return {"data": {"children": [{"kind": "t3", "data": p} for p in posts]}}


def _post(**overrides) -> dict:
    post = {
        "id": "abc123",
        "title": "Landed a developer job in Osaka",
        "selftext": "Some details",
        "author": "someone",
        "subreddit": "japandev",
        "permalink": "/r/japandev/comments/abc123/landed/",
        "created_utc": 1714550400.0,
        "ups": 42,
        "num_comments": 7,
        "num_crossposts": 1,
    }
    post.update(overrides)
    return post


@pytest.fixture
def client() -> RedditClient:
    return RedditClient(
        config=RedditConfig(client_id="id", client_secret="secret"),
        timeout=5.0,
    )


class TestConfiguration:
    def test_enabled_requires_credentials(self):
        assert RedditClient(config=RedditConfig(client_id=None, client_secret=None)).enabled is False

    def test_queries_from_config(self, client, reddit_source):
        assert client.queries_for(reddit_source) == ["japandev"]

    def test_queries_fall_back_to_url(self, client):
        source = Source(
            name="r/japanlife",
            url="https://www.reddit.com/r/japanlife/",
            category="community",
            platform="reddit",
        )
        assert client.queries_for(source) == ["japanlife"]

    def test_missing_subreddit_raises(self, client):
        source = Source(name="bad", url="https://example.com", category="community", platform="reddit")

        with pytest.raises(ValueError):
            client.queries_for(source)

    def test_page_size_and_sort_from_config(self, client, reddit_source):
        assert client.page_size_for(reddit_source) == 25
        assert client.options_for(reddit_source) == {"sort": "new"}

    def test_extract_subreddit(self):
        assert extract_subreddit("https://old.reddit.com/r/movingtojapan/top") == "movingtojapan"
        assert extract_subreddit(None) is None


class TestFetchPage:
    """Tests for listing fetches and the token cache."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_fetches_listing_with_bearer_token(self, client):
        token_route = respx.post(TOKEN_URL).mock(
            return_value=httpx.Response(200, json={"access_token": "tok", "expires_in": 3600})
        )
        listing_route = respx.get(LISTING_URL).mock(
            return_value=httpx.Response(200, json=_listing(_post(), _post(id="def456")))
        )

        posts = await client.fetch_page("japandev", 1, 25, sort="new")

        assert [p["id"] for p in posts] == ["abc123", "def456"]
        assert token_route.call_count == 1
        request = listing_route.calls.last.request
        assert request.headers["Authorization"] == "Bearer tok"
        assert request.url.params["limit"] == "25"

    @pytest.mark.asyncio
    @respx.mock
    async def test_token_is_reused(self, client):
        token_route = respx.post(TOKEN_URL).mock(
            return_value=httpx.Response(200, json={"access_token": "tok", "expires_in": 3600})
        )
        respx.get(LISTING_URL).mock(return_value=httpx.Response(200, json=_listing()))

        await client.fetch_page("japandev")
        await client.fetch_page("japandev")

        assert token_route.call_count == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_concurrent_callers_share_one_refresh(self, client):
        token_route = respx.post(TOKEN_URL).mock(
            return_value=httpx.Response(200, json={"access_token": "tok", "expires_in": 3600})
        )
        respx.get(LISTING_URL).mock(return_value=httpx.Response(200, json=_listing(_post())))

        results = await asyncio.gather(*(client.fetch_page("japandev") for _ in range(5)))

        assert all(len(r) == 1 for r in results)
        assert token_route.call_count == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_unauthorized_invalidates_token(self, client):
        token_route = respx.post(TOKEN_URL).mock(
            return_value=httpx.Response(200, json={"access_token": "tok", "expires_in": 3600})
        )
        respx.get(LISTING_URL).mock(
            side_effect=[
                httpx.Response(401, json={"message": "Unauthorized"}),
                httpx.Response(200, json=_listing()),
            ]
        )

        with pytest.raises(PermanentExternalError) as exc_info:
            await client.fetch_page("japandev")
        assert exc_info.value.status_code == 401

        await client.fetch_page("japandev")
        assert token_route.call_count == 2

    @pytest.mark.asyncio
    @respx.mock
    async def test_server_error_is_transient(self, client):
        respx.post(TOKEN_URL).mock(
            return_value=httpx.Response(200, json={"access_token": "tok", "expires_in": 3600})
        )
        respx.get(LISTING_URL).mock(return_value=httpx.Response(503))

        with pytest.raises(TransientExternalError):
            await client.fetch_page("japandev")

    @pytest.mark.asyncio
    @respx.mock
    async def test_timeout_is_transient(self, client):
        respx.post(TOKEN_URL).mock(
            return_value=httpx.Response(200, json={"access_token": "tok", "expires_in": 3600})
        )
        respx.get(LISTING_URL).mock(side_effect=httpx.ReadTimeout("slow"))

        with pytest.raises(TransientExternalError):
            await client.fetch_page("japandev")

    @pytest.mark.asyncio
    @respx.mock
    async def test_malformed_payload_is_permanent(self, client):
        respx.post(TOKEN_URL).mock(
            return_value=httpx.Response(200, json={"access_token": "tok", "expires_in": 3600})
        )
        respx.get(LISTING_URL).mock(return_value=httpx.Response(200, json={"unexpected": True}))

        with pytest.raises(PermanentExternalError):
            await client.fetch_page("japandev")

    @pytest.mark.asyncio
    async def test_later_pages_are_empty(self, client):
        assert await client.fetch_page("japandev", page=2) == []


class TestNormalize:
    def test_maps_fields(self, client):
        item = client.normalize(_post(link_flair_text="Job"))

        assert item.external_id == "abc123"
        assert item.origin == "japandev"
        assert item.url == "https://www.reddit.com/r/japandev/comments/abc123/landed/"
        assert item.tags == ["Job"]
        assert (item.like_count, item.comment_count, item.share_count) == (42, 7, 1)
        assert item.published_at is not None
        assert item.published_at.tzinfo is not None

    def test_flags(self, client):
        item = client.normalize(_post(removed_by_category="moderator", locked=True, stickied=True))

        assert item.removed and item.locked and item.pinned

    def test_bad_timestamp_is_none(self, client):
        item = client.normalize(_post(created_utc="yesterday"))

        assert item.published_at is None
        assert item.published_raw == "yesterday"

    def test_missing_id_is_skipped(self, client):
        assert client.normalize(_post(id=None)) is None
