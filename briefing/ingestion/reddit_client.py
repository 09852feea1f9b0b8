"""
Reddit API client for community posts.

Uses application-only OAuth (client credentials) against oauth.reddit.com.
Handles:
- Bearer token caching with early refresh
- Single-flight token refresh shared by concurrent callers
- Token invalidation on HTTP 401
- Subreddit resolution from source config or source URL
"""

import asyncio
import logging
import re
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import httpx

from briefing.config.settings import get_settings
from briefing.errors import ExternalServiceError, PermanentExternalError
from briefing.ingestion.base_client import (
    SourceClient,
    raise_for_response,
    wrap_transport_error,
)
from briefing.ingestion.config import RedditConfig
from briefing.ingestion.schemas import RawItem
from briefing.sources.schemas import Source

logger = logging.getLogger(__name__)

SUBREDDIT_URL_PATTERN = re.compile(r"reddit\.com/r/([a-zA-Z0-9_]+)")


@dataclass(frozen=True)
class _CachedToken:
    token: str
    expires_at: float  # time.monotonic() deadline


class RedditClient(SourceClient):
    """
    Reddit API client fetching subreddit listings.

    Rate Limits:
        - 100 requests per minute (OAuth)
        - 100 posts per request

    Listings are cursor-paginated, so only page 1 is addressable by number.
    """

    def __init__(
        self,
        config: RedditConfig | None = None,
        timeout: float | None = None,
    ):
        """
        Initialize Reddit client.

        Args:
            config: Reddit settings (defaults to REDDIT_* environment)
            timeout: Per-request timeout in seconds
        """
        settings = get_settings()
        super().__init__(
            timeout=timeout or settings.http_timeout_seconds,
            require_keyword=True,
        )
        self._config = config or RedditConfig()
        self.request_delay = self._config.request_delay_seconds

        self._token: _CachedToken | None = None
        self._token_lock = asyncio.Lock()

        if not self._config.configured:
            logger.warning(
                "Reddit API credentials not configured. "
                "Client will not be able to fetch data."
            )

    @property
    def platform(self) -> str:
        return "reddit"

    @property
    def enabled(self) -> bool:
        return self._config.configured

    @property
    def default_page_size(self) -> int:
        return self._config.default_limit

    def queries_for(self, source: Source) -> list[str]:
        subreddit = source.config.get("subreddit") or extract_subreddit(source.url)
        if not subreddit:
            raise ValueError(f"Cannot determine subreddit for source {source.name!r}")
        return [subreddit]

    def options_for(self, source: Source) -> dict[str, Any]:
        return {"sort": source.config.get("sort") or self._config.default_sort}

    # ── Auth ────────────────────────────────────────────────────

    def _cached_token(self) -> str | None:
        cached = self._token
        if cached is not None and time.monotonic() < cached.expires_at:
            return cached.token
        return None

    async def _get_access_token(self, client: httpx.AsyncClient) -> str:
        """
        Get an OAuth access token, reusing the cached one while valid.

        Concurrent callers that find the cache empty wait on one refresh
        instead of each requesting a token.
        """
        token = self._cached_token()
        if token:
            return token

        async with self._token_lock:
            token = self._cached_token()
            if token:
                return token

            if not self._config.configured:
                raise PermanentExternalError("Reddit client credentials are not configured")

            logger.debug("Requesting new Reddit access token")
            response = await client.post(
                f"{self._config.auth_base_url}/api/v1/access_token",
                auth=(
                    self._config.client_id,
                    self._config.client_secret.get_secret_value(),
                ),
                data={"grant_type": "client_credentials"},
                headers={"User-Agent": self._config.user_agent},
            )
            raise_for_response(response, "Reddit auth")

            data = response.json()
            token = data.get("access_token")
            if not token:
                raise PermanentExternalError("Reddit auth response has no access_token")

            expires_in = int(data.get("expires_in", 3600))
            lifetime = max(expires_in - self._config.token_expiry_margin_seconds, 0)
            self._token = _CachedToken(token=token, expires_at=time.monotonic() + lifetime)
            logger.info("Reddit access token acquired, expires in %ds", expires_in)
            return token

    def invalidate_token(self) -> None:
        """Drop the cached token so the next request re-authenticates."""
        self._token = None

    # ── Fetch ───────────────────────────────────────────────────

    async def fetch_page(
        self,
        query: str,
        page: int = 1,
        page_size: int = 50,
        **options: Any,
    ) -> list[dict[str, Any]]:
        """Fetch one listing page of ``r/{query}``."""
        if page > 1:
            logger.debug("Reddit listings have no numbered page %d for r/%s", page, query)
            return []

        sort = options.get("sort") or self._config.default_sort
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                token = await self._get_access_token(client)
                response = await client.get(
                    f"{self._config.api_base_url}/r/{query}/{sort}",
                    params={"limit": page_size, "raw_json": 1},
                    headers={
                        "Authorization": f"Bearer {token}",
                        "User-Agent": self._config.user_agent,
                    },
                )

                if response.status_code == 401:
                    self.invalidate_token()
                elif response.status_code == 404:
                    logger.warning("Subreddit not found: r/%s", query)
                elif response.status_code == 429:
                    logger.warning("Reddit rate limit hit")
                raise_for_response(response, f"Reddit r/{query}")

                children = response.json()["data"]["children"]

        except ExternalServiceError:
            raise
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            raise wrap_transport_error(e, f"Reddit r/{query}") from e

        posts = [child.get("data", {}) for child in children]
        logger.debug("Fetched %d posts from r/%s", len(posts), query)
        return posts

    def normalize(self, raw: dict[str, Any]) -> RawItem | None:
        """Transform a Reddit post payload to a RawItem."""
        post_id = raw.get("id")
        title = raw.get("title")
        if not post_id or not title:
            return None

        created = raw.get("created_utc")
        try:
            published_at = datetime.fromtimestamp(float(created), tz=timezone.utc)
        except (TypeError, ValueError, OverflowError, OSError):
            published_at = None

        permalink = raw.get("permalink", "")
        flair = raw.get("link_flair_text")

        return RawItem(
            external_id=str(post_id),
            title=title,
            body=raw.get("selftext") or "",
            author=raw.get("author"),
            origin=raw.get("subreddit"),
            url=f"https://www.reddit.com{permalink}" if permalink else raw.get("url"),
            tags=[flair] if flair else [],
            like_count=max(int(raw.get("ups", raw.get("score", 0)) or 0), 0),
            comment_count=max(int(raw.get("num_comments", 0) or 0), 0),
            share_count=max(int(raw.get("num_crossposts", 0) or 0), 0),
            published_at=published_at,
            published_raw=None if created is None else str(created),
            removed=bool(raw.get("removed") or raw.get("removed_by_category")),
            locked=bool(raw.get("locked")),
            pinned=bool(raw.get("stickied")),
        )


def extract_subreddit(url: str | None) -> str | None:
    """Pull the subreddit name out of a reddit.com URL."""
    if not url:
        return None
    match = SUBREDDIT_URL_PATTERN.search(url)
    return match.group(1) if match else None
