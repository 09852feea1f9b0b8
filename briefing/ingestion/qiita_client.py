"""
Qiita API v2 client for tag-searched articles.

Each configured tag is one query facet. Date filtering happens twice:
server-side with a ``created:>YYYY-MM-DD`` search qualifier to cut the
payload, and client-side at hour precision by the relevance filter.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Any
from zoneinfo import ZoneInfo

import httpx

from briefing.config.settings import get_settings
from briefing.errors import ExternalServiceError
from briefing.ingestion.base_client import (
    SourceClient,
    raise_for_response,
    wrap_transport_error,
)
from briefing.ingestion.config import QiitaConfig
from briefing.ingestion.schemas import RawItem
from briefing.sources.schemas import Source

logger = logging.getLogger(__name__)

JST = ZoneInfo("Asia/Tokyo")


class QiitaClient(SourceClient):
    """
    Qiita tag-search client.

    Tag searches are on topic by construction, so the relevance filter
    only checks moderation flags and freshness.
    """

    def __init__(
        self,
        config: QiitaConfig | None = None,
        timeout: float | None = None,
    ):
        settings = get_settings()
        super().__init__(
            timeout=timeout or settings.http_timeout_seconds,
            require_keyword=False,
        )
        self._config = config or QiitaConfig()
        self._freshness_hours = settings.freshness_hours
        self.request_delay = self._config.request_delay_seconds

    @property
    def platform(self) -> str:
        return "qiita"

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    @property
    def default_page_size(self) -> int:
        return self._config.per_page

    def queries_for(self, source: Source) -> list[str]:
        tags = source.config.get("tags")
        if isinstance(tags, list):
            return [t for t in tags if isinstance(t, str) and t]
        return list(self._config.tags)

    def page_size_for(self, source: Source) -> int:
        per_page = source.config.get("per_page")
        if isinstance(per_page, int) and per_page > 0:
            return per_page
        return super().page_size_for(source)

    def options_for(self, source: Source) -> dict[str, Any]:
        freshness_days = (self._freshness_hours + 23) // 24
        return {"created_after": datetime.now(JST).date() - timedelta(days=freshness_days)}

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._config.access_token:
            headers["Authorization"] = (
                f"Bearer {self._config.access_token.get_secret_value()}"
            )
        return headers

    async def fetch_page(
        self,
        query: str,
        page: int = 1,
        page_size: int = 20,
        **options: Any,
    ) -> list[dict[str, Any]]:
        """Fetch one page of items tagged ``query``."""
        search = f"tag:{query}"
        created_after: date | None = options.get("created_after")
        if created_after is not None:
            search += f" created:>{created_after.isoformat()}"

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(
                    f"{self._config.base_url}/api/v2/items",
                    params={"query": search, "page": page, "per_page": page_size},
                    headers=self._headers(),
                )
                if response.status_code == 429:
                    logger.warning("Qiita API rate limit exceeded")
                raise_for_response(response, f"Qiita tag:{query}")
                items = response.json()
                if not isinstance(items, list):
                    raise ValueError("expected a JSON array of items")

        except ExternalServiceError:
            raise
        except (httpx.HTTPError, ValueError) as e:
            raise wrap_transport_error(e, f"Qiita tag:{query}") from e

        logger.debug("Fetched %d items from Qiita tag:%s", len(items), query)
        return items

    def normalize(self, raw: dict[str, Any]) -> RawItem | None:
        """Transform a Qiita item payload to a RawItem."""
        item_id = raw.get("id")
        title = raw.get("title")
        if not item_id or not title:
            return None

        created_raw = raw.get("created_at")
        try:
            published_at = datetime.fromisoformat(created_raw)
        except (TypeError, ValueError):
            published_at = None
        if published_at is not None and published_at.tzinfo is None:
            published_at = published_at.replace(tzinfo=JST)

        tags = [t["name"] for t in raw.get("tags") or [] if isinstance(t, dict) and t.get("name")]
        user = raw.get("user") or {}

        return RawItem(
            external_id=str(item_id),
            title=title,
            body=raw.get("body") or "",
            author=user.get("id"),
            origin=tags[0] if tags else None,
            url=raw.get("url"),
            tags=tags,
            like_count=max(int(raw.get("likes_count", 0) or 0), 0),
            comment_count=max(int(raw.get("comments_count", 0) or 0), 0),
            share_count=max(int(raw.get("stocks_count", 0) or 0), 0),
            published_at=published_at,
            published_raw=created_raw,
        )
