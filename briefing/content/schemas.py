"""Data models for persisted content items."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class ContentKind(str, Enum):
    """Kind of content item; follows from the source category."""

    POST = "post"
    ARTICLE = "article"
    LISTING = "listing"


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


# Source category -> kind of item it yields
KIND_BY_CATEGORY: dict[str, ContentKind] = {
    "community": ContentKind.POST,
    "news_site": ContentKind.ARTICLE,
    "job_site": ContentKind.LISTING,
}


@dataclass
class ContentItem:
    """
    One post, article or listing as stored in ``content_items``.

    Instances handed out by the repository are detached copies: mutating
    one changes nothing until it is passed back to ``save_all``.
    ``(source_id, external_id)`` identifies the item across crawls.
    """

    source_id: int
    kind: str
    external_id: str
    title: str
    body: str = ""
    author: str | None = None
    url: str | None = None
    tags: list[str] = field(default_factory=list)
    like_count: int = 0
    comment_count: int = 0
    share_count: int = 0
    language: str | None = None
    title_translated: str | None = None
    body_translated: str | None = None
    translated_at: datetime | None = None
    sentiment: str | None = None
    published_at: datetime | None = None
    id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def display_title(self) -> str:
        """Translated title when available, original otherwise."""
        return self.title_translated or self.title


@dataclass
class StoredCounters:
    """Engagement counters of an already-persisted item, keyed by external id."""

    id: int
    like_count: int
    comment_count: int
    share_count: int = 0
