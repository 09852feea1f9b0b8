"""Persisted content items (posts, articles, listings)."""

from briefing.content.repository import ContentRepository
from briefing.content.schemas import ContentItem, ContentKind, Sentiment, StoredCounters

__all__ = [
    "ContentItem",
    "ContentKind",
    "ContentRepository",
    "Sentiment",
    "StoredCounters",
]
