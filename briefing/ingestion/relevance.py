"""
Relevance filter deciding which fetched items are worth storing.

Rules, in order:
1. Drop items the source flags as removed, locked or pinned.
2. Keep items from an allow-listed origin regardless of age or keywords.
3. Otherwise keep only fresh items (published at or after the cutoff)
   whose title or body contains a keyword.

An item whose timestamp could not be parsed counts as fresh.
"""

import logging
from collections.abc import Iterable
from datetime import datetime

from briefing.ingestion.schemas import RawItem

logger = logging.getLogger(__name__)

ENGLISH_KEYWORDS = (
    "job", "work", "career", "hire", "hiring", "employ", "salary",
    "interview", "resume", "visa", "engineer", "developer", "it", "tech",
    "company", "offer", "position", "remote", "office",
)

JAPANESE_KEYWORDS = (
    "就職", "転職", "仕事", "キャリア", "給料", "面接", "エンジニア",
    "開発者", "ビザ", "会社", "求人", "採用",
)

DEFAULT_KEYWORDS = ENGLISH_KEYWORDS + JAPANESE_KEYWORDS

# Communities whose every post is on topic
DEFAULT_ALLOWED_ORIGINS = frozenset({"japanlife", "movingtojapan", "japandev"})


class RelevanceFilter:
    """
    Pure keep/drop decision for a RawItem.

    Args:
        keywords: Case-insensitive substrings; one match is enough
        allowed_origins: Origins kept unconditionally (case-insensitive)
        require_keyword: When False, fresh items pass without a keyword
            match (for tag searches that are on topic by construction)
    """

    def __init__(
        self,
        keywords: Iterable[str] = DEFAULT_KEYWORDS,
        allowed_origins: Iterable[str] = DEFAULT_ALLOWED_ORIGINS,
        require_keyword: bool = True,
    ) -> None:
        self._keywords = tuple(k.lower() for k in keywords if k)
        self._allowed_origins = frozenset(o.lower() for o in allowed_origins)
        self._require_keyword = require_keyword

    @property
    def keywords(self) -> tuple[str, ...]:
        return self._keywords

    def is_relevant(self, item: RawItem, cutoff: datetime) -> bool:
        if item.removed or item.locked or item.pinned:
            return False

        if item.origin and item.origin.lower() in self._allowed_origins:
            return True

        if not self._is_fresh(item, cutoff):
            return False

        if not self._require_keyword:
            return True
        return self.matches_keyword(item.text)

    def matches_keyword(self, text: str) -> bool:
        lowered = text.lower()
        return any(keyword in lowered for keyword in self._keywords)

    def apply(self, items: Iterable[RawItem], cutoff: datetime) -> list[RawItem]:
        """Filter a batch, preserving order."""
        return [item for item in items if self.is_relevant(item, cutoff)]

    def _is_fresh(self, item: RawItem, cutoff: datetime) -> bool:
        if item.published_at is None:
            logger.warning(
                "Unparsable timestamp %r for item %s, keeping it",
                item.published_raw, item.external_id,
            )
            return True
        return item.published_at >= cutoff
