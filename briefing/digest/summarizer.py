"""Digest text generation: LLM summary with a deterministic fallback."""

from collections.abc import Sequence
from datetime import date

import structlog

from briefing.content.schemas import ContentItem, ContentKind, Sentiment
from briefing.digest.config import DigestConfig
from briefing.digest.schemas import DigestStats, SummaryOutcome
from briefing.llm.client import LLMClient
from briefing.llm.prompts import DIGEST_SYSTEM_PROMPT

logger = structlog.get_logger(__name__)

SENTIMENT_MARKERS = {
    Sentiment.POSITIVE.value: "(+)",
    Sentiment.NEGATIVE.value: "(-)",
}

# (kind, section heading, placeholder when empty)
SECTIONS = (
    (ContentKind.LISTING, "Job listings", "No new job listings"),
    (ContentKind.ARTICLE, "News articles", "No new articles"),
    (ContentKind.POST, "Community posts", "No new community posts"),
)


def group_by_kind(items: Sequence[ContentItem]) -> dict[str, list[ContentItem]]:
    grouped: dict[str, list[ContentItem]] = {kind.value: [] for kind, _, _ in SECTIONS}
    for item in items:
        grouped.setdefault(item.kind, []).append(item)
    return grouped


def stats_for(grouped: dict[str, list[ContentItem]]) -> DigestStats:
    return DigestStats(
        post_count=len(grouped.get(ContentKind.POST.value, [])),
        article_count=len(grouped.get(ContentKind.ARTICLE.value, [])),
        listing_count=len(grouped.get(ContentKind.LISTING.value, [])),
    )


def _format_line(item: ContentItem) -> list[str]:
    if item.kind == ContentKind.LISTING.value:
        prefix = f"**{item.author}**: " if item.author else ""
        return [f"- {prefix}{item.display_title}"]

    if item.kind == ContentKind.ARTICLE.value:
        lines = [f"- **{item.display_title}**"]
        if item.body_translated:
            lines.append(f"  - {item.body_translated[:200]}")
        return lines

    marker = SENTIMENT_MARKERS.get(item.sentiment or "", "(=)")
    return [
        f"- {marker} **{item.display_title}** "
        f"(likes {item.like_count}, comments {item.comment_count})"
    ]


def build_input(
    digest_date: date,
    grouped: dict[str, list[ContentItem]],
    max_items: int,
) -> str:
    """Markdown listing of the day's items, at most ``max_items`` per kind."""
    lines = [f"# Items collected on {digest_date.isoformat()}", ""]
    for kind, heading, empty in SECTIONS:
        items = grouped.get(kind.value, [])
        lines.append(f"## {heading} ({len(items)})")
        if not items:
            lines.append(f"- {empty}.")
        for item in items[:max_items]:
            lines.extend(_format_line(item))
        if len(items) > max_items:
            lines.append(f"- ... and {len(items) - max_items} more")
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"


def build_fallback(
    digest_date: date,
    grouped: dict[str, list[ContentItem]],
    top_n: int,
) -> str:
    """Plain digest built from the same data when the LLM is unavailable."""
    stats = stats_for(grouped)

    def top(kind: ContentKind, empty: str, with_likes: bool = False) -> str:
        items = grouped.get(kind.value, [])[:top_n]
        if not items:
            return f"- {empty}"
        if with_likes:
            return "\n".join(f"- {i.display_title} (likes {i.like_count})" for i in items)
        return "\n".join(f"- {i.display_title}" for i in items)

    return "\n".join([
        f"## Japan IT careers on {digest_date.isoformat()}",
        "",
        "### Collected",
        f"- Job listings: {stats.listing_count}",
        f"- News articles: {stats.article_count}",
        f"- Community posts: {stats.post_count}",
        "",
        "### Job listings",
        top(ContentKind.LISTING, "No new job listings"),
        "",
        "### News",
        top(ContentKind.ARTICLE, "No new articles"),
        "",
        "### Community",
        top(ContentKind.POST, "No new community posts", with_likes=True),
        "",
        "---",
        "_The AI summary could not be generated; showing the plain digest._",
    ])


class DigestSummarizer:
    """Turns a day's items into digest text."""

    def __init__(self, llm: LLMClient, config: DigestConfig | None = None) -> None:
        self._llm = llm
        self._config = config or DigestConfig()

    async def summarize(
        self,
        digest_date: date,
        items: Sequence[ContentItem],
    ) -> SummaryOutcome:
        """LLM summary of ``items``, or the fallback text if the LLM fails."""
        grouped = group_by_kind(items)
        stats = stats_for(grouped)

        response = await self._llm.complete(
            DIGEST_SYSTEM_PROMPT.format(target_language=self._config.target_language),
            build_input(digest_date, grouped, self._config.max_items_per_kind),
            temperature=self._config.temperature,
            max_tokens=self._config.max_tokens,
        )

        if response is not None:
            logger.info("Digest summary generated", date=digest_date.isoformat())
            return SummaryOutcome(content=response, success=True, stats=stats)

        logger.error("Digest summary failed, using fallback", date=digest_date.isoformat())
        return SummaryOutcome(
            content=build_fallback(digest_date, grouped, self._config.fallback_items_per_kind),
            success=False,
            stats=stats,
        )
