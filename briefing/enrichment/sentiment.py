"""Sentiment tagging of stored items."""

import structlog

from briefing.content.schemas import ContentItem, Sentiment
from briefing.enrichment.base import EnrichmentOrchestrator
from briefing.llm.prompts import (
    SENTIMENT_SYSTEM_PROMPT,
    SENTIMENT_TEXT_TEMPLATE,
    SENTIMENT_TITLE_ONLY_TEMPLATE,
)

logger = structlog.get_logger(__name__)


def parse_sentiment(response: str) -> Sentiment:
    """Read the label off the first line of a classification response.

    Anything that is not recognisably positive or negative is neutral.
    """
    first_line = response.strip().split("\n", 1)[0].strip().upper()
    if "POSITIVE" in first_line:
        return Sentiment.POSITIVE
    if "NEGATIVE" in first_line:
        return Sentiment.NEGATIVE
    return Sentiment.NEUTRAL


def analysis_text(item: ContentItem) -> str:
    """Text to classify: translated fields when present, originals otherwise."""
    title = (item.title_translated or item.title or "").strip()
    body = (item.body_translated or item.body or "").strip()

    if not title and not body:
        return ""
    if not body:
        return SENTIMENT_TITLE_ONLY_TEMPLATE.format(title=title)
    return SENTIMENT_TEXT_TEMPLATE.format(title=title, body=body)


class SentimentOrchestrator(EnrichmentOrchestrator):
    """
    Tags items without a sentiment as positive, neutral or negative.

    Blank items are tagged neutral without an LLM call. An LLM failure
    leaves the item untagged for the next run.
    """

    task = "sentiment"

    @property
    def default_batch_size(self) -> int:
        return self._config.sentiment_batch_size

    async def fetch_candidates(self, batch_size: int) -> list[ContentItem]:
        return await self._gateway.fetch_without_sentiment(
            self._config.sentiment_kinds,
            batch_size,
        )

    async def classify(self, text: str) -> Sentiment | None:
        if not text.strip():
            return Sentiment.NEUTRAL

        response = await self._llm.complete(
            SENTIMENT_SYSTEM_PROMPT,
            text,
            temperature=self._config.sentiment_temperature,
        )
        if response is None:
            return None
        return parse_sentiment(response)

    async def enrich(self, item: ContentItem) -> bool:
        sentiment = await self.classify(analysis_text(item))
        if sentiment is None:
            logger.debug("Sentiment unavailable", item_id=item.id)
            return False
        item.sentiment = sentiment.value
        return True
