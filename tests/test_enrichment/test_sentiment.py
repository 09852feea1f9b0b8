"""Tests for sentiment tagging."""

import pytest

from briefing.content.schemas import Sentiment
from briefing.enrichment.sentiment import SentimentOrchestrator, analysis_text, parse_sentiment


@pytest.fixture
def orchestrator(enrichment_gateway, llm, enrichment_config) -> SentimentOrchestrator:
    return SentimentOrchestrator(enrichment_gateway, llm, enrichment_config)


class TestParseSentiment:
    @pytest.mark.parametrize("response,expected", [
        ("POSITIVE", Sentiment.POSITIVE),
        ("negative\nThe author is frustrated.", Sentiment.NEGATIVE),
        ("  Positive.  ", Sentiment.POSITIVE),
        ("NEUTRAL", Sentiment.NEUTRAL),
        ("I cannot tell", Sentiment.NEUTRAL),
        ("Neutral\nbut slightly POSITIVE overall", Sentiment.NEUTRAL),
    ])
    def test_first_line_decides(self, response, expected):
        assert parse_sentiment(response) == expected


class TestAnalysisText:
    def test_prefers_translations(self, make_item):
        item = make_item(1, title="転職", body="本文", title_translated="이직", body_translated="본문")

        assert analysis_text(item) == "Title: 이직\n\nContent: 본문"

    def test_falls_back_to_originals(self, make_item):
        assert analysis_text(make_item(1, title="転職", body="本文")) == "Title: 転職\n\nContent: 本文"

    def test_title_only(self, make_item):
        assert analysis_text(make_item(1, title="転職", body="  ")) == "Title: 転職"

    def test_blank(self, make_item):
        assert analysis_text(make_item(1, title=" ", body="")) == ""


class TestProcessPending:
    @pytest.mark.asyncio
    async def test_reads_posts_only(self, orchestrator, enrichment_gateway):
        enrichment_gateway.fetch_without_sentiment.return_value = []

        await orchestrator.process_pending()

        enrichment_gateway.fetch_without_sentiment.assert_awaited_once_with(["post"], 50)

    @pytest.mark.asyncio
    async def test_tags_items(self, orchestrator, enrichment_gateway, llm, make_item):
        items = [make_item(1, title="Got the offer!"), make_item(2, title="Laid off again")]
        enrichment_gateway.fetch_without_sentiment.return_value = items
        llm.complete.side_effect = ["POSITIVE", "NEGATIVE\nsad"]

        result = await orchestrator.process_pending()

        assert (result.processed, result.failed) == (2, 0)
        assert [i.sentiment for i in items] == ["positive", "negative"]

    @pytest.mark.asyncio
    async def test_blank_item_is_neutral_without_llm_call(
        self, orchestrator, enrichment_gateway, llm, make_item
    ):
        item = make_item(1, title="", body="")
        enrichment_gateway.fetch_without_sentiment.return_value = [item]

        result = await orchestrator.process_pending()

        assert result.processed == 1
        assert item.sentiment == "neutral"
        llm.complete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_llm_failure_leaves_item_untagged(
        self, orchestrator, enrichment_gateway, llm, make_item
    ):
        item = make_item(1, title="転職")
        enrichment_gateway.fetch_without_sentiment.return_value = [item]
        llm.complete.return_value = None

        result = await orchestrator.process_pending()

        assert (result.processed, result.failed) == (0, 1)
        assert item.sentiment is None
        enrichment_gateway.save_all.assert_awaited_once_with([])
