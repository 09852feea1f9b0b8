"""LLM enrichment of stored content: translation and sentiment."""

from briefing.enrichment.base import EnrichmentBatchResult, EnrichmentOrchestrator
from briefing.enrichment.config import EnrichmentConfig
from briefing.enrichment.persistence import EnrichmentGateway
from briefing.enrichment.sentiment import SentimentOrchestrator
from briefing.enrichment.translation import TranslationOrchestrator

__all__ = [
    "EnrichmentBatchResult",
    "EnrichmentConfig",
    "EnrichmentGateway",
    "EnrichmentOrchestrator",
    "SentimentOrchestrator",
    "TranslationOrchestrator",
]
