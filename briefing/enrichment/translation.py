"""Translation of stored items into the reader's language."""

from datetime import datetime, timezone

import structlog

from briefing.content.schemas import ContentItem
from briefing.enrichment.base import EnrichmentOrchestrator
from briefing.llm.prompts import TRANSLATION_SYSTEM_PROMPT

logger = structlog.get_logger(__name__)


class TranslationOrchestrator(EnrichmentOrchestrator):
    """
    Translates title and body of untranslated items.

    Candidates are items in the configured source language whose
    ``translated_at`` is still unset. Title and body are translated
    independently; a blank field stays ``None`` without an LLM call.

    Usage:
        orchestrator = TranslationOrchestrator(EnrichmentGateway(db), create_llm_client())
        result = await orchestrator.process_pending(batch_size=20)
    """

    task = "translation"

    @property
    def default_batch_size(self) -> int:
        return self._config.translation_batch_size

    async def fetch_candidates(self, batch_size: int) -> list[ContentItem]:
        return await self._gateway.fetch_untranslated(
            self._config.source_language,
            self._config.translation_kinds,
            batch_size,
        )

    async def translate(self, text: str | None) -> tuple[bool, str | None]:
        """Translate one field.

        Returns (ok, translation). Blank input is ok with no translation.
        """
        if text is None or not text.strip():
            return True, None

        logger.debug("Translating", preview=text[:50])
        translated = await self._llm.complete(
            TRANSLATION_SYSTEM_PROMPT.format(target_language=self._config.target_language),
            text,
            temperature=self._config.translation_temperature,
        )
        return translated is not None, translated

    async def enrich(self, item: ContentItem) -> bool:
        title_ok, title = await self.translate(item.title)
        if not title_ok:
            return False
        body_ok, body = await self.translate(item.body)
        if not body_ok:
            return False

        item.title_translated = title
        item.body_translated = body
        item.translated_at = datetime.now(timezone.utc)
        return True
