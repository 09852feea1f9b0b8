"""LLM completion clients.

Provides one text-completion interface over Gemini (REST via httpx) and
OpenAI (SDK). Every call is wrapped in bounded exponential backoff for
transient failures and degrades to ``None`` on any terminal failure, so
callers only ever branch on "got text" vs "did not".

The OpenAI SDK import is deferred to the first call to avoid import-time
failures when the provider is not in use.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from briefing.errors import ExternalServiceError, TransientExternalError, error_from_status
from briefing.ingestion.base_client import raise_for_response, wrap_transport_error
from briefing.llm.config import LLMConfig
from briefing.observability.metrics import get_metrics
from briefing.resilience.retry import retry_async

logger = logging.getLogger(__name__)


class LLMClient(ABC):
    """Abstract text-completion client.

    Subclasses implement ``_complete_once`` (a single attempt that raises
    typed errors); ``complete`` adds retries, logging and metrics.
    """

    def __init__(
        self,
        config: LLMConfig | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._config = config or LLMConfig()
        self._sleep = sleep
        self._metrics = get_metrics()

    @property
    @abstractmethod
    def provider(self) -> str:
        """Provider name used in logs and metrics."""

    @property
    def enabled(self) -> bool:
        return self._config.configured

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str | None:
        """
        Run one completion.

        Args:
            system_prompt: Instructions for the model
            user_prompt: The content to work on
            temperature: Sampling temperature (default from config)
            max_tokens: Output token cap (default from config)

        Returns:
            The completion text, or None if the client is disabled, the
            call failed after retries, or the model returned nothing
        """
        if not self.enabled:
            logger.warning("%s client is not configured, skipping completion", self.provider)
            return None

        temperature = self._config.temperature if temperature is None else temperature
        max_tokens = max_tokens or self._config.max_tokens

        try:
            text = await retry_async(
                lambda: self._complete_once(system_prompt, user_prompt, temperature, max_tokens),
                max_retries=self._config.max_retries,
                initial_delay=self._config.retry_initial_delay,
                sleep=self._sleep,
            )
        except Exception as e:
            logger.error("%s completion failed: %s", self.provider, e)
            self._metrics.record_llm_call(self.provider, success=False)
            return None

        if not text or not text.strip():
            logger.warning("%s returned an empty completion", self.provider)
            self._metrics.record_llm_call(self.provider, success=False)
            return None

        self._metrics.record_llm_call(self.provider, success=True)
        return text.strip()

    @abstractmethod
    async def _complete_once(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int,
    ) -> str | None:
        """One attempt. Raises Transient/PermanentExternalError on failure."""


class GeminiClient(LLMClient):
    """Gemini ``generateContent`` over REST.

    Creates a new ``httpx.AsyncClient`` per call (short-lived, no pooling)
    matching the project's HTTP pattern.
    """

    @property
    def provider(self) -> str:
        return "gemini"

    def _build_payload(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int,
    ) -> dict[str, Any]:
        return {
            "contents": [{"role": "user", "parts": [{"text": user_prompt}]}],
            "systemInstruction": {"parts": [{"text": system_prompt}]},
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_tokens,
            },
        }

    async def _complete_once(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int,
    ) -> str | None:
        url = f"{self._config.base_url}/models/{self._config.model}:generateContent"
        payload = self._build_payload(system_prompt, user_prompt, temperature, max_tokens)

        try:
            async with httpx.AsyncClient(timeout=self._config.timeout) as client:
                response = await client.post(
                    url,
                    json=payload,
                    headers={"x-goog-api-key": self._config.api_key.get_secret_value()},
                )
                raise_for_response(response, "Gemini")
                data = response.json()
        except ExternalServiceError:
            raise
        except (httpx.HTTPError, ValueError) as e:
            raise wrap_transport_error(e, "Gemini") from e

        return self._extract_text(data)

    @staticmethod
    def _extract_text(data: dict[str, Any]) -> str | None:
        usage = data.get("usageMetadata") or {}
        if usage:
            logger.debug("Gemini usage: total_tokens=%s", usage.get("totalTokenCount"))

        candidates = data.get("candidates") or []
        if not candidates:
            return None
        parts = (candidates[0].get("content") or {}).get("parts") or []
        if not parts:
            return None
        return parts[0].get("text")


class OpenAIClient(LLMClient):
    """OpenAI chat completions through the official async SDK."""

    def __init__(
        self,
        config: LLMConfig | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        super().__init__(config, sleep)
        self._client: Any = None

    @property
    def provider(self) -> str:
        return "openai"

    def _get_client(self) -> Any:
        """Lazy-initialize the OpenAI async client."""
        if self._client is None:
            import openai

            self._client = openai.AsyncOpenAI(
                api_key=self._config.api_key.get_secret_value(),
                timeout=self._config.timeout,
                # Retries are ours
                max_retries=0,
            )
        return self._client

    async def _complete_once(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int,
    ) -> str | None:
        import openai

        client = self._get_client()
        try:
            response = await client.chat.completions.create(
                model=self._config.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except (openai.APITimeoutError, openai.APIConnectionError) as e:
            raise TransientExternalError(f"OpenAI request failed: {e!r}") from e
        except openai.APIStatusError as e:
            raise error_from_status(
                f"OpenAI returned HTTP {e.status_code}",
                e.status_code,
                str(e)[:500],
            ) from e

        if response.usage is not None:
            logger.debug("OpenAI usage: total_tokens=%s", response.usage.total_tokens)
        if not response.choices:
            return None
        return response.choices[0].message.content


def create_llm_client(config: LLMConfig | None = None) -> LLMClient:
    """Build the client for the configured provider."""
    config = config or LLMConfig()
    if config.provider == "openai":
        return OpenAIClient(config)
    return GeminiClient(config)
