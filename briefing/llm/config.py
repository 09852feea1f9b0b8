"""Configuration for the LLM completion client."""

from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMConfig(BaseSettings):
    """LLM provider settings.

    Settings can be overridden via LLM_* environment variables.

    Example:
        LLM_PROVIDER=openai
        LLM_MODEL=gpt-4o-mini
        LLM_API_KEY=sk-...
    """

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    enabled: bool = True
    provider: Literal["gemini", "openai"] = "gemini"
    api_key: SecretStr | None = None
    model: str = "gemini-2.0-flash"
    # Only used by the gemini provider; openai uses the SDK default
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"

    timeout: float = Field(default=60.0, gt=0.0)
    max_tokens: int = Field(default=2000, ge=1)
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)

    max_retries: int = Field(
        default=2,
        ge=0,
        le=10,
        description="Retries after the first attempt for a transient failure",
    )
    retry_initial_delay: float = Field(default=1.0, ge=0.0)

    @property
    def configured(self) -> bool:
        return bool(self.enabled and self.api_key and self.api_key.get_secret_value())
