"""Configuration for the enrichment jobs."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnrichmentConfig(BaseSettings):
    """Batch sizes and candidate predicates for translation and sentiment.

    Settings can be overridden via ENRICHMENT_* environment variables.
    """

    model_config = SettingsConfigDict(
        env_prefix="ENRICHMENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    translation_batch_size: int = Field(default=20, ge=1, le=500)
    sentiment_batch_size: int = Field(default=50, ge=1, le=500)

    # Items in this language are translation candidates
    source_language: str = "ja"
    target_language: str = "Korean"
    translation_kinds: list[str] = Field(
        default_factory=lambda: ["post", "article", "listing"]
    )
    sentiment_kinds: list[str] = Field(default_factory=lambda: ["post"])

    translation_temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    sentiment_temperature: float = Field(default=0.1, ge=0.0, le=2.0)
