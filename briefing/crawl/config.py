"""Configuration for crawl runs."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CrawlConfig(BaseSettings):
    """Retry behaviour of source fetches.

    Settings can be overridden via CRAWL_* environment variables.
    """

    model_config = SettingsConfigDict(
        env_prefix="CRAWL_",
        case_sensitive=False,
        extra="ignore",
    )

    fetch_max_retries: int = Field(
        default=2,
        ge=0,
        le=10,
        description="Retries after the first attempt for a transient fetch failure",
    )
    fetch_retry_initial_delay: float = Field(
        default=1.0,
        ge=0.0,
        description="Seconds before the first retry; doubles on each further retry",
    )
