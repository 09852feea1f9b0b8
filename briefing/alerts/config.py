"""Alert configuration.

All settings can be overridden via ``ALERTS_*`` environment variables.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AlertConfig(BaseSettings):
    """Cooldown and message limits for failure alerts."""

    model_config = SettingsConfigDict(
        env_prefix="ALERTS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    enabled: bool = True

    cooldown_minutes: int = Field(
        default=30,
        ge=0,
        description="Minutes to suppress repeats of the same alert key (0 = never)",
    )
    max_detail_length: int = Field(
        default=300,
        ge=1,
        description="Detail text is cut to this many characters",
    )
