"""Configuration for the daily digest and its notifier."""

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DigestConfig(BaseSettings):
    """Digest generation settings.

    Settings can be overridden via DIGEST_* environment variables.
    """

    model_config = SettingsConfigDict(
        env_prefix="DIGEST_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Calendar days are cut in this zone
    timezone: str = "Asia/Tokyo"
    target_language: str = "Korean"

    max_items_per_kind: int = Field(default=10, ge=1, le=100)
    fallback_items_per_kind: int = Field(default=5, ge=1, le=50)

    temperature: float = Field(default=0.5, ge=0.0, le=2.0)
    max_tokens: int = Field(default=2500, ge=1)

    title: str = "Japan IT Careers Daily Briefing"
    footer: str = "Briefing Bot"


class TelegramConfig(BaseSettings):
    """Telegram bot delivery settings.

    Example:
        TELEGRAM_BOT_TOKEN=123456:ABC...
        TELEGRAM_CHAT_ID=-1001234567890
    """

    model_config = SettingsConfigDict(
        env_prefix="TELEGRAM_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    enabled: bool = True
    bot_token: SecretStr | None = None
    chat_id: str | None = None
    base_url: str = "https://api.telegram.org"
    timeout: float = Field(default=10.0, gt=0.0)

    @property
    def configured(self) -> bool:
        return bool(
            self.enabled
            and self.bot_token
            and self.bot_token.get_secret_value()
            and self.chat_id
        )
