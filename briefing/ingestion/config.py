"""Configuration for the source clients.

Settings can be overridden via REDDIT_* and QIITA_* environment variables.
"""

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class RedditConfig(BaseSettings):
    """Reddit OAuth (application-only) client settings.

    Example:
        REDDIT_CLIENT_ID=abc
        REDDIT_CLIENT_SECRET=xyz
    """

    model_config = SettingsConfigDict(
        env_prefix="REDDIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    enabled: bool = True
    client_id: str | None = None
    client_secret: SecretStr | None = None
    user_agent: str = "briefing-pipeline/0.1.0"

    api_base_url: str = "https://oauth.reddit.com"
    auth_base_url: str = "https://www.reddit.com"

    default_sort: str = "new"
    default_limit: int = Field(default=50, ge=1, le=100)
    # Refresh this many seconds before the token actually expires
    token_expiry_margin_seconds: int = Field(default=300, ge=0)
    request_delay_seconds: float = Field(default=1.0, ge=0.0)

    @property
    def configured(self) -> bool:
        return bool(self.enabled and self.client_id and self.client_secret)


class QiitaConfig(BaseSettings):
    """Qiita API v2 tag-search settings.

    Anonymous access allows 60 requests/hour; an access token raises it
    to 1000.
    """

    model_config = SettingsConfigDict(
        env_prefix="QIITA_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    enabled: bool = True
    access_token: SecretStr | None = None
    base_url: str = "https://qiita.com"

    tags: list[str] = Field(default_factory=lambda: ["日本", "就職", "転職", "キャリア"])
    per_page: int = Field(default=20, ge=1, le=100)
    request_delay_seconds: float = Field(default=2.0, ge=0.0)
