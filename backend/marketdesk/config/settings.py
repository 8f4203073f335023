from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_ALLOWLIST_PATH = Path(__file__).resolve().parent.parent / "data" / "top_symbols.txt"


class UpstreamSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MARKETDESK_FINNHUB_",
        env_file=("../.env", ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )
    base_url: str = "https://finnhub.io/api/v1"
    api_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("FINNHUB_API_TOKEN", "MARKETDESK_FINNHUB_API_TOKEN"),
    )
    exchange: str = "US"
    timeout_seconds: float = 10.0


class CacheTTLSettings(BaseModel):
    symbols_seconds: int = 24 * 60 * 60
    market_data_seconds: int = 24 * 60 * 60
    market_status_seconds: int = 30 * 60
    market_status_fallback_seconds: int = 60


class RetrySettings(BaseModel):
    # bulk quote loop: few attempts, long wait for the per-minute quota to reset
    quote_delay_seconds: float = 65.0
    quote_max_attempts: int = 3
    status_delay_seconds: float = 10.0
    status_max_attempts: int = 10


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MARKETDESK_",
        env_file=("../.env", ".env"),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    log_level: str = "INFO"
    allowlist_path: Path = DEFAULT_ALLOWLIST_PATH
    request_delay_ms: int = 50
    display_timezone: str = "America/New_York"
    fallback_timezone: str = "America/New_York"

    upstream: UpstreamSettings = Field(default_factory=UpstreamSettings)
    ttl: CacheTTLSettings = Field(default_factory=CacheTTLSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None
