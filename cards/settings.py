"""Settings for social-card rendering and upstream asset fetching."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field, PositiveFloat, PositiveInt, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 Chrome Safari"


class CardSettings(BaseSettings):
    """Environment-driven configuration for the card renderer."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    card_cache_ttl_seconds: PositiveInt = Field(21_600, alias="CARD_CACHE_TTL_SECONDS", description="Rendered card TTL")
    card_cache_max_entries: PositiveInt = Field(150, alias="CARD_CACHE_MAX_ENTRIES", description="Rendered card cap")
    asset_cache_ttl_seconds: PositiveInt = Field(21_600, alias="ASSET_CACHE_TTL_SECONDS", description="Data-URL TTL")
    asset_cache_max_entries: PositiveInt = Field(250, alias="ASSET_CACHE_MAX_ENTRIES", description="Data-URL cap")
    asset_fetch_max_attempts: PositiveInt = Field(4, alias="ASSET_FETCH_MAX_ATTEMPTS", description="Fetch attempts")
    asset_fetch_backoff_seconds: PositiveFloat = Field(
        0.35,
        alias="ASSET_FETCH_BACKOFF_SECONDS",
        description="Linear backoff step between attempts",
    )
    asset_fetch_timeout_seconds: PositiveFloat = Field(10.0, alias="ASSET_FETCH_TIMEOUT_SECONDS")
    asset_user_agent: str = Field(DEFAULT_USER_AGENT, alias="ASSET_USER_AGENT")
    brand_logo_url: Optional[str] = Field(None, alias="BRAND_LOGO_URL", description="Badge logo asset")
    font_regular_url: Optional[str] = Field(None, alias="FONT_REGULAR_URL")
    font_italic_url: Optional[str] = Field(None, alias="FONT_ITALIC_URL")
    card_redis_url: Optional[str] = Field(
        None,
        alias="CARD_REDIS_URL",
        description="Share rendered cards through Redis when reachable.",
    )

    @field_validator("brand_logo_url", "font_regular_url", "font_italic_url", "card_redis_url", mode="before")
    @classmethod
    def _blank_as_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


@lru_cache()
def get_card_settings() -> CardSettings:
    try:
        return CardSettings()
    except ValidationError as exc:
        raise RuntimeError(f"Card settings validation failed: {exc}") from exc


def reset_card_settings_cache() -> None:
    get_card_settings.cache_clear()  # type: ignore[attr-defined]
