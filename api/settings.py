"""Settings for the web API: database, logging, CORS and search limits."""

from __future__ import annotations

import json
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, PositiveInt, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"


class PortalSettings(BaseSettings):
    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    database_url: Optional[str] = Field(None, alias="DATABASE_URL", description="SQLAlchemy URL")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON", description="Emit one JSON object per log line")
    cors_allow_origins: str = Field(
        DEFAULT_CORS_ORIGINS,
        alias="CORS_ALLOW_ORIGINS",
        description="Comma separated origins or a JSON array",
    )
    search_max_results: PositiveInt = Field(50, alias="SEARCH_MAX_RESULTS")
    search_min_query_length: PositiveInt = Field(2, alias="SEARCH_MIN_QUERY_LENGTH")
    site_name: str = Field("KnotShorts", alias="SITE_NAME")

    @field_validator("database_url", mode="before")
    @classmethod
    def _blank_as_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("cors_allow_origins")
    @classmethod
    def _check_origins(cls, value: str) -> str:
        raw = value.strip()
        if raw.startswith("["):
            try:
                parsed = json.loads(raw)
            except json.JSONDecodeError as exc:
                raise ValueError("CORS_ALLOW_ORIGINS must be a JSON array or a comma separated list") from exc
            if not isinstance(parsed, list):
                raise ValueError("CORS_ALLOW_ORIGINS must be a JSON array or a comma separated list")
        return raw

    @property
    def cors_origins(self) -> List[str]:
        if self.cors_allow_origins.startswith("["):
            return [str(item).strip() for item in json.loads(self.cors_allow_origins) if str(item).strip()]
        return [item.strip() for item in self.cors_allow_origins.split(",") if item.strip()]

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"


@lru_cache()
def get_portal_settings() -> PortalSettings:
    try:
        return PortalSettings()
    except ValidationError as exc:
        raise RuntimeError(f"Portal settings validation failed: {exc}") from exc


def reset_portal_settings_cache() -> None:
    get_portal_settings.cache_clear()  # type: ignore[attr-defined]
