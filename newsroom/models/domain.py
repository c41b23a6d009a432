"""Domain models shared by the store adapter and the layout engine."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

ArticleStatus = Literal["draft", "published"]
SlotName = Literal["after_insta_strip", "after_top_stories", "after_india_section"]

CONTAINER_NUMBERS: tuple[int, ...] = (1, 2, 3)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; everything stored is UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class HeroPlacement(BaseModel):
    """One hero-container placement of an article."""

    container: int = Field(..., ge=1, le=3, description="Hero container number (1-3).")
    enabled: bool = False
    slot: Optional[SlotName] = None

    @property
    def claims_slot(self) -> bool:
        return self.enabled and self.slot is not None


class Article(BaseModel):
    id: str
    title: str
    slug: str
    summary: str
    body: str = ""
    category: str
    tags: List[str] = Field(default_factory=list)
    cover_image: Optional[str] = None
    featured: bool = False
    breaking: bool = False
    ticker: bool = False
    placements: List[HeroPlacement] = Field(default_factory=list)
    status: ArticleStatus = "draft"
    published_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @field_validator("published_at", "created_at", "updated_at")
    @classmethod
    def _ensure_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)

    @property
    def effective_date(self) -> datetime:
        """Publish time, falling back to creation time."""
        return self.published_at or self.created_at

    @property
    def is_public(self) -> bool:
        return self.status == "published" and bool(self.slug and self.slug.strip())

    def placement(self, container: int) -> HeroPlacement:
        for placement in self.placements:
            if placement.container == container:
                return placement
        return HeroPlacement(container=container)


class CuratedGroupType(str, Enum):
    CLUB = "club"
    SPOTLIGHT = "spotlight"
    DUO = "duo"


class CuratedGroupConfig(BaseModel):
    """Singleton placement record for one curated group."""

    group: CuratedGroupType
    position: str
    article_ids: List[str] = Field(default_factory=list)
    updated_at: datetime

    @field_validator("updated_at")
    @classmethod
    def _ensure_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)
