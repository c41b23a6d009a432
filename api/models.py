from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from newsroom.body_blocks import BodyBlock
from newsroom.models import Article, HeroPlacement

ArticleStatusFilter = Literal["draft", "published"]


class HeroPlacementIn(BaseModel):
    container: int = Field(..., ge=1, le=3)
    enabled: bool = False
    slot: Optional[str] = None

    @field_validator("slot", mode="before")
    @classmethod
    def _blank_slot(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value.strip() if isinstance(value, str) else value


class ArticleCreate(BaseModel):
    title: str = ""
    summary: str = ""
    body: str = ""
    slug: Optional[str] = None
    category: Optional[str] = None
    tags: list[Any] = Field(default_factory=list)
    cover_image: Optional[str] = None
    featured: bool = False
    breaking: bool = False
    ticker: bool = False
    status: Optional[str] = None
    placements: list[HeroPlacementIn] = Field(default_factory=list)


class ArticleUpdate(BaseModel):
    """Partial update; fields left out keep their stored value."""

    title: Optional[str] = None
    summary: Optional[str] = None
    body: Optional[str] = None
    slug: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[list[Any]] = None
    cover_image: Optional[str] = None
    featured: Optional[bool] = None
    breaking: Optional[bool] = None
    ticker: Optional[bool] = None
    status: Optional[str] = None
    published_at: Optional[datetime] = None
    placements: Optional[list[HeroPlacementIn]] = None


class ArticleDetail(Article):
    blocks: list[BodyBlock] = Field(default_factory=list)


class CuratedGroupUpsert(BaseModel):
    position: Any = None
    article_ids: Any = None


class PositionOption(BaseModel):
    key: str
    label: str


class SearchResponse(BaseModel):
    query: str
    count: int = 0
    results: list[Article] = Field(default_factory=list)
    message: Optional[str] = None


class CategoryOut(BaseModel):
    slug: str
    label: str


def to_hero_placements(items: list[HeroPlacementIn]) -> list[HeroPlacement]:
    """Lift request placements into the domain type.

    Slot names are checked later against each container's allowed slots, so
    an unknown name is passed through for that check to reject.
    """
    return [
        HeroPlacement.model_construct(container=item.container, enabled=item.enabled, slot=item.slot)
        for item in items
    ]
