"""Render-plan section descriptors produced by the homepage composer."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from newsroom.image_urls import proxied_image_src
from newsroom.models.domain import Article


class ArticleCard(BaseModel):
    id: str
    slug: str
    title: str
    summary: str
    category: str
    href: str
    image_src: str = ""
    breaking: bool = False
    published_at: Optional[datetime] = None
    date_label: str

    @classmethod
    def from_article(cls, article: Article) -> "ArticleCard":
        slug = article.slug.strip()
        return cls(
            id=article.id,
            slug=slug,
            title=article.title,
            summary=article.summary,
            category=article.category,
            href=f"/article/{slug}" if slug else "#",
            image_src=proxied_image_src(article.cover_image),
            breaking=article.breaking,
            published_at=article.published_at,
            date_label=article.effective_date.date().isoformat(),
        )


class TickerSection(BaseModel):
    kind: Literal["ticker"] = "ticker"
    items: List[ArticleCard] = Field(min_length=1)


class InstaStripSection(BaseModel):
    kind: Literal["insta_strip"] = "insta_strip"
    items: List[ArticleCard] = Field(min_length=1)


class HeroContainerSection(BaseModel):
    kind: Literal["hero_container"] = "hero_container"
    container: int
    slot: str
    article: ArticleCard


class TopStoriesSection(BaseModel):
    kind: Literal["top_stories"] = "top_stories"
    items: List[ArticleCard] = Field(min_length=1)


class CuratedGroupSection(BaseModel):
    kind: Literal["curated_group"] = "curated_group"
    group: str
    position: str
    items: List[ArticleCard] = Field(min_length=1)


class CategoryBlockSection(BaseModel):
    kind: Literal["category_block"] = "category_block"
    category: str
    category_slug: str
    total: int
    main: ArticleCard
    secondary: List[ArticleCard] = Field(default_factory=list)


Section = Annotated[
    Union[
        TickerSection,
        InstaStripSection,
        HeroContainerSection,
        TopStoriesSection,
        CuratedGroupSection,
        CategoryBlockSection,
    ],
    Field(discriminator="kind"),
]


class RenderPlan(BaseModel):
    sections: List[Section] = Field(default_factory=list)
    published_count: int = 0
