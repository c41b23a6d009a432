"""Homepage composer.

Turns the published article set plus the resolved hero slots and curated
groups into an ordered list of typed sections. Pure: identical inputs give
identical plans, and no section is emitted without items.
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional, Sequence

from newsroom.categories import CATEGORIES
from newsroom.models.domain import CONTAINER_NUMBERS, Article, CuratedGroupConfig, CuratedGroupType

from .groups import AFTER_TOP_STORIES, CuratedGroupPlacement, resolve_group_placements
from .plan import (
    ArticleCard,
    CategoryBlockSection,
    CuratedGroupSection,
    HeroContainerSection,
    InstaStripSection,
    RenderPlan,
    Section,
    TickerSection,
    TopStoriesSection,
)
from .slots import (
    AFTER_INDIA_SECTION,
    AFTER_INSTA_STRIP,
    INDIA_SECTION_ORDER,
    hero_containers_at,
    resolve_all_slots,
)

logger = logging.getLogger(__name__)

TICKER_LIMIT = 12
INSTA_STRIP_LIMIT = 14
TOP_STORIES_LIMIT = 4
CATEGORY_SECONDARY_LIMIT = 3

GROUPS_AFTER_TOP_STORIES = (CuratedGroupType.SPOTLIGHT, CuratedGroupType.DUO, CuratedGroupType.CLUB)
GROUPS_AFTER_CATEGORY = (CuratedGroupType.DUO, CuratedGroupType.SPOTLIGHT, CuratedGroupType.CLUB)

SlotMaps = Mapping[int, Mapping[str, Article]]
GroupPlacements = Mapping[CuratedGroupType, Optional[CuratedGroupPlacement]]


def canonical_order(articles: Iterable[Article]) -> list[Article]:
    """Published, slug-bearing articles, newest effective date first."""
    public = [a for a in articles if a.is_public]
    return sorted(public, key=lambda a: (a.effective_date, a.id), reverse=True)


def compose_homepage(
    articles: Iterable[Article],
    slot_maps: SlotMaps,
    groups: GroupPlacements,
) -> RenderPlan:
    published = canonical_order(articles)
    public_ids = {a.id for a in published}
    sections: list[Section] = []

    ticker = [a for a in published if a.ticker][:TICKER_LIMIT]
    if ticker:
        sections.append(TickerSection(items=_cards(ticker)))

    strip = published[:INSTA_STRIP_LIMIT]
    if strip:
        sections.append(InstaStripSection(items=_cards(strip)))

    sections.extend(_hero_sections(AFTER_INSTA_STRIP, slot_maps, public_ids))

    featured = [a for a in published if a.featured][:TOP_STORIES_LIMIT]
    if featured:
        sections.append(TopStoriesSection(items=_cards(featured)))

    sections.extend(_group_sections(AFTER_TOP_STORIES, GROUPS_AFTER_TOP_STORIES, groups, public_ids))
    sections.extend(_hero_sections(AFTER_TOP_STORIES, slot_maps, public_ids))

    by_category: dict[str, list[Article]] = {}
    for article in published:
        by_category.setdefault(article.category, []).append(article)

    for category in CATEGORIES:
        items = by_category.get(category.label, [])
        if not items:
            continue
        sections.append(
            CategoryBlockSection(
                category=category.label,
                category_slug=category.slug,
                total=len(items),
                main=ArticleCard.from_article(items[0]),
                secondary=_cards(items[1:1 + CATEGORY_SECONDARY_LIMIT]),
            )
        )
        if category.slug == "india":
            sections.extend(
                _hero_sections(AFTER_INDIA_SECTION, slot_maps, public_ids, order=INDIA_SECTION_ORDER)
            )
        sections.extend(
            _group_sections(category.section_key, GROUPS_AFTER_CATEGORY, groups, public_ids)
        )

    return RenderPlan(sections=sections, published_count=len(published))


def build_homepage(
    articles: Sequence[Article],
    configs: Mapping[CuratedGroupType, Optional[CuratedGroupConfig]],
) -> RenderPlan:
    """Resolve hero slots and curated groups, then compose."""
    published = canonical_order(articles)
    slot_maps = resolve_all_slots(published)
    groups = resolve_group_placements(configs, published)

    disabled = [g.value for g, config in configs.items() if config is not None and groups.get(g) is None]
    if disabled:
        logger.info("homepage.groups.disabled", extra={"groups": disabled})

    return compose_homepage(published, slot_maps, groups)


def _cards(articles: Iterable[Article]) -> list[ArticleCard]:
    return [ArticleCard.from_article(a) for a in articles]


def _hero_sections(
    slot: str,
    slot_maps: SlotMaps,
    public_ids: set[str],
    order: Sequence[int] = CONTAINER_NUMBERS,
) -> list[HeroContainerSection]:
    return [
        HeroContainerSection(
            container=hero.index,
            slot=hero.slot,
            article=ArticleCard.from_article(hero.article),
        )
        for hero in hero_containers_at(slot, slot_maps, order)
        if hero.article.id in public_ids
    ]


def _group_sections(
    position: str,
    order: Sequence[CuratedGroupType],
    groups: GroupPlacements,
    public_ids: set[str],
) -> list[CuratedGroupSection]:
    sections: list[CuratedGroupSection] = []
    for group in order:
        placement = groups.get(group)
        if placement is None or placement.position != position:
            continue
        if not placement.articles or any(a.id not in public_ids for a in placement.articles):
            continue
        sections.append(
            CuratedGroupSection(
                group=group.value,
                position=position,
                items=_cards(placement.articles),
            )
        )
    return sections
