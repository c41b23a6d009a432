"""Curated groups: fixed-size, hand-ordered article blocks.

Each group (club, spotlight, duo) has a singleton config naming where it
renders and which articles it shows, in order. A config only renders when
every one of its ids still resolves to a published article.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Sequence

from newsroom.categories import CATEGORIES
from newsroom.errors import ValidationError
from newsroom.models.domain import Article, CuratedGroupConfig, CuratedGroupType

AFTER_TOP_STORIES = "after_top_stories"

GROUP_POSITIONS: tuple[str, ...] = (AFTER_TOP_STORIES,) + tuple(c.section_key for c in CATEGORIES)

POSITION_LABELS: dict[str, str] = {AFTER_TOP_STORIES: "After Top Stories"}
POSITION_LABELS.update({c.section_key: f"After {c.label} Section" for c in CATEGORIES})


@dataclass(frozen=True)
class CuratedGroupSpec:
    group: CuratedGroupType
    label: str
    required_count: int
    positions: tuple[str, ...] = GROUP_POSITIONS


CURATED_GROUPS: dict[CuratedGroupType, CuratedGroupSpec] = {
    CuratedGroupType.CLUB: CuratedGroupSpec(CuratedGroupType.CLUB, "Club Articles", 5),
    CuratedGroupType.SPOTLIGHT: CuratedGroupSpec(CuratedGroupType.SPOTLIGHT, "Spotlight Articles", 3),
    CuratedGroupType.DUO: CuratedGroupSpec(CuratedGroupType.DUO, "Duo Articles", 2),
}


@dataclass(frozen=True)
class CuratedGroupPlacement:
    """A renderable group: its position key and resolved articles in order."""

    group: CuratedGroupType
    position: str
    articles: tuple[Article, ...]


def normalize_article_ids(ids: Any) -> list[str]:
    """Trimmed, non-empty, de-duplicated ids in first-seen order."""
    if not isinstance(ids, (list, tuple)):
        return []
    seen: set[str] = set()
    normalized: list[str] = []
    for raw in ids:
        if not isinstance(raw, str):
            continue
        article_id = raw.strip()
        if not article_id or article_id in seen:
            continue
        seen.add(article_id)
        normalized.append(article_id)
    return normalized


def validate_group_payload(
    group: CuratedGroupType,
    position: Any,
    article_ids: Any,
    *,
    other_configs: Iterable[CuratedGroupConfig] = (),
) -> tuple[str, list[str]]:
    """Check a config write before anything is stored.

    ``other_configs`` are the stored configs of the remaining groups; an id
    already used by one of them is rejected so an article sits in at most
    one curated group.
    """
    spec = CURATED_GROUPS[group]
    if not isinstance(position, str) or position not in spec.positions:
        raise ValidationError("Invalid position", field="position")

    ids = normalize_article_ids(article_ids)
    if len(ids) != spec.required_count:
        raise ValidationError(f"Select exactly {spec.required_count} articles", field="article_ids")

    for other in other_configs:
        if other.group == group:
            continue
        taken = set(other.article_ids)
        shared = [article_id for article_id in ids if article_id in taken]
        if shared:
            raise ValidationError(
                f"Article {shared[0]} is already part of {CURATED_GROUPS[other.group].label}",
                field="article_ids",
            )
    return position, ids


def resolve_curated_group(
    config: Optional[CuratedGroupConfig], published: Sequence[Article]
) -> Optional[list[Article]]:
    """Ordered articles for ``config``, or ``None`` when it cannot render.

    Never raises: a missing config, a stored id list of the wrong length, or
    any id that no longer maps to a published article all yield ``None``.
    """
    if config is None:
        return None
    required = CURATED_GROUPS[config.group].required_count
    if len(config.article_ids) != required:
        return None

    by_id = {a.id: a for a in published if a.status == "published"}
    ordered = [by_id[article_id] for article_id in config.article_ids if article_id in by_id]
    if len(ordered) != required:
        return None
    return ordered


def resolve_group_placements(
    configs: Mapping[CuratedGroupType, Optional[CuratedGroupConfig]],
    published: Sequence[Article],
) -> dict[CuratedGroupType, Optional[CuratedGroupPlacement]]:
    placements: dict[CuratedGroupType, Optional[CuratedGroupPlacement]] = {}
    for group in CuratedGroupType:
        config = configs.get(group)
        articles = resolve_curated_group(config, published)
        placements[group] = (
            CuratedGroupPlacement(group=group, position=config.position, articles=tuple(articles))
            if config is not None and articles is not None
            else None
        )
    return placements
