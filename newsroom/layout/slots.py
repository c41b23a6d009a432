"""Hero-container slot resolution and placement validation.

Three hero containers exist. Each one pins a single article to a named page
slot; the write path guarantees one occupant per (container, slot) by
clearing previous occupants in the same transaction as the save.
"""

from __future__ import annotations

import threading
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass
from typing import Iterable, Iterator, Mapping, Sequence

from newsroom.errors import ValidationError
from newsroom.models.domain import CONTAINER_NUMBERS, Article, HeroPlacement

AFTER_INSTA_STRIP = "after_insta_strip"
AFTER_TOP_STORIES = "after_top_stories"
# Hero containers only know this one category slot; curated groups build
# their keys from every category (see groups.GROUP_POSITIONS).
AFTER_INDIA_SECTION = "after_india_section"

# The India section shows containers 2 and 3 ahead of the main container.
INDIA_SECTION_ORDER: tuple[int, ...] = (2, 3, 1)

SLOT_LABELS: dict[str, str] = {
    AFTER_INSTA_STRIP: "After Insta Strip",
    AFTER_TOP_STORIES: "After Top Stories",
    AFTER_INDIA_SECTION: "After India Section",
}


@dataclass(frozen=True)
class HeroContainerSpec:
    index: int
    label: str
    allowed_slots: tuple[str, ...]


HERO_CONTAINERS: dict[int, HeroContainerSpec] = {
    1: HeroContainerSpec(1, "Main News Container", tuple(SLOT_LABELS)),
    2: HeroContainerSpec(2, "News Container 2", tuple(SLOT_LABELS)),
    3: HeroContainerSpec(3, "News Container 3", tuple(SLOT_LABELS)),
}


@dataclass(frozen=True)
class HeroContainer:
    """A resolved placement: ``article`` occupies ``slot`` of container ``index``."""

    index: int
    slot: str
    article: Article


def _recency_key(article: Article):
    return (article.updated_at, article.created_at, article.id)


def resolve_slots(container: int, articles: Iterable[Article]) -> dict[str, Article]:
    """Map each slot of ``container`` to at most one article.

    Candidates are visited most recently saved first, so when the store
    ever holds two claimants for a slot the latest save wins regardless of
    the order ``articles`` arrives in.
    """
    if container not in HERO_CONTAINERS:
        raise ValidationError(f"Unknown hero container: {container}", field="container")

    by_slot: dict[str, Article] = {}
    for article in sorted(articles, key=_recency_key, reverse=True):
        placement = article.placement(container)
        if not placement.claims_slot:
            continue
        by_slot.setdefault(placement.slot, article)
    return by_slot


def resolve_all_slots(articles: Sequence[Article]) -> dict[int, dict[str, Article]]:
    return {n: resolve_slots(n, articles) for n in CONTAINER_NUMBERS}


def hero_containers_at(
    slot: str,
    slot_maps: Mapping[int, Mapping[str, Article]],
    order: Sequence[int] = CONTAINER_NUMBERS,
) -> list[HeroContainer]:
    """Containers occupying ``slot``, in ``order`` (container order by default)."""
    resolved: list[HeroContainer] = []
    for index in order:
        article = (slot_maps.get(index) or {}).get(slot)
        if article is not None:
            resolved.append(HeroContainer(index=index, slot=slot, article=article))
    return resolved


def has_slot_collision(selections: Iterable[HeroPlacement]) -> bool:
    """True iff the enabled, non-empty slots chosen for one article repeat."""
    chosen = [s.slot for s in selections if s.enabled and s.slot]
    return len(set(chosen)) != len(chosen)


def normalize_placements(placements: Iterable[HeroPlacement] | None) -> list[HeroPlacement]:
    """Validate an article's placements and return one entry per container.

    Raises ``ValidationError`` for duplicate container entries, an enabled
    container without a slot, a slot the container does not offer, or two
    containers pinned to the same slot.
    """
    given: dict[int, HeroPlacement] = {}
    for placement in placements or []:
        if placement.container in given:
            raise ValidationError(
                f"Container {placement.container} listed more than once.", field="placements"
            )
        given[placement.container] = placement

    normalized: list[HeroPlacement] = []
    for index in CONTAINER_NUMBERS:
        spec = HERO_CONTAINERS[index]
        placement = given.get(index)
        if placement is None or not placement.enabled:
            normalized.append(HeroPlacement(container=index))
            continue
        if not placement.slot:
            raise ValidationError(f"Please select placement for {spec.label}.", field="placements")
        if placement.slot not in spec.allowed_slots:
            raise ValidationError(
                f"Slot {placement.slot!r} is not available for {spec.label}.", field="placements"
            )
        normalized.append(HeroPlacement(container=index, enabled=True, slot=placement.slot))

    if has_slot_collision(normalized):
        raise ValidationError(
            "Placement conflict: choose different placements for Container 1/2/3.",
            field="placements",
        )
    return normalized


def claimed_slots(placements: Iterable[HeroPlacement]) -> list[tuple[int, str]]:
    return sorted((p.container, p.slot) for p in placements if p.claims_slot)


class SlotLocks:
    """Process-wide mutexes keyed by (container, slot).

    Held around the transaction that clears previous occupants and writes
    the new one, so two concurrent saves cannot both end up enabled.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[tuple[int, str], threading.Lock] = {}

    def _lock_for(self, key: tuple[int, str]) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(key, threading.Lock())

    @contextmanager
    def hold(self, keys: Iterable[tuple[int, str]]) -> Iterator[None]:
        # Sorted acquisition order keeps overlapping saves deadlock-free.
        with ExitStack() as stack:
            for key in sorted(set(keys)):
                stack.enter_context(self._lock_for(key))
            yield


slot_locks = SlotLocks()
