"""Homepage layout engine: hero slots, curated groups and the composer."""

from .composer import build_homepage, canonical_order, compose_homepage
from .groups import (
    CURATED_GROUPS,
    CuratedGroupPlacement,
    resolve_curated_group,
    resolve_group_placements,
    validate_group_payload,
)
from .plan import RenderPlan
from .slots import HERO_CONTAINERS, has_slot_collision, resolve_slots, slot_locks

__all__ = [
    "CURATED_GROUPS",
    "CuratedGroupPlacement",
    "HERO_CONTAINERS",
    "RenderPlan",
    "build_homepage",
    "canonical_order",
    "compose_homepage",
    "has_slot_collision",
    "resolve_curated_group",
    "resolve_group_placements",
    "resolve_slots",
    "slot_locks",
    "validate_group_payload",
]
