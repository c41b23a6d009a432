"""Fixed category vocabulary, in homepage display order."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

CategoryLabel = Literal[
    "World",
    "India",
    "Business",
    "Technology",
    "Entertainment",
    "Sports",
    "Health",
    "Lifestyle",
]

DEFAULT_CATEGORY: CategoryLabel = "World"


@dataclass(frozen=True)
class Category:
    slug: str
    label: str

    @property
    def section_key(self) -> str:
        """Placement key for blocks rendered after this category's section."""
        return f"after_{self.label.lower()}_section"


CATEGORIES: tuple[Category, ...] = (
    Category("world", "World"),
    Category("india", "India"),
    Category("business", "Business"),
    Category("technology", "Technology"),
    Category("entertainment", "Entertainment"),
    Category("sports", "Sports"),
    Category("health", "Health"),
    Category("lifestyle", "Lifestyle"),
)

CATEGORY_LABELS: tuple[str, ...] = tuple(c.label for c in CATEGORIES)


def canonical_category(value: str | None) -> str | None:
    """Stored label for ``value`` (case-insensitive); blank gives the default, unknown gives None."""
    raw = (value or "").strip()
    if not raw:
        return DEFAULT_CATEGORY
    for label in CATEGORY_LABELS:
        if label.lower() == raw.lower():
            return label
    return None


def category_for_slug(slug: str) -> Category | None:
    normalized = (slug or "").strip().lower()
    for category in CATEGORIES:
        if category.slug == normalized:
            return category
    return None
