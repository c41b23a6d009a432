"""URL slug helpers."""

from __future__ import annotations

import re
import unicodedata
from typing import Callable

_NON_ALNUM = re.compile(r"[^a-z0-9]+")

SLUG_MAX_LENGTH = 96


def slugify(value: str) -> str:
    """Lower-case ASCII slug; accents are folded, everything else becomes ``-``."""
    folded = unicodedata.normalize("NFKD", value or "")
    folded = folded.encode("ascii", "ignore").decode("ascii").lower()
    slug = _NON_ALNUM.sub("-", folded).strip("-")
    slug = slug[:SLUG_MAX_LENGTH].rstrip("-")
    return slug or "article"


def disambiguate_slug(
    slug: str,
    is_taken: Callable[[str], bool],
    *,
    seed: str,
    fallback: Callable[[], str],
) -> str:
    """Return ``slug`` if free, else ``<slug>-<6 hex>``.

    The first candidate suffix is taken from ``seed`` (the new article's id
    hex) so that a given collision always yields the same variant; further
    candidates come from ``fallback``.
    """
    if not is_taken(slug):
        return slug
    candidate = f"{slug}-{seed[:6]}"
    while is_taken(candidate):
        candidate = f"{slug}-{fallback()[:6]}"
    return candidate
