#!/usr/bin/env python3
"""Load a handful of demo articles into an empty database.

Skips entirely when any article already exists, so it is safe to rerun.
Environment: DATABASE_URL (default: SQLite under ./var/storage).
"""

from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from sqlalchemy import func, select  # noqa: E402

from api import db_models  # noqa: E402
from api.database import get_session, init_db  # noqa: E402
from api.models import ArticleCreate, HeroPlacementIn  # noqa: E402
from api.repositories import create_article  # noqa: E402

DEMO_ARTICLES: list[ArticleCreate] = [
    ArticleCreate(
        title="India GDP growth beats forecasts in the second quarter",
        summary="Stronger manufacturing and services output lifted quarterly growth above consensus.",
        body="## Key numbers\nGrowth came in ahead of economist estimates.\n[takeaways]\n- Manufacturing rebounded\n- Services stayed firm\n[/takeaways]",
        category="India",
        tags=["economy", "gdp"],
        featured=True,
        ticker=True,
        status="published",
        placements=[HeroPlacementIn(container=1, enabled=True, slot="after_top_stories")],
    ),
    ArticleCreate(
        title="Monsoon rains return to the western coast",
        summary="Forecasters expect heavy rainfall through the weekend.",
        body="Coastal districts have been placed on alert.\n>quote: Stay indoors during peak hours.",
        category="India",
        tags=["weather"],
        breaking=True,
        status="published",
        placements=[HeroPlacementIn(container=2, enabled=True, slot="after_india_section")],
    ),
    ArticleCreate(
        title="Global markets steady ahead of central bank decisions",
        summary="Investors held positions as several central banks prepare rate announcements.",
        body="Equities were mixed in early trade.\n---\nBond yields edged lower.",
        category="Business",
        tags=["markets"],
        featured=True,
        status="published",
    ),
    ArticleCreate(
        title="New smartphone chip promises longer battery life",
        summary="The chipmaker says efficiency gains reach thirty percent.",
        body="1. Smaller process node\n2. Improved power management",
        category="Technology",
        tags=["chips", "mobile"],
        status="published",
        placements=[HeroPlacementIn(container=3, enabled=True, slot="after_insta_strip")],
    ),
    ArticleCreate(
        title="Summit ends with joint statement on climate finance",
        summary="Leaders agreed on a framework for funding adaptation projects.",
        body="Delegates from forty countries signed the declaration.",
        category="World",
        tags=["climate"],
        ticker=True,
        status="published",
    ),
    ArticleCreate(
        title="Draft: festival season travel guide",
        summary="Where to go and how to book early.",
        body="- Book trains early\n- Compare fares",
        category="Lifestyle",
        status="draft",
    ),
]


def main() -> int:
    init_db()
    with get_session() as session:
        existing = session.scalar(select(func.count()).select_from(db_models.Article)) or 0
        if existing:
            print(f"[seed_articles] skipped: {existing} articles already present")
            return 0
        for payload in DEMO_ARTICLES:
            article = create_article(session, payload)
            print(f"[seed_articles] created {article.id} slug={article.slug}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
