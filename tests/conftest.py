from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from newsroom.models import Article, HeroPlacement  # noqa: E402

BASE_TIME = datetime(2025, 6, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_article():
    """Build domain articles; ``minutes`` offsets every timestamp from a fixed base."""

    def _make(
        article_id: str,
        *,
        minutes: int = 0,
        updated_minutes: int | None = None,
        category: str = "World",
        status: str = "published",
        slug: str | None = None,
        placements: dict[int, str] | None = None,
        **fields,
    ) -> Article:
        stamp = BASE_TIME + timedelta(minutes=minutes)
        updated = BASE_TIME + timedelta(minutes=updated_minutes if updated_minutes is not None else minutes)
        return Article(
            id=article_id,
            title=fields.pop("title", f"Title {article_id}"),
            slug=slug if slug is not None else f"slug-{article_id}",
            summary=fields.pop("summary", f"Summary {article_id}"),
            body=fields.pop("body", "Body"),
            category=category,
            status=status,
            published_at=stamp if status == "published" else None,
            created_at=stamp,
            updated_at=updated,
            placements=[
                HeroPlacement(container=n, enabled=True, slot=s) for n, s in (placements or {}).items()
            ],
            **fields,
        )

    return _make
