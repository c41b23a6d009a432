from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, DateTime, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _prefixed_id(prefix: str) -> str:
    from uuid import uuid4

    return f"{prefix}_{uuid4().hex[:12]}"


def new_article_id() -> str:
    return _prefixed_id("art")


class Article(Base):
    __tablename__ = "article"

    id: Mapped[str] = mapped_column(String(40), primary_key=True, default=new_article_id)
    title: Mapped[str] = mapped_column(String(512))
    slug: Mapped[str] = mapped_column(String(160), unique=True, index=True)
    summary: Mapped[str] = mapped_column(String(4000))
    body: Mapped[str] = mapped_column(Text, default="")
    category: Mapped[str] = mapped_column(String(32), index=True, default="World")
    tags: Mapped[list[str]] = mapped_column(JSON, default=list)
    cover_image: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    featured: Mapped[bool] = mapped_column(Boolean, default=False)
    breaking: Mapped[bool] = mapped_column(Boolean, default=False)
    ticker: Mapped[bool] = mapped_column(Boolean, default=False, server_default="0")
    hero1_enabled: Mapped[bool] = mapped_column(Boolean, default=False, server_default="0")
    hero1_slot: Mapped[str | None] = mapped_column(String(32), nullable=True)
    hero2_enabled: Mapped[bool] = mapped_column(Boolean, default=False, server_default="0")
    hero2_slot: Mapped[str | None] = mapped_column(String(32), nullable=True)
    hero3_enabled: Mapped[bool] = mapped_column(Boolean, default=False, server_default="0")
    hero3_slot: Mapped[str | None] = mapped_column(String(32), nullable=True)
    status: Mapped[str] = mapped_column(String(12), default="draft", index=True)
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, index=True)
    # Python-side timestamps: slot resolution orders by updated_at and needs
    # sub-second precision, which SQLite's CURRENT_TIMESTAMP lacks.
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


# container number -> (enabled column, slot column)
HERO_COLUMNS: dict[int, tuple[str, str]] = {
    1: ("hero1_enabled", "hero1_slot"),
    2: ("hero2_enabled", "hero2_slot"),
    3: ("hero3_enabled", "hero3_slot"),
}


class CuratedGroupConfigRow(Base):
    __tablename__ = "curated_group_config"

    group: Mapped[str] = mapped_column(String(16), primary_key=True)
    position: Mapped[str] = mapped_column(String(64))
    article_ids: Mapped[list[str]] = mapped_column(JSON, default=list)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
