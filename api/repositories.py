"""Article store adapter over SQLAlchemy.

Every function takes the caller's ``Session`` and only flushes; the session
context in ``api.database`` owns commit and rollback, so a placement write
and the slot clearing it triggers land in a single transaction.
"""

from __future__ import annotations

import functools
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional, TypeVar

from sqlalchemy import String, cast, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from newsroom.categories import DEFAULT_CATEGORY, Category, canonical_category
from newsroom.errors import NotFoundError, StoreError, ValidationError
from newsroom.image_urls import normalize_image_url
from newsroom.layout.groups import validate_group_payload
from newsroom.layout.slots import SLOT_LABELS, claimed_slots, normalize_placements
from newsroom.models import Article, CuratedGroupConfig, CuratedGroupType, HeroPlacement
from newsroom.slugs import disambiguate_slug, slugify

from . import db_models
from .models import ArticleCreate, ArticleUpdate, HeroPlacementIn, to_hero_placements

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _store_errors(func_: F) -> F:
    @functools.wraps(func_)
    def wrapper(*args, **kwargs):
        try:
            return func_(*args, **kwargs)
        except SQLAlchemyError as exc:
            logger.error("store.failed", extra={"operation": func_.__name__, "error": str(exc)})
            raise StoreError(f"Store operation {func_.__name__} failed") from exc

    return wrapper  # type: ignore[return-value]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _stored_slot(value: Optional[str]) -> Optional[str]:
    # Unknown names from older rows read as "no slot".
    return value if value in SLOT_LABELS else None


def to_article(row: db_models.Article) -> Article:
    placements = [
        HeroPlacement(
            container=index,
            enabled=bool(getattr(row, enabled_col)),
            slot=_stored_slot(getattr(row, slot_col)) if getattr(row, enabled_col) else None,
        )
        for index, (enabled_col, slot_col) in db_models.HERO_COLUMNS.items()
    ]
    return Article(
        id=row.id,
        title=row.title,
        slug=row.slug,
        summary=row.summary,
        body=row.body or "",
        category=row.category or DEFAULT_CATEGORY,
        tags=list(row.tags or []),
        cover_image=row.cover_image,
        featured=bool(row.featured),
        breaking=bool(row.breaking),
        ticker=bool(row.ticker),
        placements=placements,
        status="published" if row.status == "published" else "draft",
        published_at=row.published_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def to_group_config(row: db_models.CuratedGroupConfigRow) -> CuratedGroupConfig:
    return CuratedGroupConfig(
        group=CuratedGroupType(row.group),
        position=row.position,
        article_ids=list(row.article_ids or []),
        updated_at=row.updated_at,
    )


# --- reads -----------------------------------------------------------------


def _effective_date():
    return func.coalesce(db_models.Article.published_at, db_models.Article.created_at)


@_store_errors
def list_articles(session: Session, status: Optional[str] = None) -> list[Article]:
    stmt = select(db_models.Article).order_by(
        db_models.Article.created_at.desc(), db_models.Article.id.desc()
    )
    if status:
        stmt = stmt.where(db_models.Article.status == status)
    return [to_article(row) for row in session.scalars(stmt).all()]


@_store_errors
def find_published(session: Session) -> list[Article]:
    stmt = select(db_models.Article).where(
        db_models.Article.status == "published",
        db_models.Article.slug != "",
    )
    return [to_article(row) for row in session.scalars(stmt).all()]


@_store_errors
def find_by_id(session: Session, article_id: str) -> Optional[Article]:
    row = session.get(db_models.Article, article_id)
    return to_article(row) if row is not None else None


@_store_errors
def find_by_slug(session: Session, slug: str) -> Optional[Article]:
    row = session.scalars(select(db_models.Article).where(db_models.Article.slug == slug)).first()
    return to_article(row) if row is not None else None


@_store_errors
def search_articles(session: Session, query: str, *, include_draft: bool, limit: int) -> list[Article]:
    like = f"%{query.lower()}%"
    columns = (
        db_models.Article.title,
        db_models.Article.summary,
        db_models.Article.body,
        db_models.Article.category,
    )
    stmt = (
        select(db_models.Article)
        .where(
            or_(
                *(func.lower(func.coalesce(col, "")).like(like) for col in columns),
                func.lower(cast(db_models.Article.tags, String)).like(like),
            )
        )
        .order_by(_effective_date().desc(), db_models.Article.id.desc())
        .limit(limit)
    )
    if not include_draft:
        stmt = stmt.where(db_models.Article.status == "published")
    return [to_article(row) for row in session.scalars(stmt).all()]


@_store_errors
def list_category_articles(session: Session, category: Category) -> list[Article]:
    stmt = (
        select(db_models.Article)
        .where(
            db_models.Article.status == "published",
            db_models.Article.slug != "",
            func.lower(db_models.Article.category) == category.label.lower(),
        )
        .order_by(_effective_date().desc(), db_models.Article.id.desc())
    )
    return [to_article(row) for row in session.scalars(stmt).all()]


# --- writes ----------------------------------------------------------------


def _clean_tags(tags: Iterable[Any]) -> list[str]:
    return [tag.strip() for tag in tags if isinstance(tag, str) and tag.strip()]


def _require_text(title: str, summary: str, body: str) -> None:
    if not (title and summary and body):
        raise ValidationError("Title, summary and body are required.")


def _category(value: Optional[str]) -> str:
    label = canonical_category(value)
    if label is None:
        raise ValidationError(f"Unknown category: {value.strip()}", field="category")
    return label


def _slug_taken(session: Session, except_id: Optional[str]) -> Callable[[str], bool]:
    def is_taken(candidate: str) -> bool:
        stmt = select(db_models.Article.id).where(db_models.Article.slug == candidate)
        if except_id is not None:
            stmt = stmt.where(db_models.Article.id != except_id)
        return session.scalars(stmt).first() is not None

    return is_taken


def _id_hex(article_id: str) -> str:
    return article_id.rsplit("_", 1)[-1]


def _unique_slug(session: Session, raw: str, article_id: str) -> str:
    return disambiguate_slug(
        slugify(raw),
        _slug_taken(session, article_id),
        seed=_id_hex(article_id),
        fallback=lambda: _id_hex(db_models.new_article_id()),
    )


def _apply_placements(row: db_models.Article, placements: list[HeroPlacement]) -> None:
    for placement in placements:
        enabled_col, slot_col = db_models.HERO_COLUMNS[placement.container]
        setattr(row, enabled_col, placement.enabled)
        setattr(row, slot_col, placement.slot if placement.enabled else None)


def clear_slot_occupants(session: Session, container: int, slot: str, except_id: str) -> int:
    """Unpin every other article holding ``slot`` in ``container``.

    Cleared rows keep their ``updated_at`` so their other placements do not
    start winning recency ties.
    """
    enabled_col, slot_col = db_models.HERO_COLUMNS[container]
    table = db_models.Article
    result = session.execute(
        update(table)
        .where(
            getattr(table, enabled_col) == True,  # noqa: E712
            getattr(table, slot_col) == slot,
            table.id != except_id,
        )
        .values({enabled_col: False, slot_col: None, "updated_at": table.updated_at})
        .execution_options(synchronize_session=False)
    )
    if result.rowcount:
        logger.info(
            "articles.slot.cleared",
            extra={"container": container, "slot": slot, "cleared": result.rowcount, "claimant": except_id},
        )
    return result.rowcount or 0


def _claim_slots(session: Session, article_id: str, placements: list[HeroPlacement]) -> None:
    for placement in placements:
        if placement.claims_slot:
            clear_slot_occupants(session, placement.container, placement.slot, article_id)


@_store_errors
def create_article(session: Session, payload: ArticleCreate) -> Article:
    title = payload.title.strip()
    summary = payload.summary.strip()
    body = payload.body.strip()
    _require_text(title, summary, body)
    placements = normalize_placements(to_hero_placements(payload.placements))

    now = _utcnow()
    article_id = db_models.new_article_id()
    status = "published" if (payload.status or "").strip().lower() == "published" else "draft"

    row = db_models.Article(
        id=article_id,
        title=title,
        slug=_unique_slug(session, payload.slug or title, article_id),
        summary=summary,
        body=body,
        category=_category(payload.category),
        tags=_clean_tags(payload.tags),
        cover_image=normalize_image_url(payload.cover_image) or None,
        featured=payload.featured,
        breaking=payload.breaking,
        ticker=payload.ticker,
        status=status,
        published_at=now if status == "published" else None,
        created_at=now,
        updated_at=now,
    )
    _apply_placements(row, placements)
    _claim_slots(session, article_id, placements)
    session.add(row)
    session.flush()
    logger.info("articles.created", extra={"article_id": article_id, "slug": row.slug, "status": status})
    return to_article(row)


@_store_errors
def update_article(session: Session, article_id: str, payload: ArticleUpdate) -> Article:
    row = session.get(db_models.Article, article_id)
    if row is None:
        raise NotFoundError("Article not found")
    changes = payload.model_dump(exclude_unset=True)

    title = (changes["title"] if changes.get("title") is not None else row.title).strip()
    summary = (changes["summary"] if changes.get("summary") is not None else row.summary).strip()
    body = (changes["body"] if changes.get("body") is not None else row.body or "").strip()
    _require_text(title, summary, body)

    placements = None
    if payload.placements is not None:
        placements = normalize_placements(to_hero_placements(payload.placements))
    category = _category(payload.category) if "category" in changes else None

    now = _utcnow()
    row_title = row.title
    row.title, row.summary, row.body = title, summary, body
    explicit_slug = (changes.get("slug") or "").strip()
    if explicit_slug:
        row.slug = _unique_slug(session, explicit_slug, article_id)
    elif title != row_title:
        row.slug = _unique_slug(session, title, article_id)
    if category is not None:
        row.category = category
    if payload.tags is not None:
        row.tags = _clean_tags(payload.tags)
    if "cover_image" in changes:
        row.cover_image = normalize_image_url(payload.cover_image) or None
    for flag in ("featured", "breaking", "ticker"):
        if changes.get(flag) is not None:
            setattr(row, flag, bool(changes[flag]))

    if "status" in changes:
        row.status = "published" if (payload.status or "").strip().lower() == "published" else "draft"
    if row.status == "published":
        row.published_at = row.published_at or payload.published_at or now
    else:
        row.published_at = None

    # Stored placements stand unless the payload resends them.
    if placements is not None:
        _apply_placements(row, placements)
        _claim_slots(session, article_id, placements)
    row.updated_at = now
    session.flush()
    logger.info("articles.updated", extra={"article_id": article_id, "slug": row.slug, "status": row.status})
    return to_article(row)


@_store_errors
def delete_article(session: Session, article_id: str) -> None:
    row = session.get(db_models.Article, article_id)
    if row is None:
        raise NotFoundError("Article not found")
    session.delete(row)
    session.flush()
    logger.info("articles.deleted", extra={"article_id": article_id})


def requested_claims(placements: Optional[list[HeroPlacementIn]]) -> list[tuple[int, str]]:
    """(container, slot) pairs a write payload asks for, before validation."""
    return sorted(set(claimed_slots(to_hero_placements(placements or []))))


# --- curated groups --------------------------------------------------------


@_store_errors
def list_group_configs(session: Session) -> dict[CuratedGroupType, Optional[CuratedGroupConfig]]:
    configs: dict[CuratedGroupType, Optional[CuratedGroupConfig]] = {g: None for g in CuratedGroupType}
    for row in session.scalars(select(db_models.CuratedGroupConfigRow)).all():
        try:
            group = CuratedGroupType(row.group)
        except ValueError:
            logger.warning("groups.unknown", extra={"group": row.group})
            continue
        configs[group] = to_group_config(row)
    return configs


@_store_errors
def get_group_config(session: Session, group: CuratedGroupType) -> Optional[CuratedGroupConfig]:
    row = session.get(db_models.CuratedGroupConfigRow, group.value)
    return to_group_config(row) if row is not None else None


@_store_errors
def upsert_group_config(
    session: Session, group: CuratedGroupType, position: Any, article_ids: Any
) -> CuratedGroupConfig:
    others = [config for g, config in list_group_configs(session).items() if g != group and config]
    position, ids = validate_group_payload(group, position, article_ids, other_configs=others)

    row = session.get(db_models.CuratedGroupConfigRow, group.value)
    if row is None:
        row = db_models.CuratedGroupConfigRow(group=group.value)
        session.add(row)
    row.position = position
    row.article_ids = ids
    row.updated_at = _utcnow()
    session.flush()
    logger.info("groups.saved", extra={"group": group.value, "position": position, "count": len(ids)})
    return to_group_config(row)


@_store_errors
def delete_group_config(session: Session, group: CuratedGroupType) -> None:
    row = session.get(db_models.CuratedGroupConfigRow, group.value)
    if row is not None:
        session.delete(row)
        session.flush()
        logger.info("groups.deleted", extra={"group": group.value})
