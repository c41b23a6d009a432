from __future__ import annotations

import logging
import threading
from functools import lru_cache
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session

from cards import AssetFetcher, CardSize, SocialCardService, TRANSPARENT_PNG
from newsroom.body_blocks import parse_body_to_blocks
from newsroom.categories import CATEGORIES, category_for_slug
from newsroom.errors import NewsroomError, NotFoundError, UpstreamAssetError
from newsroom.image_urls import is_http_url
from newsroom.layout import RenderPlan, build_homepage, slot_locks
from newsroom.layout.groups import CURATED_GROUPS, POSITION_LABELS
from newsroom.models import Article, CuratedGroupConfig, CuratedGroupType

from .database import get_session, session_dependency
from .models import (
    ArticleCreate,
    ArticleDetail,
    ArticleStatusFilter,
    ArticleUpdate,
    CategoryOut,
    CuratedGroupUpsert,
    PositionOption,
    SearchResponse,
)
from .repositories import (
    create_article,
    delete_article,
    delete_group_config,
    find_by_id,
    find_by_slug,
    find_published,
    get_group_config,
    list_articles,
    list_category_articles,
    list_group_configs,
    requested_claims,
    search_articles,
    update_article,
    upsert_group_config,
)
from .settings import get_portal_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

SessionDep = Annotated[Session, Depends(session_dependency)]

# Serialises curated-group writes so the cross-group check sees committed state.
_group_write_lock = threading.Lock()


def _http_error(exc: NewsroomError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.detail)


def _lookup_article(article_id: str) -> Optional[Article]:
    with get_session() as session:
        return find_by_id(session, article_id)


@lru_cache()
def get_card_service() -> SocialCardService:
    return SocialCardService.from_settings(_lookup_article)


def get_asset_fetcher() -> AssetFetcher:
    return get_card_service().fetcher


# --- articles --------------------------------------------------------------


@router.get("/articles", response_model=list[Article])
async def list_articles_route(
    session: SessionDep,
    status: ArticleStatusFilter | None = Query(default=None),
) -> list[Article]:
    try:
        return list_articles(session, status)
    except NewsroomError as exc:
        raise _http_error(exc) from exc


# Writes are sync handlers (run in the threadpool) so the slot locks can be
# held until the session commits.
@router.post("/articles", response_model=Article, status_code=201)
def create_article_route(payload: ArticleCreate) -> Article:
    try:
        with slot_locks.hold(requested_claims(payload.placements)), get_session() as session:
            return create_article(session, payload)
    except NewsroomError as exc:
        raise _http_error(exc) from exc


@router.get("/articles/id/{article_id}", response_model=Article)
async def get_article_by_id_route(article_id: str, session: SessionDep) -> Article:
    try:
        article = find_by_id(session, article_id)
    except NewsroomError as exc:
        raise _http_error(exc) from exc
    if article is None:
        raise HTTPException(status_code=404, detail="Article not found")
    return article


@router.get("/articles/slug/{slug}", response_model=ArticleDetail)
async def get_article_by_slug_route(slug: str, session: SessionDep) -> ArticleDetail:
    try:
        article = find_by_slug(session, slug.strip())
    except NewsroomError as exc:
        raise _http_error(exc) from exc
    if article is None:
        raise HTTPException(status_code=404, detail="Article not found")
    return ArticleDetail(**article.model_dump(), blocks=parse_body_to_blocks(article.body))


@router.patch("/articles/{article_id}", response_model=Article)
def update_article_route(article_id: str, payload: ArticleUpdate) -> Article:
    try:
        with slot_locks.hold(requested_claims(payload.placements)), get_session() as session:
            return update_article(session, article_id, payload)
    except NewsroomError as exc:
        raise _http_error(exc) from exc


@router.delete("/articles/{article_id}", status_code=204, response_model=None)
async def delete_article_route(article_id: str, session: SessionDep) -> None:
    try:
        delete_article(session, article_id)
    except NewsroomError as exc:
        raise _http_error(exc) from exc


# --- curated groups --------------------------------------------------------


@router.get("/curated-groups/{group}", response_model=Optional[CuratedGroupConfig])
async def get_curated_group_route(group: CuratedGroupType, session: SessionDep) -> Optional[CuratedGroupConfig]:
    try:
        return get_group_config(session, group)
    except NewsroomError as exc:
        raise _http_error(exc) from exc


@router.put("/curated-groups/{group}", response_model=CuratedGroupConfig)
def put_curated_group_route(group: CuratedGroupType, payload: CuratedGroupUpsert) -> CuratedGroupConfig:
    try:
        with _group_write_lock, get_session() as session:
            return upsert_group_config(session, group, payload.position, payload.article_ids)
    except NewsroomError as exc:
        raise _http_error(exc) from exc


@router.delete("/curated-groups/{group}", status_code=204, response_model=None)
def delete_curated_group_route(group: CuratedGroupType) -> None:
    try:
        with _group_write_lock, get_session() as session:
            delete_group_config(session, group)
    except NewsroomError as exc:
        raise _http_error(exc) from exc


@router.get("/curated-groups/{group}/positions", response_model=list[PositionOption])
async def list_group_positions_route(group: CuratedGroupType) -> list[PositionOption]:
    return [
        PositionOption(key=key, label=POSITION_LABELS[key])
        for key in CURATED_GROUPS[group].positions
    ]


# --- reader queries --------------------------------------------------------


@router.get("/homepage", response_model=RenderPlan)
async def homepage_route(session: SessionDep) -> RenderPlan:
    try:
        articles = find_published(session)
        configs = list_group_configs(session)
    except NewsroomError as exc:
        raise _http_error(exc) from exc
    return build_homepage(articles, configs)


@router.get("/search", response_model=SearchResponse)
async def search_route(
    session: SessionDep,
    q: str = Query(default=""),
    include_draft: bool = Query(default=False),
) -> SearchResponse:
    settings = get_portal_settings()
    query = " ".join(q.split())
    if len(query) < settings.search_min_query_length:
        return SearchResponse(query=query, count=0, results=[], message="Query too short")
    try:
        results = search_articles(
            session, query, include_draft=include_draft, limit=settings.search_max_results
        )
    except NewsroomError as exc:
        raise _http_error(exc) from exc
    return SearchResponse(query=query, count=len(results), results=results)


@router.get("/categories", response_model=list[CategoryOut])
async def list_categories_route() -> list[CategoryOut]:
    return [CategoryOut(slug=c.slug, label=c.label) for c in CATEGORIES]


@router.get("/categories/{slug}/articles", response_model=list[Article])
async def list_category_articles_route(slug: str, session: SessionDep) -> list[Article]:
    category = category_for_slug(slug)
    if category is None:
        raise HTTPException(status_code=404, detail="Category not found")
    try:
        return list_category_articles(session, category)
    except NewsroomError as exc:
        raise _http_error(exc) from exc


# --- images ----------------------------------------------------------------


@router.get("/image")
async def image_proxy_route(
    fetcher: Annotated[AssetFetcher, Depends(get_asset_fetcher)],
    url: str = Query(default=""),
) -> Response:
    url = url.strip()
    if not url:
        raise HTTPException(status_code=400, detail="Missing url")
    if not is_http_url(url):
        raise HTTPException(status_code=400, detail="Invalid url")

    try:
        asset = await fetcher.fetch(url)
    except UpstreamAssetError as exc:
        cause = f"upstream {exc.upstream_status}" if exc.upstream_status else "exception"
        logger.warning("image_proxy.fallback", extra={"url": url, "cause": cause, "reason": exc.detail})
        return Response(
            content=TRANSPARENT_PNG,
            media_type="image/png",
            headers={
                "cache-control": "public, max-age=60, s-maxage=60",
                "x-image-proxy-fallback": f"1 ({cause})",
            },
        )
    return Response(
        content=asset.content,
        media_type=asset.content_type,
        headers={"cache-control": "public, max-age=300"},
    )


@router.get("/social-card")
async def social_card_route(
    service: Annotated[SocialCardService, Depends(get_card_service)],
    id: str = Query(default=""),
    size: str = Query(default="full"),
) -> Response:
    try:
        card_size = CardSize.parse(size)
        card, hit = await service.render_social_card(id, card_size)
    except NewsroomError as exc:
        if isinstance(exc, UpstreamAssetError):
            logger.warning("cards.render.failed", extra={"article_id": id, "reason": exc.detail, "url": exc.url})
        elif not isinstance(exc, NotFoundError):
            logger.info("cards.render.rejected", extra={"article_id": id, "reason": exc.detail})
        return PlainTextResponse(exc.detail, status_code=exc.status_code)
    return Response(
        content=card.content,
        media_type=card.content_type,
        headers={
            "cache-control": "public, max-age=86400, s-maxage=86400",
            "x-card-cache": "HIT" if hit else "MISS",
        },
    )
