"""Social-card rendering service: validation, caching and asset assembly."""

from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum
from typing import Callable, Optional, Tuple

from newsroom.errors import NotFoundError, PermanentAssetError, ValidationError
from newsroom.image_urls import is_http_url, normalize_image_url
from newsroom.models import Article

from .cache import CachedCard, CardStore, FontCache, TTLCache, build_card_store
from .fetcher import AssetFetcher, decode_data_url, fetch_as_data_url, fetch_optional
from .render import CardFonts, render_card
from .settings import CardSettings, get_card_settings
from .wrap import wrap_title

logger = logging.getLogger(__name__)

ArticleLookup = Callable[[str], Optional[Article]]
Renderer = Callable[..., bytes]

CARD_CONTENT_TYPE = "image/png"


class CardSize(str, Enum):
    FULL = "full"
    PREVIEW = "preview"

    @property
    def pixels(self) -> int:
        return 1080 if self is CardSize.FULL else 540

    @classmethod
    def parse(cls, value: Optional[str]) -> "CardSize":
        raw = (value or "").strip().lower()
        if raw in ("", "full", "1080"):
            return cls.FULL
        if raw in ("preview", "540"):
            return cls.PREVIEW
        raise ValidationError("Invalid size", field="size")


class SocialCardService:
    """Turns an article id into a cached PNG card.

    ``lookup`` is a blocking store read and runs in a worker thread. The
    rendered-card store, the data-URL cache and the font cache live for the
    life of the service, which is one per process in the API.
    """

    def __init__(
        self,
        *,
        lookup: ArticleLookup,
        fetcher: AssetFetcher,
        card_store: CardStore,
        asset_cache: TTLCache[str, str],
        font_cache: Optional[FontCache] = None,
        brand_logo_url: Optional[str] = None,
        font_regular_url: Optional[str] = None,
        font_italic_url: Optional[str] = None,
        renderer: Renderer = render_card,
    ) -> None:
        self._lookup = lookup
        self._fetcher = fetcher
        self._card_store = card_store
        self._asset_cache = asset_cache
        self._font_cache = font_cache or FontCache()
        self._brand_logo_url = brand_logo_url
        self._font_urls = {"regular": font_regular_url, "italic": font_italic_url}
        self._renderer = renderer

    @classmethod
    def from_settings(
        cls,
        lookup: ArticleLookup,
        settings: Optional[CardSettings] = None,
        **overrides,
    ) -> "SocialCardService":
        cfg = settings or get_card_settings()
        options = {
            "fetcher": AssetFetcher.from_settings(cfg),
            "card_store": build_card_store(
                redis_url=cfg.card_redis_url,
                ttl_seconds=cfg.card_cache_ttl_seconds,
                max_entries=cfg.card_cache_max_entries,
                logger=logger,
            ),
            "asset_cache": TTLCache(
                ttl_seconds=cfg.asset_cache_ttl_seconds,
                max_entries=cfg.asset_cache_max_entries,
            ),
            "brand_logo_url": cfg.brand_logo_url,
            "font_regular_url": cfg.font_regular_url,
            "font_italic_url": cfg.font_italic_url,
        }
        options.update(overrides)
        return cls(lookup=lookup, **options)

    @property
    def card_store(self) -> CardStore:
        return self._card_store

    @property
    def fetcher(self) -> AssetFetcher:
        return self._fetcher

    async def render_social_card(self, article_id: Optional[str], size: CardSize) -> Tuple[CachedCard, bool]:
        """Return ``(card, cache_hit)``.

        Raises ``ValidationError`` for a missing id or cover image,
        ``NotFoundError`` for an unknown article and ``UpstreamAssetError``
        when the cover or logo cannot be fetched or decoded.
        """
        article_id = (article_id or "").strip()
        if not article_id:
            raise ValidationError("Missing id", field="id")

        key = f"{article_id}::{size.value}"
        cached = self._card_store.get(key)
        if cached is not None:
            logger.info("cards.render.hit", extra={"article_id": article_id, "size": size.value})
            return cached, True

        article = await asyncio.to_thread(self._lookup, article_id)
        if article is None:
            raise NotFoundError("Article not found")

        cover_url = normalize_image_url(article.cover_image)
        if not cover_url:
            raise ValidationError("No coverImage", field="cover_image")

        started = time.perf_counter()
        lines = wrap_title(article.title.strip())
        cover_bytes, logo_bytes = await asyncio.gather(
            self._asset_bytes(cover_url, f"cover:{cover_url}"),
            self._asset_bytes(self._brand_logo_url, f"logo:{self._brand_logo_url}"),
        )
        fonts = await self._fonts()

        content = self._renderer(cover_bytes, lines, size=size.pixels, logo_bytes=logo_bytes, fonts=fonts)
        card = CachedCard(content=content, content_type=CARD_CONTENT_TYPE)
        self._card_store.set(key, card)
        logger.info(
            "cards.render.miss",
            extra={
                "article_id": article_id,
                "size": size.value,
                "lines": len(lines),
                "bytes": len(content),
                "elapsed_ms": round((time.perf_counter() - started) * 1000, 1),
            },
        )
        return card, False

    async def _asset_bytes(self, url: Optional[str], cache_key: str) -> Optional[bytes]:
        if not url:
            return None
        if url.startswith("data:"):
            return decode_data_url(url)[1]
        if not is_http_url(url):
            raise PermanentAssetError("Unsupported image URL", url=url)
        data_url = await fetch_as_data_url(self._fetcher, self._asset_cache, url, cache_key=cache_key)
        return decode_data_url(data_url)[1]

    async def _fonts(self) -> CardFonts:
        if not self._font_cache.attempted:
            names = list(self._font_urls)
            loaded = await asyncio.gather(*(fetch_optional(self._fetcher, self._font_urls[n]) for n in names))
            self._font_cache.fill(dict(zip(names, loaded)))
        return CardFonts(regular=self._font_cache.get("regular"), italic=self._font_cache.get("italic"))

