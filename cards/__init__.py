"""Social-card image generator."""

from .cache import CachedCard, FontCache, InMemoryCardStore, RedisCardStore, TTLCache, build_card_store
from .fetcher import AssetFetcher
from .placeholder import TRANSPARENT_PNG
from .service import CardSize, SocialCardService
from .wrap import wrap_title

__all__ = [
    "AssetFetcher",
    "CachedCard",
    "CardSize",
    "FontCache",
    "InMemoryCardStore",
    "RedisCardStore",
    "SocialCardService",
    "TRANSPARENT_PNG",
    "TTLCache",
    "build_card_store",
    "wrap_title",
]
