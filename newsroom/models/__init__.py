from .domain import (  # noqa: F401
    Article,
    ArticleStatus,
    CuratedGroupConfig,
    CuratedGroupType,
    HeroPlacement,
    SlotName,
)

__all__ = [
    "Article",
    "ArticleStatus",
    "CuratedGroupConfig",
    "CuratedGroupType",
    "HeroPlacement",
    "SlotName",
]
