"""Editorial domain core: article model, placement rules and homepage layout."""

from .errors import (
    ConflictError,
    NewsroomError,
    NotFoundError,
    PermanentAssetError,
    StoreError,
    TransientAssetError,
    UpstreamAssetError,
    ValidationError,
)

__all__ = [
    "ConflictError",
    "NewsroomError",
    "NotFoundError",
    "PermanentAssetError",
    "StoreError",
    "TransientAssetError",
    "UpstreamAssetError",
    "ValidationError",
]
