"""Error taxonomy shared by the store adapter, layout engine and card renderer."""

from __future__ import annotations


class NewsroomError(Exception):
    """Base error. ``status_code`` is the HTTP-equivalent surfaced to clients."""

    status_code: int = 500

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class NotFoundError(NewsroomError):
    """Missing article, slug or id."""

    status_code = 404


class ValidationError(NewsroomError):
    """Rejected input: required fields, group size, position key, slot rules."""

    status_code = 400

    def __init__(self, detail: str, *, field: str | None = None) -> None:
        super().__init__(detail)
        self.field = field


class ConflictError(NewsroomError):
    """Uniqueness conflict the caller could not resolve automatically."""

    status_code = 409


class UpstreamAssetError(NewsroomError):
    """Cover image, logo or font could not be fetched."""

    status_code = 502

    def __init__(self, detail: str, *, url: str | None = None, upstream_status: int | None = None) -> None:
        super().__init__(detail)
        self.url = url
        self.upstream_status = upstream_status


class TransientAssetError(UpstreamAssetError):
    """Retryable upstream failure (429, 5xx, timeouts, connection resets)."""


class PermanentAssetError(UpstreamAssetError):
    """Non-retryable upstream failure (4xx other than 429, bad payload)."""


class StoreError(NewsroomError):
    """Unexpected persistence failure."""

    status_code = 500
