"""Upstream asset fetching with bounded retry, plus data-URL encoding."""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

import httpx

from newsroom.errors import PermanentAssetError, TransientAssetError, UpstreamAssetError

from .cache import TTLCache
from .settings import DEFAULT_USER_AGENT, CardSettings

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})

SleepFn = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class FetchedAsset:
    url: str
    content: bytes
    content_type: str


class AssetFetcher:
    """GET binary assets; 429/5xx and network errors are retried.

    Attempt ``n`` that fails transiently waits ``backoff_seconds * n`` before
    the next one. Other 4xx responses fail on the spot.
    """

    def __init__(
        self,
        *,
        max_attempts: int = 4,
        backoff_seconds: float = 0.35,
        timeout_seconds: float = 10.0,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._max_attempts = max(1, max_attempts)
        self._backoff = backoff_seconds
        self._timeout = timeout_seconds
        self._user_agent = user_agent
        self._transport = transport
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings: CardSettings, **overrides) -> "AssetFetcher":
        options = {
            "max_attempts": settings.asset_fetch_max_attempts,
            "backoff_seconds": settings.asset_fetch_backoff_seconds,
            "timeout_seconds": settings.asset_fetch_timeout_seconds,
            "user_agent": settings.asset_user_agent,
        }
        options.update(overrides)
        return cls(**options)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self._timeout),
            follow_redirects=True,
            headers={"User-Agent": self._user_agent},
            transport=self._transport,
        )

    async def fetch(self, url: str) -> FetchedAsset:
        attempt = 0
        while True:
            attempt += 1
            try:
                return await self._fetch_once(url)
            except TransientAssetError as exc:
                if attempt >= self._max_attempts:
                    logger.warning(
                        "assets.fetch.exhausted",
                        extra={"url": url, "attempts": attempt, "upstream_status": exc.upstream_status},
                    )
                    raise
                delay = self._backoff * attempt
                logger.info(
                    "assets.fetch.retry",
                    extra={"url": url, "attempt": attempt, "delay_s": delay, "upstream_status": exc.upstream_status},
                )
                await self._sleep(delay)

    async def _fetch_once(self, url: str) -> FetchedAsset:
        try:
            async with self._client() as client:
                resp = await client.get(url)
        except (httpx.UnsupportedProtocol, httpx.InvalidURL) as exc:
            raise PermanentAssetError("Unsupported image URL", url=url) from exc
        except httpx.TimeoutException as exc:
            raise TransientAssetError("Image fetch timed out", url=url) from exc
        except httpx.HTTPError as exc:
            raise TransientAssetError(f"Image fetch failed: {exc.__class__.__name__}", url=url) from exc

        if resp.status_code in RETRYABLE_STATUS:
            raise TransientAssetError(
                f"Image fetch failed: {resp.status_code}", url=url, upstream_status=resp.status_code
            )
        if resp.status_code >= 400:
            raise PermanentAssetError(
                f"Image fetch failed: {resp.status_code}", url=url, upstream_status=resp.status_code
            )

        content_type = resp.headers.get("content-type") or "application/octet-stream"
        return FetchedAsset(url=url, content=resp.content, content_type=content_type)


def to_data_url(content: bytes, content_type: str) -> str:
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{content_type};base64,{encoded}"


def decode_data_url(data_url: str) -> tuple[str, bytes]:
    """Inverse of ``to_data_url``; raises ``PermanentAssetError`` on garbage."""
    header, sep, payload = data_url.partition(",")
    if not sep or not header.startswith("data:") or not header.endswith(";base64"):
        raise PermanentAssetError("Malformed data URL")
    content_type = header[len("data:"):-len(";base64")] or "application/octet-stream"
    try:
        return content_type, base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise PermanentAssetError("Malformed data URL") from exc


async def fetch_as_data_url(
    fetcher: AssetFetcher,
    cache: TTLCache[str, str],
    url: str,
    *,
    cache_key: str,
    default_content_type: str = "image/png",
) -> str:
    hit = cache.get(cache_key)
    if hit is not None:
        return hit
    asset = await fetcher.fetch(url)
    content_type = asset.content_type
    if content_type == "application/octet-stream":
        content_type = default_content_type
    data_url = to_data_url(asset.content, content_type)
    cache.set(cache_key, data_url)
    return data_url


async def fetch_optional(fetcher: AssetFetcher, url: Optional[str]) -> Optional[bytes]:
    """Best-effort fetch used for static fonts: any failure yields ``None``."""
    if not url:
        return None
    try:
        return (await fetcher.fetch(url)).content
    except UpstreamAssetError as exc:
        logger.warning("assets.font.unavailable", extra={"url": url, "reason": exc.detail})
        return None
