from __future__ import annotations

import asyncio

import httpx
import pytest

pytest.importorskip("pytest_httpx")

from cards.cache import TTLCache
from cards.fetcher import AssetFetcher, decode_data_url, fetch_as_data_url, fetch_optional, to_data_url
from newsroom.errors import PermanentAssetError, TransientAssetError

COVER = "https://images.example.com/cover.jpg"


def _fetcher(delays: list[float], **kwargs) -> AssetFetcher:
    async def fake_sleep(delay: float) -> None:
        delays.append(delay)

    options = {"max_attempts": 4, "backoff_seconds": 0.35, "sleep": fake_sleep}
    options.update(kwargs)
    return AssetFetcher(**options)


def test_fetch_retries_transient_status_with_linear_backoff(httpx_mock):
    httpx_mock.add_response(method="GET", url=COVER, status_code=503)
    httpx_mock.add_response(method="GET", url=COVER, status_code=429)
    httpx_mock.add_response(method="GET", url=COVER, content=b"jpeg-bytes", headers={"content-type": "image/jpeg"})
    delays: list[float] = []

    asset = asyncio.run(_fetcher(delays).fetch(COVER))

    assert asset.content == b"jpeg-bytes"
    assert asset.content_type == "image/jpeg"
    assert delays == pytest.approx([0.35, 0.70])


def test_fetch_does_not_retry_client_errors(httpx_mock):
    httpx_mock.add_response(method="GET", url=COVER, status_code=404)
    delays: list[float] = []

    with pytest.raises(PermanentAssetError) as excinfo:
        asyncio.run(_fetcher(delays).fetch(COVER))

    assert excinfo.value.upstream_status == 404
    assert excinfo.value.detail == "Image fetch failed: 404"
    assert delays == []


def test_fetch_gives_up_after_max_attempts(httpx_mock):
    httpx_mock.add_response(method="GET", url=COVER, status_code=500)
    httpx_mock.add_response(method="GET", url=COVER, status_code=502)
    delays: list[float] = []

    with pytest.raises(TransientAssetError) as excinfo:
        asyncio.run(_fetcher(delays, max_attempts=2).fetch(COVER))

    assert excinfo.value.upstream_status == 502
    assert excinfo.value.status_code == 502
    assert delays == pytest.approx([0.35])


def test_fetch_retries_timeouts(httpx_mock):
    httpx_mock.add_exception(httpx.ReadTimeout("slow upstream"), method="GET", url=COVER)
    httpx_mock.add_response(method="GET", url=COVER, content=b"ok")
    delays: list[float] = []

    asset = asyncio.run(_fetcher(delays).fetch(COVER))

    assert asset.content == b"ok"
    assert asset.content_type == "application/octet-stream"
    assert len(delays) == 1


def test_fetch_as_data_url_hits_cache_on_second_call(httpx_mock):
    httpx_mock.add_response(method="GET", url=COVER, content=b"\x89PNG", headers={"content-type": "image/png"})
    cache: TTLCache[str, str] = TTLCache(ttl_seconds=60, max_entries=5)
    fetcher = _fetcher([])

    async def run_twice():
        first = await fetch_as_data_url(fetcher, cache, COVER, cache_key=f"cover:{COVER}")
        second = await fetch_as_data_url(fetcher, cache, COVER, cache_key=f"cover:{COVER}")
        return first, second

    first, second = asyncio.run(run_twice())

    assert first == second == "data:image/png;base64,iVBORw=="
    assert len(httpx_mock.get_requests()) == 1
    assert decode_data_url(first) == ("image/png", b"\x89PNG")


def test_fetch_optional_swallows_missing_fonts(httpx_mock):
    font_url = "https://static.example.com/fonts/Regular.ttf"
    httpx_mock.add_response(method="GET", url=font_url, status_code=404)

    assert asyncio.run(fetch_optional(_fetcher([]), font_url)) is None
    assert asyncio.run(fetch_optional(_fetcher([]), None)) is None


def test_fetch_rejects_unsupported_scheme():
    with pytest.raises(PermanentAssetError):
        asyncio.run(_fetcher([]).fetch("ftp://example.com/x.png"))


def test_data_url_helpers():
    assert to_data_url(b"abc", "image/gif") == "data:image/gif;base64,YWJj"
    with pytest.raises(PermanentAssetError):
        decode_data_url("not-a-data-url")
    with pytest.raises(PermanentAssetError):
        decode_data_url("data:image/png;base64,***")
