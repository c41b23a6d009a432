"""Cover-image URL normalisation and proxy rewriting."""

from __future__ import annotations

import re
from typing import Any
from urllib.parse import quote

_DRIVE_FILE = re.compile(r"drive\.google\.com/file/d/([^/]+)/", re.IGNORECASE)
_DRIVE_OPEN = re.compile(r"drive\.google\.com/open\?id=([^&]+)", re.IGNORECASE)
_DRIVE_UC = re.compile(r"drive\.google\.com/uc\?.*id=([^&]+)", re.IGNORECASE)

IMAGE_PROXY_PATH = "/api/image"


def normalize_image_url(value: Any) -> str:
    raw = value.strip() if isinstance(value, str) else ""
    if not raw:
        return ""
    if raw.startswith(("data:", "blob:")):
        return raw

    for pattern in (_DRIVE_FILE, _DRIVE_OPEN, _DRIVE_UC):
        match = pattern.search(raw)
        if match:
            # drive.usercontent.google.com blocks hot-linking, so Drive
            # images are always rendered through the proxy.
            return f"https://drive.google.com/uc?export=view&id={quote(match.group(1), safe='')}"

    return raw


def proxied_image_src(value: Any) -> str:
    normalized = normalize_image_url(value)
    if not normalized:
        return ""
    if normalized.startswith("/"):
        return normalized
    return f"{IMAGE_PROXY_PATH}?url={quote(normalized, safe='')}"


def is_http_url(value: str) -> bool:
    return bool(re.match(r"^https?://", value or "", re.IGNORECASE))
