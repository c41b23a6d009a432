"""Caches used by the card renderer.

All of them are built once per process and handed to ``SocialCardService``.
Entries are replaced whole, never mutated, so a race between two requests
at worst costs a duplicate fetch or render.
"""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Hashable, Optional, Protocol, Tuple, TypeVar

from redis.exceptions import RedisError

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

Clock = Callable[[], float]


class TTLCache(Generic[K, V]):
    """Bounded map with per-entry expiry and insertion-order eviction."""

    def __init__(self, *, ttl_seconds: float, max_entries: int, clock: Clock = time.monotonic) -> None:
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[K, Tuple[float, V]]" = OrderedDict()

    def get(self, key: K) -> Optional[V]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self._clock() - stored_at > self._ttl:
            self._entries.pop(key, None)
            return None
        return value

    def set(self, key: K, value: V) -> None:
        self._entries.pop(key, None)
        self._entries[key] = (self._clock(), value)
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def clear(self) -> None:
        self._entries.clear()


@dataclass(frozen=True)
class CachedCard:
    content: bytes
    content_type: str


class CardStore(Protocol):
    def get(self, key: str) -> Optional[CachedCard]: ...  # noqa: D401
    def set(self, key: str, card: CachedCard) -> None: ...  # noqa: D401


class InMemoryCardStore:
    """Rendered cards kept in this process."""

    def __init__(self, *, ttl_seconds: float, max_entries: int, clock: Clock = time.monotonic) -> None:
        self._cache: TTLCache[str, CachedCard] = TTLCache(
            ttl_seconds=ttl_seconds, max_entries=max_entries, clock=clock
        )

    def get(self, key: str) -> Optional[CachedCard]:
        return self._cache.get(key)

    def set(self, key: str, card: CachedCard) -> None:
        self._cache.set(key, card)


class _RedisLikeClient(Protocol):
    def get(self, name: str) -> Optional[bytes]: ...
    def set(self, name: str, value: bytes, *, ex: Optional[int] = None) -> Optional[bool]: ...


class RedisCardStore:
    """Rendered cards shared between processes through Redis.

    The value is ``<content type> NUL <png bytes>`` stored with ``SET .. EX``
    so Redis handles expiry; the entry cap is left to the server's
    eviction policy. Redis errors degrade to cache misses.
    """

    def __init__(self, client: _RedisLikeClient, *, ttl_seconds: int, prefix: str = "card") -> None:
        self._client = client
        self._ttl = ttl_seconds
        self._prefix = prefix

    def _format(self, key: str) -> str:
        return f"{self._prefix}:{key}"

    def get(self, key: str) -> Optional[CachedCard]:
        try:
            raw = self._client.get(self._format(key))
        except RedisError:
            return None
        if not raw:
            return None
        content_type, sep, content = bytes(raw).partition(b"\x00")
        if not sep:
            return None
        return CachedCard(content=content, content_type=content_type.decode("ascii", "replace"))

    def set(self, key: str, card: CachedCard) -> None:
        value = card.content_type.encode("ascii", "replace") + b"\x00" + card.content
        try:
            self._client.set(self._format(key), value, ex=self._ttl)
        except RedisError:
            return


def build_card_store(
    *,
    redis_url: Optional[str],
    ttl_seconds: int,
    max_entries: int,
    logger: Optional[logging.Logger] = None,
) -> CardStore:
    """Redis-backed store when ``redis_url`` answers a ping, else in-memory."""
    log = logger or logging.getLogger(__name__)
    if redis_url:
        import redis as redislib

        client = redislib.Redis.from_url(redis_url, socket_connect_timeout=0.2)
        try:
            client.ping()
        except RedisError:
            log.info("cards.store.memory", extra={"reason": "redis_ping_failed"})
        else:
            log.info("cards.store.redis", extra={"redis_url": redis_url})
            return RedisCardStore(client, ttl_seconds=ttl_seconds)
    return InMemoryCardStore(ttl_seconds=ttl_seconds, max_entries=max_entries)


class FontCache:
    """Static font bytes, loaded at most once per process.

    A failed first load is remembered too: later calls return whatever was
    obtained instead of retrying on every render.
    """

    def __init__(self) -> None:
        self._fonts: Dict[str, Optional[bytes]] = {}
        self._attempted = False

    @property
    def attempted(self) -> bool:
        return self._attempted

    def get(self, name: str) -> Optional[bytes]:
        return self._fonts.get(name)

    def fill(self, fonts: Dict[str, Optional[bytes]]) -> None:
        self._fonts.update(fonts)
        self._attempted = True
