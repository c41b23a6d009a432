from __future__ import annotations

from typing import Dict

from redis.exceptions import ConnectionError as RedisConnectionError

from cards.cache import (
    CachedCard,
    FontCache,
    InMemoryCardStore,
    RedisCardStore,
    TTLCache,
    build_card_store,
)


class FakeClock:
    def __init__(self) -> None:
        self.now = 1_000.0

    def __call__(self) -> float:
        return self.now


class FakeRedis:
    def __init__(self) -> None:
        self._store: Dict[str, bytes] = {}
        self.expiries: Dict[str, int | None] = {}

    def get(self, name: str):
        return self._store.get(name)

    def set(self, name: str, value: bytes, *, ex: int | None = None):
        self._store[name] = value
        self.expiries[name] = ex
        return True


class BrokenRedis:
    def get(self, name: str):
        raise RedisConnectionError("down")

    def set(self, name: str, value: bytes, *, ex: int | None = None):
        raise RedisConnectionError("down")


def test_ttl_cache_expires_entries():
    clock = FakeClock()
    cache: TTLCache[str, str] = TTLCache(ttl_seconds=60, max_entries=10, clock=clock)
    cache.set("k", "v")

    clock.now += 60
    assert cache.get("k") == "v"
    clock.now += 1
    assert cache.get("k") is None
    assert "k" not in cache


def test_ttl_cache_evicts_oldest_insert_first():
    cache: TTLCache[str, int] = TTLCache(ttl_seconds=60, max_entries=2, clock=FakeClock())
    cache.set("a", 1)
    cache.set("b", 2)
    cache.get("a")  # reads do not refresh position
    cache.set("c", 3)

    assert cache.get("a") is None
    assert cache.get("b") == 2
    assert cache.get("c") == 3
    assert len(cache) == 2


def test_ttl_cache_reset_moves_key_to_newest():
    cache: TTLCache[str, int] = TTLCache(ttl_seconds=60, max_entries=2, clock=FakeClock())
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("a", 10)
    cache.set("c", 3)

    assert cache.get("a") == 10
    assert cache.get("b") is None


def test_in_memory_card_store_round_trip():
    store = InMemoryCardStore(ttl_seconds=10, max_entries=5)
    card = CachedCard(content=b"png", content_type="image/png")
    store.set("id::full", card)
    assert store.get("id::full") == card
    assert store.get("id::preview") is None


def test_redis_card_store_uses_prefix_and_ttl():
    client = FakeRedis()
    store = RedisCardStore(client, ttl_seconds=21_600)
    store.set("a1::full", CachedCard(content=b"\x89PNG\x00data", content_type="image/png"))

    assert client.expiries == {"card:a1::full": 21_600}
    assert store.get("a1::full") == CachedCard(content=b"\x89PNG\x00data", content_type="image/png")
    assert store.get("missing") is None


def test_redis_card_store_treats_errors_as_misses():
    store = RedisCardStore(BrokenRedis(), ttl_seconds=60)
    store.set("k", CachedCard(content=b"x", content_type="image/png"))
    assert store.get("k") is None


def test_build_card_store_falls_back_to_memory_without_redis_url():
    store = build_card_store(redis_url=None, ttl_seconds=60, max_entries=3)
    assert isinstance(store, InMemoryCardStore)


def test_font_cache_remembers_failed_attempt():
    fonts = FontCache()
    assert not fonts.attempted
    fonts.fill({"regular": None, "italic": b"ttf"})
    assert fonts.attempted
    assert fonts.get("regular") is None
    assert fonts.get("italic") == b"ttf"
