"""Unit tests for the in-memory token cache."""

import threading
from unittest.mock import Mock

import pytest

from app.adapters.cache.in_memory import InMemoryTokenCache


def test_set_and_get_updates_hit_miss_counters() -> None:
    cache = InMemoryTokenCache()

    assert cache.get("missing") is None

    cache.set("key", "value", 10)
    assert cache.get("key") == "value"

    stats = cache.stats()
    assert stats["hits"] == 1
    assert stats["misses"] == 1


def test_expired_entry_is_evicted() -> None:
    clock = Mock(return_value=1000.0)
    cache = InMemoryTokenCache(clock=clock)
    cache.set("key", "value", 5)

    clock.return_value = 1005.0

    assert cache.get("key") is None
    assert cache.stats()["evictions"] == 1


def test_pop_returns_value_once() -> None:
    cache = InMemoryTokenCache()
    cache.set("key", "value", 10)

    assert cache.pop("key") == "value"
    assert cache.pop("key") is None
    assert cache.get("key") is None


def test_pop_ignores_expired_entries() -> None:
    clock = Mock(return_value=1000.0)
    cache = InMemoryTokenCache(clock=clock)
    cache.set("key", "value", 5)

    clock.return_value = 2000.0

    assert cache.pop("key") is None


def test_delete_missing_key_is_noop() -> None:
    cache = InMemoryTokenCache()
    cache.delete("missing")
    assert cache.stats()["entries"] == 0


def test_lru_eviction_removes_least_recently_used() -> None:
    cache = InMemoryTokenCache(max_entries=2)
    cache.set("a", "1", 100)
    cache.set("b", "2", 100)

    # Access "a" so that "b" becomes least recently used
    assert cache.get("a") == "1"

    cache.set("c", "3", 100)

    assert cache.get("a") == "1"
    assert cache.get("c") == "3"
    assert cache.get("b") is None


def test_clear_resets_state() -> None:
    cache = InMemoryTokenCache()
    cache.set("a", "1", 10)
    cache.get("a")

    cache.clear()

    stats = cache.stats()
    assert stats["entries"] == 0
    assert stats["hits"] == 0


@pytest.mark.parametrize("kwargs", [{"max_entries": 0}])
def test_invalid_constructor_args(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        InMemoryTokenCache(**kwargs)


def test_invalid_ttl() -> None:
    with pytest.raises(ValueError):
        InMemoryTokenCache().set("k", "v", 0)


def test_concurrent_pop_hands_value_to_one_caller() -> None:
    cache = InMemoryTokenCache()
    cache.set("key", "value", 30)
    results: list[str | None] = []
    barrier = threading.Barrier(16)

    def _reader() -> None:
        barrier.wait()
        results.append(cache.pop("key"))

    threads = [threading.Thread(target=_reader) for _ in range(16)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count("value") == 1
    assert results.count(None) == 15
