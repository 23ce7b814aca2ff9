"""In-memory TTL token cache.

Notes:
- Per-process only: running multiple workers means a captcha issued by one
  worker is unknown to the others. Use sticky sessions or a shared backend.
- Thread-safe: uses a lock around shared state, so ``pop`` is atomic.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

from app.adapters.cache.base import AbstractTokenCache

logger = logging.getLogger(__name__)


@dataclass
class CacheItem:
    """Container for cached values with expiration metadata."""

    value: str
    expires_at: float


class InMemoryTokenCache(AbstractTokenCache):
    """Thread-safe, in-memory TTL cache with LRU eviction.

    Attributes:
        max_entries: Maximum number of cached items (None for unlimited).
    """

    def __init__(
        self,
        *,
        max_entries: int | None = 100_000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be >= 1 or None")

        self._max_entries = max_entries
        self._clock = clock
        self._store: OrderedDict[str, CacheItem] = OrderedDict()
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"InMemoryTokenCache(max_entries={self._max_entries}, "
            f"size={len(self._store)}, hits={self._hits}, misses={self._misses}, "
            f"evictions={self._evictions})"
        )

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        if ttl_seconds < 1:
            raise ValueError("ttl_seconds must be >= 1")

        with self._lock:
            self._evict_expired_locked()
            self._store[key] = CacheItem(value=value, expires_at=self._clock() + ttl_seconds)
            self._store.move_to_end(key)
            self._evict_if_over_capacity_locked()

            logger.debug(
                "cache.set",
                extra={
                    "size": len(self._store),
                    "ttl_s": ttl_seconds,
                },
            )

    def get(self, key: str) -> str | None:
        with self._lock:
            item = self._live_item_locked(key)
            return item.value if item else None

    def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def pop(self, key: str) -> str | None:
        with self._lock:
            item = self._live_item_locked(key)
            if item is None:
                return None
            del self._store[key]
            return item.value

    def clear(self) -> None:
        """Remove all cached entries and reset counters."""

        with self._lock:
            self._store.clear()
            self._hits = 0
            self._misses = 0
            self._evictions = 0

    def stats(self) -> dict[str, int | None]:
        """Return lightweight cache metrics without exposing values."""

        with self._lock:
            return {
                "max_entries": self._max_entries,
                "entries": len(self._store),
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
            }

    def _live_item_locked(self, key: str) -> CacheItem | None:
        item = self._store.get(key)
        if item is None:
            self._misses += 1
            logger.debug("cache.miss", extra={"reason": "not_found"})
            return None

        if self._clock() >= item.expires_at:
            self._evict_single(key)
            self._misses += 1
            logger.debug("cache.miss", extra={"reason": "expired"})
            return None

        self._hits += 1
        self._store.move_to_end(key)  # mark as recently used
        return item

    def _evict_single(self, key: str) -> None:
        if key in self._store:
            self._store.pop(key, None)
            self._evictions += 1

    def _evict_expired_locked(self) -> None:
        now = self._clock()
        expired_keys = [k for k, item in self._store.items() if item.expires_at <= now]
        for key in expired_keys:
            self._evict_single(key)

    def _evict_if_over_capacity_locked(self) -> None:
        if self._max_entries is None:
            return

        while len(self._store) > self._max_entries:
            # popitem(last=False) removes the least recently used entry
            self._store.popitem(last=False)
            self._evictions += 1
