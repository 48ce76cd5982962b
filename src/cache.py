# ABOUTME: Bounded in-memory TTL cache shared by the geocoding and forecast paths.
# ABOUTME: Lazy expiry on read, insertion-order eviction, hit/miss statistics, and cache key builders.

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from src.models import CacheStats

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    value: T
    written_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return (now - self.written_at) > self.ttl


class TTLCache(Generic[T]):
    """In-memory key/value cache with per-entry time-to-live.

    Expired entries are treated as absent on read and evicted as a side effect.
    When the cache is full, inserting a new key evicts the earliest-inserted entry
    (insertion order, not recency). All operations hold an internal lock.
    """

    def __init__(
        self,
        max_size: int = 100,
        default_ttl: float = 3600,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry[T]] = {}
        self._hits = 0
        self._misses = 0
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and not entry.is_expired(self._clock())

    def get(self, key: str) -> T | None:
        """Return the cached value, or None if the key is unknown or its entry has expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                logger.debug("cache miss: %s", key)
                return None
            if entry.is_expired(self._clock()):
                del self._entries[key]
                self._misses += 1
                logger.debug("cache expired: %s", key)
                return None
            self._hits += 1
            logger.debug("cache hit: %s", key)
            return entry.value

    def set(self, key: str, value: T, ttl: float | None = None) -> None:
        """Store a value, evicting the earliest-inserted entry if the cache is full and the key is new."""
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.max_size:
                oldest = next(iter(self._entries))
                del self._entries[oldest]
                logger.debug("cache evicted: %s", oldest)
            self._entries[key] = CacheEntry(
                value=value,
                written_at=self._clock(),
                ttl=self.default_ttl if ttl is None else ttl,
            )

    def clear(self) -> None:
        """Drop all entries. Hit and miss counters are kept."""
        with self._lock:
            self._entries.clear()

    def cleanup(self) -> int:
        """Evict every expired entry and return how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug("cache cleanup removed %d entries", len(expired))
        return len(expired)

    def get_stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(hits=self._hits, misses=self._misses, size=len(self._entries))

    def get_hit_rate(self) -> float:
        """Hit rate as a percentage of all lookups, 0 when nothing has been looked up."""
        with self._lock:
            total = self._hits + self._misses
            if total == 0:
                return 0.0
            return self._hits / total * 100

    def reset_stats(self) -> None:
        with self._lock:
            self._hits = 0
            self._misses = 0


def geocode_cache_key(place: str, count: int) -> str:
    return f"geocode:{place.lower()}:{count}"


def forecast_cache_key(latitude: float, longitude: float, days: int, timezone: str) -> str:
    return f"forecast:{latitude}:{longitude}:{days}:{timezone}"
