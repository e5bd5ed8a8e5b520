"""
In-memory TTL cache for forecast results.

Keys are rounded coordinates (6 decimals, ~0.1 m) plus a granularity flag
("forecast" for the 3-day result, "current" for current conditions).

No background eviction: stale entries are swept right after each store.
Nothing is persisted; the cache lives as long as its owner.
Safe to share between threads (Flask's threaded server does).
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

from config import DEFAULT_CACHE_TTL_SECONDS, DEFAULT_FALLBACK_TTL_SECONDS
from coordinates import Coordinate
from data.forecast import SOURCE_FALLBACK

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    key: str
    data: Any            # ForecastResult (forecast key) or HourlyCondition (current key)
    stored_at: float     # clock() reading at store time

    @property
    def is_fallback(self) -> bool:
        metadata = getattr(self.data, "metadata", None)
        return getattr(metadata, "source", None) == SOURCE_FALLBACK


def make_key(coord: Coordinate, forecast: bool = True) -> str:
    lat, lon = coord.rounded(6)
    return f"{lat:.6f},{lon:.6f},{'forecast' if forecast else 'current'}"


class ForecastCache:
    """
    Keyed TTL store. Each ForecastService owns its own instance.

    Usage
    -----
    cache = ForecastCache(ttl_seconds=600)
    cache.store(coord, result)
    entry = cache.lookup(coord)
    if entry and cache.is_fresh(entry): ...
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        fallback_ttl_seconds: float = DEFAULT_FALLBACK_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.fallback_ttl_seconds = fallback_ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def lookup(self, coord: Coordinate, forecast: bool = True) -> CacheEntry | None:
        """Return the entry for a coordinate (fresh or stale), or None."""
        key = make_key(coord, forecast)
        with self._lock:
            return self._entries.get(key)

    def store(self, coord: Coordinate, data: Any, forecast: bool = True) -> CacheEntry:
        """Insert or overwrite the entry for a coordinate, then sweep stale ones."""
        key = make_key(coord, forecast)
        with self._lock:
            entry = CacheEntry(key=key, data=data, stored_at=self._clock())
            self._entries[key] = entry
            self._sweep_locked()
        return entry

    def ttl_for(self, entry: CacheEntry) -> float:
        return self.fallback_ttl_seconds if entry.is_fallback else self.ttl_seconds

    def age(self, entry: CacheEntry) -> float:
        return self._clock() - entry.stored_at

    def is_fresh(self, entry: CacheEntry) -> bool:
        return self.age(entry) < self.ttl_for(entry)

    def sweep(self) -> int:
        """Drop every entry older than its TTL. Returns how many were removed."""
        with self._lock:
            return self._sweep_locked()

    def _sweep_locked(self) -> int:
        stale = [key for key, entry in self._entries.items() if not self.is_fresh(entry)]
        for key in stale:
            self._entries.pop(key, None)
        if stale:
            logger.debug("Swept %d stale cache entries", len(stale))
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
