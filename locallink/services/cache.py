"""
In-process TTL caches for the catalog and resolved images.

Both wrap cachetools.TTLCache behind a threading.Lock so they are safe when
FastAPI runs sync dependencies in its threadpool. Instances are created once
in the application lifespan and injected through app.state.

Catalog cache:
  Key:  (round(lat, 4), round(lon, 4), radius_m)
  TTL:  CATALOG_CACHE_TTL_SECONDS (default 3600 s)
  Value: ranked, classified businesses WITHOUT review overlay

Image cache:
  Key:  the composed search query ("<name> <address>")
  TTL:  IMAGE_CACHE_TTL_SECONDS (default 86400 s)
  Only successful lookups are stored.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Hashable, Optional

from cachetools import TTLCache

from locallink.schemas.business import Business
from locallink.schemas.catalog import CacheStats

logger = logging.getLogger(__name__)

CatalogKey = tuple[float, float, int]


def catalog_key(lat: float, lon: float, radius_m: int) -> CatalogKey:
    return (round(lat, 4), round(lon, 4), int(radius_m))


class _LockedTTLCache:
    """TTLCache plus hit/miss counters, every access under one lock."""

    def __init__(
        self,
        name: str,
        ttl_seconds: int,
        maxsize: int,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self._cache: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl_seconds, timer=timer)
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def _get(self, key: Hashable):
        with self._lock:
            value = self._cache.get(key)
            if value is None:
                self._misses += 1
            else:
                self._hits += 1
        logger.debug("%s cache %s (key=%s)", self.name, "HIT" if value is not None else "MISS", key)
        return value

    def _set(self, key: Hashable, value) -> None:
        with self._lock:
            self._cache[key] = value

    def flush(self) -> None:
        with self._lock:
            self._cache.clear()
        logger.info("%s cache flushed", self.name)

    def stats(self) -> CacheStats:
        with self._lock:
            # expire() drops stale entries so size reflects live keys only
            self._cache.expire()
            size = len(self._cache)
            hits, misses = self._hits, self._misses
        total = hits + misses
        return CacheStats(
            size=size,
            hits=hits,
            misses=misses,
            hit_rate=round(hits / total, 4) if total else 0.0,
        )


class CatalogCache(_LockedTTLCache):
    def __init__(
        self,
        ttl_seconds: int = 3600,
        maxsize: int = 16,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__("Catalog", ttl_seconds, maxsize, timer)

    def get(self, key: CatalogKey) -> Optional[list[Business]]:
        value = self._get(key)
        # Return a fresh list so callers can filter without touching the cached one
        return list(value) if value is not None else None

    def set(self, key: CatalogKey, businesses: list[Business]) -> None:
        self._set(key, tuple(b.without_overlay() for b in businesses))


class ImageCache(_LockedTTLCache):
    def __init__(
        self,
        ttl_seconds: int = 86_400,
        maxsize: int = 2_000,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__("Image", ttl_seconds, maxsize, timer)

    def get(self, query: str) -> Optional[str]:
        return self._get(query)

    def set(self, query: str, url: Optional[str]) -> None:
        if url:
            self._set(query, url)
