"""
Caching utilities for polyarb.

Provides TTL-based caching for API responses to reduce API calls.
"""

import time
from typing import Any, Callable, Optional

from cachetools import TTLCache

from polyarb.core.logging import get_logger

logger = get_logger("cache")


class CacheManager:
    """
    TTL-based cache manager.

    Features:
    - Configurable TTL per cache
    - Manual invalidation
    - Hit/miss statistics
    """

    def __init__(
        self,
        maxsize: int = 1000,
        ttl: float = 5,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self._cache: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl, timer=timer)
        self._stats = {"hits": 0, "misses": 0}

    def get(self, key: str) -> Optional[Any]:
        """Get value from cache."""
        value = self._cache.get(key)
        if value is not None:
            self._stats["hits"] += 1
            logger.debug(f"Cache hit: {key}")
        else:
            self._stats["misses"] += 1
        return value

    def set(self, key: str, value: Any) -> None:
        """Set value in cache."""
        if self.ttl <= 0:
            return
        self._cache[key] = value

    def delete(self, key: str) -> None:
        """Delete key from cache."""
        self._cache.pop(key, None)

    def clear(self) -> None:
        """Clear all cached values."""
        self._cache.clear()
        logger.debug("Cache cleared")

    @property
    def stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        total = self._stats["hits"] + self._stats["misses"]
        hit_rate = self._stats["hits"] / total if total > 0 else 0
        return {
            **self._stats,
            "total": total,
            "hit_rate": round(hit_rate, 3),
            "size": len(self._cache),
        }
