"""
Caching module for the scheduling core
Provides TTL-based in-memory caches that are constructed once and injected
"""

import copy
import hashlib
import logging
import threading
import time
from collections.abc import Callable, Hashable
from typing import Any

from cachetools import TTLCache

logger = logging.getLogger(__name__)

MISS = object()


def get_cache_key(prefix: str, *args: Any) -> str:
    """
    Generate a consistent cache key from prefix and arguments
    """
    key_parts = [prefix]

    for arg in args:
        if isinstance(arg, str | int | float | bool):
            key_parts.append(str(arg))
        elif hasattr(arg, "isoformat"):
            key_parts.append(arg.isoformat())
        else:
            # For complex objects, use hash (not for security)
            key_parts.append(
                hashlib.md5(str(arg).encode(), usedforsecurity=False).hexdigest()[:8]
            )

    return ":".join(key_parts)


class ResultCache:
    """
    Time-bound memoization store.

    An entry stored at ``t`` is a miss once ``timer() - t >= ttl``. ``maxsize``
    bounds memory; the least recently used entry is evicted when full.
    Values are deep-copied on the way in and out, so callers never share
    a cached object.
    """

    def __init__(
        self,
        name: str,
        ttl: float,
        maxsize: int = 1024,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self._cache: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl, timer=timer)
        self._lock = threading.RLock()

    @property
    def ttl(self) -> float:
        return self._cache.ttl

    def get(self, key: Hashable, default: Any = MISS) -> Any:
        with self._lock:
            value = self._cache.get(key, MISS)
        if value is MISS:
            logger.debug(f"Cache miss in {self.name} for {key}")
            return default
        logger.debug(f"Cache hit in {self.name} for {key}")
        return copy.deepcopy(value)

    def set(self, key: Hashable, value: Any) -> None:
        with self._lock:
            self._cache[key] = copy.deepcopy(value)
        logger.debug(f"Cached result in {self.name} for {key}")

    def delete(self, key: Hashable) -> bool:
        with self._lock:
            removed = self._cache.pop(key, MISS) is not MISS
        if removed:
            logger.debug(f"Invalidated cache key: {key}")
        return removed

    def invalidate(self, pattern: str | None = None) -> int:
        """
        Invalidate cache entries

        Args:
            pattern: Optional substring to match keys for selective invalidation

        Returns:
            Number of entries removed
        """
        with self._lock:
            if pattern is None:
                removed = len(self._cache)
                self._cache.clear()
                logger.debug(f"Cleared cache: {self.name}")
                return removed

            keys_to_delete = [k for k in list(self._cache.keys()) if pattern in str(k)]
            for key in keys_to_delete:
                self._cache.pop(key, None)
                logger.debug(f"Invalidated cache key: {key}")
            return len(keys_to_delete)

    def stats(self) -> dict[str, Any]:
        with self._lock:
            self._cache.expire()
            size = len(self._cache)
        return {
            "size": size,
            "maxsize": self._cache.maxsize,
            "ttl": self._cache.ttl,
            "utilization": f"{(size / self._cache.maxsize * 100):.1f}%",
        }

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._cache

    def __len__(self) -> int:
        with self._lock:
            self._cache.expire()
            return len(self._cache)
