"""In-memory cache backend for testing and development."""

from typing import Dict, Optional, Tuple
from datetime import datetime, timedelta


class MemoryCacheService:
    """
    In-memory cache implementation for testing and development.

    Honours absolute and sliding expirations like the Redis backend, but
    keeps entries in the process. Implements the CacheService protocol.

    Usage:
        cache = MemoryCacheService()
        await cache.set("Genre:1", b"{...}", absolute=timedelta(minutes=10))
        data = await cache.get("Genre:1")
    """

    def __init__(self):
        self._cache: Dict[str, bytes] = {}
        # key -> (absolute deadline, sliding window)
        self._expiry: Dict[str, Tuple[Optional[datetime], Optional[timedelta]]] = {}
        self._last_access: Dict[str, datetime] = {}

    def _expired(self, key: str, now: datetime) -> bool:
        absolute, sliding = self._expiry.get(key, (None, None))
        if absolute is not None and now >= absolute:
            return True
        if sliding is not None and now >= self._last_access[key] + sliding:
            return True
        return False

    def _evict_if_expired(self, key: str) -> bool:
        if key not in self._cache:
            return True
        if self._expired(key, datetime.now()):
            self._remove(key)
            return True
        return False

    def _sweep(self, now: datetime) -> None:
        for key in [key for key in self._cache if self._expired(key, now)]:
            self._remove(key)

    def _remove(self, key: str) -> None:
        self._cache.pop(key, None)
        self._expiry.pop(key, None)
        self._last_access.pop(key, None)

    async def get(self, key: str) -> Optional[bytes]:
        """Get value from cache and slide its expiration."""
        if self._evict_if_expired(key):
            return None
        self._last_access[key] = datetime.now()
        return self._cache[key]

    async def set(
        self,
        key: str,
        value: bytes,
        absolute: Optional[timedelta] = None,
        sliding: Optional[timedelta] = None,
    ) -> None:
        """
        Set value in cache with optional absolute and sliding expirations.

        Expired entries of other keys are dropped on the way, so keys that
        are never read again do not accumulate.
        """
        now = datetime.now()
        self._sweep(now)
        self._cache[key] = value
        self._expiry[key] = (now + absolute if absolute is not None else None, sliding)
        self._last_access[key] = now

    async def delete(self, key: str) -> None:
        """Delete value from cache."""
        self._remove(key)

    async def refresh(self, key: str) -> None:
        """Restart the sliding expiration of a value."""
        if not self._evict_if_expired(key):
            self._last_access[key] = datetime.now()

    def clear(self) -> None:
        """Clear all cache entries (for testing)."""
        self._cache.clear()
        self._expiry.clear()
        self._last_access.clear()

    def size(self) -> int:
        """Get number of cached items."""
        return len(self._cache)
