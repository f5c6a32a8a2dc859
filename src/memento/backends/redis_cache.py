"""Redis cache backend implementation."""

import time
from datetime import timedelta
from typing import Optional

from redis.asyncio import Redis


_DATA = "data"
_ABSOLUTE = "absexp"
_SLIDING = "sldexp"
_NOT_PRESENT = -1


class RedisCacheService:
    """
    Redis-based cache implementation.

    Each entry is a hash holding the payload (`data`), the absolute
    deadline as a unix timestamp (`absexp`) and the sliding window in
    seconds (`sldexp`); -1 means "not set". The key TTL is renewed on every
    read or refresh to the sliding window, capped by the absolute deadline.

    Usage:
        redis = Redis.from_url("redis://localhost:6379")
        cache = RedisCacheService(redis, prefix="memento")

        await cache.set("Book:1", b"{...}", absolute=timedelta(minutes=10), sliding=timedelta(minutes=5))
        book = await cache.get("Book:1")
    """

    def __init__(self, redis: Redis, prefix: str = "memento"):
        """
        Initialize Redis cache.

        Args:
            redis: Async Redis client instance
            prefix: Key prefix for namespacing (default: "memento")
        """
        self.redis = redis
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: str, prefix: str = "memento") -> "RedisCacheService":
        return cls(Redis.from_url(url), prefix=prefix)

    def _key(self, key: str) -> str:
        """Generate prefixed key."""
        return f"{self.prefix}:{key}" if self.prefix else key

    @staticmethod
    def _ttl(absolute_deadline: float, sliding: float, now: float) -> Optional[int]:
        candidates = []
        if absolute_deadline != _NOT_PRESENT:
            candidates.append(absolute_deadline - now)
        if sliding != _NOT_PRESENT:
            candidates.append(sliding)
        if not candidates:
            return None
        return max(int(min(candidates)), 1)

    async def get(self, key: str) -> Optional[bytes]:
        """Get value from cache and slide its expiration."""
        entry = await self.redis.hgetall(self._key(key))
        if not entry:
            return None
        entry = {k.decode() if isinstance(k, bytes) else k: v for k, v in entry.items()}
        await self._slide(key, entry)
        return entry.get(_DATA)

    async def set(
        self,
        key: str,
        value: bytes,
        absolute: Optional[timedelta] = None,
        sliding: Optional[timedelta] = None,
    ) -> None:
        """Set value in cache with optional absolute and sliding expirations."""
        now = time.time()
        absolute_deadline = now + absolute.total_seconds() if absolute is not None else _NOT_PRESENT
        sliding_seconds = sliding.total_seconds() if sliding is not None else _NOT_PRESENT
        redis_key = self._key(key)

        async with self.redis.pipeline() as pipe:
            pipe.delete(redis_key)
            pipe.hset(
                redis_key,
                mapping={_DATA: value, _ABSOLUTE: absolute_deadline, _SLIDING: sliding_seconds},
            )
            ttl = self._ttl(absolute_deadline, sliding_seconds, now)
            if ttl is not None:
                pipe.expire(redis_key, ttl)
            await pipe.execute()

    async def delete(self, key: str) -> None:
        """Delete value from cache."""
        await self.redis.delete(self._key(key))

    async def refresh(self, key: str) -> None:
        """Restart the sliding expiration of a value."""
        values = await self.redis.hmget(self._key(key), [_ABSOLUTE, _SLIDING])
        if not values or values[0] is None:
            return
        await self._slide(key, {_ABSOLUTE: values[0], _SLIDING: values[1]})

    async def _slide(self, key: str, entry: dict) -> None:
        sliding = float(entry.get(_SLIDING, _NOT_PRESENT))
        if sliding == _NOT_PRESENT:
            return
        ttl = self._ttl(float(entry.get(_ABSOLUTE, _NOT_PRESENT)), sliding, time.time())
        await self.redis.expire(self._key(key), ttl)

    async def ttl(self, key: str) -> int:
        """Get remaining TTL for a key (-1 if no TTL, -2 if not exists)."""
        return await self.redis.ttl(self._key(key))
