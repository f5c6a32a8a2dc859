"""Typed cache wrapper and cache keys."""

from datetime import timedelta
from typing import Any, Optional, Type, TypeVar
import json
import logging

from pydantic import BaseModel, TypeAdapter

from .exceptions import CacheError
from .protocols import CacheService

logger = logging.getLogger("memento")

T = TypeVar("T")

DEFAULT_ABSOLUTE_EXPIRATION = timedelta(minutes=10)
DEFAULT_SLIDING_EXPIRATION = timedelta(minutes=5)


class CacheEntries:
    """Cache key builders."""

    @staticmethod
    def author_key(author_id: Any) -> str:
        return f"Author:{author_id}"

    @staticmethod
    def book_key(book_id: Any) -> str:
        return f"Book:{book_id}"

    @staticmethod
    def genre_key(genre_id: Any) -> str:
        return f"Genre:{genre_id}"

    @staticmethod
    def idempotency_key(idempotency_id: Any) -> str:
        return f"Idempotency:{idempotency_id}"


def _serialize(value: Any) -> bytes:
    if isinstance(value, BaseModel):
        return value.model_dump_json(by_alias=True).encode()
    return json.dumps(TypeAdapter(type(value)).dump_python(value, mode="json", by_alias=True)).encode()


def _deserialize(data: bytes, value_type: Optional[Type[T]]) -> Any:
    if value_type is None:
        return json.loads(data)
    return TypeAdapter(value_type).validate_json(data)


class Cache:
    """
    JSON cache on top of a CacheService backend.

    Values are serialized as JSON (pydantic models with their aliases) and
    read back into `value_type` when given. Every operation has a `try_`
    variant that logs failures instead of raising, for callers where the
    cache is best-effort.

    Usage:
        cache = Cache(MemoryCacheService())
        await cache.set(CacheEntries.book_key(book.id), book)
        book = await cache.try_get(CacheEntries.book_key(book_id), BookDetailContract)
    """

    def __init__(
        self,
        service: CacheService,
        absolute_expiration: timedelta = DEFAULT_ABSOLUTE_EXPIRATION,
        sliding_expiration: timedelta = DEFAULT_SLIDING_EXPIRATION,
    ):
        self.service = service
        self.absolute_expiration = absolute_expiration
        self.sliding_expiration = sliding_expiration

    async def set(
        self,
        key: str,
        value: Any,
        absolute_expiration: Optional[timedelta] = None,
        sliding_expiration: Optional[timedelta] = None,
    ) -> None:
        """
        Store a value.

        Raises:
            CacheError: If serialization or the backend fails.
        """
        try:
            await self.service.set(
                key,
                _serialize(value),
                self.absolute_expiration if absolute_expiration is None else absolute_expiration,
                self.sliding_expiration if sliding_expiration is None else sliding_expiration,
            )
        except Exception as e:
            raise CacheError("set", key, e) from e

    async def get(self, key: str, value_type: Optional[Type[T]] = None) -> Optional[T]:
        """
        Read a value, or None when the key is not cached.

        Raises:
            CacheError: If the backend fails or the entry cannot be decoded.
        """
        try:
            data = await self.service.get(key)
            if data is None:
                return None
            return _deserialize(data, value_type)
        except Exception as e:
            raise CacheError("get", key, e) from e

    async def remove(self, key: str) -> None:
        try:
            await self.service.delete(key)
        except Exception as e:
            raise CacheError("remove", key, e) from e

    async def refresh(self, key: str) -> None:
        try:
            await self.service.refresh(key)
        except Exception as e:
            raise CacheError("refresh", key, e) from e

    async def try_set(self, key: str, value: Any, **kwargs) -> bool:
        try:
            await self.set(key, value, **kwargs)
            return True
        except CacheError as e:
            logger.error(str(e), exc_info=e.original_error)
            return False

    async def try_get(self, key: str, value_type: Optional[Type[T]] = None) -> Optional[T]:
        try:
            return await self.get(key, value_type)
        except CacheError as e:
            logger.error(str(e), exc_info=e.original_error)
            return None

    async def try_remove(self, key: str) -> bool:
        try:
            await self.remove(key)
            return True
        except CacheError as e:
            logger.error(str(e), exc_info=e.original_error)
            return False

    async def try_refresh(self, key: str) -> bool:
        try:
            await self.refresh(key)
            return True
        except CacheError as e:
            logger.error(str(e), exc_info=e.original_error)
            return False
