"""
Event handlers that keep the entity cache coherent.

Created and updated entities are stored under their key; deleted ones are
removed. Entries that embed a changed entity are removed as well: a book
appears in its author's and its genre's detail, and authors and genres
appear in the detail of their books.
"""

from typing import Union

from ..caching import Cache, CacheEntries
from ..core import EventHandler
from .messages import (
    AuthorCreatedEvent,
    AuthorDeletedEvent,
    AuthorUpdatedEvent,
    BookCreatedEvent,
    BookDeletedEvent,
    BookUpdatedEvent,
    GenreCreatedEvent,
    GenreDeletedEvent,
    GenreUpdatedEvent,
)


class CacheEventHandler(EventHandler):
    """Base class for the handlers that maintain cached entries."""

    is_priority = True

    def __init__(self, cache: Cache):
        self.cache = cache

    async def remove_books(self, books) -> None:
        for book in books:
            await self.cache.remove(CacheEntries.book_key(book.id))


class AuthorCacheHandler(CacheEventHandler):
    async def handle(
        self, event: Union[AuthorCreatedEvent, AuthorUpdatedEvent, AuthorDeletedEvent]
    ) -> None:
        author = event.author
        key = CacheEntries.author_key(author.id)

        if isinstance(event, AuthorDeletedEvent):
            await self.cache.remove(key)
        else:
            await self.cache.set(key, author)

        if not isinstance(event, AuthorCreatedEvent):
            await self.remove_books(author.books)


class GenreCacheHandler(CacheEventHandler):
    async def handle(
        self, event: Union[GenreCreatedEvent, GenreUpdatedEvent, GenreDeletedEvent]
    ) -> None:
        genre = event.genre
        key = CacheEntries.genre_key(genre.id)

        if isinstance(event, GenreDeletedEvent):
            await self.cache.remove(key)
        else:
            await self.cache.set(key, genre)

        if not isinstance(event, GenreCreatedEvent):
            await self.remove_books(genre.books)


class BookCacheHandler(CacheEventHandler):
    async def handle(
        self, event: Union[BookCreatedEvent, BookUpdatedEvent, BookDeletedEvent]
    ) -> None:
        book = event.book
        key = CacheEntries.book_key(book.id)

        if isinstance(event, BookDeletedEvent):
            await self.cache.remove(key)
        else:
            await self.cache.set(key, book)

        await self.cache.remove(CacheEntries.author_key(book.author.id))
        await self.cache.remove(CacheEntries.genre_key(book.genre.id))


CACHE_HANDLERS = (AuthorCacheHandler, BookCacheHandler, GenreCacheHandler)


def register_cache_handlers(dispatcher, cache: Cache) -> None:
    """Register the cache handlers for every event they handle."""
    for handler_class in CACHE_HANDLERS:
        handler = handler_class(cache)
        for event_type in handler_class._handles:
            dispatcher.register(event_type, handler, priority=handler_class.is_priority)
