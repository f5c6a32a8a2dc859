"""Test configuration and global fixtures.

Database tests run on an in-memory SQLite database through aiosqlite; HTTP
tests run the whole application in-process with the in-memory cache.
"""

from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from memento.app import create_app
from memento.backends.memory_cache import MemoryCacheService
from memento.backends.sqlalchemy import create_engine, create_schema, create_uow_factory
from memento.caching import Cache
from memento.config import DatabaseOptions, LoggingOptions, Settings
from memento.domain import handlers  # noqa: F401 - registers the handlers
from memento.domain.entities import Author, Book, Genre

MEMORY_DATABASE = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def engine():
    engine = create_engine(MEMORY_DATABASE)
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def uow_factory(engine):
    return create_uow_factory(engine)


@pytest.fixture
async def session(engine):
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
def cache_service():
    return MemoryCacheService()


@pytest.fixture
def cache(cache_service):
    return Cache(cache_service)


@pytest.fixture
async def library(session):
    """Two authors, two genres and three books."""
    tolkien = Author(name="J. R. R. Tolkien", birth_date=date(1892, 1, 3))
    herbert = Author(name="Frank Herbert", birth_date=date(1920, 10, 8))
    fantasy = Genre(name="Fantasy")
    science_fiction = Genre(name="Science Fiction")
    session.add_all([tolkien, herbert, fantasy, science_fiction])
    await session.flush()

    books = [
        Book(name="The Hobbit", release_date=date(1937, 9, 21), author_id=tolkien.id, genre_id=fantasy.id),
        Book(
            name="The Fellowship of the Ring",
            release_date=date(1954, 7, 29),
            author_id=tolkien.id,
            genre_id=fantasy.id,
        ),
        Book(name="Dune", release_date=date(1965, 8, 1), author_id=herbert.id, genre_id=science_fiction.id),
    ]
    session.add_all(books)
    await session.commit()

    return {
        "tolkien": tolkien,
        "herbert": herbert,
        "fantasy": fantasy,
        "science_fiction": science_fiction,
        "hobbit": books[0],
        "fellowship": books[1],
        "dune": books[2],
    }


@pytest.fixture
def settings():
    return Settings(
        database=DatabaseOptions(connection_string=MEMORY_DATABASE),
        logging=LoggingOptions(level="DEBUG"),
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    # Unhandled exceptions are answered by the 500 handler instead of re-raised
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client
