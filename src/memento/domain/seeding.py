"""Loads the initial authors, genres and books from JSON seed files."""

from datetime import date
from pathlib import Path
from typing import List, Optional, Type
import logging
import uuid

from pydantic import TypeAdapter
from sqlalchemy import select

from ..contrib.pydantic import Contract
from .entities import Author, Book, Genre

logger = logging.getLogger(__name__)


class AuthorSeed(Contract):
    id: Optional[uuid.UUID] = None
    name: str
    birth_date: date


class GenreSeed(Contract):
    id: Optional[uuid.UUID] = None
    name: str


class BookSeed(Contract):
    id: Optional[uuid.UUID] = None
    name: str
    release_date: date
    author_id: uuid.UUID
    genre_id: uuid.UUID


class DomainSeeder:
    """
    Seeds the database from `Authors`, `Genres` and `Books` JSON files.

    For every set, `{Name}.json` and `{Name}.{environment}.json` are read
    from the seed directory; a missing file is skipped and a broken file is
    logged and skipped. Records whose name already exists are not added
    again, so seeding can run at every startup.

    Usage:
        async with uow_factory() as uow:
            await DomainSeeder(uow.session, "seed", environment="Development").seed()
    """

    AUTHORS_FILE_NAME = "Authors"
    GENRES_FILE_NAME = "Genres"
    BOOKS_FILE_NAME = "Books"

    def __init__(self, session, directory, environment: Optional[str] = None):
        self.session = session
        self.directory = Path(directory)
        self.environment = environment

    async def seed(self) -> None:
        await self._seed(self.AUTHORS_FILE_NAME, AuthorSeed, Author)
        await self._seed(self.GENRES_FILE_NAME, GenreSeed, Genre)
        await self._seed(self.BOOKS_FILE_NAME, BookSeed, Book)

    def read(self, file_name: str, seed_type: Type[Contract]) -> List[Contract]:
        """Read the records of a seed set, global file first."""
        paths = [self.directory / f"{file_name}.json"]
        if self.environment:
            paths.append(self.directory / f"{file_name}.{self.environment}.json")

        records = []
        adapter = TypeAdapter(List[seed_type])
        for path in paths:
            try:
                records.extend(adapter.validate_json(path.read_bytes()))
            except FileNotFoundError:
                logger.debug(f"Seed file {path} does not exist")
            except Exception as e:
                logger.error(f"Could not read seed file {path}: {e}", exc_info=True)

        return sorted(records, key=lambda record: record.name)

    async def _seed(self, file_name: str, seed_type: Type[Contract], entity_class: Type) -> None:
        records = self.read(file_name, seed_type)
        added = 0

        for record in records:
            statement = select(entity_class.id).where(entity_class.name == record.name)
            if (await self.session.execute(statement)).first() is not None:
                continue
            values = record.model_dump(exclude_none=True)
            self.session.add(entity_class(**values))
            added += 1

        await self.session.flush()
        if added:
            logger.info(f"Seeded {added} {entity_class.__tablename__}")
