import json
import uuid

import pytest
from sqlalchemy import func, select

from memento.domain.entities import Author, Book, Genre
from memento.domain.seeding import AuthorSeed, DomainSeeder

AUTHOR_ID = "3f1c2a5e-0000-4000-8000-000000000001"
GENRE_ID = "3f1c2a5e-0000-4000-8000-000000000002"


def write_seed(directory, name, records):
    (directory / f"{name}.json").write_text(json.dumps(records))


@pytest.fixture
def seed_directory(tmp_path):
    write_seed(tmp_path, "Authors", [{"id": AUTHOR_ID, "name": "Ursula K. Le Guin", "birthDate": "1929-10-21"}])
    write_seed(tmp_path, "Genres", [{"id": GENRE_ID, "name": "Fantasy"}, {"name": "Poetry"}])
    write_seed(
        tmp_path,
        "Books",
        [
            {
                "name": "A Wizard of Earthsea",
                "releaseDate": "1968-01-01",
                "authorId": AUTHOR_ID,
                "genreId": GENRE_ID,
            }
        ],
    )
    return tmp_path


async def count(session, entity_class):
    return (await session.execute(select(func.count()).select_from(entity_class))).scalar_one()


@pytest.mark.asyncio
async def test_seed_inserts_records(session, seed_directory):
    await DomainSeeder(session, seed_directory).seed()

    author = (await session.execute(select(Author))).scalar_one()
    book = (await session.execute(select(Book))).scalar_one()
    assert author.id == uuid.UUID(AUTHOR_ID)
    assert book.author_id == author.id
    assert await count(session, Genre) == 2


@pytest.mark.asyncio
async def test_seed_is_idempotent(session, seed_directory):
    await DomainSeeder(session, seed_directory).seed()
    await DomainSeeder(session, seed_directory).seed()

    assert await count(session, Author) == 1
    assert await count(session, Genre) == 2
    assert await count(session, Book) == 1


@pytest.mark.asyncio
async def test_environment_file_is_added(session, seed_directory):
    write_seed(seed_directory, "Genres.Development", [{"name": "Horror"}, {"name": "Fantasy"}])

    await DomainSeeder(session, seed_directory, environment="Development").seed()

    names = (await session.execute(select(Genre.name).order_by(Genre.name))).scalars().all()
    assert names == ["Fantasy", "Horror", "Poetry"]


@pytest.mark.asyncio
async def test_environment_file_of_other_environment_is_ignored(session, seed_directory):
    write_seed(seed_directory, "Genres.Production", [{"name": "Horror"}])

    await DomainSeeder(session, seed_directory, environment="Development").seed()

    assert await count(session, Genre) == 2


@pytest.mark.asyncio
async def test_missing_directory_seeds_nothing(session, tmp_path):
    await DomainSeeder(session, tmp_path / "missing").seed()

    assert await count(session, Author) == 0


@pytest.mark.asyncio
async def test_broken_file_is_logged_and_skipped(session, seed_directory, caplog):
    (seed_directory / "Books.json").write_text("[{not json")

    await DomainSeeder(session, seed_directory).seed()

    assert await count(session, Book) == 0
    assert await count(session, Author) == 1
    assert "Could not read seed file" in caplog.text


def test_read_sorts_by_name(seed_directory):
    write_seed(seed_directory, "Authors", [{"name": "Zadie Smith", "birthDate": "1975-10-25"}, {"name": "Anne Rice", "birthDate": "1941-10-04"}])

    records = DomainSeeder(None, seed_directory).read("Authors", AuthorSeed)

    assert [record.name for record in records] == ["Anne Rice", "Zadie Smith"]
