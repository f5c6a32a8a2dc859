from datetime import date
import uuid

import pytest

from memento.domain.entities import Author, Book, Genre
from memento.domain.filters import (
    AuthorFilter,
    AuthorOrderBy,
    BookFilter,
    BookOrderBy,
    GenreFilter,
    GenreOrderBy,
)
from memento.domain.repositories import AuthorRepository, BookRepository, GenreRepository
from memento.exceptions import StandardException, StandardExceptionType
from memento.repository import OrderDirection


# --- Create ---


@pytest.mark.asyncio
async def test_create_genre_trims_name(session):
    genre = await GenreRepository(session).create(Genre(name="  Horror  ", created_by="alice"))

    assert genre.id is not None
    assert genre.name == "Horror"
    assert genre.created_by == "alice"
    assert genre.created_at is not None
    assert genre.books == []


@pytest.mark.asyncio
async def test_create_author_with_missing_fields(session):
    with pytest.raises(StandardException) as excinfo:
        await AuthorRepository(session).create(Author(name="   "))

    assert excinfo.value.type == StandardExceptionType.BAD_REQUEST
    assert excinfo.value.messages == [
        "The field 'Name' is invalid.",
        "The field 'BirthDate' is invalid.",
    ]


@pytest.mark.asyncio
async def test_create_duplicate_author(session, library):
    with pytest.raises(StandardException) as excinfo:
        await AuthorRepository(session).create(Author(name="Frank Herbert", birth_date=date(1920, 10, 8)))

    assert excinfo.value.messages == ["There is already an entity with the same 'Name' and 'BirthDate'."]


@pytest.mark.asyncio
async def test_same_author_name_with_other_birth_date_is_allowed(session, library):
    author = await AuthorRepository(session).create(Author(name="Frank Herbert", birth_date=date(1950, 1, 1)))

    assert author.name == "Frank Herbert"


@pytest.mark.asyncio
async def test_create_duplicate_genre(session, library):
    with pytest.raises(StandardException) as excinfo:
        await GenreRepository(session).create(Genre(name="Fantasy"))

    assert excinfo.value.messages == ["There is already an entity with the same 'Name'."]


@pytest.mark.asyncio
async def test_create_book_loads_author_and_genre(session, library):
    book = await BookRepository(session).create(
        Book(
            name="Children of Dune",
            release_date=date(1976, 4, 1),
            author_id=library["herbert"].id,
            genre_id=library["science_fiction"].id,
        )
    )

    assert book.author.name == "Frank Herbert"
    assert book.genre.name == "Science Fiction"


@pytest.mark.asyncio
async def test_create_book_with_unknown_references(session, library):
    with pytest.raises(StandardException) as excinfo:
        await BookRepository(session).create(
            Book(name="Orphan", release_date=date(2000, 1, 1), author_id=uuid.uuid4(), genre_id=None)
        )

    assert excinfo.value.messages == [
        "The field 'Author' is invalid.",
        "The field 'Genre' is invalid.",
    ]


@pytest.mark.asyncio
async def test_create_duplicate_book(session, library):
    with pytest.raises(StandardException) as excinfo:
        await BookRepository(session).create(
            Book(
                name="Dune",
                release_date=date(1965, 8, 1),
                author_id=library["tolkien"].id,
                genre_id=library["fantasy"].id,
            )
        )

    assert excinfo.value.messages == ["There is already an entity with the same 'Name' and 'ReleaseDate'."]


# --- Update ---


@pytest.mark.asyncio
async def test_update_genre(session, library):
    fantasy = library["fantasy"]

    genre = await GenreRepository(session).update(Genre(id=fantasy.id, name="High Fantasy", updated_by="bob"))

    assert genre.name == "High Fantasy"
    assert genre.updated_by == "bob"
    assert [book.name for book in genre.books] == ["The Fellowship of the Ring", "The Hobbit"]


@pytest.mark.asyncio
async def test_update_keeping_own_name_is_not_duplicate(session, library):
    dune = library["dune"]

    book = await BookRepository(session).update(
        Book(
            id=dune.id,
            name="Dune",
            release_date=dune.release_date,
            author_id=dune.author_id,
            genre_id=library["fantasy"].id,
        )
    )

    assert book.genre.name == "Fantasy"


@pytest.mark.asyncio
async def test_update_missing_entity(session, library):
    with pytest.raises(StandardException) as excinfo:
        await GenreRepository(session).update(Genre(id=uuid.uuid4(), name="Poetry"))

    assert excinfo.value.type == StandardExceptionType.NOT_FOUND
    assert excinfo.value.messages == ["The genre does not exist."]


@pytest.mark.asyncio
async def test_update_to_duplicate_name(session, library):
    with pytest.raises(StandardException) as excinfo:
        await GenreRepository(session).update(Genre(id=library["fantasy"].id, name="Science Fiction"))

    assert excinfo.value.type == StandardExceptionType.BAD_REQUEST


# --- Delete ---


@pytest.mark.asyncio
async def test_delete_book_returns_it(session, library):
    repository = BookRepository(session)
    hobbit_id = library["hobbit"].id

    deleted = await repository.delete(hobbit_id)

    assert deleted.name == "The Hobbit"
    assert deleted.author.name == "J. R. R. Tolkien"
    assert await repository.exists(hobbit_id) is False


@pytest.mark.asyncio
async def test_delete_missing_entity(session, library):
    with pytest.raises(StandardException) as excinfo:
        await AuthorRepository(session).delete(uuid.uuid4())

    assert excinfo.value.type == StandardExceptionType.NOT_FOUND
    assert excinfo.value.messages == ["The author does not exist."]


@pytest.mark.asyncio
async def test_delete_referenced_author_is_rejected(session, library):
    with pytest.raises(StandardException) as excinfo:
        await AuthorRepository(session).delete(library["tolkien"].id)

    assert excinfo.value.type == StandardExceptionType.BAD_REQUEST
    assert excinfo.value.messages == ["The author cannot be deleted because it is still referenced."]


# --- Get ---


@pytest.mark.asyncio
async def test_get_author_with_books(session, library):
    author = await AuthorRepository(session).get(library["tolkien"].id)

    assert [book.name for book in author.books] == ["The Fellowship of the Ring", "The Hobbit"]


@pytest.mark.asyncio
async def test_get_missing_book(session, library):
    with pytest.raises(StandardException) as excinfo:
        await BookRepository(session).get(uuid.uuid4())

    assert excinfo.value.messages == ["The book does not exist."]


@pytest.mark.asyncio
async def test_exists(session, library):
    repository = GenreRepository(session)

    assert await repository.exists(library["fantasy"].id) is True
    assert await repository.exists(uuid.uuid4()) is False


# --- Get all ---


@pytest.mark.asyncio
async def test_get_all_authors_by_name(session, library):
    page = await AuthorRepository(session).get_all(AuthorFilter(order_by=AuthorOrderBy.NAME))

    assert [author.name for author in page.items] == ["Frank Herbert", "J. R. R. Tolkien"]
    assert page.total_items == 2
    assert page.total_pages == 1
    assert page.order_by == "Name"
    assert page.order_direction == "Ascending"


@pytest.mark.asyncio
async def test_get_all_authors_filtered(session, library):
    repository = AuthorRepository(session)

    by_name = await repository.get_all(AuthorFilter(name="TOLK"))
    born_after = await repository.get_all(AuthorFilter(born_after=date(1900, 1, 1)))
    born_before = await repository.get_all(AuthorFilter(born_before=date(1892, 1, 3)))

    assert [author.name for author in by_name.items] == ["J. R. R. Tolkien"]
    assert [author.name for author in born_after.items] == ["Frank Herbert"]
    assert [author.name for author in born_before.items] == ["J. R. R. Tolkien"]


@pytest.mark.asyncio
async def test_get_all_books_by_author_and_genre_name(session, library):
    repository = BookRepository(session)

    tolkien = await repository.get_all(BookFilter(author="tolkien", order_by=BookOrderBy.NAME))
    science = await repository.get_all(BookFilter(genre="science"))

    assert [book.name for book in tolkien.items] == ["The Fellowship of the Ring", "The Hobbit"]
    assert [book.name for book in science.items] == ["Dune"]


@pytest.mark.asyncio
async def test_get_all_books_by_release_range(session, library):
    page = await BookRepository(session).get_all(
        BookFilter(
            released_after=date(1937, 9, 21),
            released_before=date(1960, 1, 1),
            order_by=BookOrderBy.RELEASE_DATE,
        )
    )

    assert [book.name for book in page.items] == ["The Hobbit", "The Fellowship of the Ring"]


@pytest.mark.asyncio
async def test_get_all_books_ordered_by_author_descending(session, library):
    page = await BookRepository(session).get_all(
        BookFilter(order_by=BookOrderBy.AUTHOR, order_direction=OrderDirection.DESCENDING)
    )

    assert [book.author_id for book in page.items][-1] == library["herbert"].id


@pytest.mark.asyncio
async def test_get_all_pages(session, library):
    repository = BookRepository(session)

    first = await repository.get_all(BookFilter(page_number=1, page_size=2, order_by=BookOrderBy.NAME))
    second = await repository.get_all(BookFilter(page_number=2, page_size=2, order_by=BookOrderBy.NAME))
    beyond = await repository.get_all(BookFilter(page_number=5, page_size=2, order_by=BookOrderBy.NAME))

    assert [book.name for book in first.items] == ["Dune", "The Fellowship of the Ring"]
    assert [book.name for book in second.items] == ["The Hobbit"]
    assert first.total_items == second.total_items == 3
    assert first.total_pages == 2
    assert beyond.items == []
    assert beyond.page_number == 5


@pytest.mark.asyncio
async def test_get_all_escapes_like_wildcards(session, library):
    page = await GenreRepository(session).get_all(GenreFilter(name="%"))

    assert page.items == []
    assert page.total_items == 0


@pytest.mark.asyncio
async def test_get_all_genres_by_name_descending(session, library):
    page = await GenreRepository(session).get_all(
        GenreFilter(order_by=GenreOrderBy.NAME, order_direction=OrderDirection.DESCENDING)
    )

    assert [genre.name for genre in page.items] == ["Science Fiction", "Fantasy"]


@pytest.mark.asyncio
async def test_get_all_rejects_unknown_order_by(session, library):
    with pytest.raises(ValueError):
        await GenreRepository(session).get_all(GenreFilter(order_by=BookOrderBy.AUTHOR))
