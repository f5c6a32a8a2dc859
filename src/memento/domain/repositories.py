"""Author, Book and Genre repositories."""

from sqlalchemy import Select, select
from sqlalchemy.orm import selectinload

from ..repository import EntityRepository
from .entities import Author, Book, Genre
from .filters import AuthorFilter, AuthorOrderBy, BookFilter, BookOrderBy, GenreFilter, GenreOrderBy


def _normalize_name(value):
    return value.strip() if isinstance(value, str) else value


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class AuthorRepository(EntityRepository[Author, AuthorFilter]):
    entity_class = Author
    entity_name = "author"

    def normalize_entity(self, author: Author) -> None:
        author.name = _normalize_name(author.name)

    async def validate_entity(self, author: Author) -> None:
        messages = []

        if _is_blank(author.name):
            messages.append(self.invalid_field("Name"))
        if author.birth_date is None:
            messages.append(self.invalid_field("BirthDate"))

        if not messages and await self._is_duplicate(author, Author.name, Author.birth_date):
            messages.append(self.duplicate_fields("Name", "BirthDate"))

        self.raise_if_invalid(messages)

    def update_entity(self, source: Author, target: Author) -> None:
        target.name = source.name
        target.birth_date = source.birth_date
        target.updated_by = source.updated_by

    def detail_statement(self) -> Select:
        return select(Author).options(selectinload(Author.books))

    def filter_statement(self, statement: Select, author_filter: AuthorFilter) -> Select:
        if not _is_blank(author_filter.name):
            statement = statement.where(Author.name.icontains(author_filter.name, autoescape=True))
        if author_filter.born_after is not None:
            statement = statement.where(Author.birth_date >= author_filter.born_after)
        if author_filter.born_before is not None:
            statement = statement.where(Author.birth_date <= author_filter.born_before)
        return statement

    def order_columns(self) -> dict:
        return {
            AuthorOrderBy.ID: Author.id,
            AuthorOrderBy.CREATED_AT: Author.created_at,
            AuthorOrderBy.UPDATED_AT: Author.updated_at,
            AuthorOrderBy.NAME: Author.name,
            AuthorOrderBy.BIRTH_DATE: Author.birth_date,
        }


class GenreRepository(EntityRepository[Genre, GenreFilter]):
    entity_class = Genre
    entity_name = "genre"

    def normalize_entity(self, genre: Genre) -> None:
        genre.name = _normalize_name(genre.name)

    async def validate_entity(self, genre: Genre) -> None:
        messages = []

        if _is_blank(genre.name):
            messages.append(self.invalid_field("Name"))
        elif await self._is_duplicate(genre, Genre.name):
            messages.append(self.duplicate_fields("Name"))

        self.raise_if_invalid(messages)

    def update_entity(self, source: Genre, target: Genre) -> None:
        target.name = source.name
        target.updated_by = source.updated_by

    def detail_statement(self) -> Select:
        return select(Genre).options(selectinload(Genre.books))

    def filter_statement(self, statement: Select, genre_filter: GenreFilter) -> Select:
        if not _is_blank(genre_filter.name):
            statement = statement.where(Genre.name.icontains(genre_filter.name, autoescape=True))
        return statement

    def order_columns(self) -> dict:
        return {
            GenreOrderBy.ID: Genre.id,
            GenreOrderBy.CREATED_AT: Genre.created_at,
            GenreOrderBy.UPDATED_AT: Genre.updated_at,
            GenreOrderBy.NAME: Genre.name,
        }


class BookRepository(EntityRepository[Book, BookFilter]):
    entity_class = Book
    entity_name = "book"

    def normalize_entity(self, book: Book) -> None:
        book.name = _normalize_name(book.name)

    async def validate_entity(self, book: Book) -> None:
        messages = []

        if _is_blank(book.name):
            messages.append(self.invalid_field("Name"))
        if book.release_date is None:
            messages.append(self.invalid_field("ReleaseDate"))
        if book.author_id is None or await self.session.get(Author, book.author_id) is None:
            messages.append(self.invalid_field("Author"))
        if book.genre_id is None or await self.session.get(Genre, book.genre_id) is None:
            messages.append(self.invalid_field("Genre"))

        if (
            not _is_blank(book.name)
            and book.release_date is not None
            and await self._is_duplicate(book, Book.name, Book.release_date)
        ):
            messages.append(self.duplicate_fields("Name", "ReleaseDate"))

        self.raise_if_invalid(messages)

    def update_entity(self, source: Book, target: Book) -> None:
        target.name = source.name
        target.release_date = source.release_date
        target.author_id = source.author_id
        target.genre_id = source.genre_id
        target.updated_by = source.updated_by

    def summary_statement(self) -> Select:
        return select(Book).join(Book.author).join(Book.genre)

    def detail_statement(self) -> Select:
        return select(Book).options(selectinload(Book.author), selectinload(Book.genre))

    def count_statement(self) -> Select:
        return select(Book.id).join(Book.author).join(Book.genre)

    def filter_statement(self, statement: Select, book_filter: BookFilter) -> Select:
        if not _is_blank(book_filter.name):
            statement = statement.where(Book.name.icontains(book_filter.name, autoescape=True))
        if not _is_blank(book_filter.author):
            statement = statement.where(Author.name.icontains(book_filter.author, autoescape=True))
        if not _is_blank(book_filter.genre):
            statement = statement.where(Genre.name.icontains(book_filter.genre, autoescape=True))
        if book_filter.released_after is not None:
            statement = statement.where(Book.release_date >= book_filter.released_after)
        if book_filter.released_before is not None:
            statement = statement.where(Book.release_date <= book_filter.released_before)
        return statement

    def order_columns(self) -> dict:
        return {
            BookOrderBy.ID: Book.id,
            BookOrderBy.CREATED_AT: Book.created_at,
            BookOrderBy.UPDATED_AT: Book.updated_at,
            BookOrderBy.NAME: Book.name,
            BookOrderBy.RELEASE_DATE: Book.release_date,
            BookOrderBy.AUTHOR: Author.name,
            BookOrderBy.GENRE: Genre.name,
        }
