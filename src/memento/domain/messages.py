"""Commands, queries, results and events of the Author, Book and Genre resources."""

from typing import Optional
import uuid

from ..contrib.pydantic import Command, CommandResult, Event, Query, QueryResult, page_of
from .contracts import (
    AuthorDetailContract,
    AuthorFilterContract,
    AuthorFormContract,
    AuthorSummaryContract,
    BookDetailContract,
    BookFilterContract,
    BookFormContract,
    BookSummaryContract,
    GenreDetailContract,
    GenreFilterContract,
    GenreFormContract,
    GenreSummaryContract,
)


# =============================================================================
# Author
# =============================================================================


class CreateAuthorCommand(Command):
    contract: AuthorFormContract


class CreateAuthorCommandResult(CommandResult):
    author: Optional[AuthorDetailContract] = None


class UpdateAuthorCommand(Command):
    author_id: uuid.UUID
    contract: AuthorFormContract


class UpdateAuthorCommandResult(CommandResult):
    pass


class DeleteAuthorCommand(Command):
    author_id: uuid.UUID


class DeleteAuthorCommandResult(CommandResult):
    pass


class GetAuthorQuery(Query):
    author_id: uuid.UUID


class GetAuthorQueryResult(QueryResult):
    author: Optional[AuthorDetailContract] = None


class GetAuthorsQuery(Query):
    filter: AuthorFilterContract


class GetAuthorsQueryResult(QueryResult):
    authors: Optional[page_of(AuthorSummaryContract)] = None


class AuthorCreatedEvent(Event):
    author: AuthorDetailContract


class AuthorUpdatedEvent(Event):
    author: AuthorDetailContract


class AuthorDeletedEvent(Event):
    author: AuthorDetailContract


# =============================================================================
# Book
# =============================================================================


class CreateBookCommand(Command):
    contract: BookFormContract


class CreateBookCommandResult(CommandResult):
    book: Optional[BookDetailContract] = None


class UpdateBookCommand(Command):
    book_id: uuid.UUID
    contract: BookFormContract


class UpdateBookCommandResult(CommandResult):
    pass


class DeleteBookCommand(Command):
    book_id: uuid.UUID


class DeleteBookCommandResult(CommandResult):
    pass


class GetBookQuery(Query):
    book_id: uuid.UUID


class GetBookQueryResult(QueryResult):
    book: Optional[BookDetailContract] = None


class GetBooksQuery(Query):
    filter: BookFilterContract


class GetBooksQueryResult(QueryResult):
    books: Optional[page_of(BookSummaryContract)] = None


class BookCreatedEvent(Event):
    book: BookDetailContract


class BookUpdatedEvent(Event):
    book: BookDetailContract


class BookDeletedEvent(Event):
    book: BookDetailContract


# =============================================================================
# Genre
# =============================================================================


class CreateGenreCommand(Command):
    contract: GenreFormContract


class CreateGenreCommandResult(CommandResult):
    genre: Optional[GenreDetailContract] = None


class UpdateGenreCommand(Command):
    genre_id: uuid.UUID
    contract: GenreFormContract


class UpdateGenreCommandResult(CommandResult):
    pass


class DeleteGenreCommand(Command):
    genre_id: uuid.UUID


class DeleteGenreCommandResult(CommandResult):
    pass


class GetGenreQuery(Query):
    genre_id: uuid.UUID


class GetGenreQueryResult(QueryResult):
    genre: Optional[GenreDetailContract] = None


class GetGenresQuery(Query):
    filter: GenreFilterContract


class GetGenresQueryResult(QueryResult):
    genres: Optional[page_of(GenreSummaryContract)] = None


class GenreCreatedEvent(Event):
    genre: GenreDetailContract


class GenreUpdatedEvent(Event):
    genre: GenreDetailContract


class GenreDeletedEvent(Event):
    genre: GenreDetailContract


EVENT_TYPES = (
    AuthorCreatedEvent,
    AuthorUpdatedEvent,
    AuthorDeletedEvent,
    BookCreatedEvent,
    BookUpdatedEvent,
    BookDeletedEvent,
    GenreCreatedEvent,
    GenreUpdatedEvent,
    GenreDeletedEvent,
)
