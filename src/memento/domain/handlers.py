"""
Command and query handlers of the Author, Book and Genre resources.

Handlers run inside the unit of work opened by the mediator and build
their repository on its session. Command handlers attach the resulting
event to their result; the mediator dispatches it after commit.
"""

from ..core import CommandHandler, QueryHandler
from ..mediator import get_current_uow
from ..middleware import middleware
from . import mapping
from .messages import (
    AuthorCreatedEvent,
    AuthorDeletedEvent,
    AuthorUpdatedEvent,
    BookCreatedEvent,
    BookDeletedEvent,
    BookUpdatedEvent,
    CreateAuthorCommand,
    CreateAuthorCommandResult,
    CreateBookCommand,
    CreateBookCommandResult,
    CreateGenreCommand,
    CreateGenreCommandResult,
    DeleteAuthorCommand,
    DeleteAuthorCommandResult,
    DeleteBookCommand,
    DeleteBookCommandResult,
    DeleteGenreCommand,
    DeleteGenreCommandResult,
    GenreCreatedEvent,
    GenreDeletedEvent,
    GenreUpdatedEvent,
    GetAuthorQuery,
    GetAuthorQueryResult,
    GetAuthorsQuery,
    GetAuthorsQueryResult,
    GetBookQuery,
    GetBookQueryResult,
    GetBooksQuery,
    GetBooksQueryResult,
    GetGenreQuery,
    GetGenreQueryResult,
    GetGenresQuery,
    GetGenresQueryResult,
    UpdateAuthorCommand,
    UpdateAuthorCommandResult,
    UpdateBookCommand,
    UpdateBookCommandResult,
    UpdateGenreCommand,
    UpdateGenreCommandResult,
)
from .repositories import AuthorRepository, BookRepository, GenreRepository
from .validators import AuthorFormValidator, BookFormValidator, GenreFormValidator


def _session():
    uow = get_current_uow()
    if uow is None:
        raise RuntimeError("No active unit of work; send messages through the Mediator")
    return uow.session


def _result_ids(message) -> dict:
    return {"correlation_id": message.correlation_id, "user_id": message.user_id}


# =============================================================================
# Author
# =============================================================================


@middleware.log()
@middleware.validate(AuthorFormValidator, attribute="contract")
class CreateAuthorCommandHandler(CommandHandler):
    async def handle(self, command: CreateAuthorCommand) -> CreateAuthorCommandResult:
        author = mapping.author_from_form(command.contract)
        author.created_by = command.user_id

        author = await AuthorRepository(_session()).create(author)
        contract = mapping.author_to_detail(author)

        return CreateAuthorCommandResult(
            **_result_ids(command),
            author=contract,
            events=[AuthorCreatedEvent(correlation_id=command.correlation_id, author=contract)],
        )


@middleware.log()
@middleware.validate(AuthorFormValidator, attribute="contract")
class UpdateAuthorCommandHandler(CommandHandler):
    async def handle(self, command: UpdateAuthorCommand) -> UpdateAuthorCommandResult:
        author = mapping.author_from_form(command.contract, command.author_id)
        author.updated_by = command.user_id

        author = await AuthorRepository(_session()).update(author)
        contract = mapping.author_to_detail(author)

        return UpdateAuthorCommandResult(
            **_result_ids(command),
            events=[AuthorUpdatedEvent(correlation_id=command.correlation_id, author=contract)],
        )


@middleware.log()
class DeleteAuthorCommandHandler(CommandHandler):
    async def handle(self, command: DeleteAuthorCommand) -> DeleteAuthorCommandResult:
        author = await AuthorRepository(_session()).delete(command.author_id)
        contract = mapping.author_to_detail(author)

        return DeleteAuthorCommandResult(
            **_result_ids(command),
            events=[AuthorDeletedEvent(correlation_id=command.correlation_id, author=contract)],
        )


class GetAuthorQueryHandler(QueryHandler):
    async def handle(self, query: GetAuthorQuery) -> GetAuthorQueryResult:
        author = await AuthorRepository(_session()).get(query.author_id)
        return GetAuthorQueryResult(**_result_ids(query), author=mapping.author_to_detail(author))


class GetAuthorsQueryHandler(QueryHandler):
    async def handle(self, query: GetAuthorsQuery) -> GetAuthorsQueryResult:
        author_filter = mapping.author_filter_from_contract(query.filter)
        authors = await AuthorRepository(_session()).get_all(author_filter)
        return GetAuthorsQueryResult(
            **_result_ids(query), authors=mapping.author_page_to_contract(authors)
        )


# =============================================================================
# Book
# =============================================================================


@middleware.log()
@middleware.validate(BookFormValidator, attribute="contract")
class CreateBookCommandHandler(CommandHandler):
    async def handle(self, command: CreateBookCommand) -> CreateBookCommandResult:
        book = mapping.book_from_form(command.contract)
        book.created_by = command.user_id

        book = await BookRepository(_session()).create(book)
        contract = mapping.book_to_detail(book)

        return CreateBookCommandResult(
            **_result_ids(command),
            book=contract,
            events=[BookCreatedEvent(correlation_id=command.correlation_id, book=contract)],
        )


@middleware.log()
@middleware.validate(BookFormValidator, attribute="contract")
class UpdateBookCommandHandler(CommandHandler):
    async def handle(self, command: UpdateBookCommand) -> UpdateBookCommandResult:
        book = mapping.book_from_form(command.contract, command.book_id)
        book.updated_by = command.user_id

        book = await BookRepository(_session()).update(book)
        contract = mapping.book_to_detail(book)

        return UpdateBookCommandResult(
            **_result_ids(command),
            events=[BookUpdatedEvent(correlation_id=command.correlation_id, book=contract)],
        )


@middleware.log()
class DeleteBookCommandHandler(CommandHandler):
    async def handle(self, command: DeleteBookCommand) -> DeleteBookCommandResult:
        book = await BookRepository(_session()).delete(command.book_id)
        contract = mapping.book_to_detail(book)

        return DeleteBookCommandResult(
            **_result_ids(command),
            events=[BookDeletedEvent(correlation_id=command.correlation_id, book=contract)],
        )


class GetBookQueryHandler(QueryHandler):
    async def handle(self, query: GetBookQuery) -> GetBookQueryResult:
        book = await BookRepository(_session()).get(query.book_id)
        return GetBookQueryResult(**_result_ids(query), book=mapping.book_to_detail(book))


class GetBooksQueryHandler(QueryHandler):
    async def handle(self, query: GetBooksQuery) -> GetBooksQueryResult:
        book_filter = mapping.book_filter_from_contract(query.filter)
        books = await BookRepository(_session()).get_all(book_filter)
        return GetBooksQueryResult(**_result_ids(query), books=mapping.book_page_to_contract(books))


# =============================================================================
# Genre
# =============================================================================


@middleware.log()
@middleware.validate(GenreFormValidator, attribute="contract")
class CreateGenreCommandHandler(CommandHandler):
    async def handle(self, command: CreateGenreCommand) -> CreateGenreCommandResult:
        genre = mapping.genre_from_form(command.contract)
        genre.created_by = command.user_id

        genre = await GenreRepository(_session()).create(genre)
        contract = mapping.genre_to_detail(genre)

        return CreateGenreCommandResult(
            **_result_ids(command),
            genre=contract,
            events=[GenreCreatedEvent(correlation_id=command.correlation_id, genre=contract)],
        )


@middleware.log()
@middleware.validate(GenreFormValidator, attribute="contract")
class UpdateGenreCommandHandler(CommandHandler):
    async def handle(self, command: UpdateGenreCommand) -> UpdateGenreCommandResult:
        genre = mapping.genre_from_form(command.contract, command.genre_id)
        genre.updated_by = command.user_id

        genre = await GenreRepository(_session()).update(genre)
        contract = mapping.genre_to_detail(genre)

        return UpdateGenreCommandResult(
            **_result_ids(command),
            events=[GenreUpdatedEvent(correlation_id=command.correlation_id, genre=contract)],
        )


@middleware.log()
class DeleteGenreCommandHandler(CommandHandler):
    async def handle(self, command: DeleteGenreCommand) -> DeleteGenreCommandResult:
        genre = await GenreRepository(_session()).delete(command.genre_id)
        contract = mapping.genre_to_detail(genre)

        return DeleteGenreCommandResult(
            **_result_ids(command),
            events=[GenreDeletedEvent(correlation_id=command.correlation_id, genre=contract)],
        )


class GetGenreQueryHandler(QueryHandler):
    async def handle(self, query: GetGenreQuery) -> GetGenreQueryResult:
        genre = await GenreRepository(_session()).get(query.genre_id)
        return GetGenreQueryResult(**_result_ids(query), genre=mapping.genre_to_detail(genre))


class GetGenresQueryHandler(QueryHandler):
    async def handle(self, query: GetGenresQuery) -> GetGenresQueryResult:
        genre_filter = mapping.genre_filter_from_contract(query.filter)
        genres = await GenreRepository(_session()).get_all(genre_filter)
        return GetGenresQueryResult(**_result_ids(query), genres=mapping.genre_page_to_contract(genres))
