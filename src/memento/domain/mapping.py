"""Conversions between entities, contracts and repository filters."""

from typing import Optional
import uuid

from ..pagination import Page
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
from .entities import Author, Book, Genre
from .filters import AuthorFilter, BookFilter, GenreFilter


# Author


def author_to_detail(author: Author) -> AuthorDetailContract:
    return AuthorDetailContract.model_validate(author)


def author_to_summary(author: Author) -> AuthorSummaryContract:
    return AuthorSummaryContract.model_validate(author)


def author_to_form(author: Author) -> AuthorFormContract:
    return AuthorFormContract(name=author.name, birth_date=author.birth_date)


def author_from_form(form: AuthorFormContract, author_id: Optional[uuid.UUID] = None) -> Author:
    return Author(id=author_id, name=form.name, birth_date=form.birth_date)


def author_filter_from_contract(contract: AuthorFilterContract) -> AuthorFilter:
    return AuthorFilter(
        page_number=contract.page_number,
        page_size=contract.page_size,
        order_by=contract.order_by,
        order_direction=contract.order_direction,
        name=contract.name,
        born_before=contract.born_before,
        born_after=contract.born_after,
    )


def author_filter_to_contract(author_filter: AuthorFilter) -> AuthorFilterContract:
    return AuthorFilterContract(
        page_number=author_filter.page_number,
        page_size=author_filter.page_size,
        order_by=author_filter.order_by,
        order_direction=author_filter.order_direction,
        name=author_filter.name,
        born_before=author_filter.born_before,
        born_after=author_filter.born_after,
    )


def author_page_to_contract(page: Page[Author]) -> Page[AuthorSummaryContract]:
    return page.map(author_to_summary)


# Book


def book_to_detail(book: Book) -> BookDetailContract:
    return BookDetailContract.model_validate(book)


def book_to_summary(book: Book) -> BookSummaryContract:
    return BookSummaryContract.model_validate(book)


def book_to_form(book: Book) -> BookFormContract:
    return BookFormContract(
        name=book.name,
        release_date=book.release_date,
        author_id=book.author_id,
        genre_id=book.genre_id,
    )


def book_from_form(form: BookFormContract, book_id: Optional[uuid.UUID] = None) -> Book:
    return Book(
        id=book_id,
        name=form.name,
        release_date=form.release_date,
        author_id=form.author_id,
        genre_id=form.genre_id,
    )


def book_filter_from_contract(contract: BookFilterContract) -> BookFilter:
    return BookFilter(
        page_number=contract.page_number,
        page_size=contract.page_size,
        order_by=contract.order_by,
        order_direction=contract.order_direction,
        name=contract.name,
        released_before=contract.released_before,
        released_after=contract.released_after,
        author=contract.author,
        genre=contract.genre,
    )


def book_filter_to_contract(book_filter: BookFilter) -> BookFilterContract:
    return BookFilterContract(
        page_number=book_filter.page_number,
        page_size=book_filter.page_size,
        order_by=book_filter.order_by,
        order_direction=book_filter.order_direction,
        name=book_filter.name,
        released_before=book_filter.released_before,
        released_after=book_filter.released_after,
        author=book_filter.author,
        genre=book_filter.genre,
    )


def book_page_to_contract(page: Page[Book]) -> Page[BookSummaryContract]:
    return page.map(book_to_summary)


# Genre


def genre_to_detail(genre: Genre) -> GenreDetailContract:
    return GenreDetailContract.model_validate(genre)


def genre_to_summary(genre: Genre) -> GenreSummaryContract:
    return GenreSummaryContract.model_validate(genre)


def genre_to_form(genre: Genre) -> GenreFormContract:
    return GenreFormContract(name=genre.name)


def genre_from_form(form: GenreFormContract, genre_id: Optional[uuid.UUID] = None) -> Genre:
    return Genre(id=genre_id, name=form.name)


def genre_filter_from_contract(contract: GenreFilterContract) -> GenreFilter:
    return GenreFilter(
        page_number=contract.page_number,
        page_size=contract.page_size,
        order_by=contract.order_by,
        order_direction=contract.order_direction,
        name=contract.name,
    )


def genre_filter_to_contract(genre_filter: GenreFilter) -> GenreFilterContract:
    return GenreFilterContract(
        page_number=genre_filter.page_number,
        page_size=genre_filter.page_size,
        order_by=genre_filter.order_by,
        order_direction=genre_filter.order_direction,
        name=genre_filter.name,
    )


def genre_page_to_contract(page: Page[Genre]) -> Page[GenreSummaryContract]:
    return page.map(genre_to_summary)
