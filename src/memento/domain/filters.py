"""Repository filters and order-by options."""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from ..repository import EntityFilter


class AuthorOrderBy(str, Enum):
    ID = "Id"
    CREATED_AT = "CreatedAt"
    UPDATED_AT = "UpdatedAt"
    NAME = "Name"
    BIRTH_DATE = "BirthDate"


class BookOrderBy(str, Enum):
    ID = "Id"
    CREATED_AT = "CreatedAt"
    UPDATED_AT = "UpdatedAt"
    NAME = "Name"
    RELEASE_DATE = "ReleaseDate"
    AUTHOR = "Author"
    GENRE = "Genre"


class GenreOrderBy(str, Enum):
    ID = "Id"
    CREATED_AT = "CreatedAt"
    UPDATED_AT = "UpdatedAt"
    NAME = "Name"


@dataclass
class AuthorFilter(EntityFilter):
    name: Optional[str] = None
    born_before: Optional[date] = None
    born_after: Optional[date] = None
    order_by: AuthorOrderBy = AuthorOrderBy.ID


@dataclass
class BookFilter(EntityFilter):
    name: Optional[str] = None
    released_before: Optional[date] = None
    released_after: Optional[date] = None
    author: Optional[str] = None
    genre: Optional[str] = None
    order_by: BookOrderBy = BookOrderBy.ID


@dataclass
class GenreFilter(EntityFilter):
    name: Optional[str] = None
    order_by: GenreOrderBy = GenreOrderBy.ID
