"""HTTP contracts: detail, summary, form and filter views of each entity."""

from datetime import date
from enum import Enum
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Type
import uuid

from pydantic import Field, field_validator

from ..contrib.pydantic import Contract, EntityContract
from ..repository import OrderDirection
from .filters import AuthorOrderBy, BookOrderBy, GenreOrderBy


# =============================================================================
# Summaries and details
# =============================================================================


class AuthorSummaryContract(EntityContract):
    name: str
    birth_date: date


class GenreSummaryContract(EntityContract):
    name: str


class BookSummaryContract(EntityContract):
    name: str
    release_date: date


class AuthorDetailContract(AuthorSummaryContract):
    books: List[BookSummaryContract] = Field(default_factory=list)


class GenreDetailContract(GenreSummaryContract):
    books: List[BookSummaryContract] = Field(default_factory=list)


class BookDetailContract(BookSummaryContract):
    author: AuthorSummaryContract
    genre: GenreSummaryContract


# =============================================================================
# Forms
# =============================================================================


class AuthorFormContract(Contract):
    name: Optional[str] = None
    birth_date: Optional[date] = None


class GenreFormContract(Contract):
    name: Optional[str] = None


class BookFormContract(Contract):
    name: Optional[str] = None
    release_date: Optional[date] = None
    author_id: Optional[uuid.UUID] = None
    genre_id: Optional[uuid.UUID] = None


# =============================================================================
# Filters
# =============================================================================


INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1


def _parse_int32(value: str) -> int:
    number = int(value)
    if not INT32_MIN <= number <= INT32_MAX:
        raise ValueError(f"'{value}' is outside the 32-bit integer range")
    return number


def _parse_date(value: str) -> date:
    return date.fromisoformat(value)


def _parse_enum(enum_type: Type[Enum]):
    def parse(value: str) -> Enum:
        for member in enum_type:
            if member.value.lower() == value.lower() or member.name.lower() == value.lower():
                return member
        raise ValueError(f"'{value}' is not a valid {enum_type.__name__}")

    return parse


class EntityFilterContract(Contract):
    """
    Paging and ordering of a list request.

    The page number is clamped to at least 1 and the page size to
    [MINIMUM_PAGE_SIZE, MAXIMUM_PAGE_SIZE].
    """

    MAXIMUM_PAGE_SIZE: ClassVar[int] = 50
    DEFAULT_PAGE_SIZE: ClassVar[int] = 10
    MINIMUM_PAGE_SIZE: ClassVar[int] = 1

    # query parameter -> (field, parser)
    filter_parameters: ClassVar[Dict[str, tuple]] = {}

    page_number: int = 1
    page_size: int = 10
    order_direction: OrderDirection = OrderDirection.ASCENDING

    @field_validator("page_number", mode="after")
    @classmethod
    def clamp_page_number(cls, value: int) -> int:
        return max(value, 1)

    @field_validator("page_size", mode="after")
    @classmethod
    def clamp_page_size(cls, value: int) -> int:
        return min(max(value, cls.MINIMUM_PAGE_SIZE), cls.MAXIMUM_PAGE_SIZE)

    @classmethod
    def _parameters(cls) -> Dict[str, tuple]:
        order_by_type = cls.model_fields["order_by"].annotation
        return {
            **cls.filter_parameters,
            "PageNumber": ("page_number", _parse_int32),
            "PageSize": ("page_size", _parse_int32),
            "OrderBy": ("order_by", _parse_enum(order_by_type)),
            "OrderDirection": ("order_direction", _parse_enum(OrderDirection)),
        }

    @classmethod
    def read_from_query(cls, query: Optional[Mapping[str, Any]]) -> "EntityFilterContract":
        """
        Build a filter from query string parameters.

        Parameter names are matched case-insensitively; values that cannot
        be parsed are ignored and the default is kept.
        """
        values: Dict[str, Any] = {}
        if query:
            lowered = {str(key).lower(): value for key, value in query.items()}
            for parameter, (field_name, parse) in cls._parameters().items():
                raw = lowered.get(parameter.lower())
                if isinstance(raw, (list, tuple)):
                    raw = raw[-1] if raw else None
                if raw is None:
                    continue
                try:
                    values[field_name] = parse(str(raw))
                except ValueError:
                    continue
        return cls(**values)

    def write_to_query(self) -> Dict[str, str]:
        """Render the filter as query string parameters."""
        query: Dict[str, str] = {}
        for parameter, (field_name, _) in self.filter_parameters.items():
            value = getattr(self, field_name)
            if value is None or (isinstance(value, str) and not value.strip()):
                continue
            query[parameter] = value.isoformat() if isinstance(value, date) else str(value)

        query["PageNumber"] = str(self.page_number)
        query["PageSize"] = str(self.page_size)
        query["OrderBy"] = self.order_by.value
        query["OrderDirection"] = self.order_direction.value
        return query


class AuthorFilterContract(EntityFilterContract):
    filter_parameters: ClassVar[Dict[str, tuple]] = {
        "Name": ("name", str),
        "BornBefore": ("born_before", _parse_date),
        "BornAfter": ("born_after", _parse_date),
    }

    name: Optional[str] = None
    born_before: Optional[date] = None
    born_after: Optional[date] = None
    order_by: AuthorOrderBy = AuthorOrderBy.ID


class BookFilterContract(EntityFilterContract):
    filter_parameters: ClassVar[Dict[str, tuple]] = {
        "Name": ("name", str),
        "ReleasedBefore": ("released_before", _parse_date),
        "ReleasedAfter": ("released_after", _parse_date),
        "Author": ("author", str),
        "Genre": ("genre", str),
    }

    name: Optional[str] = None
    released_before: Optional[date] = None
    released_after: Optional[date] = None
    author: Optional[str] = None
    genre: Optional[str] = None
    order_by: BookOrderBy = BookOrderBy.ID


class GenreFilterContract(EntityFilterContract):
    filter_parameters: ClassVar[Dict[str, tuple]] = {
        "Name": ("name", str),
    }

    name: Optional[str] = None
    order_by: GenreOrderBy = GenreOrderBy.ID
