"""Pages of items and their JSON codec."""

import json
import math
from typing import Any, Callable, Dict, Generic, Iterator, List, Optional, TypeVar, Union

T = TypeVar("T")
U = TypeVar("U")


class PageDecodeError(ValueError):
    """Raised when a JSON document is not a valid page."""


class Page(Generic[T]):
    """
    A page of items plus the paging and ordering it was produced with.

    Behaves like a read-only list of its items.

    Usage:
        page = Page.create(books, total_items=len(books), page_number=2, page_size=10)
        contracts = page.map(BookSummaryContract.model_validate)
    """

    def __init__(
        self,
        items: List[T],
        total_items: int,
        page_number: int,
        page_size: int,
        order_by: Optional[str] = None,
        order_direction: Optional[str] = None,
        total_pages: Optional[int] = None,
    ):
        self.items = list(items)
        self.total_items = total_items
        self.page_number = page_number
        self.page_size = page_size
        self.order_by = order_by
        self.order_direction = order_direction
        if total_pages is None:
            total_pages = max(math.ceil(total_items / page_size), 1) if page_size > 0 else 1
        self.total_pages = total_pages

    @classmethod
    def create(
        cls,
        items: List[T],
        total_items: int,
        page_number: int,
        page_size: int,
        order_by: Optional[str] = None,
        order_direction: Optional[str] = None,
    ) -> "Page[T]":
        """Build a page by slicing the requested page out of `items`."""
        start = (page_number - 1) * page_size
        return cls(
            list(items)[start:start + page_size],
            total_items,
            page_number,
            page_size,
            order_by,
            order_direction,
        )

    @classmethod
    def create_unmodified(
        cls,
        items: List[T],
        total_items: int,
        page_number: int,
        page_size: int,
        order_by: Optional[str] = None,
        order_direction: Optional[str] = None,
    ) -> "Page[T]":
        """Build a page from items that are already the requested page."""
        return cls(items, total_items, page_number, page_size, order_by, order_direction)

    def map(self, func: Callable[[T], U]) -> "Page[U]":
        """Convert the items, keeping the paging metadata."""
        return Page(
            [func(item) for item in self.items],
            self.total_items,
            self.page_number,
            self.page_size,
            self.order_by,
            self.order_direction,
            total_pages=self.total_pages,
        )

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index):
        return self.items[index]

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Page):
            return NotImplemented
        return (
            self.items == other.items
            and self.total_items == other.total_items
            and self.total_pages == other.total_pages
            and self.page_number == other.page_number
            and self.page_size == other.page_size
            and self.order_by == other.order_by
            and self.order_direction == other.order_direction
        )

    def __repr__(self) -> str:
        return (
            f"Page(page_number={self.page_number}, page_size={self.page_size}, "
            f"total_items={self.total_items}, total_pages={self.total_pages}, items={self.items!r})"
        )


class PageCodec(Generic[T]):
    """
    JSON codec for pages.

    Writes `{pageSize, pageNumber, totalPages, totalItems, orderBy,
    orderDirection, items}` with every item passed through `item_encoder`.
    Reading accepts the same document; with `case_insensitive` the property
    names may use any casing. Missing numbers default to 0 and missing
    items to an empty list; anything else in the document is rejected.

    Usage:
        codec = PageCodec(
            item_encoder=lambda book: book.model_dump(mode="json", by_alias=True),
            item_decoder=BookSummaryContract.model_validate,
        )
        document = codec.encode(page)
        page = codec.decode(document)
    """

    PROPERTIES = {
        "pageSize": "page_size",
        "pageNumber": "page_number",
        "totalPages": "total_pages",
        "totalItems": "total_items",
        "orderBy": "order_by",
        "orderDirection": "order_direction",
        "items": "items",
    }

    def __init__(
        self,
        item_encoder: Optional[Callable[[T], Any]] = None,
        item_decoder: Optional[Callable[[Any], T]] = None,
        case_insensitive: bool = False,
    ):
        self.item_encoder = item_encoder or (lambda item: item)
        self.item_decoder = item_decoder or (lambda item: item)
        self.case_insensitive = case_insensitive

    def encode(self, page: Page[T]) -> Dict[str, Any]:
        return {
            "pageSize": page.page_size,
            "pageNumber": page.page_number,
            "totalPages": page.total_pages,
            "totalItems": page.total_items,
            "orderBy": page.order_by,
            "orderDirection": page.order_direction,
            "items": [self.item_encoder(item) for item in page.items],
        }

    def dumps(self, page: Page[T]) -> str:
        return json.dumps(self.encode(page))

    def decode(self, document: Union[str, bytes, Dict[str, Any]]) -> Page[T]:
        """
        Read a page.

        Raises:
            PageDecodeError: If the document is not a JSON object, holds an
                unknown property or a value of the wrong type.
        """
        if isinstance(document, (str, bytes)):
            try:
                document = json.loads(document)
            except ValueError as e:
                raise PageDecodeError(f"Invalid JSON: {e}") from e

        if not isinstance(document, dict):
            raise PageDecodeError(f"Expected a JSON object, got {type(document).__name__}")

        values: Dict[str, Any] = {
            "page_size": 0,
            "page_number": 0,
            "total_pages": 0,
            "total_items": 0,
            "order_by": None,
            "order_direction": None,
            "items": [],
        }
        for name, value in document.items():
            attribute = self._attribute_for(name)
            if attribute is None:
                raise PageDecodeError(f"Unexpected property '{name}'")
            values[attribute] = self._read_value(name, attribute, value)

        return Page(
            values["items"],
            values["total_items"],
            values["page_number"],
            values["page_size"],
            values["order_by"],
            values["order_direction"],
            total_pages=values["total_pages"],
        )

    def _attribute_for(self, name: str) -> Optional[str]:
        if not self.case_insensitive:
            return self.PROPERTIES.get(name)
        for property_name, attribute in self.PROPERTIES.items():
            if property_name.lower() == name.lower():
                return attribute
        return None

    def _read_value(self, name: str, attribute: str, value: Any) -> Any:
        if attribute == "items":
            if not isinstance(value, list):
                raise PageDecodeError(f"Property '{name}' must be an array")
            return [self.item_decoder(item) for item in value]
        if attribute in ("order_by", "order_direction"):
            if value is not None and not isinstance(value, str):
                raise PageDecodeError(f"Property '{name}' must be a string")
            return value
        if isinstance(value, bool) or not isinstance(value, int):
            raise PageDecodeError(f"Property '{name}' must be an integer")
        return value
