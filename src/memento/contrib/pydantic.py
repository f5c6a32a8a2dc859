"""Pydantic integration: serializable messages, results and contracts."""

from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Optional, Type
import uuid

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
)
from pydantic.alias_generators import to_camel

from ..core import AbstractCommand, AbstractEvent, AbstractQuery
from ..exceptions import StandardException
from ..pagination import Page, PageCodec


def _parse_standard_exception(value: Any) -> Any:
    if isinstance(value, dict):
        return StandardException.from_dict(value)
    return value


SerializableException = Annotated[
    StandardException,
    BeforeValidator(_parse_standard_exception),
    PlainSerializer(lambda exception: exception.to_dict(), return_type=Dict[str, Any]),
]


def page_of(item_type: Type[BaseModel]) -> Any:
    """
    Annotated `Page` type whose items are `item_type` models.

    Pages are written and read with the `PageCodec` document layout, so a
    result holding a page survives the trip over the message bus.

    Usage:
        class GetBooksQueryResult(QueryResult):
            books: Optional[page_of(BookSummaryContract)] = None
    """
    codec = PageCodec(
        item_encoder=lambda item: item.model_dump(mode="json", by_alias=True),
        item_decoder=item_type.model_validate,
        case_insensitive=True,
    )

    def decode(value: Any) -> Any:
        if isinstance(value, (dict, str, bytes)):
            return codec.decode(value)
        return value

    return Annotated[
        Page,
        BeforeValidator(decode),
        PlainSerializer(codec.encode, return_type=Dict[str, Any]),
    ]


class Contract(BaseModel):
    """
    Base class for the DTOs exposed at the HTTP boundary.

    Serialized with camelCase names; accepts both camelCase and snake_case on
    input.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class EntityContract(Contract):
    """A contract that represents a persisted entity."""

    id: uuid.UUID


# =============================================================================
# Messages
# =============================================================================


class Message(BaseModel):
    """
    Base class for bus messages.

    Every message carries the correlation identifier of the request that
    produced it and the identifier of the user who issued it. Subclasses are
    registered by name so they can be rebuilt from bus payloads.
    """

    message_id: uuid.UUID = Field(default_factory=uuid.uuid4)
    correlation_id: uuid.UUID = Field(default_factory=uuid.uuid4)
    user_id: Optional[str] = None

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def __init_subclass__(cls, **kwargs):
        """Auto-register message classes with MessageTypeRegistry."""
        super().__init_subclass__(**kwargs)
        from ..message_registry import MessageTypeRegistry

        MessageTypeRegistry.register_class(cls)

    @property
    def message_type(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> Dict[str, Any]:
        """Convert message to a JSON-compatible dictionary."""
        return self.model_dump(mode="json")


class Command(Message, AbstractCommand):
    """
    Base class for Commands.

    Usage:
        class DeleteBookCommand(Command):
            book_id: uuid.UUID
    """

    pass


class Query(Message, AbstractQuery):
    """Base class for Queries."""

    pass


class MessageResult(Message):
    """
    Result of a Command or Query.

    `exception` is set when `success` is False; it travels over the bus as
    `{messages, type}`.
    """

    success: bool = True
    exception: Optional[SerializableException] = None
    events: List[Any] = Field(default_factory=list, exclude=True)


class CommandResult(MessageResult):
    """Base class for command results."""

    pass


class QueryResult(MessageResult):
    """Base class for query results."""

    pass


class Event(BaseModel, AbstractEvent):
    """
    Base class for Events.

    Events are immutable and stamped with the correlation identifier of the
    command that caused them.
    """

    event_id: uuid.UUID = Field(default_factory=uuid.uuid4)
    correlation_id: Optional[uuid.UUID] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(frozen=True)

    def __init_subclass__(cls, **kwargs):
        """Auto-register event classes with MessageTypeRegistry."""
        super().__init_subclass__(**kwargs)
        from ..message_registry import MessageTypeRegistry

        MessageTypeRegistry.register_class(cls)

    @property
    def event_type(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")
