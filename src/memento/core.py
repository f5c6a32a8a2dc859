"""Core messaging components - message markers, handlers and their lifecycle."""

from abc import ABC, abstractmethod
import inspect
import logging
from typing import TypeVar, Generic, Any, Optional, Union, get_args, get_origin, get_type_hints
from types import UnionType

from .exceptions import StandardException, StandardExceptionType
from .middleware import build_middleware_chain

logger = logging.getLogger(__name__)

TMessage = TypeVar("TMessage")
TResult = TypeVar("TResult")
TEvent = TypeVar("TEvent")


class AbstractCommand:
    """
    Marker interface for all Commands.

    Commands represent an intent to change the state of the system.
    They should be named in the imperative, e.g., 'CreateBook', 'DeleteGenre'.
    """

    pass


class AbstractQuery:
    """
    Marker interface for all Queries.

    Queries request information from the system without modifying state,
    e.g., 'GetBook', 'GetAuthors'.
    """

    pass


class AbstractEvent:
    """
    Marker interface for all Events.

    Events represent something that has happened in the past,
    e.g., 'BookCreated', 'AuthorDeleted'.
    """

    pass


def _trace_prefix(message: Any) -> str:
    trace_id = getattr(message, "correlation_id", None)
    return f"[{trace_id}] " if trace_id else ""


def _first_parameter_annotation(cls, method_name: str = "handle"):
    """Resolve the annotation of the first argument (besides self) of a method."""
    method = getattr(cls, method_name, None)
    if method is None:
        return None, None
    params = list(inspect.signature(method).parameters.values())
    if len(params) < 2:
        return None, None
    try:
        hints = get_type_hints(method)
    except Exception:
        hints = {}
    annotation = hints.get(params[1].name, params[1].annotation)
    return_annotation = hints.get("return", inspect.Signature.empty)
    if annotation is inspect.Parameter.empty:
        annotation = None
    if return_annotation is inspect.Signature.empty:
        return_annotation = None
    return annotation, return_annotation


class MessageHandler(ABC, Generic[TMessage, TResult]):
    """
    Base class for handling Commands and Queries.

    Each handler handles exactly one message type and returns a result.
    `consume` is the entry point used by the mediator: it logs the
    processing, runs `handle` and converts failures into a failed result
    through `handle_exception`. Handler failures never propagate out of
    `consume`.

    Features:
    - Auto-registration: Subclasses are registered for the type annotation
      of the first argument of `handle`; the return annotation is used as
      the result type for failed results.
    """

    result_type: Optional[type] = None

    def __init__(self, **kwargs):
        """Initialize handler."""
        pass

    @abstractmethod
    async def handle(self, message: Any) -> Any:
        """Handle the message and return a result."""
        raise NotImplementedError

    async def handle_exception(self, message: Any, exception: StandardException) -> Any:
        """
        Build the failed result for a message.

        The default implementation instantiates `result_type` with
        success=False and the exception; override for custom results.
        """
        if self.result_type is None:
            raise exception
        return self.result_type(
            correlation_id=getattr(message, "correlation_id", None),
            user_id=getattr(message, "user_id", None),
            success=False,
            exception=exception,
        )

    async def consume(self, message: Any) -> Any:
        """Process a message, turning failures into a failed result."""
        prefix = _trace_prefix(message)
        message_name = type(message).__name__

        logger.info(f"{prefix}Processing {message_name}")
        try:
            handler_func = build_middleware_chain(self.handle, self, message)
            result = await handler_func(message)
            logger.info(f"{prefix}Processed {message_name} Successfully")
            return result
        except StandardException as e:
            exception = e
        except Exception as e:
            exception = StandardException(
                str(e) or type(e).__name__,
                StandardExceptionType.INTERNAL_SERVER_ERROR,
                source=type(self).__name__,
            )
            exception.__cause__ = e

        logger.error(
            f"{prefix}Failed processing {message_name}: {exception.message}",
            exc_info=exception.__cause__ or exception,
        )
        return await self.handle_exception(message, exception)

    @classmethod
    def _register(cls, message_type: type) -> None:
        raise NotImplementedError

    @classmethod
    def _marker(cls) -> type:
        raise NotImplementedError

    def __init_subclass__(cls, **kwargs):
        """Auto-register handler based on handle method signature."""
        super().__init_subclass__(**kwargs)

        if ABC in cls.__bases__ or inspect.isabstract(cls):
            return

        try:
            message_type, result_type = _first_parameter_annotation(cls)
            if result_type is not None and isinstance(result_type, type):
                cls.result_type = result_type

            if message_type is None:
                logger.warning(
                    f"Could not register {cls.__name__}: First argument of handle() must have a type annotation"
                )
            elif isinstance(message_type, type) and issubclass(message_type, cls._marker()):
                cls._register(message_type)
                cls._handles = message_type
            else:
                logger.warning(
                    f"Could not register {cls.__name__}: {message_type} does not inherit from {cls._marker().__name__}"
                )
        except Exception as e:
            logger.warning(f"Error during auto-registration of {cls.__name__}: {e}")


class CommandHandler(MessageHandler[TMessage, TResult], ABC):
    """
    Base class for handling Commands.

    Command results may carry `events`; the mediator dispatches them once
    the unit of work has committed.
    """

    @classmethod
    def _marker(cls) -> type:
        return AbstractCommand

    @classmethod
    def _register(cls, message_type: type) -> None:
        from .handler_registry import register_command_handler

        register_command_handler(message_type, cls)


class QueryHandler(MessageHandler[TMessage, TResult], ABC):
    """Base class for handling Queries."""

    @classmethod
    def _marker(cls) -> type:
        return AbstractQuery

    @classmethod
    def _register(cls, message_type: type) -> None:
        from .handler_registry import register_query_handler

        register_query_handler(message_type, cls)


class EventHandler(ABC, Generic[TEvent]):
    """
    Base class for handling Events.

    Can handle one or more event types (via Union type hint). Failures are
    logged and never re-raised: an event handler cannot undo the change that
    produced the event.

    Attributes:
        is_priority (bool):
            - True: Awaited right after the command's unit of work commits.
            - False: Runs in the background. (Default)
    """

    is_priority: bool = False

    @abstractmethod
    async def handle(self, event: TEvent) -> None:
        """Handle the event."""
        raise NotImplementedError

    async def consume(self, event: TEvent) -> None:
        """Handle the event, logging the outcome."""
        prefix = _trace_prefix(event)
        event_name = type(event).__name__
        handler_name = type(self).__name__

        logger.info(f"{prefix}Handling {event_name} with {handler_name}")
        try:
            await self.handle(event)
            logger.info(f"{prefix}Handled {event_name} with {handler_name} Successfully")
        except Exception as e:
            logger.error(
                f"{prefix}Failed handling {event_name} with {handler_name}: {e}",
                exc_info=True,
            )

    def __init_subclass__(cls, **kwargs):
        """Auto-register handler based on handle method signature."""
        super().__init_subclass__(**kwargs)

        if ABC in cls.__bases__ or inspect.isabstract(cls):
            return

        from .handler_registry import register_event_handler

        try:
            annotation, _ = _first_parameter_annotation(cls)
            if annotation is None:
                logger.warning(
                    f"Could not register {cls.__name__}: First argument of handle() must have a type annotation"
                )
                return

            if get_origin(annotation) in (Union, UnionType):
                event_types = [et for et in get_args(annotation) if et is not type(None)]
            elif isinstance(annotation, type):
                event_types = [annotation]
            else:
                logger.warning(
                    f"Could not register {cls.__name__}: Invalid type annotation {annotation}"
                )
                return

            for event_type in event_types:
                register_event_handler(event_type, cls, cls.is_priority)
            cls._handles = tuple(event_types)
        except Exception as e:
            logger.warning(f"Error during auto-registration of {cls.__name__}: {e}")
