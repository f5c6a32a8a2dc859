import logging
from typing import Dict, Type, Optional, Callable, Any
from contextvars import ContextVar

from .exceptions import HandlerNotFoundError
from .protocols import UnitOfWork, EventDispatcher

logger = logging.getLogger(__name__)


# Context variable for current unit of work (enables nested messages)
_current_uow: ContextVar[Optional[UnitOfWork]] = ContextVar("current_uow", default=None)


def get_current_uow() -> Optional[UnitOfWork]:
    """Get the current unit of work from context (if any)."""
    return _current_uow.get()


class Mediator:
    """
    In-process mediator - routes commands and queries to their handlers.

    Every root message gets a UoW scope:
    - Root messages create a new UoW
    - Nested messages reuse the parent's UoW (shared transaction)
    - A failed result rolls the UoW back

    Events attached to a successful result are dispatched once the scope
    has closed, so handlers observe committed state.

    Usage:
        mediator = Mediator(uow_factory=create_uow_factory(engine), event_dispatcher=dispatcher)
        result = await mediator.send(CreateBookCommand(contract=form))
    """

    def __init__(
        self,
        uow_factory: Optional[Callable[[], UnitOfWork]] = None,
        event_dispatcher: Optional[EventDispatcher] = None,
        handler_resolver: Optional[Callable[[Type], object]] = None,
    ):
        """
        Initialize the mediator.

        Args:
            uow_factory: Factory function to create UnitOfWork instances
            event_dispatcher: Dispatcher for events
            handler_resolver: Optional function to resolve handlers (for DI integration)
        """
        self._handlers: Dict[Type, object] = {}
        self._handler_resolver = handler_resolver
        self._uow_factory = uow_factory
        self._event_dispatcher = event_dispatcher

    @property
    def event_dispatcher(self) -> Optional[EventDispatcher]:
        return self._event_dispatcher

    def register(self, message_type: Type, handler: object) -> None:
        """Register a handler for a message type."""
        self._handlers[message_type] = handler

    async def send(self, message: Any, uow: Optional[UnitOfWork] = None) -> Any:
        """
        Send a command or query to its handler.

        Args:
            message: The command or query to send
            uow: Optional unit of work to use instead of a new one

        Returns:
            The result from the handler. Handler failures come back as a
            result with success=False.

        Raises:
            HandlerNotFoundError: If no handler serves the message type.
        """
        handler = self._get_handler(type(message))

        if _current_uow.get() is not None:
            result = await self._consume(handler, message)
        else:
            uow = uow or (self._uow_factory() if self._uow_factory else None)
            if uow is None:
                result = await self._consume(handler, message)
            else:
                async with uow:
                    token = _current_uow.set(uow)
                    try:
                        result = await self._consume(handler, message)
                        if not getattr(result, "success", True):
                            await uow.rollback()
                    finally:
                        _current_uow.reset(token)

        if getattr(result, "success", True):
            await self._dispatch_events(result)
        return result

    async def publish(self, event: Any) -> None:
        """Dispatch a single event to its priority and background handlers."""
        if not self._event_dispatcher:
            logger.warning(
                f"Mediator: No event_dispatcher set, {type(event).__name__} will NOT be dispatched"
            )
            return
        await self._event_dispatcher.dispatch_priority(event)
        await self._event_dispatcher.dispatch_background(event)

    async def _consume(self, handler: Any, message: Any) -> Any:
        result = await handler.consume(message)
        if hasattr(result, "correlation_id") and getattr(message, "correlation_id", None):
            result.correlation_id = message.correlation_id
        return result

    def _get_handler(self, message_type: Type) -> object:
        """Get handler for a message type."""
        handler = self._handlers.get(message_type)

        if not handler:
            # Lazy Discovery: Check decorators registry
            from .handler_registry import get_request_handler

            handler_cls = get_request_handler(message_type)

            if handler_cls:
                try:
                    handler = handler_cls()
                    self._handlers[message_type] = handler
                except Exception as e:
                    logger.debug(
                        f"Direct instantiation of {handler_cls.__name__} failed (expected if it has dependencies): {e}"
                    )

        if not handler and self._handler_resolver:
            handler = self._handler_resolver(message_type)

        if not handler:
            raise HandlerNotFoundError(message_type)

        # dependency_injector providers resolve to the handler instance
        if callable(handler) and not isinstance(handler, type) and not hasattr(handler, "consume"):
            handler = handler()

        return handler

    async def _dispatch_events(self, result: Any) -> None:
        """Dispatch the events attached to a result, stamped with its correlation id."""
        events = getattr(result, "events", None)
        if not events:
            return

        if not self._event_dispatcher:
            logger.warning(
                "Mediator: No event_dispatcher set, events will NOT be dispatched"
            )
            return

        correlation_id = getattr(result, "correlation_id", None)
        for i, event in enumerate(events):
            if correlation_id and getattr(event, "correlation_id", None) is None:
                event = event.model_copy(update={"correlation_id": correlation_id})
                events[i] = event
            await self._event_dispatcher.dispatch_priority(event)

        for event in events:
            await self._event_dispatcher.dispatch_background(event)

    def clear_handlers(self) -> None:
        """Clear all registered handlers."""
        self._handlers.clear()
