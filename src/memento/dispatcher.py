"""Event Dispatcher for the events produced by commands."""

import asyncio
import logging
from typing import Dict, Type, List, Any, Set

logger = logging.getLogger("memento")


class EventDispatcher:
    """
    Event dispatcher for events.

    Supports two types of handlers:
    - Priority handlers: Awaited before the command result is returned
    - Background handlers: Fire-and-forget tasks

    Handlers are `EventHandler` instances; they are invoked through
    `consume`, which logs the outcome and never raises.

    Usage:
        dispatcher = EventDispatcher()
        dispatcher.register(BookCreatedEvent, BookCacheHandler(cache), priority=True)

        await dispatcher.dispatch_priority(event)
        await dispatcher.dispatch_background(event)
    """

    def __init__(self, max_concurrent: int = 20):
        """
        Initialize the dispatcher.

        Args:
            max_concurrent: Maximum concurrent background handlers
        """
        self._subscribers: Dict[Type, List[Any]] = {}
        self._priority_subscribers: Dict[Type, List[Any]] = {}
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._tasks: Set[asyncio.Task] = set()

    def register(self, event_type: Type, handler: object, priority: bool = False) -> None:
        """
        Register an event handler.

        Args:
            event_type: The event type to subscribe to
            handler: Handler instance with async consume() or handle() method
            priority: If True, handler is awaited by the publisher
        """
        target = self._priority_subscribers if priority else self._subscribers

        if event_type not in target:
            target[event_type] = []

        if handler not in target[event_type]:
            target[event_type].append(handler)
            priority_tag = " [PRIORITY]" if priority else ""
            logger.debug(f"Registered handler for {event_type.__name__}{priority_tag}")

    async def dispatch_priority(self, event: Any) -> None:
        """
        Dispatch to priority handlers and wait for them.

        `EventHandler.consume` logs and swallows handler failures; a plain
        handler exposing only `handle` propagates its exception.
        """
        event_type = type(event)
        self._discover_handlers(event_type)
        handlers = self._priority_subscribers.get(event_type, [])

        for handler in handlers:
            try:
                await self._run_handler(handler, event)
            except Exception as e:
                logger.error(
                    f"Priority handler {handler} failed for {event_type.__name__}: {e}",
                    exc_info=True,
                )
                raise

    async def dispatch_background(self, event: Any) -> None:
        """
        Dispatch to background handlers asynchronously.

        Concurrency is limited by `max_concurrent` semaphore.
        Errors are logged but do NOT affect the command result.
        """
        event_type = type(event)
        self._discover_handlers(event_type)
        handlers = self._subscribers.get(event_type, [])

        for handler in handlers:
            task = asyncio.create_task(self._run_handler_safe(handler, event))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def dispatch(self, event: Any) -> None:
        """Dispatch to both priority and background handlers."""
        await self.dispatch_priority(event)
        await self.dispatch_background(event)

    async def drain(self) -> None:
        """Wait for the pending background handlers to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _discover_handlers(self, event_type: Type) -> None:
        """Discover and instantiate handlers from the registry."""
        from .handler_registry import get_registered_handlers

        handlers_meta = get_registered_handlers().get("events", {}).get(event_type)
        if not handlers_meta:
            return

        for priority, key in ((True, "priority"), (False, "background")):
            registered = (
                self._priority_subscribers if priority else self._subscribers
            ).get(event_type, [])
            for handler_cls in handlers_meta.get(key, []):
                if any(isinstance(h, handler_cls) for h in registered):
                    continue
                try:
                    self.register(event_type, handler_cls(), priority=priority)
                except Exception as e:
                    # Handlers with constructor dependencies must be registered explicitly
                    logger.debug(f"Could not instantiate {key} handler {handler_cls.__name__}: {e}")

    async def _run_handler(self, handler: Any, event: Any) -> None:
        """Run handler with concurrency limiting via semaphore."""
        async with self._semaphore:
            if hasattr(handler, "consume"):
                await handler.consume(event)
            else:
                await handler.handle(event)

    async def _run_handler_safe(self, handler: Any, event: Any) -> None:
        """Run handler with exception handling for background tasks."""
        try:
            await self._run_handler(handler, event)
        except Exception as e:
            logger.error(
                f"Background handler {handler} failed for {type(event).__name__}: {e}",
                exc_info=True,
            )

    def clear_subscribers(self) -> None:
        """Clear all event subscribers."""
        self._subscribers.clear()
        self._priority_subscribers.clear()
