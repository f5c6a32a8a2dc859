"""Protocol definitions for the Memento service.

All protocols use @runtime_checkable for structural typing support.
"""
from datetime import timedelta
from typing import Protocol, runtime_checkable, Any, Optional, Callable, Awaitable


@runtime_checkable
class UnitOfWork(Protocol):
    """
    Unit of Work protocol for transaction management.

    Implementations should handle transaction lifecycle:
    - Begin transaction on __aenter__
    - Commit on successful __aexit__
    - Rollback on exception in __aexit__
    """

    async def __aenter__(self) -> "UnitOfWork":
        """Start the unit of work scope."""
        ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        """End the unit of work scope, commit or rollback."""
        ...

    async def commit(self) -> None:
        """Explicitly commit the transaction."""
        ...

    async def rollback(self) -> None:
        """Explicitly rollback the transaction."""
        ...


@runtime_checkable
class EventDispatcher(Protocol):
    """
    Event dispatcher protocol.

    Supports two types of handlers:
    - Priority: Awaited before the publisher continues
    - Background: Fire-and-forget
    """

    def register(self, event_type: type, handler: object, priority: bool = False) -> None:
        """Register an event handler."""
        ...

    async def dispatch_priority(self, event: object) -> None:
        """Dispatch to priority handlers."""
        ...

    async def dispatch_background(self, event: object) -> None:
        """Dispatch to background handlers."""
        ...


@runtime_checkable
class CacheService(Protocol):
    """
    Cache backend protocol.

    Entries expire at the earliest of their absolute deadline and their
    sliding window; reading or refreshing an entry restarts the sliding
    window. Values are opaque bytes: serialization is the caller's job.
    """

    async def get(self, key: str) -> Optional[bytes]:
        """Get a value (and slide its expiration)."""
        ...

    async def set(
        self,
        key: str,
        value: bytes,
        absolute: Optional[timedelta] = None,
        sliding: Optional[timedelta] = None,
    ) -> None:
        """Set a value with optional absolute and sliding expirations."""
        ...

    async def delete(self, key: str) -> None:
        """Delete a value."""
        ...

    async def refresh(self, key: str) -> None:
        """Restart the sliding expiration of a value."""
        ...


@runtime_checkable
class MessageBroker(Protocol):
    """
    Message broker protocol for inter-service communication.

    Combines topic publishing/subscribing for events with request/response
    for commands and queries.
    """

    async def publish(self, topic: str, message: Any, **kwargs) -> None:
        """Publish a message to a topic."""
        ...

    async def subscribe(
        self, topic: str, handler: Callable[[Any], Awaitable[None]], queue_name: Optional[str] = None
    ) -> None:
        """Subscribe a handler to a topic."""
        ...

    async def request(self, routing_key: str, message: Any, **kwargs) -> bytes:
        """Send a request and wait for its reply."""
        ...

    async def respond(
        self, routing_key: str, handler: Callable[[bytes, dict], Awaitable[bytes]]
    ) -> None:
        """Serve requests sent to a routing key."""
        ...

    @property
    def is_connected(self) -> bool:
        """Whether the broker connection is open."""
        ...


class Middleware(Protocol):
    """
    Protocol for middleware.

    Middleware wraps handler execution to add cross-cutting concerns.
    """

    def apply(self, handler_func: Callable, message: Any) -> Callable:
        """
        Wrap the handler function with middleware logic.

        Args:
            handler_func: The next handler in the chain
            message: The command or query being processed

        Returns:
            Wrapped handler function
        """
        ...
