"""
# memento

CRUD service for authors, books and genres built on commands, queries and
events.

## Core Components

### Messaging
- `CommandHandler`, `QueryHandler`, `EventHandler` - Handler base classes
- `Mediator` - Routes messages to handlers inside a unit of work
- `EventDispatcher` - Priority and background event handlers
- `MessageBus` - In-process or RabbitMQ dispatch

### Middleware
- `ValidatorMiddleware` - Form validation
- `LoggingMiddleware` - Execution logging

### Persistence
- `EntityRepository` - Generic create/update/delete/get/get_all engine
- `Page`, `PageCodec` - Pages of items and their JSON layout

### Infrastructure
- `Cache` - JSON cache over a `CacheService` backend
- `backends.sqlalchemy` - SQLAlchemy UoW and declarative base
- `backends.redis_cache` - Redis caching
- `backends.memory_cache` - In-memory cache (testing)
- `backends.rabbitmq` - RabbitMQ broker

### Framework Integrations
- `contrib.fastapi` - Envelopes, correlation, idempotency
- `contrib.pydantic` - Messages and contracts
- `contrib.dependency_injector` - IoC container
"""

from .core import (
    CommandHandler,
    QueryHandler,
    EventHandler,
)
from .mediator import Mediator
from .dispatcher import EventDispatcher
from .bus import MessageBus
from .middleware import (
    middleware,
    ValidatorMiddleware,
    LoggingMiddleware,
)
from .caching import Cache, CacheEntries
from .exceptions import (
    MementoError,
    StandardException,
    StandardExceptionType,
    HandlerNotFoundError,
    CacheError,
)
from .pagination import Page, PageCodec, PageDecodeError
from .protocols import UnitOfWork, CacheService, MessageBroker
from .repository import EntityRepository, EntityFilter, OrderDirection
from .message_registry import MessageTypeRegistry

__version__ = "0.1.0"

__all__ = [
    # Messaging
    "CommandHandler",
    "QueryHandler",
    "EventHandler",
    "Mediator",
    "EventDispatcher",
    "MessageBus",
    "MessageTypeRegistry",
    # Middleware
    "middleware",
    "ValidatorMiddleware",
    "LoggingMiddleware",
    # Cache
    "Cache",
    "CacheEntries",
    # Exceptions
    "MementoError",
    "StandardException",
    "StandardExceptionType",
    "HandlerNotFoundError",
    "CacheError",
    # Pagination
    "Page",
    "PageCodec",
    "PageDecodeError",
    # Persistence
    "EntityRepository",
    "EntityFilter",
    "OrderDirection",
    # Protocols
    "UnitOfWork",
    "CacheService",
    "MessageBroker",
]
