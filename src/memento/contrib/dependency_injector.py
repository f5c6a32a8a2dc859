"""
Dependency Injector integration.

This module provides:
1. The IoC Container of the service, fed with `providers.Configuration`.
2. `create_container()` to build a container from validated `Settings`.
3. `wire_event_handlers()` to connect the cache handlers and, in bus mode,
   the broker publisher to the right dispatchers.
"""

from typing import Callable, Iterable, Optional, Type

from dependency_injector import containers, providers

from ..backends.memory_cache import MemoryCacheService
from ..backends.rabbitmq import RabbitMQBroker
from ..backends.redis_cache import RedisCacheService
from ..backends.sqlalchemy import create_engine, create_uow_factory
from ..bus import BusEventPublisher, EventConsumer, MessageBus, MessageBusServer
from ..caching import Cache
from ..config import Settings
from ..dispatcher import EventDispatcher
from ..mediator import Mediator

IN_PROCESS = "in_process"
RABBITMQ = "rabbitmq"
MEMORY = "memory"
REDIS = "redis"


class Container(containers.DeclarativeContainer):
    """
    IoC Container for the application.

    `config.cache.backend` selects `memory` or `redis`; `config.bus.mode`
    selects `in_process` or `rabbitmq`.
    """

    config = providers.Configuration()

    # === 1. Persistence ===

    engine = providers.Singleton(
        create_engine,
        config.database.connection_string,
        echo=config.database.echo,
    )

    uow_factory = providers.Singleton(create_uow_factory, engine=engine)

    # === 2. Cache ===

    cache_service = providers.Selector(
        config.cache.backend,
        memory=providers.Singleton(MemoryCacheService),
        redis=providers.Singleton(
            RedisCacheService.from_url,
            url=config.cache.connection_string,
            prefix=config.cache.prefix,
        ),
    )

    cache = providers.Singleton(Cache, service=cache_service)

    # === 3. Messaging ===

    # Dispatcher of the events produced by local commands
    event_dispatcher = providers.Singleton(EventDispatcher)

    # Dispatcher of the events received from the broker
    consumer_dispatcher = providers.Singleton(EventDispatcher)

    mediator = providers.Singleton(
        Mediator,
        uow_factory=uow_factory,
        event_dispatcher=event_dispatcher,
    )

    broker = providers.Singleton(
        RabbitMQBroker,
        url=config.bus.connection_string,
        exchange_name=config.bus.exchange_name,
        request_prefix=config.bus.request_prefix,
        timeout=config.bus.timeout,
    )

    selected_broker = providers.Selector(
        config.bus.mode,
        in_process=providers.Object(None),
        rabbitmq=broker,
    )

    message_bus = providers.Singleton(MessageBus, mediator=mediator, broker=selected_broker)

    message_bus_server = providers.Singleton(MessageBusServer, broker=broker, mediator=mediator)

    # Event classes carried by the broker
    event_types = providers.Object([])

    event_consumer = providers.Singleton(
        EventConsumer,
        broker=broker,
        dispatcher=consumer_dispatcher,
        event_types=event_types,
    )


def create_container(
    settings: Optional[Settings] = None, event_types: Iterable[Type] = ()
) -> containers.DynamicContainer:
    """
    Build a container from validated settings.

    Instantiating the declarative `Container` yields a `DynamicContainer`
    holding copies of its providers.

    Usage:
        container = create_container(load_settings(), event_types=EVENT_TYPES)
        bus = container.message_bus()
    """
    settings = settings or Settings()

    values = settings.model_dump()
    values["cache"]["backend"] = REDIS if settings.cache.connection_string.strip() else MEMORY
    values["bus"]["mode"] = RABBITMQ if settings.bus.uses_broker else IN_PROCESS

    container = Container()
    container.config.from_dict(values)
    container.event_types.override(providers.Object(list(event_types)))
    return container


def uses_broker(container: containers.DynamicContainer) -> bool:
    return container.config.bus.mode() == RABBITMQ


def wire_event_handlers(
    container: containers.DynamicContainer, register_handlers: Callable
) -> None:
    """
    Connect the event handlers to the container's dispatchers.

    In-process mode registers the handlers on the mediator's dispatcher.
    In bus mode the mediator's dispatcher forwards every event to the
    broker, and the handlers run on the dispatcher fed by the
    `EventConsumer`.

    Args:
        register_handlers: Callable `(dispatcher, cache)` registering the
            local handlers.
    """
    cache = container.cache()

    if not uses_broker(container):
        register_handlers(container.event_dispatcher(), cache)
        return

    publisher = BusEventPublisher(container.broker())
    dispatcher = container.event_dispatcher()
    for event_type in container.event_types():
        dispatcher.register(event_type, publisher, priority=True)

    register_handlers(container.consumer_dispatcher(), cache)
