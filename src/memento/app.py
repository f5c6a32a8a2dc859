"""
Application factory.

Usage:
    uvicorn memento.app:create_app --factory
"""

from contextlib import asynccontextmanager
from typing import Optional
import logging

from dependency_injector.containers import DynamicContainer
from fastapi import FastAPI

from .backends.sqlalchemy import create_schema
from .config import Settings, configure_logging, load_settings
from .contrib.dependency_injector import (
    create_container,
    uses_broker,
    wire_event_handlers,
)
from .contrib.fastapi import init_memento
from .domain import handlers  # noqa: F401 - registers the command and query handlers
from .domain.cache_handlers import register_cache_handlers
from .domain.messages import EVENT_TYPES
from .domain.routers import controllers_router, minimal_apis_router
from .domain.seeding import DomainSeeder

logger = logging.getLogger("memento")


async def initialize_database(container: DynamicContainer, settings: Settings) -> None:
    """Create the schema and load the seed files."""
    await create_schema(container.engine())

    if not settings.database.seed_directory:
        return

    async with container.uow_factory()() as uow:
        seeder = DomainSeeder(
            uow.session,
            settings.database.seed_directory,
            environment=settings.database.environment,
        )
        await seeder.seed()


def create_app(settings: Optional[Settings] = None, container: Optional[DynamicContainer] = None) -> FastAPI:
    """
    Build the FastAPI application.

    In bus mode the lifespan connects the broker, serves the registered
    commands and queries and consumes the events; in-process mode needs no
    broker at all.
    """
    settings = settings or load_settings()
    configure_logging(settings.logging)

    container = container or create_container(settings, event_types=EVENT_TYPES)
    wire_event_handlers(container, register_cache_handlers)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await initialize_database(container, settings)

        if uses_broker(container):
            broker = container.broker()
            await broker.connect()
            await container.message_bus_server().start()
            await container.event_consumer().start()
            logger.info("Message bus started")

        yield

        if uses_broker(container):
            await container.event_consumer().stop()
            await container.broker().close()
        await container.event_dispatcher().drain()
        await container.engine().dispose()

    app = FastAPI(title="Memento", lifespan=lifespan)
    app.state.container = container

    init_memento(app, container.message_bus(), container.cache())
    app.include_router(controllers_router())
    app.include_router(minimal_apis_router())

    return app
