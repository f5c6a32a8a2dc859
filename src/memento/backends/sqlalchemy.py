"""SQLAlchemy backend - Unit of Work, declarative base and entity columns."""

from datetime import datetime, timezone
from typing import Optional, Callable
import uuid

from sqlalchemy import DateTime, String, Uuid, event, make_url
from sqlalchemy.pool import StaticPool
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# =============================================================================
# Unit of Work
# =============================================================================


class SQLAlchemyUnitOfWork:
    """
    SQLAlchemy-based Unit of Work implementation.

    Implements the UnitOfWork protocol for transaction management.

    Usage:
        engine = create_engine("sqlite+aiosqlite:///memento.db")
        uow_factory = create_uow_factory(engine)

        async with uow_factory() as uow:
            result = await uow.session.execute(...)
            # Auto-commits on exit, auto-rollbacks on exception
    """

    def __init__(
        self,
        session_factory: "async_sessionmaker[AsyncSession]" = None,
        session: AsyncSession = None,
    ):
        """
        Initialize Unit of Work.

        Args:
            session_factory: Factory to create new sessions (preferred)
            session: Existing session to wrap
        """
        self._session_factory = session_factory
        self._session = session
        self._owns_session = session is None

    @property
    def session(self) -> AsyncSession:
        """Get the current session."""
        if self._session is None:
            raise RuntimeError("UnitOfWork not started. Use 'async with uow:'")
        return self._session

    async def __aenter__(self) -> "SQLAlchemyUnitOfWork":
        if self._owns_session:
            if self._session_factory is None:
                raise RuntimeError("No session factory provided")
            self._session = self._session_factory()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        try:
            if exc_type is None:
                await self.commit()
            else:
                await self.rollback()
        finally:
            if self._owns_session and self._session:
                await self._session.close()
                self._session = None
        return False

    async def commit(self) -> None:
        """Explicitly commit the transaction."""
        if self._session:
            await self._session.commit()

    async def rollback(self) -> None:
        """Explicitly rollback the transaction."""
        if self._session:
            await self._session.rollback()

    async def flush(self) -> None:
        """Flush pending changes without committing."""
        if self._session:
            await self._session.flush()


def create_engine(url: str, **kwargs) -> AsyncEngine:
    """
    Create an async engine.

    SQLite connections get foreign key enforcement so that deleting a
    referenced author or genre is rejected like on other databases.
    """
    if make_url(url).database in (None, "", ":memory:") and url.startswith("sqlite"):
        # in-memory databases live on a single connection
        kwargs.setdefault("poolclass", StaticPool)

    engine = create_async_engine(url, **kwargs)

    if engine.dialect.name == "sqlite":

        @event.listens_for(engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def create_uow_factory(
    engine: AsyncEngine = None,
    session_factory: "async_sessionmaker[AsyncSession]" = None,
) -> Callable[[], SQLAlchemyUnitOfWork]:
    """
    Create a UnitOfWork factory function.

    Args:
        engine: SQLAlchemy async engine (will create session factory)
        session_factory: Pre-configured session factory

    Returns:
        Factory function that creates new UnitOfWork instances
    """
    if session_factory is None and engine is not None:
        session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    if session_factory is None:
        raise ValueError("Either engine or session_factory must be provided")

    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(session_factory=session_factory)

    return factory


async def create_schema(engine: AsyncEngine) -> None:
    """Create the tables of every model declared on `Base`."""
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)


# =============================================================================
# Declarative base and entity columns
# =============================================================================


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class EntityMixin:
    """
    Columns shared by every persisted entity.

    `created_at` is stamped on insert and `updated_at` on update; the
    `*_by` columns hold the id of the user who issued the change.

    Usage:
        class Genre(EntityMixin, Base):
            __tablename__ = "genres"
            name: Mapped[str] = mapped_column(String(200))
    """

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    created_by: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_by: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=_utcnow, nullable=True
    )
