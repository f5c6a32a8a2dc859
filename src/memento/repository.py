"""Generic entity repository - filter, order, page and CRUD over SQLAlchemy."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, List, Optional, Type, TypeVar
import logging
import uuid

from sqlalchemy import Select, exists, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from . import resources
from .exceptions import StandardException, StandardExceptionType
from .pagination import Page

logger = logging.getLogger(__name__)

TEntity = TypeVar("TEntity")
TFilter = TypeVar("TFilter", bound="EntityFilter")


class OrderDirection(str, Enum):
    ASCENDING = "Ascending"
    DESCENDING = "Descending"


@dataclass
class EntityFilter:
    """Paging and ordering shared by every entity filter."""

    page_number: int = 1
    page_size: int = 10
    order_by: Optional[Enum] = None
    order_direction: OrderDirection = OrderDirection.ASCENDING


class EntityRepository(Generic[TEntity, TFilter]):
    """
    Base class for entity repositories.

    Subclasses describe their entity through hooks: how it is normalized,
    validated and copied on update, which statements select its summary,
    detail and count views, and how a filter narrows and orders them.
    Every operation runs on the session it was created with; committing is
    left to the unit of work.

    Usage:
        class GenreRepository(EntityRepository[Genre, GenreFilter]):
            entity_class = Genre
            entity_name = "genre"
            ...

        genre = await GenreRepository(uow.session).create(Genre(name="Fantasy"))
    """

    entity_class: Type = None
    entity_name: str = "entity"

    def __init__(self, session: AsyncSession):
        self.session = session

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def create(self, entity: TEntity) -> TEntity:
        """
        Add a new entity and return it with its relations loaded.

        Raises:
            StandardException: BadRequest with every validation message.
        """
        self.normalize_entity(entity)
        await self.validate_entity(entity)

        self.session.add(entity)
        await self.session.flush()
        logger.debug(f"Created {self.entity_name} {entity.id}")

        return await self.get(entity.id)

    async def update(self, entity: TEntity) -> TEntity:
        """
        Copy the changes of a detached entity onto the stored one.

        Raises:
            StandardException: NotFound when the entity does not exist,
                BadRequest with every validation message.
        """
        stored = await self._try_get_entity(entity.id)

        self.normalize_entity(entity)
        await self.validate_entity(entity)

        self.update_entity(entity, stored)
        await self.session.flush()
        logger.debug(f"Updated {self.entity_name} {entity.id}")

        return await self.get(entity.id)

    async def delete(self, entity_id: uuid.UUID) -> TEntity:
        """
        Delete an entity and return it as it was, relations included.

        Raises:
            StandardException: NotFound when the entity does not exist,
                BadRequest when other entities still reference it.
        """
        entity = await self.get(entity_id)

        await self.session.delete(entity)
        try:
            await self.session.flush()
        except IntegrityError as e:
            logger.warning(f"Could not delete {self.entity_name} {entity_id}: {e.orig}")
            raise StandardException(
                resources.ERROR_ENTITY_IN_USE.format(entity=self.entity_name),
                StandardExceptionType.BAD_REQUEST,
                source=type(self).__name__,
            ) from e
        logger.debug(f"Deleted {self.entity_name} {entity_id}")

        return entity

    async def get(self, entity_id: uuid.UUID) -> TEntity:
        """
        Get the detail view of an entity.

        Raises:
            StandardException: NotFound when the entity does not exist.
        """
        statement = (
            self.detail_statement()
            .where(self.entity_class.id == entity_id)
            .execution_options(populate_existing=True)
        )
        entity = (await self.session.execute(statement)).scalars().first()
        if entity is None:
            raise self._not_found()
        return entity

    async def get_all(self, entity_filter: TFilter) -> Page[TEntity]:
        """Get one page of summaries matching the filter."""
        statement = self.order_statement(
            self.filter_statement(self.summary_statement(), entity_filter), entity_filter
        )
        statement = statement.offset(
            (entity_filter.page_number - 1) * entity_filter.page_size
        ).limit(entity_filter.page_size)

        count_statement = select(func.count()).select_from(
            self.filter_statement(self.count_statement(), entity_filter).subquery()
        )

        items = list((await self.session.execute(statement)).scalars().unique().all())
        total_items = (await self.session.execute(count_statement)).scalar_one()

        return Page.create_unmodified(
            items,
            total_items,
            entity_filter.page_number,
            entity_filter.page_size,
            _enum_name(entity_filter.order_by),
            _enum_name(entity_filter.order_direction),
        )

    async def exists(self, entity_id: uuid.UUID) -> bool:
        statement = select(exists().where(self.entity_class.id == entity_id))
        return bool((await self.session.execute(statement)).scalar())

    # -------------------------------------------------------------------------
    # Hooks
    # -------------------------------------------------------------------------

    def normalize_entity(self, entity: TEntity) -> None:
        """Clean up user input before validation (trim names, ...)."""
        pass

    async def validate_entity(self, entity: TEntity) -> None:
        """Raise StandardException(BadRequest) with every problem found."""
        pass

    def update_entity(self, source: TEntity, target: TEntity) -> None:
        """Copy the updatable fields from `source` onto the stored `target`."""
        raise NotImplementedError

    def summary_statement(self) -> Select:
        return select(self.entity_class)

    def detail_statement(self) -> Select:
        return select(self.entity_class)

    def count_statement(self) -> Select:
        return select(self.entity_class.id)

    def filter_statement(self, statement: Select, entity_filter: TFilter) -> Select:
        return statement

    def order_columns(self) -> dict:
        """Map each order-by enum member to the column it sorts on."""
        return {}

    def order_statement(self, statement: Select, entity_filter: TFilter) -> Select:
        """
        Apply the filter's ordering, with the id as a tie breaker.

        Raises:
            ValueError: For an order-by or direction the repository does not know.
        """
        columns = self.order_columns()
        if entity_filter.order_by not in columns:
            raise ValueError(f"Invalid order by '{entity_filter.order_by}' for {self.entity_name}")

        column = columns[entity_filter.order_by]
        direction = entity_filter.order_direction
        if direction == OrderDirection.ASCENDING:
            return statement.order_by(column.asc(), self.entity_class.id.asc())
        if direction == OrderDirection.DESCENDING:
            return statement.order_by(column.desc(), self.entity_class.id.desc())
        raise ValueError(f"Invalid order direction '{direction}'")

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def _try_get_entity(self, entity_id: Optional[uuid.UUID]) -> TEntity:
        entity = await self.session.get(self.entity_class, entity_id) if entity_id else None
        if entity is None:
            raise self._not_found()
        return entity

    def _not_found(self) -> StandardException:
        return StandardException(
            resources.ERROR_NOT_FOUND.format(entity=self.entity_name),
            StandardExceptionType.NOT_FOUND,
            source=type(self).__name__,
        )

    async def _is_duplicate(self, entity: TEntity, *columns) -> bool:
        """Whether another entity has the same values for every column."""
        conditions = [column == getattr(entity, column.key) for column in columns]
        if getattr(entity, "id", None) is not None:
            conditions.append(self.entity_class.id != entity.id)
        statement = select(exists().where(*conditions))
        return bool((await self.session.execute(statement)).scalar())

    @staticmethod
    def invalid_field(field: str) -> str:
        return resources.ERROR_INVALID_FIELD.format(field=field)

    @staticmethod
    def duplicate_fields(*fields: str) -> str:
        if len(fields) == 1:
            return resources.ERROR_DUPLICATE_FIELD.format(field=fields[0])
        return resources.ERROR_DUPLICATE_FIELD_COMBINATION.format(
            fields=resources.join_field_names(fields)
        )

    def raise_if_invalid(self, messages: List[str]) -> None:
        if messages:
            raise StandardException(
                messages, StandardExceptionType.BAD_REQUEST, source=type(self).__name__
            )


def _enum_name(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value.value if isinstance(value, Enum) else str(value)
