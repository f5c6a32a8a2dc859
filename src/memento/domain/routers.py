"""
HTTP endpoints of the Author, Book and Genre resources.

Two route families expose the same operations:

- `/api/controllers/...`, declared with router decorators;
- `/api/minimal-apis/...`, mapped with `add_api_route`.

Both validate the form before sending the command, return `StandardResult`
envelopes and put their POST, PUT and DELETE routes behind the idempotency
gate.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional, Type
import uuid

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from .. import resources
from ..caching import Cache, CacheEntries
from ..contrib.fastapi import (
    IdempotentRoute,
    created_result,
    error_result,
    get_cache,
    get_correlation_id,
    get_message_bus,
    get_user_id,
    ok_result,
    validation_result,
)
from ..pagination import PageCodec
from ..validation import Validator
from . import messages
from .contracts import (
    AuthorDetailContract,
    AuthorFilterContract,
    AuthorFormContract,
    BookDetailContract,
    BookFilterContract,
    BookFormContract,
    EntityFilterContract,
    GenreDetailContract,
    GenreFilterContract,
    GenreFormContract,
)
from .validators import AuthorFormValidator, BookFormValidator, GenreFormValidator

CONTROLLERS_PREFIX = "/api/controllers"
MINIMAL_APIS_PREFIX = "/api/minimal-apis"

page_codec = PageCodec(item_encoder=lambda item: item.model_dump(mode="json", by_alias=True))


@dataclass
class EntityResource:
    """Messages, contracts and names of one resource."""

    name: str
    plural: str
    form_contract: Type
    detail_contract: Type
    filter_contract: Type[EntityFilterContract]
    validator: Type[Validator]
    create_command: Type
    update_command: Type
    delete_command: Type
    get_query: Type
    get_all_query: Type
    cache_key: Callable[[Any], str]

    @property
    def id_field(self) -> str:
        return f"{self.name}_id"


AUTHOR = EntityResource(
    name="author",
    plural="authors",
    form_contract=AuthorFormContract,
    detail_contract=AuthorDetailContract,
    filter_contract=AuthorFilterContract,
    validator=AuthorFormValidator,
    create_command=messages.CreateAuthorCommand,
    update_command=messages.UpdateAuthorCommand,
    delete_command=messages.DeleteAuthorCommand,
    get_query=messages.GetAuthorQuery,
    get_all_query=messages.GetAuthorsQuery,
    cache_key=CacheEntries.author_key,
)

BOOK = EntityResource(
    name="book",
    plural="books",
    form_contract=BookFormContract,
    detail_contract=BookDetailContract,
    filter_contract=BookFilterContract,
    validator=BookFormValidator,
    create_command=messages.CreateBookCommand,
    update_command=messages.UpdateBookCommand,
    delete_command=messages.DeleteBookCommand,
    get_query=messages.GetBookQuery,
    get_all_query=messages.GetBooksQuery,
    cache_key=CacheEntries.book_key,
)

GENRE = EntityResource(
    name="genre",
    plural="genres",
    form_contract=GenreFormContract,
    detail_contract=GenreDetailContract,
    filter_contract=GenreFilterContract,
    validator=GenreFormValidator,
    create_command=messages.CreateGenreCommand,
    update_command=messages.UpdateGenreCommand,
    delete_command=messages.DeleteGenreCommand,
    get_query=messages.GetGenreQuery,
    get_all_query=messages.GetGenresQuery,
    cache_key=CacheEntries.genre_key,
)

RESOURCES = (AUTHOR, BOOK, GENRE)


def _message_ids(request: Request) -> dict:
    return {"correlation_id": get_correlation_id(request), "user_id": get_user_id(request)}


class EntityEndpoints:
    """
    Endpoint implementations of one resource, shared by both route families.
    """

    def __init__(self, resource: EntityResource):
        self.resource = resource

    def _message(self, template: str) -> str:
        return template.format(entity=self.resource.name, entities=self.resource.plural)

    async def _validate(self, form: Any) -> Optional[JSONResponse]:
        result = await self.resource.validator().validate(form)
        if result.has_errors():
            return validation_result(result.messages)
        return None

    async def create(self, request: Request, form: Any) -> JSONResponse:
        invalid = await self._validate(form)
        if invalid is not None:
            return invalid

        command = self.resource.create_command(**_message_ids(request), contract=form)
        result = await get_message_bus(request).dispatch_message(command)
        if not result.success:
            return error_result(result.exception)

        return created_result(
            request,
            self._message(resources.CONTROLLER_CREATE_SUCCESSFUL),
            getattr(result, self.resource.name),
        )

    async def update(self, request: Request, entity_id: uuid.UUID, form: Any) -> JSONResponse:
        invalid = await self._validate(form)
        if invalid is not None:
            return invalid

        command = self.resource.update_command(
            **_message_ids(request), **{self.resource.id_field: entity_id}, contract=form
        )
        result = await get_message_bus(request).dispatch_message(command)
        if not result.success:
            return error_result(result.exception)
        return ok_result(self._message(resources.CONTROLLER_UPDATE_SUCCESSFUL))

    async def delete(self, request: Request, entity_id: uuid.UUID) -> JSONResponse:
        command = self.resource.delete_command(
            **_message_ids(request), **{self.resource.id_field: entity_id}
        )
        result = await get_message_bus(request).dispatch_message(command)
        if not result.success:
            return error_result(result.exception)
        return ok_result(self._message(resources.CONTROLLER_DELETE_SUCCESSFUL))

    async def get(self, request: Request, entity_id: uuid.UUID) -> JSONResponse:
        message = self._message(resources.CONTROLLER_GET_SUCCESSFUL)

        cache: Cache = get_cache(request)
        cached = await cache.try_get(self.resource.cache_key(entity_id), self.resource.detail_contract)
        if cached is not None:
            return ok_result(message, cached)

        query = self.resource.get_query(**_message_ids(request), **{self.resource.id_field: entity_id})
        result = await get_message_bus(request).dispatch_message(query)
        if not result.success:
            return error_result(result.exception)
        return ok_result(message, getattr(result, self.resource.name))

    async def get_all(self, request: Request) -> JSONResponse:
        entity_filter = self.resource.filter_contract.read_from_query(request.query_params)
        query = self.resource.get_all_query(**_message_ids(request), filter=entity_filter)
        result = await get_message_bus(request).dispatch_message(query)
        if not result.success:
            return error_result(result.exception)

        page = getattr(result, self.resource.plural)
        return ok_result(self._message(resources.CONTROLLER_GET_ALL_SUCCESSFUL), page_codec.encode(page))


# =============================================================================
# Controllers
# =============================================================================


def entity_controller(resource: EntityResource) -> APIRouter:
    """Router of one resource declared with decorators."""
    endpoints = EntityEndpoints(resource)
    form_contract = resource.form_contract
    router = APIRouter(prefix=f"/{resource.plural}", tags=[resource.plural.capitalize()], route_class=IdempotentRoute)

    @router.post("", status_code=201)
    async def create(request: Request, form: form_contract):  # type: ignore
        return await endpoints.create(request, form)

    @router.put("/{entity_id}")
    async def update(request: Request, entity_id: uuid.UUID, form: form_contract):  # type: ignore
        return await endpoints.update(request, entity_id, form)

    @router.delete("/{entity_id}")
    async def delete(request: Request, entity_id: uuid.UUID):
        return await endpoints.delete(request, entity_id)

    @router.get("/{entity_id}")
    async def get(request: Request, entity_id: uuid.UUID):
        return await endpoints.get(request, entity_id)

    @router.get("")
    async def get_all(request: Request):
        return await endpoints.get_all(request)

    return router


def controllers_router() -> APIRouter:
    router = APIRouter(prefix=CONTROLLERS_PREFIX)
    for resource in RESOURCES:
        router.include_router(entity_controller(resource))
    return router


# =============================================================================
# Minimal APIs
# =============================================================================


def map_entity_endpoints(router: APIRouter, resource: EntityResource) -> None:
    """Map the endpoints of one resource onto `router` with `add_api_route`."""
    endpoints = EntityEndpoints(resource)
    form_contract = resource.form_contract
    path = f"/{resource.plural}"
    tags = [resource.plural.capitalize()]

    async def create(request: Request, form: form_contract):  # type: ignore
        return await endpoints.create(request, form)

    async def update(request: Request, entity_id: uuid.UUID, form: form_contract):  # type: ignore
        return await endpoints.update(request, entity_id, form)

    router.add_api_route(path, create, methods=["POST"], status_code=201, tags=tags)
    router.add_api_route(f"{path}/{{entity_id}}", update, methods=["PUT"], tags=tags)
    router.add_api_route(f"{path}/{{entity_id}}", endpoints.delete, methods=["DELETE"], tags=tags)
    router.add_api_route(f"{path}/{{entity_id}}", endpoints.get, methods=["GET"], tags=tags)
    router.add_api_route(path, endpoints.get_all, methods=["GET"], tags=tags)


def minimal_apis_router() -> APIRouter:
    router = APIRouter(prefix=MINIMAL_APIS_PREFIX, route_class=IdempotentRoute)
    for resource in RESOURCES:
        map_entity_endpoints(router, resource)
    return router
