"""
FastAPI integration: standard result envelope, correlation and
idempotency handling, exception handlers and health endpoints.
"""

from datetime import timedelta
from typing import Any, Callable, List, Optional
import json
import logging
import uuid

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from fastapi.routing import APIRoute
from starlette.datastructures import Headers, MutableHeaders

from .. import resources
from ..caching import Cache, CacheEntries
from ..config import correlation_id_var
from ..exceptions import StandardException, StandardExceptionType
from .pydantic import Contract

logger = logging.getLogger("memento")

CORRELATION_HEADER = "X-Correlation-Id"
IDEMPOTENCY_HEADER = "X-Idempotency-Id"
USER_HEADER = "X-User-Id"

IDEMPOTENCY_ABSOLUTE_EXPIRATION = timedelta(minutes=5)
IDEMPOTENCY_SLIDING_EXPIRATION = timedelta(minutes=5)
IDEMPOTENT_METHODS = {"POST", "PUT", "DELETE"}


def parse_uuid(value: Optional[str]) -> Optional[uuid.UUID]:
    if not value:
        return None
    try:
        return uuid.UUID(value)
    except ValueError:
        return None


# =============================================================================
# Standard Result
# =============================================================================


class StandardResult(Contract):
    """
    Envelope of every API response.

    `data` is omitted from the JSON body when there is nothing to return.
    """

    success: bool
    status_code: int
    message: str
    errors: List[str] = []
    data: Optional[Any] = None

    def to_response(self, headers: Optional[dict] = None) -> JSONResponse:
        content = self.model_dump(mode="json", by_alias=True, exclude={"data"})
        if self.data is not None:
            content["data"] = _encode_data(self.data)
        return JSONResponse(content=content, status_code=self.status_code, headers=headers)


def _encode_data(data: Any) -> Any:
    if hasattr(data, "model_dump"):
        return data.model_dump(mode="json", by_alias=True)
    return data


def ok_result(message: str, data: Any = None) -> JSONResponse:
    return StandardResult(success=True, status_code=200, message=message, data=data).to_response()


def created_result(request: Request, message: str, data: Any) -> JSONResponse:
    """201 response whose Location is the request URL followed by the new id."""
    location = f"{str(request.url).rstrip('/')}/{data.id}"
    result = StandardResult(success=True, status_code=201, message=message, data=data)
    return result.to_response(headers={"Location": location})


def validation_result(messages: List[str]) -> JSONResponse:
    return StandardResult(
        success=False,
        status_code=400,
        message=resources.ERROR_VALIDATION,
        errors=list(messages),
    ).to_response()


def error_result(exception: Optional[StandardException]) -> JSONResponse:
    """
    Map a failed result's exception to a response.

    BadRequest keeps the field messages under the validation message,
    NotFound keeps its message, anything else becomes the generic
    unexpected-error message.
    """
    if exception is not None and exception.type == StandardExceptionType.BAD_REQUEST:
        return validation_result(exception.messages)

    if exception is not None and exception.type == StandardExceptionType.NOT_FOUND:
        return StandardResult(
            success=False,
            status_code=exception.status_code,
            message=exception.message,
            errors=list(exception.messages),
        ).to_response()

    return StandardResult(
        success=False,
        status_code=StandardExceptionType.INTERNAL_SERVER_ERROR.status_code,
        message=resources.ERROR_UNEXPECTED,
        errors=[resources.ERROR_UNEXPECTED],
    ).to_response()


# =============================================================================
# Correlation
# =============================================================================


class CorrelationMiddleware:
    """
    ASGI middleware that assigns a correlation id to every request.

    The id comes from the X-Correlation-Id header, or a new UUID when the
    header is missing or invalid. It is stored in `request.state` and in
    `correlation_id_var` for the duration of the request, and echoed in the
    response headers.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        correlation_id = parse_uuid(Headers(scope=scope).get(CORRELATION_HEADER))
        if correlation_id is None:
            logger.warning("Request does not have a valid CorrelationId.")
            correlation_id = uuid.uuid4()

        scope.setdefault("state", {})["correlation_id"] = correlation_id
        token = correlation_id_var.set(correlation_id)

        async def send_with_correlation(message):
            if message["type"] == "http.response.start":
                MutableHeaders(scope=message)[CORRELATION_HEADER] = str(correlation_id)
            await send(message)

        try:
            await self.app(scope, receive, send_with_correlation)
        finally:
            correlation_id_var.reset(token)


def get_correlation_id(request: Request) -> uuid.UUID:
    correlation_id = getattr(request.state, "correlation_id", None)
    return correlation_id or correlation_id_var.get() or uuid.uuid4()


# =============================================================================
# Idempotency
# =============================================================================


class IdempotentResult(Contract):
    """Snapshot of a successful response stored under `Idempotency:{id}`."""

    status_code: int
    location: Optional[str] = None
    value: Any = None

    def to_response(self) -> JSONResponse:
        headers = {"Location": self.location} if self.location else None
        return JSONResponse(content=self.value, status_code=self.status_code, headers=headers)


class IdempotencyGate:
    """
    Replays the stored response of a request already seen with the same
    X-Idempotency-Id.

    Requests without a valid id run normally. Only 200 and 201 responses
    are stored; cache failures are logged and treated as misses.
    """

    def __init__(
        self,
        cache: Cache,
        absolute_expiration: timedelta = IDEMPOTENCY_ABSOLUTE_EXPIRATION,
        sliding_expiration: timedelta = IDEMPOTENCY_SLIDING_EXPIRATION,
    ):
        self.cache = cache
        self.absolute_expiration = absolute_expiration
        self.sliding_expiration = sliding_expiration

    async def __call__(self, header_value: Optional[str], call_next: Callable) -> Response:
        idempotency_id = parse_uuid(header_value)
        if idempotency_id is None:
            logger.warning("Request does not have a valid IdempotencyId.")
            return await call_next()

        key = CacheEntries.idempotency_key(idempotency_id)
        cached = await self.cache.try_get(key, IdempotentResult)
        if cached is not None:
            logger.info(f"Request has a cached result for IdempotencyId {idempotency_id}")
            return cached.to_response()

        logger.info(f"Request does not have a cached result for IdempotencyId {idempotency_id}")
        response = await call_next()

        if response.status_code in (200, 201):
            snapshot = IdempotentResult(
                status_code=response.status_code,
                location=response.headers.get("location"),
                value=json.loads(response.body) if response.body else None,
            )
            await self.cache.try_set(
                key,
                snapshot,
                absolute_expiration=self.absolute_expiration,
                sliding_expiration=self.sliding_expiration,
            )

        return response


class IdempotentRoute(APIRoute):
    """
    Route class that puts POST, PUT and DELETE endpoints behind the
    idempotency gate. The cache is read from `app.state.cache`.

    Usage:
        router = APIRouter(route_class=IdempotentRoute)
    """

    def get_route_handler(self) -> Callable:
        route_handler = super().get_route_handler()
        if not (self.methods & IDEMPOTENT_METHODS):
            return route_handler

        async def idempotent_route_handler(request: Request) -> Response:
            gate = IdempotencyGate(request.app.state.cache)
            return await gate(
                request.headers.get(IDEMPOTENCY_HEADER),
                lambda: route_handler(request),
            )

        return idempotent_route_handler


# =============================================================================
# Dependencies
# =============================================================================


def get_message_bus(request: Request) -> Any:
    return request.app.state.message_bus


def get_cache(request: Request) -> Cache:
    return request.app.state.cache


def get_user_id(request: Request) -> Optional[str]:
    return request.headers.get(USER_HEADER) or None


# =============================================================================
# Exception Handlers
# =============================================================================


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register the envelope-producing exception handlers.

    Usage:
        register_exception_handlers(app)
    """

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        messages = []
        for error in exc.errors():
            location = ".".join(str(part) for part in error.get("loc", ()))
            messages.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
        return validation_result(messages)

    @app.exception_handler(StandardException)
    async def standard_exception_handler(request: Request, exc: StandardException) -> JSONResponse:
        if exc.type not in (StandardExceptionType.BAD_REQUEST, StandardExceptionType.NOT_FOUND):
            logger.error(f"Request failed: {exc.message}", exc_info=exc)
        return error_result(exc)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Unhandled exception while processing {request.url.path}: {exc}", exc_info=exc)
        return error_result(None)


# =============================================================================
# Health
# =============================================================================


health_router = APIRouter(tags=["Health"])


@health_router.get("/health")
async def health() -> JSONResponse:
    return JSONResponse(content={"status": "Healthy"})


@health_router.get("/health/bus")
async def bus_health(request: Request) -> JSONResponse:
    healthy = await get_message_bus(request).is_healthy()
    return JSONResponse(
        content={"status": "Healthy" if healthy else "Unhealthy"},
        status_code=200 if healthy else 503,
    )


def init_memento(app: FastAPI, message_bus: Any, cache: Cache, enable_exception_handlers: bool = True) -> None:
    """
    Attach the message bus and cache to the app and install the
    correlation middleware, exception handlers and health endpoints.

    Usage:
        init_memento(app, container.message_bus(), container.cache())
    """
    app.state.message_bus = message_bus
    app.state.cache = cache
    app.add_middleware(CorrelationMiddleware)
    app.include_router(health_router)

    if enable_exception_handlers:
        register_exception_handlers(app)
