from dataclasses import dataclass, field
from typing import Type, Callable, Any, Dict, Optional

from .protocols import Middleware
from .exceptions import StandardException, StandardExceptionType
import logging
from datetime import datetime


@dataclass
class MiddlewareDefinition:
    """Definition of a middleware to be applied at runtime."""

    middleware_class: Type["Middleware"]
    kwargs: Dict[str, Any] = field(default_factory=dict)


class ValidatorMiddleware(Middleware):
    """
    Middleware that validates a contract carried by the message.

    The validator runs against `getattr(message, attribute)` (or the message
    itself when no attribute is given). If validation fails, raises a
    `StandardException` of type BadRequest with the field messages, which
    the handler turns into a failed result.
    """

    def __init__(self, validator_class: Type = None, attribute: Optional[str] = None):
        self.validator_class = validator_class
        self.attribute = attribute

    def apply(self, handler_func: Callable, message) -> Callable:
        async def wrapped(*args, **kwargs):
            if self.validator_class:
                target = getattr(message, self.attribute) if self.attribute else message
                result = await self.validator_class().validate(target)

                if result.has_errors():
                    raise StandardException(
                        result.messages,
                        StandardExceptionType.BAD_REQUEST,
                        source=type(message).__name__,
                    )
            return await handler_func(*args, **kwargs)

        return wrapped


class LoggingMiddleware(Middleware):
    """
    Middleware for logging message execution and duration.

    Metadata extracted:
    - Message Name
    - Trace ID (Correlation ID)
    - Duration of execution
    - Outcome of the result (success flag)
    """

    def __init__(self, level: str = "info"):
        self.level = level

    def apply(self, handler_func: Callable, message) -> Callable:
        logger = logging.getLogger("memento")
        log = getattr(logger, self.level, logger.info)

        async def wrapped(*args, **kwargs):
            message_name = type(message).__name__

            trace_id = getattr(message, "correlation_id", None) or getattr(
                message, "message_id", None
            )
            id_prefix = f"[{trace_id}] " if trace_id else ""

            log(f"{id_prefix}Executing {message_name}")
            try:
                start_time = datetime.now()
                result = await handler_func(*args, **kwargs)
                duration = datetime.now() - start_time
                outcome = "Completed" if getattr(result, "success", True) else "Completed with errors"
                log(f"{id_prefix}{outcome} {message_name} in {duration.total_seconds():.3f}s")
                return result
            except Exception as e:
                logger.error(f"{id_prefix}Failed {message_name}: {e}")
                raise

        return wrapped


class MiddlewareRegistry:
    """
    Registry for declarative middleware registration via decorators.

    Middlewares run inside the handler's `consume`, so an exception raised
    by a middleware becomes a failed result like any handler failure.
    """

    def __init__(self):
        self.classes = {
            "validator": ValidatorMiddleware,
            "logging": LoggingMiddleware,
        }

    def _register(self, handler_class, middleware_class: Type["Middleware"], **kwargs):
        if "_middlewares" not in handler_class.__dict__:
            handler_class._middlewares = list(getattr(handler_class, "_middlewares", []))

        # Store definition for runtime instantiation
        handler_class._middlewares.append(
            MiddlewareDefinition(middleware_class=middleware_class, kwargs=kwargs)
        )
        return handler_class

    def validate(self, validator_class: Type = None, attribute: Optional[str] = None):
        """
        Decorator to add validation middleware.

        Args:
            validator_class: A `Validator` subclass.
            attribute: Message attribute holding the contract to validate.
        """

        def decorator(handler_class):
            return self._register(
                handler_class,
                self.classes["validator"],
                validator_class=validator_class,
                attribute=attribute,
            )

        return decorator

    def log(self, level: str = "info"):
        """Add logging middleware."""

        def decorator(handler_class):
            return self._register(handler_class, self.classes["logging"], level=level)

        return decorator

    def apply(self, middleware_class: Type[Middleware], **kwargs):
        """
        Decorator to apply a custom middleware class.

        Args:
            middleware_class: The middleware class to instantiate.
            **kwargs: Arguments to pass to the middleware constructor.
        """

        def decorator(handler_class):
            return self._register(handler_class, middleware_class, **kwargs)

        return decorator


def build_middleware_chain(handler_func: Callable, handler: Any, message: Any) -> Callable:
    """
    Wrap `handler_func` in the middlewares declared on the handler's class.

    Middlewares are applied in registration order (bottom-to-top), so the
    top-most decorator remains the outermost layer.
    """
    logger = logging.getLogger("memento")

    for middleware_item in getattr(handler.__class__, "_middlewares", []):
        if isinstance(middleware_item, MiddlewareDefinition):
            try:
                middleware_instance = middleware_item.middleware_class(**middleware_item.kwargs)
            except Exception as e:
                logger.error(
                    f"Failed to instantiate middleware {middleware_item.middleware_class}: {e}"
                )
                raise
        else:
            middleware_instance = middleware_item

        handler_func = middleware_instance.apply(handler_func, message)

    return handler_func


# Global middleware registry instance
middleware = MiddlewareRegistry()
