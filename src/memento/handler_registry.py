"""
Registry of the handler classes declared in the process.

Command and query handlers are stored by the message type they answer
(requests); event handlers by event type, split into priority and
background buckets. `core.py` fills it when handler classes are defined;
the `Mediator` instantiates request handlers from it, the bus server
serves every registered request type over the broker and the
`EventDispatcher` discovers event handlers.
"""
from typing import Type, Dict, List, Any, Optional
import logging

_command_handlers: Dict[Type, Type] = {}
_query_handlers: Dict[Type, Type] = {}
_event_handlers: Dict[Type, Dict[str, List[Type]]] = {}

logger = logging.getLogger("memento")


def _register_request_handler(
    registry: Dict[Type, Type], kind: str, message_type: Type, handler_class: Type
) -> None:
    if not message_type:
        name = handler_class.__name__ if handler_class else "Unknown"
        logger.warning(f"Failed to register {kind} handler for {name}: {kind}_type is None")
        return

    current = registry.get(message_type)
    if current is not None and current is not handler_class:
        logger.warning(
            f"{handler_class.__name__} replaces {current.__name__} as the handler of {message_type.__name__}"
        )
    registry[message_type] = handler_class
    logger.debug(f"Registered {handler_class.__name__} for {message_type.__name__}")


def register_command_handler(command_type: Type, handler_class: Type) -> None:
    """Register the handler class answering `command_type`."""
    _register_request_handler(_command_handlers, "command", command_type, handler_class)


def register_query_handler(query_type: Type, handler_class: Type) -> None:
    """Register the handler class answering `query_type`."""
    _register_request_handler(_query_handlers, "query", query_type, handler_class)


def register_event_handler(event_type: Type, handler_class: Type, priority: bool = False) -> None:
    """
    Register an event handler for a specific event.

    Args:
        event_type: The event class
        handler_class: The handler class
        priority: If True, the handler is awaited by the publisher.
                 If False, it runs in the background.
    """
    if not event_type:
        name = handler_class.__name__ if handler_class else "Unknown"
        logger.warning(f"Failed to register event handler for {name}: event_type is None")
        return

    buckets = _event_handlers.setdefault(event_type, {"priority": [], "background": []})
    bucket = buckets["priority" if priority else "background"]
    if handler_class not in bucket:
        bucket.append(handler_class)

    type_kind = "priority" if priority else "background"
    logger.debug(f"Registered EventHandler {handler_class.__name__} for {event_type.__name__} ({type_kind})")


def unregister_handler(handler_class: Type) -> None:
    """Remove a handler class from every registration it has."""
    for registry in (_command_handlers, _query_handlers):
        for message_type in [t for t, h in registry.items() if h is handler_class]:
            del registry[message_type]

    for event_type in list(_event_handlers):
        buckets = _event_handlers[event_type]
        for key in ("priority", "background"):
            buckets[key] = [h for h in buckets[key] if h is not handler_class]
        if not buckets["priority"] and not buckets["background"]:
            del _event_handlers[event_type]


def get_request_handler(message_type: Type) -> Optional[Type]:
    """The handler class answering a command or query type, if any."""
    return _command_handlers.get(message_type) or _query_handlers.get(message_type)


def get_request_types() -> List[Type]:
    """Every command and query type that has a handler."""
    return list(_command_handlers) + list(_query_handlers)


def get_registered_handlers() -> Dict[str, Any]:
    """
    Get a snapshot of all registered handlers.

    Returns:
        Dict containing copies of 'commands', 'queries', and 'events' registries.
    """
    return {
        "commands": _command_handlers.copy(),
        "queries": _query_handlers.copy(),
        "events": {event_type: {key: list(handlers) for key, handlers in buckets.items()}
                   for event_type, buckets in _event_handlers.items()},
    }
