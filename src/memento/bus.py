"""
Message bus - dispatches commands, queries and events either in-process
through the mediator or remotely through a message broker.

Remote commands and queries use request/response: the request body is the
message JSON and the reply is an envelope `{"message_type", "payload"}`
holding the serialized result, which is hydrated back into its result class
through the `MessageTypeRegistry`.
"""

import asyncio
import json
import logging
from typing import Any, Iterable, List, Optional, Type

from .exceptions import StandardException, StandardExceptionType
from .message_registry import MessageTypeRegistry
from .protocols import MessageBroker

logger = logging.getLogger("memento")


def _result_type_for(message_type: Type) -> Optional[Type]:
    from .handler_registry import get_request_handler

    handler_cls = get_request_handler(message_type)
    return getattr(handler_cls, "result_type", None)


def _failed_result(message: Any, exception: StandardException) -> Any:
    from .contrib.pydantic import MessageResult

    result_type = _result_type_for(type(message)) or MessageResult
    return result_type(
        correlation_id=getattr(message, "correlation_id", None),
        user_id=getattr(message, "user_id", None),
        success=False,
        exception=exception,
    )


def encode_reply(result: Any) -> bytes:
    return json.dumps({"message_type": type(result).__name__, "payload": result.to_dict()}).encode()


def decode_reply(body: bytes) -> Any:
    envelope = json.loads(body)
    return MessageTypeRegistry.hydrate(envelope["message_type"], envelope["payload"])


class MessageBus:
    """
    Entry point used by the HTTP layer to send messages.

    Usage:
        bus = MessageBus(mediator)                  # in-process
        bus = MessageBus(mediator, broker=broker)   # through RabbitMQ

        result = await bus.dispatch_message(CreateGenreCommand(contract=form))
    """

    def __init__(self, mediator: Any, broker: Optional[MessageBroker] = None):
        self.mediator = mediator
        self.broker = broker

    @property
    def uses_broker(self) -> bool:
        return self.broker is not None

    async def dispatch_message(self, message: Any) -> Any:
        """Send a command or query through the broker if configured, the mediator otherwise."""
        if self.uses_broker:
            return await self.dispatch_message_via_bus(message)
        return await self.dispatch_message_via_mediator(message)

    async def dispatch_event(self, event: Any) -> None:
        """Publish an event through the broker if configured, the mediator otherwise."""
        if self.uses_broker:
            await self.dispatch_event_via_bus(event)
        else:
            await self.dispatch_event_via_mediator(event)

    async def dispatch_message_via_mediator(self, message: Any) -> Any:
        return await self.mediator.send(message)

    async def dispatch_message_via_bus(self, message: Any) -> Any:
        """
        Send a message as a broker request and hydrate the reply.

        Transport failures and undecodable replies produce a failed
        InternalServerError result of the handler's result type.
        """
        message_type = type(message).__name__
        try:
            body = await self.broker.request(message_type, message)
            return decode_reply(body)
        except asyncio.TimeoutError as e:
            error = e
            logger.error(f"[{message.correlation_id}] Request {message_type} timed out")
        except Exception as e:
            error = e
            logger.error(
                f"[{message.correlation_id}] Request {message_type} failed: {e}",
                exc_info=True,
            )

        exception = StandardException(
            str(error) or type(error).__name__,
            StandardExceptionType.INTERNAL_SERVER_ERROR,
            source=type(self).__name__,
        )
        exception.__cause__ = error
        return _failed_result(message, exception)

    async def dispatch_event_via_mediator(self, event: Any) -> None:
        await self.mediator.publish(event)

    async def dispatch_event_via_bus(self, event: Any) -> None:
        await self.broker.publish(type(event).__name__, event)

    async def is_healthy(self) -> bool:
        """In-process mode is always healthy; bus mode needs an open connection."""
        if not self.uses_broker:
            return True
        return bool(self.broker.is_connected)


class BusEventPublisher:
    """
    Event handler that forwards events to the broker's topic exchange.

    Registered on the mediator's dispatcher in bus mode, so the events
    produced by commands reach the `EventConsumer` of every instance.
    """

    def __init__(self, broker: MessageBroker):
        self.broker = broker

    async def handle(self, event: Any) -> None:
        topic = type(event).__name__
        logger.debug(f"Publishing event {topic} via {type(self.broker).__name__}")
        await self.broker.publish(topic, event)


class MessageBusServer:
    """
    Serves the registered command and query handlers over the broker.

    Each message type gets its own request queue; requests are hydrated,
    sent through the local mediator and the result is sent back.
    """

    def __init__(self, broker: MessageBroker, mediator: Any, message_types: Optional[Iterable[Type]] = None):
        self.broker = broker
        self.mediator = mediator
        self._message_types = list(message_types) if message_types is not None else None
        self._running = False

    @property
    def message_types(self) -> List[Type]:
        if self._message_types is not None:
            return self._message_types
        from .handler_registry import get_request_types

        return get_request_types()

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        for message_type in self.message_types:
            await self.broker.respond(message_type.__name__, self.serve)
        logger.info(f"MessageBusServer serving {len(self.message_types)} message types")

    async def serve(self, body: bytes, headers: dict) -> bytes:
        message_type = headers.get("message_type")
        try:
            message = MessageTypeRegistry.hydrate(message_type, body)
        except Exception as e:
            logger.error(f"Could not hydrate request of type '{message_type}': {e}", exc_info=True)
            from .contrib.pydantic import MessageResult

            result = MessageResult(
                success=False,
                exception=StandardException(
                    str(e), StandardExceptionType.BAD_REQUEST, source=type(self).__name__
                ),
            )
            return encode_reply(result)

        try:
            result = await self.mediator.send(message)
        except Exception as e:
            logger.error(f"[{message.correlation_id}] Could not serve {message_type}: {e}", exc_info=True)
            result = _failed_result(
                message,
                StandardException(
                    str(e), StandardExceptionType.INTERNAL_SERVER_ERROR, source=type(self).__name__
                ),
            )
        return encode_reply(result)


class EventConsumer:
    """
    Subscribes to event topics and dispatches hydrated events locally.

    When a payload arrives:
    1. Hydrates it with the MessageTypeRegistry (topic = event type name)
    2. Dispatches it to the priority and background handlers
    """

    def __init__(
        self,
        broker: MessageBroker,
        dispatcher: Any,
        event_types: Iterable[Type],
        queue_prefix: Optional[str] = None,
    ):
        self.broker = broker
        self.dispatcher = dispatcher
        self.event_types = list(event_types)
        self.queue_prefix = queue_prefix
        self._running = False

    async def start(self) -> None:
        """Start subscribing and listening for events."""
        if self._running:
            return

        self._running = True
        topics = [event_type.__name__ for event_type in self.event_types]
        logger.info(f"Starting EventConsumer for topics: {topics}")

        for topic in topics:
            queue_name = f"{self.queue_prefix}.{topic}" if self.queue_prefix else None
            await self.broker.subscribe(
                topic=topic, handler=self._handler_for(topic), queue_name=queue_name
            )

    async def stop(self) -> None:
        self._running = False
        logger.info("EventConsumer stopped")

    def _handler_for(self, topic: str):
        async def handle(payload: Any) -> None:
            await self.handle_payload(topic, payload)

        return handle

    async def handle_payload(self, event_type: str, payload: Any) -> None:
        if not isinstance(payload, dict):
            logger.warning(f"Consumer received non-dict payload: {type(payload)}")
            return

        try:
            event = MessageTypeRegistry.hydrate(event_type, payload)
        except Exception as e:
            logger.error(f"Error in EventConsumer while hydrating {event_type}: {e}", exc_info=True)
            return

        logger.debug(f"Consumer hydrated and dispatching {event_type}")
        await self.dispatcher.dispatch_priority(event)
        await self.dispatcher.dispatch_background(event)
