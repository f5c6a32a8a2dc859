"""Message Type Registry for message hydration.

Maps message type strings to message classes, enabling reconstruction
of commands, queries, results and events received from the message bus.
"""

from typing import Dict, Type, Optional, Any, Union
import json


class MessageTypeRegistry:
    """
    Registry for mapping message type strings to message classes.

    Used by the bus client and the bus server to turn JSON payloads back
    into message objects.

    Usage:
        # Messages auto-register via __init_subclass__
        class BookCreatedEvent(Event):
            ...

        # Or register manually
        MessageTypeRegistry.register_class(BookCreatedEvent)

        # Hydrate a received payload
        event = MessageTypeRegistry.hydrate("BookCreatedEvent", body)
    """

    _registry: Dict[str, Type] = {}

    @classmethod
    def register(cls, message_class: Type) -> Type:
        """
        Decorator to register a message class.

        Returns:
            The message class (unchanged, for decorator use)
        """
        cls._registry[message_class.__name__] = message_class
        return message_class

    @classmethod
    def register_class(cls, message_class: Type) -> None:
        """Register a message class (alternative to decorator)."""
        cls._registry[message_class.__name__] = message_class

    @classmethod
    def get(cls, message_type: str) -> Optional[Type]:
        """Get message class by type name, or None if not registered."""
        return cls._registry.get(message_type)

    @classmethod
    def has(cls, message_type: str) -> bool:
        """Check if a message type is registered."""
        return message_type in cls._registry

    @classmethod
    def hydrate(cls, message_type: str, payload: Union[bytes, str, Dict[str, Any]]) -> Any:
        """
        Reconstruct a message from its JSON payload.

        Args:
            message_type: The message type string (class name)
            payload: Raw JSON (bytes/str) or an already decoded dictionary

        Raises:
            KeyError: If the message type is not registered.
        """
        message_class = cls.get(message_type)
        if message_class is None:
            raise KeyError(f"Unknown message type '{message_type}'")

        if isinstance(payload, (bytes, str)):
            payload = json.loads(payload)

        return message_class.model_validate(payload)

    @classmethod
    def list_types(cls) -> list:
        """List all registered message type names."""
        return list(cls._registry.keys())
