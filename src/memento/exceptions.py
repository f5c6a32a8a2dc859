"""Exceptions for the Memento service."""
from enum import Enum
from typing import Dict, Any, List, Iterable, Optional, Union


class MementoError(Exception):
    """Base exception for all Memento errors."""
    pass


class StandardExceptionType(str, Enum):
    """Classification of errors surfaced to clients."""

    BAD_REQUEST = "BadRequest"
    UNAUTHORIZED = "Unauthorized"
    FORBIDDEN = "Forbidden"
    NOT_FOUND = "NotFound"
    INTERNAL_SERVER_ERROR = "InternalServerError"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]


_STATUS_CODES = {
    StandardExceptionType.BAD_REQUEST: 400,
    StandardExceptionType.UNAUTHORIZED: 401,
    StandardExceptionType.FORBIDDEN: 403,
    StandardExceptionType.NOT_FOUND: 404,
    StandardExceptionType.INTERNAL_SERVER_ERROR: 500,
}


class StandardException(MementoError):
    """
    Error carrying one or more client-facing messages and a type.

    The type decides the HTTP status code of the response built from it.

    Usage:
        raise StandardException(["The field 'Name' is invalid."],
                                StandardExceptionType.BAD_REQUEST)
    """

    def __init__(
        self,
        messages: Union[str, Iterable[str], None] = None,
        type: Optional[StandardExceptionType] = None,
        source: Optional[str] = None,
    ):
        """
        Initialize the exception.

        Args:
            messages: A single message or a sequence of messages.
            type: The error classification (default: InternalServerError).
            source: Optional name of the component that raised it.
        """
        if messages is None:
            messages = []
        elif isinstance(messages, str):
            messages = [messages]
        self.messages: List[str] = list(messages)
        self.type = StandardExceptionType(type or StandardExceptionType.INTERNAL_SERVER_ERROR)
        self.source = source
        super().__init__(self.message)

    @property
    def message(self) -> str:
        """All messages joined by newlines."""
        return "\n".join(self.messages)

    @property
    def status_code(self) -> int:
        return self.type.status_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-compatible dictionary."""
        data = {"messages": list(self.messages), "type": self.type.value}
        if self.source:
            data["source"] = self.source
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StandardException":
        """Rebuild an exception from `to_dict` output."""
        if not isinstance(data, dict):
            raise ValueError(f"Cannot build StandardException from {type(data).__name__}")
        return cls(
            messages=data.get("messages") or [],
            type=StandardExceptionType(data.get("type") or StandardExceptionType.INTERNAL_SERVER_ERROR),
            source=data.get("source"),
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, StandardException):
            return NotImplemented
        return self.messages == other.messages and self.type == other.type

    __hash__ = Exception.__hash__

    def __repr__(self) -> str:
        return f"StandardException(messages={self.messages!r}, type={self.type.value})"


class HandlerNotFoundError(MementoError):
    """Raised when no handler is registered for a message type."""

    def __init__(self, message_type: type):
        self.message_type = message_type
        super().__init__(f"No handler registered for {message_type.__name__}")


class CacheError(MementoError):
    """Raised when a cache operation fails."""

    def __init__(self, operation: str, key: str, original_error: Exception = None):
        self.operation = operation
        self.key = key
        self.original_error = original_error
        super().__init__(f"Cache {operation} failed for '{key}': {original_error}")

