"""Validation machinery for form contracts."""
from typing import Dict, List, Any, TypeVar, Generic, Optional
from dataclasses import dataclass, field
import inspect

from . import resources

T = TypeVar("T")


@dataclass
class ValidationResult:
    """Standard validation result."""

    errors: Dict[str, List[str]] = field(default_factory=dict)

    def has_errors(self) -> bool:
        """Check if there are any validation errors."""
        return len(self.errors) > 0

    def is_valid(self) -> bool:
        """Check if validation passed."""
        return not self.has_errors()

    @property
    def messages(self) -> List[str]:
        """All error messages, in field order."""
        return [message for messages in self.errors.values() for message in messages]

    @classmethod
    def success(cls) -> "ValidationResult":
        """Create a successful validation result (no errors)."""
        return cls(errors={})

    @classmethod
    def failure(cls, errors: Dict[str, List[str]]) -> "ValidationResult":
        """
        Create a failed validation result.

        Args:
            errors: Dictionary mapping field names to lists of error messages.
        """
        return cls(errors=errors)


class Validator(Generic[T]):
    """
    Base class for contract validators.

    Every `validate_<field>` method receives the value of `<field>` and
    raises `ValueError` with a client-facing message when it is not
    acceptable. Methods may be sync or async.

    Usage:
        class AuthorFormValidator(Validator[AuthorFormContract]):
            display_names = {"name": "Name"}

            def validate_name(self, value):
                self.max_length("name", value, 200)
    """

    display_names: Dict[str, str] = {}

    def __init__(self):
        self._errors: Dict[str, List[str]] = {}

    async def validate(self, message: T) -> ValidationResult:
        """Run every validate_ method against the message."""
        self._errors = {}

        for name in sorted(dir(self)):
            if not name.startswith("validate_"):
                continue
            validator_func = getattr(self, name)
            if not callable(validator_func):
                continue

            field_name = name[len("validate_"):]
            value = getattr(message, field_name, None)

            try:
                if inspect.iscoroutinefunction(validator_func):
                    await validator_func(value)
                else:
                    validator_func(value)
            except ValueError as e:
                self._add_error(field_name, str(e))

        return ValidationResult(errors=dict(self._errors))

    def display_name(self, field_name: str) -> str:
        return self.display_names.get(field_name, field_name)

    def required(self, field_name: str, value: Any) -> None:
        if value is None:
            raise ValueError(resources.ERROR_REQUIRED_FIELD.format(field=self.display_name(field_name)))

    def max_length(self, field_name: str, value: Optional[str], length: int) -> None:
        if value is not None and len(value) > length:
            raise ValueError(
                resources.ERROR_FIELD_TOO_LONG.format(field=self.display_name(field_name), length=length)
            )

    def _add_error(self, field_name: str, message: str):
        if field_name not in self._errors:
            self._errors[field_name] = []
        self._errors[field_name].append(message)
