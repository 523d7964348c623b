"""
Error taxonomy and operation results.

Expected failures (missing rows, policy refusals, constraint violations) are
returned inside a Result, never raised. Adaptors map ``ErrorKind`` onto their
own status codes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Generic, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Kinds of failure an operation can report."""

    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    VALIDATION_FAILED = "validation_failed"
    # Reserved for adaptors; the engine never produces it.
    UNAUTHORIZED = "unauthorized"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class RowgateError:
    """Base for all typed operation errors."""

    kind: ClassVar[ErrorKind]
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.kind.value, "message": self.message}


@dataclass(frozen=True)
class NotFound(RowgateError):
    """No row matches the identifier within the actor's scope."""

    kind: ClassVar[ErrorKind] = ErrorKind.NOT_FOUND
    message: str = "Not found"


@dataclass(frozen=True)
class Forbidden(RowgateError):
    """The policy refused the operation."""

    kind: ClassVar[ErrorKind] = ErrorKind.FORBIDDEN
    message: str = "Forbidden"


@dataclass(frozen=True)
class Unauthorized(RowgateError):
    """No authenticated actor (adaptor level)."""

    kind: ClassVar[ErrorKind] = ErrorKind.UNAUTHORIZED
    message: str = "Unauthorized"


@dataclass(frozen=True)
class ValidationFailed(RowgateError):
    """
    Attribute validation or a storage constraint rejected the write.

    Attributes:
        errors: field name -> list of messages ("base" for record-level errors)
    """

    kind: ClassVar[ErrorKind] = ErrorKind.VALIDATION_FAILED
    message: str = "Validation failed"
    errors: dict[str, list[str]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.kind.value, "message": self.message, "errors": self.errors}


class OperationError(Exception):
    """Raised by ``Result.unwrap`` when the result carries an error."""

    def __init__(self, error: RowgateError):
        self.error = error
        super().__init__(f"{error.kind.value}: {error.message}")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a policy decision, storage call or engine operation."""

    value: T | None = None
    error: RowgateError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T | None = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: RowgateError) -> "Result[T]":
        return cls(error=error)

    def unwrap(self) -> T:
        """Return the value or raise OperationError."""
        if self.error is not None:
            raise OperationError(self.error)
        return self.value
