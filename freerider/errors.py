"""
Failure vocabulary shared by the data store, the reservation lifecycle and the
HTTP routers.

Fallible operations return a Result instead of raising: either a value or a
Failure tagged with one ErrorKind, never both.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")
E = TypeVar("E")


class ErrorKind(Enum):
    BAD_REQUEST = 400   # malformed or incomplete input
    NOT_FOUND = 404     # referenced id absent
    CONFLICT = 409      # uniqueness or referential-integrity violation

    @property
    def status_code(self) -> int:
        return self.value


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    message: str

    def __str__(self):
        return f"{self.kind.name}: {self.message}"


class ResultError(Exception):
    """Raised by Result.unwrap() on a failed result."""

    def __init__(self, failure):
        super().__init__(str(failure))
        self.failure = failure


@dataclass(frozen=True)
class Result(Generic[T, E]):
    value: Optional[T] = None
    failure: Optional[E] = None

    def __post_init__(self):
        if self.value is not None and self.failure is not None:
            raise ValueError("a Result carries either a value or a failure")

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, value: T) -> "Result[T, E]":
        return cls(value=value)

    @classmethod
    def fail(cls, failure: E) -> "Result[T, E]":
        return cls(failure=failure)

    @classmethod
    def error(cls, kind: ErrorKind, message: str) -> "Result[T, Failure]":
        return cls(failure=Failure(kind, message))

    def unwrap(self) -> T:
        if self.failure is not None:
            raise ResultError(self.failure)
        return self.value


def bad_request(message: str) -> Result:
    return Result.error(ErrorKind.BAD_REQUEST, message)


def not_found(message: str) -> Result:
    return Result.error(ErrorKind.NOT_FOUND, message)


def conflict(message: str) -> Result:
    return Result.error(ErrorKind.CONFLICT, message)
