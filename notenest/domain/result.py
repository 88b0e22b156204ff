"""Discriminated results returned by command handlers."""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class FailureKind(str, Enum):
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    CONCURRENCY = "concurrency"


@dataclass(frozen=True)
class Success(Generic[T]):
    """The command's events were committed (or there was nothing to commit)."""

    value: T

    @property
    def is_success(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """The command was aborted before any event was appended.

    Attributes:
        kind: Why the command failed. Callers may reload and retry on
            CONCURRENCY.
        message: Human readable reason, passed through from the domain.
    """

    kind: FailureKind
    message: str

    @property
    def is_success(self) -> bool:
        return False

    @classmethod
    def not_found(cls, message: str) -> "Failure":
        return cls(FailureKind.NOT_FOUND, message)

    @classmethod
    def validation(cls, message: str) -> "Failure":
        return cls(FailureKind.VALIDATION, message)

    @classmethod
    def concurrency(cls, message: str) -> "Failure":
        return cls(FailureKind.CONCURRENCY, message)


CommandResult = Union[Success[T], Failure]
