from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ConfigError(Exception):
    """Configuration could not be resolved; fatal at startup."""


class DuplicateToolError(Exception):
    """A tool name was registered twice."""


@dataclass(frozen=True)
class BackendError:
    """
    Normalized backend failure.

    status_code is set only when the backend answered with a non-2xx status.
    """

    message: str
    status_code: Optional[int] = None

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"{self.message} (status {self.status_code})"


@dataclass(frozen=True)
class BackendResult(Generic[T]):
    """Either a value or a BackendError; backend clients return this instead of raising."""

    value: Optional[T] = None
    error: Optional[BackendError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "BackendResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, message: str, status_code: Optional[int] = None) -> "BackendResult[T]":
        return cls(error=BackendError(message=message, status_code=status_code))
