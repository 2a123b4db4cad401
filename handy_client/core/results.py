"""Tagged outcome of a single command."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from .errors import HandyError

T = TypeVar("T")


@dataclass(slots=True, frozen=True)
class CommandResult(Generic[T]):
    """Either ``Success(value)`` or ``Failure(error)``; never both."""

    value: Optional[T] = None
    error: Optional[HandyError] = None

    @classmethod
    def success(cls, value: T) -> "CommandResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: HandyError) -> "CommandResult[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def message(self) -> Optional[str]:
        return None if self.error is None else self.error.message

    def unwrap(self) -> T:
        """Return the value, raising the carried error on failure."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
