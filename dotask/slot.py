"""Write-once, read-once storage for a task outcome."""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from dotask._vendor import Err, Ok, Result
from dotask.errors import PreconditionViolation

T = TypeVar("T")

_EMPTY: Any = object()
_TAKEN: Any = object()


class ResultSlot(Generic[T]):
    """Holds nothing, a value, or a failure.

    The slot is written at most once and read at most once. Writing twice,
    reading before a write, or reading twice raise ``PreconditionViolation``.
    """

    __slots__ = ("_name", "_outcome")

    def __init__(self, name: str = "result") -> None:
        self._name = name
        self._outcome: Result[T] | Any = _EMPTY

    @property
    def is_set(self) -> bool:
        return self._outcome is not _EMPTY

    @property
    def is_consumed(self) -> bool:
        return self._outcome is _TAKEN

    def put(self, outcome: Result[T]) -> None:
        if not isinstance(outcome, Result):
            raise TypeError(f"outcome must be Result, got {type(outcome).__name__}")
        if self._outcome is not _EMPTY:
            raise PreconditionViolation(f"{self._name} slot written twice")
        self._outcome = outcome

    def put_value(self, value: T) -> None:
        self.put(Ok(value))

    def put_failure(self, error: Exception) -> None:
        self.put(Err(error))

    def take(self) -> Result[T]:
        """Remove and return the stored ``Result``."""
        outcome = self._outcome
        if outcome is _EMPTY:
            raise PreconditionViolation(f"{self._name} slot read before it was written")
        if outcome is _TAKEN:
            raise PreconditionViolation(f"{self._name} slot read twice")
        self._outcome = _TAKEN
        return outcome

    def consume(self) -> T:
        """Return the stored value once, or re-raise the stored failure."""
        return self.take().unwrap()

    def __repr__(self) -> str:
        if self._outcome is _EMPTY:
            state = "empty"
        elif self._outcome is _TAKEN:
            state = "consumed"
        else:
            state = repr(self._outcome)
        return f"ResultSlot({self._name}: {state})"


__all__ = ["ResultSlot"]
