"""Clocks the scheduler reads time from and parks on.

``WallClock`` blocks the calling thread for real; ``SimClock`` keeps virtual
time and jumps straight to the requested deadline, which makes elapsed-time
behaviour reproducible in tests.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable
from typing import Protocol

from beartype import beartype


class Clock(Protocol):
    def now(self) -> float: ...

    def sleep_until(self, deadline: float) -> None: ...


def finite_float(value: float, *, name: str, expected: str = "float") -> float:
    """Coerce an int or float to a finite float; ``bool`` is rejected."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise TypeError(f"{name} must be {expected}, got {type(value).__name__}")
    coerced = float(value)
    if math.isnan(coerced) or math.isinf(coerced):
        raise ValueError(f"{name} must be finite, got {value!r}")
    return coerced


class WallClock:
    """Real time, read from ``now`` and waited on with ``sleep``."""

    @beartype
    def __init__(
        self,
        *,
        now: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._now = now
        self._sleep = sleep

    def now(self) -> float:
        return self._now()

    def sleep_until(self, deadline: float) -> None:
        self._sleep(max(0.0, deadline - self._now()))


class SimClock:
    """Virtual time that advances only when the scheduler parks on it."""

    @beartype
    def __init__(self, *, start_time: float | int = 0.0) -> None:
        self._mut_current_time = finite_float(start_time, name="start_time")

    @property
    def current_time(self) -> float:
        return self._mut_current_time

    def now(self) -> float:
        return self._mut_current_time

    def sleep_until(self, deadline: float) -> None:
        self.advance_to(deadline)

    @beartype
    def advance_to(self, target_time: float | int) -> float:
        target = finite_float(target_time, name="target_time")
        if target > self._mut_current_time:
            self._mut_current_time = target
        return self._mut_current_time

    def __repr__(self) -> str:
        return f"SimClock(current_time={self._mut_current_time!r})"


__all__ = [
    "Clock",
    "SimClock",
    "WallClock",
]
