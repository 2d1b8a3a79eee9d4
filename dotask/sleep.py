"""Timed suspension and clock access for task bodies.

Usage:
    @task
    def tick():
        yield sleep_for(5.0)  # resume no earlier than 5 seconds from now
        yield sleep_until(deadline)  # resume no earlier than ``deadline``
        now = yield current_time()
        return now

Deadlines are read on the clock of the scheduler driving the task. Wake-up
is "no earlier than": a late resume is normal, an early one never happens.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from dotask._vendor import Ok, Result
from dotask.clock import finite_float
from dotask.task import Task, Waitable

if TYPE_CHECKING:
    from dotask.scheduler import Scheduler
    from dotask.timers import TimerEntry


def _ensure_deadline(value: float | datetime) -> float:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            raise ValueError("deadline must be timezone-aware datetime")
        return value.timestamp()
    return finite_float(value, name="deadline", expected="float or datetime")


def _ensure_duration(value: float | timedelta) -> float:
    if isinstance(value, timedelta):
        seconds = value.total_seconds()
    else:
        seconds = finite_float(value, name="duration", expected="float or timedelta")
    if seconds < 0:
        raise ValueError(f"duration must be non-negative, got {value!r}")
    return seconds


class _TimerWait(Waitable):
    __slots__ = ("_deadline", "_entry", "_scheduler")

    def __init__(self, deadline: float) -> None:
        self._deadline = deadline
        self._entry: TimerEntry | None = None
        self._scheduler: Scheduler | None = None

    def _target(self, scheduler: Scheduler) -> float:
        return self._deadline

    def _suspend(self, waiter: Task[Any], scheduler: Scheduler) -> Task[Any] | None:
        self._scheduler = scheduler
        self._entry = scheduler.add_timer(self._target(scheduler), waiter)
        return None

    def _outcome(self) -> Result[None]:
        self._entry = None
        return Ok(None)

    def _cancel(self) -> None:
        if self._entry is not None and self._scheduler is not None:
            self._scheduler.remove_timer(self._entry)
            self._entry = None


class _DelayWait(_TimerWait):
    __slots__ = ()

    def _target(self, scheduler: Scheduler) -> float:
        return scheduler.now() + self._deadline


class _ClockRead(Waitable):
    __slots__ = ("_now",)

    def __init__(self) -> None:
        self._now: float | None = None

    def _suspend(self, waiter: Task[Any], scheduler: Scheduler) -> Task[Any] | None:
        self._now = scheduler.now()
        return waiter

    def _outcome(self) -> Result[float]:
        return Ok(self._now)

    def _cancel(self) -> None:
        return None


def _wait(waitable: Waitable):
    yield waitable


def _read_clock():
    return (yield _ClockRead())


def sleep_until(deadline: float | datetime) -> Task[None]:
    """Return a task that completes no earlier than ``deadline``.

    ``deadline`` is either seconds on the scheduler clock or a timezone-aware
    ``datetime``. A deadline in the past completes on the next loop pass
    without parking.
    """
    target = _ensure_deadline(deadline)
    return Task(lambda: _wait(_TimerWait(target)), name=f"sleep_until({target})")


def sleep_for(duration: float | timedelta) -> Task[None]:
    """Return a task that completes no earlier than ``duration`` after it starts."""
    seconds = _ensure_duration(duration)
    return Task(lambda: _wait(_DelayWait(seconds)), name=f"sleep_for({seconds})")


def current_time() -> Task[float]:
    """Return a task producing the driving scheduler's clock reading."""
    return Task(_read_clock, name="current_time")


__all__ = [
    "current_time",
    "sleep_for",
    "sleep_until",
]
