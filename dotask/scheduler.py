"""Single-threaded event loop driving a root task to completion.

The loop alternates between two states:

- Running: resume a chain of tasks until it suspends (``drive``).
- Waiting: look at the earliest timer. If it has expired, remove it and
  resume its task; otherwise park on the clock until that deadline.

It stops once the root task has finished and no timer is left. Timer expiry
is the only asynchronous wake source; there is no ready queue.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from dotask._vendor import Err, Ok, Result
from dotask.clock import Clock, WallClock
from dotask.errors import DeadlockError, PreconditionViolation
from dotask.task import Task, TaskStatus
from dotask.timers import TimerEntry, TimerQueue
from dotask.trace import NullTraceSink, TraceSink

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RunResult(Generic[T]):
    """Typed outcome of :meth:`Scheduler.run_safe`."""

    result: Result[T]
    elapsed: float

    @property
    def is_ok(self) -> bool:
        return self.result.is_ok()

    @property
    def is_err(self) -> bool:
        return self.result.is_err()

    @property
    def value(self) -> T:
        if isinstance(self.result, Err):
            raise ValueError("RunResult holds an error, not a value") from self.result.error
        return self.result.unwrap()

    @property
    def error(self) -> Exception | None:
        return self.result.err()

    def unwrap(self) -> T:
        return self.result.unwrap()


class Scheduler:
    """Cooperative executor for tasks on the calling thread.

    Args:
        clock: Time source and parking strategy. Defaults to ``WallClock()``.
        trace: Diagnostic sink receiving loop events. Defaults to a no-op.
    """

    def __init__(
        self,
        *,
        clock: Clock | None = None,
        trace: TraceSink | None = None,
    ) -> None:
        self.clock: Clock = clock if clock is not None else WallClock()
        self.trace: TraceSink = trace if trace is not None else NullTraceSink()
        self._timers = TimerQueue()
        self._running = False

    def now(self) -> float:
        return self.clock.now()

    @property
    def pending_timers(self) -> int:
        return len(self._timers)

    @property
    def running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Timer registration (used by sleeping tasks)
    # ------------------------------------------------------------------
    def add_timer(self, deadline: float, task: Task[Any]) -> TimerEntry:
        entry = self._timers.push(deadline, task)
        self.trace.emit("timer.add", task=task.name, deadline=entry.deadline)
        return entry

    def remove_timer(self, entry: TimerEntry) -> None:
        self._timers.discard(entry)

    # ------------------------------------------------------------------
    # Driving
    # ------------------------------------------------------------------
    def drive(self, task: Task[Any]) -> None:
        """Resume ``task`` and every task control transfers to, until one suspends."""
        current: Task[Any] | None = task
        while current is not None:
            current = current._resume(self)

    def run(self, root: Task[T]) -> T:
        """Drive ``root`` to completion and return its value.

        A failure of the root propagates out of this call unchanged.
        """
        if not isinstance(root, Task):
            raise TypeError(f"root must be Task, got {type(root).__name__}")
        if self._running:
            raise PreconditionViolation("Scheduler.run called while the scheduler is running")
        root._claim()
        self._running = True
        try:
            self._loop(root)
        finally:
            self._running = False
        return root.result()

    def run_safe(self, root: Task[T]) -> RunResult[T]:
        """Like :meth:`run`, but report the root's failure as ``Err`` instead of raising."""
        started = self.clock.now()
        try:
            value = self.run(root)
        except Exception as exc:
            return RunResult(Err(exc), self.clock.now() - started)
        return RunResult(Ok(value), self.clock.now() - started)

    def _loop(self, root: Task[Any]) -> None:
        self.drive(root)
        while True:
            finished = root.status is TaskStatus.DONE or root.status is TaskStatus.CANCELLED
            if finished and self._timers.empty():
                return

            entry = self._timers.peek()
            if entry is None:
                logger.error("Root task %s is suspended with no pending timer", root.name)
                root.cancel()
                raise DeadlockError(
                    f"task {root.name} is suspended and no pending timer can wake it"
                )

            now = self.clock.now()
            if entry.deadline <= now:
                self._timers.pop()
                self.trace.emit(
                    "timer.fire",
                    task=entry.task.name,
                    deadline=entry.deadline,
                    late=now - entry.deadline,
                )
                self.drive(entry.task)
            else:
                self.trace.emit("loop.park", until=entry.deadline, pending=len(self._timers))
                self.clock.sleep_until(entry.deadline)


def run(
    root: Task[T],
    *,
    clock: Clock | None = None,
    trace: TraceSink | None = None,
) -> T:
    """Run ``root`` on a freshly constructed :class:`Scheduler`."""
    return Scheduler(clock=clock, trace=trace).run(root)


def run_safe(
    root: Task[T],
    *,
    clock: Clock | None = None,
    trace: TraceSink | None = None,
) -> RunResult[T]:
    """Run ``root`` on a fresh :class:`Scheduler`, returning a :class:`RunResult`."""
    return Scheduler(clock=clock, trace=trace).run_safe(root)


__all__ = [
    "RunResult",
    "Scheduler",
    "run",
    "run_safe",
]
