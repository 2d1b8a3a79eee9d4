"""
Suspendable tasks and the continuation protocol.

A ``Task`` wraps a generator body. Nothing runs until the scheduler resumes
the task for the first time. Inside the body, ``value = yield other`` awaits
another task (or any ``Waitable``): the awaiting task is recorded as the
other task's continuation and control transfers into it. When a task
finishes, its outcome is stored in a write-once slot and control transfers
back to its continuation, or to the scheduler when there is none.

Control transfer is symmetric: ``Task._resume`` returns the next task to run
instead of calling it, and ``Scheduler.drive`` trampolines over the returned
handles, so deep await chains do not grow the Python stack.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Generator
from enum import Enum, auto
from functools import partial, update_wrapper
from typing import TYPE_CHECKING, Any, Generic, ParamSpec, TypeVar

from dotask._vendor import Err, Ok, Result, trace_err
from dotask.errors import PreconditionViolation, TaskCancelledError
from dotask.slot import ResultSlot

if TYPE_CHECKING:
    from dotask.scheduler import Scheduler

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

TaskGenerator = Generator[Any, Any, T]


class TaskStatus(Enum):
    PENDING = auto()
    RUNNING = auto()
    SUSPENDED = auto()
    DONE = auto()
    CANCELLED = auto()


class Waitable:
    """Something a task body can ``yield`` to suspend itself.

    ``_suspend`` is called by the suspending task right after it yielded and
    returns the task to transfer control to (``None`` hands control back to
    the scheduler loop). ``_outcome`` is read exactly once when the waiter is
    resumed and becomes the value (or exception) of the ``yield`` expression.
    ``_cancel`` detaches the waiter when it is abandoned.
    """

    __slots__ = ()

    def _suspend(self, waiter: Task[Any], scheduler: Scheduler) -> Task[Any] | None:
        raise NotImplementedError

    def _outcome(self) -> Result[Any]:
        raise NotImplementedError

    def _cancel(self) -> None:
        raise NotImplementedError


class _AwaitTask(Waitable):
    __slots__ = ("_child",)

    def __init__(self, child: Task[Any]) -> None:
        self._child = child

    def _suspend(self, waiter: Task[Any], scheduler: Scheduler) -> Task[Any] | None:
        self._child._link(waiter)
        return self._child

    def _outcome(self) -> Result[Any]:
        return self._child._take_outcome()

    def _cancel(self) -> None:
        self._child.cancel()


def as_waitable(value: Any) -> Waitable | None:
    if isinstance(value, Task):
        return _AwaitTask(value)
    if isinstance(value, Waitable):
        return value
    return None


class Task(Generic[T]):
    """Single-owner handle to a suspended computation."""

    def __init__(self, body: Callable[[], Any], *, name: str | None = None) -> None:
        if not callable(body):
            raise TypeError(f"body must be callable, got {type(body).__name__}")
        self.name = name or getattr(body, "__qualname__", None) or repr(body)
        self._body: Callable[[], Any] | None = body
        self._gen: TaskGenerator[T] | None = None
        self._status = TaskStatus.PENDING
        self._claimed = False
        self._continuation: Task[Any] | None = None
        self._waiting_on: Waitable | None = None
        self._scheduler: Scheduler | None = None
        self._slot: ResultSlot[T] = ResultSlot(name=self.name)

    @property
    def status(self) -> TaskStatus:
        return self._status

    @property
    def done(self) -> bool:
        return self._status is TaskStatus.DONE

    @property
    def cancelled(self) -> bool:
        return self._status is TaskStatus.CANCELLED

    # ------------------------------------------------------------------
    # Continuation link
    # ------------------------------------------------------------------
    def _claim(self) -> None:
        if self._claimed or self._status is not TaskStatus.PENDING:
            raise PreconditionViolation(
                f"task {self.name} is already awaited or was already started"
            )
        self._claimed = True

    def _link(self, waiter: Task[Any]) -> None:
        self._claim()
        self._continuation = waiter

    # ------------------------------------------------------------------
    # Driving
    # ------------------------------------------------------------------
    def _resume(self, scheduler: Scheduler) -> Task[Any] | None:
        status = self._status
        if status is TaskStatus.DONE or status is TaskStatus.CANCELLED:
            raise PreconditionViolation(
                f"task {self.name} resumed after it {'finished' if status is TaskStatus.DONE else 'was cancelled'}"
            )
        if status is TaskStatus.RUNNING:
            raise PreconditionViolation(f"task {self.name} resumed while running")

        if status is TaskStatus.PENDING:
            return self._start(scheduler)

        waitable = self._waiting_on
        self._waiting_on = None
        self._status = TaskStatus.RUNNING
        if waitable is None:
            raise PreconditionViolation(f"task {self.name} resumed without a pending await")
        return self._advance(waitable._outcome(), scheduler)

    def _start(self, scheduler: Scheduler) -> Task[Any] | None:
        self._scheduler = scheduler
        self._status = TaskStatus.RUNNING
        scheduler.trace.emit("task.start", task=self.name)
        body = self._body
        self._body = None
        if body is None:
            raise PreconditionViolation(f"task {self.name} started twice")
        try:
            produced = body()
        except Exception as exc:
            return self._complete(Err(exc))
        if not inspect.isgenerator(produced):
            return self._complete(Ok(produced))
        self._gen = produced
        return self._advance(Ok(None), scheduler)

    def _advance(self, outcome: Result[Any], scheduler: Scheduler) -> Task[Any] | None:
        gen = self._gen
        if gen is None:
            raise PreconditionViolation(f"task {self.name} advanced without a running body")
        while True:
            try:
                if isinstance(outcome, Err):
                    yielded = gen.throw(outcome.error)
                else:
                    yielded = gen.send(outcome.value)
            except StopIteration as stop:
                return self._complete(Ok(stop.value))
            except Exception as exc:
                return self._complete(Err(exc))

            waitable = as_waitable(yielded)
            if waitable is None:
                outcome = Err(
                    TypeError(
                        f"task {self.name} yielded {type(yielded).__name__}; "
                        "only Task or Waitable objects can be awaited"
                    )
                )
                continue

            # _suspend may resume this task again before it returns
            self._waiting_on = waitable
            self._status = TaskStatus.SUSPENDED
            return waitable._suspend(self, scheduler)

    def _complete(self, outcome: Result[T]) -> Task[Any] | None:
        self._gen = None
        self._slot.put(outcome)
        self._status = TaskStatus.DONE
        if self._scheduler is not None:
            if isinstance(outcome, Err):
                self._scheduler.trace.emit(
                    "task.failed", task=self.name, error=trace_err(outcome.error)
                )
            else:
                self._scheduler.trace.emit("task.done", task=self.name)
        return self._continuation

    # ------------------------------------------------------------------
    # Outcome
    # ------------------------------------------------------------------
    def _take_outcome(self) -> Result[T]:
        if self._status is TaskStatus.CANCELLED:
            return Err(TaskCancelledError(f"task {self.name} was cancelled"))
        if self._status is not TaskStatus.DONE:
            raise PreconditionViolation(f"result of task {self.name} read before completion")
        return self._slot.take()

    def result(self) -> T:
        """Return the produced value, or re-raise the failure. Readable once."""
        return self._take_outcome().unwrap()

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------
    def cancel(self) -> None:
        """Abandon the task.

        Whatever the task is waiting on is cancelled first, then
        ``TaskCancelledError`` is thrown into the body at its suspension point
        so ``finally`` blocks run. Failures raised while unwinding are
        discarded. Cancelling a finished or already-cancelled task does
        nothing.
        """
        status = self._status
        if status is TaskStatus.DONE or status is TaskStatus.CANCELLED:
            return
        if status is TaskStatus.RUNNING:
            raise PreconditionViolation(f"task {self.name} cannot be cancelled while running")

        self._status = TaskStatus.CANCELLED
        self._body = None
        waitable = self._waiting_on
        self._waiting_on = None
        if waitable is not None:
            waitable._cancel()

        gen = self._gen
        self._gen = None
        if gen is not None:
            self._unwind(gen)
        if self._scheduler is not None:
            self._scheduler.trace.emit("task.cancelled", task=self.name)

    def _unwind(self, gen: TaskGenerator[T]) -> None:
        try:
            gen.throw(TaskCancelledError(f"task {self.name} was cancelled"))
        except (StopIteration, TaskCancelledError):
            return
        except Exception as exc:
            logger.debug("Discarding failure from abandoned task %s: %r", self.name, exc)
            return
        logger.warning("Task %s yielded while being cancelled; closing it", self.name)
        try:
            gen.close()
        except RuntimeError as exc:
            logger.warning("Task %s ignored close: %s", self.name, exc)

    def __repr__(self) -> str:
        return f"Task({self.name!r}, status={self._status.name})"


class ForwardingTask(Task["Task[Any] | None"]):
    """Task whose produced value is the next task to resume.

    The scheduler does not hand control to a continuation when a forwarding
    task finishes; it transfers to the task the body returned, or back to the
    loop when the body returned ``None``. Combinators use this to decide from
    inside a helper whether their own waiter should wake up.
    """

    def _link(self, waiter: Task[Any]) -> None:
        raise PreconditionViolation(f"forwarding task {self.name} cannot be awaited")

    def _complete(self, outcome: Result[Task[Any] | None]) -> Task[Any] | None:
        super()._complete(outcome)
        target = self._slot.consume()
        if target is not None and not isinstance(target, Task):
            raise TypeError(
                f"forwarding task {self.name} produced {type(target).__name__}, expected Task or None"
            )
        return target


class TaskFunction(Generic[P, T]):
    """Callable produced by :func:`task`; each call returns a fresh ``Task``."""

    def __init__(self, func: Callable[P, TaskGenerator[T] | T]) -> None:
        self.original_func = func
        update_wrapper(self, func)

    def __call__(self, *args: P.args, **kwargs: P.kwargs) -> Task[T]:
        return Task(partial(self.original_func, *args, **kwargs), name=self.__qualname__)

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self
        return partial(self, instance)


def task(func: Callable[P, TaskGenerator[T] | T]) -> TaskFunction[P, T]:
    """Turn a generator function into a task factory.

    Calling the decorated function only captures its arguments; the body runs
    when the returned ``Task`` is awaited or handed to ``Scheduler.run``.

    Usage:
        @task
        def fetch_both():
            yield sleep_for(0.5)
            a, b = yield join(first(), second())
            return a + b
    """
    return TaskFunction(func)


__all__ = [
    "ForwardingTask",
    "Task",
    "TaskFunction",
    "TaskGenerator",
    "TaskStatus",
    "Waitable",
    "as_waitable",
    "task",
]
