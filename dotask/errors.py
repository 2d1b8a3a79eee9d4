"""Error types raised by the task runtime."""

from __future__ import annotations


class PreconditionViolation(BaseException):
    """Raised when the runtime is driven outside its contract.

    Examples are resuming a finished task, awaiting a task that already has a
    continuation, or reading a result twice. These are programming errors,
    not task failures: the class derives from ``BaseException`` so task
    bodies catching ``Exception`` and the combinators' failure capture never
    swallow them, and they propagate straight out of ``Scheduler.run``.
    """


class TaskCancelledError(Exception):
    """Thrown into a task body at its suspension point when it is abandoned."""


class DeadlockError(RuntimeError):
    """Raised when the root task is suspended and nothing can ever wake it."""


__all__ = [
    "DeadlockError",
    "PreconditionViolation",
    "TaskCancelledError",
]
