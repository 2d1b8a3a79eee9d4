"""Shared machinery for the join and race combinators.

Both combinators wrap every sub-task in a forwarding helper. The helpers are
launched from inside the combinator's own suspension: all but the last run
inline until they first suspend, the last one receives control directly.
Each helper reports into a control block; when the block decides the
combinator is complete, the reporting helper forwards control to the
combinator's waiter. Mutation of a control block is only safe because every
helper runs on the scheduler thread, one at a time.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from dotask._vendor import Ok, Result
from dotask.slot import ResultSlot
from dotask.task import ForwardingTask, Task, Waitable

if TYPE_CHECKING:
    from dotask.scheduler import Scheduler


@dataclass
class ControlBlock:
    continuation: Task[Any] | None = None
    failure: Exception | None = None
    finished: bool = False

    def record_failure(self, error: Exception) -> None:
        if not self.finished and self.failure is None:
            self.failure = error

    def finish(self) -> Task[Any] | None:
        """Mark the combinator complete; only the first call wakes the waiter."""
        if self.finished:
            return None
        self.finished = True
        return self.continuation


@dataclass
class JoinControl(ControlBlock):
    remaining: int = 0
    slots: list[ResultSlot[Any]] = field(default_factory=list)

    @classmethod
    def for_count(cls, count: int) -> JoinControl:
        return cls(
            remaining=count,
            slots=[ResultSlot(name=f"join[{index}]") for index in range(count)],
        )


@dataclass
class RaceControl(ControlBlock):
    winner: int | None = None
    slot: ResultSlot[Any] = field(default_factory=lambda: ResultSlot(name="race"))


class LaunchHelpers(Waitable):
    __slots__ = ("_control", "_helpers")

    def __init__(self, control: ControlBlock, helpers: Sequence[ForwardingTask]) -> None:
        self._control = control
        self._helpers = helpers

    def _suspend(self, waiter: Task[Any], scheduler: Scheduler) -> Task[Any] | None:
        self._control.continuation = waiter
        for helper in self._helpers[:-1]:
            scheduler.drive(helper)
            if self._control.finished:
                # the waiter has already been resumed by the helper
                return None
        return self._helpers[-1]

    def _outcome(self) -> Result[None]:
        return Ok(None)

    def _cancel(self) -> None:
        for helper in self._helpers:
            helper.cancel()


def ensure_tasks(tasks: tuple[Any, ...], *, name: str) -> tuple[Task[Any], ...]:
    if not tasks:
        raise ValueError(f"{name} requires at least one Task")
    for index, item in enumerate(tasks):
        if not isinstance(item, Task):
            raise TypeError(f"{name} argument {index} must be Task, got {type(item).__name__}")
    return tasks


def abandon(helpers: Sequence[Task[Any]], children: Sequence[Task[Any]]) -> None:
    """Cancel every helper and sub-task that has not finished."""
    for helper in helpers:
        helper.cancel()
    for child in children:
        child.cancel()


__all__ = [
    "ControlBlock",
    "JoinControl",
    "LaunchHelpers",
    "RaceControl",
    "abandon",
    "ensure_tasks",
]
