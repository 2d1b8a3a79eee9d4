"""Wait-for-first combinator."""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Any, Generic, TypeVar

from dotask.combinators._control import LaunchHelpers, RaceControl, abandon, ensure_tasks
from dotask.errors import PreconditionViolation
from dotask.task import ForwardingTask, Task

T = TypeVar("T")


@dataclass(frozen=True)
class RaceResult(Generic[T]):
    """The winning sub-task's position and its value."""

    index: int
    value: T


def _race_helper(index: int, child: Task[Any], control: RaceControl):
    try:
        value = yield child
    except Exception as exc:
        control.record_failure(exc)
        return control.finish()
    if not control.finished:
        control.winner = index
        control.slot.put_value(value)
    return control.finish()


def _race_body(children: tuple[Task[Any], ...]):
    control = RaceControl()
    helpers = [
        ForwardingTask(
            partial(_race_helper, index, child, control),
            name=f"race[{index}]:{child.name}",
        )
        for index, child in enumerate(children)
    ]
    try:
        yield LaunchHelpers(control, helpers)
    finally:
        abandon(helpers, children)
    if control.failure is not None:
        raise control.failure
    if control.winner is None:
        raise PreconditionViolation("race completed without a winner")
    return RaceResult(index=control.winner, value=control.slot.consume())


def race(*tasks: Task[Any]) -> Task[RaceResult[Any]]:
    """Run ``tasks`` concurrently and complete with the first one to finish.

    If the first sub-task to finish failed, its failure is re-raised. All
    other sub-tasks are cancelled when the race completes.

    Example:
        @task
        def fastest():
            result = yield race(primary(), fallback())
            return result.index, result.value
    """
    children = ensure_tasks(tuple(tasks), name="race")
    return Task(
        partial(_race_body, children),
        name=f"race({', '.join(child.name for child in children)})",
    )


__all__ = [
    "RaceResult",
    "race",
]
