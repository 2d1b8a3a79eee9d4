"""Wait-for-all combinators."""

from __future__ import annotations

from collections.abc import Mapping
from functools import partial
from typing import Any

from dotask._vendor import FrozenDict
from dotask.combinators._control import JoinControl, LaunchHelpers, abandon, ensure_tasks
from dotask.slot import ResultSlot
from dotask.task import ForwardingTask, Task


def _join_helper(child: Task[Any], slot: ResultSlot[Any], control: JoinControl):
    try:
        value = yield child
    except Exception as exc:
        # first failure completes the join without waiting for the rest
        control.record_failure(exc)
        return control.finish()
    slot.put_value(value)
    control.remaining -= 1
    if control.remaining == 0:
        return control.finish()
    return None


def _join_body(children: tuple[Task[Any], ...]):
    control = JoinControl.for_count(len(children))
    helpers = [
        ForwardingTask(
            partial(_join_helper, child, control.slots[index], control),
            name=f"join[{index}]:{child.name}",
        )
        for index, child in enumerate(children)
    ]
    try:
        yield LaunchHelpers(control, helpers)
    finally:
        abandon(helpers, children)
    if control.failure is not None:
        raise control.failure
    return tuple(slot.consume() for slot in control.slots)


def join(*tasks: Task[Any]) -> Task[tuple[Any, ...]]:
    """Run ``tasks`` concurrently and produce their results in argument order.

    The first sub-task to fail completes the join immediately; its failure is
    re-raised to the awaiter and the unfinished sub-tasks are cancelled.

    Example:
        @task
        def both():
            a, b = yield join(fetch("a"), fetch("b"))
            return a + b
    """
    children = ensure_tasks(tuple(tasks), name="join")
    return Task(
        partial(_join_body, children),
        name=f"join({', '.join(child.name for child in children)})",
    )


def _join_dict_body(keys: tuple[Any, ...], children: tuple[Task[Any], ...]):
    values = yield join(*children)
    return FrozenDict(zip(keys, values))


def join_dict(tasks: Mapping[Any, Task[Any]]) -> Task[FrozenDict]:
    """Like :func:`join`, but keyed: produces a frozendict of results by key."""
    if not isinstance(tasks, Mapping):
        raise TypeError(f"tasks must be Mapping, got {type(tasks).__name__}")
    keys = tuple(tasks.keys())
    children = ensure_tasks(tuple(tasks.values()), name="join_dict")
    return Task(partial(_join_dict_body, keys, children), name=f"join_dict({', '.join(map(str, keys))})")


__all__ = [
    "join",
    "join_dict",
]
