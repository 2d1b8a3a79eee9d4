"""
dotask - cooperative single-threaded task runtime.

Tasks are generator functions decorated with ``@task``. A body suspends by
yielding another task: a sub-computation, a sleep, or a join/race
combinator. A ``Scheduler`` drives the root task on the calling thread,
parking only when every task is waiting on a timer.

Example:
    >>> from dotask import Scheduler, join, sleep_for, task
    >>>
    >>> @task
    ... def after(seconds, value):
    ...     yield sleep_for(seconds)
    ...     return value
    >>>
    >>> @task
    ... def main():
    ...     a, b = yield join(after(0.1, "a"), after(0.2, "b"))
    ...     return a + b
    >>>
    >>> Scheduler().run(main())
    'ab'
"""

# Outcome types
from dotask._vendor import Err, FrozenDict, Ok, Result, trace_err

from dotask.clock import Clock, SimClock, WallClock
from dotask.combinators import RaceResult, join, join_dict, race
from dotask.errors import DeadlockError, PreconditionViolation, TaskCancelledError
from dotask.scheduler import RunResult, Scheduler, run, run_safe
from dotask.sleep import current_time, sleep_for, sleep_until
from dotask.slot import ResultSlot
from dotask.task import ForwardingTask, Task, TaskFunction, TaskGenerator, TaskStatus, Waitable, task
from dotask.timers import TimerEntry, TimerQueue
from dotask.trace import LoguruTraceSink, NullTraceSink, TraceSink

__version__ = "0.1.0"

__all__ = [
    "Clock",
    "DeadlockError",
    "Err",
    "ForwardingTask",
    "FrozenDict",
    "LoguruTraceSink",
    "NullTraceSink",
    "Ok",
    "PreconditionViolation",
    "RaceResult",
    "Result",
    "ResultSlot",
    "RunResult",
    "Scheduler",
    "SimClock",
    "Task",
    "TaskCancelledError",
    "TaskFunction",
    "TaskGenerator",
    "TaskStatus",
    "TimerEntry",
    "TimerQueue",
    "TraceSink",
    "WallClock",
    "Waitable",
    "current_time",
    "join",
    "join_dict",
    "race",
    "run",
    "run_safe",
    "sleep_for",
    "sleep_until",
    "task",
    "trace_err",
]
