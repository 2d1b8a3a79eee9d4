"""Min-heap queue of deadline-ordered sleeping tasks."""

from __future__ import annotations

import heapq
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from dotask.clock import finite_float

if TYPE_CHECKING:
    from dotask.task import Task


@dataclass(order=True)
class TimerEntry:
    deadline: float
    sequence: int
    task: Task[Any] = field(compare=False)
    removed: bool = field(default=False, compare=False)


class TimerQueue:
    """Deadline-ordered timers with O(log n) push/pop and O(1) discard.

    Discarded entries stay in the heap and are skipped when they reach the
    top; once they outnumber the live ones the heap is rebuilt without them.
    Entries with equal deadlines come out in insertion order.
    """

    def __init__(self) -> None:
        self._sequence = 0
        self._live = 0
        self._items: list[TimerEntry] = []

    def push(self, deadline: float, task: Task[Any]) -> TimerEntry:
        target = finite_float(deadline, name="deadline")
        self._sequence += 1
        entry = TimerEntry(deadline=target, sequence=self._sequence, task=task)
        heapq.heappush(self._items, entry)
        self._live += 1
        return entry

    def peek(self) -> TimerEntry | None:
        self._drop_removed()
        if not self._items:
            return None
        return self._items[0]

    def pop(self) -> TimerEntry:
        self._drop_removed()
        if not self._items:
            raise IndexError("pop from empty TimerQueue")
        entry = heapq.heappop(self._items)
        entry.removed = True
        self._live -= 1
        return entry

    def discard(self, entry: TimerEntry) -> None:
        if entry.removed:
            return
        entry.removed = True
        self._live -= 1
        if len(self._items) > 2 * self._live:
            self._compact()

    def _compact(self) -> None:
        self._items = [entry for entry in self._items if not entry.removed]
        heapq.heapify(self._items)

    def _drop_removed(self) -> None:
        while self._items and self._items[0].removed:
            heapq.heappop(self._items)

    def empty(self) -> bool:
        return self._live == 0

    def __len__(self) -> int:
        return self._live

    def __bool__(self) -> bool:
        return self._live > 0


__all__ = [
    "TimerEntry",
    "TimerQueue",
]
