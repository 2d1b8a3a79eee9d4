from __future__ import annotations

from typing import Any

import pytest

from dotask import Scheduler, SimClock


class RecordingTraceSink:
    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    def emit(self, event: str, **fields: Any) -> None:
        self.events.append((event, fields))

    def names(self) -> list[str]:
        return [event for event, _ in self.events]


class ParkRecordingClock(SimClock):
    """SimClock that remembers every deadline the scheduler parked on."""

    def __init__(self, *, start_time: float = 0.0) -> None:
        super().__init__(start_time=start_time)
        self.parks: list[float] = []

    def sleep_until(self, deadline: float) -> None:
        self.parks.append(deadline)
        super().sleep_until(deadline)


START = 100.0


@pytest.fixture
def clock() -> ParkRecordingClock:
    return ParkRecordingClock(start_time=START)


@pytest.fixture
def trace() -> RecordingTraceSink:
    return RecordingTraceSink()


@pytest.fixture
def scheduler(clock: ParkRecordingClock, trace: RecordingTraceSink) -> Scheduler:
    return Scheduler(clock=clock, trace=trace)
