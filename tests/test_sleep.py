from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from dotask import Scheduler, SimClock, current_time, sleep_for, sleep_until, task


def test_sleep_for_accepts_timedelta(scheduler: Scheduler, clock) -> None:
    start = clock.now()

    scheduler.run(sleep_for(timedelta(seconds=2)))

    assert clock.now() == start + 2.0


def test_sleep_for_reads_the_clock_when_it_starts(scheduler: Scheduler, clock) -> None:
    start = clock.now()

    @task
    def staggered():
        created_early = sleep_for(1.0)
        yield sleep_for(5.0)
        yield created_early
        return (yield current_time())

    assert scheduler.run(staggered()) == start + 6.0


def test_sleep_until_waits_for_absolute_deadline(scheduler: Scheduler, clock) -> None:
    target = clock.now() + 4.0

    @task
    def wake_at():
        yield sleep_until(target)
        return (yield current_time())

    assert scheduler.run(wake_at()) == target
    assert clock.parks == [target]


def test_sleep_until_accepts_aware_datetime() -> None:
    base = datetime(2025, 1, 1, tzinfo=timezone.utc)
    clock = SimClock(start_time=base.timestamp())
    scheduler = Scheduler(clock=clock)

    scheduler.run(sleep_until(base + timedelta(seconds=30)))

    assert clock.now() == base.timestamp() + 30


def test_sleep_until_rejects_naive_datetime() -> None:
    naive = datetime(2025, 1, 1, tzinfo=timezone.utc).replace(tzinfo=None)

    with pytest.raises(ValueError, match="timezone-aware"):
        sleep_until(naive)


@pytest.mark.parametrize("bad", [-0.1, timedelta(seconds=-1), float("nan"), float("inf")])
def test_sleep_for_rejects_invalid_durations(bad) -> None:
    with pytest.raises(ValueError, match="duration must be"):
        sleep_for(bad)


@pytest.mark.parametrize("bad", ["1", None, True])
def test_sleep_for_rejects_wrong_types(bad) -> None:
    with pytest.raises(TypeError, match="duration must be float or timedelta"):
        sleep_for(bad)


@pytest.mark.parametrize("bad", ["soon", None, False])
def test_sleep_until_rejects_wrong_types(bad) -> None:
    with pytest.raises(TypeError, match="deadline must be float or datetime"):
        sleep_until(bad)


def test_zero_duration_resumes_without_parking(scheduler: Scheduler, clock) -> None:
    scheduler.run(sleep_for(0))

    assert clock.parks == []


def test_current_time_reports_scheduler_clock(scheduler: Scheduler, clock) -> None:
    clock.advance_to(250.0)

    assert scheduler.run(current_time()) == 250.0
