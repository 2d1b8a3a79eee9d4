from __future__ import annotations

import time

import pytest

from dotask import (
    RaceResult,
    Scheduler,
    TaskStatus,
    current_time,
    join,
    race,
    sleep_for,
    task,
)


@task
def after(seconds: float, value):
    yield sleep_for(seconds)
    return value


@task
def fail_after(seconds: float, error: Exception):
    yield sleep_for(seconds)
    raise error


def test_first_finisher_wins_and_the_rest_are_abandoned(scheduler: Scheduler, clock) -> None:
    start = clock.now()
    slow = after(2.0, 2)

    result = scheduler.run(race(after(1.0, 1), slow))

    assert result == RaceResult(index=0, value=1)
    assert clock.now() == start + 1.0
    assert slow.status is TaskStatus.CANCELLED
    assert scheduler.pending_timers == 0


def test_winner_index_follows_argument_position(scheduler: Scheduler) -> None:
    result = scheduler.run(race(after(3.0, "a"), after(2.0, "b"), after(1.0, "c")))

    assert result.index == 2
    assert result.value == "c"


def test_equal_deadlines_resolve_to_the_earliest_argument(scheduler: Scheduler) -> None:
    result = scheduler.run(race(after(1.0, "first"), after(1.0, "second")))

    assert result == RaceResult(0, "first")


def test_decisive_failure_is_reraised(scheduler: Scheduler, clock) -> None:
    error = TimeoutError("gave up")
    start = clock.now()

    with pytest.raises(TimeoutError) as exc_info:
        scheduler.run(race(after(5.0, "late"), fail_after(1.0, error)))

    assert exc_info.value is error
    assert clock.now() == start + 1.0


def test_failures_after_the_winner_are_never_observed(scheduler: Scheduler) -> None:
    loser = fail_after(2.0, ValueError("too late"))

    result = scheduler.run(race(after(1.0, "ok"), loser))

    assert result == RaceResult(0, "ok")
    assert loser.status is TaskStatus.CANCELLED


def test_synchronous_winner_prevents_other_sub_tasks_from_starting(scheduler: Scheduler, clock) -> None:
    started: list[str] = []

    @task
    def instant():
        started.append("instant")
        return "now"

    @task
    def tracked():
        started.append("tracked")
        yield sleep_for(1.0)
        return "later"

    other = tracked()
    start = clock.now()

    result = scheduler.run(race(instant(), other))

    assert result == RaceResult(0, "now")
    assert started == ["instant"]
    assert other.status is TaskStatus.CANCELLED
    assert clock.now() == start


def test_losers_clean_up_innermost_first(scheduler: Scheduler) -> None:
    cleaned: list[str] = []

    @task
    def inner():
        try:
            yield sleep_for(10.0)
        finally:
            cleaned.append("inner")

    @task
    def outer():
        try:
            yield inner()
        finally:
            cleaned.append("outer")

    scheduler.run(race(outer(), after(1.0, "winner")))

    assert cleaned == ["inner", "outer"]


def test_race_composes_with_join(scheduler: Scheduler, clock) -> None:
    start = clock.now()

    @task
    def composed():
        fastest, other = yield join(race(after(2.0, "x"), after(1.0, "y")), after(1.5, "z"))
        return fastest, other, (yield current_time())

    fastest, other, finished_at = scheduler.run(composed())

    assert fastest == RaceResult(1, "y")
    assert other == "z"
    assert finished_at == start + 1.5


def test_single_sub_task(scheduler: Scheduler) -> None:
    assert scheduler.run(race(after(1.0, "solo"))) == RaceResult(0, "solo")


def test_race_requires_at_least_one_task() -> None:
    with pytest.raises(ValueError, match="race requires at least one Task"):
        race()


def test_race_rejects_non_tasks() -> None:
    with pytest.raises(TypeError, match="race argument 0 must be Task, got str"):
        race("fast")  # type: ignore[arg-type]


def test_wall_clock_race_does_not_wait_for_losers() -> None:
    scheduler = Scheduler()
    start = time.time()

    result = scheduler.run(race(after(0.02, "fast"), after(5.0, "slow")))

    assert result == RaceResult(0, "fast")
    assert time.time() - start < 1.0


def test_repeated_timeouts_do_not_leave_timers_behind(scheduler: Scheduler) -> None:
    @task
    def loop(rounds: int):
        for index in range(rounds):
            result = yield race(after(0.001, index), sleep_for(3600))
            assert result.index == 0
        return rounds

    assert scheduler.run(loop(1000)) == 1000
    assert scheduler.pending_timers == 0
    assert len(scheduler._timers._items) <= 1
