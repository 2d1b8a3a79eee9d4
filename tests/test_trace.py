from __future__ import annotations

from loguru import logger as loguru_logger

from dotask import LoguruTraceSink, NullTraceSink, Scheduler, SimClock, sleep_for, task


@task
def nap():
    yield sleep_for(1.0)
    return "rested"


def test_null_sink_accepts_any_event() -> None:
    assert NullTraceSink().emit("anything", a=1) is None


def test_loguru_sink_writes_structured_records() -> None:
    records: list[dict] = []
    handler_id = loguru_logger.add(lambda message: records.append(message.record), level="DEBUG")
    try:
        scheduler = Scheduler(clock=SimClock(), trace=LoguruTraceSink())
        assert scheduler.run(nap()) == "rested"
    finally:
        loguru_logger.remove(handler_id)

    events = [record["extra"]["event"] for record in records if "event" in record["extra"]]
    assert "timer.add" in events
    assert "timer.fire" in events
    assert all(
        record["extra"]["component"] == "dotask"
        for record in records
        if "event" in record["extra"]
    )
    parked = [record for record in records if record["extra"].get("event") == "loop.park"]
    assert parked and parked[0]["message"].startswith("loop.park until=1.0")


def test_loguru_sink_honours_level_and_component() -> None:
    records: list[dict] = []
    handler_id = loguru_logger.add(lambda message: records.append(message.record), level="INFO")
    try:
        LoguruTraceSink(level="INFO", component="worker").emit("task.start", task="t")
    finally:
        loguru_logger.remove(handler_id)

    assert len(records) == 1
    assert records[0]["level"].name == "INFO"
    assert records[0]["extra"]["component"] == "worker"
    assert records[0]["message"] == "task.start task=t"
