from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from contest_radar.config import ScheduleConfig, ScheduleType
from contest_radar.errors import IngestionBusyError, IngestionRunError
from contest_radar.pipeline import IngestionSummary
from contest_radar.scheduler import APSchedulerAdapter
from contest_radar.scheduler.apsched_adapter import INTERVAL_JOB_ID, MANUAL_JOB_ID, STARTUP_JOB_ID


class StubScheduler:
    def __init__(self) -> None:
        self.calls: list[dict] = []

    def add_job(self, callback, trigger, id, max_instances, coalesce, replace_existing):  # noqa: ANN001
        self.calls.append(
            {
                "id": id,
                "trigger": trigger,
                "callback": callback,
                "max_instances": max_instances,
                "coalesce": coalesce,
                "replace_existing": replace_existing,
            }
        )

    def get_jobs(self):
        return []

    def start(self):
        self.calls.append({"event": "started"})

    def shutdown(self, wait=False):  # noqa: ARG002
        self.calls.append({"event": "shutdown"})


@pytest.fixture
def adapter() -> APSchedulerAdapter:
    instance = APSchedulerAdapter()
    instance.scheduler = StubScheduler()  # type: ignore[assignment]
    return instance


def test_build_triggers() -> None:
    adapter = APSchedulerAdapter()
    cron = adapter._build_trigger(ScheduleConfig(type=ScheduleType.CRON, value="*/5 * * * *"))
    assert isinstance(cron, CronTrigger)

    interval = adapter._build_trigger(ScheduleConfig(type=ScheduleType.INTERVAL, value=30))
    assert isinstance(interval, IntervalTrigger)
    assert interval.interval.total_seconds() == 30

    future = (datetime.now(timezone.utc) + timedelta(minutes=5)).isoformat()
    once = adapter._build_trigger(ScheduleConfig(type=ScheduleType.ONCE, value=future))
    assert isinstance(once, DateTrigger)


def test_default_schedule_is_six_hours() -> None:
    trigger = APSchedulerAdapter()._build_trigger(ScheduleConfig())
    assert isinstance(trigger, IntervalTrigger)
    assert trigger.interval == timedelta(hours=6)


def test_interval_kwargs_and_invalid_values() -> None:
    adapter = APSchedulerAdapter()
    trigger = adapter._build_trigger(ScheduleConfig(type=ScheduleType.INTERVAL, value={"minutes": 2}))
    assert trigger.interval.total_seconds() == 120
    with pytest.raises(ValueError):
        adapter._build_trigger(ScheduleConfig(type=ScheduleType.INTERVAL, value="fast"))


def test_schedule_ingestion_registers_startup_and_interval(adapter) -> None:
    before = datetime.now(timezone.utc)
    adapter.schedule_ingestion(lambda: None, ScheduleConfig(), startup_delay_seconds=5)

    startup, interval = adapter.scheduler.calls
    assert startup["id"] == STARTUP_JOB_ID
    assert isinstance(startup["trigger"], DateTrigger)
    assert startup["trigger"].run_date >= before + timedelta(seconds=4)
    assert interval["id"] == INTERVAL_JOB_ID
    assert isinstance(interval["trigger"], IntervalTrigger)
    for job in (startup, interval):
        assert job["max_instances"] == 1
        assert job["coalesce"] is True


def test_trigger_now_adds_manual_job(adapter) -> None:
    calls: list[str] = []
    adapter.trigger_now(lambda: calls.append("ran"))
    job = adapter.scheduler.calls[0]
    assert job["id"] == MANUAL_JOB_ID
    job["callback"]()
    assert calls == ["ran"]


def test_job_wrapper_absorbs_busy_and_failed_runs(adapter) -> None:
    def busy():
        raise IngestionBusyError("running")

    def failed():
        raise IngestionRunError("retention", IngestionSummary(), "disk full")

    adapter.trigger_now(busy)
    adapter.trigger_now(failed)
    for job in adapter.scheduler.calls:
        job["callback"]()


def test_start_and_shutdown_are_idempotent(adapter) -> None:
    adapter.start()
    adapter.start()
    adapter.shutdown()
    adapter.shutdown()
    assert adapter.scheduler.calls == [{"event": "started"}, {"event": "shutdown"}]
