"""APScheduler wrapper driving the ingestion pipeline."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from ..config import ScheduleConfig, ScheduleType
from ..errors import IngestionBusyError, IngestionRunError
from ..logging_conf import configure_logging

STARTUP_JOB_ID = "ingestion::startup"
INTERVAL_JOB_ID = "ingestion::interval"
MANUAL_JOB_ID = "ingestion::manual"


class APSchedulerAdapter:
    """Manage the startup, recurring and manual ingestion jobs."""

    def __init__(self) -> None:
        self.scheduler = BackgroundScheduler()
        self.logger = configure_logging().bind(component="scheduler")
        self.started = False

    def start(self) -> None:
        if not self.started:
            self.scheduler.start()
            self.started = True
            self.logger.info("apscheduler_started")

    def shutdown(self) -> None:
        if self.started:
            self.scheduler.shutdown(wait=False)
            self.started = False
            self.logger.info("apscheduler_stopped")

    def schedule_ingestion(
        self,
        callback: Callable[[], Any],
        schedule: ScheduleConfig,
        startup_delay_seconds: float = 5.0,
    ) -> None:
        job = self._guarded(callback)
        run_date = datetime.now(timezone.utc) + timedelta(seconds=startup_delay_seconds)
        self.scheduler.add_job(
            job,
            trigger=DateTrigger(run_date=run_date),
            id=STARTUP_JOB_ID,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self.scheduler.add_job(
            job,
            trigger=self._build_trigger(schedule),
            id=INTERVAL_JOB_ID,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self.logger.info(
            "job_scheduled",
            startup_delay_seconds=startup_delay_seconds,
            schedule=schedule.model_dump(mode="json"),
        )

    def trigger_now(self, callback: Callable[[], Any]) -> None:
        self.scheduler.add_job(
            self._guarded(callback),
            trigger=DateTrigger(run_date=datetime.now(timezone.utc)),
            id=MANUAL_JOB_ID,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self.logger.info("manual_ingestion_requested")

    def _guarded(self, callback: Callable[[], Any]) -> Callable[[], None]:
        def run_job() -> None:
            try:
                callback()
            except IngestionBusyError:
                self.logger.info("ingestion_skipped", reason="run_in_progress")
            except IngestionRunError as exc:
                self.logger.error(
                    "ingestion_failed", step=exc.step, error=str(exc), **exc.summary.as_dict()
                )
            except Exception as exc:  # noqa: BLE001
                self.logger.exception("ingestion_crashed", error=str(exc))

        run_job.__name__ = getattr(callback, "__name__", "run_job")
        return run_job

    def _build_trigger(self, schedule: ScheduleConfig):
        if schedule.type is ScheduleType.CRON:
            return CronTrigger.from_crontab(str(schedule.value))
        if schedule.type is ScheduleType.INTERVAL:
            if isinstance(schedule.value, (int, float)):
                return IntervalTrigger(seconds=float(schedule.value))
            if isinstance(schedule.value, dict):
                return IntervalTrigger(**schedule.value)
            raise ValueError("Interval schedule requires seconds or kwargs dict")
        if schedule.type is ScheduleType.ONCE:
            if schedule.value:
                run_date = datetime.fromisoformat(str(schedule.value))
            else:
                run_date = datetime.now(timezone.utc)
            return DateTrigger(run_date=run_date)
        raise ValueError(f"Unknown schedule type: {schedule.type}")

    def list_jobs(self) -> list[dict]:
        jobs = []
        for job in self.scheduler.get_jobs():
            jobs.append(
                {
                    "id": job.id,
                    "next_run_time": getattr(job, "next_run_time", None),
                    "trigger": str(job.trigger),
                }
            )
        return jobs


__all__ = ["APSchedulerAdapter", "INTERVAL_JOB_ID", "MANUAL_JOB_ID", "STARTUP_JOB_ID"]
