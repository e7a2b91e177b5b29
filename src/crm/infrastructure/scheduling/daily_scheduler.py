"""Daily schedule for the reminder sweep and the inbox purge.

Each job fires at fixed wall-clock times in one time zone (local by
default).  Every configured time becomes its own ``CronTrigger``, so a
daylight-saving change keeps 09:00 at 09:00.  Jobs run on APScheduler's
background thread; a job that raises is logged and the schedule carries on.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, time, tzinfo
from typing import Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.combining import OrTrigger
from apscheduler.triggers.cron import CronTrigger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScheduledJob:
    name: str
    task: Callable[[], object]
    times: tuple[time, ...]


def cron_trigger(times: tuple[time, ...], timezone: tzinfo | None = None) -> OrTrigger:
    """One cron trigger per wall-clock time, fired by whichever comes first."""
    kwargs = {"timezone": timezone} if timezone is not None else {}
    return OrTrigger(
        [CronTrigger(hour=at.hour, minute=at.minute, second=0, **kwargs) for at in times]
    )


class DailySweepScheduler:

    def __init__(self, jobs: list[ScheduledJob], timezone: tzinfo | None = None) -> None:
        jobs = [job for job in jobs if job.times]
        if not jobs:
            raise ValueError("At least one job needs a fire time")
        self._jobs = jobs
        self._triggers = {job.name: cron_trigger(job.times, timezone) for job in jobs}
        self._timezone = timezone
        self._scheduler: BackgroundScheduler | None = None
        self._stopped = threading.Event()

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def next_run(self, now: datetime) -> tuple[datetime, ScheduledJob]:
        """The earliest (fire time, job) at or after *now*; ties go to the first job."""
        candidates = []
        for index, job in enumerate(self._jobs):
            when = self._triggers[job.name].get_next_fire_time(None, now)
            if when is not None:
                candidates.append((when, index, job))
        when, _, job = min(candidates, key=lambda c: (c[0], c[1]))
        return when, job

    def run_job(self, job: ScheduledJob) -> None:
        logger.info("Running scheduled job '%s'", job.name)
        try:
            job.task()
        except Exception:
            logger.exception("Scheduled job '%s' failed", job.name)

    # --- Background thread ----------------------------------------------------

    def start(self) -> None:
        if self.running:
            raise RuntimeError("Scheduler is already running")
        kwargs = {"timezone": self._timezone} if self._timezone is not None else {}
        scheduler = BackgroundScheduler(**kwargs)
        for job in self._jobs:
            scheduler.add_job(
                self.run_job,
                trigger=self._triggers[job.name],
                args=(job,),
                id=job.name,
                name=job.name,
                max_instances=1,
                coalesce=True,
                misfire_grace_time=300,
            )
        self._stopped.clear()
        scheduler.start()
        self._scheduler = scheduler
        for aps_job in scheduler.get_jobs():
            logger.info("Job '%s' next at %s", aps_job.name, aps_job.next_run_time.isoformat())

    def stop(self, wait: bool = True) -> None:
        self._stopped.set()
        if self._scheduler is not None:
            if self._scheduler.running:
                self._scheduler.shutdown(wait=wait)
            self._scheduler = None

    def wait(self) -> None:
        """Block until ``stop`` is called from another thread or a signal handler."""
        while not self._stopped.wait(1.0):
            pass
