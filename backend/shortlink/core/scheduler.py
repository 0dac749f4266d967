"""Background maintenance jobs (APScheduler).

Jobs are registered by the application factory and run on a
:class:`~apscheduler.schedulers.background.BackgroundScheduler` thread, each
inside an application context. Job exceptions propagate to APScheduler,
which logs them and keeps the schedule alive.
"""

from __future__ import annotations

import atexit
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from flask import Flask

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MaintenanceJob:
    """
    :param job_id: Stable identifier, also used in log records.
    :param func: Zero-argument callable returning a count of removed items.
    :param interval: Time between two runs.
    """

    job_id: str
    func: Callable[[], int | None]
    interval: timedelta


class MaintenanceScheduler:
    """Own a background scheduler and the application it runs jobs for."""

    def __init__(self, app: Flask) -> None:
        self.app = app
        self.scheduler = BackgroundScheduler(timezone="UTC")
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def add_job(self, job: MaintenanceJob) -> None:
        self.scheduler.add_job(
            self._wrap(job),
            trigger=IntervalTrigger(seconds=max(1, int(job.interval.total_seconds()))),
            id=job.job_id,
            name=job.job_id,
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )

    def _wrap(self, job: MaintenanceJob) -> Callable[[], None]:
        def run() -> None:
            with self.app.app_context():
                removed = job.func()
            log.info("scheduler.job_done", extra={"job": job.job_id, "removed": removed})

        return run

    def run_now(self, job_id: str) -> None:
        """Execute a registered job synchronously in the caller thread."""
        registered = self.scheduler.get_job(job_id)
        if registered is None:
            raise KeyError(job_id)
        registered.func()

    def job_ids(self) -> list[str]:
        return sorted(job.id for job in self.scheduler.get_jobs())

    def start(self) -> None:
        if self._running:
            log.warning("scheduler.already_running")
            return
        self.scheduler.start()
        self._running = True
        log.info("scheduler.started", extra={"job": ",".join(self.job_ids())})

    def stop(self, wait: bool = True) -> None:
        if not self._running:
            return
        self.scheduler.shutdown(wait=wait)
        self._running = False
        log.info("scheduler.stopped")


def init_app(app: Flask, jobs: Iterable[MaintenanceJob]) -> MaintenanceScheduler:
    """Register ``jobs`` and start the scheduler when ``SCHEDULER_ENABLED``.

    The scheduler is stored in ``app.extensions["scheduler"]`` in every
    configuration so the jobs stay reachable (CLI, tests) without the thread.
    """
    scheduler = MaintenanceScheduler(app)
    for job in jobs:
        scheduler.add_job(job)
    app.extensions["scheduler"] = scheduler

    if app.config.get("SCHEDULER_ENABLED", False):
        scheduler.start()
        atexit.register(_shutdown, scheduler)
    return scheduler


def _shutdown(scheduler: MaintenanceScheduler, *_: Any) -> None:
    scheduler.stop(wait=False)
