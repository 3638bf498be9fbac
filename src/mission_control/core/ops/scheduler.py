from __future__ import annotations

import logging
from typing import Any, Callable

from apscheduler.jobstores.base import JobLookupError
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.background import BackgroundScheduler

logger = logging.getLogger("mission_control.ops.scheduler")


class SchedulerService:
    """Background timer host for flushes and retention sweeps.

    In test mode jobs are registered but the scheduler thread never starts.
    """

    def __init__(self, test_mode: bool = False) -> None:
        self.test_mode = test_mode
        self.scheduler = BackgroundScheduler(jobstores={"default": MemoryJobStore()}, timezone="UTC")
        self._started = False

    @property
    def running(self) -> bool:
        return self._started

    def start(self) -> None:
        if self.test_mode or self._started:
            return
        self.scheduler.start()
        self._started = True

    def shutdown(self) -> None:
        if self._started:
            self.scheduler.shutdown(wait=False)
            self._started = False

    def job_ids(self) -> list[str]:
        return [job.id for job in self.scheduler.get_jobs()]

    def add_interval(self, job_id: str, seconds: int, func: Callable[..., Any], kwargs: dict[str, Any] | None = None) -> None:
        self.scheduler.add_job(
            func,
            trigger="interval",
            id=job_id,
            seconds=max(1, int(seconds)),
            kwargs=kwargs or {},
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )

    def add_cron(self, job_id: str, hour: int, minute: int, func: Callable[..., Any], kwargs: dict[str, Any] | None = None) -> None:
        self.scheduler.add_job(
            func,
            trigger="cron",
            id=job_id,
            hour=hour,
            minute=minute,
            kwargs=kwargs or {},
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )

    def remove_job(self, job_id: str) -> bool:
        try:
            self.scheduler.remove_job(job_id)
        except JobLookupError:
            return False
        logger.debug("job_removed", extra={"extra_fields": {"job_id": job_id}})
        return True
