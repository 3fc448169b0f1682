"""
Scheduler service for recurring scan cycles.

Uses APScheduler's asyncio scheduler so jobs run on the same event loop as
the scan engine.
"""

from datetime import datetime
from typing import Any, Callable, Optional

import pytz
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from polyarb.core.config import Settings, get_settings
from polyarb.core.logging import get_logger

logger = get_logger("scheduler")


class SchedulerService:
    """
    Scheduler service for periodic job execution.

    Interval jobs never overlap: a run that is still going when the next
    one is due causes the next one to be skipped.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._jobs: dict[str, str] = {}  # name -> job_id

    @property
    def scheduler(self) -> AsyncIOScheduler:
        """Lazy-initialize scheduler."""
        if self._scheduler is None:
            self._scheduler = AsyncIOScheduler(timezone=self.settings.timezone)
        return self._scheduler

    def add_interval_job(
        self,
        name: str,
        func: Callable,
        seconds: float,
        run_immediately: bool = True,
        args: Optional[tuple] = None,
        kwargs: Optional[dict] = None,
    ) -> str:
        """
        Add a job that runs at fixed intervals.

        Args:
            name: Job name
            func: Function or coroutine function to execute
            seconds: Interval in seconds
            run_immediately: Fire once as soon as the scheduler starts
            args: Positional arguments
            kwargs: Keyword arguments

        Returns:
            Job ID
        """
        job_options: dict[str, Any] = {}
        if run_immediately:
            job_options["next_run_time"] = datetime.now(pytz.timezone(self.settings.timezone))

        job = self.scheduler.add_job(
            func,
            "interval",
            seconds=seconds,
            args=args or (),
            kwargs=kwargs or {},
            id=name,
            name=name,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            **job_options,
        )

        self._jobs[name] = job.id
        logger.info(f"Added interval job: {name} every {seconds:g} seconds")
        return job.id

    def remove_job(self, name: str) -> bool:
        """
        Remove a scheduled job.

        Args:
            name: Job name

        Returns:
            True if removed
        """
        if name in self._jobs:
            self.scheduler.remove_job(self._jobs[name])
            del self._jobs[name]
            logger.info(f"Removed job: {name}")
            return True
        return False

    def start(self) -> None:
        """Start the scheduler. Must be called with a running event loop."""
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("Scheduler started")

    def stop(self) -> None:
        """Stop the scheduler."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")

    def get_jobs(self) -> list[dict[str, Any]]:
        """Get list of scheduled jobs."""
        jobs = []
        for job in self.scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run": next_run.isoformat() if next_run else None,
            })
        return jobs


def create_scheduler_service(settings: Optional[Settings] = None) -> SchedulerService:
    """Create scheduler service."""
    return SchedulerService(settings=settings)
