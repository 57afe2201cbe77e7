"""Scheduler service for periodic maintenance jobs."""

import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from skillbridge.logging import get_logger

logger = get_logger(__name__, component="scheduler")


@dataclass
class ScheduledJob:
    """A named callable run every ``interval_seconds``."""

    job_id: str
    name: str
    func: Callable[[], object]
    interval_seconds: int
    run_immediately: bool = False


class SchedulerService:
    """
    Wraps APScheduler to run maintenance jobs at their configured intervals.

    Uses BackgroundScheduler so jobs run in worker threads while the main
    thread serves HTTP requests and coordinates shutdown.
    """

    def __init__(self, shutdown_event: Optional[threading.Event] = None):
        self.shutdown_event = shutdown_event
        self._jobs: Dict[str, ScheduledJob] = {}

        self.scheduler = BackgroundScheduler(
            job_defaults={
                "max_instances": 1,  # Prevent overlapping runs
                "coalesce": True,  # If a run is delayed, only execute once
            },
            timezone=timezone.utc,
        )

    def add_job(self, job: ScheduledJob) -> None:
        """Register a job. Re-registering an id replaces the previous job."""
        self._jobs[job.job_id] = job
        if self.scheduler.running:
            self._schedule(job)

    @property
    def job_ids(self) -> List[str]:
        return list(self._jobs)

    def start(self) -> None:
        """Schedule every registered job and start the worker threads."""
        for job in self._jobs.values():
            self._schedule(job)

        self.scheduler.start()

        logger.info(
            f"Scheduler started with {len(self._jobs)} jobs",
            extra={
                "event": "scheduler.started",
                "jobs": {job.job_id: job.interval_seconds for job in self._jobs.values()},
            },
        )

    def _schedule(self, job: ScheduledJob) -> None:
        trigger = IntervalTrigger(seconds=job.interval_seconds, timezone=timezone.utc)
        kwargs = {}
        if job.run_immediately:
            kwargs["next_run_time"] = datetime.now(timezone.utc)
        self.scheduler.add_job(
            func=job.func,
            trigger=trigger,
            id=job.job_id,
            name=job.name,
            replace_existing=True,
            misfire_grace_time=job.interval_seconds,
            **kwargs,
        )

    def shutdown(self, wait: bool = False) -> None:
        """
        Shutdown the scheduler gracefully.

        Args:
            wait: If True, wait for running jobs to complete before returning
        """
        logger.info(
            "Shutting down scheduler",
            extra={"event": "scheduler.stopping", "wait_for_jobs": wait},
        )

        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)

        if self.shutdown_event:
            self.shutdown_event.set()

        logger.info("Scheduler shutdown complete", extra={"event": "scheduler.stopped"})

    def trigger_now(self, job_id: str):
        """
        Run a registered job synchronously in the current thread.

        Raises:
            KeyError: If no job has that id
        """
        job = self._jobs[job_id]
        logger.info(
            f"Triggering immediate run of {job.name}",
            extra={"event": "scheduler.trigger_now", "job_id": job_id},
        )
        return job.func()

    def is_running(self) -> bool:
        return self.scheduler.running

    def get_next_run_time(self, job_id: str) -> Optional[datetime]:
        """Next scheduled run of a job, or None if it is not scheduled."""
        scheduled = self.scheduler.get_job(job_id)
        return scheduled.next_run_time if scheduled else None
