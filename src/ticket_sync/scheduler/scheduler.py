"""
APScheduler-based sync scheduler.

This module provides the SyncScheduler class for running sync passes on an
interval or cron trigger inside one blocking process.
"""

import logging
from typing import Any, Callable

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_MISSED, JobExecutionEvent
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.base import BaseTrigger
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)

CRON_FIELDS = ("minute", "hour", "day", "month", "day_of_week")


def build_cron_trigger(cron_expression: str) -> CronTrigger:
    """
    Build a trigger from a five-field cron expression

    Example cron expressions:
        "*/15 * * * *" - Every 15 minutes
        "5 * * * *"    - Hourly at minute 5
        "0 2 * * *"    - Daily at 02:00

    Raises:
        ValueError: If the expression does not have exactly five fields
    """
    parts = cron_expression.split()
    if len(parts) != len(CRON_FIELDS):
        raise ValueError(
            "Cron expression must have 5 parts: minute hour day month day_of_week"
        )
    return CronTrigger(**dict(zip(CRON_FIELDS, parts)))


class SyncScheduler:
    """
    Scheduler for periodic sync runs

    Every job runs with ``max_instances=1`` and ``coalesce=True``: a run
    that is still going when its next fire time arrives is not overlapped,
    and missed fire times collapse into a single run. Job failures and
    skipped fire times are logged through the scheduler's event listener.
    """

    def __init__(self, scheduler: BlockingScheduler | None = None):
        self.scheduler = scheduler or BlockingScheduler()
        self.scheduler.add_listener(self._on_job_event, EVENT_JOB_ERROR | EVENT_JOB_MISSED)
        self.jobs = []

    def _on_job_event(self, event: JobExecutionEvent) -> None:
        if event.code == EVENT_JOB_MISSED:
            logger.warning(
                f"Job '{event.job_id}' missed its run at {event.scheduled_run_time}"
            )
        else:
            logger.error(f"Job '{event.job_id}' failed: {event.exception}")

    def schedule(self, job_func: Callable, trigger: BaseTrigger, job_id: str, **kwargs) -> None:
        """
        Register ``job_func`` under ``job_id``, replacing any job with that id

        Args:
            job_func: Function to execute
            trigger: APScheduler trigger deciding fire times
            job_id: Unique identifier for the job
            **kwargs: Keyword arguments passed to job_func on every run
        """
        job = self.scheduler.add_job(
            job_func,
            trigger=trigger,
            id=job_id,
            kwargs=kwargs,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.jobs = [j for j in self.jobs if getattr(j, "id", None) != job_id] + [job]
        logger.info(f"Scheduled job '{job_id}' with trigger {trigger}")

    def add_interval_job(
        self,
        job_func: Callable,
        interval_seconds: int,
        job_id: str,
        **kwargs
    ) -> None:
        """Run ``job_func`` every ``interval_seconds`` seconds."""
        if interval_seconds <= 0:
            raise ValueError(f"Interval must be positive, got {interval_seconds}")
        self.schedule(job_func, IntervalTrigger(seconds=interval_seconds), job_id, **kwargs)

    def add_cron_job(
        self,
        job_func: Callable,
        cron_expression: str,
        job_id: str,
        **kwargs
    ) -> None:
        """Run ``job_func`` on a five-field cron schedule."""
        self.schedule(job_func, build_cron_trigger(cron_expression), job_id, **kwargs)

    def remove_job(self, job_id: str) -> None:
        self.scheduler.remove_job(job_id)
        self.jobs = [job for job in self.jobs if job.id != job_id]
        logger.info(f"Removed job '{job_id}'")

    def start(self) -> None:
        """
        Start the scheduler

        Blocks the current thread until interrupted.
        """
        logger.info(f"Starting sync scheduler with {len(self.jobs)} job(s)")

        try:
            self.scheduler.start()
        except (KeyboardInterrupt, SystemExit):
            logger.info("Scheduler interrupted")
            self.stop()

    def stop(self) -> None:
        self.scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")

    def list_jobs(self) -> list[dict[str, Any]]:
        """Describe the registered jobs: id, function name, next run, trigger."""
        return [
            {
                "id": job.id,
                "name": job.name,
                "next_run_time": (
                    job.next_run_time.isoformat()
                    if getattr(job, "next_run_time", None) else None
                ),
                "trigger": str(job.trigger),
            }
            for job in self.scheduler.get_jobs()
        ]
