"""
APScheduler-based comparison scheduler.

This module provides the ComparisonScheduler class for scheduling
periodic comparison runs using interval or cron triggers.
"""

import logging
from collections.abc import Callable
from typing import Any

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)


class ComparisonScheduler:
    """
    Scheduler for recurring comparison runs

    Jobs never overlap: a run that is still going when the next fire time
    arrives makes APScheduler skip that fire time.
    """

    def __init__(self, scheduler: BlockingScheduler | None = None):
        self.scheduler = scheduler or BlockingScheduler()
        self.jobs = []

    def _add_job(self, job_func: Callable, trigger: Any, job_id: str, kwargs: dict) -> None:
        job = self.scheduler.add_job(
            job_func,
            trigger=trigger,
            id=job_id,
            kwargs=kwargs,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.jobs.append(job)

    def add_interval_job(
        self,
        job_func: Callable,
        interval_seconds: int,
        job_id: str,
        **kwargs
    ) -> None:
        """
        Add a job that runs at fixed intervals

        Args:
            job_func: Function to execute
            interval_seconds: Interval in seconds
            job_id: Unique identifier for the job
            **kwargs: Additional arguments to pass to job_func

        Raises:
            ValueError: If the interval is not positive
        """
        if interval_seconds < 1:
            raise ValueError(f"Interval must be at least 1 second, got {interval_seconds}")

        self._add_job(job_func, IntervalTrigger(seconds=interval_seconds), job_id, kwargs)
        logger.info(f"Added interval job '{job_id}' with {interval_seconds}s interval")

    def add_cron_job(
        self,
        job_func: Callable,
        cron_expression: str,
        job_id: str,
        **kwargs
    ) -> None:
        """
        Add a job that runs on a cron schedule

        Args:
            job_func: Function to execute
            cron_expression: Cron expression (e.g., "0 2 * * *" for daily at 02:00)
            job_id: Unique identifier for the job
            **kwargs: Additional arguments to pass to job_func

        Raises:
            ValueError: If the expression does not have 5 fields
        """
        parts = cron_expression.split()

        if len(parts) != 5:
            raise ValueError(
                "Cron expression must have 5 parts: minute hour day month day_of_week"
            )

        minute, hour, day, month, day_of_week = parts

        trigger = CronTrigger(
            minute=minute,
            hour=hour,
            day=day,
            month=month,
            day_of_week=day_of_week
        )

        self._add_job(job_func, trigger, job_id, kwargs)
        logger.info(f"Added cron job '{job_id}' with schedule '{cron_expression}'")

    def start(self) -> None:
        """
        Start the scheduler

        Blocks the current thread until interrupted.
        """
        logger.info(f"Starting comparison scheduler with {len(self.jobs)} job(s)")

        try:
            self.scheduler.start()
        except (KeyboardInterrupt, SystemExit):
            logger.info("Scheduler stopped by user")
            self.stop()

    def stop(self) -> None:
        """Stop the scheduler"""
        if self.scheduler.running:
            self.scheduler.shutdown()
        logger.info("Scheduler stopped")

    def list_jobs(self) -> list[dict[str, Any]]:
        """
        List all scheduled jobs

        Returns:
            List of job information dictionaries
        """
        job_list = []

        for job in self.scheduler.get_jobs():
            next_run_time = getattr(job, "next_run_time", None)
            job_list.append({
                "id": job.id,
                "name": job.name,
                "next_run_time": next_run_time.isoformat() if next_run_time else None,
                "trigger": str(job.trigger)
            })

        return job_list
