"""Scheduler service for the daily notification batch."""

import threading
from datetime import datetime
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from concoro.config.models import ScheduleConfig
from concoro.logging import get_logger

logger = get_logger(__name__, component="scheduler")

JOB_ID = "daily-notifications"


class SchedulerService:
    """
    Wraps APScheduler to trigger the daily batch at a fixed wall-clock time.

    Uses BackgroundScheduler to run jobs in a separate thread while
    allowing the main thread to handle signals and coordinate shutdown.
    ``max_instances=1`` only keeps scheduled runs from overlapping; direct
    calls to the pipeline are not serialized.
    """

    def __init__(
        self,
        batch_callable: Callable[[], object],
        schedule: Optional[ScheduleConfig] = None,
        shutdown_event: Optional[threading.Event] = None,
    ):
        """
        Initialize the scheduler service.

        Args:
            batch_callable: Function to call on each run (e.g. pipeline.run_daily_batch)
            schedule: Hour, minute and timezone of the daily run (09:00 Europe/Rome if None)
            shutdown_event: Optional event to set on shutdown for coordination
        """
        self.batch_callable = batch_callable
        self.schedule = schedule or ScheduleConfig()
        self.shutdown_event = shutdown_event
        self.tz = self.schedule.tzinfo()

        self.scheduler = BackgroundScheduler(
            job_defaults={
                "max_instances": 1,
                "coalesce": True,
                "misfire_grace_time": 3600,
            },
            timezone=self.tz,
        )

    def build_trigger(self) -> CronTrigger:
        """Daily cron trigger, equivalent to ``{minute} {hour} * * *``."""
        return CronTrigger(hour=self.schedule.hour, minute=self.schedule.minute, timezone=self.tz)

    def start(self) -> None:
        """
        Start the scheduler and register the daily job.

        Unlike an interval job, nothing runs at startup; the first run is the
        next occurrence of the configured time.
        """
        self.scheduler.add_job(
            func=self.batch_callable,
            trigger=self.build_trigger(),
            id=JOB_ID,
            name="Daily deadline notifications",
            replace_existing=True,
        )

        self.scheduler.start()

        next_run = self.get_next_run_time()
        logger.info(
            f"Scheduler started, daily run at {self.schedule.hour:02d}:{self.schedule.minute:02d} "
            f"{self.schedule.timezone}",
            extra={
                "event": "scheduler.started",
                "cron": f"{self.schedule.minute} {self.schedule.hour} * * *",
                "timezone": self.schedule.timezone,
                "next_run_time": next_run.isoformat() if next_run else None,
            },
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

    def trigger_now(self):
        """
        Run the batch immediately, synchronously in the current thread.

        Returns:
            Whatever the batch callable returns
        """
        logger.info("Triggering immediate batch run", extra={"event": "scheduler.trigger_now"})
        return self.batch_callable()

    def is_running(self) -> bool:
        return self.scheduler.running

    def get_next_run_time(self) -> Optional[datetime]:
        """
        Get the next scheduled run time.

        Returns:
            Next run time as a datetime, or None if not scheduled
        """
        job = self.scheduler.get_job(JOB_ID)
        return job.next_run_time if job else None
