"""
Scheduler for Watch Folder Agent.
Triggers the reconcile cycle on a fixed interval.
"""

from typing import Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .logger import get_logger

logger = get_logger(__name__)

SYNC_JOB_ID = 'folder_sync'


class CycleScheduler:
    """Runs the sync job on an interval, one instance at a time."""

    def __init__(self):
        """Initialize scheduler."""
        self.scheduler = BackgroundScheduler()
        self.is_running = False

    def add_sync_job(self, cycle_func: Callable, interval_ms: int = 10000) -> None:
        """Schedule the periodic reconcile cycle.

        A tick that fires while the previous cycle is still running is
        skipped (max_instances=1); missed ticks collapse into one.

        Args:
            cycle_func: Function running one cycle
            interval_ms: Interval in milliseconds
        """
        self.scheduler.add_job(
            func=cycle_func,
            trigger=IntervalTrigger(seconds=interval_ms / 1000.0),
            id=SYNC_JOB_ID,
            name='Watch Folder Sync',
            max_instances=1,
            coalesce=True,
            replace_existing=True
        )

        logger.info(f"Scheduled folder sync every {interval_ms} ms")

    def start(self) -> None:
        """Start the scheduler."""
        if self.is_running:
            logger.warning("Scheduler already running")
            return

        logger.info("Starting scheduler")
        self.scheduler.start()
        self.is_running = True

        for job in self.scheduler.get_jobs():
            logger.debug(f"  - {job.name} (next run: {job.next_run_time})")

    def stop(self) -> None:
        """Stop the scheduler, waiting for a running cycle to finish."""
        if not self.is_running:
            return

        logger.info("Stopping scheduler")
        self.scheduler.shutdown(wait=True)
        self.is_running = False

        logger.info("Scheduler stopped")
