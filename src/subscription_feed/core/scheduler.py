"""
Task scheduler for automated feed refreshes.

Uses APScheduler to run periodic and on-demand aggregation runs in the background.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from apscheduler.events import EVENT_JOB_ERROR, JobEvent
from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from subscription_feed.config import get_config
from subscription_feed.core.aggregator import FeedAggregator
from subscription_feed.logger import get_logger
from subscription_feed.models import FeedInfo, Subscription

logger = get_logger(__name__)

REFRESH_JOB_ID = "feed_refresh"
IMMEDIATE_REFRESH_JOB_ID = "feed_refresh_now"


@dataclass
class JobStatus:
    """Status of a scheduled job."""

    job_id: str
    name: str
    next_run_time: Optional[datetime]
    is_active: bool
    trigger: str
    last_result: Optional[FeedInfo] = None
    last_error: Optional[str] = None


@dataclass
class SchedulerStats:
    """Statistics for scheduler operations."""

    total_jobs: int = 0
    active_jobs: int = 0
    total_executions: int = 0
    successful_executions: int = 0
    failed_executions: int = 0
    last_execution_time: Optional[datetime] = None
    uptime_seconds: float = 0.0


class FeedRefreshScheduler:
    """Scheduler running aggregation refreshes in background threads."""

    def __init__(
        self,
        aggregator: FeedAggregator,
        max_workers: int = 2,
        timezone: Optional[str] = None,
    ):
        """Initialize the refresh scheduler.

        Args:
            aggregator: Aggregator whose runs are scheduled
            max_workers: Maximum number of concurrent worker threads
            timezone: Scheduler timezone (default from config)
        """
        config = get_config()

        self.aggregator = aggregator
        self.max_workers = max_workers
        self.refresh_interval_minutes = config.scheduler.refresh_interval_minutes

        self.scheduler = BackgroundScheduler(
            executors={"default": ThreadPoolExecutor(max_workers=max_workers)},
            job_defaults={
                "coalesce": config.scheduler.coalesce,
                "misfire_grace_time": config.scheduler.misfire_grace_time,
                "max_instances": 1,
            },
            timezone=timezone or config.scheduler.timezone,
        )

        self.stats = SchedulerStats()
        self.start_time: Optional[datetime] = None

        self._job_results: dict[str, FeedInfo] = {}
        self._job_errors: dict[str, str] = {}

        self.scheduler.add_listener(self._on_job_error, EVENT_JOB_ERROR)

    def start(self) -> None:
        """Start the scheduler."""
        if not self.scheduler.running:
            self.scheduler.start()
            self.start_time = datetime.now()
            logger.info(f"Scheduler started with {self.max_workers} workers")
        else:
            logger.warning("Scheduler is already running")

    def stop(self, wait: bool = True) -> None:
        """Stop the scheduler.

        Args:
            wait: Whether to wait for running jobs to complete
        """
        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)
            if self.start_time:
                self.stats.uptime_seconds = (datetime.now() - self.start_time).total_seconds()
            logger.info("Scheduler stopped")
        else:
            logger.warning("Scheduler is not running")

    def is_running(self) -> bool:
        return self.scheduler.running

    def add_refresh_job(
        self,
        interval_minutes: Optional[int] = None,
        job_id: str = REFRESH_JOB_ID,
    ) -> str:
        """Add a periodic refresh of all subscriptions.

        Args:
            interval_minutes: Refresh interval in minutes (default from config)
            job_id: Job ID

        Returns:
            Job ID
        """
        interval = interval_minutes or self.refresh_interval_minutes

        self.scheduler.add_job(
            func=self._refresh_wrapper,
            trigger=IntervalTrigger(minutes=interval),
            id=job_id,
            name="Refresh Feed",
            args=[job_id],
            replace_existing=True,
        )

        logger.info(f"Added refresh job (every {interval} minutes)")
        return job_id

    def trigger_refresh(
        self,
        subscriptions: Optional[Sequence[Subscription]] = None,
        job_id: str = IMMEDIATE_REFRESH_JOB_ID,
    ) -> str:
        """Run one refresh as soon as a worker is free.

        A pending immediate refresh is replaced, so bursts of requests collapse
        into one run. A refresh requested while one is executing runs alongside
        it, up to one per worker.

        Args:
            subscriptions: Subscriptions to aggregate; None loads them from the registry
            job_id: Job ID

        Returns:
            Job ID
        """
        self.scheduler.add_job(
            func=self._refresh_wrapper,
            id=job_id,
            name="Refresh Feed Now",
            args=[job_id, list(subscriptions) if subscriptions is not None else None],
            max_instances=self.max_workers,
            replace_existing=True,
        )

        logger.debug("Scheduled immediate feed refresh")
        return job_id

    def remove_job(self, job_id: str) -> bool:
        """Remove a scheduled job.

        Args:
            job_id: Job ID to remove

        Returns:
            True if job was removed
        """
        try:
            self.scheduler.remove_job(job_id)
            logger.info(f"Removed job {job_id}")
            return True
        except JobLookupError:
            logger.warning(f"Job {job_id} not found")
            return False

    def get_job_status(self, job_id: str) -> Optional[JobStatus]:
        """Get status of a specific job.

        Args:
            job_id: Job ID

        Returns:
            JobStatus or None if job not found
        """
        job = self.scheduler.get_job(job_id)
        if job is None:
            return None

        next_run_time = getattr(job, "next_run_time", None)
        return JobStatus(
            job_id=job.id,
            name=job.name,
            next_run_time=next_run_time,
            is_active=next_run_time is not None,
            trigger=str(job.trigger),
            last_result=self._job_results.get(job_id),
            last_error=self._job_errors.get(job_id),
        )

    def get_last_error(self, job_id: str) -> Optional[str]:
        return self._job_errors.get(job_id)

    def get_stats(self) -> SchedulerStats:
        """Get scheduler statistics.

        Returns:
            SchedulerStats with current statistics
        """
        jobs = self.scheduler.get_jobs()
        self.stats.total_jobs = len(jobs)
        self.stats.active_jobs = len([j for j in jobs if getattr(j, "next_run_time", None) is not None])

        if self.start_time and self.scheduler.running:
            self.stats.uptime_seconds = (datetime.now() - self.start_time).total_seconds()

        return self.stats

    def _refresh_wrapper(
        self,
        job_id: str,
        subscriptions: Optional[list[Subscription]] = None,
    ) -> Optional[FeedInfo]:
        """Run one refresh and record its outcome.

        Args:
            job_id: Job the run belongs to
            subscriptions: Subscriptions to aggregate; None loads them from the registry

        Returns:
            The new FeedInfo, or None if the refresh failed
        """
        self.stats.total_executions += 1
        self.stats.last_execution_time = datetime.now()

        try:
            if subscriptions is None:
                feed_info = self.aggregator.refresh()
            else:
                feed_info = self.aggregator.run(subscriptions)
        except Exception as e:
            logger.exception(f"Error in job {job_id}: {e}")
            self.stats.failed_executions += 1
            self._job_errors[job_id] = f"{type(e).__name__}: {str(e)}"
            return None

        self.stats.successful_executions += 1
        self._job_results[job_id] = feed_info
        self._job_errors.pop(job_id, None)
        return feed_info

    def _on_job_error(self, event: JobEvent) -> None:
        """Handle job error event.

        Args:
            event: Job event
        """
        job_id = event.job_id
        exception = event.exception
        if job_id and exception:
            error_msg = f"{type(exception).__name__}: {str(exception)}"
            self._job_errors[job_id] = error_msg
            logger.error(f"Job {job_id} failed: {error_msg}")

