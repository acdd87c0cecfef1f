"""
FeedPress Scheduler
===================

Two periodic triggers, each an independent asyncio task with an explicit
start/stop lifecycle:

- full sweep of every active feed, every ``sweep_interval_minutes``
- daily counter reset at ``daily_reset_hour`` UTC

A failure in one trigger never stops the other. Both are also callable on
demand.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..config.settings import FeedPressSettings
from ..database.models import utc_now
from ..processing.publish_gate import PublishGate
from ..storage.feed_repository import FeedRepository
from ..utils.exceptions import FeedPressError, StorageUnavailableError, ErrorCode, handle_exception
from ..utils.logging import get_logger_for_component, PerformanceLogger


@dataclass
class ScheduledJob:
    """Runtime state of one periodic trigger."""

    name: str
    interval: str
    running: bool = False
    last_run: Optional[datetime] = None
    next_run: Optional[datetime] = None
    last_error: Optional[str] = None
    task: Optional[asyncio.Task] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "running": self.running,
            "interval": self.interval,
            "lastRun": self.last_run.isoformat() if self.last_run else None,
            "nextRun": self.next_run.isoformat() if self.next_run else None,
            "lastError": self.last_error,
        }


def next_daily_run(now: datetime, hour: int) -> datetime:
    """Next occurrence of ``hour``:00 UTC strictly after ``now``."""
    candidate = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


class FeedScheduler:
    """Owns the sweep and daily-reset triggers."""

    SWEEP_JOB = "feedSweep"
    RESET_JOB = "dailyReset"

    def __init__(
        self,
        settings: FeedPressSettings,
        feed_repository: FeedRepository,
        publish_gate: PublishGate,
        clock: Callable[[], datetime] = utc_now,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.settings = settings
        self.feed_repository = feed_repository
        self.publish_gate = publish_gate
        self._clock = clock
        self._sleep = sleep
        self.logger = get_logger_for_component("scheduler")

        interval = settings.scheduler.sweep_interval_minutes
        self.jobs: Dict[str, ScheduledJob] = {
            self.SWEEP_JOB: ScheduledJob(self.SWEEP_JOB, f"every {interval} minutes"),
            self.RESET_JOB: ScheduledJob(
                self.RESET_JOB, f"daily at {settings.scheduler.daily_reset_hour:02d}:00 UTC"
            ),
        }

    # On-demand operations

    async def run_sweep(self) -> Dict[str, Any]:
        """Process every active feed in order.

        A feed-level failure is written to that feed's log and the sweep
        moves on.

        Raises:
            StorageUnavailableError: feed storage cannot be read or written
        """
        feeds = self.feed_repository.get_active_feeds()
        if not feeds:
            self.logger.info("No active feeds to process")

        results: List[Dict[str, Any]] = []
        with PerformanceLogger(self.logger, "feed sweep", feed_count=len(feeds)):
            for feed in feeds:
                results.append(await self._sweep_one(feed))

        summary = {
            "feeds": len(feeds),
            "processed": sum(r.get("processed", 0) for r in results),
            "published": sum(r.get("published", 0) for r in results),
            "failedFeeds": sum(1 for r in results if r.get("error")),
            "results": results,
        }
        self.logger.info(
            f"Sweep completed: {summary['processed']} processed, {summary['published']} published, "
            f"{summary['failedFeeds']} feeds failed"
        )
        return summary

    async def sweep_feed(self, feed_id: int) -> Dict[str, Any]:
        """Process a single feed now, active or not.

        Raises:
            FeedPressError: the feed does not exist
        """
        feed = self.feed_repository.get_feed_by_id(feed_id)
        if feed is None:
            raise FeedPressError(f"Feed {feed_id} not found", error_code=ErrorCode.FEED_NOT_FOUND)
        return await self._sweep_one(feed)

    async def _sweep_one(self, feed) -> Dict[str, Any]:
        try:
            result = await self.publish_gate.process_feed(feed)
            return result.to_dict()
        except StorageUnavailableError:
            raise
        except Exception as e:
            message = getattr(e, "message", None) or str(e)
            self.logger.error(f"Error processing feed {feed.name}: {message}")
            self.feed_repository.add_log_entry(feed.id, f"Processing error: {message}")
            return {"feedId": feed.id, "feedName": feed.name, "error": message}

    def run_daily_reset(self) -> int:
        """Zero the daily counter of every active feed whose day rolled over.

        Returns:
            Number of feeds reset
        """
        now = self._clock()
        reset = 0
        for feed in self.feed_repository.get_active_feeds():
            if feed.reset_daily_count_if_needed(now):
                self.feed_repository.save_runtime_state(feed)
                reset += 1
        self.logger.info(f"Daily reset completed for {reset} feeds")
        return reset

    # Periodic triggers

    @property
    def is_running(self) -> bool:
        return any(job.task and not job.task.done() for job in self.jobs.values())

    def start(self) -> None:
        if self.is_running:
            self.logger.warning("Scheduler already started")
            return

        loop = asyncio.get_running_loop()
        self.jobs[self.SWEEP_JOB].task = loop.create_task(self._sweep_loop(), name=self.SWEEP_JOB)
        self.jobs[self.RESET_JOB].task = loop.create_task(self._reset_loop(), name=self.RESET_JOB)
        self.logger.info(
            "Scheduler started",
            extra={"jobs": [job.interval for job in self.jobs.values()]},
        )

    async def stop(self) -> None:
        tasks = [job.task for job in self.jobs.values() if job.task and not job.task.done()]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        for job in self.jobs.values():
            job.task = None
            job.running = False
            job.next_run = None
        self.logger.info("Scheduler stopped")

    async def _sweep_loop(self) -> None:
        job = self.jobs[self.SWEEP_JOB]
        interval = timedelta(minutes=self.settings.scheduler.sweep_interval_minutes)
        while True:
            job.next_run = self._clock() + interval
            await self._sleep(interval.total_seconds())
            await self._run_job(job, self.run_sweep)

    async def _reset_loop(self) -> None:
        job = self.jobs[self.RESET_JOB]
        while True:
            now = self._clock()
            job.next_run = next_daily_run(now, self.settings.scheduler.daily_reset_hour)
            await self._sleep((job.next_run - now).total_seconds())
            await self._run_job(job, self.run_daily_reset)

    async def _run_job(self, job: ScheduledJob, operation: Callable) -> None:
        job.running = True
        try:
            outcome = operation()
            if asyncio.iscoroutine(outcome):
                await outcome
            job.last_error = None
        except asyncio.CancelledError:
            raise
        except Exception as e:
            job.last_error = handle_exception(e, self.logger, job.name).message
        finally:
            job.running = False
            job.last_run = self._clock()

    def get_job_status(self) -> List[Dict[str, Any]]:
        return [job.to_dict() for job in self.jobs.values()]
