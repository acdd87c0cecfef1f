"""
FeedPress Scheduler
===================

Periodic feed sweeps and daily quota resets.
"""

from .feed_scheduler import FeedScheduler, ScheduledJob, next_daily_run

__all__ = ["FeedScheduler", "ScheduledJob", "next_daily_run"]
