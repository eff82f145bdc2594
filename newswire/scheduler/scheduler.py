"""
Background cache refresh for Newswire.
Keeps common preference keys warm and sweeps expired cache entries.
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional, Sequence

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from newswire.news.aggregator import NewsAggregator
from newswire.news.cache import cache_key
from newswire.utils.logger import get_logger

logger = get_logger(__name__)

REFRESH_JOB_ID = "cache_refresh"
DEFAULT_INTERVAL_MINUTES = 15

COMMON_PREFERENCE_SETS: List[List[str]] = [
    [],
    ["technology"],
    ["business"],
    ["health"],
    ["science"],
    ["sports"],
    ["entertainment"],
    ["general"],
]


class SchedulerState(str, Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class CacheRefreshScheduler:
    """
    Periodic cache refresher.

    On start, one refresh cycle runs immediately and then one every
    `interval_minutes` until stopped. A cycle re-fetches each common
    preference set through the aggregator (which repopulates missing or
    expired keys) and then sweeps expired entries from the cache.
    """

    def __init__(
        self,
        aggregator: NewsAggregator,
        interval_minutes: float = DEFAULT_INTERVAL_MINUTES,
        common_preferences: Optional[Sequence[Sequence[str]]] = None,
        timezone: str = "UTC",
    ):
        """
        Initialize cache refresh scheduler.

        Args:
            aggregator: Aggregator whose cache is kept warm
            interval_minutes: Minutes between refresh cycles
            common_preferences: Preference sets to refresh each cycle
            timezone: Timezone for job scheduling
        """
        if interval_minutes <= 0:
            raise ValueError(f"interval_minutes must be positive, got {interval_minutes}")
        self.aggregator = aggregator
        self.interval_minutes = interval_minutes
        self.common_preferences = [
            list(prefs) for prefs in (
                COMMON_PREFERENCE_SETS if common_preferences is None else common_preferences
            )
        ]
        self.timezone = timezone
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._state = SchedulerState.STOPPED
        self.last_summary: Optional[dict] = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def running(self) -> bool:
        return self._state is SchedulerState.RUNNING

    async def refresh_cache(self) -> dict:
        """
        Run one refresh cycle.

        Failures for one preference set are logged and do not stop the
        remaining sets. The sweep runs after every set has been attempted.

        Returns:
            Summary dictionary
        """
        logger.info("Starting cache update...")
        summary = {
            "started_at": datetime.now().astimezone().isoformat(),
            "refreshed": [],
            "failed": [],
            "swept": 0,
        }

        for preferences in self.common_preferences:
            key = cache_key(preferences)
            try:
                articles = await self.aggregator.fetch_by_preferences(preferences)
                summary["refreshed"].append(key)
                logger.info(f"Cache updated for preferences: {key} ({len(articles)} articles)")
            except Exception as e:
                summary["failed"].append(key)
                logger.error(f"Error updating cache for preferences {key}: {e}")

        summary["swept"] = self.aggregator.cache.sweep_expired()
        self.last_summary = summary
        logger.info(
            f"Cache update completed: {len(summary['refreshed'])} refreshed, "
            f"{len(summary['failed'])} failed, {summary['swept']} swept"
        )
        return summary

    async def _run_job(self) -> None:
        """Scheduled job body; the scheduler must never see an exception."""
        try:
            await self.refresh_cache()
        except Exception as e:
            logger.error(f"Cache refresh job failed: {e}")

    def start(self) -> None:
        """
        Start periodic refreshes. Must be called with a running event loop.
        Calling start while already running does nothing.
        """
        if self.running:
            return

        self._scheduler = AsyncIOScheduler(timezone=self.timezone)
        self._scheduler.add_job(
            self._run_job,
            trigger=IntervalTrigger(minutes=self.interval_minutes, timezone=self.timezone),
            id=REFRESH_JOB_ID,
            name="Refresh common cache keys",
            next_run_time=datetime.now().astimezone(),
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self._scheduler.start()
        self._state = SchedulerState.RUNNING
        logger.info(
            f"Starting cache update service with interval: {self.interval_minutes} minutes"
        )

    def stop(self) -> None:
        """Stop periodic refreshes. Safe to call more than once."""
        if not self.running:
            return

        scheduler = self._scheduler
        self._scheduler = None
        self._state = SchedulerState.STOPPED

        if scheduler is not None:
            if scheduler.get_job(REFRESH_JOB_ID) is not None:
                scheduler.remove_job(REFRESH_JOB_ID)
            if scheduler.running:
                scheduler.shutdown(wait=False)
        logger.info("Cache update service stopped")

    def get_next_run_time(self) -> Optional[datetime]:
        """Get next refresh time, if running."""
        if self._scheduler is None:
            return None
        job = self._scheduler.get_job(REFRESH_JOB_ID)
        return job.next_run_time if job else None

    def get_status(self) -> dict:
        """Get scheduler status."""
        next_run = self.get_next_run_time()
        return {
            "state": self._state.value,
            "interval_minutes": self.interval_minutes,
            "keys": [cache_key(prefs) for prefs in self.common_preferences],
            "next_run": next_run.isoformat() if next_run else None,
            "last_summary": self.last_summary,
        }
