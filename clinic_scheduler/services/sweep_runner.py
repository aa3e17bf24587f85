"""Background job that runs the reminder sweep on an interval."""

import asyncio
from collections.abc import Awaitable, Callable

import redis
import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from clinic_scheduler.config import settings
from clinic_scheduler.core.exceptions import SweepInProgressException
from clinic_scheduler.core.redis_client import SweepLock, get_redis_client
from clinic_scheduler.schemas.notifications import SweepSummary

logger = structlog.get_logger(__name__)

SWEEP_JOB_ID = "reminder_sweep"
SWEEP_LOCK_NAME = "locks:reminder_sweep"


class ReminderSweepRunner:
    """Runs one sweep per interval; a Redis lock keeps workers from overlapping."""

    def __init__(
        self,
        sweep: Callable[[], Awaitable[SweepSummary]],
        interval_seconds: int | None = None,
        lock_timeout_seconds: int | None = None,
        redis_client: redis.Redis | None = None,
        enabled: bool | None = None,
    ):
        """
        Initialize runner.

        Args:
            sweep: Coroutine factory running a single sweep
            interval_seconds: Seconds between sweeps
            lock_timeout_seconds: Expiry of the cross-worker lock
            redis_client: Redis client for the lock
            enabled: Whether the job is started at all
        """
        self.sweep = sweep
        self.interval_seconds = interval_seconds or settings.reminder_sweep_interval_seconds
        self.lock_timeout_seconds = (
            lock_timeout_seconds or settings.reminder_sweep_lock_timeout_seconds
        )
        self.redis_client = redis_client
        self.enabled = settings.reminder_sweep_enabled if enabled is None else enabled
        self._scheduler: AsyncIOScheduler | None = None

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None

    def start(self) -> None:
        """Start the interval job."""
        if not self.enabled:
            logger.info("reminder_sweep_disabled")
            return

        if self._scheduler is not None:
            logger.warning("reminder_sweep_already_running")
            return

        scheduler = AsyncIOScheduler()
        scheduler.add_job(
            self.run_once,
            IntervalTrigger(seconds=self.interval_seconds),
            id=SWEEP_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            name="Reminder sweep",
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info("reminder_sweep_started", interval_seconds=self.interval_seconds)

    def stop(self) -> None:
        """Stop the interval job."""
        if self._scheduler is not None:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None
            logger.info("reminder_sweep_stopped")

    async def run_exclusive(self) -> SweepSummary:
        """
        Run a single sweep while holding the cross-worker lock.

        Returns:
            Sweep summary

        Raises:
            SweepInProgressException: If another worker holds the lock or
                Redis cannot be reached
        """
        lock = SweepLock(
            self.redis_client or get_redis_client(),
            SWEEP_LOCK_NAME,
            self.lock_timeout_seconds,
        )
        # The Redis client is synchronous
        if not await asyncio.to_thread(lock.acquire):
            raise SweepInProgressException()

        try:
            return await self.sweep()
        finally:
            await asyncio.to_thread(lock.release)

    async def run_once(self) -> SweepSummary | None:
        """
        Run a single sweep from the interval job.

        Returns:
            Sweep summary, or None when the sweep was skipped or crashed
        """
        try:
            return await self.run_exclusive()
        except SweepInProgressException:
            logger.info("reminder_sweep_skipped", reason="lock_held")
            return None
        except Exception as e:
            logger.error("reminder_sweep_crashed", error=str(e), exc_info=e)
            return None
