"""
Background scheduler for the recurrence processor.

Runs one recurrence tick on a cron schedule using APScheduler, in-process.
"""

from __future__ import annotations

from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from recurrence_engine.core.config import get_settings
from recurrence_engine.core.logger import logger
from recurrence_engine.services.recurrence_coordinator import RecurrenceCoordinator

RECURRENCE_JOB_ID = "recurrence_processor"


class BackgroundScheduler:
    """
    Background scheduler for periodic jobs.

    Features:
    - Recurrence processing on RECURRENCE_PROCESSOR_CRON (every minute by default)
    - Overlapping ticks in this process are collapsed (max_instances=1, coalesce)
    - Disabled under the test environment or RECURRENCE_PROCESSOR_ENABLED=false
    """

    def __init__(self, coordinator: RecurrenceCoordinator):
        self._coordinator = coordinator
        self._scheduler: Optional[AsyncIOScheduler] = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    async def start(self):
        """Start the scheduler."""
        settings = get_settings()

        # Only run scheduler in non-test environments
        if settings.is_test:
            logger.info("Background scheduler disabled in test environment")
            return
        if not settings.RECURRENCE_PROCESSOR_ENABLED:
            logger.info("Recurrence processor disabled by configuration")
            return

        self._scheduler = AsyncIOScheduler(timezone=settings.RECURRENCE_TIMEZONE)
        self._scheduler.add_job(
            self._run_recurrence_processing,
            CronTrigger.from_crontab(
                settings.RECURRENCE_PROCESSOR_CRON, timezone=settings.RECURRENCE_TIMEZONE
            ),
            id=RECURRENCE_JOB_ID,
            name="Recurrence Processing",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        logger.info(
            f"Background scheduler started: recurrence processing "
            f"'{settings.RECURRENCE_PROCESSOR_CRON}' ({settings.RECURRENCE_TIMEZONE})"
        )

    async def stop(self):
        """Stop the scheduler."""
        if self._scheduler:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None
            logger.info("Background scheduler stopped")

    async def _run_recurrence_processing(self) -> int:
        """Run one recurrence tick; errors are logged, never raised into the scheduler."""
        try:
            generated = await self._coordinator.process_pending_recurrences()
        except Exception as e:
            logger.error(f"Recurrence processing failed: {e}")
            return 0
        return generated


# Global scheduler instance
_scheduler: Optional[BackgroundScheduler] = None


async def get_background_scheduler() -> BackgroundScheduler:
    """Get the global background scheduler instance."""
    global _scheduler
    if _scheduler is None:
        from recurrence_engine.api.deps import get_recurrence_coordinator

        _scheduler = BackgroundScheduler(coordinator=get_recurrence_coordinator())
    return _scheduler


async def start_background_scheduler():
    """Start the global background scheduler."""
    scheduler = await get_background_scheduler()
    await scheduler.start()


async def stop_background_scheduler():
    """Stop the global background scheduler."""
    global _scheduler
    if _scheduler:
        await _scheduler.stop()
        _scheduler = None
