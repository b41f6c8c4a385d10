"""
Background scheduler.
Handles:
- Daily recomputation of stored stats after the day boundary, so today,
  yesterday and weekly counters roll over without a GitHub re-sync
"""

import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from evergreeners import config
from evergreeners.database import SessionLocal
from evergreeners.services.date_service import DateService
from evergreeners.services.sync_service import SyncService

logger = logging.getLogger("evergreeners.scheduler")

scheduler = AsyncIOScheduler()


def run_stats_recompute():
    """Job: recompute stats and ranks for every synced user"""
    db = SessionLocal()
    try:
        service = SyncService(db, DateService())
        count = service.recompute_all()
        logger.info(f"Recomputed stats for {count} users")
    except Exception as e:
        db.rollback()
        logger.error(f"Scheduler Error (Recompute): {e}")
    finally:
        db.close()


def build_trigger(time_str: str = None, timezone: str = None) -> CronTrigger:
    """Daily cron trigger at HH:MM in the configured timezone"""
    date_service = DateService(timezone=timezone)
    try:
        hour, minute = date_service.parse_time(time_str or config.RECOMPUTE_TIME)
    except (ValueError, IndexError, AttributeError):
        logger.warning(f"Invalid recompute time '{time_str}', using 00:05")
        hour, minute = 0, 5
    return CronTrigger(hour=hour, minute=minute, timezone=date_service.get_zone())


def start_scheduler():
    """Start the scheduler"""
    if not config.SCHEDULER_ENABLED:
        logger.info("Scheduler disabled by configuration")
        return

    if not scheduler.running:
        scheduler.add_job(
            run_stats_recompute,
            build_trigger(),
            id='stats_recompute',
            replace_existing=True
        )

        scheduler.start()
        logger.info(">>> APScheduler STARTED <<<")
        logger.info(f"Scheduled jobs: {[job.id for job in scheduler.get_jobs()]}")


def stop_scheduler():
    """Stop the scheduler"""
    if scheduler.running:
        scheduler.shutdown()
