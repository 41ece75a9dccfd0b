"""
APScheduler — daily catalog refresh.
"""
import logging
import os

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from app.db.mongo_connector import get_books_collection
from app.services.crawl.pipeline import run_refresh
from app.services.errors import CatalogError, RefreshInProgress

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


def scheduler_enabled() -> bool:
    return (os.getenv("SCHEDULER_ENABLED") or "true").strip().lower() in ("1", "true", "yes")


def build_trigger() -> CronTrigger:
    return CronTrigger(
        hour=int(os.getenv("REFRESH_CRON_HOUR") or 2),
        minute=int(os.getenv("REFRESH_CRON_MINUTE") or 0),
        timezone=os.getenv("REFRESH_TIMEZONE") or "Asia/Kolkata",
    )


def init_scheduler():
    trigger = build_trigger()
    scheduler.add_job(
        daily_refresh,
        trigger,
        id="daily_refresh",
        replace_existing=True,
    )
    scheduler.start()
    logger.info("Scheduler started: daily catalog refresh (%s)", trigger)


async def daily_refresh():
    logger.info("Scheduled catalog refresh starting")
    try:
        result = await run_refresh(get_books_collection())
        logger.info(
            "Scheduled refresh finished: %d books, %d pages (%s)",
            len(result.items), result.pages_crawled, result.state.value,
        )
    except RefreshInProgress:
        logger.warning("Refresh already running, skipping scheduled run")
    except CatalogError:
        logger.exception("Scheduled refresh failed")


def shutdown_scheduler():
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
