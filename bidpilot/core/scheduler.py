# bidpilot/core/scheduler.py
import asyncio
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from bidpilot.core.settings import settings
from bidpilot.ingest.runner import build_activity_logger, build_scheduler

logger = logging.getLogger(__name__)


# --------------------------------------------------------------------------------------
# Jobs
# --------------------------------------------------------------------------------------

async def job_scrape():
    """
    Run one scheduled scrape cycle over every enabled source.
    Same cycle as python -m bidpilot.ingest.runner, with trigger "scheduled".
    """
    logger.info("[job_scrape] starting")
    outcomes = await build_scheduler().run_scheduled()
    added = sum(o.added for o in outcomes)
    errors = sum(1 for o in outcomes if o.error)
    logger.info(f"[job_scrape] done. added={added} errors={errors}")


async def job_cleanup_logs():
    """Drop one batch of scrape log entries past retention."""
    deleted = await build_activity_logger().cleanup()
    logger.info(f"[job_cleanup_logs] deleted={deleted}")


# --------------------------------------------------------------------------------------
# Scheduler setup
# --------------------------------------------------------------------------------------

scheduler = AsyncIOScheduler(timezone=settings.TIMEZONE)


def start_scheduler():
    """
    Register recurring jobs and start the scheduler.
    - Scrape every SCRAPE_INTERVAL_MINUTES (never two cycles at once)
    - Scrape log retention every hour
    """
    scheduler.add_job(
        job_scrape,
        IntervalTrigger(minutes=settings.SCRAPE_INTERVAL_MINUTES),
        id="scrape_sources",
        name="scrape_sources",
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )

    scheduler.add_job(
        job_cleanup_logs,
        IntervalTrigger(hours=1),
        id="cleanup_scrape_logs",
        name="cleanup_scrape_logs",
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )

    scheduler.start()
    logger.info(f"[scheduler] started (scrape every {settings.SCRAPE_INTERVAL_MINUTES} min).")


# --------------------------------------------------------------------------------------
# Standalone runner mode (optional for debugging)
# --------------------------------------------------------------------------------------

if __name__ == "__main__":
    from bidpilot.core.db import create_tables, engine
    from bidpilot.core.logging import configure_logging

    async def runner():
        configure_logging(settings.LOG_LEVEL)
        await create_tables(engine)
        start_scheduler()
        logger.info("[main] scheduler running. Ctrl+C to stop.")
        # keep the loop alive forever
        while True:
            await asyncio.sleep(3600)

    asyncio.run(runner())
