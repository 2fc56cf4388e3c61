# bidpilot/ingest/runner.py
import asyncio
import logging
from typing import List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncEngine

from bidpilot.core.clock import system_clock
from bidpilot.ingest.activity import ActivityLogger, ScrapeLogStore
from bidpilot.ingest.base import (
    ACTION_COMPLETE,
    ACTION_START,
    SCHEDULER_SOURCE,
    SourceOutcome,
)
from bidpilot.ingest.http import FeedFetcher
from bidpilot.ingest.registry import SourceRegistration, build_registry
from bidpilot.ingest.scraper import SourceScraper
from bidpilot.ingest.store import TenderStore

logger = logging.getLogger(__name__)

TRIGGER_SCHEDULED = "scheduled"
TRIGGER_MANUAL = "manual"


class ScrapeScheduler:
    """
    Runs every enabled source once, strictly in registry order.

    A failing source is recorded in its outcome and the cycle moves on; one
    broken feed never stops the others.
    """

    def __init__(self, registry: Sequence[SourceRegistration], activity: ActivityLogger):
        self.registry = list(registry)
        self.activity = activity

    @property
    def enabled(self) -> List[SourceRegistration]:
        return [r for r in self.registry if r.enabled]

    async def run_cycle(self, trigger: str = TRIGGER_SCHEDULED) -> List[SourceOutcome]:
        sources = self.enabled
        await self.activity.log(
            SCHEDULER_SOURCE,
            ACTION_START,
            f"Starting {trigger} scrape of {len(sources)} sources",
            {"count": len(sources), "trigger": trigger},
        )

        outcomes: List[SourceOutcome] = []
        for reg in sources:
            try:
                result = await reg.scrape()
                outcome = SourceOutcome(
                    source=reg.id,
                    added=result.added,
                    skipped=result.skipped,
                    scraped=result.scraped,
                )
                logger.info(f"{reg.id}: {result.added} added, {result.skipped} skipped")
            except Exception as e:
                logger.exception(f"{reg.id}: scrape failed")
                outcome = SourceOutcome(source=reg.id, error=str(e))
            outcomes.append(outcome)

        added = sum(o.added for o in outcomes)
        skipped = sum(o.skipped for o in outcomes)
        errors = sum(1 for o in outcomes if o.error is not None)
        await self.activity.log(
            SCHEDULER_SOURCE,
            ACTION_COMPLETE,
            f"Scrape cycle complete: {added} added, {skipped} skipped, {errors} errors",
            {"added": added, "skipped": skipped, "errors": errors, "count": len(outcomes)},
        )
        return outcomes

    async def run_scheduled(self) -> List[SourceOutcome]:
        return await self.run_cycle(TRIGGER_SCHEDULED)

    async def run_manual(self) -> List[SourceOutcome]:
        return await self.run_cycle(TRIGGER_MANUAL)


def _default_engine() -> AsyncEngine:
    from bidpilot.core.db import engine
    return engine


def build_scheduler(
    engine: Optional[AsyncEngine] = None,
    *,
    clock=system_clock,
    fetcher: Optional[FeedFetcher] = None,
    disabled: Optional[Sequence[str]] = None,
) -> ScrapeScheduler:
    """Wire stores, logger, scraper and registry onto one engine."""
    engine = engine or _default_engine()
    activity = build_activity_logger(engine, clock=clock)
    scraper = SourceScraper(fetcher or FeedFetcher(), TenderStore(engine), activity, clock)
    return ScrapeScheduler(build_registry(scraper, disabled=disabled), activity)


def build_activity_logger(engine: Optional[AsyncEngine] = None, *, clock=system_clock) -> ActivityLogger:
    return ActivityLogger(ScrapeLogStore(engine or _default_engine()), clock)


async def run_ingestors_once() -> List[SourceOutcome]:
    """One manual cycle against the configured database."""
    return await build_scheduler().run_manual()


async def _main() -> None:
    from bidpilot.core.db import create_tables, engine
    from bidpilot.core.logging import configure_logging
    from bidpilot.core.settings import settings

    configure_logging(settings.LOG_LEVEL)
    await create_tables(engine)
    try:
        outcomes = await run_ingestors_once()
    finally:
        await engine.dispose()

    for o in outcomes:
        status = f"ERROR: {o.error}" if o.error else f"{o.added} added, {o.skipped} skipped"
        print(f"{o.source}: {status}")


# ---- for local runs: python -m bidpilot.ingest.runner ----
if __name__ == "__main__":
    asyncio.run(_main())
