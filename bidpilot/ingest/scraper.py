# bidpilot/ingest/scraper.py
import logging

from bidpilot.core.clock import system_clock
from bidpilot.ingest.activity import ActivityLogger
from bidpilot.ingest.base import (
    ACTION_COMPLETE,
    ACTION_ERROR,
    ACTION_FETCH,
    ACTION_INSERT,
    ACTION_PARSE,
    ACTION_SKIP,
    ACTION_START,
    FeedSource,
    ScrapeResult,
)
from bidpilot.ingest.dedup import DedupGate
from bidpilot.ingest.http import FeedFetcher
from bidpilot.ingest.store import DuplicateTenderError, TenderStore

logger = logging.getLogger(__name__)

LOG_TITLE_LIMIT = 80


class SourceScraper:
    """
    One scrape of one source: fetch → parse → dedup → insert, with every step
    written to the activity log.

    Inserts are committed one by one; if the run fails half way the tenders
    already inserted stay, and the next run skips them.
    """

    def __init__(
        self,
        fetcher: FeedFetcher,
        tenders: TenderStore,
        activity: ActivityLogger,
        clock=system_clock,
    ):
        self.fetcher = fetcher
        self.tenders = tenders
        self.dedup = DedupGate(tenders)
        self.activity = activity
        self.clock = clock

    async def run(self, source: FeedSource) -> ScrapeResult:
        sid = source.source_id
        await self.activity.log(sid, ACTION_START, "Starting scrape run")

        try:
            await self.activity.log(sid, ACTION_FETCH, f"Fetching {source.url}", {"url": source.url})
            raw = await self.fetcher.fetch(source.url, accept=source.accept)

            await self.activity.log(sid, ACTION_PARSE, f"Received {len(raw)} bytes, parsing...")
            parsed = source.parse(raw, now=self.clock.now())
            await self.activity.log(
                sid,
                ACTION_PARSE,
                f"Found {len(parsed.candidates)} tender listings",
                {"count": len(parsed.candidates)},
            )
            if parsed.dropped:
                await self.activity.log(
                    sid,
                    ACTION_SKIP,
                    f"Dropped {parsed.dropped} malformed items",
                    {"count": parsed.dropped},
                )

            result = ScrapeResult(scraped=parsed.total, skipped=parsed.dropped)

            for candidate in parsed.candidates:
                if await self.dedup.exists(sid, candidate.source_id):
                    result.skipped += 1
                    continue

                try:
                    await self.tenders.insert(candidate.to_record(self.clock.now()))
                except DuplicateTenderError:
                    # another run stored it between the lookup and the insert
                    result.skipped += 1
                    await self.activity.log(
                        sid,
                        ACTION_SKIP,
                        f"Already stored: {candidate.source_id}",
                        {"tender_id": candidate.source_id},
                    )
                    continue

                result.added += 1
                await self.activity.log(
                    sid,
                    ACTION_INSERT,
                    f"Added: {candidate.title[:LOG_TITLE_LIMIT]}...",
                    {"tender_id": candidate.source_id, "tender_title": candidate.title},
                )

            await self.activity.log(
                sid,
                ACTION_COMPLETE,
                f"Scrape complete: {result.added} added, {result.skipped} skipped",
                {"added": result.added, "skipped": result.skipped, "count": result.scraped},
            )
            return result

        except Exception as e:
            await self.activity.log(
                sid,
                ACTION_ERROR,
                f"Scrape failed: {e}",
                {"error": str(e), "url": source.url},
            )
            raise
