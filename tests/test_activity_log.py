import asyncio
from datetime import timedelta

from bidpilot.ingest.activity import ActivityLogger, ScrapeLogStore

from conftest import NOW


def _logger(engine, clock, **kwargs):
    return ActivityLogger(ScrapeLogStore(engine), clock, **kwargs)


def test_recent_is_newest_first_and_filters_by_source(with_db, clock):
    async def scenario(engine):
        activity = _logger(engine, clock)
        await activity.log("publicprocurement.ng", "start", "Starting scrape run")
        clock.advance(seconds=1)
        await activity.log("nocopo.gov.ng", "start", "Starting scrape run")
        clock.advance(seconds=1)
        await activity.log("publicprocurement.ng", "fetch", "Fetching", {"url": "https://x"})
        return await activity.recent(), await activity.recent(source="publicprocurement.ng")

    everything, pp = with_db(scenario)

    assert [e.action for e in everything] == ["fetch", "start", "start"]
    assert everything[0].metadata == {"url": "https://x"}
    assert everything[1].source == "nocopo.gov.ng"
    assert [e.action for e in pp] == ["fetch", "start"]


def test_equal_timestamps_order_by_insertion(with_db, clock):
    async def scenario(engine):
        activity = _logger(engine, clock)
        for action in ("start", "fetch", "parse"):
            await activity.log("etenders.com.ng", action, action)
        return await activity.recent(limit=2)

    entries = with_db(scenario)
    assert [e.action for e in entries] == ["parse", "fetch"]


def test_since_is_strictly_newer(with_db, clock):
    async def scenario(engine):
        activity = _logger(engine, clock)
        await activity.log("scheduler", "start", "a")
        marker = clock.now()
        clock.advance(seconds=5)
        await activity.log("scheduler", "complete", "b")
        clock.advance(seconds=5)
        await activity.log("scheduler", "start", "c")
        return await activity.since(marker)

    entries = with_db(scenario)
    assert [e.message for e in entries] == ["c", "b"]


def test_stats_sum_complete_entries_only(with_db, clock):
    async def scenario(engine):
        activity = _logger(engine, clock)
        # outside the 24h window
        await activity.log("publicprocurement.ng", "complete", "old", {"added": 50, "skipped": 0})
        clock.advance(hours=25)
        await activity.log("publicprocurement.ng", "insert", "Added: x", {"tender_id": "1"})
        await activity.log("publicprocurement.ng", "complete", "c1", {"added": 3, "skipped": 2, "count": 5})
        clock.advance(minutes=5)
        await activity.log("publicprocurement.ng", "complete", "c2", {"added": 1, "skipped": 4, "count": 5})
        await activity.log("nocopo.gov.ng", "error", "Scrape failed: HTTP 503", {"error": "HTTP 503"})
        return await activity.stats()

    stats = with_db(scenario)

    pp = stats["publicprocurement.ng"]
    assert (pp.added, pp.skipped, pp.errors) == (4, 6, 0)
    assert pp.last_run == NOW + timedelta(hours=25, minutes=5)

    nocopo = stats["nocopo.gov.ng"]
    assert (nocopo.added, nocopo.skipped, nocopo.errors) == (0, 0, 1)
    assert nocopo.last_run is None
    assert nocopo.to_dict()["last_run"] is None


def test_cleanup_deletes_expired_entries_in_batches(with_db, clock):
    async def scenario(engine):
        activity = _logger(engine, clock, retention_days=7, cleanup_batch=2)
        for i in range(3):
            await activity.log("scheduler", "start", f"old {i}")
        clock.advance(days=6)
        await activity.log("scheduler", "start", "recent")
        clock.advance(days=2)

        deleted = [await activity.cleanup(), await activity.cleanup(), await activity.cleanup()]
        remaining = await activity.recent()
        return deleted, remaining

    deleted, remaining = with_db(scenario)
    assert deleted == [2, 1, 0]
    assert [e.message for e in remaining] == ["recent"]


class FailingStore:
    async def append(self, *args, **kwargs):
        raise RuntimeError("database is locked")


def test_log_never_raises(clock, caplog):
    activity = ActivityLogger(FailingStore(), clock)
    asyncio.run(activity.log("scheduler", "start", "hello"))

    assert "Failed to write scrape log entry" in caplog.text
