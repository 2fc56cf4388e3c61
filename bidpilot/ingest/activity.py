"""
Scrape activity log.

Every step of a scrape run (start, fetch, parse, insert, complete, error)
becomes one row in `scraper_logs`; the operator dashboard polls it.

Writing is best-effort: a failed log write is reported on the process
logger and otherwise ignored, so it can never fail the scrape it describes.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncEngine

from bidpilot.core.clock import naive_utc, system_clock
from bidpilot.core.models_core import scraper_logs
from bidpilot.core.settings import settings
from bidpilot.ingest.base import ACTION_COMPLETE, ACTION_ERROR

logger = logging.getLogger(__name__)

DEFAULT_RECENT_LIMIT = 100
DEFAULT_SINCE_LIMIT = 50
STATS_WINDOW = timedelta(hours=24)


@dataclass
class LogEntry:
    id: int
    source: str
    action: str
    message: str
    timestamp: datetime
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "action": self.action,
            "message": self.message,
            "metadata": self.metadata,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class SourceStats:
    added: int = 0
    skipped: int = 0
    errors: int = 0
    last_run: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "added": self.added,
            "skipped": self.skipped,
            "errors": self.errors,
            "last_run": self.last_run.isoformat() if self.last_run else None,
        }


def _row_to_entry(row) -> LogEntry:
    m = row._mapping
    return LogEntry(
        id=m["id"],
        source=m["source"],
        action=m["action"],
        message=m["message"],
        timestamp=m["timestamp"],
        metadata=dict(m["meta"] or {}),
    )


def _as_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


class ScrapeLogStore:
    """Plain storage operations on scraper_logs. Errors propagate."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    async def append(
        self,
        source: str,
        action: str,
        message: str,
        meta: Optional[Dict[str, Any]],
        timestamp: datetime,
    ) -> int:
        async with self.engine.begin() as conn:
            res = await conn.execute(
                scraper_logs.insert().values(
                    source=source,
                    action=action,
                    message=message,
                    meta=meta or None,
                    timestamp=timestamp,
                )
            )
            return res.inserted_primary_key[0]

    async def recent(self, limit: int, source: Optional[str] = None) -> List[LogEntry]:
        stmt = select(scraper_logs)
        if source:
            stmt = stmt.where(scraper_logs.c.source == source)
        stmt = stmt.order_by(scraper_logs.c.timestamp.desc(), scraper_logs.c.id.desc()).limit(limit)
        async with self.engine.connect() as conn:
            return [_row_to_entry(r) for r in (await conn.execute(stmt)).fetchall()]

    async def since(self, timestamp: datetime, limit: int) -> List[LogEntry]:
        stmt = (
            select(scraper_logs)
            .where(scraper_logs.c.timestamp > timestamp)
            .order_by(scraper_logs.c.timestamp.desc(), scraper_logs.c.id.desc())
            .limit(limit)
        )
        async with self.engine.connect() as conn:
            return [_row_to_entry(r) for r in (await conn.execute(stmt)).fetchall()]

    async def window(self, start: datetime) -> List[LogEntry]:
        """All entries newer than `start`, oldest first."""
        stmt = (
            select(scraper_logs)
            .where(scraper_logs.c.timestamp > start)
            .order_by(scraper_logs.c.timestamp.asc(), scraper_logs.c.id.asc())
        )
        async with self.engine.connect() as conn:
            return [_row_to_entry(r) for r in (await conn.execute(stmt)).fetchall()]

    async def delete_older_than(self, cutoff: datetime, batch: int) -> int:
        """Delete up to `batch` entries older than `cutoff`, oldest first."""
        async with self.engine.begin() as conn:
            ids = (
                await conn.execute(
                    select(scraper_logs.c.id)
                    .where(scraper_logs.c.timestamp < cutoff)
                    .order_by(scraper_logs.c.timestamp.asc(), scraper_logs.c.id.asc())
                    .limit(batch)
                )
            ).scalars().all()
            if not ids:
                return 0
            await conn.execute(delete(scraper_logs).where(scraper_logs.c.id.in_(ids)))
            return len(ids)


class ActivityLogger:
    def __init__(
        self,
        store: ScrapeLogStore,
        clock=system_clock,
        *,
        retention_days: Optional[int] = None,
        cleanup_batch: Optional[int] = None,
    ):
        self.store = store
        self.clock = clock
        self.retention_days = settings.LOG_RETENTION_DAYS if retention_days is None else retention_days
        self.cleanup_batch = settings.LOG_CLEANUP_BATCH if cleanup_batch is None else cleanup_batch

    async def log(
        self,
        source: str,
        action: str,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Best-effort, never raises.
        Failure must NEVER break the scrape being logged.
        """
        level = logging.ERROR if action == ACTION_ERROR else logging.INFO
        logger.log(level, f"[{source}] {action}: {message}")
        try:
            await self.store.append(source, action, message, metadata, self.clock.now())
        except Exception:
            logger.exception(f"Failed to write scrape log entry ({source}/{action})")

    async def recent(self, limit: int = DEFAULT_RECENT_LIMIT, source: Optional[str] = None) -> List[LogEntry]:
        """Newest first; optionally one source only."""
        return await self.store.recent(limit, source)

    async def since(self, timestamp: datetime, limit: int = DEFAULT_SINCE_LIMIT) -> List[LogEntry]:
        """Entries strictly newer than `timestamp`, newest first (dashboard polling)."""
        return await self.store.since(naive_utc(timestamp), limit)

    async def stats(self, window: timedelta = STATS_WINDOW) -> Dict[str, SourceStats]:
        """
        Per-source totals over the last `window` (24h by default).

        added / skipped are summed from `complete` entries only; errors counts
        `error` entries. last_run is the newest `complete` timestamp.
        """
        entries = await self.store.window(self.clock.now() - window)
        out: Dict[str, SourceStats] = {}
        for e in entries:
            s = out.setdefault(e.source, SourceStats())
            if e.action == ACTION_COMPLETE:
                s.added += _as_int(e.metadata.get("added"))
                s.skipped += _as_int(e.metadata.get("skipped"))
                if s.last_run is None or e.timestamp > s.last_run:
                    s.last_run = e.timestamp
            elif e.action == ACTION_ERROR:
                s.errors += 1
        return out

    async def cleanup(self) -> int:
        """Delete one batch of entries past retention; returns how many went."""
        cutoff = self.clock.now() - timedelta(days=self.retention_days)
        deleted = await self.store.delete_older_than(cutoff, self.cleanup_batch)
        if deleted:
            logger.info(f"Deleted {deleted} scrape log entries older than {cutoff.isoformat()}")
        return deleted
