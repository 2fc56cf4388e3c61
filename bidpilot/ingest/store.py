# bidpilot/ingest/store.py
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine

from bidpilot.core.models_core import tenders
from bidpilot.ingest.base import IngestError

logger = logging.getLogger(__name__)


class DuplicateTenderError(IngestError):
    """(source, source_id) already stored; raised when the unique constraint fires."""

    def __init__(self, source: str, source_id: str):
        super().__init__(f"tender {source}/{source_id} already exists")
        self.source = source
        self.source_id = source_id


def _row_to_dict(row) -> Dict[str, Any]:
    return dict(row._mapping)


class TenderStore:
    """
    Insert-only access to the tenders table for ingestion, plus the read
    queries the listing endpoints use.
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    # --------------------------
    # write side
    # --------------------------

    async def exists_by_source_id(self, source: str, source_id: str) -> bool:
        stmt = (
            select(tenders.c.id)
            .where(tenders.c.source == source, tenders.c.source_id == source_id)
            .limit(1)
        )
        async with self.engine.connect() as conn:
            res = await conn.execute(stmt)
            return res.first() is not None

    async def insert(self, record: Dict[str, Any]) -> int:
        """Insert one tender row and return its id. Never updates an existing row."""
        try:
            async with self.engine.begin() as conn:
                res = await conn.execute(tenders.insert().values(**record))
                return res.inserted_primary_key[0]
        except IntegrityError as e:
            logger.debug(f"Unique constraint hit for {record.get('source')}/{record.get('source_id')}: {e}")
            raise DuplicateTenderError(record.get("source", ""), record.get("source_id", "")) from e

    # --------------------------
    # read side
    # --------------------------

    async def get_by_source_id(self, source: str, source_id: str) -> Optional[Dict[str, Any]]:
        stmt = select(tenders).where(tenders.c.source == source, tenders.c.source_id == source_id)
        async with self.engine.connect() as conn:
            row = (await conn.execute(stmt)).first()
        return _row_to_dict(row) if row else None

    async def count(self, source: Optional[str] = None) -> int:
        stmt = select(func.count()).select_from(tenders)
        if source:
            stmt = stmt.where(tenders.c.source == source)
        async with self.engine.connect() as conn:
            return int((await conn.execute(stmt)).scalar_one())

    async def list_recent(self, limit: int = 50) -> List[Dict[str, Any]]:
        """Most recently scraped first."""
        stmt = (
            select(tenders)
            .order_by(tenders.c.scraped_at.desc(), tenders.c.id.desc())
            .limit(limit)
        )
        async with self.engine.connect() as conn:
            return [_row_to_dict(r) for r in (await conn.execute(stmt)).fetchall()]

    async def upcoming(self, today: date, limit: int = 50) -> List[Dict[str, Any]]:
        """Still-open tenders, soonest deadline first."""
        stmt = (
            select(tenders)
            .where(tenders.c.deadline >= today)
            .order_by(tenders.c.deadline.asc(), tenders.c.id.asc())
            .limit(limit)
        )
        async with self.engine.connect() as conn:
            return [_row_to_dict(r) for r in (await conn.execute(stmt)).fetchall()]

    async def by_category(self, category: str, limit: int = 50) -> List[Dict[str, Any]]:
        stmt = (
            select(tenders)
            .where(tenders.c.category == category)
            .order_by(tenders.c.scraped_at.desc(), tenders.c.id.desc())
            .limit(limit)
        )
        async with self.engine.connect() as conn:
            return [_row_to_dict(r) for r in (await conn.execute(stmt)).fetchall()]
