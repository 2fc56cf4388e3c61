# bidpilot/api/tenders.py
from fastapi import APIRouter, Depends, Query

from bidpilot.core.clock import system_clock
from bidpilot.ingest.categories import category_from_slug
from bidpilot.ingest.store import TenderStore


def get_tender_store() -> TenderStore:
    from bidpilot.core.db import engine
    return TenderStore(engine)


def get_clock():
    return system_clock


router = APIRouter(prefix="/tenders", tags=["tenders"])


@router.get("/recent")
async def recent_tenders(
    limit: int = Query(50, ge=1, le=200),
    store: TenderStore = Depends(get_tender_store),
):
    return {"tenders": await store.list_recent(limit=limit)}


@router.get("/upcoming")
async def upcoming_tenders(
    limit: int = Query(50, ge=1, le=200),
    store: TenderStore = Depends(get_tender_store),
    clock=Depends(get_clock),
):
    """Deadline today or later, soonest first."""
    return {"tenders": await store.upcoming(clock.now().date(), limit=limit)}


@router.get("/category/{category}")
async def tenders_by_category(
    category: str,
    limit: int = Query(50, ge=1, le=200),
    store: TenderStore = Depends(get_tender_store),
):
    # accepts "Solar & Renewable" or "solar-renewable"
    name = category_from_slug(category)
    return {"category": name, "tenders": await store.by_category(name, limit=limit)}
