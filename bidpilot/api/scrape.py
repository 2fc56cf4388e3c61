# bidpilot/api/scrape.py
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from bidpilot.core.settings import settings
from bidpilot.ingest.activity import ActivityLogger
from bidpilot.ingest.runner import ScrapeScheduler, build_activity_logger, build_scheduler


# -------------------------------------------------------------------
# Identity: set by the auth layer in front of us, read as a header
# -------------------------------------------------------------------
async def get_current_identity(request: Request) -> Optional[str]:
    value = (request.headers.get(settings.IDENTITY_HEADER) or "").strip()
    return value or None


async def require_operator(identity: Optional[str] = Depends(get_current_identity)):
    if not identity:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    if identity.lower() != settings.ADMIN_EMAIL.strip().lower():
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin only")

    return identity


def get_scrape_scheduler() -> ScrapeScheduler:
    return build_scheduler()


def get_activity_logger() -> ActivityLogger:
    return build_activity_logger()


router = APIRouter(prefix="/admin/scrape", tags=["admin"])


@router.post("/run")
async def run_now(
    user=Depends(require_operator),
    runner: ScrapeScheduler = Depends(get_scrape_scheduler),
):
    outcomes = await runner.run_manual()
    return {
        "results": [o.to_dict() for o in outcomes],
        "added": sum(o.added for o in outcomes),
        "skipped": sum(o.skipped for o in outcomes),
        "errors": sum(1 for o in outcomes if o.error is not None),
    }


@router.get("/logs")
async def recent_logs(
    limit: int = Query(100, ge=1, le=500),
    source: Optional[str] = None,
    user=Depends(require_operator),
    activity: ActivityLogger = Depends(get_activity_logger),
):
    entries = await activity.recent(limit=limit, source=source)
    return {"logs": [e.to_dict() for e in entries]}


@router.get("/logs/since")
async def logs_since(
    ts: datetime,
    limit: int = Query(50, ge=1, le=500),
    user=Depends(require_operator),
    activity: ActivityLogger = Depends(get_activity_logger),
):
    entries = await activity.since(ts, limit=limit)
    return {"logs": [e.to_dict() for e in entries]}


@router.get("/stats")
async def stats(
    user=Depends(require_operator),
    activity: ActivityLogger = Depends(get_activity_logger),
):
    by_source = await activity.stats()
    return {source: s.to_dict() for source, s in by_source.items()}


@router.get("/sources")
async def sources(
    user=Depends(require_operator),
    runner: ScrapeScheduler = Depends(get_scrape_scheduler),
):
    return {"sources": [r.to_dict() for r in runner.registry]}


@router.post("/cleanup")
async def cleanup(
    user=Depends(require_operator),
    activity: ActivityLogger = Depends(get_activity_logger),
):
    deleted = await activity.cleanup()
    return {"deleted": deleted}
