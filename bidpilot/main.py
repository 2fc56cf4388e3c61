# bidpilot/main.py
import sys
import asyncio

from fastapi import FastAPI
from starlette.responses import PlainTextResponse

from bidpilot.core.settings import settings
from bidpilot.core.logging import configure_logging

# -------------------------------------------------------------------
# Windows event-loop quirk
# -------------------------------------------------------------------
if sys.platform.startswith("win"):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# -------------------------------------------------------------------
# FastAPI app setup
# -------------------------------------------------------------------
app = FastAPI(title="BidPilot Ingestion", version="0.1")

from bidpilot.core.db import engine, create_tables
from bidpilot.core.scheduler import start_scheduler
from bidpilot.api import scrape, tenders

app.include_router(scrape.router)
app.include_router(tenders.router)


# -------------------------------------------------------------------
# Health check
# -------------------------------------------------------------------
@app.get("/health", include_in_schema=False)
async def health():
    return PlainTextResponse("ok")


# -------------------------------------------------------------------
# Startup / shutdown
# -------------------------------------------------------------------
@app.on_event("startup")
async def on_startup():
    configure_logging(settings.LOG_LEVEL)
    # Only run DDL in environments that allow it (local/dev)
    if settings.RUN_DDL_ON_START:
        await create_tables(engine)
    if settings.START_SCHEDULER_WEB:
        start_scheduler()


@app.on_event("shutdown")
async def on_shutdown():
    await engine.dispose()
