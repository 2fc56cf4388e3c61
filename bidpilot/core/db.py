from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from bidpilot.core.models_core import metadata
from bidpilot.core.settings import settings


def make_engine(url: str) -> AsyncEngine:
    engine_kwargs = {"echo": False, "future": True}

    # SQLite benefits from a single shared connection and longer busy timeout to avoid "database is locked".
    if url.startswith("sqlite"):
        engine_kwargs.update(
            {
                "connect_args": {"timeout": 30, "check_same_thread": False},
                "poolclass": StaticPool,
            }
        )

    return create_async_engine(url, **engine_kwargs)


async def create_tables(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)


if not settings.DB_URL:
    # Fail fast with a clear message instead of throwing from SQLAlchemy
    raise RuntimeError("DB_URL is not configured. Set it in environment or .env before starting the app.")

engine = make_engine(settings.DB_URL)
