import asyncio
from datetime import datetime

import pytest

from bidpilot.core.clock import FrozenClock
from bidpilot.core.db import create_tables, make_engine

NOW = datetime(2026, 3, 1, 9, 0, 0)


@pytest.fixture
def clock():
    return FrozenClock(NOW)


def _run_with_db(fn):
    """Run `await fn(engine)` against a fresh in-memory database."""

    async def _run():
        engine = make_engine("sqlite+aiosqlite:///:memory:")
        await create_tables(engine)
        try:
            return await fn(engine)
        finally:
            await engine.dispose()

    return asyncio.run(_run())


@pytest.fixture
def with_db():
    return _run_with_db


class RecordingActivity:
    """Stands in for ActivityLogger where only the log calls matter."""

    def __init__(self):
        self.entries = []

    async def log(self, source, action, message, metadata=None):
        self.entries.append((source, action, message, metadata))


@pytest.fixture
def recording_activity():
    return RecordingActivity()
