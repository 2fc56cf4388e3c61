# bidpilot/ingest/dedup.py
from bidpilot.ingest.store import TenderStore


class DedupGate:
    """
    "Have we stored this (source, source_id) before?"

    A lookup, not a lock: two concurrent runs can both see False. The unique
    constraint on the tenders table catches the loser (DuplicateTenderError).
    """

    def __init__(self, store: TenderStore):
        self.store = store

    async def exists(self, source: str, source_id: str) -> bool:
        if not source_id:
            return False
        return await self.store.exists_by_source_id(source, source_id)
