# bidpilot/ingest/registry.py
from dataclasses import dataclass
from functools import partial
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from bidpilot.core.settings import settings
from bidpilot.ingest.base import FeedSource, ScrapeResult
from bidpilot.ingest.scraper import SourceScraper
from bidpilot.ingest.sources import ALL_SOURCES


@dataclass
class SourceRegistration:
    id: str
    scrape: Callable[[], Awaitable[ScrapeResult]]
    enabled: bool = True
    url: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "url": self.url, "enabled": self.enabled}


def build_registry(
    scraper: SourceScraper,
    sources: Optional[Iterable[FeedSource]] = None,
    disabled: Optional[Iterable[str]] = None,
) -> List[SourceRegistration]:
    """
    One registration per source, in scrape order. Everything is enabled
    except the ids listed in `disabled` (default: settings.DISABLED_SOURCES).
    """
    off = set(settings.DISABLED_SOURCES if disabled is None else disabled)
    return [
        SourceRegistration(
            id=src.source_id,
            scrape=partial(scraper.run, src),
            enabled=src.source_id not in off,
            url=src.url,
        )
        for src in (ALL_SOURCES if sources is None else sources)
    ]
