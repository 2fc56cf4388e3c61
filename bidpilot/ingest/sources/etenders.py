"""
etenders.com.ng - WordPress RSS feed of the "tenders" category.

Sector tags follow their own vocabulary (Oil & Gas, Education, ...). The
closing date is sometimes a tag and sometimes only in the excerpt.
"""
from datetime import date, datetime
from typing import Optional, Union

from bidpilot.ingest.base import FeedSource, ParseResult
from bidpilot.ingest.categories import ETENDERS_LABELS
from bidpilot.ingest.parsers.rss import (
    RssItem,
    RssProfile,
    categories_from_tags,
    deadline_from_categories,
    deadline_from_text,
    parse_rss,
)

SOURCE_ID = "etenders.com.ng"
BASE_URL = "https://etenders.com.ng"
FEED_URL = f"{BASE_URL}/category/tenders/feed/"
ACCEPT = "application/rss+xml, application/xml, text/xml, */*"


def _find_deadline(item: RssItem) -> Optional[date]:
    return deadline_from_categories(item) or deadline_from_text(item)


PROFILE = RssProfile(
    source=SOURCE_ID,
    categorize=categories_from_tags(ETENDERS_LABELS),
    find_deadline=_find_deadline,
    org_separators="-–—:",
)


def parse(raw: Union[bytes, str], *, now: datetime) -> ParseResult:
    return parse_rss(raw, PROFILE, now=now)


SOURCE = FeedSource(source_id=SOURCE_ID, url=FEED_URL, accept=ACCEPT, parse=parse)
