"""
tendersnigeria.com - Feedburner RSS feed.

No category tags and no structured closing date: both are guessed from the
title and description text. Titles use ":" and "|" as well as dashes between
agency and subject.
"""
from datetime import datetime
from typing import List, Union

from bidpilot.ingest.base import FeedSource, ParseResult
from bidpilot.ingest.categories import detect_category
from bidpilot.ingest.parsers.rss import RssItem, RssProfile, deadline_from_text, parse_rss

SOURCE_ID = "tendersnigeria.com"
FEED_URL = "https://feeds.feedburner.com/multonion/tenders"
ACCEPT = "application/rss+xml, application/xml, text/xml, */*"


def _categorize(item: RssItem) -> List[str]:
    return [detect_category(item.text)]


PROFILE = RssProfile(
    source=SOURCE_ID,
    categorize=_categorize,
    find_deadline=deadline_from_text,
    org_separators="-–—:|",
    org_default="Nigerian Organization",
    guid_segment_id=True,
)


def parse(raw: Union[bytes, str], *, now: datetime) -> ParseResult:
    return parse_rss(raw, PROFILE, now=now)


SOURCE = FeedSource(source_id=SOURCE_ID, url=FEED_URL, accept=ACCEPT, parse=parse)
