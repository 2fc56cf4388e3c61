"""
publicprocurement.ng - WordPress RSS feed.

Items carry the closing date as a category tag ("10/03/2026") next to the
sector tags ("Construction &amp; Engineering"); guids are "?p=<post id>".
"""
from datetime import datetime
from typing import Union

from bidpilot.ingest.base import FeedSource, ParseResult
from bidpilot.ingest.categories import LABELS
from bidpilot.ingest.parsers.rss import (
    RssProfile,
    categories_from_tags,
    deadline_from_categories,
    parse_rss,
)

SOURCE_ID = "publicprocurement.ng"
FEED_URL = "https://www.publicprocurement.ng/feed/"
ACCEPT = "application/rss+xml, application/xml, text/xml, */*"

PROFILE = RssProfile(
    source=SOURCE_ID,
    categorize=categories_from_tags(LABELS),
    find_deadline=deadline_from_categories,
    strip_link_query=True,
)


def parse(raw: Union[bytes, str], *, now: datetime) -> ParseResult:
    return parse_rss(raw, PROFILE, now=now)


SOURCE = FeedSource(source_id=SOURCE_ID, url=FEED_URL, accept=ACCEPT, parse=parse)
