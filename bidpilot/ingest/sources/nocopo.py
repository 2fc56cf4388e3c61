"""
NOCOPO (Nigeria Open Contracting Portal) releases, via the Open Contracting
Partnership's data registry (publication 64). OCDS JSON.
"""
from datetime import datetime
from typing import Union

from bidpilot.ingest.base import FeedSource, ParseResult
from bidpilot.ingest.parsers.ocds import OcdsProfile, parse_ocds

SOURCE_ID = "nocopo.gov.ng"
FEED_URL = "https://data.open-contracting.org/api/v1/publication/64/releases?limit=100&offset=0"
RELEASE_URL = "https://data.open-contracting.org/en/publication/64/release/{ocid}"
ACCEPT = "application/json"

PROFILE = OcdsProfile(
    source=SOURCE_ID,
    release_url_template=RELEASE_URL,
    id_prefix="nocopo",
)


def parse(raw: Union[bytes, str], *, now: datetime) -> ParseResult:
    return parse_ocds(raw, PROFILE, now=now)


SOURCE = FeedSource(source_id=SOURCE_ID, url=FEED_URL, accept=ACCEPT, parse=parse)
