"""
Generic RSS/XML tender feed parsing.

Items are cut out of `<item>` blocks with regular expressions; no XML DOM is
built, so a malformed item only costs that one item.

Per-source behaviour (how categories and deadlines are found, how the
source id is derived) is described by an `RssProfile`; each module under
`bidpilot.ingest.sources` builds one and wraps `parse_rss`.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, List, Optional, Tuple, Union

from bidpilot.ingest.base import (
    DEFAULT_LOCATION,
    FeedFormatError,
    ParseResult,
    TenderCandidate,
)
from bidpilot.ingest.categories import normalize_labels
from bidpilot.ingest.utils import (
    LOOSE_DATE_RE,
    clean_ws,
    decode_body,
    decode_entities,
    extract_organization,
    find_ddmmyyyy,
    first_ddmmyyyy,
    future_date,
    html_to_text,
    last_path_segment,
    parse_feed_date,
    strip_query,
    title_hash_id,
    truncate,
    unwrap_cdata,
)

logger = logging.getLogger(__name__)

FEED_MARKER_RE = re.compile(r"<(?:rss|rdf:RDF|channel|feed)\b", re.IGNORECASE)
ITEM_RE = re.compile(r"<item\b[^>]*>([\s\S]*?)</item>", re.IGNORECASE)
GUID_POST_RE = re.compile(r"[?&]p=(\d+)")

DESCRIPTION_LIMIT = 500
TITLE_LIMIT = 300

# "Deadline: 10/03/2026", "Closing date - 10-03-2026", ...
LABELLED_DEADLINE_RES = [
    re.compile(r"deadline[^0-9]{0,20}(\d{1,2}[/-]\d{1,2}[/-]\d{4})", re.IGNORECASE),
    re.compile(r"closing[^0-9]{0,20}(\d{1,2}[/-]\d{1,2}[/-]\d{4})", re.IGNORECASE),
    re.compile(r"submission[^0-9]{0,20}(\d{1,2}[/-]\d{1,2}[/-]\d{4})", re.IGNORECASE),
]


@dataclass
class RssItem:
    title: str
    link: str
    pub_date: str = ""
    categories: List[str] = field(default_factory=list)
    description: str = ""            # plain text, already stripped
    guid: str = ""

    @property
    def text(self) -> str:
        return f"{self.title} {self.description}".strip()


@dataclass
class RssProfile:
    source: str
    # item -> category list (already normalized, primary first)
    categorize: Callable[[RssItem], List[str]]
    # item -> deadline or None (caller applies the +30 days fallback)
    find_deadline: Callable[[RssItem], Optional[date]]
    org_separators: str = "-–—"
    org_default: str = "Unknown Organization"
    guid_segment_id: bool = False    # use the guid's last segment before the link's
    strip_link_query: bool = False
    location: str = DEFAULT_LOCATION


# --------------------------
# element extraction
# --------------------------

def _tag_re(name: str) -> re.Pattern:
    return re.compile(
        r"<" + re.escape(name) + r"\b[^>]*>([\s\S]*?)</" + re.escape(name) + r">",
        re.IGNORECASE,
    )


_TITLE_RE = _tag_re("title")
_LINK_RE = _tag_re("link")
_ORIG_LINK_RE = _tag_re("feedburner:origLink")
_PUBDATE_RE = _tag_re("pubDate")
_DC_DATE_RE = _tag_re("dc:date")
_CATEGORY_RE = _tag_re("category")
_DESCRIPTION_RE = _tag_re("description")
_CONTENT_RE = _tag_re("content:encoded")
_GUID_RE = _tag_re("guid")


def _first(pattern: re.Pattern, block: str) -> str:
    m = pattern.search(block)
    return unwrap_cdata(m.group(1)).strip() if m else ""


def _all(pattern: re.Pattern, block: str) -> List[str]:
    return [unwrap_cdata(m.group(1)).strip() for m in pattern.finditer(block)]


def _parse_item(block: str) -> Optional[RssItem]:
    title = clean_ws(decode_entities(_first(_TITLE_RE, block)))
    link = decode_entities(_first(_LINK_RE, block) or _first(_ORIG_LINK_RE, block)).strip()
    if not title or not link:
        return None

    description = _first(_DESCRIPTION_RE, block) or _first(_CONTENT_RE, block)

    return RssItem(
        title=truncate(title, TITLE_LIMIT),
        link=link,
        pub_date=_first(_PUBDATE_RE, block) or _first(_DC_DATE_RE, block),
        categories=[clean_ws(decode_entities(c)) for c in _all(_CATEGORY_RE, block)],
        description=html_to_text(description),
        guid=decode_entities(_first(_GUID_RE, block)).strip(),
    )


def iter_items(xml: str) -> Tuple[List[RssItem], int]:
    """
    Return (items, dropped). Raises FeedFormatError when the document is not a
    feed at all (HTML error page, empty body, JSON...).
    """
    if not xml or not FEED_MARKER_RE.search(xml):
        raise FeedFormatError("document is not an RSS/XML feed")

    items: List[RssItem] = []
    dropped = 0
    for m in ITEM_RE.finditer(xml):
        item = _parse_item(m.group(1))
        if item is None:
            dropped += 1
            continue
        items.append(item)
    return items, dropped


# --------------------------
# field heuristics
# --------------------------

def derive_source_id(item: RssItem, *, guid_segment: bool = False) -> str:
    """
    WordPress guid "?p=12345" → "post-12345"; otherwise the last path segment
    (of the guid when the source's guids are stable tokens, else of the link);
    otherwise a hash of the title.
    """
    m = GUID_POST_RE.search(item.guid)
    if m:
        return f"post-{m.group(1)}"
    if guid_segment:
        seg = last_path_segment(item.guid)
        if seg:
            return seg
    seg = last_path_segment(strip_query(item.link))
    if seg:
        return seg
    return title_hash_id(item.title)


def deadline_from_categories(item: RssItem) -> Optional[date]:
    return first_ddmmyyyy(item.categories)


def deadline_from_text(item: RssItem) -> Optional[date]:
    """Labelled dates ("Deadline: 10/03/2026") first, then any D/M/YYYY token."""
    text = item.text
    for pattern in LABELLED_DEADLINE_RES:
        for m in pattern.finditer(text):
            d = find_ddmmyyyy(m.group(1), LOOSE_DATE_RE)
            if d:
                return d
    return find_ddmmyyyy(text, LOOSE_DATE_RE)


def categories_from_tags(table=None) -> Callable[[RssItem], List[str]]:
    def _categorize(item: RssItem) -> List[str]:
        return normalize_labels(item.categories, table)
    return _categorize


def fallback_description(organization: str, categories: List[str]) -> str:
    scope = f" ({', '.join(categories)})" if categories else ""
    return f"Tender opportunity from {organization}{scope}. View full details at source."


# --------------------------
# main entrypoint
# --------------------------

def parse_rss(raw: Union[bytes, str], profile: RssProfile, *, now: datetime) -> ParseResult:
    items, dropped = iter_items(decode_body(raw))
    result = ParseResult(dropped=dropped)

    for item in items:
        try:
            result.candidates.append(_build_candidate(item, profile, now))
        except Exception as e:
            # one odd item must not sink the feed
            logger.warning(f"{profile.source}: skipping item {item.link!r}: {e}")
            result.dropped += 1

    return result


def _build_candidate(item: RssItem, profile: RssProfile, now: datetime) -> TenderCandidate:
    organization = extract_organization(item.title, profile.org_separators, profile.org_default)
    categories = profile.categorize(item)
    link = strip_query(item.link) if profile.strip_link_query else item.link
    description = truncate(item.description, DESCRIPTION_LIMIT) or fallback_description(organization, categories)

    return TenderCandidate(
        source=profile.source,
        source_id=derive_source_id(
            item,
            guid_segment=profile.guid_segment_id,
        ),
        source_url=link,
        title=item.title,
        organization=organization,
        categories=categories,
        description=description,
        location=profile.location,
        budget=0,
        deadline=profile.find_deadline(item) or future_date(now),
        published_at=parse_feed_date(item.pub_date, now),
    )
