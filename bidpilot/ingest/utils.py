# bidpilot/ingest/utils.py
import hashlib
import html
import re
from datetime import date, datetime, timedelta
from email.utils import parsedate_to_datetime
from typing import Iterable, Optional, Union
from urllib.parse import urlsplit

from bs4 import BeautifulSoup

from bidpilot.ingest.base import DEADLINE_FALLBACK_DAYS

# DD/MM/YYYY, as printed in publicprocurement.ng category tags
DDMMYYYY_RE = re.compile(r"(\d{2})/(\d{2})/(\d{4})")
# looser variant for free text: 1-2 digit day/month, "/" or "-"
LOOSE_DATE_RE = re.compile(r"(\d{1,2})[/-](\d{1,2})[/-](\d{4})")

_WS_RE = re.compile(r"\s+")
_TAG_RE = re.compile(r"<[^>]+>")


# --------------------------
# text
# --------------------------

def decode_body(raw: Union[bytes, str]) -> str:
    """
    Decode a feed body. Feeds are supposed to be UTF-8, but the smaller
    Nigerian portals occasionally serve Windows-1252.
    Tries: utf-8 → cp1252 → latin-1
    """
    if isinstance(raw, str):
        return raw
    for enc in ("utf-8", "cp1252"):
        try:
            return raw.decode(enc)
        except UnicodeDecodeError:
            pass
    # Final fallback: latin-1 (never fails)
    return raw.decode("latin-1", errors="replace")


def clean_ws(text: Optional[str]) -> str:
    return _WS_RE.sub(" ", text or "").strip()


def decode_entities(text: Optional[str]) -> str:
    # twice: WordPress feeds double-encode ampersands ("&amp;#038;")
    return html.unescape(html.unescape(text or ""))


def unwrap_cdata(text: Optional[str]) -> str:
    t = (text or "").strip()
    if t.startswith("<![CDATA[") and t.endswith("]]>"):
        return t[len("<![CDATA["):-len("]]>")]
    return t


def html_to_text(fragment: Optional[str]) -> str:
    """Strip markup, decode entities and collapse whitespace."""
    text = decode_entities(unwrap_cdata(fragment))
    if "<" in text and ">" in text:
        text = BeautifulSoup(text, "html.parser").get_text(" ", strip=True)
        # stray tags inside attribute-less fragments BeautifulSoup left alone
        text = _TAG_RE.sub(" ", text)
    return clean_ws(text)


def truncate(text: Optional[str], limit: int) -> str:
    t = text or ""
    return t if len(t) <= limit else t[:limit].rstrip()


# --------------------------
# dates
# --------------------------

def future_date(now: datetime, days: int = DEADLINE_FALLBACK_DAYS) -> date:
    return (now + timedelta(days=days)).date()


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def find_ddmmyyyy(text: Optional[str], pattern: re.Pattern = DDMMYYYY_RE) -> Optional[date]:
    """First valid DD/MM/YYYY date in `text`; impossible dates are skipped."""
    for m in pattern.finditer(text or ""):
        day, month, year = (int(g) for g in m.groups())
        d = _safe_date(year, month, day)
        if d:
            return d
    return None


def first_ddmmyyyy(values: Iterable[str]) -> Optional[date]:
    for v in values:
        d = find_ddmmyyyy(v)
        if d:
            return d
    return None


def is_date_label(label: str) -> bool:
    return bool(re.fullmatch(r"\s*\d{1,2}/\d{1,2}/\d{4}\s*", label or ""))


def parse_feed_date(value: Optional[str], now: datetime) -> date:
    """
    RSS pubDate (RFC 822) or an ISO date/datetime. Falls back to today.

    "Tue, 03 Mar 2026 09:15:00 +0000" → 2026-03-03
    "2026-03-03T09:15:00Z"            → 2026-03-03
    """
    v = (value or "").strip()
    if v:
        try:
            return parsedate_to_datetime(v).date()
        except (TypeError, ValueError, IndexError):
            pass
        d = iso_date_part(v)
        if d:
            return d
    return now.date()


def iso_date_part(value: Optional[str]) -> Optional[date]:
    """Date portion of an ISO-8601 string ("2026-03-10T17:00:00Z" → 2026-03-10)."""
    if not value or not isinstance(value, str):
        return None
    m = re.match(r"\s*(\d{4})-(\d{2})-(\d{2})", value)
    if not m:
        return None
    year, month, day = (int(g) for g in m.groups())
    return _safe_date(year, month, day)


# --------------------------
# identity
# --------------------------

def strip_query(link: str) -> str:
    return link.split("?", 1)[0].split("#", 1)[0]


def last_path_segment(url: Optional[str]) -> str:
    if not url:
        return ""
    path = urlsplit(url.strip()).path if "://" in url else url.strip()
    parts = [p for p in path.split("/") if p]
    return parts[-1] if parts else ""


def title_hash_id(title: str) -> str:
    digest = hashlib.sha1((title or "").strip().lower().encode("utf-8")).hexdigest()
    return f"hash-{digest[:12]}"


def extract_organization(
    title: str,
    separators: str = "-–—",
    default: str = "Unknown Organization",
) -> str:
    """
    Agency name is usually the part of the title before the first dash:
        "Federal Ministry of Works - Bridge Maintenance" → "Federal Ministry of Works"
    Segments of 3 chars or fewer (and runaway segments of 150+) are skipped.
    """
    pattern = "[" + re.escape(separators) + "]"
    for part in re.split(pattern, title or ""):
        seg = clean_ws(part)
        if 3 < len(seg) < 150:
            return seg
    return default
