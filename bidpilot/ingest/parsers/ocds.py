"""
Open Contracting Data Standard (OCDS) release parsing.

Every node in a release is optional in practice, so all access goes through
`_get` / `_dict` / `_list` which tolerate missing or wrongly-typed nodes.
"""
from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Union
from urllib.parse import quote

from bidpilot.ingest.base import (
    DEFAULT_CATEGORY,
    DEFAULT_LOCATION,
    FeedFormatError,
    ParseResult,
    TenderCandidate,
)
from bidpilot.ingest.categories import categorize_classification
from bidpilot.ingest.utils import clean_ws, decode_body, future_date, iso_date_part, truncate

logger = logging.getLogger(__name__)

TITLE_LIMIT = 200
DESCRIPTION_LIMIT = 500
# budgets are stored as a signed 64-bit integer
MAX_BUDGET = 2**63 - 1


@dataclass
class OcdsProfile:
    source: str
    release_url_template: str        # formatted with ocid=<url-encoded ocid>
    id_prefix: str
    org_default: str = "Nigerian Government"
    location: str = DEFAULT_LOCATION


# --------------------------
# tolerant accessors
# --------------------------

def _dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _get(node: Any, *path: str) -> Any:
    cur = node
    for key in path:
        if not isinstance(cur, dict):
            return None
        cur = cur.get(key)
    return cur


def _text(value: Any) -> str:
    return clean_ws(value) if isinstance(value, str) else ""


def _amount(value: Any) -> int:
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, int):
        amount = value
    else:
        try:
            number = float(value)
        except (TypeError, ValueError, OverflowError):
            return 0
        if not math.isfinite(number):
            return 0
        amount = int(number)
    return amount if 0 <= amount <= MAX_BUDGET else 0


# --------------------------
# field extraction
# --------------------------

def _buyer_party(release: Dict[str, Any]) -> Dict[str, Any]:
    for party in _list(release.get("parties")):
        roles = _list(_get(party, "roles"))
        if "buyer" in roles:
            return _dict(party)
    return {}


def extract_organization(release: Dict[str, Any], default: str) -> str:
    return (
        _text(_get(release, "buyer", "name"))
        or _text(_buyer_party(release).get("name"))
        or default
    )


def extract_location(release: Dict[str, Any], default: str) -> str:
    address = _dict(_buyer_party(release).get("address"))
    first_item = _dict(next(iter(_list(_get(release, "tender", "items"))), None))
    return (
        _text(address.get("region"))
        or _text(address.get("locality"))
        or _text(_get(first_item, "deliveryLocation", "description"))
        or default
    )


def extract_budget(release: Dict[str, Any]) -> int:
    amount = _amount(_get(release, "tender", "value", "amount"))
    if amount:
        return amount
    return _amount(_get(release, "planning", "budget", "amount", "amount"))


def extract_category(tender: Dict[str, Any]) -> str:
    items = _list(tender.get("items"))
    if items:
        classification = _text(_get(items[0], "classification", "description"))
        if classification:
            return categorize_classification(classification)
    method_details = _text(tender.get("procurementMethodDetails"))
    if method_details:
        return categorize_classification(method_details)
    return DEFAULT_CATEGORY


def parse_release(
    release: Any,
    profile: OcdsProfile,
    *,
    now: datetime,
    index: int = 0,
) -> Optional[TenderCandidate]:
    """One release → candidate, or None when there is no usable tender node."""
    if not isinstance(release, dict):
        return None
    tender = release.get("tender")
    if not isinstance(tender, dict):
        return None

    title = (
        _text(tender.get("title"))
        or _text(_get(release, "planning", "budget", "description"))
        or "Untitled Tender"
    )
    ocid = _text(release.get("ocid")) or f"{profile.id_prefix}-{int(now.timestamp() * 1000)}-{index}"
    organization = extract_organization(release, profile.org_default)

    items = _list(tender.get("items"))
    method = _text(tender.get("procurementMethod")) or "Open"
    description = (
        _text(tender.get("description"))
        or f"{method.capitalize()} procurement by {organization}. {len(items)} items."
    )
    category = extract_category(tender)

    return TenderCandidate(
        source=profile.source,
        source_id=ocid,
        source_url=profile.release_url_template.format(ocid=quote(ocid, safe="")),
        title=truncate(title, TITLE_LIMIT),
        organization=organization,
        categories=[category],
        description=truncate(description, DESCRIPTION_LIMIT),
        location=extract_location(release, profile.location),
        budget=extract_budget(release),
        deadline=iso_date_part(_get(tender, "tenderPeriod", "endDate")) or future_date(now),
        published_at=iso_date_part(release.get("date")) or now.date(),
    )


# --------------------------
# main entrypoint
# --------------------------

def load_releases(raw: Union[bytes, str]) -> List[Any]:
    """Raises FeedFormatError if the body is not a JSON object."""
    try:
        data = json.loads(decode_body(raw))
    except (json.JSONDecodeError, ValueError) as e:
        raise FeedFormatError(f"invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise FeedFormatError("expected a JSON object with a 'releases' array")
    return _list(data.get("releases")) or _list(data.get("results"))


def parse_ocds(raw: Union[bytes, str], profile: OcdsProfile, *, now: datetime) -> ParseResult:
    result = ParseResult()
    for index, release in enumerate(load_releases(raw)):
        try:
            candidate = parse_release(release, profile, now=now, index=index)
        except Exception as e:
            logger.warning(f"{profile.source}: failed to parse release #{index}: {e}")
            candidate = None
        if candidate is None:
            result.dropped += 1
            continue
        result.candidates.append(candidate)
    return result
