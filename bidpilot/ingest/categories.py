# bidpilot/ingest/categories.py
#
# Goal:
# - Map the category labels Nigerian tender feeds use onto a small, stable
#   vocabulary the dashboard filters on
# - Two passes: exact labels (feeds that tag items) and substring rules
#   (feeds that only give free text / OCDS classification descriptions)
# - Deterministic and case-insensitive; no I/O
#
# Usage (quick):
#     from bidpilot.ingest.categories import normalize_label, detect_category
#     normalize_label("Construction & Engineering")   # -> "Construction"
#     detect_category("Supply of hospital beds")       # -> "Supplies"

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional, Tuple

from bidpilot.ingest.base import DEFAULT_CATEGORY
from bidpilot.ingest.utils import clean_ws, decode_entities, is_date_label

# ---------------------------------------------------------------------------
# 1. Canonical vocabulary
# ---------------------------------------------------------------------------
# Keep these names stable: they are stored on tenders.category and shown in
# the UI filters.
CONSTRUCTION = "Construction"
ICT = "ICT"
CONSULTANCY = "Consultancy"
SUPPLIES = "Supplies"
HEALTHCARE = "Healthcare"
SOLAR_RENEWABLE = "Solar & Renewable"
SERVICES = "Services"
OIL_GAS = "Oil & Gas"
EDUCATION = "Education"
ENERGY = "Energy"
GENERAL = DEFAULT_CATEGORY

CANONICAL_CATEGORIES = (
    CONSTRUCTION,
    ICT,
    CONSULTANCY,
    SUPPLIES,
    HEALTHCARE,
    SOLAR_RENEWABLE,
    SERVICES,
    OIL_GAS,
    EDUCATION,
    ENERGY,
    GENERAL,
)

MAX_LABEL_LENGTH = 50
MAX_CATEGORIES = 3

# ---------------------------------------------------------------------------
# 2. Exact label table (keys are normalized with _label_key)
# ---------------------------------------------------------------------------
# publicprocurement.ng tags
LABELS: Dict[str, str] = {
    "construction": CONSTRUCTION,
    "construction and engineering": CONSTRUCTION,
    "rehabilitation/renovations": CONSTRUCTION,
    "rehabilitation renovations": CONSTRUCTION,
    "ict and software": ICT,
    "ict software": ICT,
    "ict": ICT,
    "information technology": ICT,
    "computer hardware": ICT,
    "consultancy": CONSULTANCY,
    "furniture and furnishing": SUPPLIES,
    "office equipment and supplies": SUPPLIES,
    "office equipment supplies": SUPPLIES,
    "general supplies and services": SUPPLIES,
    "supplies": SUPPLIES,
    "solar and renewable": SOLAR_RENEWABLE,
    "conference hall": SERVICES,
    "services": SERVICES,
    "healthcare": HEALTHCARE,
}

# etenders.com.ng adds a few sector labels of its own
ETENDERS_LABELS: Dict[str, str] = {
    **LABELS,
    "oil and gas": OIL_GAS,
    "education": EDUCATION,
}

# ---------------------------------------------------------------------------
# 3. Substring rules (ordered: first hit wins)
# ---------------------------------------------------------------------------
# used for OCDS item classifications and procurement-method strings
OCDS_RULES: List[Tuple[str, Tuple[str, ...]]] = [
    (CONSTRUCTION, ("construct", "building", "civil")),
    (ICT, ("ict", "computer", "software", "technology")),
    (CONSULTANCY, ("consult",)),
    (HEALTHCARE, ("health", "medical", "pharma")),
    (SUPPLIES, ("supply", "goods", "equipment")),
    (SERVICES, ("service",)),
]

# tendersnigeria.com only gives us title + blurb, so the net is wider
TEXT_RULES: List[Tuple[str, Tuple[str, ...]]] = [
    (CONSTRUCTION, ("construct", "building", "road", "bridge")),
    (ICT, ("ict", "software", "computer", "technology", "digital")),
    (CONSULTANCY, ("consult",)),
    (SUPPLIES, ("supply", "procurement", "goods", "equipment")),
    (HEALTHCARE, ("health", "medical", "hospital", "pharma")),
    (OIL_GAS, ("oil", "gas", "petroleum")),
    (ENERGY, ("solar", "renewable", "energy")),
    (SERVICES, ("service",)),
]


def _label_key(label: str) -> str:
    k = decode_entities(label).lower().replace("&", " and ")
    return clean_ws(k)


def normalize_label(raw: Optional[str], table: Optional[Dict[str, str]] = None) -> str:
    """
    Exact-label pass. Unknown labels pass through (trimmed, max 50 chars).
    Returns "" for labels that are not categories at all (dates, "N/A").
    """
    label = clean_ws(decode_entities(raw or ""))
    if not label or label.upper() == "N/A" or is_date_label(label):
        return ""
    mapping = LABELS if table is None else table
    return mapping.get(_label_key(label)) or label[:MAX_LABEL_LENGTH].strip()


def normalize_labels(
    raw_labels: Iterable[str],
    table: Optional[Dict[str, str]] = None,
    limit: int = MAX_CATEGORIES,
) -> List[str]:
    """Normalize, drop non-categories, de-duplicate (keeping order), cap."""
    out: List[str] = []
    for raw in raw_labels:
        cat = normalize_label(raw, table)
        if cat and cat not in out:
            out.append(cat)
    return out[:limit]


def _match_rules(text: str, rules: List[Tuple[str, Tuple[str, ...]]]) -> Optional[str]:
    lower = text.lower()
    for category, needles in rules:
        if any(n in lower for n in needles):
            return category
    return None


def categorize_classification(text: Optional[str]) -> str:
    """
    OCDS classification / procurement method text → category.
    Unmatched text passes through (max 50 chars); empty → General.
    """
    t = clean_ws(text)
    if not t:
        return GENERAL
    return _match_rules(t, OCDS_RULES) or t[:MAX_LABEL_LENGTH].strip()


def detect_category(text: Optional[str], default: str = GENERAL) -> str:
    """Free-text (title + description) → category, `default` when nothing matches."""
    t = clean_ws(text)
    if not t:
        return default
    return _match_rules(t, TEXT_RULES) or default


def slug(category: str) -> str:
    """'Solar & Renewable' → 'solar-renewable' (used in API paths)."""
    return re.sub(r"[^a-z0-9]+", "-", category.lower()).strip("-")


def category_from_slug(value: str) -> str:
    """Accepts either the display name or its slug; unknown values pass through."""
    wanted = slug(value)
    for category in CANONICAL_CATEGORIES:
        if slug(category) == wanted:
            return category
    return value
