# bidpilot/ingest/base.py

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional


# ----------------------------------------------------------------------
# Constants
# ----------------------------------------------------------------------
SCHEDULER_SOURCE = "scheduler"

ACTION_START = "start"
ACTION_FETCH = "fetch"
ACTION_PARSE = "parse"
ACTION_INSERT = "insert"
ACTION_SKIP = "skip"
ACTION_ERROR = "error"
ACTION_COMPLETE = "complete"

LOG_ACTIONS = (
    ACTION_START,
    ACTION_FETCH,
    ACTION_PARSE,
    ACTION_INSERT,
    ACTION_SKIP,
    ACTION_ERROR,
    ACTION_COMPLETE,
)

STATUS_QUALIFIED = "qualified"
STATUS_PARTIAL = "partial"
STATUS_LOW = "low"

DEFAULT_CATEGORY = "General"
DEFAULT_LOCATION = "Nigeria"
DEADLINE_FALLBACK_DAYS = 30


# ----------------------------------------------------------------------
# Errors
# ----------------------------------------------------------------------
class IngestError(Exception):
    """Base class for ingestion failures that abort one source's run."""


class FeedFormatError(IngestError):
    """The top-level document is not a readable feed at all."""


# ----------------------------------------------------------------------
# Records
# ----------------------------------------------------------------------
@dataclass
class TenderCandidate:
    # ------------------------------------------------------------------
    # Source / identity
    # ------------------------------------------------------------------
    source: str                      # e.g. "publicprocurement.ng"
    source_id: str                   # only unique within `source`
    source_url: str                  # link back to the original listing
    title: str

    # ------------------------------------------------------------------
    # Descriptive / classification
    # ------------------------------------------------------------------
    organization: str = "Unknown Organization"
    categories: List[str] = field(default_factory=list)  # primary first, max 3
    description: str = ""
    location: str = DEFAULT_LOCATION
    budget: int = 0

    # ------------------------------------------------------------------
    # Dates
    # ------------------------------------------------------------------
    deadline: Optional[date] = None
    published_at: Optional[date] = None

    @property
    def category(self) -> str:
        return self.categories[0] if self.categories else DEFAULT_CATEGORY

    def to_record(self, scraped_at: datetime) -> Dict[str, Any]:
        """Row for the tenders table. Matching fields start out empty."""
        return {
            "source": self.source,
            "source_id": self.source_id,
            "source_url": self.source_url,
            "title": self.title,
            "organization": self.organization,
            "category": self.category,
            "categories": list(self.categories) or [self.category],
            "description": self.description,
            "location": self.location,
            "budget": int(self.budget or 0),
            "deadline": self.deadline,
            "published_at": self.published_at,
            "requirements": [],
            "missing": [],
            "status": STATUS_PARTIAL,
            "scraped_at": scraped_at,
        }


@dataclass
class ParseResult:
    """What a source parser got out of one document."""
    candidates: List[TenderCandidate] = field(default_factory=list)
    dropped: int = 0                 # malformed items/releases skipped

    @property
    def total(self) -> int:
        return len(self.candidates) + self.dropped


@dataclass
class ScrapeResult:
    scraped: int = 0
    added: int = 0
    skipped: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"scraped": self.scraped, "added": self.added, "skipped": self.skipped}


@dataclass
class SourceOutcome:
    """One source's line in a scrape cycle's result list."""
    source: str
    added: int = 0
    skipped: int = 0
    scraped: int = 0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "source": self.source,
            "added": self.added,
            "skipped": self.skipped,
            "scraped": self.scraped,
        }
        if self.error is not None:
            out["error"] = self.error
        return out


@dataclass(frozen=True)
class FeedSource:
    """Where a source lives and how to read what comes back."""
    source_id: str
    url: str
    accept: str
    parse: Callable[..., ParseResult]   # parse(raw, *, now) -> ParseResult
