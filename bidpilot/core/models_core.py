# bidpilot/core/models_core.py
from sqlalchemy import (
    Table, Column, MetaData, String, Date, DateTime, Text, JSON, Float,
    BigInteger, Integer, Index, UniqueConstraint,
)

metadata = MetaData()

tenders = Table(
    "tenders",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),

    # ------------------------------------------------------
    # Source identity: (source, source_id) is the natural key
    # ------------------------------------------------------
    Column("source", String, nullable=False),      # e.g. "publicprocurement.ng"
    Column("source_id", String, nullable=False),   # post slug, OCID, guid token
    Column("source_url", String),

    # ------------------------------------------------------
    # Content and classification
    # ------------------------------------------------------
    Column("title", String, nullable=False),
    Column("organization", String, nullable=False),
    Column("category", String, nullable=False),    # primary category
    Column("categories", JSON),                    # up to 3, primary first
    Column("description", Text),
    Column("location", String),
    Column("budget", BigInteger, default=0),       # naira, 0 when not stated

    # ------------------------------------------------------
    # Dates
    # ------------------------------------------------------
    Column("deadline", Date, nullable=False),
    Column("published_at", Date),

    # ------------------------------------------------------
    # Matching (filled in downstream, never by ingestion)
    # ------------------------------------------------------
    Column("requirements", JSON),
    Column("missing", JSON),
    Column("match_score", Float),
    Column("status", String, default="partial"),   # qualified | partial | low

    # ------------------------------------------------------
    # Bookkeeping
    # ------------------------------------------------------
    Column("scraped_at", DateTime, nullable=False),

    UniqueConstraint("source", "source_id", name="uq_tenders_source_source_id"),
    Index("ix_tenders_deadline", "deadline"),
    Index("ix_tenders_category", "category"),
    Index("ix_tenders_scraped_at", "scraped_at"),
)

scraper_logs = Table(
    "scraper_logs",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("source", String, nullable=False),      # source id or "scheduler"
    Column("action", String, nullable=False),      # start | fetch | parse | insert | skip | error | complete
    Column("message", Text, nullable=False),
    Column("meta", JSON),                          # count / added / skipped / error / url / tender_id ...
    Column("timestamp", DateTime, nullable=False),

    Index("ix_scraper_logs_timestamp", "timestamp"),
    Index("ix_scraper_logs_source_timestamp", "source", "timestamp"),
)
