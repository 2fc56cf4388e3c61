from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional
import os


def _coerce_asyncpg_url(url: str) -> str:
    """Convert common Postgres URLs to asyncpg DSN for SQLAlchemy."""
    if not url:
        return url
    # Heroku provides postgres:// or postgresql://
    if url.startswith("postgres://"):
        return "postgresql+asyncpg://" + url[len("postgres://"):]
    if url.startswith("postgresql://"):
        return "postgresql+asyncpg://" + url[len("postgresql://"):]
    return url


class Settings(BaseSettings):
    # ------------------------------------------------------------------
    # Environment
    # ------------------------------------------------------------------
    ENV: str = "local"
    LOG_LEVEL: str = "INFO"

    # ------------------------------------------------------------------
    # Database
    # ------------------------------------------------------------------
    # Optional here to allow Heroku-style DATABASE_URL fallback.
    DB_URL: Optional[str] = None  # resolved at runtime if missing

    # ------------------------------------------------------------------
    # Scheduler
    # ------------------------------------------------------------------
    TIMEZONE: str = "Africa/Lagos"
    SCRAPE_INTERVAL_MINUTES: int = 5
    START_SCHEDULER_WEB: bool = False      # start APScheduler in the web process
    RUN_DDL_ON_START: bool = True          # run create_all on startup (disable in prod)

    # sources pulled out of rotation, e.g. DISABLED_SOURCES='["etenders.com.ng"]'
    DISABLED_SOURCES: List[str] = []

    # ------------------------------------------------------------------
    # Scrape log retention
    # ------------------------------------------------------------------
    LOG_RETENTION_DAYS: int = 7
    LOG_CLEANUP_BATCH: int = 500

    # ------------------------------------------------------------------
    # HTTP fetching
    # ------------------------------------------------------------------
    HTTP_TIMEOUT_SECONDS: float = 30.0
    HTTP_MAX_ATTEMPTS: int = 3
    HTTP_BACKOFF_SECONDS: float = 2.0
    HTTP_USER_AGENT: str = "Mozilla/5.0 (compatible; BidPilot/1.0; +https://bidpilot.ng/bot)"

    # ------------------------------------------------------------------
    # Operator access (identity comes from the upstream auth layer)
    # ------------------------------------------------------------------
    ADMIN_EMAIL: str = "admin@example.com"
    IDENTITY_HEADER: str = "X-Operator-Email"

    # ------------------------------------------------------------------
    # Model configuration
    # ------------------------------------------------------------------
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",  # ignore any unrecognized vars instead of erroring
    )


# create global settings instance and normalize DB URL
settings = Settings()

# Fallback: allow DATABASE_URL and coerce to asyncpg
if not settings.DB_URL:
    fallback = os.getenv("DATABASE_URL", "")
    settings.DB_URL = _coerce_asyncpg_url(fallback) if fallback else "sqlite+aiosqlite:///./bidpilot.db"

# Also coerce explicit DB_URL if it was provided in sync form
settings.DB_URL = _coerce_asyncpg_url(settings.DB_URL)
