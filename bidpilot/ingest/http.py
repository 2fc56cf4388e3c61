# bidpilot/ingest/http.py
import asyncio
import logging
from typing import Awaitable, Callable, Optional

import aiohttp
from aiohttp import ClientTimeout

from bidpilot.core.settings import settings
from bidpilot.ingest.base import IngestError

logger = logging.getLogger(__name__)

# rate limited / temporarily unavailable: worth another try
RETRYABLE_STATUSES = {429, 503}

SleepFn = Callable[[float], Awaitable[None]]


class FetchError(IngestError):
    """Non-2xx response (or retries exhausted on one)."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class FeedFetcher:
    """
    GET a feed document with a bounded retry loop.

    Retries 429/503 responses, connection errors and timeouts up to
    `max_attempts` times, sleeping `backoff_seconds * attempt` between tries
    (2s, 4s with the defaults). Any other non-2xx status fails at once.
    """

    def __init__(
        self,
        *,
        timeout_seconds: Optional[float] = None,
        max_attempts: Optional[int] = None,
        backoff_seconds: Optional[float] = None,
        user_agent: Optional[str] = None,
        sleep: SleepFn = asyncio.sleep,
    ):
        self.timeout_seconds = settings.HTTP_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds
        self.max_attempts = max(1, settings.HTTP_MAX_ATTEMPTS if max_attempts is None else max_attempts)
        self.backoff_seconds = settings.HTTP_BACKOFF_SECONDS if backoff_seconds is None else backoff_seconds
        self.user_agent = user_agent or settings.HTTP_USER_AGENT
        self._sleep = sleep

    def _headers(self, accept: str) -> dict:
        return {
            "User-Agent": self.user_agent,
            "Accept": accept,
            "Accept-Language": "en-US,en;q=0.9",
        }

    async def fetch(self, url: str, accept: str = "*/*") -> bytes:
        """Return the raw body. Raises FetchError / aiohttp.ClientError / asyncio.TimeoutError."""
        timeout = ClientTimeout(total=self.timeout_seconds)
        last_exc: Optional[BaseException] = None

        async with aiohttp.ClientSession(timeout=timeout) as session:
            for attempt in range(1, self.max_attempts + 1):
                try:
                    async with session.get(url, headers=self._headers(accept)) as resp:
                        if 200 <= resp.status < 300:
                            body = await resp.read()
                            logger.debug(f"Fetched {url} ({len(body)} bytes, attempt {attempt})")
                            return body

                        error = FetchError(f"HTTP {resp.status}", status=resp.status)
                        if resp.status not in RETRYABLE_STATUSES:
                            raise error
                        last_exc = error

                except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                    last_exc = e

                if attempt < self.max_attempts:
                    delay = self.backoff_seconds * attempt
                    logger.warning(
                        f"Fetch failed for {url} (attempt {attempt}/{self.max_attempts}): "
                        f"{last_exc!r}. Retrying in {delay}s..."
                    )
                    await self._sleep(delay)

        logger.error(f"Giving up on {url} after {self.max_attempts} attempts: {last_exc!r}")
        raise last_exc
