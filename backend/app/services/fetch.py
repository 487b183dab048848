"""
Resilient GET for the open geodata services.

Every network-facing resolver goes through ``RetryableFetcher``:
up to ``attempts`` requests, waiting ``delay × attempt`` seconds between
them (linear backoff, attempt counted from 1).  After the last attempt
the last observed error is raised; resolvers are expected to catch it.

No circuit breaking or caching. Each call is independent.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import httpx

from app.config import settings
from app.services.errors import FetchError

logger = logging.getLogger(__name__)


class RetryableFetcher:
    def __init__(
        self,
        attempts: Optional[int] = None,
        delay: Optional[float] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.attempts = settings.fetch_attempts if attempts is None else attempts
        self.delay = settings.fetch_retry_delay if delay is None else delay
        self.timeout = settings.fetch_timeout if timeout is None else timeout
        self._client = client

    async def fetch(self, url: str, params: Optional[dict] = None) -> httpx.Response:
        """GET ``url``; return the first 2xx response or raise the last error."""
        last_error: Optional[Exception] = None

        for attempt in range(1, self.attempts + 1):
            try:
                resp = await self._get(url, params)
                if resp.is_success:
                    return resp
                last_error = FetchError(f"HTTP {resp.status_code}", status_code=resp.status_code)
            except httpx.HTTPError as exc:
                last_error = exc

            if attempt < self.attempts:
                wait = self.delay * attempt
                logger.warning(
                    "Retry %d/%d for %s in %.1fs (error: %s)",
                    attempt, self.attempts - 1, url, wait, last_error,
                )
                await asyncio.sleep(wait)

        if last_error is not None:
            logger.warning("All %d attempts failed for %s: %s", self.attempts, url, last_error)
            raise last_error
        raise FetchError("fetch failed")

    async def fetch_json(self, url: str, params: Optional[dict] = None) -> Any:
        """Like ``fetch`` but decode the body. Malformed JSON raises ``ValueError``."""
        resp = await self.fetch(url, params)
        return resp.json()

    async def _get(self, url: str, params: Optional[dict]) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(url, params=params)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.get(url, params=params)


def default_fetcher() -> RetryableFetcher:
    return RetryableFetcher()


# ──────────────────────────────────────────────────────────────────
# RESPONSE SHAPE
# ──────────────────────────────────────────────────────────────────

def item_list(data: Any, key: str = "features") -> list:
    """``data[key]`` when ``data`` is an object holding a list there, else []."""
    if not isinstance(data, dict):
        return []
    items = data.get(key)
    return items if isinstance(items, list) else []


def first_item(data: Any, key: str = "features") -> Optional[dict]:
    """First entry of ``data[key]`` if it is an object. Anything else is None."""
    items = item_list(data, key)
    if items and isinstance(items[0], dict):
        return items[0]
    return None


def dict_field(item: Any, key: str) -> dict:
    """``item[key]`` when it is an object, else {}."""
    value = item.get(key) if isinstance(item, dict) else None
    return value if isinstance(value, dict) else {}
