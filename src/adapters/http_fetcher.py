"""httpx content fetcher adapter.

Implements the core ContentFetcher port. One attempt per call, no retries;
the timeout is enforced here at the transport boundary.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from core.errors import FetchError, ReadError

LOGGER = logging.getLogger(__name__)


class HttpFetcher:
    """Fetch a URL with a shared AsyncClient and buffer the whole body."""

    def __init__(
        self,
        timeout_seconds: float = 15.0,
        user_agent: str = "telescrape/1.0",
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(
            follow_redirects=True,
            headers={"User-Agent": user_agent},
            timeout=timeout_seconds,
        )

    async def fetch(self, url: str) -> bytes:
        """Return the response body; map httpx failures onto core errors."""

        try:
            async with self._client.stream("GET", url) as response:
                response.raise_for_status()
                try:
                    return await response.aread()
                except httpx.HTTPError as exc:
                    LOGGER.warning("Reading %s failed: %s", url, exc)
                    raise ReadError(f"Failed to read {url}: {exc}") from exc
        except ReadError:
            raise
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            LOGGER.warning("Fetching %s failed: %s", url, exc)
            raise FetchError(f"Failed to fetch {url}: {exc}") from exc

    async def aclose(self) -> None:
        await self._client.aclose()
