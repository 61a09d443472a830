from __future__ import annotations

import httpx
from loguru import logger

from app.errors import UpstreamFetchError


class PageFetcher:
    """Single-attempt HTML fetcher that never raises.

    Network errors, timeouts and non-2xx responses all come back as ``""``.
    """

    def __init__(
        self,
        *,
        timeout_seconds: float = 10.0,
        user_agent: str = "AnswerEngineBot/1.0",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout_seconds = max(float(timeout_seconds), 1.0)
        self.user_agent = user_agent
        self._transport = transport

    async def fetch(self, url: str) -> str:
        logger.debug(f"Fetching page content for {url}")
        try:
            return await self._fetch_once(url)
        except UpstreamFetchError as exc:
            logger.warning(f"Skipping page {url}: {exc.reason}")
        except Exception as exc:
            logger.warning(f"Error fetching page content for {url}: {exc!r}")
        return ""

    async def _fetch_once(self, url: str) -> str:
        async with httpx.AsyncClient(
            timeout=self.timeout_seconds,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            response = await client.get(url, headers={"User-Agent": self.user_agent})
        if not response.is_success:
            raise UpstreamFetchError(url, f"status {response.status_code}")
        return response.text
