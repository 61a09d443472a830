from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

import httpx
from loguru import logger

MAX_MEDIA_RESULTS = 9


class MediaValidator:
    """Checks that candidate media URLs exist and actually serve an image."""

    def __init__(
        self,
        *,
        timeout_seconds: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def is_image(self, client: httpx.AsyncClient, url: Any) -> bool:
        if not isinstance(url, str) or not url:
            return False
        try:
            response = await client.head(url)
        except Exception as exc:
            logger.debug(f"Error fetching image link {url}: {exc!r}")
            return False
        if not response.is_success:
            logger.debug(f"Image link {url} returned status {response.status_code}")
            return False
        content_type = response.headers.get("content-type", "")
        return content_type.lower().startswith("image/")

    async def filter_valid(
        self,
        candidates: list[dict[str, Any]],
        *,
        url_of: Callable[[dict[str, Any]], Any] = lambda item: item.get("imageUrl"),
        limit: int = MAX_MEDIA_RESULTS,
    ) -> list[dict[str, Any]]:
        """Keep candidates whose image URL passes the check, in their original order."""
        if not candidates:
            return []
        async with httpx.AsyncClient(
            timeout=self.timeout_seconds,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            checks: list[Awaitable[bool]] = [
                self.is_image(client, url_of(item)) for item in candidates
            ]
            verdicts = await asyncio.gather(*checks)
        survivors = [item for item, ok in zip(candidates, verdicts) if ok]
        return survivors[: max(limit, 0)]
