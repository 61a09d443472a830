from __future__ import annotations

from typing import Any

import httpx

from app.models.pipeline import SearchHit

SERPER_BASE_URL = "https://google.serper.dev"


class SerperClient:
    """Thin async client for the Serper Google search API."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = SERPER_BASE_URL,
        timeout_seconds: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/") or SERPER_BASE_URL
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def _post(self, endpoint: str, query: str) -> dict[str, Any]:
        if not self.api_key:
            raise RuntimeError("SERPER_API_KEY is not configured")

        async with httpx.AsyncClient(
            timeout=self.timeout_seconds, transport=self._transport
        ) as client:
            response = await client.post(
                f"{self.base_url}/{endpoint}",
                json={"q": query},
                headers={
                    "Content-Type": "application/json",
                    "X-API-KEY": self.api_key,
                },
            )
            response.raise_for_status()
            payload = response.json()
        return payload if isinstance(payload, dict) else {}

    async def search(self, query: str) -> list[SearchHit]:
        """Run a web search; entries keep the provider's relevance order."""
        payload = await self._post("search", query)
        return [
            SearchHit(
                title=str(item.get("title") or ""),
                url=str(item.get("link") or ""),
            )
            for item in payload.get("organic") or []
            if isinstance(item, dict)
        ]

    async def images(self, query: str) -> list[dict[str, Any]]:
        payload = await self._post("images", query)
        return [item for item in payload.get("images") or [] if isinstance(item, dict)]

    async def videos(self, query: str) -> list[dict[str, Any]]:
        payload = await self._post("videos", query)
        return [item for item in payload.get("videos") or [] if isinstance(item, dict)]
