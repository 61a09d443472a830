from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from app.errors import UpstreamProviderError
from app.models.pipeline import SearchHit
from app.tools import tavily_search
from app.tools.serper_search import SerperClient

SUPPORTED_PROVIDERS = ("serper", "tavily")


@dataclass
class SearchResponse:
    results: list[SearchHit]
    provider: str
    fallback_from: str | None = None
    fallback_reason: str | None = None


class WebSearchClient:
    """Dispatches a query to the configured web search provider.

    With ``fallback_enabled`` an error or an empty result from the primary
    provider is retried once on the other provider.
    """

    def __init__(
        self,
        *,
        provider: str,
        serper: SerperClient,
        tavily_api_key: str = "",
        fallback_enabled: bool = False,
    ):
        self.provider = provider.lower().strip()
        if self.provider not in SUPPORTED_PROVIDERS:
            raise ValueError(f"Unsupported SEARCH_PROVIDER: {provider}")
        self.serper = serper
        self.tavily_api_key = tavily_api_key
        self.fallback_enabled = fallback_enabled

    async def _search_with(self, provider: str, query: str) -> list[SearchHit]:
        if provider == "serper":
            return await self.serper.search(query)
        return await tavily_search.search(query, api_key=self.tavily_api_key)

    async def search(self, query: str) -> SearchResponse:
        primary = self.provider
        secondary = "tavily" if primary == "serper" else "serper"

        try:
            results = await self._search_with(primary, query)
        except Exception as e:
            if not self.fallback_enabled:
                raise UpstreamProviderError(primary, str(e)) from e
            logger.warning(f"{primary} search failed, falling back to {secondary}: {e}")
            return await self._fallback(secondary, query, primary, str(e))

        if results or not self.fallback_enabled:
            return SearchResponse(results=results, provider=primary)
        return await self._fallback(
            secondary, query, primary, f"{primary} returned zero results"
        )

    async def _fallback(
        self, provider: str, query: str, fallback_from: str, reason: str
    ) -> SearchResponse:
        try:
            results = await self._search_with(provider, query)
        except Exception as e:
            raise UpstreamProviderError(provider, str(e)) from e
        return SearchResponse(
            results=results,
            provider=provider,
            fallback_from=fallback_from,
            fallback_reason=reason,
        )
