from __future__ import annotations

from typing import Any

from tavily import AsyncTavilyClient

from app.models.pipeline import SearchHit


async def search(
    query: str,
    *,
    api_key: str,
    search_depth: str = "basic",
    max_results: int = 10,
    topic: str = "general",
) -> list[SearchHit]:
    """Execute a Tavily web search and map results onto search hits."""
    if not api_key:
        raise RuntimeError("TAVILY_API_KEY is not configured")

    client = AsyncTavilyClient(api_key=api_key)
    kwargs: dict[str, Any] = {
        "query": query,
        "search_depth": search_depth,
        "max_results": max_results,
        "topic": topic,
    }
    response = await client.search(**kwargs)

    return [
        SearchHit(title=str(r.get("title") or ""), url=str(r.get("url") or ""))
        for r in response.get("results", [])
        if isinstance(r, dict)
    ]
