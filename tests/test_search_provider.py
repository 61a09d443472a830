from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from app.errors import UpstreamProviderError
from app.models.pipeline import SearchHit
from app.tools.search_provider import WebSearchClient
from app.tools.serper_search import SerperClient


def _serper(handler, api_key: str = "test-key") -> SerperClient:
    return SerperClient(api_key, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_serper_search_maps_organic_results():
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["key"] = request.headers["x-api-key"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "organic": [
                    {"title": "Quicksort - Wikipedia", "link": "https://en.wikipedia.org/wiki/Quicksort"},
                    {"title": "No link"},
                ]
            },
        )

    hits = await _serper(handler).search("explain quicksort")

    assert seen == {"path": "/search", "key": "test-key", "body": {"q": "explain quicksort"}}
    assert hits[0] == SearchHit(title="Quicksort - Wikipedia", url="https://en.wikipedia.org/wiki/Quicksort")
    assert hits[1].url == ""


@pytest.mark.asyncio
async def test_serper_media_endpoints_return_raw_items():
    def handler(request: httpx.Request) -> httpx.Response:
        key = request.url.path.strip("/")
        return httpx.Response(200, json={key: [{"title": key, "imageUrl": "https://img.example/x.png"}]})

    serper = _serper(handler)
    assert (await serper.images("cats"))[0]["title"] == "images"
    assert (await serper.videos("cats"))[0]["title"] == "videos"


@pytest.mark.asyncio
async def test_serper_without_key_raises():
    with pytest.raises(RuntimeError):
        await _serper(lambda request: httpx.Response(200), api_key="").search("q")


def test_unsupported_provider_raises():
    with pytest.raises(ValueError):
        WebSearchClient(provider="unknown-provider", serper=_serper(lambda r: httpx.Response(200)))


@pytest.mark.asyncio
async def test_primary_failure_without_fallback_raises_provider_error():
    client = WebSearchClient(
        provider="serper",
        serper=_serper(lambda request: httpx.Response(500)),
    )
    with pytest.raises(UpstreamProviderError) as exc_info:
        await client.search("q")
    assert exc_info.value.provider == "serper"


@pytest.mark.asyncio
async def test_fallback_to_tavily_when_serper_fails():
    client = WebSearchClient(
        provider="serper",
        serper=_serper(lambda request: httpx.Response(500)),
        tavily_api_key="tv-key",
        fallback_enabled=True,
    )
    tavily_hits = [SearchHit(title="T", url="https://t.example")]
    with patch("app.tools.search_provider.tavily_search.search", new=AsyncMock(return_value=tavily_hits)):
        response = await client.search("q")

    assert response.provider == "tavily"
    assert response.fallback_from == "serper"
    assert response.results == tavily_hits


@pytest.mark.asyncio
async def test_empty_primary_result_triggers_fallback_when_enabled():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"organic": [{"title": "S", "link": "https://s.example"}]})

    client = WebSearchClient(
        provider="tavily",
        serper=_serper(handler),
        tavily_api_key="tv-key",
        fallback_enabled=True,
    )
    with patch("app.tools.search_provider.tavily_search.search", new=AsyncMock(return_value=[])):
        response = await client.search("q")

    assert response.provider == "serper"
    assert response.fallback_reason == "tavily returned zero results"
    assert response.results[0].url == "https://s.example"


@pytest.mark.asyncio
async def test_empty_primary_result_is_returned_when_fallback_disabled():
    client = WebSearchClient(
        provider="serper",
        serper=_serper(lambda request: httpx.Response(200, json={"organic": []})),
    )
    response = await client.search("hey")
    assert response.results == []
    assert response.provider == "serper"
