from __future__ import annotations

import httpx
import pytest

from app.agents.enrichment import FOLLOW_UPS_FALLBACK, EnrichmentService
from app.llm_client import ChatClient
from app.tools.media_validator import MAX_MEDIA_RESULTS, MediaValidator
from app.tools.serper_search import SerperClient
from conftest import FakeCompletions, fake_openai


def _head_handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path.endswith(".png"):
        return httpx.Response(200, headers={"content-type": "image/png"})
    if path.endswith(".html"):
        return httpx.Response(200, headers={"content-type": "text/html; charset=utf-8"})
    if path.endswith(".gone"):
        return httpx.Response(404)
    raise httpx.ConnectError("unreachable", request=request)


def _media_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/images":
        return httpx.Response(
            200,
            json={
                "images": [
                    {"title": "Diagram", "imageUrl": "https://img.example/diagram.png", "link": "https://a.example"},
                    {"title": "Page", "imageUrl": "https://img.example/page.html", "link": "https://b.example"},
                    {"title": "Gone", "imageUrl": "https://img.example/pic.gone", "link": "https://c.example"},
                ]
            },
        )
    return httpx.Response(
        200,
        json={
            "videos": [
                {"title": "Talk", "imageUrl": "https://img.example/thumb.png", "link": "https://video.example/1"},
                {"title": "Broken", "imageUrl": "https://img.example/down", "link": "https://video.example/2"},
            ]
        },
    )


def _service(completions: FakeCompletions, media_handler=_media_handler) -> EnrichmentService:
    return EnrichmentService(
        llm=ChatClient(fake_openai(completions)),
        follow_up_model="gpt-4o-mini",
        media_search=SerperClient("key", transport=httpx.MockTransport(media_handler)),
        validator=MediaValidator(transport=httpx.MockTransport(_head_handler)),
    )


@pytest.mark.asyncio
async def test_images_exclude_non_image_content_types():
    images = await _service(FakeCompletions()).images("quicksort")
    assert images == [{"title": "Diagram", "link": "https://img.example/diagram.png"}]


@pytest.mark.asyncio
async def test_videos_keep_thumbnail_and_link():
    videos = await _service(FakeCompletions()).videos("quicksort")
    assert videos == [
        {"title": "Talk", "imageUrl": "https://img.example/thumb.png", "link": "https://video.example/1"}
    ]


@pytest.mark.asyncio
async def test_media_provider_failure_returns_none():
    service = _service(FakeCompletions(), media_handler=lambda request: httpx.Response(500))
    assert await service.images("q") is None
    assert await service.videos("q") is None


@pytest.mark.asyncio
async def test_media_results_are_capped_in_provider_order():
    candidates = [{"title": str(i), "imageUrl": f"https://img.example/{i}.png"} for i in range(12)]
    candidates.insert(3, {"title": "bad", "imageUrl": "https://img.example/x.html"})
    validator = MediaValidator(transport=httpx.MockTransport(_head_handler))

    valid = await validator.filter_valid(candidates)

    assert len(valid) == MAX_MEDIA_RESULTS
    assert [item["title"] for item in valid] == [str(i) for i in range(9)]


@pytest.mark.asyncio
async def test_follow_up_questions_are_parsed_and_truncated():
    completions = FakeCompletions(replies=['["Q1?", "Q2?", "Q3?", "Q4?"]'])
    questions = await _service(completions).follow_up_questions("Quicksort partitions around a pivot.")
    assert questions == ["Q1?", "Q2?", "Q3?"]
    assert "Quicksort partitions around a pivot." in completions.calls[0]["messages"][1]["content"]


@pytest.mark.asyncio
async def test_unparseable_follow_ups_use_fallback():
    completions = FakeCompletions(replies=["Here are some thoughts, but no list."])
    assert await _service(completions).follow_up_questions("answer") is FOLLOW_UPS_FALLBACK


@pytest.mark.asyncio
async def test_follow_up_provider_failure_returns_none():
    completions = FakeCompletions(error=RuntimeError("rate limited"))
    assert await _service(completions).follow_up_questions("answer") is None
