from __future__ import annotations

from typing import Any

from loguru import logger

from app.llm_client import ChatClient
from app.services.prompt_store import render_messages
from app.services.structured import parse_structured_reply
from app.tools.media_validator import MAX_MEDIA_RESULTS, MediaValidator
from app.tools.serper_search import SerperClient

FOLLOW_UP_COUNT = 3

# Documented fallback for an unparseable follow-up reply.
FOLLOW_UPS_FALLBACK: list[str] | None = None


def _as_questions(payload: list[Any]) -> list[str]:
    questions = [str(item).strip() for item in payload if isinstance(item, str) and item.strip()]
    if not questions:
        raise ValueError("no questions in reply")
    return questions[:FOLLOW_UP_COUNT]


class EnrichmentService:
    """Best-effort extras around the answer.

    Every public method returns ``None`` instead of raising so one failing
    enrichment never blocks the others or the answer.
    """

    def __init__(
        self,
        *,
        llm: ChatClient,
        follow_up_model: str,
        media_search: SerperClient,
        validator: MediaValidator,
    ):
        self.llm = llm
        self.follow_up_model = follow_up_model
        self.media_search = media_search
        self.validator = validator

    async def follow_up_questions(self, answer: str) -> list[str] | None:
        try:
            reply = await self.llm.complete(
                model=self.follow_up_model,
                messages=render_messages("follow_ups", answer=answer),
                caller="follow_ups",
            )
        except Exception as e:
            logger.warning(f"Follow-up generation failed: {e}")
            return None
        return parse_structured_reply(
            reply.text, list, fallback=FOLLOW_UPS_FALLBACK, validate=_as_questions
        )

    async def images(self, query: str) -> list[dict[str, str]] | None:
        try:
            candidates = await self.media_search.images(query)
            valid = await self.validator.filter_valid(candidates, limit=MAX_MEDIA_RESULTS)
        except Exception as e:
            logger.error(f"Error fetching images: {e}")
            return None
        return [
            {"title": str(item.get("title") or ""), "link": item["imageUrl"]}
            for item in valid
        ]

    async def videos(self, query: str) -> list[dict[str, str]] | None:
        try:
            candidates = await self.media_search.videos(query)
            valid = await self.validator.filter_valid(candidates, limit=MAX_MEDIA_RESULTS)
        except Exception as e:
            logger.error(f"Error fetching videos: {e}")
            return None
        return [
            {
                "title": str(item.get("title") or ""),
                "imageUrl": item["imageUrl"],
                "link": str(item.get("link") or ""),
            }
            for item in valid
        ]
