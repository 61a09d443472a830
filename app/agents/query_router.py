from __future__ import annotations

from typing import Any

from loguru import logger

from app.errors import UpstreamProviderError
from app.llm_client import ChatClient
from app.models.pipeline import OPTIONAL_ENRICHMENTS, RouteDecision
from app.services.prompt_store import render_messages
from app.services.structured import parse_structured_reply

# A broken decision must never cost the answer itself: answer directly, skip extras.
SAFE_DECISION = RouteDecision(strategy="direct", enrichments=frozenset(), fell_back=True)


def _to_decision(payload: dict[str, Any]) -> RouteDecision:
    strategy = payload.get("strategy")
    if strategy not in ("direct", "dialogue"):
        raise ValueError(f"unknown strategy {strategy!r}")
    raw_enrichments = payload.get("enrichments", [])
    if not isinstance(raw_enrichments, list):
        raise TypeError("enrichments must be a list")
    enrichments = frozenset(
        str(item).strip().lower() for item in raw_enrichments if isinstance(item, str)
    )
    return RouteDecision(
        strategy=strategy,
        enrichments=enrichments & OPTIONAL_ENRICHMENTS,
    )


class QueryRouter:
    """Classifies a message as a direct question or an exploratory dialogue turn."""

    def __init__(self, llm: ChatClient, *, model: str):
        self.llm = llm
        self.model = model

    async def classify(self, message: str) -> RouteDecision:
        try:
            reply = await self.llm.complete(
                model=self.model,
                messages=render_messages("router", query=message.strip()),
                json_mode=True,
                caller="router",
            )
        except UpstreamProviderError as e:
            logger.warning(f"Routing call failed, using safe default: {e}")
            return SAFE_DECISION
        decision = parse_structured_reply(
            reply.text, dict, fallback=SAFE_DECISION, validate=_to_decision
        )
        logger.info(
            f"Routed query as {decision.strategy} with {sorted(decision.enrichments)}"
        )
        return decision
