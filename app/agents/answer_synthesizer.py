from __future__ import annotations

import json

from loguru import logger

from app.llm_client import ChatClient
from app.models.pipeline import AnswerQuery, AnswerStrategy, SimilarityHit
from app.services.prompt_store import render_messages, render_prompt
from app.services.token_stream import FragmentCallback, accumulate

NO_RESULTS_ANSWER = (
    "No relevant results found. Can you clarify or ask another related question?"
)

_HISTORY_ROLES = {"user", "assistant"}


class AnswerSynthesizer:
    """Turns the query plus ranked evidence into a streamed, accumulated answer."""

    def __init__(self, llm: ChatClient, *, model: str):
        self.llm = llm
        self.model = model

    def build_messages(
        self,
        query: AnswerQuery,
        evidence: list[SimilarityHit],
        strategy: AnswerStrategy = "direct",
    ) -> list[dict[str, str]]:
        source_instruction = (
            render_prompt("answer.cite_sources") if query.embed_sources_in_llm_response else ""
        )
        messages = render_messages(
            f"answer.{strategy}",
            query=query.message.strip(),
            evidence=json.dumps([hit.to_dict() for hit in evidence], ensure_ascii=False),
            no_results_answer=NO_RESULTS_ANSWER,
            source_instruction=source_instruction,
        )
        if strategy == "dialogue" and query.history:
            history = [
                {"role": turn["role"], "content": turn["content"]}
                for turn in query.history
                if turn.get("role") in _HISTORY_ROLES and turn.get("content")
            ]
            messages = [messages[0], *history, messages[1]]
        return messages

    async def synthesize(
        self,
        query: AnswerQuery,
        evidence: list[SimilarityHit],
        *,
        strategy: AnswerStrategy = "direct",
        on_fragment: FragmentCallback | None = None,
    ) -> str:
        """Stream the completion and return the full answer once the stream ends."""
        messages = self.build_messages(query, evidence, strategy)
        logger.info(
            f"Synthesizing {strategy} answer from {len(evidence)} evidence chunks"
        )
        channel = self.llm.stream(
            model=self.model,
            messages=messages,
            caller=f"synthesizer.{strategy}",
        )
        answer = await accumulate(channel, on_fragment)
        logger.info(f"Answer complete: {len(answer)} chars")
        return answer
