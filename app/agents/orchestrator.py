from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable
from uuid import uuid4

from loguru import logger

from app.agents.answer_synthesizer import NO_RESULTS_ANSWER, AnswerSynthesizer
from app.agents.enrichment import EnrichmentService
from app.agents.query_router import QueryRouter
from app.agents.source_retriever import SourceRetriever
from app.errors import QueryValidationError
from app.models.events import SSEEvent
from app.models.pipeline import (
    ENRICHMENT_FOLLOW_UPS,
    ENRICHMENT_IMAGES,
    ENRICHMENT_SOURCES,
    ENRICHMENT_VIDEOS,
    OPTIONAL_ENRICHMENTS,
    AnswerQuery,
    AnswerStrategy,
    PipelineConfig,
    PipelineState,
    ResponsePayload,
    RouteDecision,
)
from app.services import streaming
from app.services.aggregator import aggregate_sources, flatten_evidence
from app.services.logger import log_pipeline_step

EventCallback = Callable[[SSEEvent], Awaitable[None]]


class AnswerOrchestrator:
    """Runs one query through the answer pipeline.

    Flow:
      1. Validate the query (blank messages are rejected)
      2. Retrieve: search, then fetch/chunk/embed/rank pages in parallel
      3. Aggregate evidence and deduplicated sources
      4. Optionally route the query, then synthesize the streamed answer
      5. Run the selected enrichments concurrently
      6. Assemble the response payload

    When ``emit`` is given, each stage also produces an SSE event.
    """

    def __init__(
        self,
        *,
        retriever: SourceRetriever,
        synthesizer: AnswerSynthesizer,
        enrichment: EnrichmentService,
        config: PipelineConfig,
        router: QueryRouter | None = None,
    ):
        self.retriever = retriever
        self.synthesizer = synthesizer
        self.enrichment = enrichment
        self.config = config
        self.router = router

    async def run(
        self,
        query: AnswerQuery,
        emit: EventCallback | None = None,
    ) -> ResponsePayload:
        request_id = uuid4().hex[:12]
        with logger.contextualize(request_id=request_id):
            return await self._run(query, emit, request_id)

    async def _run(
        self,
        query: AnswerQuery,
        emit: EventCallback | None,
        request_id: str,
    ) -> ResponsePayload:
        started = time.monotonic()
        self._transition(request_id, started, PipelineState.VALIDATING)
        if not query.message or not query.message.strip():
            self._transition(request_id, started, PipelineState.REJECTED, {"reason": "empty message"})
            raise QueryValidationError("Query message is empty")

        self._transition(
            request_id,
            started,
            PipelineState.RETRIEVING,
            {"pages_to_scan": query.number_of_pages_to_scan},
        )
        await self._emit(
            emit, streaming.retrieval_started(query.message, query.number_of_pages_to_scan)
        )
        retrieval = await self.retriever.retrieve(query)
        evidence = flatten_evidence(retrieval.per_page)
        sources = [source.to_dict() for source in aggregate_sources(retrieval.per_page)]
        await self._emit(
            emit,
            streaming.sources_ready(
                sources if query.return_sources else None,
                evidence_count=len(evidence),
                provider=retrieval.provider,
                search_failed=retrieval.search_failed,
            ),
        )

        strategy, enrichments = await self._resolve(query)
        self._transition(
            request_id,
            started,
            PipelineState.SYNTHESIZING,
            {"strategy": strategy, "evidence": len(evidence), "hits": len(retrieval.hits)},
        )
        if retrieval.search_failed or not retrieval.hits:
            answer = NO_RESULTS_ANSWER
        else:
            async def on_fragment(fragment: str) -> None:
                await self._emit(emit, streaming.answer_progress(fragment))

            answer = await self.synthesizer.synthesize(
                query,
                evidence,
                strategy=strategy,
                on_fragment=on_fragment if emit is not None else None,
            )
        await self._emit(emit, streaming.answer_complete(answer, strategy))

        included = set(enrichments)
        if query.return_sources:
            included.add(ENRICHMENT_SOURCES)
        self._transition(request_id, started, PipelineState.ENRICHING, {"enrichments": sorted(included)})
        extras = await self._enrich(query, answer, enrichments, emit)
        if ENRICHMENT_SOURCES in included:
            await self._emit(emit, streaming.enrichment_complete(ENRICHMENT_SOURCES, sources))

        payload = ResponsePayload(
            answer=answer,
            sources=sources if ENRICHMENT_SOURCES in included else None,
            follow_up_questions=extras.get(ENRICHMENT_FOLLOW_UPS),
            images=extras.get(ENRICHMENT_IMAGES),
            videos=extras.get(ENRICHMENT_VIDEOS),
            included=frozenset(included),
        )
        runtime_ms = self._transition(request_id, started, PipelineState.RESPONDING)
        await self._emit(emit, streaming.response_complete(payload.to_dict(), runtime_ms))
        return payload

    async def _resolve(self, query: AnswerQuery) -> tuple[AnswerStrategy, frozenset[str]]:
        """Pick the answer strategy and optional enrichments for this query."""
        if not (self.config.route_queries and self.router is not None):
            return self.config.answer_strategy, self.config.enrichments & OPTIONAL_ENRICHMENTS
        decision: RouteDecision = await self.router.classify(query.message)
        if decision.fell_back:
            logger.warning("Route decision unavailable, answering directly without extras")
        return decision.strategy, decision.enrichments

    async def _enrich(
        self,
        query: AnswerQuery,
        answer: str,
        enrichments: frozenset[str],
        emit: EventCallback | None,
    ) -> dict[str, Any]:
        tasks: dict[str, Awaitable[Any]] = {}
        if ENRICHMENT_FOLLOW_UPS in enrichments:
            tasks[ENRICHMENT_FOLLOW_UPS] = self.enrichment.follow_up_questions(answer)
        if ENRICHMENT_IMAGES in enrichments:
            tasks[ENRICHMENT_IMAGES] = self.enrichment.images(query.message)
        if ENRICHMENT_VIDEOS in enrichments:
            tasks[ENRICHMENT_VIDEOS] = self.enrichment.videos(query.message)
        if not tasks:
            return {}

        values = await asyncio.gather(*tasks.values())
        results = dict(zip(tasks.keys(), values))
        for name, value in results.items():
            if value is None:
                logger.warning(f"Enrichment {name} unavailable")
            await self._emit(emit, streaming.enrichment_complete(name, value))
        return results

    @staticmethod
    async def _emit(emit: EventCallback | None, event: SSEEvent) -> None:
        if emit is not None:
            await emit(event)

    @staticmethod
    def _transition(
        request_id: str,
        started: float,
        state: PipelineState,
        data: dict | None = None,
    ) -> int:
        elapsed_ms = int((time.monotonic() - started) * 1000)
        log_pipeline_step(request_id, state.value, elapsed_ms, data)
        return elapsed_ms
