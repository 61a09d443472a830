from __future__ import annotations

from functools import lru_cache

from app.agents.answer_synthesizer import AnswerSynthesizer
from app.agents.enrichment import EnrichmentService
from app.agents.orchestrator import AnswerOrchestrator
from app.agents.query_router import QueryRouter
from app.agents.source_retriever import SourceRetriever
from app.config import Settings, settings
from app.llm_client import ChatClient, get_client, get_model
from app.models.pipeline import OPTIONAL_ENRICHMENTS, ModelRouting, PipelineConfig
from app.services.embeddings import (
    EmbeddingService,
    LocalEmbeddingService,
    OpenAIEmbeddingService,
)
from app.tools.media_validator import MediaValidator
from app.tools.page_fetcher import PageFetcher
from app.tools.search_provider import WebSearchClient
from app.tools.serper_search import SerperClient


def build_embedder(cfg: Settings) -> EmbeddingService:
    backend = cfg.embedding_backend.strip().lower()
    if backend == "local":
        return LocalEmbeddingService(cfg.local_embed_model, batch_size=cfg.embedding_batch_size)
    if backend != "openai":
        raise ValueError(f"Unsupported EMBEDDING_BACKEND: {cfg.embedding_backend}")

    from openai import AsyncOpenAI

    base_url = cfg.embedding_base_url.strip() or cfg.llm_base_url.strip() or None
    openai_client = AsyncOpenAI(
        api_key=cfg.embedding_api_key or cfg.llm_api_key,
        base_url=base_url,
    )
    return OpenAIEmbeddingService(
        openai_client,
        model=cfg.embedding_model,
        batch_size=cfg.embedding_batch_size,
    )


def build_pipeline_config(cfg: Settings) -> PipelineConfig:
    default_model = get_model(cfg)
    strategy = cfg.answer_strategy.strip().lower()
    if strategy not in ("direct", "dialogue"):
        raise ValueError(f"Unsupported ANSWER_STRATEGY: {cfg.answer_strategy}")
    unknown = set(cfg.enrichment_list) - OPTIONAL_ENRICHMENTS
    if unknown:
        raise ValueError(f"Unsupported ENRICHMENTS: {sorted(unknown)}")
    return PipelineConfig(
        models=ModelRouting(
            answer=default_model,
            follow_ups=cfg.follow_up_model or default_model,
            router=cfg.router_model or default_model,
        ),
        answer_strategy=strategy,
        enrichments=frozenset(cfg.enrichment_list),
        route_queries=cfg.route_queries,
    )


def build_orchestrator(
    cfg: Settings,
    *,
    llm: ChatClient | None = None,
    embedder: EmbeddingService | None = None,
) -> AnswerOrchestrator:
    """Wire every capability from settings into a ready orchestrator."""
    llm = llm or get_client(cfg)
    embedder = embedder or build_embedder(cfg)
    config = build_pipeline_config(cfg)
    serper = SerperClient(
        cfg.serper_api_key,
        base_url=cfg.serper_base_url,
        timeout_seconds=cfg.search_timeout_seconds,
    )
    search_client = WebSearchClient(
        provider=cfg.search_provider,
        serper=serper,
        tavily_api_key=cfg.tavily_api_key,
        fallback_enabled=cfg.search_fallback_enabled,
    )
    retriever = SourceRetriever(
        search_client=search_client,
        fetcher=PageFetcher(
            timeout_seconds=cfg.page_fetch_timeout_seconds,
            user_agent=cfg.page_fetch_user_agent,
        ),
        embedder=embedder,
    )
    enrichment = EnrichmentService(
        llm=llm,
        follow_up_model=config.models.follow_ups,
        media_search=serper,
        validator=MediaValidator(timeout_seconds=cfg.media_check_timeout_seconds),
    )
    router = QueryRouter(llm, model=config.models.router) if config.route_queries else None
    return AnswerOrchestrator(
        retriever=retriever,
        synthesizer=AnswerSynthesizer(llm, model=config.models.answer),
        enrichment=enrichment,
        config=config,
        router=router,
    )


@lru_cache(maxsize=1)
def get_orchestrator() -> AnswerOrchestrator:
    return build_orchestrator(settings)
