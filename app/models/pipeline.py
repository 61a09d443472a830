from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal


AnswerStrategy = Literal["direct", "dialogue"]

ENRICHMENT_SOURCES = "sources"
ENRICHMENT_FOLLOW_UPS = "follow_ups"
ENRICHMENT_IMAGES = "images"
ENRICHMENT_VIDEOS = "videos"
OPTIONAL_ENRICHMENTS = frozenset({ENRICHMENT_FOLLOW_UPS, ENRICHMENT_IMAGES, ENRICHMENT_VIDEOS})


class PipelineState(str, Enum):
    VALIDATING = "validating"
    REJECTED = "rejected"
    RETRIEVING = "retrieving"
    SYNTHESIZING = "synthesizing"
    ENRICHING = "enriching"
    RESPONDING = "responding"


@dataclass(slots=True)
class AnswerQuery:
    message: str
    history: list[dict[str, str]] = field(default_factory=list)
    return_sources: bool = False
    embed_sources_in_llm_response: bool = False
    text_chunk_size: int = 800
    text_chunk_overlap: int = 200
    number_of_similarity_results: int = 2
    number_of_pages_to_scan: int = 1


@dataclass(slots=True)
class SearchHit:
    title: str
    url: str


@dataclass(slots=True)
class PageContent:
    url: str
    title: str
    cleaned_text: str


@dataclass(slots=True)
class SimilarityHit:
    chunk_text: str
    metadata: dict[str, str]
    score: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "pageContent": self.chunk_text,
            "metadata": dict(self.metadata),
            "score": round(self.score, 4),
        }


@dataclass(slots=True, frozen=True)
class AggregatedSource:
    title: str
    url: str

    def to_dict(self) -> dict[str, str]:
        return {"title": self.title, "link": self.url}


@dataclass(slots=True)
class RetrievalResult:
    hits: list[SearchHit] = field(default_factory=list)
    per_page: list[list[SimilarityHit]] = field(default_factory=list)
    provider: str | None = None
    search_failed: bool = False


@dataclass(slots=True)
class ModelRouting:
    answer: str
    follow_ups: str
    router: str


@dataclass(slots=True)
class PipelineConfig:
    """Collapses the pipeline variants into one parameter object."""

    models: ModelRouting
    answer_strategy: AnswerStrategy = "direct"
    enrichments: frozenset[str] = OPTIONAL_ENRICHMENTS
    route_queries: bool = False


@dataclass(slots=True)
class RouteDecision:
    strategy: AnswerStrategy = "direct"
    enrichments: frozenset[str] = frozenset()
    fell_back: bool = False


@dataclass(slots=True)
class ResponsePayload:
    answer: str
    sources: list[dict[str, str]] | None = None
    follow_up_questions: list[str] | None = None
    images: list[dict[str, str]] | None = None
    videos: list[dict[str, str]] | None = None
    included: frozenset[str] = frozenset()

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the wire field names; unselected enrichments are omitted."""
        payload: dict[str, Any] = {"answer": self.answer}
        if ENRICHMENT_SOURCES in self.included:
            payload["sources"] = self.sources
        if ENRICHMENT_FOLLOW_UPS in self.included:
            payload["followUpQuestions"] = self.follow_up_questions
        if ENRICHMENT_IMAGES in self.included:
            payload["images"] = self.images
        if ENRICHMENT_VIDEOS in self.included:
            payload["videos"] = self.videos
        return payload
