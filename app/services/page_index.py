from __future__ import annotations

from typing import Iterable

from app.models.pipeline import SimilarityHit
from app.services.embeddings import EmbeddingService, cosine_similarity

# Pages whose extracted text is shorter than this carry nothing worth indexing.
MIN_PAGE_CHARS = 250


class PageIndex:
    """In-memory vector index over the chunks of a single page.

    Built per page and per request, then dropped; nothing is shared or persisted.
    """

    def __init__(
        self,
        chunks: list[str],
        vectors: list[list[float]],
        metadata: dict[str, str],
        embedder: EmbeddingService,
    ):
        if len(chunks) != len(vectors):
            raise ValueError(
                f"Got {len(vectors)} embeddings for {len(chunks)} chunks"
            )
        self.chunks = chunks
        self.vectors = vectors
        self.metadata = dict(metadata)
        self._embedder = embedder

    @classmethod
    async def from_texts(
        cls,
        texts: Iterable[str],
        metadata: dict[str, str],
        embedder: EmbeddingService,
    ) -> "PageIndex":
        chunks = [text for text in texts if text]
        vectors = await embedder.embed_texts(chunks)
        return cls(chunks, vectors, metadata, embedder)

    def __len__(self) -> int:
        return len(self.chunks)

    def similarity_search_by_vector(self, vector: list[float], k: int) -> list[SimilarityHit]:
        if k <= 0 or not self.chunks:
            return []
        scored = [
            (cosine_similarity(vector, chunk_vector), idx)
            for idx, chunk_vector in enumerate(self.vectors)
        ]
        # Highest score first, earlier chunk on ties.
        scored.sort(key=lambda item: (-item[0], item[1]))
        return [
            SimilarityHit(
                chunk_text=self.chunks[idx],
                metadata=dict(self.metadata),
                score=score,
            )
            for score, idx in scored[:k]
        ]

    async def similarity_search(self, query: str, k: int) -> list[SimilarityHit]:
        vector = await self._embedder.embed_text(query)
        return self.similarity_search_by_vector(vector, k)
