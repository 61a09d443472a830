from __future__ import annotations

import asyncio
import math
import time
from typing import Any, Protocol

from loguru import logger

from app.errors import UpstreamProviderError
from app.services.logger import log_event


class EmbeddingService(Protocol):
    async def embed_texts(self, texts: list[str]) -> list[list[float]]: ...

    async def embed_text(self, text: str) -> list[float]: ...


class OpenAIEmbeddingService:
    """Embeddings from any OpenAI-compatible ``/embeddings`` endpoint."""

    def __init__(self, openai_client: Any, *, model: str, batch_size: int = 64):
        self._client = openai_client
        self.model = model
        self.batch_size = max(int(batch_size), 1)

    async def embed_texts(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        vectors: list[list[float]] = []
        t0 = time.monotonic()
        for start in range(0, len(texts), self.batch_size):
            batch = texts[start : start + self.batch_size]
            try:
                response = await self._client.embeddings.create(model=self.model, input=batch)
            except Exception as exc:
                raise UpstreamProviderError("embeddings", str(exc)) from exc
            vectors.extend([list(item.embedding) for item in response.data])
        log_event(
            event_type="embeddings",
            message="Embedded texts",
            model=self.model,
            count=len(texts),
            duration_ms=int((time.monotonic() - t0) * 1000),
        )
        return vectors

    async def embed_text(self, text: str) -> list[float]:
        vectors = await self.embed_texts([text])
        return vectors[0]


class LocalEmbeddingService:
    """Embeddings from a local sentence-transformers model, loaded on first use."""

    def __init__(self, model_name: str, batch_size: int = 32):
        self.model_name = model_name
        self.batch_size = max(int(batch_size), 1)
        self._model: Any | None = None
        self._lock = asyncio.Lock()

    async def embed_texts(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        async with self._lock:
            if self._model is None:
                await asyncio.to_thread(self._load_model)
        return await asyncio.to_thread(self._embed_sync, texts)

    async def embed_text(self, text: str) -> list[float]:
        vectors = await self.embed_texts([text])
        return vectors[0]

    def _load_model(self) -> None:
        try:
            from sentence_transformers import SentenceTransformer
        except ImportError as exc:
            raise UpstreamProviderError(
                "embeddings",
                "EMBEDDING_BACKEND=local requires sentence-transformers "
                "(pip install 'answer-engine[local]')",
            ) from exc
        try:
            self._model = SentenceTransformer(self.model_name)
        except Exception as exc:
            raise UpstreamProviderError(
                "embeddings", f"could not load {self.model_name}: {exc}"
            ) from exc
        logger.info(f"Loaded local embedding model {self.model_name}")

    def _embed_sync(self, texts: list[str]) -> list[list[float]]:
        vectors = self._model.encode(
            texts,
            batch_size=self.batch_size,
            normalize_embeddings=True,
            show_progress_bar=False,
        )
        return [list(map(float, row)) for row in vectors]


def cosine_similarity(a: list[float], b: list[float]) -> float:
    if len(a) != len(b) or not a:
        return 0.0
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)
